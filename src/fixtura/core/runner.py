"""
Strategy entry points for fixtura.

A FactoryRunner ties a registry, its resolver and an evaluator together
and exposes one method per strategy. The module-level functions delegate
to a process-wide runner bound to the process registry.

Example:
    from fixtura import build, create

    user = build("user", "admin", name="Ann")
    users = create_list("user", 3, "female")
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from .config import FixturaConfig
from .evaluator import Evaluator
from .ir import CompiledPlan, Strategy
from .registry import Registry, get_registry

logger = logging.getLogger(__name__)


class FactoryRunner:
    """
    Runs factories from one registry under the four strategies.

    Args:
        registry: Registry to read definitions from (default: process registry)
        config: Runtime settings (default: FixturaConfig())
    """

    def __init__(self, registry: Registry | None = None, config: FixturaConfig | None = None):
        self.registry = registry if registry is not None else get_registry()
        self.config = config or FixturaConfig()
        self.registry.resolver.cache_enabled = self.config.cache_plans
        self.evaluator = Evaluator(self.config, associate=self._associate)

    def compile(self, factory: Any, traits: Iterable[Any] = ()) -> CompiledPlan:
        """Compile (or fetch from cache) the plan for a factory and traits."""
        return self.registry.resolver.compile(factory, traits)

    def run(
        self,
        strategy: Strategy | str,
        factory: Any,
        traits: Iterable[Any] = (),
        overrides: Mapping[Any, Any] | None = None,
        *,
        constructor: Callable[..., Any] | None = None,
        persistor: Callable[..., Any] | None = None,
    ) -> Any:
        """
        Compile and evaluate one factory.

        Args:
            strategy: attributes_for, build, create, or build_stubbed
            factory: Factory name
            traits: Call-time traits, applied in order after static ones
            overrides: Attribute overrides, winning over every trait
            constructor: Replace the effective constructor for this call
            persistor: Replace the effective persistor for this call

        Returns:
            Attribute dict for attributes_for, otherwise the instance

        Raises:
            FactoryNotFoundError: Unknown factory
            TraitNotFoundError: Unknown trait anywhere in the stack
        """
        plan = self.compile(factory, traits)
        return self.evaluator.evaluate(
            plan,
            strategy,
            overrides,
            constructor=constructor,
            persistor=persistor,
        )

    def attributes_for(self, factory: Any, /, *traits: Any, **overrides: Any) -> dict[str, Any]:
        return self.run(Strategy.ATTRIBUTES_FOR, factory, traits, overrides)

    def build(
        self,
        factory: Any,
        /,
        *traits: Any,
        constructor: Callable[..., Any] | None = None,
        persistor: Callable[..., Any] | None = None,
        **overrides: Any,
    ) -> Any:
        return self.run(
            Strategy.BUILD, factory, traits, overrides, constructor=constructor, persistor=persistor
        )

    def create(
        self,
        factory: Any,
        /,
        *traits: Any,
        constructor: Callable[..., Any] | None = None,
        persistor: Callable[..., Any] | None = None,
        **overrides: Any,
    ) -> Any:
        return self.run(
            Strategy.CREATE, factory, traits, overrides, constructor=constructor, persistor=persistor
        )

    def build_stubbed(
        self,
        factory: Any,
        /,
        *traits: Any,
        constructor: Callable[..., Any] | None = None,
        persistor: Callable[..., Any] | None = None,
        **overrides: Any,
    ) -> Any:
        return self.run(
            Strategy.BUILD_STUBBED,
            factory,
            traits,
            overrides,
            constructor=constructor,
            persistor=persistor,
        )

    def run_list(
        self,
        strategy: Strategy | str,
        factory: Any,
        count: int,
        traits: Iterable[Any] = (),
        overrides: Mapping[Any, Any] | None = None,
        **hooks: Any,
    ) -> list[Any]:
        """
        Run one factory ``count`` times, compiling its plan once.

        Every instance gets a fresh evaluation, so computed attributes are
        computed per instance.
        """
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")

        plan = self.compile(factory, traits)
        return [self.evaluator.evaluate(plan, strategy, overrides, **hooks) for _ in range(count)]

    def attributes_for_list(
        self, factory: Any, count: int, /, *traits: Any, **overrides: Any
    ) -> list[dict[str, Any]]:
        return self.run_list(Strategy.ATTRIBUTES_FOR, factory, count, traits, overrides)

    def build_list(
        self,
        factory: Any,
        count: int,
        /,
        *traits: Any,
        constructor: Callable[..., Any] | None = None,
        persistor: Callable[..., Any] | None = None,
        **overrides: Any,
    ) -> list[Any]:
        return self.run_list(
            Strategy.BUILD,
            factory,
            count,
            traits,
            overrides,
            constructor=constructor,
            persistor=persistor,
        )

    def create_list(
        self,
        factory: Any,
        count: int,
        /,
        *traits: Any,
        constructor: Callable[..., Any] | None = None,
        persistor: Callable[..., Any] | None = None,
        **overrides: Any,
    ) -> list[Any]:
        return self.run_list(
            Strategy.CREATE,
            factory,
            count,
            traits,
            overrides,
            constructor=constructor,
            persistor=persistor,
        )

    def build_stubbed_list(
        self,
        factory: Any,
        count: int,
        /,
        *traits: Any,
        constructor: Callable[..., Any] | None = None,
        persistor: Callable[..., Any] | None = None,
        **overrides: Any,
    ) -> list[Any]:
        return self.run_list(
            Strategy.BUILD_STUBBED,
            factory,
            count,
            traits,
            overrides,
            constructor=constructor,
            persistor=persistor,
        )

    def reset(self) -> None:
        """Clear the registry and restart synthetic stub ids."""
        self.registry.reset()
        self.evaluator.reset_stub_ids()

    def _associate(
        self,
        factory: str,
        traits: tuple[str, ...],
        overrides: dict[str, Any],
        strategy: Strategy,
    ) -> Any:
        logger.debug("Building association %s with traits %s via %s", factory, traits, strategy)
        return self.run(strategy, factory, traits, overrides)


# Process-wide runner, bound to the process registry
_runner: FactoryRunner | None = None


def get_runner() -> FactoryRunner:
    """
    Get the process runner.

    Returns:
        FactoryRunner singleton
    """
    global _runner
    if _runner is None:
        _runner = FactoryRunner(get_registry())
    return _runner


def configure(config: FixturaConfig) -> FactoryRunner:
    """
    Install settings on the process runner.

    Definitions already registered are kept; the stub id counter restarts
    from ``config.stub_id_start``.
    """
    global _runner
    _runner = FactoryRunner(get_registry(), config)
    logger.debug("Configured fixtura: %s", config)
    return _runner


def reset() -> None:
    """Forget every definition and restart stub ids."""
    get_runner().reset()


def run(
    strategy: Strategy | str,
    factory: Any,
    traits: Iterable[Any] = (),
    overrides: Mapping[Any, Any] | None = None,
    *,
    constructor: Callable[..., Any] | None = None,
    persistor: Callable[..., Any] | None = None,
) -> Any:
    return get_runner().run(
        strategy, factory, traits, overrides, constructor=constructor, persistor=persistor
    )


def attributes_for(factory: Any, /, *traits: Any, **overrides: Any) -> dict[str, Any]:
    return get_runner().attributes_for(factory, *traits, **overrides)


def build(factory: Any, /, *traits: Any, **kwargs: Any) -> Any:
    return get_runner().build(factory, *traits, **kwargs)


def create(factory: Any, /, *traits: Any, **kwargs: Any) -> Any:
    return get_runner().create(factory, *traits, **kwargs)


def build_stubbed(factory: Any, /, *traits: Any, **kwargs: Any) -> Any:
    return get_runner().build_stubbed(factory, *traits, **kwargs)


def attributes_for_list(factory: Any, count: int, /, *traits: Any, **overrides: Any) -> list[Any]:
    return get_runner().attributes_for_list(factory, count, *traits, **overrides)


def build_list(factory: Any, count: int, /, *traits: Any, **kwargs: Any) -> list[Any]:
    return get_runner().build_list(factory, count, *traits, **kwargs)


def create_list(factory: Any, count: int, /, *traits: Any, **kwargs: Any) -> list[Any]:
    return get_runner().create_list(factory, count, *traits, **kwargs)


def build_stubbed_list(factory: Any, count: int, /, *traits: Any, **kwargs: Any) -> list[Any]:
    return get_runner().build_stubbed_list(factory, count, *traits, **kwargs)
