"""
Plan evaluation for fixtura.

An Evaluation resolves one plan's attributes lazily, each at most once,
then runs construction, persistence and callbacks for the requested
strategy. Nothing computed during one evaluation is visible to another.
"""

from __future__ import annotations

import copy
import itertools
import logging
import types
from collections.abc import Callable, Iterator, Mapping
from typing import Any

from .config import FixturaConfig
from .errors import (
    CycleDetectedError,
    ErrorContext,
    FixturaError,
    NotFoundError,
    PersistenceError,
    StubbedPersistenceError,
    UndefinedAttributeError,
)
from .ir import (
    STRATEGY_EVENTS,
    Association,
    AttributeDeclaration,
    CompiledPlan,
    Computed,
    Fixed,
    LifecycleEvent,
    Strategy,
)
from .names import canonical_attribute_name
from .resolver import apply_overrides

logger = logging.getLogger(__name__)

# Signature of the hook that builds associated factories:
# (factory, traits, overrides, strategy) -> instance
AssociationHook = Callable[[str, tuple[str, ...], dict[str, Any], Strategy], Any]

_STUBBED_METHODS = ("save", "delete", "refresh", "reload")


class EvaluationContext:
    """
    What an attribute computation sees: its siblings, read by name.

    ``ctx["name"]``, ``ctx.name`` and ``ctx.get("name", default)`` all
    trigger the sibling's computation on first read.
    """

    def __init__(self, evaluation: Evaluation):
        self._evaluation = evaluation

    def __getitem__(self, name: Any) -> Any:
        return self._evaluation.read(canonical_attribute_name(name))

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        return self._evaluation.read(name)

    def __contains__(self, name: object) -> bool:
        try:
            name = canonical_attribute_name(name)
        except NotFoundError:
            return False
        return name in self._evaluation.declarations

    def get(self, name: Any, default: Any = None) -> Any:
        name = canonical_attribute_name(name)
        if name not in self._evaluation.declarations:
            return default
        return self._evaluation.read(name)


class AttributeSnapshot(Mapping[str, Any]):
    """
    Read-only view of resolved attributes handed to a constructor.

    Records which attributes the constructor read, so that only the
    unread ones are assigned onto the instance afterwards.
    """

    def __init__(self, values: dict[str, Any], model: type | None):
        self._values = values
        self.model = model
        self.accessed: set[str] = set()

    def __getitem__(self, name: str) -> Any:
        value = self._values[name]
        self.accessed.add(name)
        return value

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def new(self, *args: Any, **kwargs: Any) -> Any:
        """Instantiate the factory's model with the given arguments."""
        model = self.model if self.model is not None else types.SimpleNamespace
        return model(*args, **kwargs)


class Evaluation:
    """
    Per-call state: one plan, one strategy, one attribute cache.
    """

    def __init__(
        self,
        plan: CompiledPlan,
        strategy: Strategy,
        associate: AssociationHook | None = None,
        use_parent_strategy: bool = True,
    ):
        self.plan = plan
        self.strategy = strategy
        self.declarations: dict[str, AttributeDeclaration] = {
            declaration.name: declaration for declaration in plan.attributes
        }
        self.context = EvaluationContext(self)
        self._associate = associate
        self._use_parent_strategy = use_parent_strategy
        self._values: dict[str, Any] = {}
        self._active: list[str] = []

    def read(self, name: str) -> Any:
        """Value of one attribute, computing it on first read."""
        if name in self._values:
            return self._values[name]

        if name in self._active:
            chain = self._active[self._active.index(name) :] + [name]
            raise CycleDetectedError(name, chain, ErrorContext(factory=self.plan.factory))

        declaration = self.declarations.get(name)
        if declaration is None:
            raise UndefinedAttributeError(name, ErrorContext(factory=self.plan.factory))

        self._active.append(name)
        try:
            value = self._compute(declaration)
        except FixturaError:
            raise
        except Exception as exc:
            exc.add_note(
                f"while evaluating attribute '{name}' ({declaration.origin}) "
                f"of factory '{self.plan.factory}'"
            )
            raise
        finally:
            self._active.pop()

        self._values[name] = value
        return value

    def resolve(self) -> dict[str, Any]:
        """Every attribute, in plan order."""
        return {name: self.read(name) for name in self.declarations}

    def _compute(self, declaration: AttributeDeclaration) -> Any:
        value = declaration.value
        if isinstance(value, Fixed):
            return value.value if value.shared else copy.deepcopy(value.value)
        if isinstance(value, Computed):
            return value.evaluate(self.context)
        if isinstance(value, Association):
            return self._build_association(declaration.name, value)
        raise TypeError(f"Unsupported attribute value {value!r}")

    def _build_association(self, name: str, association: Association) -> Any:
        if association.strategy is not None:
            strategy = association.strategy
        elif self.strategy == Strategy.ATTRIBUTES_FOR:
            return None
        elif self._use_parent_strategy:
            strategy = self.strategy
        else:
            strategy = Strategy.CREATE

        if self._associate is None:
            raise TypeError(f"Attribute '{name}' is an association but no association hook is set")

        factory = association.factory or name
        overrides = copy.deepcopy(dict(association.overrides))
        return self._associate(factory, association.traits, overrides, strategy)


class Evaluator:
    """
    Runs compiled plans under a strategy.

    Holds what outlives one evaluation: configuration, the association
    hook and the synthetic id counter used by stubs.
    """

    def __init__(
        self,
        config: FixturaConfig | None = None,
        associate: AssociationHook | None = None,
    ):
        self.config = config or FixturaConfig()
        self.associate = associate
        self._stub_ids = itertools.count(self.config.stub_id_start)

    def reset_stub_ids(self) -> None:
        self._stub_ids = itertools.count(self.config.stub_id_start)

    def evaluate(
        self,
        plan: CompiledPlan,
        strategy: Strategy | str,
        overrides: Mapping[Any, Any] | None = None,
        *,
        constructor: Callable[..., Any] | None = None,
        persistor: Callable[..., Any] | None = None,
    ) -> Any:
        """
        Materialize a plan.

        Args:
            plan: Compiled plan
            strategy: One of the Strategy values
            overrides: Inline attribute overrides (highest precedence)
            constructor: Inline constructor, replacing the plan's
            persistor: Inline persistor, replacing the plan's

        Returns:
            A dict of attributes for ATTRIBUTES_FOR, otherwise the instance
        """
        strategy = Strategy(strategy)
        plan = apply_overrides(plan, overrides, constructor=constructor, persistor=persistor)
        evaluation = Evaluation(
            plan,
            strategy,
            associate=self.associate,
            use_parent_strategy=self.config.use_parent_strategy,
        )
        logger.debug("Running %s for factory %s with traits %s", strategy, plan.factory, plan.traits)

        attributes = evaluation.resolve()
        if strategy == Strategy.ATTRIBUTES_FOR:
            return attributes

        instance = self._construct(plan, attributes)

        if strategy == Strategy.BUILD_STUBBED:
            self._stub(instance, attributes)

        for event in STRATEGY_EVENTS[strategy]:
            if event == LifecycleEvent.AFTER_CREATE:
                self._persist(plan, instance)
            self._run_callbacks(plan, event, instance, evaluation)

        return instance

    def _construct(self, plan: CompiledPlan, attributes: dict[str, Any]) -> Any:
        if plan.constructor is None:
            model = plan.model if plan.model is not None else types.SimpleNamespace
            instance = model()
            assigned: set[str] = set()
        else:
            snapshot = AttributeSnapshot(attributes, plan.model)
            try:
                instance = plan.constructor(snapshot)
            except Exception as exc:
                exc.add_note(f"while running the constructor of factory '{plan.factory}'")
                raise
            assigned = snapshot.accessed

        for name, value in attributes.items():
            if name not in assigned:
                setattr(instance, name, value)
        return instance

    def _persist(self, plan: CompiledPlan, instance: Any) -> None:
        if plan.persistor is not None:
            try:
                plan.persistor(instance)
            except Exception as exc:
                exc.add_note(f"while running the persistor of factory '{plan.factory}'")
                raise
            return

        save = getattr(instance, "save", None)
        if save is None:
            raise PersistenceError(
                f"{type(instance).__name__} has no save() method; declare a persistor",
                ErrorContext(factory=plan.factory),
            )
        save()

    def _stub(self, instance: Any, attributes: dict[str, Any]) -> None:
        if "id" not in attributes:
            instance.id = next(self._stub_ids)

        for method in _STUBBED_METHODS:
            if hasattr(instance, method):
                setattr(instance, method, _disabled(type(instance).__name__, method))

    def _run_callbacks(
        self,
        plan: CompiledPlan,
        event: LifecycleEvent,
        instance: Any,
        evaluation: Evaluation,
    ) -> None:
        for callback in plan.callbacks_for(event):
            try:
                callback.invoke(instance, evaluation.context)
            except Exception as exc:
                exc.add_note(f"while running {event} callback from {callback.owner}")
                raise


def _disabled(model_name: str, method: str) -> Callable[..., Any]:
    def raiser(*args: Any, **kwargs: Any) -> Any:
        raise StubbedPersistenceError(f"stubbed {model_name} is not allowed to {method}()")

    return raiser
