"""
Trait resolution and plan compilation for fixtura.

Compiles a factory plus call-time traits into a CompiledPlan. The layer
stack, lowest precedence first:

1. Each inheritance level, oldest ancestor first. A level contributes
   the traits it applies (declared order), then its own declarations.
2. Call-time traits, in the order passed, resolved from the factory.
3. Inline overrides (see ``apply_overrides``).

Traits are expanded depth-first: a trait's own nested traits land in the
stack before the trait itself. Later layers win for attributes,
constructor and persistor; callbacks accumulate.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

from .attributes import AttributeSet
from .definitions import FactoryDefinition, TraitDefinition
from .errors import ErrorContext, TraitCycleError, TraitNotFoundError, make_trait_not_found
from .ir import (
    Association,
    AttributeDeclaration,
    AttributeValue,
    Callback,
    CompiledPlan,
    Computed,
    Fixed,
    Layer,
    LayerKind,
)
from .names import canonical_attribute_name, canonical_trait_name

if TYPE_CHECKING:
    from .registry import Registry

logger = logging.getLogger(__name__)

PlanKey = tuple[str, tuple[str, ...]]


class Resolver:
    """
    Compiles and caches evaluation plans for one registry.

    Plans are cached per (factory, call-time traits). The static part of a
    factory's stack (its lineage and the traits each level applies) is
    cached per factory and shared by every trait combination. Any change
    to the registry discards both caches.
    """

    def __init__(self, registry: Registry, cache: bool = True):
        self.registry = registry
        self.cache_enabled = cache
        self._plans: dict[PlanKey, CompiledPlan] = {}
        self._static: dict[str, tuple[Layer, ...]] = {}
        self._generation = registry.generation
        self._lock = threading.Lock()

    def compile(self, factory: Any, traits: Iterable[Any] = ()) -> CompiledPlan:
        """
        Compile (or fetch) the plan for a factory and call-time traits.

        Args:
            factory: Factory name (str or string-valued enum member)
            traits: Call-time traits, in application order

        Returns:
            Immutable compiled plan

        Raises:
            FactoryNotFoundError: If the factory is not registered
            TraitNotFoundError: If any static, call-time or nested trait is missing
            TraitCycleError: If trait inclusion loops
        """
        definition = self.registry.factory(factory)
        dynamic = tuple(canonical_trait_name(ref) for ref in traits)
        key: PlanKey = (definition.name, dynamic)

        generation = self.registry.generation
        cached = self._cached(self._plans, key, generation)
        if cached is not None:
            logger.debug("Plan cache hit for %s with traits %s", definition.name, dynamic)
            return cached

        layers = self._static_layers(definition, generation)
        layers += tuple(self._expand_all(dynamic, definition, LayerKind.DYNAMIC_TRAIT))
        plan = assemble_plan(definition.name, definition.build_class, dynamic, layers)

        logger.debug(
            "Compiled plan for %s with traits %s: %d layers, %d attributes",
            definition.name,
            dynamic,
            len(plan.layers),
            len(plan.attributes),
        )
        return self._store(self._plans, key, plan, generation)

    def invalidate(self) -> None:
        """Drop every cached plan."""
        with self._lock:
            self._plans.clear()
            self._static.clear()

    def _static_layers(self, definition: FactoryDefinition, generation: int) -> tuple[Layer, ...]:
        cached = self._cached(self._static, definition.name, generation)
        if cached is not None:
            return cached

        inherited: tuple[Layer, ...] = ()
        if definition.parent is not None:
            inherited = self._static_layers(definition.parent, generation)

        own = self._expand_all(definition.applied_traits, definition, LayerKind.TRAIT)
        own.append(layer_from_definition(definition, LayerKind.FACTORY))
        return self._store(self._static, definition.name, inherited + tuple(own), generation)

    def _expand_all(
        self,
        refs: Iterable[str],
        scope: FactoryDefinition,
        kind: LayerKind,
    ) -> list[Layer]:
        layers: list[Layer] = []
        for ref in refs:
            self._expand(ref, scope, kind, (), layers)
        return layers

    def _expand(
        self,
        ref: str,
        scope: FactoryDefinition,
        kind: LayerKind,
        trail: tuple[TraitDefinition, ...],
        out: list[Layer],
    ) -> None:
        """Append the layers of one trait, nested traits first."""
        try:
            trait = self.registry.resolve_trait(scope, ref)
        except TraitNotFoundError as exc:
            if not trail:
                raise
            raise make_trait_not_found(
                exc.name, factory=scope.name, referenced_by=trail[-1].name
            ) from None

        if any(seen is trait for seen in trail):
            path = [seen.name for seen in trail] + [trait.name]
            raise TraitCycleError(path, ErrorContext(factory=scope.name))

        for nested in trait.applied_traits:
            self._expand(nested, scope, kind, trail + (trait,), out)
        out.append(layer_from_definition(trait, kind, scope=scope.name))

    def _cached(self, table: dict[Any, Any], key: Any, generation: int) -> Any:
        if not self.cache_enabled:
            return None
        with self._lock:
            if self._generation != generation:
                self._plans.clear()
                self._static.clear()
                self._generation = generation
            return table.get(key)

    def _store(self, table: dict[Any, Any], key: Any, value: Any, generation: int) -> Any:
        if not self.cache_enabled:
            return value
        with self._lock:
            if self._generation != generation:
                return value
            return table.setdefault(key, value)


def layer_from_definition(
    definition: TraitDefinition,
    kind: LayerKind,
    scope: str | None = None,
) -> Layer:
    """Snapshot a definition's declarations as one layer."""
    return Layer(
        kind=kind,
        name=definition.name,
        scope=scope,
        attributes=definition.attributes.declarations(),
        constructor=definition.constructor,
        persistor=definition.persistor,
        callbacks=definition.all_callbacks(),
    )


def assemble_plan(
    factory: str,
    model: type | None,
    traits: tuple[str, ...],
    layers: tuple[Layer, ...],
) -> CompiledPlan:
    """
    Flatten a layer stack into a plan.

    Attributes merge layer over layer; the last layer declaring a
    constructor or persistor supplies it; callbacks are concatenated in
    layer order, keeping only the first occurrence of each Callback.
    """
    attributes = AttributeSet()
    constructor = None
    persistor = None
    callbacks: list[Callback] = []
    seen: set[int] = set()

    for layer in layers:
        attributes = AttributeSet(layer.attributes).merge_over(attributes)
        if layer.constructor is not None:
            constructor = layer.constructor
        if layer.persistor is not None:
            persistor = layer.persistor
        for callback in layer.callbacks:
            if id(callback) in seen:
                continue
            seen.add(id(callback))
            callbacks.append(callback)

    return CompiledPlan(
        factory=factory,
        model=model,
        traits=traits,
        layers=layers,
        attributes=attributes.declarations(),
        constructor=constructor,
        persistor=persistor,
        callbacks=tuple(callbacks),
    )


def _override_value(value: Any) -> AttributeValue:
    if isinstance(value, (Fixed, Computed, Association)):
        return value
    return Fixed(value, shared=True)


def apply_overrides(
    plan: CompiledPlan,
    overrides: Mapping[Any, Any] | None = None,
    *,
    constructor: Callable[..., Any] | None = None,
    persistor: Callable[..., Any] | None = None,
) -> CompiledPlan:
    """
    Layer inline overrides on top of a plan, returning a new plan.

    An override whose value is None blanks the attribute; it is not the
    same as leaving the attribute out. Names no layer declares are added.
    Literal override values are marked shared: the caller's objects reach
    the instance unchanged. An inline constructor or persistor replaces the
    plan's outright.
    """
    if not overrides and constructor is None and persistor is None:
        return plan

    declarations = tuple(
        AttributeDeclaration(
            name=canonical_attribute_name(name),
            value=_override_value(value),
            origin="overrides",
        )
        for name, value in (overrides or {}).items()
    )
    layer = Layer(
        kind=LayerKind.OVERRIDE,
        name="overrides",
        scope=plan.factory,
        attributes=declarations,
        constructor=constructor,
        persistor=persistor,
    )
    attributes = AttributeSet(declarations).merge_over(plan.attributes)

    return plan.model_copy(
        update={
            "layers": plan.layers + (layer,),
            "attributes": attributes.declarations(),
            "constructor": constructor if constructor is not None else plan.constructor,
            "persistor": persistor if persistor is not None else plan.persistor,
        }
    )
