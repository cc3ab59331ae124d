"""
Compiled evaluation plan types for fixtura IR.

A plan is the flattened, precedence-resolved result of compiling one
factory with one tuple of call-time traits. Plans are immutable and shared
across evaluations; overrides produce a new plan rather than mutating one.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict

from .enums import LayerKind, LifecycleEvent
from .values import AttributeDeclaration, positional_arity


class Callback(BaseModel):
    """
    A lifecycle callback together with the definition that declared it.

    One Callback object is created per declaration, so object identity is
    the identity of the (function, owning definition) pair. The resolver
    deduplicates on it.
    """

    event: LifecycleEvent
    fn: Callable[..., Any]
    owner: str

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    def invoke(self, instance: Any, context: Any) -> None:
        if positional_arity(self.fn) >= 2:
            self.fn(instance, context)
        else:
            self.fn(instance)


class Layer(BaseModel):
    """
    One source of declarations in a precedence stack.

    Attributes:
        kind: Factory level, static trait, dynamic trait, or overrides
        name: Name of the factory or trait this layer came from
        scope: Factory in whose scope a trait was resolved
        attributes: Declarations contributed by this layer
        constructor: Constructor declared by this layer, if any
        persistor: Persistor declared by this layer, if any
        callbacks: Callbacks declared by this layer
    """

    kind: LayerKind
    name: str
    scope: str | None = None
    attributes: tuple[AttributeDeclaration, ...] = ()
    constructor: Callable[..., Any] | None = None
    persistor: Callable[..., Any] | None = None
    callbacks: tuple[Callback, ...] = ()

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @property
    def label(self) -> str:
        if self.kind in (LayerKind.TRAIT, LayerKind.DYNAMIC_TRAIT) and self.scope:
            return f"{self.kind.value}:{self.name}@{self.scope}"
        return f"{self.kind.value}:{self.name}"


class CompiledPlan(BaseModel):
    """
    Fully resolved evaluation plan for one factory and trait tuple.

    Attributes:
        factory: Factory name
        model: Build class, or None for a plain namespace
        traits: Call-time traits this plan was compiled with
        layers: Precedence stack, lowest first
        attributes: Flattened attribute declarations, in evaluation order
        constructor: Effective constructor (None means default construction)
        persistor: Effective persistor (None means instance.save())
        callbacks: Accumulated, deduplicated callbacks in layer order
    """

    factory: str
    model: Any = None
    traits: tuple[str, ...] = ()
    layers: tuple[Layer, ...] = ()
    attributes: tuple[AttributeDeclaration, ...] = ()
    constructor: Callable[..., Any] | None = None
    persistor: Callable[..., Any] | None = None
    callbacks: tuple[Callback, ...] = ()

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    def attribute_names(self) -> list[str]:
        return [declaration.name for declaration in self.attributes]

    def declaration(self, name: str) -> AttributeDeclaration | None:
        for declaration in self.attributes:
            if declaration.name == name:
                return declaration
        return None

    def callbacks_for(self, event: LifecycleEvent) -> list[Callback]:
        return [callback for callback in self.callbacks if callback.event == event]
