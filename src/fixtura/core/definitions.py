"""
Registered factory and trait definitions.

Definitions are the mutable output of the declaration front end. They are
created once at registration time and read by the resolver; the resolver
never writes to them.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .attributes import AttributeSet
from .ir import Callback, LifecycleEvent
from .names import canonical_trait_name


@dataclass(eq=False)
class TraitDefinition:
    """
    A named, reusable bundle of attributes and hooks.

    Traits are mixins: they may apply other traits, which the resolver
    expands in place rather than inheriting.

    Attributes:
        name: Canonical trait name
        attributes: Attributes this trait declares
        applied_traits: Traits this definition applies, in declaration order
        constructor: Constructor override, if declared
        persistor: Persistor override, if declared
        callbacks: Lifecycle callbacks keyed by event, in declaration order
    """

    name: str
    attributes: AttributeSet = field(default_factory=AttributeSet)
    applied_traits: list[str] = field(default_factory=list)
    constructor: Callable[..., Any] | None = None
    persistor: Callable[..., Any] | None = None
    callbacks: dict[LifecycleEvent, list[Callback]] = field(default_factory=dict)

    kind = "trait"

    @property
    def label(self) -> str:
        return f"{self.kind}:{self.name}"

    def declare(self, name: Any, value: Any) -> None:
        self.attributes.declare(name, value, origin=self.label)

    def apply_trait(self, ref: Any) -> None:
        self.applied_traits.append(canonical_trait_name(ref))

    def add_callback(self, event: LifecycleEvent | str, fn: Callable[..., Any]) -> Callback:
        event = LifecycleEvent(event)
        callback = Callback(event=event, fn=fn, owner=self.label)
        self.callbacks.setdefault(event, []).append(callback)
        return callback

    def all_callbacks(self) -> tuple[Callback, ...]:
        """Callbacks of every event, grouped in LifecycleEvent order."""
        return tuple(
            callback for event in LifecycleEvent for callback in self.callbacks.get(event, [])
        )


@dataclass(eq=False)
class FactoryDefinition(TraitDefinition):
    """
    A named template producing instances of one model.

    Attributes:
        parent: Factory this one inherits from
        model: Build class; inherited from the parent when None
        traits: Factory-local trait table
    """

    parent: FactoryDefinition | None = None
    model: type | None = None
    traits: dict[str, TraitDefinition] = field(default_factory=dict)

    kind = "factory"

    def lineage(self) -> list[FactoryDefinition]:
        """Inheritance chain from the oldest ancestor down to this factory."""
        chain: list[FactoryDefinition] = []
        node: FactoryDefinition | None = self
        while node is not None:
            chain.append(node)
            node = node.parent
        chain.reverse()
        return chain

    @property
    def build_class(self) -> type | None:
        node: FactoryDefinition | None = self
        while node is not None:
            if node.model is not None:
                return node.model
            node = node.parent
        return None
