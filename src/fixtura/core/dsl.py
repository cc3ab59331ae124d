"""
Python declaration front end for fixtura.

Builders write definitions straight into a registry. Each builder is also
a context manager so declarations can be grouped in a ``with`` block:

    with define_factory("user", User) as user:
        user.set("name", "John")
        user.set("email", computed=lambda ctx: f"{ctx.name}@example.com")

        with user.trait("admin") as admin:
            admin.set("admin", True)

        @user.after_create
        def welcome(instance):
            instance.welcomed = True

        with user.factory("author", traits=["admin"]) as author:
            author.set("posts", 3)

    with define_trait("female") as female:
        female.set("gender", "Female")
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from .definitions import FactoryDefinition, TraitDefinition
from .ir import Association, Computed, LifecycleEvent, Strategy
from .names import canonical_factory_name, canonical_trait_name
from .registry import GLOBAL_SCOPE, Registry, get_registry

F = TypeVar("F", bound=Callable[..., Any])

_MISSING: Any = object()


class DefinitionBuilder:
    """Declarations shared by factories and traits."""

    def __init__(self, definition: TraitDefinition, registry: Registry):
        self.definition = definition
        self.registry = registry

    @property
    def name(self) -> str:
        return self.definition.name

    def __enter__(self) -> DefinitionBuilder:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        return None

    def set(self, name: Any, value: Any = _MISSING, *, computed: Callable[..., Any] | None = None):
        """
        Declare an attribute.

        Args:
            name: Attribute name
            value: Literal value (callables are stored as values, not called)
            computed: Function of the evaluation context, called lazily

        Raises:
            ValueError: If neither or both of value and computed are given
        """
        if (value is _MISSING) == (computed is None):
            raise ValueError(f"Attribute '{name}' needs exactly one of value or computed")
        self.definition.declare(name, Computed(computed) if computed is not None else value)
        self.registry.touch()
        return self

    def association(
        self,
        name: Any,
        factory: Any = None,
        /,
        *traits: Any,
        strategy: Strategy | str | None = None,
        **overrides: Any,
    ):
        """
        Declare an attribute holding an instance of another factory.

        When ``factory`` is omitted the attribute name is the factory name.
        """
        self.definition.declare(name, Association(factory, *traits, strategy=strategy, **overrides))
        self.registry.touch()
        return self

    def apply(self, *traits: Any):
        """Apply traits to this definition, in order."""
        for ref in traits:
            self.definition.apply_trait(ref)
        self.registry.touch()
        return self

    def initialize_with(self, fn: F) -> F:
        """Set the constructor. Usable as a decorator."""
        self.definition.constructor = fn
        self.registry.touch()
        return fn

    def to_create(self, fn: F) -> F:
        """Set the persistor. Usable as a decorator."""
        self.definition.persistor = fn
        self.registry.touch()
        return fn

    def callback(self, event: LifecycleEvent | str, fn: F) -> F:
        self.definition.add_callback(event, fn)
        self.registry.touch()
        return fn

    def after_build(self, fn: F) -> F:
        return self.callback(LifecycleEvent.AFTER_BUILD, fn)

    def before_create(self, fn: F) -> F:
        return self.callback(LifecycleEvent.BEFORE_CREATE, fn)

    def after_create(self, fn: F) -> F:
        return self.callback(LifecycleEvent.AFTER_CREATE, fn)

    def after_stub(self, fn: F) -> F:
        return self.callback(LifecycleEvent.AFTER_STUB, fn)


class TraitBuilder(DefinitionBuilder):
    """Builder for a global or factory-local trait."""

    definition: TraitDefinition

    def __enter__(self) -> TraitBuilder:
        return self


class FactoryBuilder(DefinitionBuilder):
    """Builder for a factory, its local traits and its child factories."""

    definition: FactoryDefinition

    def __enter__(self) -> FactoryBuilder:
        return self

    def trait(self, name: Any) -> TraitBuilder:
        """Declare a trait visible to this factory and its descendants."""
        definition = TraitDefinition(canonical_trait_name(name))
        self.registry.register_trait(self.definition, definition.name, definition)
        return TraitBuilder(definition, self.registry)

    def factory(self, name: Any, model: type | None = None, *, traits: Iterable[Any] = ()):
        """Declare a child factory inheriting from this one."""
        return define_factory(
            name, model, parent=self.definition, traits=traits, registry=self.registry
        )


def define_factory(
    name: Any,
    model: type | None = None,
    *,
    parent: Any = None,
    traits: Iterable[Any] = (),
    registry: Registry | None = None,
) -> FactoryBuilder:
    """
    Register a factory and return its builder.

    Args:
        name: Factory name (str or string-valued enum member)
        model: Class to instantiate; inherited from the parent when omitted
        parent: Parent factory, by name or definition
        traits: Traits applied to every instance of this factory
        registry: Target registry (default: process registry)

    Returns:
        FactoryBuilder for further declarations

    Raises:
        DuplicateDefinitionError: If the name is already registered
        FactoryNotFoundError: If the parent is not registered
    """
    registry = registry if registry is not None else get_registry()
    if parent is not None and not isinstance(parent, FactoryDefinition):
        parent = registry.factory(parent)

    definition = FactoryDefinition(canonical_factory_name(name), parent=parent, model=model)
    for ref in traits:
        definition.apply_trait(ref)

    registry.register_factory(definition)
    return FactoryBuilder(definition, registry)


def define_trait(name: Any, registry: Registry | None = None) -> TraitBuilder:
    """Register a global trait and return its builder."""
    registry = registry if registry is not None else get_registry()
    definition = TraitDefinition(canonical_trait_name(name))
    registry.register_trait(GLOBAL_SCOPE, definition.name, definition)
    return TraitBuilder(definition, registry)
