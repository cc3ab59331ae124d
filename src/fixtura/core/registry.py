"""
Factory and trait registry for fixtura.

Holds every registered factory plus the global and per-factory trait
tables, and resolves names across them.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from .definitions import FactoryDefinition, TraitDefinition
from .errors import DuplicateDefinitionError, FactoryNotFoundError, make_trait_not_found
from .names import canonical_factory_name, canonical_trait_name
from .resolver import Resolver

logger = logging.getLogger(__name__)

GLOBAL_SCOPE = None

Scope = FactoryDefinition | str | None


class Registry:
    """
    Symbol table for factories and traits.

    Traits live either in the global table or in the local table of one
    factory. Lookup from a factory walks that factory's lineage, nearest
    ancestor first, before falling back to the global table.

    Every mutation bumps ``generation``; the resolver drops plans that were
    compiled against an older generation.
    """

    def __init__(self) -> None:
        self.factories: dict[str, FactoryDefinition] = {}
        self.traits: dict[str, TraitDefinition] = {}
        self.generation = 0
        self._lock = threading.Lock()
        self.resolver = Resolver(self)

    def touch(self) -> None:
        """Record that definitions changed."""
        with self._lock:
            self.generation += 1

    def register_factory(self, definition: FactoryDefinition) -> FactoryDefinition:
        """Add a factory, checking for duplicates."""
        if definition.name in self.factories:
            raise DuplicateDefinitionError(f"Duplicate factory '{definition.name}'")
        self.factories[definition.name] = definition
        self.touch()
        return definition

    def register_trait(self, scope: Scope, name: Any, definition: TraitDefinition) -> TraitDefinition:
        """
        Add a trait to the global table or to one factory's local table.

        Args:
            scope: GLOBAL_SCOPE / "global", a factory, or a factory name
            name: Trait name (str or string-valued enum member)
            definition: The trait

        Raises:
            DuplicateDefinitionError: If the name is taken in that table
        """
        name = canonical_trait_name(name)
        factory = self._scope_factory(scope)
        table = self.traits if factory is None else factory.traits

        if name in table:
            where = "global scope" if factory is None else f"factory '{factory.name}'"
            raise DuplicateDefinitionError(f"Duplicate trait '{name}' in {where}")

        table[name] = definition
        self.touch()
        return definition

    def resolve_trait(self, scope: Scope, ref: Any) -> TraitDefinition:
        """
        Find a trait by name from the given scope.

        Args:
            scope: Factory whose lineage is searched first, or GLOBAL_SCOPE
            ref: Trait name (str or string-valued enum member)

        Returns:
            The trait definition

        Raises:
            TraitNotFoundError: If no table in scope has the name
        """
        name = canonical_trait_name(ref)
        factory = self._scope_factory(scope)

        node = factory
        while node is not None:
            if name in node.traits:
                return node.traits[name]
            node = node.parent

        if name in self.traits:
            return self.traits[name]

        raise make_trait_not_found(name, factory=factory.name if factory else None)

    def factory(self, ref: Any) -> FactoryDefinition:
        """Find a factory by name."""
        name = canonical_factory_name(ref)
        if name not in self.factories:
            raise FactoryNotFoundError(name)
        return self.factories[name]

    def reset(self) -> None:
        """Forget every definition."""
        self.factories.clear()
        self.traits.clear()
        self.touch()
        logger.info("Registry reset")

    def _scope_factory(self, scope: Scope) -> FactoryDefinition | None:
        if scope is GLOBAL_SCOPE or scope == "global":
            return None
        if isinstance(scope, FactoryDefinition):
            return scope
        return self.factory(scope)


# Process-wide registry instance
_registry: Registry | None = None


def get_registry() -> Registry:
    """
    Get the process registry.

    Returns:
        Registry singleton
    """
    global _registry
    if _registry is None:
        _registry = Registry()
    return _registry


def reset_registry() -> None:
    """Clear the process registry in place, for test isolation."""
    get_registry().reset()
