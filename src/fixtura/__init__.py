"""
fixtura - trait-based test data factories.

Declare factories and traits once, then build instances under one of four
strategies:

    from fixtura import define_factory, build, create

    with define_factory("user", User) as user:
        user.set("name", "John")
        with user.trait("admin") as admin:
            admin.set("admin", True)

    build("user", "admin", name="Ann")
"""

from __future__ import annotations

# Re-export commonly used types for convenience
from ._version import get_version
from .core import ir
from .core.config import FixturaConfig, load_config
from .core.dsl import define_factory, define_trait
from .core.errors import (
    ConfigError,
    CycleDetectedError,
    DuplicateDefinitionError,
    FactoryNotFoundError,
    FixturaError,
    PersistenceError,
    StubbedPersistenceError,
    TraitCycleError,
    TraitNotFoundError,
    UndefinedAttributeError,
)
from .core.ir import Association, Computed, Fixed, LifecycleEvent, Strategy
from .core.registry import Registry, get_registry
from .core.runner import (
    FactoryRunner,
    attributes_for,
    attributes_for_list,
    build,
    build_list,
    build_stubbed,
    build_stubbed_list,
    configure,
    create,
    create_list,
    reset,
    run,
)

__version__ = get_version()

__all__ = [
    "__version__",
    "ir",
    # Declarations
    "define_factory",
    "define_trait",
    "Association",
    "Computed",
    "Fixed",
    "LifecycleEvent",
    "Strategy",
    # Strategies
    "attributes_for",
    "build",
    "create",
    "build_stubbed",
    "attributes_for_list",
    "build_list",
    "create_list",
    "build_stubbed_list",
    "run",
    "reset",
    "configure",
    "FactoryRunner",
    "Registry",
    "get_registry",
    "FixturaConfig",
    "load_config",
    # Errors
    "FixturaError",
    "TraitNotFoundError",
    "FactoryNotFoundError",
    "DuplicateDefinitionError",
    "TraitCycleError",
    "CycleDetectedError",
    "UndefinedAttributeError",
    "PersistenceError",
    "StubbedPersistenceError",
    "ConfigError",
]
