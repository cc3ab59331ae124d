"""Core fixtura functionality: registry, trait resolution, plan evaluation, strategies."""

from . import ir
from .attributes import AttributeSet
from .config import FixturaConfig, load_config
from .definitions import FactoryDefinition, TraitDefinition
from .dsl import FactoryBuilder, TraitBuilder, define_factory, define_trait
from .errors import (
    ConfigError,
    CycleDetectedError,
    DuplicateDefinitionError,
    ErrorContext,
    FactoryNotFoundError,
    FixturaError,
    NotFoundError,
    PersistenceError,
    StubbedPersistenceError,
    TraitCycleError,
    TraitNotFoundError,
    UndefinedAttributeError,
)
from .evaluator import AttributeSnapshot, Evaluation, EvaluationContext, Evaluator
from .names import canonical_name
from .registry import GLOBAL_SCOPE, Registry, get_registry, reset_registry
from .resolver import Resolver, apply_overrides, assemble_plan
from .runner import FactoryRunner, configure, get_runner

__all__ = [
    "ir",
    # Registry
    "GLOBAL_SCOPE",
    "Registry",
    "get_registry",
    "reset_registry",
    "FactoryDefinition",
    "TraitDefinition",
    "AttributeSet",
    "canonical_name",
    # Resolution and evaluation
    "Resolver",
    "apply_overrides",
    "assemble_plan",
    "Evaluator",
    "Evaluation",
    "EvaluationContext",
    "AttributeSnapshot",
    "FactoryRunner",
    "get_runner",
    "configure",
    # Declarations
    "define_factory",
    "define_trait",
    "FactoryBuilder",
    "TraitBuilder",
    # Config
    "FixturaConfig",
    "load_config",
    # Errors
    "FixturaError",
    "NotFoundError",
    "TraitNotFoundError",
    "FactoryNotFoundError",
    "DuplicateDefinitionError",
    "TraitCycleError",
    "CycleDetectedError",
    "UndefinedAttributeError",
    "PersistenceError",
    "StubbedPersistenceError",
    "ConfigError",
    "ErrorContext",
]
