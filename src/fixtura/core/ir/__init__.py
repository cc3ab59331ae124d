"""
fixtura Intermediate Representation (IR) types.

Immutable pydantic models shared by the resolver and the evaluator.
All types are re-exported from this package.
"""

# Enums
from .enums import (
    STRATEGY_EVENTS,
    LayerKind,
    LifecycleEvent,
    Strategy,
)

# Compiled plans
from .plan import (
    Callback,
    CompiledPlan,
    Layer,
)

# Attribute values
from .values import (
    Association,
    AttributeDeclaration,
    AttributeValue,
    Computed,
    Fixed,
    as_attribute_value,
    positional_arity,
)

__all__ = [
    # Enums
    "STRATEGY_EVENTS",
    "LayerKind",
    "LifecycleEvent",
    "Strategy",
    # Plans
    "Callback",
    "CompiledPlan",
    "Layer",
    # Values
    "Association",
    "AttributeDeclaration",
    "AttributeValue",
    "Computed",
    "Fixed",
    "as_attribute_value",
    "positional_arity",
]
