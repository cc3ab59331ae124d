"""
Shared enum types for fixtura IR.
"""

from __future__ import annotations

from enum import StrEnum


class Strategy(StrEnum):
    """
    How an evaluation materializes its result.

    ATTRIBUTES_FOR: resolve attributes to a plain dict, nothing else
    BUILD: construct the instance and run after_build callbacks
    CREATE: build, persist, and run the create callbacks
    BUILD_STUBBED: construct a non-persisted stand-in with a synthetic id
    """

    ATTRIBUTES_FOR = "attributes_for"
    BUILD = "build"
    CREATE = "create"
    BUILD_STUBBED = "build_stubbed"


class LifecycleEvent(StrEnum):
    """Points in a strategy run where callbacks fire."""

    AFTER_BUILD = "after_build"
    BEFORE_CREATE = "before_create"
    AFTER_CREATE = "after_create"
    AFTER_STUB = "after_stub"


class LayerKind(StrEnum):
    """Source of one layer in a compiled precedence stack."""

    FACTORY = "factory"
    TRAIT = "trait"
    DYNAMIC_TRAIT = "dynamic_trait"
    OVERRIDE = "override"


# Callbacks fired by each strategy, in firing order. Persistence happens
# between BEFORE_CREATE and AFTER_CREATE.
STRATEGY_EVENTS: dict[Strategy, tuple[LifecycleEvent, ...]] = {
    Strategy.ATTRIBUTES_FOR: (),
    Strategy.BUILD: (LifecycleEvent.AFTER_BUILD,),
    Strategy.CREATE: (
        LifecycleEvent.AFTER_BUILD,
        LifecycleEvent.BEFORE_CREATE,
        LifecycleEvent.AFTER_CREATE,
    ),
    Strategy.BUILD_STUBBED: (LifecycleEvent.AFTER_STUB,),
}
