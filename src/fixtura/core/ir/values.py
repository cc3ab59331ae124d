"""
Attribute value types for fixtura IR.

An attribute's computation is a tagged union evaluated through one
interface by the evaluator:

    Fixed(value)            literal value, deep-copied per evaluation
    Computed(fn)            fn(context) evaluated lazily per evaluation
    Association(factory)    instance of another factory, built on demand

Plain Python values are coerced to ``Fixed`` at declaration time, so a
callable is only ever invoked when explicitly wrapped in ``Computed``.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..names import canonical_attribute_name, canonical_factory_name, canonical_trait_name
from .enums import Strategy


def positional_arity(fn: Callable[..., Any]) -> int:
    """
    Count the positional parameters a callable accepts.

    Callables taking ``*args`` report a large arity. Callables whose
    signature cannot be inspected (some builtins) are assumed to take one.
    """
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return 1

    count = 0
    for param in signature.parameters.values():
        if param.kind == inspect.Parameter.VAR_POSITIONAL:
            return 1 << 16
        if param.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            count += 1
    return count


class Fixed(BaseModel):
    """
    A literal attribute value.

    Declared literals are deep-copied for each evaluation, so mutating one
    built instance never changes what the next build receives. Values
    passed in at call time are marked ``shared`` and handed over as is.
    """

    kind: Literal["fixed"] = "fixed"
    value: Any = None
    shared: bool = False

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    def __init__(self, value: Any = None, **data: Any) -> None:
        super().__init__(value=value, **data)


class Computed(BaseModel):
    """
    A deferred attribute computation.

    ``fn`` receives the evaluation context, which reads sibling attributes
    by name (``ctx.name`` or ``ctx["name"]``). Zero-argument callables are
    called without it.

    Examples:
        Computed(lambda ctx: f"{ctx.name}@example.com")
        Computed(lambda: date.today())
    """

    kind: Literal["computed"] = "computed"
    fn: Callable[..., Any]

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    def __init__(self, fn: Callable[..., Any], **data: Any) -> None:
        super().__init__(fn=fn, **data)

    def evaluate(self, context: Any) -> Any:
        if positional_arity(self.fn) == 0:
            return self.fn()
        return self.fn(context)


class Association(BaseModel):
    """
    An instance of another factory, used as an attribute value.

    Attributes:
        factory: Factory to build; None means "the attribute's own name"
        traits: Traits applied to the associated factory
        overrides: Overrides passed to the associated factory
        strategy: Fixed strategy; None follows the parent's strategy
    """

    kind: Literal["association"] = "association"
    factory: str | None = None
    traits: tuple[str, ...] = ()
    overrides: dict[str, Any] = Field(default_factory=dict)
    strategy: Strategy | None = None

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    def __init__(
        self,
        factory: Any = None,
        /,
        *traits: Any,
        strategy: Strategy | str | None = None,
        **overrides: Any,
    ) -> None:
        super().__init__(
            factory=None if factory is None else canonical_factory_name(factory),
            traits=traits,
            overrides=overrides,
            strategy=strategy,
        )

    @field_validator("traits", mode="before")
    @classmethod
    def canonicalize_traits(cls, v: Any) -> tuple[str, ...]:
        return tuple(canonical_trait_name(ref) for ref in v)

    @field_validator("overrides", mode="before")
    @classmethod
    def canonicalize_overrides(cls, v: Any) -> dict[str, Any]:
        return {canonical_attribute_name(key): value for key, value in dict(v).items()}


AttributeValue = Fixed | Computed | Association


def as_attribute_value(value: Any) -> AttributeValue:
    """Coerce a declared value into the attribute value union."""
    if isinstance(value, (Fixed, Computed, Association)):
        return value
    return Fixed(value)


class AttributeDeclaration(BaseModel):
    """
    One named attribute computation.

    Attributes:
        name: Attribute name (identity within an attribute set)
        value: How the attribute is computed
        origin: Label of the declaring layer, e.g. "trait:female"
    """

    name: str
    value: AttributeValue = Field(discriminator="kind")
    origin: str = ""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)
