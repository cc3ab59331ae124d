"""
Identifier canonicalization.

Factory, trait and attribute names arrive as plain strings or as
string-valued enum members (the closest Python has to a symbol). Every
name is reduced to one canonical ``str`` at the registry boundary so that
``"admin"`` and ``Traits.ADMIN`` (value ``"admin"``) denote the same thing.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from .errors import FactoryNotFoundError, NotFoundError, TraitNotFoundError


def canonical_name(ref: Any) -> str | None:
    """
    Reduce a name reference to its canonical string form.

    Args:
        ref: A ``str`` or an ``Enum`` member whose value is a ``str``

    Returns:
        The canonical name, or None if ``ref`` is not a name at all
    """
    if isinstance(ref, Enum):
        ref = ref.value
    if isinstance(ref, str):
        return str(ref)
    return None


def canonical_trait_name(ref: Any) -> str:
    """Canonicalize a trait reference, failing the way an unknown trait fails."""
    name = canonical_name(ref)
    if name is None:
        raise TraitNotFoundError(repr(ref))
    return name


def canonical_factory_name(ref: Any) -> str:
    """Canonicalize a factory reference."""
    name = canonical_name(ref)
    if name is None:
        raise FactoryNotFoundError(repr(ref))
    return name


def canonical_attribute_name(ref: Any) -> str:
    """Canonicalize an attribute name: an override key or a sibling read."""
    name = canonical_name(ref)
    if name is None:
        raise NotFoundError(repr(ref), f"Attribute name must be a string, got {ref!r}")
    return name
