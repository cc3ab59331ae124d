"""
Ordered, overridable collections of attribute declarations.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any

from .ir import AttributeDeclaration, as_attribute_value
from .names import canonical_attribute_name


class AttributeSet:
    """
    Named attribute declarations in declaration order.

    Declaring a name that is already present replaces the earlier
    declaration where it stands. Merging sets is how layers stack: see
    ``merge_over``.
    """

    def __init__(self, declarations: Iterable[AttributeDeclaration] = ()):
        self._declarations: dict[str, AttributeDeclaration] = {}
        for declaration in declarations:
            self._declarations[declaration.name] = declaration

    def declare(self, name: Any, value: Any, origin: str = "") -> AttributeDeclaration:
        """
        Declare an attribute, replacing any declaration of the same name.

        Args:
            name: Attribute name (str or string-valued enum member)
            value: Literal value or an attribute value (Computed, Association, ...)
            origin: Label of the declaring definition

        Returns:
            The stored declaration
        """
        declaration = AttributeDeclaration(
            name=canonical_attribute_name(name),
            value=as_attribute_value(value),
            origin=origin,
        )
        self._declarations[declaration.name] = declaration
        return declaration

    def merge_over(self, other: AttributeSet | Iterable[AttributeDeclaration]) -> AttributeSet:
        """
        Layer this set on top of ``other``.

        The result holds ``other``'s declarations followed by this set's.
        A name present in both keeps this set's declaration, at the
        position it held in ``other``; neither input is modified.
        """
        merged = AttributeSet(other)
        for declaration in self._declarations.values():
            merged._declarations[declaration.name] = declaration
        return merged

    def get(self, name: str) -> AttributeDeclaration | None:
        return self._declarations.get(name)

    def names(self) -> list[str]:
        return list(self._declarations)

    def declarations(self) -> tuple[AttributeDeclaration, ...]:
        return tuple(self._declarations.values())

    def __iter__(self) -> Iterator[AttributeDeclaration]:
        return iter(list(self._declarations.values()))

    def __len__(self) -> int:
        return len(self._declarations)

    def __contains__(self, name: object) -> bool:
        return name in self._declarations

    def __repr__(self) -> str:
        return f"AttributeSet({self.names()!r})"
