"""Tests for AttributeSet declaration and layering."""

from fixtura.core.attributes import AttributeSet
from fixtura.core.ir import Computed, Fixed


def _values(attributes: AttributeSet) -> dict:
    return {d.name: d.value.value for d in attributes if isinstance(d.value, Fixed)}


class TestDeclare:
    def test_plain_values_become_fixed(self):
        attributes = AttributeSet()
        declaration = attributes.declare("name", "John", origin="factory:post")

        assert declaration.value == Fixed("John")
        assert declaration.origin == "factory:post"

    def test_callables_are_kept_as_values(self):
        """Only Computed defers; a bare function is a literal."""
        attributes = AttributeSet()
        attributes.declare("factory_fn", len)

        assert attributes.get("factory_fn").value.value is len

    def test_redeclaring_replaces_in_place(self):
        attributes = AttributeSet()
        attributes.declare("a", 1)
        attributes.declare("b", 2)
        attributes.declare("a", 3)

        assert attributes.names() == ["a", "b"]
        assert _values(attributes) == {"a": 3, "b": 2}

    def test_container_protocol(self):
        attributes = AttributeSet()
        attributes.declare("a", Computed(lambda: 1))

        assert "a" in attributes
        assert "b" not in attributes
        assert len(attributes) == 1
        assert attributes.get("b") is None


class TestMergeOver:
    """Later layers win; positions follow the lower layer."""

    def test_later_layer_wins_and_keeps_position(self):
        lower = AttributeSet()
        lower.declare("name", "John")
        lower.declare("status", "pending")
        upper = AttributeSet()
        upper.declare("status", "accepted")
        upper.declare("admin", True)

        merged = upper.merge_over(lower)

        assert merged.names() == ["name", "status", "admin"]
        assert _values(merged) == {"name": "John", "status": "accepted", "admin": True}

    def test_inputs_are_not_modified(self):
        lower = AttributeSet()
        lower.declare("name", "John")
        upper = AttributeSet()
        upper.declare("name", "Jane")

        upper.merge_over(lower)

        assert _values(lower) == {"name": "John"}
        assert _values(upper) == {"name": "Jane"}

    def test_merge_over_plain_declarations(self):
        lower = AttributeSet()
        lower.declare("a", 1)
        upper = AttributeSet()
        upper.declare("b", 2)

        merged = upper.merge_over(lower.declarations())

        assert merged.names() == ["a", "b"]
