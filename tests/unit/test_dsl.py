"""Tests for the declaration builders."""

import pytest

from fixtura.core.dsl import FactoryBuilder, TraitBuilder, define_factory, define_trait
from fixtura.core.errors import DuplicateDefinitionError, FactoryNotFoundError
from fixtura.core.ir import Association, Computed, Fixed, LifecycleEvent, Strategy
from fixtura.core.registry import get_registry


class Model:
    pass


class TestDefineFactory:
    def test_registers_immediately(self, registry):
        builder = define_factory("user", Model, registry=registry)

        assert isinstance(builder, FactoryBuilder)
        assert registry.factory("user") is builder.definition
        assert builder.definition.model is Model

    def test_defaults_to_process_registry(self):
        define_factory("user")

        assert "user" in get_registry().factories

    def test_parent_by_name(self, registry):
        define_factory("user", Model, registry=registry)
        child = define_factory("admin", parent="user", registry=registry)

        assert child.definition.parent is registry.factory("user")
        assert child.definition.build_class is Model

    def test_unknown_parent(self, registry):
        with pytest.raises(FactoryNotFoundError):
            define_factory("admin", parent="user", registry=registry)

    def test_duplicate_name(self, registry):
        define_factory("user", registry=registry)

        with pytest.raises(DuplicateDefinitionError):
            define_factory("user", registry=registry)

    def test_static_traits_keep_order(self, registry):
        builder = define_factory("user", traits=["b", "a"], registry=registry)
        builder.apply("c")

        assert builder.definition.applied_traits == ["b", "a", "c"]

    def test_child_factory_and_lineage(self, registry):
        with define_factory("post", registry=registry) as post:
            with post.factory("draft") as draft:
                leaf = draft.factory("old_draft")

        assert [d.name for d in leaf.definition.lineage()] == ["post", "draft", "old_draft"]


class TestSet:
    def test_literal_and_computed(self, registry):
        builder = define_factory("user", registry=registry)
        builder.set("name", "John").set("email", computed=lambda ctx: ctx.name)

        attributes = builder.definition.attributes
        assert attributes.get("name").value == Fixed("John")
        assert isinstance(attributes.get("email").value, Computed)
        assert attributes.get("email").origin == "factory:user"

    def test_none_is_a_value(self, registry):
        builder = define_factory("user", registry=registry)
        builder.set("nickname", None)

        assert builder.definition.attributes.get("nickname").value == Fixed(None)

    @pytest.mark.parametrize("kwargs", [{}, {"value": 1, "computed": lambda: 2}])
    def test_exactly_one_value_source(self, registry, kwargs):
        builder = define_factory("user", registry=registry)

        with pytest.raises(ValueError):
            builder.set("name", **kwargs)

    def test_association(self, registry):
        builder = define_factory("post", registry=registry)
        builder.association("author", "user", "admin", strategy="build", name="Ann")

        value = builder.definition.attributes.get("author").value
        assert value == Association("user", "admin", strategy=Strategy.BUILD, name="Ann")

    def test_association_overrides_may_share_parameter_names(self, registry):
        builder = define_factory("post", registry=registry)
        builder.association("owner", "user", name="Ann", factory="acme")

        value = builder.definition.attributes.get("owner").value
        assert value.factory == "user"
        assert value.overrides == {"name": "Ann", "factory": "acme"}


class TestTraits:
    def test_local_trait(self, registry):
        with define_factory("user", registry=registry) as user:
            admin = user.trait("admin")
            admin.set("admin", True)

        assert isinstance(admin, TraitBuilder)
        assert registry.resolve_trait("user", "admin") is admin.definition
        assert admin.definition.attributes.get("admin").origin == "trait:admin"

    def test_global_trait(self, registry):
        trait = define_trait("email", registry=registry)

        assert registry.traits["email"] is trait.definition


class TestHooks:
    def test_hooks_work_as_decorators(self, registry):
        user = define_factory("user", registry=registry)

        @user.initialize_with
        def construct(attrs):
            return Model()

        @user.to_create
        def persist(instance):
            pass

        @user.after_build
        def built(instance):
            pass

        definition = user.definition
        assert definition.constructor is construct
        assert definition.persistor is persist
        assert [cb.fn for cb in definition.callbacks[LifecycleEvent.AFTER_BUILD]] == [built]
        assert built.__name__ == "built"

    def test_callback_by_event_name(self, registry):
        user = define_factory("user", registry=registry)
        user.callback("after_stub", print)

        assert LifecycleEvent.AFTER_STUB in user.definition.callbacks

    def test_unknown_event(self, registry):
        with pytest.raises(ValueError):
            define_factory("user", registry=registry).callback("after_party", print)

    def test_all_callbacks_grouped_by_event(self, registry):
        user = define_factory("user", registry=registry)
        user.after_create(print)
        user.after_build(len)

        events = [cb.event for cb in user.definition.all_callbacks()]
        assert events == [LifecycleEvent.AFTER_BUILD, LifecycleEvent.AFTER_CREATE]
