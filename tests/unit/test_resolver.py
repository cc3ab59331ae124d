"""
Tests for trait resolution and plan compilation.

Tests cover:
- Layer order across inheritance levels, static traits and call-time traits
- Depth-first expansion of nested traits and scope of nested lookups
- Cycle and missing-trait failures
- Constructor, persistor and callback selection
- Plan caching and invalidation
- Inline overrides
"""

from enum import StrEnum

import pytest

from fixtura.core.dsl import define_factory, define_trait
from fixtura.core.errors import TraitCycleError, TraitNotFoundError
from fixtura.core.ir import Computed, Fixed, LayerKind
from fixtura.core.resolver import apply_overrides


class Traits(StrEnum):
    ADMIN = "admin"


def _fixed(plan) -> dict:
    return {d.name: d.value.value for d in plan.attributes if isinstance(d.value, Fixed)}


@pytest.fixture
def post_factories(registry):
    """post > declined_post / extended_declined_post, with local status traits."""
    with define_factory("post", registry=registry) as post:
        post.set("name", "John")
        post.set("status", "pending")
        post.trait("accepted").set("status", "accepted")
        post.trait("declined").set("status", "declined")
        post.trait("admin").set("admin", True)

        post.factory("declined_post", traits=["declined"])
        with post.factory("extended_declined_post", traits=["declined"]) as extended:
            extended.set("status", "extended_declined")
    return registry


class TestLayerOrder:
    def test_plain_factory_has_one_layer(self, post_factories):
        plan = post_factories.resolver.compile("post")

        assert [layer.label for layer in plan.layers] == ["factory:post"]
        assert _fixed(plan) == {"name": "John", "status": "pending"}

    def test_static_trait_beats_parent(self, post_factories):
        plan = post_factories.resolver.compile("declined_post")

        assert [layer.label for layer in plan.layers] == [
            "factory:post",
            "trait:declined@declined_post",
            "factory:declined_post",
        ]
        assert _fixed(plan)["status"] == "declined"

    def test_own_declarations_beat_own_static_traits(self, post_factories):
        plan = post_factories.resolver.compile("extended_declined_post")

        assert _fixed(plan)["status"] == "extended_declined"
        assert plan.declaration("status").origin == "factory:extended_declined_post"

    def test_dynamic_trait_beats_everything_static(self, post_factories):
        plan = post_factories.resolver.compile("extended_declined_post", ["accepted"])

        assert plan.layers[-1].kind == LayerKind.DYNAMIC_TRAIT
        assert _fixed(plan)["status"] == "accepted"

    def test_dynamic_traits_apply_in_call_order(self, registry):
        with define_factory("user", registry=registry) as user:
            user.trait("male").set("name", "Joe")
            user.trait("female").set("name", "Jane")

        assert _fixed(registry.resolver.compile("user", ["male", "female"]))["name"] == "Jane"
        assert _fixed(registry.resolver.compile("user", ["female", "male"]))["name"] == "Joe"

    def test_attribute_order_follows_first_declaration(self, post_factories):
        plan = post_factories.resolver.compile("post", ["admin", "accepted"])

        assert plan.attribute_names() == ["name", "status", "admin"]

    def test_grandchild_sees_grandparent_traits(self, post_factories):
        with define_factory("child", parent="declined_post", registry=post_factories) as child:
            child.apply("admin")

        plan = post_factories.resolver.compile("child")

        assert _fixed(plan)["admin"] is True
        assert _fixed(plan)["status"] == "declined"


class TestNestedTraits:
    def test_nested_traits_expand_before_the_trait(self, registry):
        with define_factory("post", registry=registry) as post:
            with post.trait("female") as female:
                female.set("gender", "female")
                female.set("name", "Jane")
            post.trait("admin").set("role", "admin")
            with post.trait("female_admin") as female_admin:
                female_admin.apply("female", "admin")
                female_admin.set("name", "Jane Admin")

        plan = registry.resolver.compile("post", ["female_admin"])

        assert [layer.name for layer in plan.layers] == ["post", "female", "admin", "female_admin"]
        assert _fixed(plan) == {"gender": "female", "name": "Jane Admin", "role": "admin"}

    def test_nested_lookup_uses_the_factory_scope(self, registry):
        """A global trait may apply a trait local to the factory using it."""
        define_trait("bundle", registry=registry).apply("local_only")
        with define_factory("post", registry=registry) as post:
            post.trait("local_only").set("flag", True)

        assert _fixed(registry.resolver.compile("post", ["bundle"])) == {"flag": True}

    def test_missing_nested_trait_names_the_referrer(self, registry):
        define_factory("post", registry=registry).trait("outer").apply("ghost")

        with pytest.raises(TraitNotFoundError) as exc_info:
            registry.resolver.compile("post", ["outer"])

        assert exc_info.value.name == "ghost"
        assert str(exc_info.value) == 'Trait not registered: "ghost"'
        assert exc_info.value.context.trait == "outer"
        assert "in factory 'post' > trait 'outer'" in exc_info.value.__notes__

    def test_missing_static_trait(self, registry):
        define_factory("post", traits=["ghost"], registry=registry)

        with pytest.raises(TraitNotFoundError, match='Trait not registered: "ghost"'):
            registry.resolver.compile("post")

    def test_missing_dynamic_trait(self, post_factories):
        with pytest.raises(TraitNotFoundError):
            post_factories.resolver.compile("post", ["ghost"])

    def test_non_name_dynamic_trait(self, post_factories):
        with pytest.raises(KeyError):
            post_factories.resolver.compile("post", [object()])

    def test_cycle_is_reported_with_its_path(self, registry):
        with define_factory("post", registry=registry) as post:
            post.trait("a").apply("b")
            post.trait("b").apply("a")

        with pytest.raises(TraitCycleError, match="a -> b -> a"):
            registry.resolver.compile("post", ["a"])

    def test_self_inclusion_is_a_cycle(self, registry):
        define_factory("post", registry=registry).trait("loop").apply("loop")

        with pytest.raises(TraitCycleError):
            registry.resolver.compile("post", ["loop"])

    def test_diamond_is_not_a_cycle(self, registry):
        with define_factory("post", registry=registry) as post:
            post.trait("base").set("base", True)
            post.trait("left").apply("base")
            post.trait("right").apply("base")
            post.trait("both").apply("left", "right")

        assert _fixed(registry.resolver.compile("post", ["both"])) == {"base": True}


class TestHooks:
    def test_last_constructor_and_persistor_win(self, registry):
        def trait_ctor(attrs):
            return None

        def own_ctor(attrs):
            return None

        def save_somewhere(instance):
            return None

        with define_factory("post", registry=registry) as post:
            with post.trait("custom") as custom:
                custom.initialize_with(trait_ctor)
                custom.to_create(save_somewhere)
            with post.factory("sub", traits=["custom"]) as sub:
                sub.initialize_with(own_ctor)

        plan = registry.resolver.compile("sub")
        assert plan.constructor is own_ctor
        assert plan.persistor is save_somewhere

        plan = registry.resolver.compile("sub", ["custom"])
        assert plan.constructor is trait_ctor

    def test_callbacks_accumulate_in_layer_order(self, registry):
        def first(instance):
            pass

        def second(instance):
            pass

        with define_factory("post", registry=registry) as post:
            post.after_build(first)
            post.trait("loud").after_build(second)

        plan = registry.resolver.compile("post", ["loud"])

        assert [cb.fn for cb in plan.callbacks] == [first, second]
        assert [cb.owner for cb in plan.callbacks] == ["factory:post", "trait:loud"]

    def test_callback_reached_twice_is_kept_once(self, registry):
        def bump(instance):
            pass

        with define_factory("post", registry=registry) as post:
            post.trait("with_callback").after_build(bump)
            post.trait("wrapper").apply("with_callback")
            post.factory("child", traits=["with_callback"])

        plan = registry.resolver.compile("child", ["wrapper", "with_callback"])

        assert [cb.fn for cb in plan.callbacks] == [bump]

    def test_same_function_from_two_definitions_runs_twice(self, registry):
        def bump(instance):
            pass

        with define_factory("post", registry=registry) as post:
            post.after_build(bump)
            post.trait("again").after_build(bump)

        plan = registry.resolver.compile("post", ["again"])

        assert [cb.fn for cb in plan.callbacks] == [bump, bump]


class TestCaching:
    def test_same_key_returns_cached_plan(self, post_factories):
        resolver = post_factories.resolver

        assert resolver.compile("post", ["admin"]) is resolver.compile("post", [Traits.ADMIN])

    def test_dynamic_compile_does_not_touch_base_plan(self, post_factories):
        resolver = post_factories.resolver
        base = resolver.compile("post")

        resolver.compile("post", ["admin"])

        assert resolver.compile("post") is base
        assert "admin" not in base.attribute_names()

    def test_registry_change_invalidates(self, post_factories):
        resolver = post_factories.resolver
        before = resolver.compile("post")

        post_factories.factory("post").declare("name", "Bill")
        post_factories.touch()

        after = resolver.compile("post")
        assert after is not before
        assert _fixed(after)["name"] == "Bill"

    def test_builder_changes_invalidate(self, registry):
        with define_factory("post", registry=registry) as post:
            post.set("name", "John")
        before = registry.resolver.compile("post")

        post.set("name", "Bill")

        assert _fixed(registry.resolver.compile("post"))["name"] == "Bill"
        assert _fixed(before)["name"] == "John"

    def test_cache_can_be_disabled(self, post_factories):
        resolver = post_factories.resolver
        resolver.cache_enabled = False

        first = resolver.compile("post")
        assert resolver.compile("post") is not first
        assert resolver.compile("post") == first

    def test_invalidate(self, post_factories):
        resolver = post_factories.resolver
        first = resolver.compile("post")

        resolver.invalidate()

        assert resolver.compile("post") is not first


class TestApplyOverrides:
    def test_nothing_to_apply_returns_same_plan(self, post_factories):
        plan = post_factories.resolver.compile("post")

        assert apply_overrides(plan) is plan
        assert apply_overrides(plan, {}) is plan

    def test_overrides_win_and_new_names_are_added(self, post_factories):
        plan = post_factories.resolver.compile("extended_declined_post", ["accepted"])

        overridden = apply_overrides(plan, {"status": "completely overridden", "age": 30})

        assert _fixed(overridden) == {
            "name": "John",
            "status": "completely overridden",
            "age": 30,
        }
        assert overridden.layers[-1].kind == LayerKind.OVERRIDE
        assert _fixed(plan)["status"] == "accepted"

    def test_none_override_blanks_the_attribute(self, post_factories):
        plan = post_factories.resolver.compile("post")

        overridden = apply_overrides(plan, {"name": None})

        assert "name" in overridden.attribute_names()
        assert _fixed(overridden)["name"] is None

    def test_computed_override(self, post_factories):
        plan = post_factories.resolver.compile("post")
        fn = Computed(lambda ctx: ctx.name.upper())

        overridden = apply_overrides(plan, {"name": fn})

        assert overridden.declaration("name").value.fn is fn.fn

    def test_inline_hooks_replace_the_plan_hooks(self, post_factories):
        plan = post_factories.resolver.compile("post")

        def persist(instance):
            pass

        overridden = apply_overrides(plan, persistor=persist)

        assert overridden.persistor is persist
        assert overridden.constructor is None
        assert plan.persistor is None
