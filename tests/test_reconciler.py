"""Tests for pi.render.reconciler -- matching elements to live instances."""

from __future__ import annotations

import pytest

from pi.render.components import Box, Fragment, Text
from pi.render.element import Props, component
from pi.render.errors import DuplicateKeyError
from pi.render.hooks import RenderContext, SystemContext
from pi.render.reconciler import create_instance, destroy_instance, flush_destroy_list, render_instance


class ItemProps(Props):
    label: str = ""


cleanups: list[str] = []


@component(props=ItemProps)
def Item(hooks, props):
    label = props.label
    hooks.use_effect(lambda: (lambda: cleanups.append(label)), ())
    return Text(content=label)


@component(props=ItemProps)
def Parent(hooks, props):
    label = props.label
    hooks.use_effect(lambda: (lambda: cleanups.append(label)), ())
    return hooks.children


@component(props=ItemProps)
def OtherItem(hooks, props):
    return Text(content=props.label)


class LiveTree:
    def __init__(self) -> None:
        self.ctx = RenderContext()
        self.root = None

    def render(self, *children):
        element = Fragment(*children)
        if self.root is None:
            self.root = create_instance(element, self.ctx)
        render_instance(self.root, element, self.ctx, (SystemContext(),))
        self.destroyed = flush_destroy_list(self.ctx)
        for cell in list(self.ctx.effects):
            cell.run()
        self.ctx.effects.clear()
        return list(self.root.children)


@pytest.fixture(autouse=True)
def _reset_cleanups():
    cleanups.clear()
    yield
    cleanups.clear()


class TestKeyedMatching:
    """Keyed siblings keep their instance wherever they move."""

    def test_reorder_preserves_instances(self) -> None:
        tree = LiveTree()
        a, b, c = tree.render(*(Item(key=k, label=k) for k in "abc"))
        reordered = tree.render(*(Item(key=k, label=k) for k in "cab"))
        assert reordered == [c, a, b]
        assert tree.destroyed == 0
        assert cleanups == []

    def test_removed_key_is_destroyed(self) -> None:
        tree = LiveTree()
        a, b, c = tree.render(*(Item(key=k, label=k) for k in "abc"))
        remaining = tree.render(Item(key="a", label="a"), Item(key="c", label="c"))
        assert remaining == [a, c]
        assert b.destroyed
        assert cleanups == ["b"]

    def test_duplicate_keys_raise(self) -> None:
        tree = LiveTree()
        with pytest.raises(DuplicateKeyError):
            tree.render(Item(key="x"), Item(key="x"))

    def test_same_key_in_different_parents_is_fine(self) -> None:
        tree = LiveTree()
        tree.render(Box(Text(key="k")), Box(Text(key="k")))


class TestUnkeyedMatching:
    def test_matched_by_position(self) -> None:
        tree = LiveTree()
        first = tree.render(Item(label="one"), Item(label="two"))
        second = tree.render(Item(label="uno"), Item(label="dos"))
        assert first == second
        assert second[0].props.label == "uno"

    def test_trailing_removal(self) -> None:
        tree = LiveTree()
        one, two = tree.render(Item(label="one"), Item(label="two"))
        assert tree.render(Item(label="one")) == [one]
        assert two.destroyed

    def test_keyed_and_unkeyed_siblings_match_separately(self) -> None:
        tree = LiveTree()
        keyed, plain = tree.render(Item(key="k", label="k"), Item(label="p"))
        swapped = tree.render(Item(label="p"), Item(key="k", label="k"))
        assert swapped == [plain, keyed]


class TestKindChange:
    """A different kind at the same position is a fresh instance."""

    def test_kind_change_recreates(self) -> None:
        tree = LiveTree()
        (old,) = tree.render(Item(label="x"))
        (new,) = tree.render(OtherItem(label="x"))
        assert new is not old
        assert old.destroyed
        assert cleanups == ["x"]

    def test_kind_change_under_same_key_recreates(self) -> None:
        tree = LiveTree()
        (old,) = tree.render(Item(key="k", label="x"))
        (new,) = tree.render(OtherItem(key="k", label="x"))
        assert new is not old
        assert old.destroyed


class TestDestroy:
    def test_subtree_destroyed_children_first_exactly_once(self) -> None:
        tree = LiveTree()
        tree.render(Parent(Item(label="child"), label="parent"))
        destroy_instance(tree.root)
        destroy_instance(tree.root)
        assert cleanups == ["child", "parent"]

    def test_destroyed_instance_has_no_children(self) -> None:
        tree = LiveTree()
        (item,) = tree.render(Item(label="x"))
        destroy_instance(tree.root)
        assert item.destroyed
        assert item.children == []
