import gc

import numpy

from railscene.scene import masks
from railscene.scene.node import (
    LOD,
    NAME,
    PARENT,
    Geometry,
    Group,
    MatrixTransform,
    Node,
    NodeKind,
    PagedChild,
    PagedLOD,
    Switch,
    policy_for,
    visible_children,
)


def make_switch():
    sw = Switch("sw")
    a, b, c, d = Node("a"), Node("b"), Node("c"), Node("d")
    sw.add_child(masks.SCENE_OBJECTS, a)
    sw.add_child(masks.TERRAIN, b)
    sw.add_child(masks.SCENE_OBJECTS | masks.TRACKS, c)
    sw.add_child(masks.TERRAIN, d)
    return sw, (a, b, c, d)


class TestMetadata:
    def test_name_stored_in_metadata(self):
        node = Node("box")
        assert node.name == "box"
        assert node.get_value(NAME) == "box"
        node.name = None
        assert not node.has_value(NAME)

    def test_parent_is_weak(self):
        child = Node("child")
        parent = Group("parent")
        parent.add_child(child)
        assert child.parent is parent
        assert child.has_value(PARENT)

        del parent
        gc.collect()
        assert child.parent is None

    def test_repr(self):
        assert repr(Group("g")) == "Group('g')"
        assert repr(Node()) == "Node()"


class TestGroupPolicy:
    def test_all_children_visible(self):
        g = Group()
        children = [Node(str(i)) for i in range(3)]
        for c in children:
            g.add_child(c)
        policy = policy_for(g)
        assert policy.visible_count(g, masks.SCENE_OBJECTS) == 3
        assert policy.child_at(g, 1, masks.TERRAIN) is children[1]
        assert policy.row_of(g, children[2], masks.SCENE_OBJECTS) == 2

    def test_child_at_out_of_range(self):
        g = Group()
        g.add_child(Node())
        policy = policy_for(g)
        assert policy.child_at(g, 1, masks.ALL) is None
        assert policy.child_at(g, -1, masks.ALL) is None

    def test_remove_children_severs_parent(self):
        g = Group()
        children = [Node(str(i)) for i in range(4)]
        for c in children:
            g.add_child(c)

        assert policy_for(g).remove_children(g, 1, 2, masks.SCENE_OBJECTS)
        assert g.children == [children[0], children[3]]
        assert children[1].parent is None
        assert children[2].parent is None
        assert children[0].parent is g

    def test_remove_children_rejects_bad_ranges(self):
        g = Group()
        g.add_child(Node())
        policy = policy_for(g)
        assert not policy.remove_children(g, 0, 0, masks.ALL)
        assert not policy.remove_children(g, 0, 2, masks.ALL)
        assert not policy.remove_children(g, -1, 1, masks.ALL)
        assert len(g.children) == 1

    def test_matrix_transform_is_group(self):
        mt = MatrixTransform(numpy.eye(4) * 2.0)
        assert mt.kind is NodeKind.GROUP
        assert numpy.allclose(mt.local_matrix(), numpy.eye(4) * 2.0)


class TestSwitchPolicy:
    def test_masked_enumeration(self):
        sw, (a, b, c, d) = make_switch()
        assert visible_children(sw, masks.SCENE_OBJECTS) == [a, c]
        assert visible_children(sw, masks.TERRAIN) == [b, d]
        assert visible_children(sw, masks.ALL) == [a, b, c, d]
        assert visible_children(sw, 0) == []

    def test_row_of_uses_masked_offset(self):
        sw, (a, b, c, d) = make_switch()
        policy = policy_for(sw)
        assert policy.row_of(sw, c, masks.SCENE_OBJECTS) == 1
        assert policy.row_of(sw, b, masks.SCENE_OBJECTS) == -1
        assert policy.child_mask(sw, c) == masks.SCENE_OBJECTS | masks.TRACKS

    def test_remove_erases_visible_offset_only(self):
        sw, (a, b, c, d) = make_switch()
        assert policy_for(sw).remove_children(sw, 1, 1, masks.SCENE_OBJECTS)
        assert sw.child_nodes() == [a, b, d]
        assert c.parent is None
        assert b.parent is sw

    def test_insert_before_visible_row(self):
        sw, (a, b, c, d) = make_switch()
        e = Node("e")
        policy_for(sw).insert_child(sw, 1, e, masks.SCENE_OBJECTS, masks.SCENE_OBJECTS)
        assert sw.child_nodes() == [a, b, e, c, d]
        assert visible_children(sw, masks.SCENE_OBJECTS) == [a, e, c]
        assert e.parent is sw

    def test_add_child_appends(self):
        sw, (a, b, c, d) = make_switch()
        e = Node("e")
        policy_for(sw).add_child(sw, e, masks.TERRAIN, masks.SCENE_OBJECTS)
        assert sw.child_nodes()[-1] is e
        assert visible_children(sw, masks.SCENE_OBJECTS) == [a, c]

    def test_detach_hidden_child(self):
        sw, (a, b, c, d) = make_switch()
        assert policy_for(sw).detach_child(sw, b)
        assert b.parent is None
        assert not policy_for(sw).detach_child(sw, b)


class TestLODPolicy:
    def test_all_visible_and_added_ratio_zero(self):
        lod = LOD()
        hi, lo = Node("hi"), Node("lo")
        lod.add_child(hi, 0.5)
        policy_for(lod).add_child(lod, lo, masks.SCENE_OBJECTS, masks.SCENE_OBJECTS)
        assert visible_children(lod, masks.TERRAIN) == [hi, lo]
        assert lod.children[1].minimum_screen_height_ratio == 0.0
        assert lo.parent is lod


class TestPagedLODPolicy:
    def test_always_empty(self):
        paged = PagedLOD()
        paged.children.append(PagedChild(0.1, "tile.json", Node()))
        policy = policy_for(paged)
        assert policy.visible_count(paged, masks.ALL) == 0
        assert not policy.has_children(paged, masks.ALL)
        assert policy.child_at(paged, 0, masks.ALL) is None

    def test_refuses_mutation(self):
        paged = PagedLOD()
        policy = policy_for(paged)
        assert not policy.accepts_children
        assert not policy.insert_child(paged, 0, Node(), masks.ALL, masks.ALL)
        assert not policy.remove_children(paged, 0, 1, masks.ALL)
        assert paged.children == []


def test_leaf_has_no_children():
    geom = Geometry([[0, 0, 0]])
    policy = policy_for(geom)
    assert not policy.accepts_children
    assert policy.visible_count(geom, masks.ALL) == 0


def test_traverse_visits_all_stored_children():
    sw, (a, b, c, d) = make_switch()
    root = Group("root")
    root.add_child(sw)
    assert list(root.traverse()) == [root, sw, a, b, c, d]
