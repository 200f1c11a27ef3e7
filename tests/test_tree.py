import pytest

from phylorun.tree import BasicTree, ScoredTopologyMap, TreeBranch, TreeTopology


@pytest.mark.parametrize("tips", [3, 4, 5, 10, 100])
def test_basic_tree_invariants(tips):
    tree = BasicTree(tips)
    assert not tree.empty()
    assert tree.num_nodes() == tips + tree.num_inner()
    # an unrooted tree has one branch fewer than nodes
    assert tree.num_branches() == tree.num_nodes() - 1
    assert tree.num_subnodes() == 2 * tree.num_branches()
    # non-trivial splits are the inner branches
    assert tree.num_splits() == tree.num_inner() - 1
    assert tree.binary() is True


def test_empty_tree():
    tree = BasicTree(0)
    assert tree.empty()
    assert tree.num_branches() == 0
    assert tree.num_subnodes() == 0
    assert tree.num_splits() == 0


def test_negative_tips_rejected():
    with pytest.raises(ValueError):
        BasicTree(-1)


def test_topology_iterates_edges():
    edges = [TreeBranch(0, 1, 0.5), TreeBranch(1, 2, 0.25)]
    topol = TreeTopology(vroot_node_id=1, edges=edges)
    assert list(topol) == edges
    assert len(topol) == 2
    assert topol.brlens == []


def test_tree_branch_defaults():
    branch = TreeBranch()
    assert (branch.left_node_id, branch.right_node_id, branch.length) == (0, 0, 0.0)


def test_scored_map_best():
    smap = ScoredTopologyMap()
    t1, t2, t3 = TreeTopology(1), TreeTopology(2), TreeTopology(3)
    smap.insert(5, -100.0, t1)
    smap.insert(2, -50.0, t2)
    smap.insert(7, -75.0, t3)
    assert len(smap) == 3
    assert smap.best()[0] == 2
    assert smap.best_score() == -50.0
    assert smap.best_topology() is t2
    assert [i for i, _ in smap] == [2, 5, 7]


def test_scored_map_tie_lowest_index():
    smap = ScoredTopologyMap()
    a, b = TreeTopology(1), TreeTopology(2)
    smap.insert(9, -10.0, a)
    smap.insert(3, -10.0, b)
    assert smap.best()[0] == 3
    assert smap.best_topology() is b


def test_scored_map_at_and_replace():
    smap = ScoredTopologyMap()
    t = TreeTopology(4)
    smap.insert(1, -1.0, TreeTopology(0))
    smap.insert(1, -2.0, t)
    assert smap.at(1) == (-2.0, t)
    assert 1 in smap
    assert 2 not in smap
    with pytest.raises(KeyError):
        smap.at(2)


def test_scored_map_clear_and_empty_best():
    smap = ScoredTopologyMap()
    smap.insert(0, -3.0, TreeTopology())
    smap.clear()
    assert len(smap) == 0
    with pytest.raises(ValueError):
        smap.best()
    with pytest.raises(ValueError):
        smap.best_score()