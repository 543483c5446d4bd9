import importlib
import random

import pytest

from priority_forest import (
    EmptyHeapError,
    Entry,
    ForestStructureError,
    PriorityForest,
    TreeNode,
    check_forest,
    is_valid_forest,
)


def _extract_all(forest):
    return [forest.extract_min() for _ in range(forest.size())]


def test_extraction_order_for_mixed_priorities():
    forest = PriorityForest.from_entries((p, f"p{p}") for p in [5, 3, 8, 1, 9, 2])

    assert forest.peek_min() == Entry(1, "p1")
    assert forest.size() == 6

    first = forest.extract_min()
    assert first.priority == 1
    assert forest.size() == 5

    rest = [entry.priority for entry in _extract_all(forest)]
    assert rest == [2, 3, 5, 8, 9]
    assert forest.is_empty()


def test_single_entry_lifecycle():
    forest = PriorityForest()
    forest.insert(10, "X")

    assert not forest.is_empty()
    assert forest.peek_min() == (10, "X")
    assert forest.extract_min() == (10, "X")
    assert forest.is_empty()
    assert forest.size() == 0
    with pytest.raises(EmptyHeapError):
        forest.extract_min()


def test_empty_forest_raises_on_peek_and_extract():
    forest = PriorityForest()

    assert forest.is_empty()
    assert len(forest) == 0
    assert not forest
    with pytest.raises(EmptyHeapError):
        forest.peek_min()
    with pytest.raises(IndexError):
        forest.extract_min()


def test_seven_inserts_leave_one_root_per_set_bit():
    forest = PriorityForest.from_entries((p, p) for p in range(7, 0, -1))

    assert forest.root_degrees() == [0, 1, 2]
    assert [2 ** root.degree for root in forest.roots()] == [1, 2, 4]
    assert forest.count_nodes() == 7


@pytest.mark.parametrize("count", [0, 1, 2, 5, 16, 31, 100])
def test_root_degrees_follow_binary_count(count):
    forest = PriorityForest.from_entries((p, None) for p in range(count))

    expected = [bit for bit in range(count.bit_length()) if count >> bit & 1]
    assert forest.root_degrees() == expected
    assert forest.size() == count
    assert forest.count_nodes() == count
    assert forest.is_empty() == (forest.size() == 0)


def test_extract_min_promotes_children_in_ascending_degree():
    forest = PriorityForest.from_entries((p, p) for p in range(8))
    assert forest.root_degrees() == [3]

    assert forest.extract_min().priority == 0

    assert forest.root_degrees() == [0, 1, 2]
    assert all(root.parent is None for root in forest.roots())
    check_forest(forest)


def test_random_sequences_keep_invariants_and_minimum():
    rng = random.Random(1234)
    forest = PriorityForest(check_invariants=True)
    shadow = []

    for _ in range(600):
        if shadow and rng.random() < 0.4:
            entry = forest.extract_min()
            smallest = min(shadow)
            assert entry.priority == smallest
            shadow.remove(smallest)
        else:
            priority = rng.randint(-50, 50)
            forest.insert(priority, len(shadow))
            shadow.append(priority)
        assert forest.size() == len(shadow)
        if shadow:
            assert forest.peek_min().priority == min(shadow)

    assert [entry.priority for entry in forest.drain()] == sorted(shadow)


def test_equal_priorities_are_all_returned():
    forest = PriorityForest()
    forest.insert(2, "a")
    forest.insert(2, "b")
    forest.insert(1, "c")
    forest.insert(2, "d")

    entries = _extract_all(forest)

    assert [entry.priority for entry in entries] == [1, 2, 2, 2]
    assert {entry.payload for entry in entries[1:]} == {"a", "b", "d"}


def test_equal_priority_keeps_first_inserted_as_parent():
    forest = PriorityForest()
    forest.insert(5, "first")
    forest.insert(5, "second")

    roots = forest.roots()
    assert len(roots) == 1
    assert roots[0].payload == "first"
    assert roots[0].child.payload == "second"


def test_merge_root_lists_interleaves_by_degree_keeping_duplicates():
    a0 = TreeNode(Entry(0, "a0"), degree=0)
    a1 = TreeNode(Entry(1, "a1"), degree=1)
    b0 = TreeNode(Entry(0, "b0"), degree=0)
    b2 = TreeNode(Entry(2, "b2"), degree=2)

    merged = PriorityForest._merge_root_lists([a0, a1], [b0, b2])

    assert [(node.payload, node.degree) for node in merged] == [
        ("a0", 0),
        ("b0", 0),
        ("a1", 1),
        ("b2", 2),
    ]
    assert merged[0] is a0


def test_merge_combines_and_empties_other():
    left = PriorityForest.from_entries((p, "left") for p in [7, 3, 11])
    right = PriorityForest.from_entries((p, "right") for p in [4, 1, 9, 2])

    left.merge(right)

    assert right.is_empty()
    assert right.size() == 0
    assert left.size() == 7
    check_forest(left)
    assert [entry.priority for entry in left.drain()] == [1, 2, 3, 4, 7, 9, 11]


def test_merge_with_empty_forests():
    forest = PriorityForest.from_entries([(3, "x")])
    forest.merge(PriorityForest())
    assert forest.size() == 1

    empty = PriorityForest()
    empty.merge(forest)
    assert empty.peek_min() == (3, "x")
    assert forest.is_empty()


def test_merge_with_itself_is_rejected():
    forest = PriorityForest.from_entries([(1, "a")])
    with pytest.raises(ValueError):
        forest.merge(forest)


def test_ordered_snapshot_does_not_consume_forest():
    priorities = [12, 4, 4, 30, 1, 18, 7]
    forest = PriorityForest.from_entries((p, i) for i, p in enumerate(priorities))

    snapshot = [entry.priority for entry in forest.ordered()]

    assert snapshot == sorted(priorities)
    assert forest.size() == len(priorities)
    assert [entry.priority for entry in forest.ordered()] == snapshot
    check_forest(forest)


def test_copy_is_independent():
    forest = PriorityForest.from_entries((p, p) for p in [6, 2, 9, 4, 1])
    clone = forest.copy()

    clone.extract_min()
    clone.insert(0, "new")

    assert forest.size() == 5
    assert forest.peek_min() == (1, 1)
    assert clone.peek_min() == (0, "new")
    check_forest(clone)
    assert {id(node) for node in forest.iter_nodes()}.isdisjoint(id(node) for node in clone.iter_nodes())


def test_clear_visits_every_node_once_and_severs_links():
    forest = PriorityForest.from_entries((p, p) for p in range(5000))
    nodes = list(forest.iter_nodes())
    assert len(nodes) == 5000

    assert forest.clear() == 5000

    assert forest.is_empty()
    assert forest.size() == 0
    assert all(node.parent is None and node.child is None and node.sibling is None for node in nodes)
    assert forest.clear() == 0


def test_context_manager_tears_down_on_exit():
    with PriorityForest() as forest:
        forest.insert(3, "a")
        forest.insert(1, "b")
        assert forest.size() == 2
    assert forest.is_empty()


def test_link_rejects_mismatched_degrees():
    parent = TreeNode(Entry(1, "parent"))
    child = TreeNode(Entry(2, "child"), degree=1)

    with pytest.raises(ForestStructureError):
        PriorityForest._link(child, parent)


def test_check_forest_detects_heap_order_violation():
    forest = PriorityForest.from_entries((p, p) for p in [1, 2, 3, 4])
    root = forest.roots()[0]
    root.child.entry = Entry(-5, "intruder")

    assert not is_valid_forest(forest)
    with pytest.raises(ForestStructureError):
        check_forest(forest)


def test_check_forest_detects_size_mismatch():
    forest = PriorityForest.from_entries((p, p) for p in [1, 2, 3])
    forest._count += 1

    with pytest.raises(ForestStructureError):
        check_forest(forest)


def test_check_forest_detects_missing_child():
    forest = PriorityForest.from_entries((p, p) for p in [1, 2, 3, 4])
    root = forest.roots()[0]
    root.child = root.child.sibling

    with pytest.raises(ForestStructureError):
        check_forest(forest)


def test_checks_enabled_from_environment(monkeypatch):
    forest_module = importlib.import_module("priority_forest.forest")

    monkeypatch.setenv("PRIORITY_FOREST_CHECKS", "true")
    forest_module = importlib.reload(forest_module)
    assert forest_module.PriorityForest()._check is True
    assert forest_module.PriorityForest(check_invariants=False)._check is False

    monkeypatch.delenv("PRIORITY_FOREST_CHECKS")
    forest_module = importlib.reload(forest_module)
    assert forest_module.PriorityForest()._check is False
