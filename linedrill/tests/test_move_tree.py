import logging

from linedrill.move_tree import (
    SkippedMove,
    TreeBuildReport,
    build_move_tree,
    hash_move_node,
    iter_nodes,
)
from linedrill.pgn_lines import move_text_to_mainlines
from linedrill.tests import RUY_LOPEZ, board_after


def test_shared_prefix_is_one_path():
    root = build_move_tree(move_text_to_mainlines(RUY_LOPEZ))

    node = root
    for san in "e4 e5 Nf3 Nc6 Bb5 a6 Ba4".split():
        assert len(node.children) == 1
        node = node.child(san)
    assert [child.move for child in node.children] == ["Nf6", "b5"]
    assert node.fen == board_after("e4 e5 Nf3 Nc6 Bb5 a6 Ba4")


def test_nodes_record_move_number_and_side():
    root = build_move_tree(["e4 e5 Nf3"])
    e4 = root.child("e4")
    e5 = e4.child("e5")
    nf3 = e5.child("Nf3")

    assert (e4.move_num, e4.is_white) == (1, True)
    assert (e5.move_num, e5.is_white) == (1, False)
    assert (nf3.move_num, nf3.is_white) == (2, True)
    assert nf3.parent is e5
    assert nf3.is_leaf
    assert root.is_root


def test_hash_move_node():
    root = build_move_tree(["e4 e5"])
    e4 = root.child("e4")
    e5 = e4.child("e5")

    assert e4.hash == f"{board_after('e4')}-1-e4-true"
    assert hash_move_node(e5) == f"{board_after('e4 e5')}-1-e5-false"


def test_hashes_survive_a_rebuild():
    first = [n.hash for n in iter_nodes(build_move_tree(["e4 e5 Nf3", "d4"]))]
    second = [n.hash for n in iter_nodes(build_move_tree(["d4", "e4 e5 Nf3"]))]
    assert sorted(first) == sorted(second)


def test_moves_are_stored_as_the_board_writes_them():
    root = build_move_tree(["e4 d6 Bb5"])
    assert root.child("e4").child("d6").child("Bb5+") is not None


def test_leaf_counts():
    root = build_move_tree(move_text_to_mainlines(RUY_LOPEZ))
    assert root.num_leaf_children == 2
    assert root.child("e4").num_leaf_children == 2

    ba4 = root
    for san in "e4 e5 Nf3 Nc6 Bb5 a6 Ba4".split():
        ba4 = ba4.child(san)
    assert [c.num_leaf_children for c in ba4.children] == [1, 1]


def test_empty_tree():
    root = build_move_tree([])
    assert root.children == []
    assert root.num_leaf_children == 0
    assert list(iter_nodes(root)) == []


def test_unplayable_move_truncates_the_line(caplog):
    report = TreeBuildReport()
    with caplog.at_level(logging.WARNING, logger="linedrill.move_tree"):
        root = build_move_tree(["e4 e5 Nf3", "d4 Ke7 c4"], report=report)

    d4 = root.child("d4")
    assert d4 is not None
    assert d4.is_leaf
    assert root.num_leaf_children == 2
    assert not report.is_clean
    assert report.skipped == [SkippedMove(1, 1, "Ke7", "d4 Ke7 c4")]
    assert "Ke7" in caplog.text


def test_truncated_line_inside_an_existing_path_adds_nothing():
    root = build_move_tree(["e4 e5 Nf3", "e4 Ke7"])
    assert [n.move for n in iter_nodes(root)] == ["e4", "e5", "Nf3"]
    assert root.num_leaf_children == 1


def test_iter_nodes_is_depth_first():
    root = build_move_tree(["e4 e5", "e4 c5", "d4"])
    assert [n.move for n in iter_nodes(root)] == ["e4", "e5", "c5", "d4"]
