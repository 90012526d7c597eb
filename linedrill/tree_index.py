from dataclasses import dataclass, field
from typing import Optional

from linedrill.move_tree import MoveNode, TreeBuildReport, build_move_tree
from linedrill.pgn_lines import (
    count_plies_to_first_branch,
    move_text_to_mainlines,
    occurrence_key,
    position_key,
)
from linedrill.util import START_FEN
from linedrill.validator import MoveValidator


@dataclass(frozen=True)
class LeafPlan:
    leaf_hash: str
    san_path: tuple[str, ...]
    node_hash_path: tuple[str, ...]

    def __len__(self):
        return len(self.san_path)


@dataclass
class TreeIndex:
    """
    Everything the quiz session needs to know about the tree, computed in
    one pass and read-only afterwards.

    position_move_leaf_index:
        (ply, "e4 e5 ...") ➤ {"Nf3": [leaf_hash, ...], "Bc4": [...]}
    occurrence_node_hash_by_key:
        (ply, "e4 e5 ...", "Nf3") ➤ node hash
    """

    leaf_plans_by_hash: dict[str, LeafPlan] = field(default_factory=dict)
    leaf_hashes_in_order: list[str] = field(default_factory=list)
    position_move_leaf_index: dict[tuple[int, str], dict[str, list[str]]] = field(
        default_factory=dict
    )
    occurrence_node_hash_by_key: dict[tuple[int, str, str], str] = field(
        default_factory=dict
    )

    @property
    def leaf_count(self):
        return len(self.leaf_hashes_in_order)

    def leaf_plans(self) -> list[LeafPlan]:
        return [self.leaf_plans_by_hash[h] for h in self.leaf_hashes_in_order]

    def moves_at(self, ply: int, prior_moves) -> dict[str, list[str]]:
        return self.position_move_leaf_index.get(position_key(ply, prior_moves), {})

    def is_branch(self, ply: int, prior_moves) -> bool:
        return len(self.moves_at(ply, prior_moves)) > 1

    def node_hash_for_occurrence(self, ply, prior_moves, san) -> Optional[str]:
        key = occurrence_key(ply, prior_moves, san)
        return self.occurrence_node_hash_by_key.get(key)


def build_tree_index(root: MoveNode) -> TreeIndex:
    index = TreeIndex()

    # explicit stack of (node, path from the root) keeps deep trees off the
    # call stack; children pushed in reverse so leaves come out left to right
    stack = [(child, (child,)) for child in reversed(root.children)]
    while stack:
        node, path = stack.pop()
        if node.children:
            stack.extend((child, path + (child,)) for child in reversed(node.children))
            continue

        leaf_hash = node.hash
        if leaf_hash in index.leaf_plans_by_hash:
            continue

        sans = tuple(n.move for n in path)
        node_hashes = tuple(n.hash for n in path)
        index.leaf_plans_by_hash[leaf_hash] = LeafPlan(leaf_hash, sans, node_hashes)
        index.leaf_hashes_in_order.append(leaf_hash)

        for ply, (san, node_hash) in enumerate(zip(sans, node_hashes)):
            prior = sans[:ply]
            moves = index.position_move_leaf_index.setdefault(
                position_key(ply, prior), {}
            )
            leaf_hashes = moves.setdefault(san, [])
            if leaf_hash not in leaf_hashes:
                leaf_hashes.append(leaf_hash)

            index.occurrence_node_hash_by_key.setdefault(
                occurrence_key(ply, prior, san), node_hash
            )

    return index


def index_move_text(
    move_text: str, report: Optional[TreeBuildReport] = None
) -> TreeIndex:
    mainlines = move_text_to_mainlines(move_text)
    return build_tree_index(build_move_tree(mainlines, report=report))


def fen_before_first_branch(move_text: str) -> str:
    """Position reached by skipping to the first branch along the first line."""
    mainlines = move_text_to_mainlines(move_text)
    if not mainlines:
        return START_FEN

    validator = MoveValidator()
    for san in mainlines[0].split()[: count_plies_to_first_branch(move_text)]:
        if validator.play_san(san) is None:
            break
    return validator.fen()
