import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from linedrill.util import START_FEN
from linedrill.validator import MoveValidator

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class MoveNode:
    move: str  # SAN, "" at the root
    move_num: int
    is_white: bool
    fen: str  # position after the move
    children: list["MoveNode"] = field(default_factory=list)
    parent: Optional["MoveNode"] = field(default=None, repr=False)
    num_leaf_children: int = 0

    def __repr__(self):
        dots = "." if self.is_white else "..."
        return f"<MoveNode {self.move_num}{dots}{self.move} ({len(self.children)})>"

    @property
    def is_root(self):
        return self.parent is None

    @property
    def is_leaf(self):
        return not self.children

    @property
    def hash(self) -> str:
        return hash_move_node(self)

    def child(self, san: str) -> Optional["MoveNode"]:
        for child in self.children:
            if child.move == san:
                return child
        return None


def hash_move_node(node: MoveNode) -> str:
    """Stable across rebuilds, so persisted progress can be matched up again."""
    is_white = "true" if node.is_white else "false"
    return f"{node.fen}-{node.move_num}-{node.move}-{is_white}"


def make_root() -> MoveNode:
    return MoveNode(move="", move_num=0, is_white=False, fen=START_FEN)


@dataclass
class SkippedMove:
    line_index: int
    ply: int
    san: str
    mainline: str

    def __str__(self):
        line_number = self.line_index + 1
        return f"line {line_number}, ply {self.ply}: {self.san} ({self.mainline})"


@dataclass
class TreeBuildReport:
    skipped: list[SkippedMove] = field(default_factory=list)

    @property
    def is_clean(self):
        return not self.skipped


def build_move_tree(
    mainlines: list[str],
    report: Optional[TreeBuildReport] = None,
    validator_factory: Callable[[], MoveValidator] = MoveValidator,
) -> MoveNode:
    """
    Replays each mainline from the start position and merges shared
    prefixes into a single tree.

    A move the validator rejects ends that mainline where it stands; the
    moves before it stay in the tree.
    """
    root = make_root()

    for line_index, line in enumerate(mainlines):
        moves = line.split()
        if not moves:
            continue

        validator = validator_factory()
        node = root
        move_num = 1
        is_white = True

        for ply, token in enumerate(moves):
            san = validator.play_san(token)
            if san is None:
                skipped = SkippedMove(line_index, ply, token, line)
                logger.warning("Unplayable move, truncating %s", skipped)
                if report is not None:
                    report.skipped.append(skipped)
                break

            child = node.child(san)
            if child is None:
                child = MoveNode(
                    move=san,
                    move_num=move_num,
                    is_white=is_white,
                    fen=validator.fen(),
                    parent=node,
                )
                node.children.append(child)
            node = child

            if not is_white:
                move_num += 1
            is_white = not is_white

    count_leaves(root)
    return root


def count_leaves(root: MoveNode):
    """Fills in num_leaf_children: terminal nodes at or below each node."""
    stack = [(root, False)]
    while stack:
        node, children_done = stack.pop()
        if children_done:
            if node.is_leaf:
                node.num_leaf_children = 0 if node.is_root else 1
            else:
                node.num_leaf_children = sum(c.num_leaf_children for c in node.children)
            continue
        stack.append((node, True))
        stack.extend((child, False) for child in node.children)


def iter_nodes(root: MoveNode):
    """Depth-first, left to right, root excluded."""
    stack = list(reversed(root.children))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))
