import re
from typing import NamedTuple

RESULT_TOKENS = {"1-0", "0-1", "1/2-1/2", "*"}

# fmt: off
_COMMENT_RE = re.compile(r"\{[^}]*\}")           # {block comments}
_LINE_COMMENT_RE = re.compile(r";[^\n\r]*")      # ; rest of line
_NAG_RE = re.compile(r"\$\d+")                   # $1, $14, ...
_MOVE_NUMBER_RE = re.compile(r"\d+\.(\.\.)?")    # 1. 1... 23.
_TRAILING_GLYPHS_RE = re.compile(r"[!?]+$")      # e4!? Nxd5??
_CHECK_MARKS_RE = re.compile(r"[+#]+$")
# fmt: on


class MoveOccurrence(NamedTuple):
    """One move token as it appears in the movetext."""

    token_index: int
    ply: int
    prior_moves: tuple[str, ...]
    san: str

    @property
    def key(self):
        return occurrence_key(self.ply, self.prior_moves, self.san)


def position_key(ply: int, prior_moves) -> tuple[int, str]:
    return ply, " ".join(prior_moves)


def occurrence_key(ply: int, prior_moves, san: str) -> tuple[int, str, str]:
    """
    Identifies one specific occurrence of a move within the movetext.

    Check and mate marks are dropped so that text written as "Bb5" matches
    "Bb5+" as reported by the board.
    """
    prior = " ".join(_CHECK_MARKS_RE.sub("", move) for move in prior_moves)
    return ply, prior, _CHECK_MARKS_RE.sub("", san)


def normalize_move_text(move_text: str) -> str:
    text = _COMMENT_RE.sub(" ", move_text)
    text = _LINE_COMMENT_RE.sub(" ", text)
    text = _NAG_RE.sub(" ", text)
    text = _MOVE_NUMBER_RE.sub(" ", text)
    text = text.replace("(", " ( ").replace(")", " ) ")
    return re.sub(r"\s+", " ", text).strip()


def tokenize_move_text(move_text: str) -> list[str]:
    """
    Returns move tokens plus "(" and ")" markers, e.g.

    1. e4 e5 (1... c5 $1 {Sicilian}) 2. Nf3!  ➤  e4 e5 ( c5 ) Nf3
    """
    normalized = normalize_move_text(move_text or "")
    if not normalized:
        return []

    tokens = []
    for token in normalized.split(" "):
        token = _TRAILING_GLYPHS_RE.sub("", token)
        if token and token not in RESULT_TOKENS:
            tokens.append(token)
    return tokens


def _parse_lines(tokens, start, seed, depth):
    index = start
    line = list(seed)
    branch_lines = []

    while index < len(tokens):
        token = tokens[index]
        if token == "(":
            # a variation replaces the most recent move, it doesn't follow it
            index, lines = _parse_lines(tokens, index + 1, line[:-1], depth + 1)
            branch_lines.extend(lines)
        elif token == ")":
            if depth > 0:
                break
            # stray closing paren with no open branch; nothing to close
        else:
            line.append(token)
        index += 1

    # a line is finished at its closing paren, the outermost one at the end
    own_line = [" ".join(line)] if len(line) > len(seed) or depth == 0 else []
    return index, branch_lines + own_line


def parse_mainlines(tokens: list[str]) -> list[str]:
    """
    Resolves nested variations into distinct linear move sequences.

    Lines come out in the order they finish: a variation at its closing
    paren, so ahead of the line enclosing it. Duplicates are dropped keeping
    the first appearance.
    """
    if not tokens:
        return []

    _, lines = _parse_lines(tokens, 0, [], 0)
    return list(dict.fromkeys(line.strip() for line in lines if line.strip()))


def move_text_to_mainlines(move_text: str) -> list[str]:
    return parse_mainlines(tokenize_move_text(move_text))


def count_plies_to_first_branch(move_text: str) -> int:
    """
    Number of opening plies that can be played through before the learner
    has a decision to make: one short of the first branching ply.

    1. e4 e5 2. Nf3 Nc6 3. Bb5 a6 4. Ba4 b5 (4... Nf6)
                                            ^ branching ply 7, so 6
    """
    ply_count = 0
    for token in tokenize_move_text(move_text):
        if token == "(":
            break
        if token == ")":
            continue
        ply_count += 1

    branching_ply = ply_count - 1
    return max(0, branching_ply - 1)


def _walk_occurrences(tokens, start, seed, depth, occurrences):
    index = start
    line = list(seed)

    while index < len(tokens):
        token = tokens[index]
        if token == "(":
            index = _walk_occurrences(
                tokens, index + 1, line[:-1], depth + 1, occurrences
            )
        elif token == ")":
            if depth > 0:
                return index
        else:
            occurrences.append(MoveOccurrence(index, len(line), tuple(line), token))
            line.append(token)
        index += 1

    return index


def iter_move_occurrences(move_text: str):
    """
    Yields a MoveOccurrence for every move token, following the same branch
    semantics as parse_mainlines. token_index refers to the token list
    returned by tokenize_move_text.
    """
    occurrences: list[MoveOccurrence] = []
    _walk_occurrences(tokenize_move_text(move_text), 0, [], 0, occurrences)
    yield from occurrences
