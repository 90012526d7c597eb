from typing import Optional

import chess


class MoveValidator:
    """
    Thin wrapper around a chess.Board that speaks SAN and squares.

    Nothing here raises for bad input: illegal or unparseable moves come
    back as None and leave the position untouched.
    """

    def __init__(self, fen: Optional[str] = None):
        self.board = chess.Board(fen) if fen else chess.Board()
        self._sans: list[str] = []

    def reset(self):
        self.board.reset()
        self._sans.clear()

    def fen(self) -> str:
        return self.board.fen()

    def history(self) -> list[str]:
        return list(self._sans)

    def play_san(self, san: str) -> Optional[str]:
        try:
            move = self.board.parse_san(san)
        except ValueError:
            # chess.IllegalMoveError, InvalidMoveError, AmbiguousMoveError
            return None
        return self._push(move)

    def play_squares(
        self, source: str, target: str, promotion: Optional[str] = None
    ) -> Optional[str]:
        try:
            from_square = chess.parse_square(source)
            to_square = chess.parse_square(target)
            promotion_type = (
                chess.Piece.from_symbol(promotion).piece_type if promotion else None
            )
        except ValueError:
            return None

        if promotion_type is None and self._reaches_last_rank(from_square, to_square):
            promotion_type = chess.QUEEN

        move = chess.Move(from_square, to_square, promotion=promotion_type)
        if not self.board.is_legal(move):
            return None
        return self._push(move)

    def undo(self):
        if self.board.move_stack:
            self.board.pop()
            self._sans.pop()

    def preview(self, san: str) -> Optional[str]:
        """FEN after san on a throwaway copy of the current position."""
        scratch = MoveValidator(self.fen())
        if scratch.play_san(san) is None:
            return None
        return scratch.fen()

    def _reaches_last_rank(self, from_square, to_square):
        if self.board.piece_type_at(from_square) != chess.PAWN:
            return False
        return chess.square_rank(to_square) in (0, 7)

    def _push(self, move: chess.Move) -> str:
        san = self.board.san(move)
        self.board.push(move)
        self._sans.append(san)
        return san
