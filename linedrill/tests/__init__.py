import chess

from linedrill.quiz_session import QuizOptions, QuizSession, SessionState

RUY_LOPEZ = (
    "1. e4 e5 2. Nf3 Nc6 3. Bb5 a6 4. Ba4 b5 "
    "( 4... Nf6 5. O-O Nxe4 6. Re1 Nd6 ) 5. Bb3 Nf6 6. O-O"
)
RUY_LOPEZ_MAIN = "e4 e5 Nf3 Nc6 Bb5 a6 Ba4 b5 Bb3 Nf6 O-O"
RUY_LOPEZ_OPEN = "e4 e5 Nf3 Nc6 Bb5 a6 Ba4 Nf6 O-O Nxe4 Re1 Nd6"

# white has the choice at move 2
WHITE_CHOICE = "1. e4 e5 2. Nf3 ( 2. Bc4 Nf6 ) 2... Nc6"


class ManualTimer:
    def __init__(self, due, action):
        self.due = due
        self.action = action
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """
    Scheduler on a virtual clock: nothing runs until the test says so.

    advance(seconds) fires everything that falls due along the way, in due
    order, including timers scheduled by timers that fired.
    """

    timer_class = ManualTimer

    def __init__(self):
        self.now = 0.0
        self.timers = []

    def schedule(self, delay, action):
        timer = self.timer_class(self.now + delay, action)
        self.timers.append(timer)
        return timer

    @property
    def pending(self):
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def run_next(self):
        timer = min(self.pending, key=lambda t: t.due)
        self.now = max(self.now, timer.due)
        timer.fired = True
        timer.action()

    def advance(self, seconds):
        until = self.now + seconds
        while due := [t for t in self.pending if t.due <= until]:
            timer = min(due, key=lambda t: t.due)
            self.now = timer.due
            timer.fired = True
            timer.action()
        self.now = until

    def run_all(self, limit=500):
        for _ in range(limit):
            if not self.pending:
                return
            self.run_next()
        raise AssertionError(f"Timers still pending after {limit} runs")


def make_session(move_text, scheduler, **options):
    kwargs = {}
    for name in (
        "timing",
        "skip_plies",
        "initial_visited_node_hashes",
        "on_complete",
        "on_line_complete",
        "rng",
    ):
        if name in options:
            kwargs[name] = options.pop(name)
    return QuizSession.from_move_text(
        move_text, scheduler, options=QuizOptions(**options), **kwargs
    )


def drop_san(session, san):
    """Drag and drop the piece that plays san in the current position."""
    board = chess.Board(session.current_fen)
    move = board.parse_san(san)
    promotion = chess.piece_symbol(move.promotion) if move.promotion else None
    return session.on_piece_drop(
        chess.square_name(move.from_square),
        chess.square_name(move.to_square),
        promotion,
    )


def play_through_line(session, scheduler, limit=200):
    """Plays the expected moves until the line is over; returns the state."""
    for _ in range(limit):
        if session.state is SessionState.AWAITING_USER_MOVE:
            assert drop_san(session, session.next_expected_move)
        elif session.state is SessionState.AUTO_PLAYING:
            scheduler.run_next()
        else:
            return session.state
    raise AssertionError("Line did not finish")


def board_after(moves: str) -> str:
    board = chess.Board()
    for san in moves.split():
        board.push_san(san)
    return board.fen()
