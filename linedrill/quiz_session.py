import enum
import logging
import random
from dataclasses import dataclass
from typing import Callable, Optional

from linedrill.pgn_lines import (
    count_plies_to_first_branch,
    occurrence_key,
    position_key,
)
from linedrill.scheduling import Scheduler, TimerHandle
from linedrill.tree_index import TreeIndex, index_move_text
from linedrill.validator import MoveValidator

logger = logging.getLogger(__name__)

AUTO_MOVE_DELAY = 0.22
LINE_TRANSITION_DELAY = 1.5
HINT_DURATION = 0.5

BRANCH_ALREADY_CHOSEN = (
    "That move was already chosen at this branch. Pick a different PGN move."
)


class SessionState(enum.Enum):
    IDLE = "idle"  # no active line
    AWAITING_USER_MOVE = "awaiting_user_move"
    AUTO_PLAYING = "auto_playing"
    TRANSITIONING = "transitioning"  # short pause before the next line
    AWAITING_LINE_ADVANCE = "awaiting_line_advance"
    COMPLETED = "completed"


@dataclass(frozen=True)
class QuizOptions:
    play_as_white: bool = True
    skip_to_first_branch: bool = False
    randomize_opponent_branches: bool = False
    manual_line_advance: bool = False


@dataclass(frozen=True)
class QuizTiming:
    """Seconds."""

    auto_move_delay: float = AUTO_MOVE_DELAY
    line_transition_delay: float = LINE_TRANSITION_DELAY
    hint_duration: float = HINT_DURATION


class QuizSession:
    """
    Drills every line in a TreeIndex once, one line at a time.

    The learner plays their own side through on_piece_drop(); the other side
    is played automatically after a short delay. At a branching position the
    learner must pick a different recorded move each time round until all of
    them have been chosen, and line selection always prefers lines that
    haven't been visited yet, so every line gets covered.

    All waiting goes through the scheduler. There's at most one pending timer
    at any time: scheduling anything cancels whatever was pending, and each
    timer carries the epoch it was scheduled in so one that fires late after
    being superseded is ignored.
    """

    def __init__(
        self,
        index: TreeIndex,
        scheduler: Scheduler,
        *,
        options: Optional[QuizOptions] = None,
        timing: Optional[QuizTiming] = None,
        skip_plies: int = 0,
        initial_visited_node_hashes=(),
        on_complete: Optional[Callable[[], None]] = None,
        on_line_complete: Optional[Callable[[str], None]] = None,
        validator: Optional[MoveValidator] = None,
        rng: Optional[random.Random] = None,
    ):
        self.index = index
        self.scheduler = scheduler
        self.options = options or QuizOptions()
        self.timing = timing or QuizTiming()
        self.skip_plies = skip_plies
        self.on_complete = on_complete
        self.on_line_complete = on_line_complete
        self.validator = validator or MoveValidator()
        self.rng = rng or random.Random()

        self._initial_visited = list(dict.fromkeys(initial_visited_node_hashes))
        self._visited_nodes: dict[str, None] = {}  # insertion-ordered set
        self._visited_leaves: set[str] = set()
        self._branch_choices: dict[tuple[int, str], set[str]] = {}

        self._state = SessionState.IDLE
        self._leaf_hash: Optional[str] = None
        self._moves: tuple[str, ...] = ()
        self._node_hashes: tuple[str, ...] = ()
        self._ply = -1
        self._furthest_ply = -1
        self._pending_leaf_hash: Optional[str] = None
        self._auto_plies_remaining = 0
        self._paused = False
        self._hint_fen: Optional[str] = None
        self._rejection_message: Optional[str] = None
        self._last_auto_occurrence: Optional[tuple[int, str, str]] = None

        self._timer: Optional[TimerHandle] = None
        self._epoch = 0

    @classmethod
    def from_move_text(cls, move_text: str, scheduler: Scheduler, **kwargs):
        kwargs.setdefault("skip_plies", count_plies_to_first_branch(move_text))
        return cls(index_move_text(move_text), scheduler, **kwargs)

    # ------------------------------------------------------------------
    # outputs

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def current_fen(self) -> str:
        return self._hint_fen or self.validator.fen()

    @property
    def is_auto_playing(self):
        return self._state is SessionState.AUTO_PLAYING or self._hint_fen is not None

    @property
    def is_transitioning(self):
        return self._state is SessionState.TRANSITIONING

    @property
    def is_awaiting_line_advance(self):
        return self._state is SessionState.AWAITING_LINE_ADVANCE

    @property
    def is_completed(self):
        return all(h in self._visited_leaves for h in self.index.leaf_hashes_in_order)

    @property
    def is_paused(self):
        return self._paused

    @property
    def current_leaf_hash(self) -> Optional[str]:
        return self._leaf_hash

    @property
    def pending_leaf_hash(self) -> Optional[str]:
        return self._pending_leaf_hash

    @property
    def current_ply_index(self) -> int:
        return self._ply

    @property
    def furthest_ply_index(self) -> int:
        return self._furthest_ply

    @property
    def played_moves(self) -> list[str]:
        return list(self._moves[: self._ply + 1])

    @property
    def next_expected_move(self) -> Optional[str]:
        next_ply = self._ply + 1
        if self._leaf_hash is None or next_ply >= len(self._moves):
            return None
        return self._moves[next_ply]

    @property
    def remaining_line_count(self) -> int:
        return sum(
            1 for h in self.index.leaf_hashes_in_order if h not in self._visited_leaves
        )

    @property
    def visited_node_hashes(self) -> list[str]:
        return list(self._visited_nodes)

    @property
    def visited_leaf_hashes(self) -> frozenset[str]:
        return frozenset(self._visited_leaves)

    @property
    def move_rejection_message(self) -> Optional[str]:
        return self._rejection_message

    @property
    def last_auto_played_occurrence(self) -> Optional[tuple[int, str, str]]:
        return self._last_auto_occurrence

    def is_users_turn(self) -> bool:
        return self._is_users_ply(self._ply + 1)

    def branch_options(self) -> list[str]:
        """Recorded moves at the current position, in tree order."""
        next_ply = self._ply + 1
        return list(self.index.moves_at(next_ply, self._moves[:next_ply]))

    # ------------------------------------------------------------------
    # inputs

    def start(self):
        self._cancel_timer()
        self._visited_nodes = dict.fromkeys(self._initial_visited)
        self._visited_leaves = {
            h for h in self.index.leaf_hashes_in_order if h in self._visited_nodes
        }
        self._branch_choices.clear()

        next_leaf = self._next_unvisited_leaf()
        if next_leaf is None:
            self._clear_line()
            self._state = (
                SessionState.COMPLETED if self.index.leaf_count else SessionState.IDLE
            )
            return

        self._start_leaf(next_leaf)

    def restart(self):
        logger.info("Restarting quiz session")
        self.start()

    def close(self):
        self._cancel_timer()
        self._clear_line()
        self._state = SessionState.IDLE

    def on_piece_drop(
        self, source: str, target: str, promotion: Optional[str] = None
    ) -> bool:
        if not self._accepts_input() or self._is_line_complete():
            return False
        if not self.is_users_turn():
            return False

        next_ply = self._ply + 1
        expected = self.next_expected_move
        if expected is None:
            return False

        played_before = self.validator.history()
        san = self.validator.play_squares(source, target, promotion)
        if san is None:
            return False

        options = self.index.moves_at(next_ply, played_before)
        leaves_for_move = options.get(san, [])
        if not leaves_for_move and san != expected:
            self.validator.undo()
            return False

        if len(options) > 1:
            key = position_key(next_ply, played_before)
            chosen = self._branch_choices.get(key, set())
            if san in chosen:
                self.validator.undo()
                self._rejection_message = BRANCH_ALREADY_CHOSEN
                return False

            chosen.add(san)
            if len(chosen) >= len(options):
                # every option has had its turn; start the cycle over
                self._branch_choices.pop(key, None)
            else:
                self._branch_choices[key] = chosen

        previous_san = self._moves[next_ply]
        if leaves_for_move:
            self._redirect(leaves_for_move, next_ply)
        self._record_ply(next_ply, san, previous_san)
        self._rejection_message = None
        self._last_auto_occurrence = None

        if self._is_line_complete():
            self._finish_line()
        elif not self.is_users_turn():
            self._run_auto_moves(1)
        return True

    def step_forward(self):
        if not self._accepts_input() or self._ply >= self._furthest_ply:
            return

        san = self._moves[self._ply + 1]
        if self.validator.play_san(san) is None:
            return
        self._ply += 1
        self._last_auto_occurrence = None
        self._rejection_message = None

    def step_backward(self):
        if not self._accepts_input() or self._ply < 0:
            return

        self.validator.undo()
        self._ply -= 1
        self._last_auto_occurrence = None
        self._rejection_message = None

    def request_hint(self):
        if not self._accepts_input() or not self.is_users_turn():
            return
        if (expected := self.next_expected_move) is None:
            return
        if (preview_fen := self.validator.preview(expected)) is None:
            return

        self._hint_fen = preview_fen
        self._schedule(self.timing.hint_duration, self._end_hint)

    def continue_to_next_line(self):
        if self._state is not SessionState.AWAITING_LINE_ADVANCE or self._paused:
            return
        if self._pending_leaf_hash is not None:
            self._start_leaf(self._pending_leaf_hash)

    def pause(self):
        if self._paused:
            return
        self._paused = True
        self._cancel_timer()
        self._hint_fen = None

    def resume(self):
        if not self._paused:
            return
        self._paused = False

        if self._state is SessionState.AUTO_PLAYING:
            self._run_auto_moves(max(self._auto_plies_remaining, 1))
        elif self._state is SessionState.TRANSITIONING:
            self._schedule(self.timing.line_transition_delay, self._start_pending_leaf)
        elif (
            self._state is SessionState.AWAITING_USER_MOVE
            and self._ply == self._furthest_ply
            and not self._is_line_complete()
            and not self.is_users_turn()
        ):
            self._run_auto_moves(1)

    # ------------------------------------------------------------------
    # lines

    def _start_leaf(self, leaf_hash: str):
        plan = self.index.leaf_plans_by_hash.get(leaf_hash)
        if plan is None:
            raise ValueError(f"Unknown leaf: {leaf_hash}")

        self._cancel_timer()
        self._clear_line()
        self._leaf_hash = leaf_hash
        self._moves = plan.san_path
        self._node_hashes = plan.node_hash_path
        logger.info(
            "Starting line %s (%d remaining)",
            " ".join(self._moves),
            self.remaining_line_count,
        )

        if not self._moves:
            self._finish_line()
            return

        auto_plies = 0
        if self.options.skip_to_first_branch:
            auto_plies = min(self.skip_plies, len(self._moves))
        # don't stop on a lone opponent ply just before the learner's move
        if auto_plies < len(self._moves) and not self._is_users_ply(auto_plies):
            auto_plies += 1

        if auto_plies > 0:
            self._run_auto_moves(auto_plies)
        else:
            self._state = SessionState.AWAITING_USER_MOVE

    def _clear_line(self):
        self.validator.reset()
        self._leaf_hash = None
        self._moves = ()
        self._node_hashes = ()
        self._ply = -1
        self._furthest_ply = -1
        self._pending_leaf_hash = None
        self._auto_plies_remaining = 0
        self._hint_fen = None
        self._rejection_message = None
        self._last_auto_occurrence = None

    def _finish_line(self):
        self._cancel_timer()
        self._auto_plies_remaining = 0
        finished = self._leaf_hash
        if finished is not None:
            self._visited_leaves.add(finished)
            if self.on_line_complete:
                self.on_line_complete(finished)

        next_leaf = self._next_unvisited_leaf()
        self._pending_leaf_hash = next_leaf
        if next_leaf is None:
            self._state = SessionState.COMPLETED
            logger.info("All %d lines covered", self.index.leaf_count)
            if self.on_complete:
                self.on_complete()
            return

        if self.options.manual_line_advance:
            self._state = SessionState.AWAITING_LINE_ADVANCE
            return

        self._state = SessionState.TRANSITIONING
        if not self._paused:
            self._schedule(self.timing.line_transition_delay, self._start_pending_leaf)

    def _start_pending_leaf(self):
        if self._pending_leaf_hash is not None:
            self._start_leaf(self._pending_leaf_hash)

    def _next_unvisited_leaf(self) -> Optional[str]:
        for leaf_hash in self.index.leaf_hashes_in_order:
            if leaf_hash not in self._visited_leaves:
                return leaf_hash
        return None

    def _redirect(self, leaf_hashes: list[str], ply: int):
        """Retarget the active line at ply, preferring one not yet visited."""
        unvisited = [h for h in leaf_hashes if h not in self._visited_leaves]
        leaf_hash = (unvisited or leaf_hashes)[0]
        if leaf_hash == self._leaf_hash:
            return

        plan = self.index.leaf_plans_by_hash[leaf_hash]
        self._leaf_hash = leaf_hash
        self._moves = plan.san_path
        self._node_hashes = plan.node_hash_path
        # plies past this one belonged to the old line
        self._furthest_ply = min(self._furthest_ply, ply)

    # ------------------------------------------------------------------
    # plies

    def _is_users_ply(self, ply: int) -> bool:
        return (ply % 2 == 0) == self.options.play_as_white

    def _is_line_complete(self):
        return self._ply >= 0 and self._ply == len(self._moves) - 1

    def _accepts_input(self):
        return (
            self._state is SessionState.AWAITING_USER_MOVE
            and not self._paused
            and self._hint_fen is None
        )

    def _record_ply(self, ply: int, san: str, previous_san: str):
        if ply <= self._furthest_ply and san != previous_san:
            # went back and took a different road; the old future is gone
            self._furthest_ply = ply
        else:
            self._furthest_ply = max(self._furthest_ply, ply)
        self._ply = ply
        self._visited_nodes.setdefault(self._node_hashes[ply], None)

    def _run_auto_moves(self, plies: int):
        if plies <= 0:
            self._auto_plies_remaining = 0
            self._state = SessionState.AWAITING_USER_MOVE
            return

        self._state = SessionState.AUTO_PLAYING
        self._auto_plies_remaining = plies
        if not self._paused:
            self._schedule(self.timing.auto_move_delay, self._auto_move_step)

    def _auto_move_step(self):
        if not self._play_auto_ply():
            self._run_auto_moves(0)
            return

        if self._is_line_complete():
            self._finish_line()
            return

        remaining = self._auto_plies_remaining - 1
        if remaining <= 0 and not self.is_users_turn():
            remaining = 1
        self._run_auto_moves(remaining)

    def _play_auto_ply(self) -> bool:
        ply = self._ply + 1
        if ply >= len(self._moves):
            return False

        previous_san = self._moves[ply]
        san = previous_san
        if self.options.randomize_opponent_branches and not self._is_users_ply(ply):
            san = self._choose_opponent_move(ply)

        if self.validator.play_san(san) is None:
            logger.warning("Could not auto-play %s at ply %d", san, ply)
            return False

        self._record_ply(ply, san, previous_san)
        self._last_auto_occurrence = occurrence_key(ply, self._moves[:ply], san)
        return True

    def _choose_opponent_move(self, ply: int) -> str:
        options = self.index.moves_at(ply, self._moves[:ply])
        if len(options) <= 1:
            return self._moves[ply]

        fresh = [
            san
            for san, leaf_hashes in options.items()
            if any(h not in self._visited_leaves for h in leaf_hashes)
        ]
        san = self.rng.choice(fresh or list(options))
        self._redirect(options[san], ply)
        return san

    def _end_hint(self):
        self._hint_fen = None

    # ------------------------------------------------------------------
    # timers

    def _schedule(self, delay: float, action: Callable[[], None]):
        self._cancel_timer()
        epoch = self._epoch
        self._timer = self.scheduler.schedule(
            delay, lambda: self._fire_timer(epoch, action)
        )

    def _fire_timer(self, epoch: int, action: Callable[[], None]):
        if epoch != self._epoch:
            logger.debug("Dropping stale timer from epoch %d", epoch)
            return
        self._timer = None
        action()

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._epoch += 1
