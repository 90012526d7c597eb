import logging
from typing import Callable, Optional

from linedrill.conf import get_quiz_timing
from linedrill.models import Study
from linedrill.progress import DatabaseProgressStore
from linedrill.quiz_session import QuizOptions, QuizSession, QuizTiming
from linedrill.scheduling import Scheduler

logger = logging.getLogger(__name__)


class StudyDrill:
    """
    Runs a quiz session over a Study and keeps its progress saved.

    The session is thrown away and rebuilt whenever something it was built
    from changes: the movetext, the side being played, or skipping.
    """

    def __init__(
        self,
        study: Study,
        scheduler: Scheduler,
        store: Optional[DatabaseProgressStore] = None,
        *,
        randomize_opponent_branches: bool = False,
        manual_line_advance: bool = False,
        timing: Optional[QuizTiming] = None,
        on_complete: Optional[Callable[[], None]] = None,
    ):
        self.study = study
        self.scheduler = scheduler
        self.store = store or DatabaseProgressStore()
        self.randomize_opponent_branches = randomize_opponent_branches
        self.manual_line_advance = manual_line_advance
        self.timing = timing or get_quiz_timing()
        self.on_complete = on_complete
        self.session: Optional[QuizSession] = None

    @property
    def options(self) -> QuizOptions:
        return QuizOptions(
            play_as_white=self.study.is_playing_white,
            skip_to_first_branch=self.study.is_skipping,
            randomize_opponent_branches=self.randomize_opponent_branches,
            manual_line_advance=self.manual_line_advance,
        )

    def open(self) -> QuizSession:
        self.close()
        self.session = QuizSession.from_move_text(
            self.study.move_text,
            self.scheduler,
            options=self.options,
            timing=self.timing,
            initial_visited_node_hashes=self.study.visited_node_hashes or [],
            on_line_complete=self._save_progress,
            on_complete=self.on_complete,
        )
        self.session.start()
        return self.session

    def close(self):
        if self.session is not None:
            self.session.close()
            self.session = None

    def restart(self, from_scratch=False):
        if not from_scratch and self.session is not None:
            self.session.restart()
            return

        if not self.store.clear_visited(self.study.pk):
            logger.warning("Progress for %s not cleared remotely", self.study)
        self.study.visited_node_hashes = []
        self.open()

    def set_move_text(self, move_text: str):
        if move_text == self.study.move_text:
            return
        self.study.move_text = move_text
        self.open()

    def set_playing_white(self, value: bool) -> bool:
        return self._update_setting("is_playing_white", value)

    def set_skipping(self, value: bool) -> bool:
        return self._update_setting("is_skipping", value)

    def _update_setting(self, field_name: str, value: bool) -> bool:
        previous = getattr(self.study, field_name)
        if previous == value:
            return True

        if not self.store.save_settings(self.study.pk, **{field_name: value}):
            logger.warning("Keeping %s=%s for %s", field_name, previous, self.study)
            return False

        setattr(self.study, field_name, value)
        self.open()
        return True

    def _save_progress(self, leaf_hash: str):
        hashes = self.session.visited_node_hashes
        if self.store.save_visited(self.study.pk, hashes):
            self.study.visited_node_hashes = hashes
        else:
            logger.warning("Progress for %s not saved after %s", self.study, leaf_hash)
