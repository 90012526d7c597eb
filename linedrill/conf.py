from django.conf import settings

from linedrill.quiz_session import (
    AUTO_MOVE_DELAY,
    HINT_DURATION,
    LINE_TRANSITION_DELAY,
    QuizTiming,
)


def get_quiz_timing() -> QuizTiming:
    """Delays for the quiz session, overridable in settings (seconds)."""
    return QuizTiming(
        auto_move_delay=getattr(settings, "LINEDRILL_AUTO_MOVE_DELAY", AUTO_MOVE_DELAY),
        line_transition_delay=getattr(
            settings, "LINEDRILL_LINE_TRANSITION_DELAY", LINE_TRANSITION_DELAY
        ),
        hint_duration=getattr(settings, "LINEDRILL_HINT_DURATION", HINT_DURATION),
    )
