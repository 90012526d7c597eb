import asyncio
import threading

from linedrill.quiz_session import QuizTiming
from linedrill.scheduling import AsyncIOTimerScheduler
from linedrill.tests import RUY_LOPEZ, drop_san, make_session


def test_actions_run_on_the_event_loop_thread():
    fired = []

    async def scenario():
        scheduler = AsyncIOTimerScheduler()
        try:
            scheduler.schedule(0.01, lambda: fired.append(threading.get_ident()))
            cancelled = scheduler.schedule(0.01, lambda: fired.append("cancelled"))
            cancelled.cancel()
            await asyncio.sleep(0.3)
        finally:
            scheduler.shutdown()
        return threading.get_ident()

    loop_thread = asyncio.run(scenario())
    assert fired == [loop_thread]


def test_cancelling_a_fired_job_is_harmless():
    fired = []

    async def scenario():
        scheduler = AsyncIOTimerScheduler()
        try:
            handle = scheduler.schedule(0.01, lambda: fired.append(True))
            await asyncio.sleep(0.3)
            handle.cancel()
        finally:
            scheduler.shutdown()

    asyncio.run(scenario())
    assert fired == [True]


def test_drives_a_quiz_session():
    async def scenario():
        scheduler = AsyncIOTimerScheduler()
        try:
            timing = QuizTiming(auto_move_delay=0.01)
            session = make_session(RUY_LOPEZ, scheduler, timing=timing)
            session.start()
            drop_san(session, "e4")
            await asyncio.sleep(0.3)
            return session.played_moves
        finally:
            scheduler.shutdown()

    assert asyncio.run(scenario()) == ["e4", "e5"]
