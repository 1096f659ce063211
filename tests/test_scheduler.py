import asyncio

from word_highlighter.scheduler import TaskQueue


def test_frame_work_runs_before_idle_work():
    """Idle callbacks wait until no frame callbacks are queued."""
    order = []
    queue = TaskQueue()

    async def run():
        queue.request_idle(lambda: order.append("idle"))
        queue.request_frame(lambda: order.append("frame-1"))
        queue.request_frame(lambda: order.append("frame-2"))
        await queue.drain()

    asyncio.run(run())
    assert order == ["frame-1", "frame-2", "idle"]


def test_cancelled_timer_never_fires():
    """A cancelled call_later handle is dropped from pending work."""
    fired = []
    queue = TaskQueue()

    async def run():
        handle = queue.call_later(10, lambda: fired.append(True))
        queue.cancel(handle)
        assert not queue.pending
        await queue.drain()

    asyncio.run(run())
    assert fired == []


def test_failing_callback_does_not_stop_the_queue():
    """Exceptions in callbacks are logged and later work still runs."""
    ran = []
    queue = TaskQueue()

    def broken():
        raise RuntimeError("boom")

    async def run():
        queue.request_frame(broken)
        queue.request_idle(lambda: ran.append(True))
        await queue.drain()

    asyncio.run(run())
    assert ran == [True]


def test_cancel_all_drops_queued_work():
    """cancel_all clears timers and queued callbacks."""
    ran = []
    queue = TaskQueue()

    async def run():
        queue.call_later(0, lambda: ran.append("timer"))
        queue.request_idle(lambda: ran.append("idle"))
        queue.cancel_all()
        await queue.drain()

    asyncio.run(run())
    assert ran == []
