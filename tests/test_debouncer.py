"""Tests for sentinel_core.debouncer."""

import queue
import threading
from pathlib import Path

import pytest

from sentinel_core.debouncer import Debouncer
from sentinel_core.models import ChangeEvent, RawEvent, RawEventKind, WatchRoot


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms / 1000.0


def modified(path):
    return RawEvent(RawEventKind.DATA_MODIFIED, (Path(path),))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sink():
    return queue.Queue(maxsize=100)


@pytest.fixture
def debouncer(sink, clock):
    return Debouncer(sink, window_ms=500, clock=clock)


def drain(q):
    items = []
    while not q.empty():
        items.append(q.get_nowait())
    return items


class TestDebouncer:
    def test_first_modification_is_emitted(self, debouncer, sink):
        event = debouncer.feed(modified("/p/a.py"))

        assert isinstance(event, ChangeEvent)
        assert event.path == Path("/p/a.py")
        assert drain(sink) == [event]

    def test_burst_on_same_path_collapses(self, debouncer, sink, clock):
        debouncer.feed(modified("/p/a.py"))
        clock.advance(50)
        assert debouncer.feed(modified("/p/a.py")) is None

        assert len(drain(sink)) == 1

    def test_same_path_after_window_passes(self, debouncer, sink, clock):
        debouncer.feed(modified("/p/a.py"))
        clock.advance(600)
        assert debouncer.feed(modified("/p/a.py")) is not None

        assert len(drain(sink)) == 2

    def test_exactly_at_window_boundary_passes(self, debouncer, clock):
        debouncer.feed(modified("/p/a.py"))
        clock.advance(500)
        assert debouncer.feed(modified("/p/a.py")) is not None

    def test_different_paths_are_not_debounced(self, debouncer, sink, clock):
        debouncer.feed(modified("/p/a.py"))
        clock.advance(10)
        debouncer.feed(modified("/p/b.py"))

        assert [e.path for e in drain(sink)] == [Path("/p/a.py"), Path("/p/b.py")]

    def test_interleaved_paths_reset_the_slot(self, debouncer, sink, clock):
        debouncer.feed(modified("/p/a.py"))
        clock.advance(10)
        debouncer.feed(modified("/p/b.py"))
        clock.advance(10)
        debouncer.feed(modified("/p/a.py"))

        assert len(drain(sink)) == 3

    @pytest.mark.parametrize(
        "kind",
        [RawEventKind.CREATED, RawEventKind.DELETED, RawEventKind.RENAMED, RawEventKind.OTHER],
    )
    def test_non_modification_events_are_dropped(self, debouncer, sink, kind):
        assert debouncer.feed(RawEvent(kind, (Path("/p/a.py"),))) is None
        assert sink.empty()

    def test_dropped_kinds_do_not_touch_the_slot(self, debouncer, sink, clock):
        debouncer.feed(modified("/p/a.py"))
        clock.advance(10)
        debouncer.feed(RawEvent(RawEventKind.CREATED, (Path("/p/b.py"),)))
        clock.advance(10)

        assert debouncer.feed(modified("/p/a.py")) is None

    def test_reset_forgets_last_event(self, debouncer, clock):
        debouncer.feed(modified("/p/a.py"))
        debouncer.reset()
        clock.advance(10)
        assert debouncer.feed(modified("/p/a.py")) is not None

    def test_without_sink_events_are_only_returned(self, clock):
        debouncer = Debouncer(window_ms=500, clock=clock)
        assert debouncer.feed(modified("/p/a.py")).path == Path("/p/a.py")

    def test_window_in_seconds(self):
        assert Debouncer(window_ms=250).window == 0.25


class TestFullQueue:
    def test_full_queue_blocks_until_space(self, clock):
        sink = queue.Queue(maxsize=1)
        debouncer = Debouncer(sink, window_ms=500, watch_root=WatchRoot(Path("/p"), watching=True), clock=clock)
        debouncer.feed(modified("/p/a.py"))

        done = threading.Event()

        def produce():
            debouncer.feed(modified("/p/b.py"))
            done.set()

        producer = threading.Thread(target=produce, daemon=True)
        producer.start()
        assert not done.wait(0.3)

        assert sink.get_nowait().path == Path("/p/a.py")
        assert done.wait(2.0)
        assert sink.get_nowait().path == Path("/p/b.py")

    def test_blocked_put_gives_up_when_watch_suspended(self, clock):
        sink = queue.Queue(maxsize=1)
        root = WatchRoot(Path("/p"), watching=True)
        debouncer = Debouncer(sink, window_ms=500, watch_root=root, clock=clock)
        debouncer.feed(modified("/p/a.py"))

        result = {}

        def produce():
            result["event"] = debouncer.feed(modified("/p/b.py"))

        producer = threading.Thread(target=produce, daemon=True)
        producer.start()
        root.watching = False
        producer.join(timeout=2.0)

        assert not producer.is_alive()
        assert result["event"] is None
        assert sink.qsize() == 1

    def test_dropped_change_does_not_debounce_next_edit(self, clock):
        sink = queue.Queue(maxsize=1)
        root = WatchRoot(Path("/p"), watching=True)
        debouncer = Debouncer(sink, window_ms=500, watch_root=root, clock=clock)
        debouncer.feed(modified("/p/a.py"))

        root.watching = False
        assert debouncer.feed(modified("/p/b.py")) is None

        root.watching = True
        sink.get_nowait()
        clock.advance(10)
        event = debouncer.feed(modified("/p/b.py"))

        assert event is not None
        assert sink.get_nowait() is event
