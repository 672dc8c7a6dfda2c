from pathlib import Path

import pytest
from watchdog.events import DirCreatedEvent, FileCreatedEvent, FileModifiedEvent, FileMovedEvent, FileOpenedEvent

from imgmanifest.manifest.generator import ManifestGenerator
from imgmanifest.utils.config import ManifestSettings
from imgmanifest.watch.loop import MediaEventHandler, WatchLoop, WatchState


class FakeTimer:
    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.cancelled = False

    def start(self):
        pass

    def cancel(self):
        self.cancelled = True


class FakeTimers:
    def __init__(self):
        self.created = []

    def __call__(self, interval, function):
        timer = FakeTimer(interval, function)
        self.created.append(timer)
        return timer

    def fire_latest(self):
        self.created[-1].function()


class FakeObserver:
    def __init__(self):
        self.scheduled = []
        self.started = False
        self.stopped = False

    def schedule(self, handler, path, recursive=False):
        self.scheduled.append((handler, path, recursive))

    def start(self):
        self.started = True

    def stop(self):
        self.stopped = True

    def join(self):
        pass


class CountingGenerator(ManifestGenerator):
    def __init__(self, settings):
        super().__init__(settings)
        self.runs = 0

    def generate(self):
        self.runs += 1
        return super().generate()


def _loop(tmp_path: Path):
    timers = FakeTimers()
    generator = CountingGenerator(ManifestSettings(media_dir=tmp_path, debounce_ms=300))
    return WatchLoop(generator, timer_factory=timers, observer_factory=FakeObserver), generator, timers


def test_start_generates_once_and_schedules_observer(tmp_path: Path, capsys):
    (tmp_path / "a.png").write_bytes(b"")
    loop, generator, _ = _loop(tmp_path)
    assert loop.start() == ["a.png"]
    assert generator.runs == 1
    assert loop.state is WatchState.IDLE
    observer = loop.observer
    assert observer.started
    handler, path, recursive = observer.scheduled[0]
    assert isinstance(handler, MediaEventHandler)
    assert path == str(tmp_path)
    assert recursive is False
    assert "Generated manifest.json with 1 images" in capsys.readouterr().out

    loop.stop()
    assert observer.stopped
    assert loop.observer is None


def test_burst_regenerates_once_after_last_event(tmp_path: Path, capsys):
    loop, generator, timers = _loop(tmp_path)
    for name in ("a.png", "b.jpg", "c.gif"):
        (tmp_path / name).write_bytes(b"")
        assert loop.notify(name)
        assert loop.state is WatchState.PENDING

    assert all(t.cancelled for t in timers.created[:-1])
    assert timers.created[-1].interval == 0.3
    timers.fire_latest()

    assert generator.runs == 1
    assert loop.state is WatchState.IDLE
    out = capsys.readouterr().out
    assert "Detected: c.gif" in out
    assert "Generated manifest.json with 3 images" in out


def test_irrelevant_and_self_events_never_arm(tmp_path: Path):
    loop, generator, timers = _loop(tmp_path)
    assert not loop.notify("notes.txt")
    assert not loop.notify("manifest.json")
    assert not loop.notify(None)
    assert not loop.notify("")
    assert not loop.notify(".manifest.json.abc123.tmp")
    assert timers.created == []
    assert loop.state is WatchState.IDLE
    assert generator.runs == 0


def test_handler_translates_events(tmp_path: Path):
    loop, _, timers = _loop(tmp_path)
    handler = MediaEventHandler(loop)

    handler.dispatch(DirCreatedEvent(str(tmp_path / "sub.png")))
    handler.dispatch(FileOpenedEvent(str(tmp_path / "a.png")))
    handler.dispatch(FileModifiedEvent(str(tmp_path / "manifest.json")))
    assert timers.created == []

    handler.dispatch(FileCreatedEvent(str(tmp_path / "a.png")))
    assert loop.last_change == "a.png"
    handler.dispatch(FileMovedEvent(str(tmp_path / "draft.tmp"), str(tmp_path / "final.webp")))
    assert loop.last_change == "final.webp"
    assert len(timers.created) == 2


def test_move_away_from_image_name_arms(tmp_path: Path):
    loop, _, timers = _loop(tmp_path)
    handler = MediaEventHandler(loop)
    handler.dispatch(FileMovedEvent(str(tmp_path / "a.png"), str(tmp_path / "a.txt")))
    assert len(timers.created) == 1
    assert loop.last_change == "a.png"
    assert loop.state is WatchState.PENDING


def test_rename_drops_file_from_manifest(tmp_path: Path):
    (tmp_path / "a.png").write_bytes(b"")
    loop, _, timers = _loop(tmp_path)
    loop.start()
    (tmp_path / "a.png").rename(tmp_path / "a.txt")
    MediaEventHandler(loop).dispatch(FileMovedEvent(str(tmp_path / "a.png"), str(tmp_path / "a.txt")))
    timers.fire_latest()
    assert (tmp_path / "manifest.json").read_text(encoding="utf-8") == "[]"
    loop.stop()


def test_regeneration_error_is_raised_on_main_thread(tmp_path: Path):
    media = tmp_path / "media"
    media.mkdir()
    loop, _, timers = _loop(media)
    loop.start()
    media.rename(tmp_path / "gone")
    loop.notify("b.png")
    timers.fire_latest()
    assert isinstance(loop.error, FileNotFoundError)
    with pytest.raises(FileNotFoundError):
        loop.raise_if_failed()
    loop.stop()


def test_run_forever_stops_on_regeneration_error(tmp_path: Path, monkeypatch):
    import imgmanifest.watch.loop as loop_module

    media = tmp_path / "media"
    media.mkdir()
    loop, _, timers = _loop(media)
    observers = []

    def fake_sleep(_s):
        observers.append(loop.observer)
        media.rename(tmp_path / "gone")
        loop.notify("b.png")
        timers.fire_latest()

    monkeypatch.setattr(loop_module.time, "sleep", fake_sleep)
    with pytest.raises(FileNotFoundError):
        loop.run_forever(poll_s=0.0)
    assert observers[0].stopped
    assert loop.observer is None
