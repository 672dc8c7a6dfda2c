from __future__ import annotations

import os
import threading
import time
from enum import Enum
from typing import Any, Callable, List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from imgmanifest.manifest.generator import ManifestGenerator, is_image_name, summary_line
from imgmanifest.watch.debounce import Debouncer, TimerFactory


# Reads of an image do not change the listing.
IGNORED_EVENT_TYPES = ("opened", "closed_no_write")


class WatchState(Enum):
    IDLE = "idle"
    PENDING = "pending"


class MediaEventHandler(FileSystemEventHandler):
    def __init__(self, loop: "WatchLoop") -> None:
        super().__init__()
        self.loop = loop

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type in IGNORED_EVENT_TYPES:
            return
        # A move counts when either end is an image: renaming one away must drop it too.
        for path in (getattr(event, "dest_path", ""), event.src_path):
            name = os.path.basename(os.fsdecode(path)) if path else ""
            if self.loop.notify(name or None):
                return


class WatchLoop:
    def __init__(
        self,
        generator: ManifestGenerator,
        timer_factory: TimerFactory = threading.Timer,
        observer_factory: Callable[[], Any] = Observer,
    ) -> None:
        self.generator = generator
        self.settings = generator.settings
        self.observer_factory = observer_factory
        self.debouncer = Debouncer(self.settings.debounce_s, self._regenerate, timer_factory=timer_factory)
        self.observer: Optional[Any] = None
        self.last_change: Optional[str] = None
        self.error: Optional[BaseException] = None

    @property
    def state(self) -> WatchState:
        return WatchState.PENDING if self.debouncer.pending else WatchState.IDLE

    def is_relevant(self, filename: Optional[str]) -> bool:
        if not filename or filename == self.settings.manifest_name:
            return False
        return is_image_name(filename, self.settings.extensions)

    def notify(self, filename: Optional[str]) -> bool:
        """Feed one change notification; returns True when it (re)armed the timer."""
        if not self.is_relevant(filename):
            return False
        self.last_change = filename
        self.debouncer.trigger()
        return True

    def _regenerate(self) -> List[str]:
        print(f"\nDetected: {self.last_change}")
        try:
            names = self.generator.generate()
        except Exception as exc:
            # Runs on the timer thread; run_forever re-raises it on the main thread.
            self.error = exc
            return []
        print(summary_line(names, self.settings.manifest_name))
        return names

    def raise_if_failed(self) -> None:
        if self.error is not None:
            raise self.error

    def start(self) -> List[str]:
        media_dir = self.settings.media_dir
        print(f"Watching {media_dir} for changes...")
        print(f"   Drop images into {media_dir.resolve().name}/ - {self.settings.manifest_name} auto-updates")
        print("   Press Ctrl+C to stop\n")

        names = self.generator.generate()
        print(summary_line(names, self.settings.manifest_name))

        observer = self.observer_factory()
        observer.schedule(MediaEventHandler(self), str(media_dir), recursive=False)
        observer.start()
        self.observer = observer
        return names

    def stop(self) -> None:
        self.debouncer.cancel()
        if self.observer is not None:
            self.observer.stop()
            self.observer.join()
            self.observer = None

    def run_forever(self, poll_s: float = 1.0) -> None:
        self.start()
        try:
            while True:
                time.sleep(poll_s)
                self.raise_if_failed()
        except KeyboardInterrupt:
            print("\nWatcher stopped")
        finally:
            self.stop()
