"""
pulse.hosts.poll

AUTHOR: carter-vin

Directory-polling trigger port for terminal use (`pulse watch`)

- A file whose mtime changed between scans counts as "saved"
- The most recently saved file is the active file
- Idle time = seconds since the last observed save
- Timers run on the asyncio event loop (call_later); the directory walk
  runs in the default executor so the loop never waits on the filesystem
"""

from __future__ import annotations

import asyncio
import os
import time
from pathlib import Path
from typing import Callable, Optional

import typer


class DirectoryPollHost:
    """
    TriggerPort implementation backed by mtime polling of one directory tree.

    The first scan only records a baseline; pre-existing files are not saves.
    """

    def __init__(
        self,
        root: Path,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.root = root
        self._clock = clock
        self._mtimes: dict[Path, float] = {}
        self._primed = False
        self._save_callbacks: list[Callable[[str], None]] = []
        self._active: Optional[str] = None
        self._last_activity = clock()
        self._poll_task: Optional[asyncio.Task] = None

    # -----------------------------
    # TRIGGER PORT
    # -----------------------------
    def register_save(self, callback: Callable[[str], None]) -> None:
        self._save_callbacks.append(callback)

    def every(self, interval_s: float, callback: Callable[[], None]) -> Callable[[], None]:
        loop = asyncio.get_running_loop()
        handle: Optional[asyncio.TimerHandle] = None
        cancelled = False

        def _fire() -> None:
            nonlocal handle
            if cancelled:
                return
            # Re-arm first so a failing callback does not stop the chain
            handle = loop.call_later(interval_s, _fire)
            callback()

        def _cancel() -> None:
            nonlocal cancelled
            cancelled = True
            if handle is not None:
                handle.cancel()

        handle = loop.call_later(interval_s, _fire)
        return _cancel

    def idle_seconds(self) -> float:
        return max(0.0, self._clock() - self._last_activity)

    def active_file(self) -> Optional[str]:
        return self._active

    def notify(self, message: str) -> None:
        typer.echo(message, err=True)

    # -----------------------------
    # POLLING
    # -----------------------------
    def scan(self) -> list[str]:
        """
        Walk the tree on the calling thread and apply the result

        Returns the saved paths, oldest change first
        """
        return self._apply(walk_mtimes(self.root))

    async def poll_once(self) -> list[str]:
        """
        Walk the tree in the default executor, then diff on the loop
        """
        loop = asyncio.get_running_loop()
        mtimes = await loop.run_in_executor(None, walk_mtimes, self.root)
        return self._apply(mtimes)

    def _apply(self, mtimes: dict[Path, float]) -> list[str]:
        """
        Compare mtimes against the previous walk and fire save callbacks
        """
        changed: list[tuple[float, Path]] = []
        if self._primed:
            for path, mtime in mtimes.items():
                if self._mtimes.get(path) != mtime:
                    changed.append((mtime, path))

        self._mtimes = mtimes
        self._primed = True

        saved = [str(path) for _, path in sorted(changed)]
        for path in saved:
            self._active = path
            self._last_activity = self._clock()
            for callback in self._save_callbacks:
                callback(path)

        return saved

    def _schedule_poll(self) -> None:
        # One walk in flight at a time; a slow walk skips ticks
        if self._poll_task is not None and not self._poll_task.done():
            return
        self._poll_task = asyncio.get_running_loop().create_task(self.poll_once())

    def start(self, poll_s: float = 1.0) -> Callable[[], None]:
        """
        Prime the baseline and start polling; returns a cancel function
        """
        self._schedule_poll()
        stop_timer = self.every(poll_s, self._schedule_poll)

        def _stop() -> None:
            stop_timer()
            if self._poll_task is not None:
                self._poll_task.cancel()

        return _stop


def walk_mtimes(root: Path) -> dict[Path, float]:
    """
    mtime per file under root, without descending into hidden directories
    (.git, .venv, ...)
    """
    mtimes: dict[Path, float] = {}
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if not d.startswith(".")]
        for name in filenames:
            path = Path(dirpath) / name
            try:
                mtimes[path] = path.stat().st_mtime
            except OSError:
                # Deleted between listing and stat
                continue
    return mtimes
