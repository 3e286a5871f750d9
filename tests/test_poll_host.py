"""
Contract tests for the directory-polling trigger port
"""

import asyncio
import os
from pathlib import Path

from pulse.hosts import DirectoryPollHost
from pulse.hosts.poll import walk_mtimes


def test_first_scan_only_records_baseline(tmp_path: Path, clock) -> None:
    (tmp_path / "a.py").write_text("x", encoding="utf-8")

    host = DirectoryPollHost(tmp_path, clock=clock)
    saves = []
    host.register_save(saves.append)

    assert host.scan() == []
    assert saves == []
    assert host.active_file() is None


def test_changed_and_new_files_are_saves(tmp_path: Path, clock) -> None:
    existing = tmp_path / "a.py"
    existing.write_text("x", encoding="utf-8")

    host = DirectoryPollHost(tmp_path, clock=clock)
    saves = []
    host.register_save(saves.append)
    host.scan()

    clock.now = 50
    os.utime(existing, (1000, 1000))
    assert host.scan() == [str(existing)]

    created = tmp_path / "src" / "lib.rs"
    created.parent.mkdir()
    created.write_text("fn main() {}", encoding="utf-8")
    assert host.scan() == [str(created)]

    assert saves == [str(existing), str(created)]
    assert host.active_file() == str(created)

    clock.now = 80
    assert host.idle_seconds() == 30


def test_hidden_directories_are_ignored(tmp_path: Path, clock) -> None:
    host = DirectoryPollHost(tmp_path, clock=clock)
    host.scan()

    git_dir = tmp_path / ".git"
    git_dir.mkdir()
    (git_dir / "index").write_text("x", encoding="utf-8")

    assert host.scan() == []


def test_every_repeats_until_cancelled(tmp_path: Path) -> None:
    host = DirectoryPollHost(tmp_path)
    fired = []

    async def _run():
        cancel = host.every(0.01, lambda: fired.append(1))
        await asyncio.sleep(0.1)
        cancel()
        count = len(fired)
        await asyncio.sleep(0.05)
        return count

    count = asyncio.run(_run())

    assert count >= 2
    assert len(fired) == count


def test_walk_does_not_descend_into_hidden_directories(tmp_path: Path) -> None:
    (tmp_path / ".venv" / "lib").mkdir(parents=True)
    (tmp_path / ".venv" / "lib" / "site.py").write_text("x", encoding="utf-8")
    (tmp_path / ".bashrc").write_text("x", encoding="utf-8")
    (tmp_path / "app.py").write_text("x", encoding="utf-8")

    found = sorted(p.name for p in walk_mtimes(tmp_path))

    assert found == [".bashrc", "app.py"]


def test_poll_once_walks_off_loop_and_fires_saves(tmp_path: Path, clock) -> None:
    target = tmp_path / "main.go"
    target.write_text("package main", encoding="utf-8")

    host = DirectoryPollHost(tmp_path, clock=clock)
    saves = []
    host.register_save(saves.append)

    async def _run():
        assert await host.poll_once() == []
        os.utime(target, (2000, 2000))
        return await host.poll_once()

    assert asyncio.run(_run()) == [str(target)]
    assert saves == [str(target)]
