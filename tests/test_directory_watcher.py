"""Tests for directory_watcher module."""

import asyncio

import pytest

from tailcat.directory_watcher import DirectoryWatcher
from tailcat.errors import WatchFailure


@pytest.mark.asyncio
async def test_resolves_when_file_created(tmp_path):
    target = tmp_path / "late.log"
    watcher = DirectoryWatcher(str(target))

    task = asyncio.create_task(watcher.wait_for_creation())
    await asyncio.sleep(0.2)
    assert not task.done()

    target.write_text("")
    await asyncio.wait_for(task, timeout=5.0)


@pytest.mark.asyncio
async def test_resolves_when_file_moved_into_place(tmp_path):
    target = tmp_path / "late.log"
    staging = tmp_path / "staging.tmp"
    watcher = DirectoryWatcher(str(target))

    task = asyncio.create_task(watcher.wait_for_creation())
    await asyncio.sleep(0.2)
    staging.write_text("")
    staging.rename(target)

    await asyncio.wait_for(task, timeout=5.0)


@pytest.mark.asyncio
async def test_ignores_other_files(tmp_path):
    target = tmp_path / "late.log"
    watcher = DirectoryWatcher(str(target))

    task = asyncio.create_task(watcher.wait_for_creation())
    await asyncio.sleep(0.2)
    (tmp_path / "other.log").write_text("")
    await asyncio.sleep(0.3)

    assert not task.done()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task


@pytest.mark.asyncio
async def test_resolves_immediately_if_file_already_exists(tmp_path):
    target = tmp_path / "there.log"
    target.write_text("")

    await asyncio.wait_for(DirectoryWatcher(str(target)).wait_for_creation(), timeout=5.0)


@pytest.mark.asyncio
async def test_missing_parent_directory_fails(tmp_path):
    watcher = DirectoryWatcher(str(tmp_path / "no-such-dir" / "app.log"))
    with pytest.raises(WatchFailure):
        await watcher.wait_for_creation()
