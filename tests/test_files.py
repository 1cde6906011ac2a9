"""
Tests for the durable write protocol.

Covers:
- successful writes (content, permissions, parent directories)
- replacement and idempotency
- stale temporary file cleanup
- failure injection at each step: the final path is never partially written
- file_exists
"""

import os
import stat
from unittest.mock import patch

import pytest

from assetmirror.exceptions import DurableWriteError, FileSystemError
from assetmirror.index import file_exists, write_file
from assetmirror.index.files import dir_mode_for, temp_path_for

pytestmark = [pytest.mark.storage]


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def _mode(path) -> int:
    return stat.S_IMODE(os.stat(path).st_mode)


class TestHelpers:
    @pytest.mark.parametrize(
        "mode,expected",
        [(0o666, 0o777), (0o777, 0o777), (0o640, 0o750), (0o600, 0o700), (0o444, 0o555)],
    )
    def test_dir_mode_for(self, mode, expected):
        """Each read bit grants the matching execute bit."""
        assert dir_mode_for(mode) == expected

    def test_temp_path_for(self):
        assert temp_path_for(os.path.join("out", "v1", "app")) == os.path.join(
            "out", "v1", ".tmp.app~"
        )


class TestWriteFile:
    """Tests for successful write_file calls."""

    def test_writes_content_and_returns_length(self, tmp_path):
        target = tmp_path / "file.bin"

        written = write_file(target, b"hello world", 0o666)

        assert written == 11
        assert target.read_bytes() == b"hello world"

    def test_applies_mode(self, tmp_path):
        umask = _current_umask()
        exe = tmp_path / "app"
        regular = tmp_path / "notes.txt"

        write_file(exe, b"#!", 0o777)
        write_file(regular, b"text", 0o666)

        assert _mode(exe) == 0o777 & ~umask
        assert _mode(regular) == 0o666 & ~umask

    def test_creates_parent_directories(self, tmp_path):
        target = tmp_path / "a" / "b" / "c.txt"

        write_file(str(target), b"x", 0o640)

        assert target.read_bytes() == b"x"
        assert _mode(tmp_path / "a" / "b") == 0o750 & ~_current_umask()

    def test_empty_data(self, tmp_path):
        target = tmp_path / "empty"
        assert write_file(target, b"", 0o666) == 0
        assert target.read_bytes() == b""

    def test_replaces_existing_file(self, tmp_path):
        target = tmp_path / "index.json"
        target.write_bytes(b"old contents that are longer")

        write_file(target, b"new", 0o666)

        assert target.read_bytes() == b"new"

    def test_rewrite_identical_bytes_is_idempotent(self, tmp_path):
        target = tmp_path / "index.json"
        write_file(target, b"[]\n", 0o666)
        write_file(target, b"[]\n", 0o666)

        assert target.read_bytes() == b"[]\n"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["index.json"]

    def test_removes_stale_temp_file(self, tmp_path):
        """A temp file left behind by an interrupted run does not block the write."""
        target = tmp_path / "app"
        stale = tmp_path / ".tmp.app~"
        stale.write_bytes(b"partial")

        write_file(target, b"complete", 0o666)

        assert target.read_bytes() == b"complete"
        assert not stale.exists()

    def test_no_temp_file_left_behind(self, tmp_path):
        write_file(tmp_path / "app", b"data", 0o666)
        assert not (tmp_path / ".tmp.app~").exists()


class TestWriteFileFailures:
    """Failure injection: each step reports itself and never leaves a partial file."""

    def test_partial_write_leaves_no_final_file(self, tmp_path, mocker):
        target = tmp_path / "app"

        def partial_write(fd, data):
            os.write(fd, data[:3])
            raise OSError(28, "No space left on device")

        mocker.patch("assetmirror.index.files._write_all", side_effect=partial_write)

        with pytest.raises(DurableWriteError) as exc_info:
            write_file(target, b"complete data", 0o666)

        assert exc_info.value.step == "write"
        assert "No space left" in str(exc_info.value)
        assert not target.exists()
        assert not (tmp_path / ".tmp.app~").exists()

    def test_partial_write_keeps_previous_file(self, tmp_path, mocker):
        target = tmp_path / "index.json"
        target.write_bytes(b"previous")
        mocker.patch(
            "assetmirror.index.files._write_all",
            side_effect=OSError(5, "Input/output error"),
        )

        with pytest.raises(DurableWriteError):
            write_file(target, b"replacement", 0o666)

        assert target.read_bytes() == b"previous"

    def test_fsync_failure(self, tmp_path):
        target = tmp_path / "app"

        with patch("assetmirror.index.files.os.fsync", side_effect=OSError(5, "EIO")):
            with pytest.raises(DurableWriteError) as exc_info:
                write_file(target, b"data", 0o666)

        assert exc_info.value.step == "fsync"
        assert not target.exists()
        assert not (tmp_path / ".tmp.app~").exists()

    def test_rename_failure_keeps_previous_file(self, tmp_path):
        target = tmp_path / "index.json"
        target.write_bytes(b"previous")

        with patch("assetmirror.index.files.os.rename", side_effect=OSError(18, "EXDEV")):
            with pytest.raises(DurableWriteError) as exc_info:
                write_file(target, b"replacement", 0o666)

        assert exc_info.value.step == "rename"
        assert exc_info.value.path == str(target)
        assert target.read_bytes() == b"previous"
        assert not (tmp_path / ".tmp.index.json~").exists()

    def test_directory_fsync_failure_after_commit(self, tmp_path):
        """A failure after the rename is reported, but the new file is complete."""
        target = tmp_path / "app"
        real_fsync = os.fsync
        calls = []

        def fsync(fd):
            calls.append(fd)
            if len(calls) == 2:
                raise OSError(5, "EIO")
            real_fsync(fd)

        with patch("assetmirror.index.files.os.fsync", side_effect=fsync):
            with pytest.raises(DurableWriteError) as exc_info:
                write_file(target, b"data", 0o666)

        assert exc_info.value.step == "fsync-dir"
        assert target.read_bytes() == b"data"

    def test_mkdir_failure(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_bytes(b"not a directory")

        with pytest.raises(DurableWriteError) as exc_info:
            write_file(blocker / "child", b"data", 0o666)

        assert exc_info.value.step == "mkdir"

    def test_create_failure(self, tmp_path):
        target = tmp_path / "app"
        dir_fd = os.open(str(tmp_path), os.O_RDONLY)

        with patch(
            "assetmirror.index.files.os.open",
            side_effect=[dir_fd, PermissionError(13, "Permission denied")],
        ):
            with pytest.raises(DurableWriteError) as exc_info:
                write_file(target, b"data", 0o666)

        assert exc_info.value.step == "create"
        assert not target.exists()

    def test_error_is_filesystem_error(self):
        assert issubclass(DurableWriteError, FileSystemError)


class TestFileExists:
    def test_missing(self, tmp_path):
        assert file_exists(tmp_path / "missing") is False

    def test_present(self, tmp_path):
        path = tmp_path / "present"
        path.write_bytes(b"")
        assert file_exists(path) is True

    def test_stat_error_is_raised(self, tmp_path):
        with patch(
            "assetmirror.index.files.os.stat",
            side_effect=PermissionError(13, "Permission denied"),
        ):
            with pytest.raises(DurableWriteError) as exc_info:
                file_exists(tmp_path / "locked")

        assert exc_info.value.step == "stat"
