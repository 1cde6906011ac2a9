"""
Durable File Writes

Every file asset-mirror produces (mirrored assets and the index itself) is
written through write_file(): the bytes go to a temporary sibling file, are
flushed to stable storage, and the temporary file is then renamed onto the
final path. The rename is the single commit point, so a reader either sees the
previous file, no file, or the complete new file.
"""

import os
from typing import Union

from assetmirror.constants import TEMP_FILE_PREFIX, TEMP_FILE_SUFFIX
from assetmirror.exceptions import DurableWriteError
from assetmirror.log_utils import logger

Pathish = Union[str, os.PathLike]


def temp_path_for(file_path: str) -> str:
    """Return the temporary path used while writing `file_path` (``<dir>/.tmp.<name>~``)."""
    dir_path = os.path.dirname(file_path)
    base_name = os.path.basename(file_path)
    return os.path.join(dir_path, f"{TEMP_FILE_PREFIX}{base_name}{TEMP_FILE_SUFFIX}")


def dir_mode_for(mode: int) -> int:
    """
    Derive a directory mode from a file mode.

    The read and write bits are kept, and each execute bit is set when the
    matching read bit is set (0o666 -> 0o777, 0o640 -> 0o750).
    """
    return (mode & 0o666) | ((mode & 0o444) >> 2)


def _fail(step: str, path: str, error: OSError) -> DurableWriteError:
    return DurableWriteError(
        f"durable write failed during {step}: {path}",
        path=path,
        step=step,
        details=str(error),
    )


def _write_all(fd: int, data: bytes) -> int:
    view = memoryview(data)
    total = 0
    while total < len(view):
        total += os.write(fd, view[total:])
    return total


def write_file(file_path: Pathish, data: bytes, mode: int) -> int:
    """
    Durably create or replace `file_path` with `data`.

    Steps: create the parent directory (mode derived from `mode`), open the
    parent directory, remove any stale temporary file, create the temporary file
    exclusively with `mode`, write and fsync the bytes, close, rename onto the
    final path, fsync the parent directory.

    If any step before the rename fails the temporary file is removed and the
    final path is left untouched. Nothing is retried.

    Parameters:
        file_path (Pathish): Destination path.
        data (bytes): Complete file contents.
        mode (int): Permission bits for the new file (subject to the process umask).

    Returns:
        int: Number of bytes written.

    Raises:
        DurableWriteError: If any filesystem step fails; `step` names which one.
    """
    file_path = os.path.normpath(os.fspath(file_path))
    dir_path = os.path.dirname(file_path) or os.curdir
    temp_path = temp_path_for(file_path)

    try:
        os.makedirs(dir_path, mode=dir_mode_for(mode), exist_ok=True)
    except OSError as e:
        raise _fail("mkdir", dir_path, e) from e

    try:
        dir_fd = os.open(dir_path, os.O_RDONLY)
    except OSError as e:
        raise _fail("open-dir", dir_path, e) from e

    dir_closed = False
    try:
        try:
            os.remove(temp_path)
            logger.debug("Removed stale temporary file %s", temp_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.debug("Could not remove stale temporary file %s: %s", temp_path, e)

        try:
            fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, mode)
        except OSError as e:
            raise _fail("create", temp_path, e) from e

        file_closed = False
        committed = False
        try:
            try:
                written = _write_all(fd, data)
            except OSError as e:
                raise _fail("write", temp_path, e) from e

            try:
                os.fsync(fd)
            except OSError as e:
                raise _fail("fsync", temp_path, e) from e

            file_closed = True
            try:
                os.close(fd)
            except OSError as e:
                raise _fail("close", temp_path, e) from e

            try:
                os.rename(temp_path, file_path)
            except OSError as e:
                raise _fail("rename", file_path, e) from e
            committed = True
        finally:
            if not file_closed:
                try:
                    os.close(fd)
                except OSError:
                    pass
            if not committed:
                try:
                    os.remove(temp_path)
                except OSError as e:
                    logger.debug("Could not remove temporary file %s: %s", temp_path, e)

        try:
            os.fsync(dir_fd)
        except OSError as e:
            raise _fail("fsync-dir", dir_path, e) from e

        dir_closed = True
        try:
            os.close(dir_fd)
        except OSError as e:
            raise _fail("close-dir", dir_path, e) from e
    finally:
        if not dir_closed:
            try:
                os.close(dir_fd)
            except OSError:
                pass

    logger.debug("Wrote %d bytes to %s (mode %03o)", written, file_path, mode)
    return written


def file_exists(file_path: Pathish) -> bool:
    """
    Report whether a file is already present at `file_path`.

    Raises:
        DurableWriteError: If the path cannot be examined for a reason other than
            it not existing (for example a permission error).
    """
    try:
        os.stat(file_path)
    except FileNotFoundError:
        return False
    except OSError as e:
        raise _fail("stat", os.fspath(file_path), e) from e
    return True
