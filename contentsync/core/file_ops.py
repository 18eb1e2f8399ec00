"""
Primitive filesystem operations used by the sync engine.

Each operation either succeeds or fails on its own: failures are logged
and recorded, never raised. In speculative (dry-run) mode nothing
touches the disk and every operation reports success.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import sys

from contentsync.core.errors import FileOpError


def _clear_readonly(path: str) -> None:
    """Clear the read-only bit of a file, if set."""
    mode = os.stat(path).st_mode
    if not mode & stat.S_IWRITE:
        os.chmod(path, mode | stat.S_IWRITE)


def _rmtree_onerror(func, path, exc) -> None:
    """Retry a failed removal once after clearing read-only. Never follows links."""
    if func is os.path.islink:
        raise exc if isinstance(exc, BaseException) else exc[1]
    if not os.path.lexists(path):
        return
    if not stat.S_ISLNK(os.lstat(path).st_mode):
        os.chmod(path, stat.S_IWRITE | stat.S_IREAD | stat.S_IEXEC)
    func(path)


class FileOperations:
    """
    Copy, delete and create operations with failure accounting.

    Every failure is appended to `errors` as a FileOpError.
    """

    def __init__(self, speculative: bool = False):
        self.speculative = speculative
        self.errors: list[FileOpError] = []

    def _fail(self, operation: str, path: str, error: Exception) -> bool:
        file_error = FileOpError(operation, path, str(error))
        logging.error(f"FileOperations - {file_error}")
        self.errors.append(file_error)
        return False

    def copy_file(self, source: str, destination: str) -> bool:
        """Copy a file, creating parent folders and overwriting the target."""
        if self.speculative:
            logging.info(f"Would copy {source} to {destination}")
            return True

        try:
            parent = os.path.dirname(destination)
            if parent:
                os.makedirs(parent, exist_ok=True)

            if os.path.isfile(destination):
                _clear_readonly(destination)

            shutil.copy2(source, destination)
            logging.info(f"Copy {source} to {destination}")
        except OSError as e:
            return self._fail('copy', destination, e)

        return True

    def delete_file(self, path: str) -> bool:
        """Delete a file. A file that is already gone counts as deleted."""
        if self.speculative:
            logging.info(f"Would delete {path}")
            return True

        try:
            # The listing cache may be out of date
            if not os.path.lexists(path):
                return True

            if not os.path.islink(path):
                _clear_readonly(path)

            os.remove(path)
            logging.info(f"Delete {path}")
        except OSError as e:
            return self._fail('delete file', path, e)

        return True

    def create_directory(self, path: str) -> bool:
        """Create a directory and any missing parents."""
        if self.speculative:
            logging.info(f"Would create {path}")
            return True

        try:
            os.makedirs(path, exist_ok=True)
            logging.info(f"Create {path}")
        except OSError as e:
            return self._fail('create directory', path, e)

        return True

    def delete_directory(self, path: str) -> bool:
        """Delete a directory and everything below it. A link to a directory is unlinked."""
        if self.speculative:
            logging.info(f"Would delete {path}")
            return True

        try:
            if os.path.islink(path):
                # Windows removes directory links with rmdir
                (os.rmdir if os.name == 'nt' else os.unlink)(path)
            elif sys.version_info >= (3, 12):
                shutil.rmtree(path, onexc=_rmtree_onerror)
            else:
                shutil.rmtree(path, onerror=_rmtree_onerror)
            logging.info(f"Delete {path}")
        except OSError as e:
            return self._fail('delete directory', path, e)

        return True
