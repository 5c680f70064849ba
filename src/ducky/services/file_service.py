"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/file_service.py
Filesystem mutations used by the action executor: delete, move to trash,
and replace-with-hardlink. Nothing else in the package removes or links files.
"""
import logging
import os
import uuid
from pathlib import Path

from send2trash import send2trash

logger = logging.getLogger(__name__)

TEMP_LINK_SUFFIX = ".ducky-link.tmp"


class FileService:
    """
    Guarded file operations. Every method either completes or raises OSError
    leaving the original file in place.
    """

    @staticmethod
    def remove_file(file_path: str) -> None:
        """Permanently removes a file."""
        os.remove(file_path)
        logger.info(f"Deleted {file_path}")

    @staticmethod
    def move_to_trash(file_path: str) -> None:
        """Moves a file to the system trash."""
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        send2trash(str(path))
        logger.info(f"Moved to trash {file_path}")

    @staticmethod
    def replace_with_hardlink(target_path: str, file_path: str) -> None:
        """
        Replace `file_path` with a hard link to `target_path`.

        Order of operations:
          1. link target under a temporary name next to file_path
          2. verify the temporary name points at target's inode
          3. os.replace() the temporary name over file_path (atomic)
        If any step fails the temporary link is removed and file_path is untouched,
        so the data always has at least one name.
        """
        directory, name = os.path.split(file_path)
        tmp_path = os.path.join(directory, f".{name}.{uuid.uuid4().hex[:8]}{TEMP_LINK_SUFFIX}")

        os.link(target_path, tmp_path)
        try:
            target_st = os.stat(target_path)
            tmp_st = os.lstat(tmp_path)
            if (tmp_st.st_dev, tmp_st.st_ino) != (target_st.st_dev, target_st.st_ino):
                raise OSError(f"Temporary link {tmp_path} does not point at {target_path}")
            os.replace(tmp_path, file_path)
        except OSError:
            FileService._discard(tmp_path)
            raise
        logger.info(f"Linked {file_path} -> {target_path}")

    @staticmethod
    def identity(file_path: str):
        """(device, inode, size) of the file a path resolves to."""
        st = os.stat(file_path)
        return st.st_dev, st.st_ino, st.st_size

    @staticmethod
    def _discard(tmp_path: str) -> None:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Failed to remove temporary link {tmp_path}: {e}")
