"""
Vault Filesystem Module

The filesystem capability used by the sync runner and the plan executor.
Paths are vault-relative and always use forward slashes.
"""

import os
import shutil
from typing import List, Tuple


class FilesystemCapability:
    """Host filesystem operations needed by a sync run."""

    def exists(self, path: str) -> bool:
        raise NotImplementedError

    def list(self, path: str) -> Tuple[List[str], List[str]]:
        """Return ``(files, folders)`` below ``path``, recursively, vault-relative."""
        raise NotImplementedError

    def read(self, path: str) -> str:
        raise NotImplementedError

    def read_binary(self, path: str) -> bytes:
        raise NotImplementedError

    def write(self, path: str, content: str) -> None:
        raise NotImplementedError

    def write_binary(self, path: str, content: bytes) -> None:
        raise NotImplementedError

    def remove(self, path: str) -> None:
        raise NotImplementedError

    def create_folder(self, path: str) -> None:
        raise NotImplementedError


class LocalFilesystem(FilesystemCapability):
    """FilesystemCapability backed by a directory on disk."""

    def __init__(self, root: str):
        self.root = os.path.abspath(root)

    def _abs(self, path: str) -> str:
        full = os.path.abspath(os.path.join(self.root, *path.split("/")))
        if full != self.root and not full.startswith(self.root + os.sep):
            raise ValueError(f"路径越界: {path}")
        return full

    def _rel(self, full: str) -> str:
        return os.path.relpath(full, self.root).replace(os.sep, "/")

    def exists(self, path: str) -> bool:
        return os.path.exists(self._abs(path))

    def list(self, path: str) -> Tuple[List[str], List[str]]:
        base = self._abs(path)
        files: List[str] = []
        folders: List[str] = []
        if not os.path.isdir(base):
            return files, folders

        for dirpath, dirnames, filenames in os.walk(base):
            dirnames.sort()
            for d in dirnames:
                folders.append(self._rel(os.path.join(dirpath, d)))
            for f in sorted(filenames):
                files.append(self._rel(os.path.join(dirpath, f)))
        return files, folders

    def read(self, path: str) -> str:
        with open(self._abs(path), "r", encoding="utf-8") as f:
            return f.read()

    def read_binary(self, path: str) -> bytes:
        with open(self._abs(path), "rb") as f:
            return f.read()

    def write(self, path: str, content: str) -> None:
        # newline="" keeps the remote line endings byte for byte
        with open(self._abs(path), "w", encoding="utf-8", newline="") as f:
            f.write(content)

    def write_binary(self, path: str, content: bytes) -> None:
        with open(self._abs(path), "wb") as f:
            f.write(content)

    def remove(self, path: str) -> None:
        full = self._abs(path)
        if os.path.isdir(full):
            shutil.rmtree(full)
        else:
            os.remove(full)

    def create_folder(self, path: str) -> None:
        os.mkdir(self._abs(path))
