from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path

from tasklist.errors import InvalidStorageKeyError, PersistenceError
from tasklist.observability import get_json_logger

from .interface import KeyValueStorage

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileStorage(KeyValueStorage):
    """Directory-backed storage: one UTF-8 file per key.

    - get_item: reads ``{root}/{key}.json``; a missing file means a missing key.
      Undecodable bytes are replaced so a damaged slot loads as unparseable text
    - set_item: writes a temp file in the same directory then ``os.replace``s it,
      so readers never observe a half-written slot
    - remove_item: unlinks the file if present
    """

    def __init__(self, root: str | os.PathLike[str]) -> None:
        self._root = Path(root).expanduser()
        self._logger = get_json_logger("tasklist.storage")

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, key: str) -> Path:
        if not _KEY_RE.match(key) or key in {".", ".."}:
            raise InvalidStorageKeyError(key)
        return self._root / f"{key}.json"

    def get_item(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise PersistenceError(f"failed to read {path}: {exc}") from exc

    def set_item(self, key: str, value: str) -> None:
        path = self.path_for(key)
        tmp_name: str | None = None
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._root,
                prefix=f".{key}.",
                suffix=".tmp",
                delete=False,
            ) as fh:
                tmp_name = fh.name
                fh.write(value)
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as exc:
            raise PersistenceError(f"failed to write {path}: {exc}") from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    self._logger.warning(
                        "stale temp file left behind",
                        extra={"event": "storage_tmp_leak", "storage_key": key},
                    )
        self._logger.debug(
            "slot written",
            extra={"event": "storage_write", "storage_key": key, "metadata": {"bytes": len(value)}},
        )

    def remove_item(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceError(f"failed to remove {path}: {exc}") from exc


__all__ = ["FileStorage"]
