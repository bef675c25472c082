from __future__ import annotations

import io
import json
import os
import tempfile
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional

from recipe_flow.config import Settings
from recipe_flow.core.models import RecipeEvent
from recipe_flow.services.exceptions import RepoError
from recipe_flow.services.repo.base import EventRepo, KeyValueStore

# Cross-platform file lock (fcntl for *nix; msvcrt for Windows)
@contextmanager
def _locked(path: str) -> Iterator[io.FileIO]:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    f = open(path, "a+b")  # create if missing
    locker = None
    try:
        try:
            import fcntl  # type: ignore
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            locker = "fcntl"
        except ImportError:
            try:
                import msvcrt  # type: ignore
                msvcrt.locking(f.fileno(), msvcrt.LK_LOCK, 1)
                locker = "msvcrt"
            except Exception as e:
                raise RepoError(f"Could not lock file {path}: {e}") from e
        yield f
    finally:
        try:
            if locker == "fcntl":
                import fcntl  # type: ignore
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
            elif locker == "msvcrt":
                import msvcrt  # type: ignore
                msvcrt.locking(f.fileno(), msvcrt.LK_UNLCK, 1)
        except OSError:
            pass
        f.close()


def _atomic_write(path: str, data: bytes) -> None:
    d = os.path.dirname(path) or "."
    os.makedirs(d, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=".tmp-", dir=d)
    try:
        with os.fdopen(fd, "wb") as w:
            w.write(data)
            w.flush()
            os.fsync(w.fileno())
        os.replace(tmp, path)
    except Exception as e:
        try:
            os.remove(tmp)
        except OSError:
            pass
        raise RepoError(f"Atomic write failed for {path}: {e}") from e


class JSONFileStore(KeyValueStore):
    """
    Local-storage namespace persisted as one JSON object file: {key: string value}.

    Every write is a locked read-modify-write followed by an atomic replace, so a
    crash mid-write leaves the previous file intact. The lock lives in a sidecar
    file because the data file's inode changes on each replace.
    """

    def __init__(self, settings: Settings):
        self.path = settings.store_file
        self._lock_path = self.path + ".lock"

    def _load_unlocked(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "rb") as f:
                raw = f.read() or b"{}"
            obj = json.loads(raw.decode("utf-8"))
        except (OSError, ValueError) as e:
            raise RepoError(f"Failed to load store from {self.path}: {e}") from e
        if not isinstance(obj, dict):
            raise RepoError(f"Store file {self.path} does not hold a JSON object")
        return {str(k): v for k, v in obj.items() if isinstance(v, str)}

    def _update(self, mutate: Callable[[Dict[str, str]], None]) -> None:
        try:
            with _locked(self._lock_path):
                data = self._load_unlocked()
                mutate(data)
                payload = json.dumps(data, ensure_ascii=False, indent=2).encode("utf-8")
                _atomic_write(self.path, payload)
        except OSError as e:
            raise RepoError(f"Failed to write store {self.path}: {e}") from e

    def get(self, key: str) -> Optional[str]:
        try:
            with _locked(self._lock_path):
                return self._load_unlocked().get(key)
        except OSError as e:
            raise RepoError(f"Failed to read store {self.path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        self._update(lambda data: data.__setitem__(key, value))

    def remove(self, key: str) -> None:
        self._update(lambda data: data.pop(key, None))


class JSONEventRepo(EventRepo):
    def __init__(self, settings: Settings):
        self.path = settings.events_file

    def append(self, event: RecipeEvent) -> None:
        try:
            line = (json.dumps(event.model_dump(mode="json"), ensure_ascii=False, separators=(",", ":")) + "\n").encode("utf-8")
            with _locked(self.path) as f:
                f.seek(0, os.SEEK_END)
                f.write(line)
                f.flush()
                os.fsync(f.fileno())
        except (OSError, TypeError, ValueError) as e:
            raise RepoError(f"Failed to append event to {self.path}: {e}") from e
