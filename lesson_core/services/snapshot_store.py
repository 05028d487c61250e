import logging
import os
import re
from typing import Dict, Optional, Protocol
from pydantic import ValidationError
from ..models import PersistedSnapshot

logger = logging.getLogger("lesson_core")

SNAPSHOT_KEY_PREFIX = "mcq_progress_"

def snapshot_key(content_id: str) -> str:
    return f"{SNAPSHOT_KEY_PREFIX}{content_id}"

def _decode(key: str, raw: Optional[str]) -> Optional[PersistedSnapshot]:
    if raw is None:
        return None
    try:
        return PersistedSnapshot.model_validate_json(raw)
    except ValidationError:
        logger.warning({"event": "snapshot_corrupt", "key": key})
        return None

class SnapshotStore(Protocol):
    def get(self, key: str) -> Optional[PersistedSnapshot]: ...
    def put(self, key: str, snapshot: PersistedSnapshot) -> None: ...
    def delete(self, key: str) -> None: ...

class InMemorySnapshotStore:
    """Keeps serialized snapshots in a dict, the same shape a key-value medium would hold."""

    def __init__(self) -> None:
        self.values: Dict[str, str] = {}

    def get(self, key: str) -> Optional[PersistedSnapshot]:
        return _decode(key, self.values.get(key))

    def put(self, key: str, snapshot: PersistedSnapshot) -> None:
        self.values[key] = snapshot.model_dump_json()

    def delete(self, key: str) -> None:
        self.values.pop(key, None)

class JsonFileSnapshotStore:
    """One JSON file per key under a directory."""

    def __init__(self, directory: str) -> None:
        self.directory = os.path.abspath(directory)
        os.makedirs(self.directory, exist_ok=True)

    def _path(self, key: str) -> str:
        safe = re.sub(r"[^A-Za-z0-9_-]", "_", key)
        return os.path.join(self.directory, f"{safe}.json")

    def get(self, key: str) -> Optional[PersistedSnapshot]:
        path = self._path(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = f.read()
        except (OSError, UnicodeDecodeError):
            logger.exception({"event": "snapshot_read_failed", "key": key})
            return None
        return _decode(key, raw)

    def put(self, key: str, snapshot: PersistedSnapshot) -> None:
        path = self._path(key)
        tmp_path = path + ".tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(snapshot.model_dump_json())
            os.replace(tmp_path, path)
        except OSError:
            logger.exception({"event": "snapshot_write_failed", "key": key})
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)

    def delete(self, key: str) -> None:
        try:
            os.remove(self._path(key))
        except FileNotFoundError:
            pass
        except OSError:
            logger.exception({"event": "snapshot_delete_failed", "key": key})
