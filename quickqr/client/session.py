"""Client-local state: the anonymous session identifier.

State is read once at startup and written when it changes. It sits behind a
tiny key/value interface so callers never touch files or globals directly.
The session identifier is self-reported and client-controlled; the server
treats it as an opaque correlation string, never as an identity.
"""

import json
import os
import uuid
from pathlib import Path
from typing import Protocol

SESSION_KEY = 'quickqr_session_id'
DEFAULT_STATE_FILE = Path.home() / '.quickqr' / 'state.json'


class KeyValueStore(Protocol):
    """Minimal persisted key/value capability."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    """Process-local store (tests, one-off runs)."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore:
    """Store persisted as a flat JSON object on disk.

    A missing or unreadable file behaves like an empty store; the file (and
    its directory) is created on the first write.
    """

    def __init__(self, path: Path | str | None = None):
        """Initialize file store.

        Args:
            path: State file (QUICKQR_STATE_FILE or ~/.quickqr/state.json if None)
        """
        if path is None:
            path = os.getenv('QUICKQR_STATE_FILE') or DEFAULT_STATE_FILE
        self.path = Path(path)
        self._data = self._read()

    def _read(self) -> dict[str, str]:
        try:
            data = json.loads(self.path.read_text(encoding='utf-8'))
        except (OSError, ValueError):
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + '.tmp')
        tmp_path.write_text(json.dumps(self._data, indent=2, sort_keys=True), encoding='utf-8')
        os.replace(tmp_path, self.path)


def load_session_id(store: KeyValueStore) -> str:
    """Return the stored session identifier, creating one on first use.

    Args:
        store: Where the identifier is persisted

    Returns:
        Existing identifier, or a freshly generated UUID4 string (persisted)
    """
    existing = store.get(SESSION_KEY)
    if existing:
        return existing

    session_id = str(uuid.uuid4())
    store.set(SESSION_KEY, session_id)
    return session_id
