"""Session Storage - Durable client-local key/value store for the session"""
import json
import os
import tempfile
from typing import Dict, Optional

from ..domain.errors import StorageUnavailableError
from ..utils.logger import get_logger

logger = get_logger(__name__)

AUTH_USER_KEY = "auth_user"
AUTH_IMPERSONATION_KEY = "auth_impersonation"
AUTH_TOKEN_KEY = "auth_token"

SESSION_KEYS = (AUTH_USER_KEY, AUTH_IMPERSONATION_KEY, AUTH_TOKEN_KEY)


class SessionStorage:
    """
    String key/value storage used to survive restarts.

    Implementations raise StorageUnavailableError on I/O failure.
    """

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class MemorySessionStorage(SessionStorage):
    """In-process storage (tests, embedding)"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> Dict[str, str]:
        return dict(self._data)


class FileSessionStorage(SessionStorage):
    """
    One JSON object on disk holding every key.

    Writes go to a temp file in the same directory and are moved into place
    with os.replace, so a crash never leaves a half-written file. A file
    that is not a JSON object reads as empty.
    """

    def __init__(self, path: str):
        self.path = path

    def _load(self) -> Dict[str, str]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError:
            logger.warning(f"Session file {self.path} is not valid JSON, treating as empty")
            return {}
        except OSError as e:
            raise StorageUnavailableError(f"Cannot read session file: {e}", details={"path": self.path})

        if not isinstance(data, dict):
            logger.warning(f"Session file {self.path} does not hold an object, treating as empty")
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _save(self, data: Dict[str, str]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".session-", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StorageUnavailableError(f"Cannot write session file: {e}", details={"path": self.path})

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)
