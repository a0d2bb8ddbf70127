"""
Local state for the Cues CLI.
Keeps the active project and token expiry in config.json, and the
access/refresh tokens in a private credentials file.
"""
import json
import logging
import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional

from config.settings import CONFIG_FILE, CREDENTIALS_FILE

logger = logging.getLogger(__name__)


@dataclass
class CuesConfig:
    """Contents of config.json."""
    current_project: str = ""
    current_project_id: int = 0
    expires_at: str = ""

    @property
    def has_active_project(self) -> bool:
        return self.current_project_id != 0


def load_config(path: Optional[Path] = None) -> Optional[CuesConfig]:
    """Load config.json, or None if it's missing or unreadable."""
    path = Path(path or CONFIG_FILE)
    if not path.exists():
        return None

    try:
        with open(path) as f:
            data = json.load(f)
        return CuesConfig(
            current_project=data.get("current_project", ""),
            current_project_id=int(data.get("current_project_id", 0)),
            expires_at=data.get("expires_at", ""),
        )
    except (json.JSONDecodeError, OSError, TypeError, ValueError, AttributeError) as e:
        logger.warning(f"Ignoring unreadable config {path}: {e}")
        return None


def save_config(config: CuesConfig, path: Optional[Path] = None) -> Path:
    """Write config.json, creating its directory if needed."""
    path = Path(path or CONFIG_FILE)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(asdict(config), f, indent=2)
    logger.debug(f"Saved config to {path}")
    return path


class TokenStore:
    """Stores named secrets in a JSON file readable only by the owner."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path or CREDENTIALS_FILE)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Ignoring unreadable credentials {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            json.dump(data, f, indent=2)

    def get(self, name: str) -> Optional[str]:
        return self._read().get(name) or None

    def set(self, name: str, value: str):
        data = self._read()
        data[name] = value
        self._write(data)

    def delete(self, name: str) -> bool:
        """Remove a secret. Returns False if it wasn't stored."""
        data = self._read()
        if name not in data:
            return False
        del data[name]
        self._write(data)
        return True
