"""Storage initialization, path helpers, ids and timestamps."""

import json
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

_data_dir: Path | None = None


def init_storage(data_dir: Path) -> None:
    global _data_dir
    _data_dir = data_dir
    _data_dir.mkdir(parents=True, exist_ok=True)
    messages_dir().mkdir(exist_ok=True)
    preferences_dir().mkdir(exist_ok=True)


def data_dir() -> Path:
    assert _data_dir is not None, "Call init_storage() before using storage"
    return _data_dir


def messages_dir() -> Path:
    return data_dir() / "messages"


def preferences_dir() -> Path:
    return data_dir() / "preferences"


def safe_name(key: str) -> str:
    """Filesystem-safe file stem for a user or persona id.

    "user@example.com" → "user-example-com"
    """
    text = re.sub(r"[^A-Za-z0-9_-]+", "-", key).strip("-")
    return text or "unnamed"


def new_id() -> str:
    return uuid.uuid4().hex


def now() -> str:
    return datetime.now(timezone.utc).isoformat()


def read_json(path: Path, default: Any) -> Any:
    if not path.is_file():
        return default
    return json.loads(path.read_text())


def write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False))
