"""
Active-version record persistence — atomic read/write of active.json.

Writes are atomic (write to temp file, then rename).  A missing or
unreadable record reads as None: the record only describes the active
slot, it never gates using it.
"""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

from terrable.core.models.active import ActiveRecord

logger = logging.getLogger(__name__)

ACTIVE_STATE_FILE = "active.json"


def active_state_path(root: Path) -> Path:
    return root / ACTIVE_STATE_FILE


def load_active(path: Path) -> ActiveRecord | None:
    """Load the active record, or None if there is none to read."""
    if not path.is_file():
        logger.debug("No active record at %s", path)
        return None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return ActiveRecord.model_validate(data)
    except json.JSONDecodeError as e:
        logger.warning("Corrupt active record %s: %s — ignoring", path, e)
        return None
    except Exception as e:
        logger.warning("Cannot load active record from %s: %s — ignoring", path, e)
        return None


def save_active(record: ActiveRecord, path: Path) -> None:
    """Save the active record to ``path`` (atomic write)."""
    path.parent.mkdir(parents=True, exist_ok=True)

    content = json.dumps(record.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n"

    _fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".active_", suffix=".json.tmp")
    tmp = Path(tmp_path)
    try:
        with open(_fd, "w", encoding="utf-8") as f:
            f.write(content)
        tmp.replace(path)
        logger.debug("Active record saved to %s", path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise
