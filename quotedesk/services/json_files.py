from __future__ import annotations

import asyncio
import json
import os
import tempfile
import weakref
from pathlib import Path
from typing import Any

from quotedesk.errors import AppError

_file_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()


def file_lock(path: Path) -> asyncio.Lock:
    """Process-wide lock serializing load/mutate/save cycles on one file."""
    key = str(Path(path).resolve())
    lock = _file_locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _file_locks[key] = lock
    return lock


def read_json(path: Path, *, label: str) -> Any | None:
    """Load JSON from ``path``; a missing or blank file reads as ``None``."""
    if not path.exists():
        return None
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise AppError.persistence(f"Unable to read {label} from disk: {exc}") from exc

    if not content.strip():
        return None

    try:
        return json.loads(content)
    except json.JSONDecodeError as exc:
        raise AppError.persistence(f"Unable to parse {label} file: {exc}") from exc


def write_json_atomic(path: Path, payload: Any, *, label: str) -> None:
    """Write ``payload`` next to ``path`` and swap it in with ``os.replace``.

    Readers never observe a partially written file; if any step fails the
    previous file is left untouched.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise AppError.persistence(f"Unable to create {label} directory: {exc}") from exc

    try:
        text = json.dumps(payload, ensure_ascii=False, indent=2)
    except (TypeError, ValueError) as exc:
        raise AppError.persistence(f"Unable to serialize {label}: {exc}") from exc

    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    except OSError as exc:
        raise AppError.persistence(f"Unable to write {label} to disk: {exc}") from exc

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except OSError as exc:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise AppError.persistence(f"Unable to write {label} to disk: {exc}") from exc
