# src/taskboard/storage/jsonfile.py

from __future__ import annotations

"""
Small private JSON files under the data dir (identity.json, Matrix session.json).

Writes go through a temp file + os.replace so a crash never leaves a
half-written file, and the result is readable by the owner only.
"""

import json
import os
from pathlib import Path
from typing import Any


def read_json_object(path: Path) -> dict[str, Any]:
    val = json.loads(path.read_text("utf-8"))
    if isinstance(val, dict):
        return val
    raise ValueError(f"{path.name}: expected a JSON object")


def write_json_private(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(data, ensure_ascii=False), "utf-8")
    os.replace(tmp, path)
    try:
        os.chmod(path, 0o600)
    except OSError:
        # Not supported on every filesystem (Windows, some mounts).
        pass
