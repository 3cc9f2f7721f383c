"""Mini README: JSON document helpers for flat-file persistence.

Keeping file handling here avoids importing the web framework when the
stores are used from the CLI or from unit tests.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Mapping


def read_json_document(path: Path) -> Dict[str, Any]:
    """Return the decoded document, or an empty dict for missing/empty files."""

    if not path.exists():
        return {}
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        document = json.loads(text)
    except json.JSONDecodeError as error:
        raise ValueError(f"{path} does not contain valid JSON") from error
    if not isinstance(document, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return document


def write_json_atomic(path: Path, document: Mapping[str, Any]) -> None:
    """Serialise ``document`` next to ``path`` then atomically replace it."""

    path.parent.mkdir(parents=True, exist_ok=True)
    handle, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(handle, "w", encoding="utf-8") as stream:
            json.dump(document, stream, indent=2, sort_keys=True)
        os.replace(temp_name, path)
    except BaseException:
        if os.path.exists(temp_name):
            os.unlink(temp_name)
        raise
