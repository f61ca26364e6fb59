from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)


def load_json_config(path: Path) -> Dict[str, Any]:
    """Load a JSON config file or raise a helpful error.

    Args:
        path: Path to the JSON configuration file.

    Returns:
        Parsed JSON data as a dictionary.

    Raises:
        FileNotFoundError: If the file does not exist.
        SystemExit: If JSON is invalid or not an object, with a friendly message.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        msg = (
            f"\nERROR: Your config is not valid JSON.\n"
            f"File: {path}\n"
            f"Line {e.lineno}, Col {e.colno}\n"
            f"{e.msg}\n"
        )
        raise SystemExit(msg)
    if not isinstance(data, dict):
        raise SystemExit(f"\nERROR: Config root must be a JSON object.\nFile: {path}\n")
    logger.debug("loaded config %s", path)
    return data


def write_json(path: Path, payload: Any) -> Path:
    """Write payload as indented UTF-8 JSON, creating parent folders."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return path
