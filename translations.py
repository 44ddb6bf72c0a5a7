"""Load translation files into key sets."""

import json
import logging
from pathlib import Path
from typing import Any, Mapping

from errors import FilesystemError, ParseError

logger = logging.getLogger(__name__)


def _flatten(mapping: Mapping[str, Any], prefix: str = "") -> set[str]:
    keys: set[str] = set()
    for key, value in mapping.items():
        compound = f"{prefix}.{key}" if prefix else key
        if isinstance(value, Mapping) and value:
            keys.update(_flatten(value, compound))
        else:
            keys.add(compound)
    return keys


def load_key_set(path: Path, flatten: bool = False) -> frozenset[str]:
    """Return the keys defined in the JSON translation file at *path*.

    Only top-level keys are returned unless *flatten* is set, in which case
    nested objects contribute dotted leaf paths such as ``greeting.hello``.
    """

    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise FilesystemError(f"Cannot read translation file: {e}", path=path) from e

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ParseError(
            f"Invalid JSON: {e.msg}", path=path, line=e.lineno, column=e.colno
        ) from e

    if not isinstance(data, dict):
        raise ParseError("Failed to extract keys. JSON object expected.", path=path)

    keys = _flatten(data) if flatten else set(data)
    logger.info("Loaded %s keys from %s", len(keys), path)
    return frozenset(keys)
