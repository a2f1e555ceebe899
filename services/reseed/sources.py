"""
Source File Loading

Vendor exports are JSON arrays of loosely shaped objects. Reading and
parsing fail with distinct errors so the orchestrator can skip missing
files but stop on malformed ones.
"""

import json
import logging
from pathlib import Path
from typing import List, Any

from .errors import SourceReadError, SourceParseError

logger = logging.getLogger(__name__)


def load_source(path) -> List[Any]:
    """
    Read a vendor export.

    Returns the raw array entries unchanged; entries that are not objects
    are left for the caller to count as record errors.

    Raises:
        SourceReadError: file missing or unreadable
        SourceParseError: invalid JSON or top level not an array
    """
    path = Path(path)
    try:
        text = path.read_text(encoding='utf-8-sig')
    except (OSError, UnicodeDecodeError) as e:
        raise SourceReadError(path, e) from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SourceParseError(path, f"invalid JSON at line {e.lineno}: {e.msg}") from e

    if not isinstance(data, list):
        raise SourceParseError(path, f"expected a JSON array, got {type(data).__name__}")

    logger.info(f"Loaded {len(data)} records from {path.name}")
    return data
