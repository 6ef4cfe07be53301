"""Content rules: which assets are content, and how content is compared and merged."""

from __future__ import annotations

import json
from typing import Any

from loguru import logger

SETTINGS_DATA_KEY = "config/settings_data.json"

# Assets that hold merchant content rather than theme code
CONTENT_PREFIXES: tuple[str, ...] = (SETTINGS_DATA_KEY, "sections/", "templates/")

# Fields of settings_data.json that carry content; everything else is theme settings
SETTINGS_CONTENT_FIELDS: tuple[str, ...] = ("current", "sections", "content_for_index")


def is_json_key(key: str) -> bool:
    return key.rsplit("/", 1)[-1].endswith(".json")


def is_content_key(key: str) -> bool:
    """Return True if the asset is a JSON content document.

    Content documents are the global settings data plus JSON section and
    template definitions, including nested ones such as
    ``templates/customers/account.json``.
    """
    return key.startswith(CONTENT_PREFIXES) and is_json_key(key)


def canonical_json(value: str) -> str:
    """Re-serialize a JSON document compactly so formatting does not matter.

    Raises:
        json.JSONDecodeError: If the value is not valid JSON.
    """
    return json.dumps(json.loads(value), separators=(",", ":"), ensure_ascii=False)


def contents_equal(key: str, source: str | None, target: str | None) -> bool:
    """Compare two asset bodies.

    JSON assets are compared by parsed structure, ignoring whitespace and
    indentation. If either side fails to parse, or the key is not JSON, the
    raw strings are compared.
    """
    if is_json_key(key) and source is not None and target is not None:
        try:
            return canonical_json(source) == canonical_json(target)
        except json.JSONDecodeError:
            logger.debug("JSON parse failed, comparing as strings", extra={"key": key})
    return source == target


def pretty_content(key: str, value: str | None) -> str | None:
    """Pretty-print a JSON asset with 2-space indentation, or return it unchanged."""
    if value is None or not is_json_key(key):
        return value
    try:
        return json.dumps(json.loads(value), indent=2, ensure_ascii=False)
    except json.JSONDecodeError:
        return value


def merge_settings_data(source: str, target: str) -> str | None:
    """Merge the content fields of a source settings document into the target.

    The result keeps every top-level field of the target and takes
    ``current``, ``sections`` and ``content_for_index`` from the source
    when the source has them.

    Returns:
        The merged document serialized with 2-space indentation, or None if
        either side is not a JSON object.
    """
    try:
        source_data = json.loads(source)
        target_data = json.loads(target)
    except json.JSONDecodeError:
        return None
    if not isinstance(source_data, dict) or not isinstance(target_data, dict):
        return None

    merged: dict[str, Any] = dict(target_data)
    for name in SETTINGS_CONTENT_FIELDS:
        if source_data.get(name) is not None:
            merged[name] = source_data[name]
    return json.dumps(merged, indent=2, ensure_ascii=False)
