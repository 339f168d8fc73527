"""Flatten result envelopes from either model tier into plain text.

Envelopes are classified by which fields they carry, then read through the
matching variant:

- ``OUTPUT_ITEMS``: Responses API style, ``output`` is a list of items with
  nested ``content`` parts;
- ``OUTPUT_TEXT``: a single convenience ``output_text`` string;
- ``CHAT_CHOICES``: Chat Completions style ``choices[0].message.content``;
- ``UNRECOGNIZED``: anything else, which normalizes to ``""``.

Fields are read the same way from SDK objects and from plain dicts.
"""

import logging
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

_MISSING = object()

# Keys under which a content part may carry its text, in lookup order.
_PART_TEXT_KEYS = ("text", "output_text", "content")

# Output items that never hold user-facing text.
_SKIPPED_ITEM_TYPES = {"reasoning"}


class ResponseShape(str, Enum):
    OUTPUT_ITEMS = "output_items"
    OUTPUT_TEXT = "output_text"
    CHAT_CHOICES = "chat_choices"
    UNRECOGNIZED = "unrecognized"


def _field(obj: Any, key: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(key, _MISSING)
    return getattr(obj, key, _MISSING)


def classify(raw: Any) -> ResponseShape:
    if raw is None:
        return ResponseShape.UNRECOGNIZED
    if isinstance(_field(raw, "output"), list):
        return ResponseShape.OUTPUT_ITEMS
    if isinstance(_field(raw, "output_text"), str):
        return ResponseShape.OUTPUT_TEXT
    if isinstance(_field(raw, "choices"), list):
        return ResponseShape.CHAT_CHOICES
    return ResponseShape.UNRECOGNIZED


def _part_text(part: Any) -> str:
    if isinstance(part, str):
        return part
    for key in _PART_TEXT_KEYS:
        value = _field(part, key)
        if isinstance(value, str):
            return value
        if key == "text" and value is not _MISSING and value is not None:
            # Annotated text objects carry the string under `value`
            nested = _field(value, "value")
            if isinstance(nested, str):
                return nested
    return ""


def _from_output_items(items: list[Any]) -> str:
    chunks: list[str] = []
    for item in items:
        if _field(item, "type") in _SKIPPED_ITEM_TYPES:
            continue
        content = _field(item, "content")
        if isinstance(content, str):
            chunks.append(content)
        elif isinstance(content, list):
            chunks.extend(_part_text(part) for part in content)
    return "".join(chunks)


def _from_chat_choices(choices: list[Any]) -> str:
    if not choices:
        return ""
    message = _field(choices[0], "message")
    if message is _MISSING or message is None:
        return ""
    content = _field(message, "content")
    return content if isinstance(content, str) else ""


def extract_text(raw: Any) -> str:
    """Return the flat text payload of `raw`, or ``""`` when there is none.

    Order follows the source arrays; nothing is reordered or deduplicated.
    Never raises on an unexpected shape.
    """
    shape = classify(raw)
    if shape is ResponseShape.OUTPUT_ITEMS:
        return _from_output_items(_field(raw, "output"))
    if shape is ResponseShape.OUTPUT_TEXT:
        return _field(raw, "output_text")
    if shape is ResponseShape.CHAT_CHOICES:
        return _from_chat_choices(_field(raw, "choices"))
    logger.debug("Unrecognized response envelope of type %s", type(raw).__name__)
    return ""
