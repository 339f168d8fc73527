"""Turns an uploaded file into the user turn that gets folded into a session.

Three branches, evaluated in order:

1. no usable text (absent, blank, undecodable or binary): describe the file
   only and ask for high-level guidance;
2. text within ``settings.upload_max_chars``: embed it verbatim and in full;
3. text over budget: embed the first and last half-budget characters and tell
   the model how many characters were cut from the middle.

Every branch names the file, its declared type and a human-readable size so
the model can reason about provenance even when content is missing.
"""

import logging
from enum import Enum

from chatrelay.core.config import settings
from chatrelay.core.exceptions import ConfigurationError
from chatrelay.models.chat_models import UploadArtifact
from chatrelay.services.prompts import render_prompt

__all__ = [
    "UploadBranch",
    "build_upload_message",
    "classify_upload",
    "human_size",
]

logger = logging.getLogger(__name__)

DEFAULT_REFACTOR_INSTRUCTIONS = "Refactor and improve this code. Fix bugs and improve structure."
DEFAULT_DESCRIBE_INSTRUCTIONS = "High-level refactor strategy for this codebase."


class UploadBranch(str, Enum):
    DESCRIBE_ONLY = "describe_only"
    FULL = "full"
    TRUNCATED = "truncated"


def human_size(size: float | None) -> str:
    if size is None:
        return "unknown size"
    return f"{size / 1024:.1f} KB"


def _usable_text(raw: str | bytes | None) -> str | None:
    """Return the artifact content as text, or None when there is nothing readable."""
    if raw is None:
        return None
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return None
    if not raw.strip() or "\x00" in raw:
        return None
    return raw


def _resolve_budget(max_chars: int | None) -> int:
    if max_chars is None:
        return settings.upload_max_chars
    if max_chars <= 0 or max_chars % 2:
        raise ConfigurationError(f"Upload budget must be a positive even number, got {max_chars}")
    return max_chars


def classify_upload(artifact: UploadArtifact, max_chars: int | None = None) -> UploadBranch:
    budget = _resolve_budget(max_chars)
    text = _usable_text(artifact.raw_content)
    if text is None:
        return UploadBranch.DESCRIBE_ONLY
    if len(text) <= budget:
        return UploadBranch.FULL
    return UploadBranch.TRUNCATED


def build_upload_message(artifact: UploadArtifact, max_chars: int | None = None) -> str:
    """Build the instruction text describing `artifact` for the model.

    Args:
        artifact: The uploaded file as received at the HTTP boundary.
        max_chars: Character budget; defaults to ``settings.upload_max_chars``.
            Must be positive and even since it splits into head and tail halves.

    Returns:
        A self-describing user message ready to append to a session.

    Raises:
        ConfigurationError: when `max_chars` is not a positive even number.
    """
    budget = _resolve_budget(max_chars)
    branch = classify_upload(artifact, budget)
    common = {
        "file_name": artifact.name,
        "file_type": artifact.declared_type or "unknown",
        "human_size": human_size(artifact.declared_size),
    }

    if branch is UploadBranch.DESCRIBE_ONLY:
        logger.info("Upload %s has no usable text; asking for high-level guidance only", artifact.name)
        return render_prompt(
            "upload_describe_only.jinja2",
            instructions=artifact.user_instructions or DEFAULT_DESCRIBE_INSTRUCTIONS,
            **common,
        )

    text = _usable_text(artifact.raw_content)
    instructions = artifact.user_instructions or DEFAULT_REFACTOR_INSTRUCTIONS

    if branch is UploadBranch.FULL:
        logger.debug("Upload %s embedded in full (%d chars)", artifact.name, len(text))
        return render_prompt("upload_full.jinja2", content=text, instructions=instructions, **common)

    half = budget // 2
    omitted = len(text) - budget
    logger.warning(
        "Upload %s exceeds budget (%d > %d chars); keeping head and tail, omitting %d",
        artifact.name,
        len(text),
        budget,
        omitted,
    )
    return render_prompt(
        "upload_truncated.jinja2",
        head=text[:half],
        tail=text[-half:],
        original_length=len(text),
        omitted=omitted,
        instructions=instructions,
        **common,
    )
