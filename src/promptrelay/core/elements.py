"""Element-map parsing for the analysis stage.

The chat model is asked for a bare JSON object but routinely wraps it in
prose ("Here is the JSON: ..."), code fences, or trailing notes.  This module
pulls the first JSON object out of such a reply and enforces the one rule the
pipeline guarantees downstream: ``subjects`` is a non-empty list of strings.

When that rule cannot be met from the reply, the raw prompt itself becomes
the only subject and :attr:`AnalysisResult.fallback_used` is set.  Parsing
never raises.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

# Categories the analysis instruction marks as "always present".  A fallback
# map carries them as explicit nulls so its shape matches a normal reply.
_CORE_CATEGORIES: tuple[str, ...] = ("setting", "activity", "clothing", "objects", "decor")

_DECODER = json.JSONDecoder()


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of the analysis stage.

    Attributes:
        elements: The element map.  ``elements["subjects"]`` is always a
            non-empty list of strings.
        fallback_used: ``True`` when the reply could not supply valid
            subjects and the raw prompt was substituted.
    """

    elements: dict[str, Any]
    fallback_used: bool = False


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Return the first JSON object embedded in *text*, or ``None``.

    Every ``{`` is tried in order as the start of a JSON value; the first one
    that decodes to a dict wins.  Whatever follows the object is ignored.

    Args:
        text: Free-text model reply.

    Returns:
        The decoded dict, or ``None`` if no position yields one.
    """
    start = text.find("{")
    while start != -1:
        try:
            value, _ = _DECODER.raw_decode(text, start)
        except json.JSONDecodeError:
            pass
        else:
            if isinstance(value, dict):
                return value
        start = text.find("{", start + 1)
    return None


def has_valid_subjects(elements: dict[str, Any]) -> bool:
    """Return ``True`` if ``subjects`` is a non-empty list of non-blank strings."""
    subjects = elements.get("subjects")
    if not isinstance(subjects, list) or not subjects:
        return False
    return all(isinstance(s, str) and s.strip() for s in subjects)


def parse_analysis(reply: str, prompt: str) -> AnalysisResult:
    """Build an :class:`AnalysisResult` from a raw analysis reply.

    Args:
        reply: Text returned by the chat model.
        prompt: The user's original prompt, used as the fallback subject.

    Returns:
        The parsed element map untouched when it is valid.  Otherwise a map
        whose ``subjects`` is ``[prompt]``: other parsed keys are kept when
        the reply decoded, and the core categories are null when it did not.
    """
    parsed = extract_json_object(reply)

    if parsed is None:
        logger.warning("Analysis reply held no JSON object; falling back to raw prompt.")
        elements: dict[str, Any] = {"subjects": [prompt]}
        elements.update(dict.fromkeys(_CORE_CATEGORIES))
        return AnalysisResult(elements=elements, fallback_used=True)

    if not has_valid_subjects(parsed):
        logger.warning(
            "Analysis reply had invalid subjects (%r); falling back to raw prompt.",
            parsed.get("subjects"),
        )
        return AnalysisResult(elements={**parsed, "subjects": [prompt]}, fallback_used=True)

    return AnalysisResult(elements=parsed)
