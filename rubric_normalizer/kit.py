"""
Interview-kit documents as produced by the generation and customization flows.

Generation responses carry `scoringRubric: [{criterion, weight}]`,
customization responses carry `rubricCriteria: [{name, weight}]`.
"""

from __future__ import annotations

import copy
import json
import logging
import re
from typing import Any, Dict, List, Tuple

from charset_normalizer import from_bytes

from .normalize import normalize_with_report
from .rules import DEFAULT_MISSING_WEIGHT, LABEL_KEYS, RUBRIC_KEYS, UNNAMED_CRITERION

logger = logging.getLogger(__name__)

_TRAILING_COMMA = re.compile(r",\s*([\]\}])")


class KitFormatError(ValueError):
    """The document cannot be read as an interview kit with a rubric."""


def _reject_constant(name: str) -> Any:
    raise KitFormatError(f"Kit document contains {name}, which is not valid JSON")


def decode_kit_bytes(raw: bytes) -> str:
    """
    Decode uploaded bytes to text.

    Rules:
    - Detect encoding best-effort via charset-normalizer.
    - A UTF-8 BOM is dropped.
    - If decode fails, fall back to UTF-8 with replacement characters.
    """
    match = from_bytes(raw).best()
    decode_used = match.encoding if match is not None else "utf-8"
    if raw.startswith(b"\xef\xbb\xbf") and decode_used.lower().replace("-", "_") in ("utf_8", "utf8"):
        decode_used = "utf-8-sig"

    try:
        return raw.decode(decode_used)
    except (UnicodeDecodeError, LookupError):
        logger.warning("Could not decode kit as %s, falling back to utf-8 with replacement", decode_used)
        return raw.decode("utf-8", errors="replace")


def load_kit_bytes(raw: bytes) -> Dict[str, Any]:
    text = decode_kit_bytes(raw).lstrip("\ufeff").strip()
    if not text:
        raise KitFormatError("Kit document is empty")

    # models regularly leave trailing commas behind
    text = _TRAILING_COMMA.sub(r"\1", text)
    try:
        data = json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise KitFormatError(f"Kit document is not valid JSON: {exc.msg} (line {exc.lineno})") from exc

    if not isinstance(data, dict):
        raise KitFormatError("Kit document must be a JSON object")
    return data


def extract_rubric(document: Dict[str, Any]) -> Tuple[str, List[Tuple[str, Any]]]:
    """
    Find the rubric list in a kit document.

    Returns (rubric_key, [(label, raw_weight), ...]). Entries that are not
    objects are skipped; blank or missing labels become UNNAMED_CRITERION.
    A null rubric reads as an empty one.
    """
    for key in RUBRIC_KEYS:
        if key in document:
            break
    else:
        raise KitFormatError(f"Kit document has no rubric (expected one of: {', '.join(RUBRIC_KEYS)})")

    entries = document[key]
    if entries is None:
        entries = []
    if not isinstance(entries, list):
        raise KitFormatError(f"'{key}' must be a list")

    label_key = LABEL_KEYS[key]
    criteria = []
    for entry in entries:
        if not isinstance(entry, dict):
            logger.debug("Skipping non-object rubric entry: %r", entry)
            continue
        label = entry.get(label_key)
        if not isinstance(label, str) or not label.strip():
            label = UNNAMED_CRITERION
        criteria.append((label, entry.get("weight")))
    return key, criteria


def normalize_kit(
    document: Dict[str, Any],
    default_weight: Any = DEFAULT_MISSING_WEIGHT,
) -> Tuple[str, Dict[str, Any], Dict[str, Any]]:
    """
    Return (rubric_key, kit, report) where kit is a copy of the document
    whose rubric carries normalized weights (non-object entries dropped).
    Competencies and any other fields are passed through untouched.
    """
    key, criteria = extract_rubric(document)
    normalized, report = normalize_with_report(criteria, default_weight)

    kit = copy.deepcopy(document)
    label_key = LABEL_KEYS[key]
    entries = [dict(e) for e in kit[key] or [] if isinstance(e, dict)]
    for entry, (label, weight) in zip(entries, normalized):
        entry[label_key] = label
        entry["weight"] = weight
    kit[key] = entries

    logger.info("Normalized %d %s criteria (fallback=%s)", len(entries), key, report["summary"]["fallback"])
    return key, kit, report
