# =============================================================================
# Safe Parser — Typed Results from Free-Form LLM Text
# =============================================================================
#
# Every LLM response passes through safe_parse() before it is used. The
# parser never raises: on any malformed input it logs a warning and
# returns the caller's fallback unchanged.
#
# DECODING STEPS:
#   1. Strip whitespace and ```json / ``` fences
#   2. json.loads() the cleaned text (too-deep nesting counts as undecodable)
#   3. If that fails, decode the first embedded {...} or [...] block
#   4. Reject semantically empty values (null, {}, [], "")
#   5. Shape check against the fallback:
#      - fallback is a pydantic model → validate into type(fallback)
#      - otherwise → decoded value must have the fallback's type
#
# coerce_number() lives here too: LLMs return "$1,200", "12%", "n/a"
# where numbers are expected.
# =============================================================================

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_FENCE_OPEN = re.compile(r"^```[a-zA-Z]*\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")
_NUMBER_NOISE = re.compile(r"[,$€£%\s]")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def safe_parse(raw_text: Any, fallback: T) -> T:
    """
    Decode LLM output into the fallback's shape, or return the fallback.

    Args:
        raw_text: Text returned by the provider. Non-strings are rejected.
        fallback: Value returned on any failure. When it is a pydantic
            model instance, the decoded JSON is validated (and coerced)
            into that model class.

    Returns:
        The decoded value, or `fallback` unchanged.
    """
    if not isinstance(raw_text, str):
        logger.warning(
            "Safe parse: expected text, got %s. Using fallback.",
            type(raw_text).__name__,
        )
        return fallback

    cleaned = strip_fences(raw_text)
    if not cleaned:
        logger.warning("Safe parse: empty response. Using fallback.")
        return fallback

    try:
        decoded = _decode(cleaned)
    except ValueError as e:
        logger.warning(
            "Safe parse: undecodable response (%s): '%s'. Using fallback.",
            e, cleaned[:120],
        )
        return fallback

    if _is_empty(decoded):
        logger.warning("Safe parse: decoded an empty value. Using fallback.")
        return fallback

    if isinstance(fallback, BaseModel):
        try:
            return type(fallback).model_validate(decoded)
        except ValidationError as e:
            logger.warning(
                "Safe parse: response does not match %s (%d errors). "
                "Using fallback.",
                type(fallback).__name__, e.error_count(),
            )
            return fallback
        except (RecursionError, TypeError, ValueError) as e:
            logger.warning(
                "Safe parse: could not validate %s (%s). Using fallback.",
                type(fallback).__name__, e,
            )
            return fallback

    if fallback is not None and not isinstance(decoded, type(fallback)):
        logger.warning(
            "Safe parse: expected %s, decoded %s. Using fallback.",
            type(fallback).__name__, type(decoded).__name__,
        )
        return fallback

    return decoded


def strip_fences(raw_text: str) -> str:
    """Remove surrounding whitespace and markdown code fences."""
    cleaned = raw_text.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_OPEN.sub("", cleaned, count=1)
        cleaned = _FENCE_CLOSE.sub("", cleaned, count=1)
    return cleaned.strip()


def coerce_number(value: Any, default: float = 0.0) -> float:
    """
    Coerce a loosely formatted number into a finite float.

    Accepts ints, floats, and strings such as "1,200", "$45.50", "20%".
    Booleans, NaN, infinities and anything unparseable give `default`.
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(_NUMBER_NOISE.sub("", value))
        except ValueError:
            return default
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return default
    return number if math.isfinite(number) else default


# ---------------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------------


def _decode(cleaned: str) -> Any:
    """json.loads, falling back to the first embedded object/array."""
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass
    except RecursionError:
        raise ValueError("JSON nested too deeply") from None

    for opener, closer in (("{", "}"), ("[", "]")):
        start = cleaned.find(opener)
        end = cleaned.rfind(closer)
        if start != -1 and end > start:
            try:
                return json.loads(cleaned[start:end + 1])
            except json.JSONDecodeError:
                continue
            except RecursionError:
                raise ValueError("JSON nested too deeply") from None

    raise ValueError("no JSON value found")


def _is_empty(decoded: Any) -> bool:
    if decoded is None:
        return True
    if isinstance(decoded, (dict, list, str)) and not decoded:
        return True
    return False
