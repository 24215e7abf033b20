"""Parsing of model replies into pipeline records."""

import logging
import re
from typing import Union

from pydantic import BaseModel, ConfigDict, StrictInt, StrictStr, ValidationError

from snap_card_generator.exceptions import DecodeError
from snap_card_generator.models import TYPE_STAT_CATEGORY, AnalysisRecord, StatKey

logger = logging.getLogger(__name__)

# Opening fence with optional language tag, body, closing fence
FENCE_PATTERN = re.compile(r"^```[\w-]*[ \t]*\n?(.*?)\n?[ \t]*```$", re.DOTALL)
# Opening fence of a reply that was cut off before its closing fence
OPEN_FENCE_PATTERN = re.compile(r"^```[\w-]*[ \t]*\n?")

STAT_RANGE = (0, 100)

# Order the stats appear in on a card
EXPECTED_STAT_ORDER = (TYPE_STAT_CATEGORY,) + tuple(key.value for key in StatKey)
EXPECTED_KEYS = tuple(name.lower() for name in EXPECTED_STAT_ORDER)


def strip_code_fences(text: str) -> str:
    """Strip markdown code fences from a model reply.

    Handles ```json ... ```, ``` ... ```, an opening fence whose closing
    fence never arrived, and plain unfenced text. The result is trimmed of
    surrounding whitespace.
    """
    stripped = text.strip()
    match = FENCE_PATTERN.match(stripped)
    if match:
        return match.group(1).strip()
    if stripped.startswith("```"):
        return OPEN_FENCE_PATTERN.sub("", stripped, count=1).strip()
    return stripped


def _summarize(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(piece) for piece in item["loc"]) or "<root>"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


def parse_analysis(text: str) -> AnalysisRecord:
    """
    Parse the vision reply into an AnalysisRecord.

    Args:
        text: Raw assistant content, possibly fenced

    Returns:
        The validated analysis record

    Raises:
        DecodeError: If the reply is not JSON or a field is missing or mistyped
    """
    content = strip_code_fences(text)
    logger.debug(f"Raw assistant JSON (after stripping): {content}")

    try:
        analysis = AnalysisRecord.model_validate_json(content)
    except ValidationError as e:
        raise DecodeError(
            f"Failed to decode analysis: {_summarize(e)}", raw=content
        ) from e

    low, high = STAT_RANGE
    for key in StatKey:
        value = analysis.stat(key)
        if not low <= value <= high:
            logger.warning(
                f"{key.value} for '{analysis.subject}' is {value}, "
                f"outside {low}-{high}; keeping it as reported"
            )

    return analysis


class _RawStat(BaseModel):
    model_config = ConfigDict(strict=True)

    category: StrictStr
    value: Union[StrictStr, StrictInt]


class _StatsReply(BaseModel):
    model_config = ConfigDict(strict=True)

    stats: list[_RawStat]


def parse_stats_reply(text: str) -> list[tuple[str, str]]:
    """
    Parse the stats-JSON reply into ordered (category, value) pairs.

    Expected categories come first in card order (Type, then each StatKey),
    matched case-insensitively. Unexpected categories follow in reply order.
    Integer values are turned into their decimal text.

    Args:
        text: Raw assistant content, possibly fenced

    Returns:
        List of (category, value) string pairs

    Raises:
        DecodeError: If the reply is malformed or an expected category is missing
    """
    content = strip_code_fences(text)

    try:
        reply = _StatsReply.model_validate_json(content)
    except ValidationError as e:
        raise DecodeError(
            f"Failed to decode stats: {_summarize(e)}", raw=content
        ) from e

    by_category: dict[str, tuple[str, str]] = {}
    extras: list[tuple[str, str]] = []
    for stat in reply.stats:
        pair = (stat.category, str(stat.value))
        key = stat.category.strip().lower()
        if key in EXPECTED_KEYS and key not in by_category:
            by_category[key] = pair
        else:
            extras.append(pair)

    missing = [
        name
        for name, key in zip(EXPECTED_STAT_ORDER, EXPECTED_KEYS)
        if key not in by_category
    ]
    if missing:
        raise DecodeError(
            f"Stats reply is missing categories: {', '.join(missing)}", raw=content
        )

    if extras:
        logger.warning(
            f"Stats reply has unexpected categories: {', '.join(c for c, _ in extras)}"
        )

    return [by_category[key] for key in EXPECTED_KEYS] + extras
