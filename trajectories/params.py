"""
Query parameter parsing and validation.

Turns raw query-string values into a QuerySpec. Every failure names the
offending parameter and is raised before any partition is probed or
queried.

Exports:
    parse_query_params: Raw mapping -> QuerySpec
    parse_track_id: /tracks/{id} path value -> int
    parse_bool: Boolean-ish query values
    bbox_to_wkt: lonMin,latMin,lonMax,latMax -> closed POLYGON WKT
"""

import math
import re
from datetime import date
from typing import Mapping, Optional

from exceptions import InvalidParameterError
from util_logger import LoggerFactory, ComponentType

from .models import QuerySpec

logger = LoggerFactory.create_logger(ComponentType.VALIDATOR, "QueryParams")

_DIGITS = re.compile(r"^\d+$", re.ASCII)
_NUMBER = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$", re.ASCII)
_SELECTOR = re.compile(r"^(\d{4})-(\d{2})(?:-(\d{2}))?(?!\d)", re.ASCII)

FALSE_VALUES = ("false", "0", "")


def parse_bool(value: Optional[str]) -> bool:
    """"false", "0", "" and absent are False; anything else is True."""
    return value is not None and value not in FALSE_VALUES


def parse_limit(value: str) -> int:
    if not _DIGITS.match(value):
        raise InvalidParameterError("limit", "Invalid limit. Should be an integer greater than 0")
    limit = int(value)
    if limit < 1:
        raise InvalidParameterError("limit", "Invalid limit. Should be an integer greater than 0")
    return limit


def bbox_to_wkt(bbox: str) -> str:
    """
    Expand lonMin,latMin,lonMax,latMax to a closed 5-point rectangle.

    Numbers are kept as written; reversed or degenerate boxes pass through.

    Example:
        bbox_to_wkt("-10,30,10,50")
        # 'POLYGON((-10 30,-10 50,10 50,10 30,-10 30))'
    """
    parts = [p.strip() for p in bbox.split(",")]
    if len(parts) != 4:
        raise InvalidParameterError("bbox", "Invalid bbox. Should be lonMin,latMin,lonMax,latMax")
    for part in parts:
        if not _NUMBER.match(part):
            raise InvalidParameterError("bbox", "Invalid bbox. Should be lonMin,latMin,lonMax,latMax")
        if not math.isfinite(float(part)):
            raise InvalidParameterError("bbox", "Invalid bbox. Coordinates must be finite numbers")

    a, b, c, d = parts
    return f"POLYGON(({a} {b},{a} {d},{c} {d},{c} {b},{a} {b}))"


def parse_time_selector(value: str, param: str) -> str:
    """
    Leading YYYY-MM or YYYY-MM-DD of a month/datetime value.

    Intervals ("start/end") use their start; time suffixes are dropped.
    The date must exist on the calendar.
    """
    start = value.split("/")[0].strip()
    match = _SELECTOR.match(start)
    if not match:
        raise InvalidParameterError(param, f"Invalid {param}. Should start with YYYY-MM or YYYY-MM-DD")

    year, month, day = match.groups()
    try:
        date(int(year), int(month), int(day or 1))
    except ValueError:
        raise InvalidParameterError(param, f"Invalid {param}. {match.group(0)} is not a calendar date")
    return match.group(0)


def parse_query_params(raw: Mapping[str, str]) -> QuerySpec:
    """
    Validate raw request parameters.

    Args:
        raw: Query-string mapping (single value per name)

    Returns:
        QuerySpec

    Raises:
        InvalidParameterError: Naming limit, bbox, month or datetime
    """
    limit = parse_limit(raw["limit"]) if "limit" in raw else None

    polygon = None
    if "bbox" in raw:
        polygon = bbox_to_wkt(raw["bbox"])
    # intersects wins over bbox when both are given
    if "intersects" in raw:
        polygon = raw["intersects"]

    time_selector = None
    if "month" in raw:
        time_selector = parse_time_selector(raw["month"], "month")
    elif "datetime" in raw:
        time_selector = parse_time_selector(raw["datetime"], "datetime")

    spec = QuerySpec(
        limit=limit,
        polygon=polygon,
        time_selector=time_selector,
        include_trajectory=parse_bool(raw.get("traj")),
        order_by=raw.get("orderBy") or None,
        minimalist=parse_bool(raw.get("minimalist")),
    )
    logger.debug(f"Parsed query parameters: {spec.model_dump()}")
    return spec


def parse_track_id(value: str) -> int:
    if not _DIGITS.match(value):
        raise InvalidParameterError("id", "Invalid id. Should be a trajectory number")
    return int(value)
