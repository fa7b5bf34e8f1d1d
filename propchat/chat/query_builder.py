"""
Query Builder

Maps SearchCriteria to a MongoDB filter for the listings collection.

Rules:
- status defaults to "available" unless the criteria name one
- location/type: case-insensitive substring match
- price/area: range built from whichever bound is present
- rooms and boolean amenities: exact match, only when present (0/False count)
- features: match any of the listed tags

Pure and deterministic: no I/O, and a field absent from the criteria never
produces a clause.
"""

import re
from typing import Any, Dict, Optional

from ..common.schemas import ListingStatus, SearchCriteria

DEFAULT_STATUS = ListingStatus.AVAILABLE.value

EXACT_MATCH_FIELDS = ("bedrooms", "halls", "bathrooms", "furnished", "parking", "balcony")


def _substring(value: str) -> Dict[str, str]:
    # Literal text, not a pattern
    return {"$regex": re.escape(value), "$options": "i"}


def _range(lower: Optional[float], upper: Optional[float]) -> Optional[Dict[str, float]]:
    if lower is None and upper is None:
        return None
    clause: Dict[str, float] = {}
    if lower is not None:
        clause["$gte"] = lower
    if upper is not None:
        clause["$lte"] = upper
    return clause


def build_query(criteria: SearchCriteria) -> Dict[str, Any]:
    """
    Build the listings filter for the given criteria.

    Min/max bounds are passed through as given; min > max yields a filter
    that matches nothing.

    Args:
        criteria: Extracted search criteria (possibly empty)

    Returns:
        MongoDB filter dict
    """
    query: Dict[str, Any] = {
        "status": criteria.status.value if criteria.status is not None else DEFAULT_STATUS,
    }

    if criteria.location is not None:
        query["location"] = _substring(criteria.location)

    if criteria.type is not None:
        query["type"] = _substring(criteria.type.value)

    price = _range(criteria.min_price, criteria.max_price)
    if price is not None:
        query["price"] = price

    area = _range(criteria.min_area, criteria.max_area)
    if area is not None:
        query["area"] = area

    for name in EXACT_MATCH_FIELDS:
        value = getattr(criteria, name)
        if value is not None:
            query[name] = value

    if criteria.features:
        query["features"] = {"$in": list(criteria.features)}

    return query
