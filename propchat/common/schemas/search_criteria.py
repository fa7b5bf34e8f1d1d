"""
Search Criteria Schema

Typed view of the search filters a user expressed in free text.

Core principle: presence is meaningful.
- A field that is ``None`` was not mentioned and must not constrain the search.
- A field holding ``0`` or ``False`` was mentioned and must constrain it.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    ValidationError,
    confloat,
    conint,
    field_validator,
)

logger = logging.getLogger("propchat.common.schemas")


class PropertyType(str, Enum):
    """Property categories known to the listings store"""
    APARTMENT = "apartment"
    HOUSE = "house"
    VILLA = "villa"
    STUDIO = "studio"
    PENTHOUSE = "penthouse"
    TOWNHOUSE = "townhouse"
    CONDO = "condo"
    DUPLEX = "duplex"


class ListingStatus(str, Enum):
    """Listing lifecycle status"""
    AVAILABLE = "available"
    SOLD = "sold"
    RENTED = "rented"
    PENDING = "pending"


# Strict: JSON numbers only, no numeric strings or booleans
NonNegativeCount = conint(strict=True, ge=0)
NonNegativeNumber = Union[NonNegativeCount, confloat(strict=True, ge=0, allow_inf_nan=False)]


class SearchCriteria(BaseModel):
    """
    Structured search criteria.

    Field names are snake_case; the wire format (LLM replies, API responses)
    uses the camelCase aliases.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    location: Optional[str] = None
    type: Optional[PropertyType] = None
    min_price: Optional[NonNegativeNumber] = Field(default=None, alias="minPrice")
    max_price: Optional[NonNegativeNumber] = Field(default=None, alias="maxPrice")
    bedrooms: Optional[NonNegativeCount] = None
    halls: Optional[NonNegativeCount] = None
    bathrooms: Optional[NonNegativeCount] = None
    status: Optional[ListingStatus] = None
    features: Optional[List[str]] = None
    furnished: Optional[StrictBool] = None
    parking: Optional[StrictBool] = None
    balcony: Optional[StrictBool] = None
    min_area: Optional[NonNegativeNumber] = Field(default=None, alias="minArea")
    max_area: Optional[NonNegativeNumber] = Field(default=None, alias="maxArea")

    @field_validator("location", mode="before")
    @classmethod
    def _clean_location(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("location must be text")
        return value.strip() or None

    @field_validator("type", "status", mode="before")
    @classmethod
    def _normalize_enum(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("expected a text value")
        return value.strip().lower()

    @field_validator("features", mode="before")
    @classmethod
    def _clean_features(cls, value: Any) -> Optional[List[str]]:
        if value is None:
            return None
        if not isinstance(value, (list, tuple, set)):
            raise ValueError("features must be a list of text tags")
        tags: List[str] = []
        for item in value:
            if not isinstance(item, str):
                raise ValueError("features must be a list of text tags")
            tag = item.strip()
            if tag and tag not in tags:
                tags.append(tag)
        return tags

    @classmethod
    def from_payload(cls, data: Any) -> "SearchCriteria":
        """
        Build criteria from an untrusted dict (e.g. parsed LLM output).

        Each field is validated on its own. A field whose value has the wrong
        type or breaks a constraint is dropped, the rest are kept.

        Args:
            data: Decoded JSON object, keyed by wire names or field names

        Returns:
            SearchCriteria (empty if ``data`` is not a dict)
        """
        if not isinstance(data, dict):
            return cls()

        accepted: Dict[str, Any] = {}
        for name, info in cls.model_fields.items():
            key = info.alias or name
            if key in data:
                value = data[key]
            elif name in data:
                value = data[name]
            else:
                continue
            if value is None:
                continue

            try:
                parsed = cls.model_validate({key: value})
            except ValidationError as e:
                logger.debug("Dropping criteria field %s=%r: %s", key, value, e.errors()[0]["msg"])
                continue
            if getattr(parsed, name) is not None:
                accepted[name] = getattr(parsed, name)

        return cls(**accepted)

    @property
    def is_empty(self) -> bool:
        """True when no field was extracted"""
        return not self.present_fields()

    def present_fields(self) -> List[str]:
        """Names of the fields that are set"""
        return [name for name in type(self).model_fields if getattr(self, name) is not None]

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation: camelCase keys, absent fields omitted"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
