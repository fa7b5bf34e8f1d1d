"""
PropChat Schemas

Search criteria extracted from user messages and the property records they match.
"""

from .search_criteria import SearchCriteria, PropertyType, ListingStatus
from .property_record import PropertyRecord, ContactInfo, PROMPT_FIELDS

__all__ = [
    "SearchCriteria",
    "PropertyType",
    "ListingStatus",
    "PropertyRecord",
    "ContactInfo",
    "PROMPT_FIELDS",
]
