"""
Property Record Schema

Read-only view of a listing as stored in the document store.
The store owns the schema; this model only tolerates what it returns.
Everything but ``_id`` may be null or missing in older documents.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ContactInfo(BaseModel):
    """Listing contact"""
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


# Fields handed to the LLM when summarizing results
PROMPT_FIELDS = (
    "id", "title", "price", "location", "type", "bedrooms", "halls",
    "bathrooms", "area", "features", "furnished", "parking", "status",
)


class PropertyRecord(BaseModel):
    """A property listing"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., alias="_id")
    title: Optional[str] = None
    description: Optional[str] = ""
    price: Optional[Union[int, float]] = None
    location: Optional[str] = None
    type: Optional[str] = None
    status: Optional[str] = "available"
    bedrooms: Optional[int] = 0
    halls: Optional[int] = 0
    bathrooms: Optional[int] = 0
    area: Optional[Union[int, float]] = None  # sq ft
    furnished: Optional[bool] = False
    parking: Optional[bool] = False
    balcony: Optional[bool] = False
    features: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    contact_info: Optional[ContactInfo] = Field(default=None, alias="contactInfo")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        # Mongo hands back ObjectId instances
        return str(value)

    @field_validator("features", "images", mode="before")
    @classmethod
    def _null_list(cls, value: Any) -> Any:
        return [] if value is None else value

    def prompt_view(self) -> Dict[str, Any]:
        """Compact projection used in synthesis prompts"""
        data = self.model_dump(mode="json", include=set(PROMPT_FIELDS))
        return {name: data.get(name) for name in PROMPT_FIELDS}

    def to_api_dict(self) -> Dict[str, Any]:
        """Full record in the store's wire shape (``_id``, camelCase)"""
        return self.model_dump(mode="json", by_alias=True)
