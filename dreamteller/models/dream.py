"""
Dream Models
Journal entries, day-level presence flags and interpretation requests.
"""

import uuid
from datetime import date, datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dreamteller.utils.dates import DATE_KEY_PATTERN, date_key


def _validate_date_key(v: str) -> str:
    if not DATE_KEY_PATTERN.match(v):
        raise ValueError("dateKey must be 8 digits (YYYYMMDD)")
    return v


class Dream(BaseModel):
    """A single journal entry as served by the backend."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Server- or client-assigned identifier")
    date_key: str = Field(alias="dateKey", description="Journal day, YYYYMMDD")
    input: str = Field(description="Raw dream text")
    title: Optional[str] = Field(default=None, description="Display title")
    interpretation: Optional[str] = Field(default=None, description="Absent until interpretation completes")
    image_name: Optional[str] = Field(default=None, alias="imageName", description="Preview image asset reference")

    @field_validator("date_key")
    @classmethod
    def validate_date_key(cls, v: str) -> str:
        return _validate_date_key(v)

    @field_validator("input")
    @classmethod
    def validate_input(cls, v: str) -> str:
        """Dream text must contain something besides whitespace."""
        if not v.strip():
            raise ValueError("input must not be blank")
        return v

    @property
    def is_interpreted(self) -> bool:
        return self.interpretation is not None

    @property
    def title_or_fallback(self) -> str:
        return self.title or "Dream"

    @property
    def display_image_name(self) -> str:
        """Asset to show in a card: the served image, or a placeholder by interpretation state."""
        if self.image_name:
            return self.image_name
        return "dream1" if self.is_interpreted else "nodream"

    @classmethod
    def for_day(cls, day: Union[date, datetime], input: str, **kwargs) -> "Dream":
        """Create a client-side dream whose key comes from the canonical formatter."""
        return cls(date_key=date_key(day), input=input, **kwargs)


class DreamEntry(BaseModel):
    """Whether any dream exists for a day; drives calendar indicators."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    date_key: str = Field(alias="dateKey", description="Journal day, YYYYMMDD")
    has_entry: bool = Field(alias="hasEntry", description="True when at least one dream exists")

    @field_validator("date_key")
    @classmethod
    def validate_date_key(cls, v: str) -> str:
        return _validate_date_key(v)


class DreamRequest(BaseModel):
    """Creation payload submitted for interpretation. The server answers with no body."""

    model_config = ConfigDict(populate_by_name=True)

    date_key: str = Field(alias="dateKey")
    input: str
