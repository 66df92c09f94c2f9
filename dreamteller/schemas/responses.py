"""
Response Shapes
Result types the transport can decode into besides domain models.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EmptyResponse(BaseModel):
    """Designated result for endpoints that answer 2xx with no body."""


class DreamImageResponse(BaseModel):
    """Base64 image payload for a dream preview."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    image: str = Field(description="Base64 data, optionally as a data: URL")

    @field_validator("image")
    @classmethod
    def strip_data_url(cls, v: str) -> str:
        """Drop a ``data:image/...;base64,`` prefix if the server sent one."""
        if v.startswith("data:") and "," in v:
            return v.split(",", 1)[1]
        return v
