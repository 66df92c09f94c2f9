"""
Dreamteller Schemas
Non-entity response shapes.
"""

from dreamteller.schemas.responses import DreamImageResponse, EmptyResponse

__all__ = [
    "DreamImageResponse",
    "EmptyResponse",
]
