"""
Pydantic Schemas for the gateway
"""

from .base import BaseSchema
from .common import CredentialStatus, ErrorResponse, HealthResponse
from .search import (
    ALLOWED_SORT,
    AmazonSearchQuery,
    AmazonSearchResponse,
    NormalizedItem,
    RakutenSearchResponse,
    SearchQuery,
)
from .suggest import RelatedLink, SuggestResult

__all__ = [
    "BaseSchema",
    "CredentialStatus",
    "ErrorResponse",
    "HealthResponse",
    "ALLOWED_SORT",
    "AmazonSearchQuery",
    "AmazonSearchResponse",
    "NormalizedItem",
    "RakutenSearchResponse",
    "SearchQuery",
    "RelatedLink",
    "SuggestResult",
]
