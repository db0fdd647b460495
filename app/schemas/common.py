"""Common response schemas"""
from typing import Optional

from .base import BaseSchema


class ErrorResponse(BaseSchema):
    """エラーレスポンス"""
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseSchema):
    ok: bool = True


class CredentialStatus(BaseSchema):
    """認証情報の設定状況（値はマスク済み）"""
    present: bool
    masked: Optional[str] = None
