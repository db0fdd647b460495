"""
ヘルスチェック / 診断用エンドポイント
"""
import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from app.config import Settings, get_settings
from app.schemas.common import CredentialStatus, HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

CREDENTIAL_FIELDS = {
    "rakuten": ("RAKUTEN_APP_ID", "RAKUTEN_AFFILIATE_ID"),
    "amazon": ("AMAZON_ACCESS_KEY", "AMAZON_SECRET_KEY", "AMAZON_PARTNER_TAG"),
}


def mask_secret(value: Optional[str]) -> Optional[str]:
    """先頭4文字と末尾4文字だけ残す（8文字以下は全て伏せる）"""
    if not value:
        return None
    if len(value) <= 8:
        return "*" * len(value)
    return f"{value[:4]}...{value[-4:]}"


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """ヘルスチェックエンドポイント"""
    return HealthResponse(ok=True)


@router.get("/debug/creds", response_model=Dict[str, Dict[str, CredentialStatus]])
def debug_credentials(settings: Settings = Depends(get_settings)):
    """
    認証情報の設定状況（ENABLE_DEBUG_CREDS=true の場合のみ）
    """
    if not settings.ENABLE_DEBUG_CREDS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")

    logger.warning("debug/creds にアクセスされました")
    return {
        provider: {
            name: CredentialStatus(
                present=bool(getattr(settings, name)),
                masked=mask_secret(getattr(settings, name)),
            )
            for name in names
        }
        for provider, names in CREDENTIAL_FIELDS.items()
    }
