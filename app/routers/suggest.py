"""
サジェストAPI - Googleサジェスト + ラッコキーワードリンク
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.config import Settings, get_settings
from app.schemas.common import ErrorResponse
from app.schemas.suggest import SuggestResult
from app.services.suggest_service import fetch_suggestions

router = APIRouter(prefix="/api", tags=["suggest"])


@router.get(
    "/suggest",
    response_model=SuggestResult,
    summary="サジェスト候補取得",
    responses={
        200: {
            "description": "取得成功",
            "content": {
                "application/json": {
                    "example": {
                        "q": "化粧水",
                        "suggestions": ["化粧水 メンズ"],
                        "rakkokeywordLinks": [
                            {
                                "keyword": "化粧水 メンズ",
                                "url": "https://rakkokeyword.com/result/relatedKeywords?q=%E5%8C%96%E7%B2%A7%E6%B0%B4%20%E3%83%A1%E3%83%B3%E3%82%BA",
                            }
                        ],
                    }
                }
            },
        },
        400: {"model": ErrorResponse, "description": "q が空"},
        500: {"model": ErrorResponse, "description": "サジェスト取得失敗"},
    },
)
def suggest(
    q: Optional[str] = Query(None, description="検索語"),
    settings: Settings = Depends(get_settings),
):
    """サジェスト候補と関連キーワードリンクを取得"""
    return fetch_suggestions(q, settings)
