"""
Googleサジェスト（非公式）連携サービス

候補ごとにラッコキーワードの関連キーワードURLを付与する。
"""

import logging
from typing import List
from urllib.parse import quote

from app.config import Settings
from app.exceptions import UpstreamError, ValidationError
from app.schemas.suggest import RelatedLink, SuggestResult
from app.services import http_client

logger = logging.getLogger(__name__)

SUGGEST_API = "https://suggestqueries.google.com/complete/search"
RAKKO_KEYWORD_URL = "https://rakkokeyword.com/result/relatedKeywords?q="
PROVIDER_NAME = "Suggest"

# encodeURIComponent がエスケープしない記号
URI_COMPONENT_SAFE = "-_.!~*'()"


def build_related_link(keyword: str) -> RelatedLink:
    return RelatedLink(
        keyword=keyword,
        url=RAKKO_KEYWORD_URL + quote(keyword, safe=URI_COMPONENT_SAFE),
    )


def parse_suggestions(data) -> List[str]:
    """["q", ["候補", ...]] 形式から候補を取り出す。形式が違えば UpstreamError"""
    if not isinstance(data, list) or len(data) < 2 or not isinstance(data[1], list):
        raise UpstreamError(
            "Suggest error",
            status_code=500,
            log_context={"provider": PROVIDER_NAME, "reason": "malformed response"},
        )
    return [s for s in data[1] if isinstance(s, str)]


def fetch_suggestions(q: str, settings: Settings) -> SuggestResult:
    """
    サジェスト候補を取得

    Parameters:
        q: 検索語（前後の空白は除去する）

    Raises:
        ValidationError: q が空の場合
        UpstreamError: 取得に失敗した場合（詳細は返さない）
    """
    q = (q or "").strip()
    if not q:
        raise ValidationError("q is required")

    try:
        data = http_client.get_json(
            SUGGEST_API,
            provider=PROVIDER_NAME,
            timeout=settings.UPSTREAM_TIMEOUT,
            user_agent=settings.USER_AGENT,
            params={"client": "firefox", "hl": "ja", "q": q},
        )
    except UpstreamError as e:
        raise UpstreamError(
            "Suggest error",
            status_code=500,
            log_context={**e.log_context, "reason": e.detail},
        ) from e

    suggestions = parse_suggestions(data)
    logger.info(f"サジェスト取得: q={q}, {len(suggestions)}件")

    return SuggestResult(
        q=q,
        suggestions=suggestions,
        rakkokeyword_links=[build_related_link(s) for s in suggestions],
    )
