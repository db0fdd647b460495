"""
楽天API連携サービス

機能:
- 商品検索API（キーワード / ジャンル / 並び替え / 価格帯）
- 検索結果の正規化
"""

import logging
from typing import Any, Dict, List, Optional

from app.exceptions import ConfigError, UpstreamError, ValidationError
from app.schemas.search import NormalizedItem, RakutenSearchResponse, SearchQuery
from app.services import http_client
from app.services.marketplace import (
    MarketplaceProvider,
    dig,
    to_float,
    to_int,
    to_price,
    to_str,
)

# ============================================
# ログ設定
# ============================================
logger = logging.getLogger(__name__)

# ============================================
# 設定
# ============================================
ITEM_SEARCH_API = "https://app.rakuten.co.jp/services/api/IchibaItem/Search/20220601"
PROVIDER_NAME = "Rakuten"

# parse_query が受け取るクエリ項目
SEARCH_QUERY_FIELDS = ("keyword", "genre_id", "hits", "page", "sort", "min_price", "max_price")


# ============================================
# プロバイダ
# ============================================
class RakutenProvider(MarketplaceProvider):
    """楽天市場商品検索API"""

    name = PROVIDER_NAME

    def check_credentials(self) -> None:
        if not self.settings.RAKUTEN_APP_ID:
            raise ConfigError("RAKUTEN_APP_ID is missing in env")

    def parse_query(self, **params: Optional[str]) -> SearchQuery:
        return SearchQuery.model_validate(
            {key: params.get(key) for key in SEARCH_QUERY_FIELDS}
        )

    def build_search_params(self, query: SearchQuery) -> Dict[str, Any]:
        """
        検索パラメータを組み立てる

        値があるものだけを設定し、空の sort / 価格帯は送らない。
        """
        params: Dict[str, Any] = {"applicationId": self.settings.RAKUTEN_APP_ID}
        if self.settings.RAKUTEN_AFFILIATE_ID:
            params["affiliateId"] = self.settings.RAKUTEN_AFFILIATE_ID
        if query.keyword:
            params["keyword"] = query.keyword
        if query.genre_id:
            params["genreId"] = query.genre_id
        params["hits"] = query.hits
        params["page"] = query.page
        params["format"] = "json"
        params["imageFlag"] = 1  # 画像あり
        if query.sort:
            params["sort"] = query.sort
        if query.min_price is not None:
            params["minPrice"] = query.min_price
        if query.max_price is not None:
            params["maxPrice"] = query.max_price
        return params

    def search(self, query: SearchQuery) -> RakutenSearchResponse:
        """
        楽天市場商品検索

        Parameters:
            query: 検索条件（件数・ページは補正済み）

        Returns:
            正規化済みの検索結果

        Raises:
            ValidationError: keyword と genreId が両方ない場合
            ConfigError: RAKUTEN_APP_ID が未設定の場合
            UpstreamError: API呼び出しに失敗した場合
        """
        if not query.has_target:
            raise ValidationError("Either keyword or genreId is required")
        self.check_credentials()

        params = self.build_search_params(query)
        logger.info(
            f"楽天検索: keyword={query.keyword}, genreId={query.genre_id}, "
            f"hits={query.hits}, page={query.page}, sort={query.sort}"
        )
        data = http_client.get_json(
            ITEM_SEARCH_API,
            provider=self.name,
            timeout=self.settings.UPSTREAM_TIMEOUT,
            user_agent=self.settings.USER_AGENT,
            params=params,
        )
        if not isinstance(data, dict):
            raise UpstreamError(
                f"{self.name} API error",
                detail="malformed upstream response",
                log_context={"provider": self.name, "type": type(data).__name__},
            )

        items = normalize_items(data.get("Items"))
        logger.info(f"楽天検索成功: {len(items)}件取得")

        return RakutenSearchResponse(
            count=len(items),
            total=to_int(data.get("count")),
            page=to_int(data.get("page")) or query.page,
            hits=to_int(data.get("hits")) or query.hits,
            keyword=query.keyword,
            genre_id=query.genre_id,
            items=items,
        )


# ============================================
# データ整形
# ============================================
def _first_image_url(images: Any) -> Optional[str]:
    """画像リストの先頭URL（{"imageUrl": ...} と文字列の両形式）"""
    first = dig(images, 0)
    if isinstance(first, dict):
        return to_str(first.get("imageUrl"))
    return to_str(first)


def normalize_item(entry: Dict[str, Any]) -> NormalizedItem:
    """
    APIの商品データを NormalizedItem に変換

    formatVersion=1 の {"Item": {...}} と、平坦な形式の両方を受け付ける。
    欠けている・解釈できない項目は None にする。
    """
    item = entry.get("Item") if isinstance(entry.get("Item"), dict) else entry

    image_url = _first_image_url(item.get("mediumImageUrls")) or _first_image_url(
        item.get("smallImageUrls")
    )

    return NormalizedItem(
        id=to_str(item.get("itemCode")),
        title=to_str(item.get("itemName")),
        url=to_str(item.get("itemUrl")),
        image_url=image_url,
        price=to_price(item.get("itemPrice")),
        shop_name=to_str(item.get("shopName")),
        rating=to_float(item.get("reviewAverage")),
        review_count=to_int(item.get("reviewCount")),
        genre_id=to_str(item.get("genreId")),
        catchcopy=to_str(item.get("catchcopy")),
        tax_flag=to_int(item.get("taxFlag")),
        postage_flag=to_int(item.get("postageFlag")),
    )


def normalize_items(raw_items: Any) -> List[NormalizedItem]:
    """Items 配列を正規化。配列でなければ空リスト"""
    if not isinstance(raw_items, list):
        return []

    items = []
    for entry in raw_items:
        if not isinstance(entry, dict):
            logger.warning(f"商品データをスキップ: type={type(entry).__name__}")
            continue
        items.append(normalize_item(entry))
    return items
