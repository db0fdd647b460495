"""
Amazon PA-API 連携サービス

機能:
- SearchItems によるキーワード検索（python-amazon-paapi）
- 検索結果の正規化
"""

import logging
from typing import Any, Dict, List, Optional

from amazon_paapi import AmazonApi
from amazon_paapi.errors import (
    AmazonException,
    AssociateValidationException,
    InvalidPartnerTagException,
    ItemsNotFoundException,
)
from urllib3.exceptions import HTTPError as TransportError

from app.config import Settings
from app.exceptions import ConfigError, UpstreamError, ValidationError
from app.schemas.search import AmazonSearchQuery, AmazonSearchResponse, NormalizedItem
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
PROVIDER_NAME = "Amazon"

# PA-API の ItemCount 上限
MAX_ITEMS_PER_PAGE = 10

IMAGE_TIERS = ("large", "medium", "small")


def create_client(settings: Settings) -> AmazonApi:
    """PA-API クライアントを作成（署名はライブラリが行う）"""
    return AmazonApi(
        settings.AMAZON_ACCESS_KEY,
        settings.AMAZON_SECRET_KEY,
        settings.AMAZON_PARTNER_TAG,
        settings.AMAZON_COUNTRY,
    )


# ============================================
# プロバイダ
# ============================================
class AmazonProvider(MarketplaceProvider):
    """Amazon Product Advertising API 5.0"""

    name = PROVIDER_NAME

    def check_credentials(self) -> None:
        missing = self.settings.missing_amazon_credentials()
        if missing:
            raise ConfigError(
                "Amazon credentials are missing in env", detail=", ".join(missing)
            )

    def parse_query(self, **params: Optional[str]) -> AmazonSearchQuery:
        return AmazonSearchQuery(
            keyword=params.get("keyword"),
            search_index=params.get("index"),
            limit=params.get("limit"),
        )

    def search(self, query: AmazonSearchQuery) -> AmazonSearchResponse:
        """
        Amazon商品検索

        ItemCount は1リクエスト10件までのため、limit に達するまでページを進める。

        Raises:
            ValidationError: keyword がない場合
            ConfigError: 認証情報が未設定・無効な場合
            UpstreamError: API呼び出しに失敗した場合
        """
        if not query.keyword:
            raise ValidationError("keyword is required")
        self.check_credentials()

        logger.info(
            f"Amazon検索: keyword={query.keyword}, "
            f"searchIndex={query.search_index}, limit={query.limit}"
        )
        try:
            client = create_client(self.settings)
        except AmazonException as e:
            raise ConfigError(
                "AMAZON_COUNTRY is invalid", detail=self.settings.AMAZON_COUNTRY
            ) from e
        page_size = min(query.limit, MAX_ITEMS_PER_PAGE)
        items: List[NormalizedItem] = []
        page = 1
        while len(items) < query.limit:
            raw_items = self._search_page(client, query, page, page_size)
            items.extend(normalize_items(raw_items))
            if len(raw_items) < page_size:
                break
            page += 1

        items = items[: query.limit]
        logger.info(f"Amazon検索成功: {len(items)}件取得")

        return AmazonSearchResponse(
            keyword=query.keyword,
            search_index=query.search_index,
            count=len(items),
            items=items,
        )

    def _search_page(
        self, client: AmazonApi, query: AmazonSearchQuery, page: int, page_size: int
    ) -> List[Any]:
        """1ページ分の SearchItems を呼び出し、生の items を返す"""

        def _call():
            return client.search_items(
                keywords=query.keyword,
                search_index=query.search_index,
                item_count=page_size,
                item_page=page,
            )

        logger.info(f"{self.name} API呼び出し開始: SearchItems page={page}")
        try:
            result = http_client.run_with_deadline(
                _call, provider=self.name, timeout=self.settings.UPSTREAM_TIMEOUT
            )
        except ItemsNotFoundException:
            return []
        except (AssociateValidationException, InvalidPartnerTagException) as e:
            raise ConfigError(
                "Amazon credentials are invalid",
                log_context={"provider": self.name, "reason": str(e)[:200]},
            ) from e
        except (AmazonException, TransportError) as e:
            logger.error(f"{self.name} APIリクエストエラー: {type(e).__name__}")
            raise UpstreamError(
                f"{self.name} API error",
                detail="upstream request failed",
                log_context={"provider": self.name, "reason": str(e)[:200]},
            ) from e

        raw_items = getattr(result, "items", None)
        return raw_items if isinstance(raw_items, list) else []


# ============================================
# データ整形
# ============================================
def _largest_image_url(item: Dict[str, Any]) -> Optional[str]:
    for tier in IMAGE_TIERS:
        url = to_str(dig(item, "images", "primary", tier, "url"))
        if url:
            return url
    return None


def normalize_item(item: Dict[str, Any]) -> NormalizedItem:
    """
    SearchItems の商品（to_dict() 済み）を NormalizedItem に変換

    価格は display_amount をそのまま price_display に入れる（通貨の解析はしない）。
    """
    listing = dig(item, "offers", "listings", 0)
    amount = dig(listing, "price", "amount")

    return NormalizedItem(
        id=to_str(item.get("asin")),
        title=to_str(dig(item, "item_info", "title", "display_value")),
        url=to_str(item.get("detail_page_url")),
        image_url=_largest_image_url(item),
        price=to_price(amount) if isinstance(amount, (int, float)) else None,
        price_display=to_str(dig(listing, "price", "display_amount")),
        shop_name=to_str(dig(listing, "merchant_info", "name")),
        rating=to_float(dig(item, "customer_reviews", "star_rating", "value")),
        review_count=to_int(dig(item, "customer_reviews", "count")),
        genre_id=to_str(dig(item, "browse_node_info", "browse_nodes", 0, "id")),
    )


def normalize_items(raw_items: List[Any]) -> List[NormalizedItem]:
    """SDK の商品モデルを正規化。解釈できない要素はスキップ"""
    items = []
    for entry in raw_items:
        data = entry.to_dict() if hasattr(entry, "to_dict") else entry
        if not isinstance(data, dict):
            logger.warning(f"商品データをスキップ: type={type(entry).__name__}")
            continue
        items.append(normalize_item(data))
    return items
