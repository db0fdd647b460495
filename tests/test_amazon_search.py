"""
Amazon商品検索のテスト
"""

import time

from amazon_paapi.errors import (
    ApiRequestException,
    AssociateValidationException,
    ItemsNotFoundException,
)

from app.schemas.search import AmazonSearchQuery
from app.services.amazon_api import normalize_item, normalize_items

from conftest import Delayed


def amazon_item(asin="B000000001", **overrides):
    """SearchItems の商品（to_dict() 後の形）"""
    item = {
        "asin": asin,
        "detail_page_url": f"https://www.amazon.co.jp/dp/{asin}?tag=test-22",
        "item_info": {"title": {"display_value": "ワイヤレスイヤホン"}},
        "images": {
            "primary": {
                "small": {"url": "https://m.media-amazon.com/images/I/s.jpg"},
                "medium": {"url": "https://m.media-amazon.com/images/I/m.jpg"},
                "large": {"url": "https://m.media-amazon.com/images/I/l.jpg"},
            }
        },
        "offers": {
            "listings": [
                {
                    "price": {"amount": 1980, "currency": "JPY", "display_amount": "￥1,980"},
                    "merchant_info": {"name": "Amazon.co.jp"},
                }
            ]
        },
        "customer_reviews": {"count": 321, "star_rating": {"value": 4.2}},
        "browse_node_info": {"browse_nodes": [{"id": "3477981", "display_name": "イヤホン"}]},
    }
    item.update(overrides)
    return item


class SdkItem:
    """SDK のモデル（to_dict() を持つ）"""

    def __init__(self, data):
        self.data = data

    def to_dict(self):
        return self.data


def page_of(count, start=0):
    return [SdkItem(amazon_item(asin=f"B{start + i:09d}")) for i in range(count)]


class TestAmazonNormalizeItem:
    """商品データの正規化"""

    def test_full_item(self):
        item = normalize_item(amazon_item())

        assert item.id == "B000000001"
        assert item.title == "ワイヤレスイヤホン"
        assert item.url == "https://www.amazon.co.jp/dp/B000000001?tag=test-22"
        assert item.image_url == "https://m.media-amazon.com/images/I/l.jpg"
        assert item.price == 1980
        assert item.price_display == "￥1,980"
        assert item.shop_name == "Amazon.co.jp"
        assert item.rating == 4.2
        assert item.review_count == 321
        assert item.genre_id == "3477981"

    def test_largest_available_image(self):
        item = normalize_item(
            amazon_item(images={"primary": {"small": {"url": "https://example.com/s.jpg"}}})
        )
        assert item.image_url == "https://example.com/s.jpg"

    def test_missing_sections(self):
        item = normalize_item({"asin": "B000000009", "offers": None, "images": None})
        assert item.id == "B000000009"
        assert item.title is None
        assert item.image_url is None
        assert item.price is None
        assert item.price_display is None
        assert item.shop_name is None

    def test_price_display_passed_through(self):
        item = normalize_item(
            amazon_item(offers={"listings": [{"price": {"display_amount": "￥2,480 (￥248 / 個)"}}]})
        )
        assert item.price is None
        assert item.price_display == "￥2,480 (￥248 / 個)"

    def test_overflowing_review_count(self):
        item = normalize_item(
            amazon_item(customer_reviews={"count": "1e999", "star_rating": {"value": "nan"}})
        )
        assert item.review_count is None
        assert item.rating is None

    def test_unusable_entries_skipped_with_warning(self, caplog):
        items = normalize_items([SdkItem(amazon_item()), None, SdkItem("broken")])
        assert [item.id for item in items] == ["B000000001"]
        assert caplog.text.count("商品データをスキップ") == 2


class TestAmazonSearchQuery:
    def test_defaults(self):
        query = AmazonSearchQuery(keyword="イヤホン", search_index=None, limit=None)
        assert query.search_index == "All"
        assert query.limit == 10

    def test_limit_clamped(self):
        assert AmazonSearchQuery(keyword="k", limit="999").limit == 30
        assert AmazonSearchQuery(keyword="k", limit="0").limit == 1
        assert AmazonSearchQuery(keyword="k", limit="5.5").limit == 5


class TestAmazonSearchEndpoint:
    """Amazon検索エンドポイント"""

    def test_keyword_missing(self, client, amazon):
        response = client.get("/api/amazon/search", params={"keyword": " "})
        assert response.status_code == 400
        assert response.json() == {"error": "keyword is required"}
        assert amazon.calls == []

    def test_credentials_missing(self, client, configure, amazon):
        """認証情報が1つでも欠けていれば500"""
        configure(AMAZON_SECRET_KEY=None, AMAZON_PARTNER_TAG="")
        response = client.get("/api/amazon/search", params={"keyword": "イヤホン"})
        assert response.status_code == 500
        assert response.json() == {
            "error": "Amazon credentials are missing in env",
            "detail": "AMAZON_SECRET_KEY, AMAZON_PARTNER_TAG",
        }
        assert amazon.calls == []

    def test_search_success(self, client, amazon):
        amazon.queue([SdkItem(amazon_item())])

        response = client.get("/api/amazon/search", params={"keyword": "イヤホン"})
        assert response.status_code == 200
        data = response.json()
        assert data["keyword"] == "イヤホン"
        assert data["searchIndex"] == "All"
        assert data["count"] == 1
        assert data["items"][0]["id"] == "B000000001"
        assert data["items"][0]["imageUrl"] == "https://m.media-amazon.com/images/I/l.jpg"
        assert data["items"][0]["priceDisplay"] == "￥1,980"

    def test_search_items_arguments(self, client, amazon):
        """設定の認証情報と検索条件でクライアントを呼び出す"""
        amazon.queue([])

        client.get(
            "/api/amazon/search",
            params={"keyword": "イヤホン", "index": "Electronics", "limit": "5"},
        )

        assert amazon.calls == [
            {
                "keywords": "イヤホン",
                "search_index": "Electronics",
                "item_count": 5,
                "item_page": 1,
            }
        ]
        assert amazon.settings.AMAZON_PARTNER_TAG == "test-22"
        assert amazon.settings.AMAZON_COUNTRY == "JP"

    def test_limit_above_page_size_fetches_pages(self, client, amazon):
        """10件を超える limit は複数ページで取得"""
        amazon.queue(page_of(10), page_of(10, start=10), page_of(10, start=20))

        response = client.get("/api/amazon/search", params={"keyword": "k", "limit": "25"})
        assert response.status_code == 200
        assert response.json()["count"] == 25
        assert [call["item_page"] for call in amazon.calls] == [1, 2, 3]

    def test_short_page_stops_paging(self, client, amazon):
        amazon.queue(page_of(4))

        response = client.get("/api/amazon/search", params={"keyword": "k", "limit": "30"})
        assert response.json()["count"] == 4
        assert len(amazon.calls) == 1

    def test_no_results(self, client, amazon):
        amazon.queue(ItemsNotFoundException("No items have been found"))

        response = client.get("/api/amazon/search", params={"keyword": "zzzz"})
        assert response.status_code == 200
        assert response.json()["count"] == 0
        assert response.json()["items"] == []

    def test_invalid_credentials(self, client, amazon):
        amazon.queue(AssociateValidationException("secret reason"))

        response = client.get("/api/amazon/search", params={"keyword": "k"})
        assert response.status_code == 500
        assert response.json() == {"error": "Amazon credentials are invalid"}
        assert "secret" not in response.text

    def test_upstream_error(self, client, amazon):
        amazon.queue(ApiRequestException("Request failed: Service Unavailable"))

        response = client.get("/api/amazon/search", params={"keyword": "k"})
        assert response.status_code == 502
        assert response.json() == {
            "error": "Amazon API error",
            "detail": "upstream request failed",
        }

    def test_slow_upstream_times_out(self, client, configure, amazon):
        """応答が遅ければ UPSTREAM_TIMEOUT で打ち切る"""
        configure(UPSTREAM_TIMEOUT=0.2)
        amazon.queue(Delayed(page_of(1), 1.5))

        started = time.monotonic()
        response = client.get("/api/amazon/search", params={"keyword": "k"})
        elapsed = time.monotonic() - started

        assert response.status_code == 502
        assert response.json() == {
            "error": "Amazon API error",
            "detail": "upstream timed out after 0.2s",
        }
        assert elapsed < 1.0

    def test_search_endpoint_uses_configured_provider(self, client, configure, amazon):
        """SEARCH_PROVIDER=amazon の場合 /api/search は Amazon"""
        configure(SEARCH_PROVIDER="amazon")
        amazon.queue([SdkItem(amazon_item())])

        response = client.get("/api/search", params={"keyword": "k", "index": "Books"})
        assert response.status_code == 200
        data = response.json()
        assert data["searchIndex"] == "Books"
        assert data["count"] == 1
        assert amazon.calls[0]["search_index"] == "Books"
