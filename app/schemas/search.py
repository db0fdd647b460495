"""Marketplace search schemas"""
import re
from typing import List, Optional, Union

from pydantic import Field, field_validator

from .base import BaseSchema

# 楽天APIで許可する sort
ALLOWED_SORT = frozenset(
    {
        "+itemPrice",
        "-itemPrice",
        "+reviewCount",
        "-reviewCount",
        "+reviewAverage",
        "-reviewAverage",
    }
)

MIN_HITS = 1
MAX_HITS = 30
DEFAULT_HITS = 10
DEFAULT_PAGE = 1
DEFAULT_SEARCH_INDEX = "All"


def _blank_to_none(v):
    if v is None:
        return None
    v = str(v).strip()
    return v or None


# 先頭の整数部分（"5.5" -> 5, "20件" -> 20）
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _to_int(v, default):
    """文字列先頭の整数を読む。数字で始まらなければ default"""
    match = _LEADING_INT.match(str(v))
    if not match:
        return default
    try:
        return int(match.group(1))
    except ValueError:
        # 桁数が多すぎる場合
        return default


def _strict_int(v):
    try:
        return int(str(v).strip())
    except (TypeError, ValueError):
        return None


def clamp_hits(v) -> int:
    """取得件数を 1〜30 に丸める（解釈できなければデフォルト）"""
    if v is None:
        return DEFAULT_HITS
    return min(max(_to_int(v, DEFAULT_HITS), MIN_HITS), MAX_HITS)


def floor_page(v) -> int:
    """ページ番号を1以上にする（解釈できなければデフォルト）"""
    if v is None:
        return DEFAULT_PAGE
    return max(_to_int(v, DEFAULT_PAGE), 1)


class SearchQuery(BaseSchema):
    """楽天検索の入力（クエリ文字列を寛容に解釈する）"""
    keyword: Optional[str] = None
    genre_id: Optional[str] = None
    sort: Optional[str] = None
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    hits: int = DEFAULT_HITS
    page: int = DEFAULT_PAGE

    @field_validator("keyword", "genre_id", mode="before")
    @classmethod
    def strip_blank(cls, v):
        return _blank_to_none(v)

    @field_validator("sort", mode="before")
    @classmethod
    def drop_unknown_sort(cls, v):
        """許可リスト外の sort は黙って捨てる"""
        if v is None:
            return None
        v = str(v)
        # クエリ文字列の "+" は空白にデコードされる
        if v.startswith(" "):
            v = "+" + v[1:]
        v = v.strip()
        return v if v in ALLOWED_SORT else None

    @field_validator("min_price", "max_price", mode="before")
    @classmethod
    def drop_invalid_price(cls, v):
        v = _blank_to_none(v)
        if v is None:
            return None
        price = _strict_int(v)
        if price is None or price < 0:
            return None
        return price

    @field_validator("hits", mode="before")
    @classmethod
    def normalize_hits(cls, v):
        return clamp_hits(v)

    @field_validator("page", mode="before")
    @classmethod
    def normalize_page(cls, v):
        return floor_page(v)

    @property
    def has_target(self) -> bool:
        return bool(self.keyword or self.genre_id)


class AmazonSearchQuery(BaseSchema):
    """Amazon検索の入力"""
    keyword: Optional[str] = None
    search_index: str = DEFAULT_SEARCH_INDEX
    limit: int = DEFAULT_HITS

    @field_validator("keyword", mode="before")
    @classmethod
    def strip_blank(cls, v):
        return _blank_to_none(v)

    @field_validator("search_index", mode="before")
    @classmethod
    def default_index(cls, v):
        return _blank_to_none(v) or DEFAULT_SEARCH_INDEX

    @field_validator("limit", mode="before")
    @classmethod
    def clamp_limit(cls, v):
        return clamp_hits(v)


class NormalizedItem(BaseSchema):
    """プロバイダ共通の商品表現（欠けた項目は null）"""
    id: Optional[str] = None
    title: Optional[str] = None
    url: Optional[str] = None
    image_url: Optional[str] = None
    price: Optional[Union[int, float]] = None
    price_display: Optional[str] = None
    shop_name: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    genre_id: Optional[str] = None
    catchcopy: Optional[str] = None
    tax_flag: Optional[int] = None
    postage_flag: Optional[int] = None


class RakutenSearchResponse(BaseSchema):
    """楽天検索レスポンス"""
    count: int
    total: Optional[int] = None
    page: int
    hits: int
    keyword: Optional[str] = None
    genre_id: Optional[str] = None
    items: List[NormalizedItem] = Field(default_factory=list)


class AmazonSearchResponse(BaseSchema):
    """Amazon検索レスポンス"""
    keyword: str
    search_index: str
    count: int
    items: List[NormalizedItem] = Field(default_factory=list)
