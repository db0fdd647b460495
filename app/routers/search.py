"""
商品検索API - 楽天 / Amazon
"""
from typing import Optional, Union

from fastapi import APIRouter, Depends, Query

from app.dependencies import (
    get_amazon_provider,
    get_rakuten_provider,
    get_search_provider,
)
from app.schemas.common import ErrorResponse
from app.schemas.search import AmazonSearchResponse, RakutenSearchResponse
from app.services.amazon_api import AmazonProvider
from app.services.marketplace import MarketplaceProvider
from app.services.rakuten_api import RakutenProvider

router = APIRouter(prefix="/api", tags=["search"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "入力エラー"},
    500: {"model": ErrorResponse, "description": "認証情報の不備"},
    502: {"model": ErrorResponse, "description": "外部APIエラー"},
}


@router.get(
    "/rakuten/search",
    response_model=RakutenSearchResponse,
    summary="楽天市場 商品検索",
    description="""
楽天市場の商品を検索し、共通形式に整形して返します。

## パラメータ
- `keyword` / `genreId`: どちらか必須
- `hits`: 取得件数（1〜30に補正、デフォルト10）
- `page`: ページ番号（1未満は1）
- `sort`: `+itemPrice` `-itemPrice` `+reviewCount` `-reviewCount` `+reviewAverage` `-reviewAverage`（それ以外は無視）
- `minPrice` / `maxPrice`: 価格帯
""",
    responses=ERROR_RESPONSES,
)
def search_rakuten(
    keyword: Optional[str] = Query(None, description="検索キーワード"),
    genre_id: Optional[str] = Query(None, alias="genreId", description="ジャンルID"),
    hits: Optional[str] = Query(None, description="取得件数"),
    page: Optional[str] = Query(None, description="ページ番号"),
    sort: Optional[str] = Query(None, description="並び順"),
    min_price: Optional[str] = Query(None, alias="minPrice", description="最低価格"),
    max_price: Optional[str] = Query(None, alias="maxPrice", description="最高価格"),
    provider: RakutenProvider = Depends(get_rakuten_provider),
):
    """楽天市場商品検索"""
    query = provider.parse_query(
        keyword=keyword,
        genre_id=genre_id,
        hits=hits,
        page=page,
        sort=sort,
        min_price=min_price,
        max_price=max_price,
    )
    return provider.search(query)


@router.get(
    "/amazon/search",
    response_model=AmazonSearchResponse,
    summary="Amazon 商品検索",
    description="""
Amazon PA-API で商品を検索し、共通形式に整形して返します。

## パラメータ
- `keyword`: 必須
- `index`: 検索カテゴリ（デフォルト `All`）
- `limit`: 取得件数（1〜30に補正、デフォルト10）
""",
    responses=ERROR_RESPONSES,
)
def search_amazon(
    keyword: Optional[str] = Query(None, description="検索キーワード"),
    index: Optional[str] = Query(None, description="検索カテゴリ"),
    limit: Optional[str] = Query(None, description="取得件数"),
    provider: AmazonProvider = Depends(get_amazon_provider),
):
    """Amazon商品検索"""
    query = provider.parse_query(keyword=keyword, index=index, limit=limit)
    return provider.search(query)


@router.get(
    "/search",
    response_model=Union[RakutenSearchResponse, AmazonSearchResponse],
    summary="商品検索（設定されたプロバイダ）",
    description="SEARCH_PROVIDER の設定に応じて楽天またはAmazonの検索を行います。",
    responses=ERROR_RESPONSES,
)
def search_products(
    keyword: Optional[str] = Query(None),
    genre_id: Optional[str] = Query(None, alias="genreId"),
    hits: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    sort: Optional[str] = Query(None),
    min_price: Optional[str] = Query(None, alias="minPrice"),
    max_price: Optional[str] = Query(None, alias="maxPrice"),
    limit: Optional[str] = Query(None),
    index: Optional[str] = Query(None),
    provider: MarketplaceProvider = Depends(get_search_provider),
):
    """商品検索（プロバイダが自分に関係する項目だけを解釈する）"""
    query = provider.parse_query(
        keyword=keyword,
        genre_id=genre_id,
        hits=hits,
        page=page,
        sort=sort,
        min_price=min_price,
        max_price=max_price,
        limit=limit,
        index=index,
    )
    return provider.search(query)
