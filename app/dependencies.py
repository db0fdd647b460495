"""依存注入モジュール"""
from fastapi import Depends

from app.config import Settings, get_settings
from app.services.amazon_api import AmazonProvider
from app.services.marketplace import MarketplaceProvider, get_provider
from app.services.rakuten_api import RakutenProvider


def get_rakuten_provider(settings: Settings = Depends(get_settings)) -> RakutenProvider:
    return RakutenProvider(settings)


def get_amazon_provider(settings: Settings = Depends(get_settings)) -> AmazonProvider:
    return AmazonProvider(settings)


def get_search_provider(settings: Settings = Depends(get_settings)) -> MarketplaceProvider:
    """
    /api/search で使うプロバイダ
    SEARCH_PROVIDER の設定で楽天 / Amazon を切り替えます
    """
    return get_provider(settings)
