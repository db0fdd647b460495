"""
外部API連携サービス
"""

from .marketplace import MarketplaceProvider, get_provider
from .rakuten_api import RakutenProvider
from .amazon_api import AmazonProvider
from .suggest_service import fetch_suggestions

__all__ = [
    "MarketplaceProvider",
    "get_provider",
    "RakutenProvider",
    "AmazonProvider",
    "fetch_suggestions",
]
