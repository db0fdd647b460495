"""
マーケットプレイス検索プロバイダの共通インターフェース

楽天・Amazonの各実装はこのクラスを継承し、
認証情報の確認と検索・正規化を行う。
"""

import math
from abc import ABC, abstractmethod
from typing import Any, Optional

from app.config import Settings


class MarketplaceProvider(ABC):
    """検索プロバイダの基底クラス"""

    name: str = ""

    def __init__(self, settings: Settings):
        self.settings = settings

    @abstractmethod
    def check_credentials(self) -> None:
        """必要な認証情報がなければ ConfigError を送出"""

    @abstractmethod
    def parse_query(self, **params: Optional[str]) -> Any:
        """クエリ文字列からこのプロバイダの検索条件を作る（関係ない項目は無視）"""

    @abstractmethod
    def search(self, query: Any) -> Any:
        """検索して正規化済みのレスポンスモデルを返す"""


def get_provider(settings: Settings, name: Optional[str] = None) -> MarketplaceProvider:
    """設定（または指定名）に応じたプロバイダを返す"""
    # 循環importを避けるため遅延import
    from app.services.amazon_api import AmazonProvider
    from app.services.rakuten_api import RakutenProvider

    name = name or settings.SEARCH_PROVIDER
    if name == "amazon":
        return AmazonProvider(settings)
    return RakutenProvider(settings)


# ============================================
# 正規化ヘルパー
# ============================================
def dig(obj: Any, *path: Any) -> Any:
    """ネストしたdict/listを安全にたどる。途中で欠けたら None"""
    cur = obj
    for key in path:
        if isinstance(key, int):
            if not isinstance(cur, list) or len(cur) <= key:
                return None
            cur = cur[key]
        else:
            if not isinstance(cur, dict):
                return None
            cur = cur.get(key)
    return cur


def to_int(v: Any) -> Optional[int]:
    """数値・数値文字列を int に。解釈できなければ None"""
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    value = to_float(v)
    if value is None:
        return None
    return int(value)


def to_float(v: Any) -> Optional[float]:
    """有限の数値だけを float に。inf / nan は None"""
    if v is None or isinstance(v, bool):
        return None
    try:
        value = float(str(v).strip())
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def to_price(v: Any) -> Optional[float]:
    """価格。整数値なら int のまま返す"""
    value = to_float(v)
    if value is None:
        return None
    return int(value) if value.is_integer() else value


def to_str(v: Any) -> Optional[str]:
    if v is None or isinstance(v, (dict, list)):
        return None
    v = str(v)
    return v or None
