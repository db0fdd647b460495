"""Application configuration"""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Keyword Market Gateway"
    VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # server
    HOST: str = "0.0.0.0"
    PORT: int = 10000
    ALLOWED_ORIGIN: str = "*"

    # upstream
    SEARCH_PROVIDER: Literal["rakuten", "amazon"] = "rakuten"
    UPSTREAM_TIMEOUT: float = 15.0
    USER_AGENT: str = "Mozilla/5.0"

    # Rakuten
    RAKUTEN_APP_ID: Optional[str] = None
    RAKUTEN_AFFILIATE_ID: Optional[str] = None

    # Amazon PA-API
    AMAZON_ACCESS_KEY: Optional[str] = None
    AMAZON_SECRET_KEY: Optional[str] = None
    AMAZON_PARTNER_TAG: Optional[str] = None
    # python-amazon-paapi の国コード（エンドポイントとマーケットプレイスを決める）
    AMAZON_COUNTRY: str = "JP"

    # 本番では無効のままにすること
    ENABLE_DEBUG_CREDS: bool = False

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="ignore", frozen=True
    )

    def missing_amazon_credentials(self) -> List[str]:
        """未設定のAmazon認証情報の変数名を返す"""
        fields = ("AMAZON_ACCESS_KEY", "AMAZON_SECRET_KEY", "AMAZON_PARTNER_TAG")
        return [name for name in fields if not getattr(self, name)]


@lru_cache
def get_settings() -> Settings:
    """プロセス全体で共有する設定（初回のみ環境変数を読み込む）"""
    return Settings()
