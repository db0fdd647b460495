"""
ゲートウェイ共通の例外定義

各例外はHTTPステータスと、呼び出し元に返すエラーメッセージを持つ。
log_context はサーバー側のログ専用で、レスポンスには含めない。
"""

from typing import Any, Dict, Optional


class GatewayError(Exception):
    """ゲートウェイのエラー基底クラス"""

    status_code = 500

    def __init__(
        self,
        message: str,
        detail: Optional[str] = None,
        status_code: Optional[int] = None,
        log_context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code
        self.log_context = log_context or {}


class ValidationError(GatewayError):
    """必須入力の欠落・不正"""

    status_code = 400


class ConfigError(GatewayError):
    """サーバー側の認証情報が未設定・無効"""

    status_code = 500


class UpstreamError(GatewayError):
    """外部APIの異常応答"""

    status_code = 502


class UpstreamTimeout(UpstreamError):
    """外部APIのタイムアウト"""

    pass
