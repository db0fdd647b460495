"""
外部API呼び出しの共通処理

- 設定した秒数を上限とするリクエスト送信（接続から本文の受信まで）
- requests の例外をゲートウェイの例外に変換
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Any, Callable, Optional, TypeVar

import requests

from app.exceptions import UpstreamError, UpstreamTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ログに残すレスポンス本文の最大文字数
BODY_SNIPPET_LENGTH = 200


def create_session(user_agent: str) -> requests.Session:
    """リクエスト単位のセッションを作成（リトライなし）"""
    session = requests.Session()
    session.headers.update({"User-Agent": user_agent})
    return session


def body_snippet(response: requests.Response) -> str:
    """ログ用に切り詰めたレスポンス本文"""
    try:
        return response.text[:BODY_SNIPPET_LENGTH]
    except Exception:
        return ""


def timeout_error(provider: str, timeout: float, **log_context: Any) -> UpstreamTimeout:
    logger.error(f"{provider} APIタイムアウト: timeout={timeout}s")
    return UpstreamTimeout(
        f"{provider} API error",
        detail=f"upstream timed out after {timeout:g}s",
        log_context={"provider": provider, **log_context},
    )


def run_with_deadline(func: Callable[[], T], *, provider: str, timeout: float) -> T:
    """
    func を別スレッドで実行し、timeout 秒で打ち切る

    requests の timeout はソケット読み込みごとの待ち時間なので、
    少しずつ届く応答では全体の上限にならない。呼び出し全体をここで区切る。

    Raises:
        UpstreamTimeout: timeout 秒以内に終わらなかった場合
    """
    executor = ThreadPoolExecutor(max_workers=1)
    future = executor.submit(func)
    try:
        return future.result(timeout=timeout)
    except FuturesTimeoutError as e:
        raise timeout_error(provider, timeout) from e
    finally:
        # 打ち切った呼び出しの終了は待たない
        executor.shutdown(wait=False)


def send(
    method: str,
    url: str,
    *,
    provider: str,
    timeout: float,
    user_agent: str,
    **kwargs: Any,
) -> requests.Response:
    """
    外部APIへリクエストを送信

    ステータスコードの判定は呼び出し側で行う。

    Raises:
        UpstreamTimeout: timeout 秒以内に本文まで受信できなかった場合
        UpstreamError: 接続エラーなど
    """

    def _request() -> requests.Response:
        session = create_session(user_agent)
        try:
            return session.request(method, url, timeout=timeout, **kwargs)
        finally:
            session.close()

    logger.info(f"{provider} API呼び出し開始: {method} {url}")
    try:
        return run_with_deadline(_request, provider=provider, timeout=timeout)
    except requests.exceptions.Timeout as e:
        raise timeout_error(provider, timeout, url=url) from e
    except requests.exceptions.RequestException as e:
        logger.error(f"{provider} APIリクエストエラー: {str(e)}")
        raise UpstreamError(
            f"{provider} API error",
            detail="upstream request failed",
            log_context={"provider": provider, "url": url, "reason": str(e)[:200]},
        ) from e


def ensure_ok(response: requests.Response, provider: str) -> None:
    """2xx以外の応答を UpstreamError に変換（本文はログのみ）"""
    if 200 <= response.status_code < 300:
        return
    raise UpstreamError(
        f"{provider} API error",
        detail=f"HTTP {response.status_code}",
        log_context={"provider": provider, "body": body_snippet(response)},
    )


def parse_json(response: requests.Response, provider: str) -> Any:
    """JSON本文を取得。パースできなければ UpstreamError"""
    try:
        return response.json()
    except ValueError as e:
        raise UpstreamError(
            f"{provider} API error",
            detail="malformed upstream response",
            log_context={"provider": provider, "body": body_snippet(response)},
        ) from e


def get_json(
    url: str,
    *,
    provider: str,
    timeout: float,
    user_agent: str,
    params: Optional[dict] = None,
) -> Any:
    """GETして2xxならJSONを返す"""
    response = send(
        "GET",
        url,
        provider=provider,
        timeout=timeout,
        user_agent=user_agent,
        params=params,
    )
    ensure_ok(response, provider)
    return parse_json(response, provider)
