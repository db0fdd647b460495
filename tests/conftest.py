"""
テスト用の共通設定・フィクスチャ
"""

import json
import time
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app.config import Settings, get_settings
from app.main import app
from app.services import amazon_api, http_client

# 環境変数に左右されないよう、認証情報は明示的に上書きする
BASE_SETTINGS = {
    "RAKUTEN_APP_ID": "test-rakuten-app-id",
    "RAKUTEN_AFFILIATE_ID": None,
    "AMAZON_ACCESS_KEY": "AKIATESTACCESSKEY",
    "AMAZON_SECRET_KEY": "test-secret-key",
    "AMAZON_PARTNER_TAG": "test-22",
    "SEARCH_PROVIDER": "rakuten",
    "ALLOWED_ORIGIN": "*",
    "UPSTREAM_TIMEOUT": 15.0,
    "ENABLE_DEBUG_CREDS": False,
}

_NO_JSON = object()


def make_settings(**overrides) -> Settings:
    """テスト用の設定を作成（.envは読まない）"""
    values = {**BASE_SETTINGS, **overrides}
    return Settings(_env_file=None, **values)


class FakeResponse:
    """requests.Response の代わり"""

    def __init__(self, status_code=200, json_data=_NO_JSON, text=None):
        self.status_code = status_code
        self._json = json_data
        if text is None:
            text = "" if json_data is _NO_JSON else json.dumps(json_data)
        self.text = text

    def json(self):
        if self._json is _NO_JSON:
            raise ValueError("No JSON object could be decoded")
        return self._json


class Delayed:
    """指定秒数待ってから応答する（遅い外部APIの代わり）"""

    def __init__(self, result, seconds):
        self.result = result
        self.seconds = seconds


def _resolve(result):
    if isinstance(result, Delayed):
        time.sleep(result.seconds)
        result = result.result
    if isinstance(result, Exception):
        raise result
    return result


class FakeSession:
    """requests.Session の代わり（呼び出しを記録する）"""

    def __init__(self, stub, user_agent):
        self.stub = stub
        self.headers = {"User-Agent": user_agent}

    def request(self, method, url, timeout=None, **kwargs):
        self.stub.calls.append(
            {
                "method": method,
                "url": url,
                "timeout": timeout,
                "user_agent": self.headers.get("User-Agent"),
                **kwargs,
            }
        )
        if not self.stub.responses:
            raise AssertionError(f"想定外の外部API呼び出し: {method} {url}")
        return _resolve(self.stub.responses.pop(0))

    def close(self):
        pass


class UpstreamStub:
    """外部APIの応答を順番に返すスタブ"""

    def __init__(self):
        self.responses = []
        self.calls = []

    def queue(self, *responses):
        self.responses.extend(responses)
        return self

    def create_session(self, user_agent):
        return FakeSession(self, user_agent)


@pytest.fixture
def upstream(monkeypatch):
    """外部API呼び出しを差し替える"""
    stub = UpstreamStub()
    monkeypatch.setattr(http_client, "create_session", stub.create_session)
    return stub


@pytest.fixture
def configure():
    """テスト中の設定を差し替える"""

    def _configure(**overrides):
        settings = make_settings(**overrides)
        app.dependency_overrides[get_settings] = lambda: settings
        return settings

    return _configure


@pytest.fixture
def client(configure):
    """テスト用のAPIクライアント"""
    configure()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


class FakeAmazonApi:
    """amazon_paapi.AmazonApi の代わり（search_items の引数を記録する）"""

    def __init__(self):
        self.results = []
        self.calls = []
        self.settings = None

    def queue(self, *results):
        self.results.extend(results)
        return self

    def create_client(self, settings):
        self.settings = settings
        return self

    def search_items(self, **kwargs):
        self.calls.append(kwargs)
        if not self.results:
            raise AssertionError(f"想定外の SearchItems 呼び出し: {kwargs}")
        items = _resolve(self.results.pop(0))
        return SimpleNamespace(items=items)


@pytest.fixture
def amazon(monkeypatch):
    """PA-API クライアントを差し替える"""
    stub = FakeAmazonApi()
    monkeypatch.setattr(amazon_api, "create_client", stub.create_client)
    return stub
