"""
FastAPI メインアプリケーション
キーワードサジェスト・商品検索ゲートウェイ
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

load_dotenv()

from app.config import Settings, get_settings
from app.exceptions import GatewayError
from app.routers.health import router as health_router
from app.routers.search import router as search_router
from app.routers.suggest import router as suggest_router
from app.schemas.common import ErrorResponse

# ログ設定
logging.basicConfig(
    level=get_settings().LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ============================================
# ライフサイクル管理
# ============================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """アプリケーションの起動・終了処理"""
    current = get_settings()
    logger.info(f"{current.PROJECT_NAME} starting... provider={current.SEARCH_PROVIDER}")

    # 認証情報がなくても起動は続行する（リクエスト時にエラーを返す）
    if not current.RAKUTEN_APP_ID:
        logger.warning("RAKUTEN_APP_ID が設定されていません")
    missing = current.missing_amazon_credentials()
    if missing:
        logger.warning(f"Amazon認証情報が未設定: {', '.join(missing)}")
    if current.ENABLE_DEBUG_CREDS:
        logger.warning("ENABLE_DEBUG_CREDS が有効です。本番では無効にしてください")

    yield

    logger.info(f"{current.PROJECT_NAME} shutting down...")


# ============================================
# 例外ハンドラ
# ============================================
async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    """GatewayError を {error, detail?} に変換（外部APIの本文はログのみ）"""
    level = logging.WARNING if exc.status_code < 500 else logging.ERROR
    logger.log(
        level,
        f"{exc.message}: method={request.method} path={request.url.path} "
        f"status={exc.status_code} type={type(exc).__name__} "
        f"detail={exc.detail} context={exc.log_context}",
    )
    body = ErrorResponse(error=exc.message, detail=exc.detail)
    return JSONResponse(
        status_code=exc.status_code, content=body.model_dump(exclude_none=True)
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"予期しないエラー: method={request.method} path={request.url.path}")
    body = ErrorResponse(error="Internal server error")
    return JSONResponse(status_code=500, content=body.model_dump(exclude_none=True))


# ============================================
# FastAPI アプリケーション
# ============================================
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """アプリケーションを作成（settings 省略時は環境変数の設定）"""
    explicit = settings is not None
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Googleサジェスト・楽天市場・Amazon PA-API 連携ゲートウェイ",
        version=settings.VERSION,
        lifespan=lifespan,
    )
    if explicit:
        app.dependency_overrides[get_settings] = lambda: settings

    # CORS設定（許可するオリジンは1つ）
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.ALLOWED_ORIGIN],
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"({elapsed_ms:.1f}ms)"
        )
        return response

    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # ルータ登録
    app.include_router(health_router)
    app.include_router(suggest_router)
    app.include_router(search_router)

    return app


app = create_app()
