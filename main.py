"""
起動スクリプト

    python main.py
"""
import uvicorn
from dotenv import load_dotenv

load_dotenv()

from app.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        # 処理中の外部API呼び出しがタイムアウトするまで待つ
        timeout_graceful_shutdown=int(settings.UPSTREAM_TIMEOUT),
    )


if __name__ == "__main__":
    main()
