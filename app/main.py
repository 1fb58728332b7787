# app/main.py
"""
Run the gateway with uvicorn.

Usage:
    python -m app.main
    uvicorn app.transport.http_app:create_app --factory   # equivalent
"""
import uvicorn

from app.config import Settings
from app.transport.http_app import create_app


def main() -> None:
    settings = Settings()
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_config=None,  # setup_logging() owns the root logger
    )


if __name__ == "__main__":
    main()
