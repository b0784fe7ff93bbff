"""
Entry point: python -m render_service

uvicorn handles SIGTERM/SIGINT and runs the app's shutdown hook, which
closes the shared Chromium before the process exits.
"""

import uvicorn

from .config import settings


def main() -> None:
    uvicorn.run(
        "render_service.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        timeout_graceful_shutdown=int(settings.render_timeout_seconds + settings.shutdown_grace_seconds),
    )


if __name__ == "__main__":
    main()
