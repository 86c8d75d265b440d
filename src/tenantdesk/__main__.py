"""Entrypoint: python -m tenantdesk"""
import uvicorn

from tenantdesk.core.config import get_settings


def main() -> None:
    """Serve the API; uvicorn drains in-flight requests on SIGTERM before shutdown."""
    settings = get_settings()
    uvicorn.run(
        "tenantdesk.api.main:build_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level="info",
        timeout_graceful_shutdown=30,
    )


if __name__ == "__main__":
    main()
