"""
Process entry point for the BranchOps dashboard API.
"""

from app import create_app

# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    from core.config import settings
    from core.logging_config import UVICORN_LOGGING_CONFIG

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.api.debug,
        workers=1 if settings.api.debug else 4,
        log_level="info",
        log_config=UVICORN_LOGGING_CONFIG,
        access_log=True,
        timeout_graceful_shutdown=10,
        server_header=False,
    )
