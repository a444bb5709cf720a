"""
Application Runner

This script is the entry point for running the webhook server.
Use: python run.py
"""

import uvicorn

from pkgdiff.config import get_settings


def main():
    """Run the application with uvicorn."""
    settings = get_settings()

    uvicorn.run(
        "pkgdiff.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
        access_log=settings.log_requests
    )


if __name__ == "__main__":
    main()
