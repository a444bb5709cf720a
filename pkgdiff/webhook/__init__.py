"""
Webhook Package

This package contains webhook handling components:
- handler: FastAPI route handlers
- security: Webhook signature verification
- processor: dependency diff pipeline
"""

from pkgdiff.webhook.handler import router

__all__ = ["router"]
