"""
HTTP middleware for request tracking and request guards.
"""

from inmobi.middleware.request_context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware"]
