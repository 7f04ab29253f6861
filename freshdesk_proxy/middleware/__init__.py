"""
Middleware modules
"""
from .user_context_middleware import UserContextMiddleware
from .logging_middleware import LoggingMiddleware

__all__ = ["UserContextMiddleware", "LoggingMiddleware"]
