"""
API Middleware Module

This module contains middleware for request/response processing and error handling.

Modules:
    - correlation: Request correlation ID and request context middleware
    - error_handlers: Exception handlers rendering the error envelope
"""

from .correlation import CorrelationIdMiddleware
from .error_handlers import register_error_handlers

__all__ = ["CorrelationIdMiddleware", "register_error_handlers"]
