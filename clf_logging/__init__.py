"""
clf_logging — Common Log Format JSON logging.

Provides:
- CommonLogger: one JSON line per entry on stdout, with identity and request fields
- BoundLogger: a logger handle bound to one request's context
- RequestContext / extract_correlation_id: tenant + correlation id from headers
- RequestContextMiddleware: FastAPI middleware that sets the request context
- Settings: platform identity (VCAP_APPLICATION, CLF_* overrides)

Usage — startup (main.py):
    from clf_logging import CommonLogger, RequestContextMiddleware
    clf_logger = CommonLogger.from_settings()
    app.add_middleware(RequestContextMiddleware, logger=clf_logger)

Usage — logging:
    clf_logger.info("some logging message")            # ambient context
    clf_logger.info(request, "some other message")     # request-local context
    clf_logger.bind(request).error("failed")
"""

from .config import Settings
from .logger import (
    NOT_AVAILABLE,
    SERIALIZATION_FALLBACK,
    TENANT_HEADER,
    TRACE_ID_HEADER,
    BoundLogger,
    CommonLogFormatter,
    CommonLogger,
    Identity,
    LogLevel,
    RequestContext,
    extract_correlation_id,
)
from .middleware import RequestContextMiddleware

__all__ = [
    # Core logger
    "CommonLogger",
    "BoundLogger",
    "CommonLogFormatter",
    "Identity",
    "LogLevel",
    "RequestContext",
    "extract_correlation_id",
    "NOT_AVAILABLE",
    "SERIALIZATION_FALLBACK",
    "TENANT_HEADER",
    "TRACE_ID_HEADER",
    # Configuration
    "Settings",
    # FastAPI middleware
    "RequestContextMiddleware",
]
