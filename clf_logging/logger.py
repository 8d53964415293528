"""
Common Log Format logger.

Every entry is one line of compact JSON on stdout:

    {"time":"2018-03-07T21:13:50.849","tnt":"2bcdb0d5-...","corr":"a07c9244b37b1961",
     "appn":"analysis-data-svc","dpmt":"bbb60ff8-...","inst":"0","lvl":"INFO","msg":"..."}
"""

import json
import logging
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import IO, Any, Dict, Optional, Union

from .config import Settings

NOT_AVAILABLE = "na"

TENANT_HEADER = "tenant"
TRACE_ID_HEADER = "x-amzn-trace-id"

SERIALIZATION_FALLBACK = "Error converting logging JSON to a string"


# ── Public types ──────────────────────────────────────────────────────────────


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    ERROR = "ERROR"


@dataclass
class Identity:
    """Process-wide identity fields. Set once at startup via ``init``."""

    deployment_id: str = NOT_AVAILABLE
    application_name: str = NOT_AVAILABLE
    instance_index: Optional[str] = None
    module: str = NOT_AVAILABLE


def extract_correlation_id(trace_header: Optional[str]) -> Optional[str]:
    """
    Derive a correlation id from an ``x-amzn-trace-id`` header value.

    ``Root=1-5e1b4151-5ac6c58d...;Parent=...`` → the 33 characters following
    ``Root=1-`` with the first hyphen removed. Returns None when the header is
    missing or has no ``Root`` segment.
    """
    if not trace_header:
        return None
    root_idx = trace_header.find("Root")
    if root_idx == -1:
        return None
    return trace_header[root_idx + 7 : root_idx + 40].replace("-", "", 1)


def _headers_of(request: Any) -> Optional[Mapping]:
    if request is None:
        return None
    # Starlette requests are Mappings over the ASGI scope, so try the attribute first
    headers = getattr(request, "headers", None)
    if headers is None and isinstance(request, Mapping):
        headers = request.get("headers")
    return headers


@dataclass(frozen=True)
class RequestContext:
    """
    Per-request log fields (tenant + correlation id).

    Resolve once per request and pass it along:
        ctx = RequestContext.from_request(request)
        logger.info(ctx, "processing")
    """

    tenant: str = NOT_AVAILABLE
    correlation_id: str = NOT_AVAILABLE

    @classmethod
    def from_request(cls, request: Any) -> "RequestContext":
        headers = _headers_of(request)
        if headers is None:
            return cls()
        return cls(
            tenant=headers.get(TENANT_HEADER) or NOT_AVAILABLE,
            correlation_id=extract_correlation_id(headers.get(TRACE_ID_HEADER))
            or NOT_AVAILABLE,
        )


# ── Formatter ─────────────────────────────────────────────────────────────────


class CommonLogFormatter(logging.Formatter):
    """
    Renders Common Log Format lines.

    CommonLogger calls ``render`` before emitting, so every record carries the
    finished JSON line as its message and any handler can print it as-is.
    Anything that fails while building or serializing the entry is replaced
    by SERIALIZATION_FALLBACK.
    """

    def _build_entry(self, fields: Dict[str, Any], message: Any) -> Dict[str, Any]:
        now = datetime.now(timezone.utc)
        entry: Dict[str, Any] = {
            "time": now.replace(tzinfo=None).isoformat(timespec="milliseconds")
        }
        entry.update(fields)

        if message:
            entry["msg"] = message if isinstance(message, str) else str(message)
        return entry

    def render(self, fields: Dict[str, Any], message: Any) -> str:
        try:
            return json.dumps(self._build_entry(fields, message), separators=(",", ":"))
        except Exception:
            return SERIALIZATION_FALLBACK

    def format(self, record: logging.LogRecord) -> str:
        return record.getMessage()


# ── CommonLogger ──────────────────────────────────────────────────────────────


class CommonLogger:
    """
    Common Log Format logger.

    Construct once at startup and pass it around:
        logger = CommonLogger()
        logger.init(app_id, app_name, instance_index, "billing")

    Ambient request context (middleware style, last write wins):
        logger.set_context(request)
        logger.info("some logging message")

    Explicit request context (safe with interleaved requests):
        logger.info(request, "some other message")
        logger.bind(request).info("and another")
    """

    _LEVEL_TO_INT: Dict[str, int] = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "ERROR": logging.ERROR,
    }

    def __init__(self, stream: Optional[IO[str]] = None, name: str = "clf_logging") -> None:
        self.identity = Identity()
        self.context = RequestContext()

        # Outside the logging registry: each instance keeps its own handlers
        logger = logging.Logger(name, logging.DEBUG)

        self._formatter = CommonLogFormatter()
        handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
        handler.setFormatter(self._formatter)
        logger.addHandler(handler)
        logger.propagate = False

        self._logger = logger

    def add_handler(self, handler: logging.Handler) -> None:
        """Send entries to another handler too. Records carry the finished line."""
        self._logger.addHandler(handler)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        stream: Optional[IO[str]] = None,
        name: str = "clf_logging",
    ) -> "CommonLogger":
        """Build a logger whose identity comes from platform settings."""
        settings = settings if settings is not None else Settings()
        instance = cls(stream=stream, name=name)
        instance.init(
            settings.deployment_id(),
            settings.application_name(),
            settings.instance_index(),
            settings.module(),
        )
        return instance

    # ── identity ──────────────────────────────────────────────────────────

    def init(
        self,
        deployment_id: Optional[str] = None,
        application_name: Optional[str] = None,
        instance_index: Union[str, int, None] = None,
        module: Optional[str] = None,
    ) -> None:
        """One-time initialization. Falsy values fall back to defaults."""
        self.identity = Identity(
            deployment_id=deployment_id or NOT_AVAILABLE,
            application_name=application_name or NOT_AVAILABLE,
            instance_index=str(instance_index) if instance_index else "0",
            module=module or NOT_AVAILABLE,
        )

    # ── request context ───────────────────────────────────────────────────

    extract_correlation_id = staticmethod(extract_correlation_id)

    @property
    def tenant(self) -> str:
        return self.context.tenant

    @property
    def correlation_id(self) -> str:
        return self.context.correlation_id

    def set_context(self, request: Any = None) -> None:
        """Set the ambient context for a single request."""
        self.context = RequestContext.from_request(request)

    def bind(self, request: Any) -> "BoundLogger":
        """Return a handle that logs with this request's context."""
        if isinstance(request, RequestContext):
            return BoundLogger(self, request)
        return BoundLogger(self, RequestContext.from_request(request))

    def _resolve_context(self, request: Any) -> RequestContext:
        if isinstance(request, RequestContext):
            return request
        if _headers_of(request) is not None:
            return RequestContext.from_request(request)
        return self.context

    # ── logging ───────────────────────────────────────────────────────────

    def log(
        self,
        level: Union[LogLevel, str, None],
        message: Any = None,
        request: Any = None,
    ) -> None:
        """
        General logging method.

        ``request`` may be a request object or a RequestContext. Without one
        (or when it has no headers) the ambient context is used.
        """
        context = self._resolve_context(request)
        identity = self.identity

        fields: Dict[str, Any] = {
            "tnt": context.tenant,
            "corr": context.correlation_id,
            "appn": identity.application_name,
            "dpmt": identity.deployment_id,
        }
        # optional properties only when there is something to say
        if identity.module != NOT_AVAILABLE:
            fields["mod"] = identity.module
        if identity.instance_index:
            fields["inst"] = identity.instance_index

        level_name = level.value if isinstance(level, LogLevel) else level
        if level_name:
            fields["lvl"] = level_name

        self._logger.log(
            self._LEVEL_TO_INT.get(str(level_name).upper(), logging.INFO),
            self._formatter.render(fields, message),
        )

    def _dispatch(self, level: LogLevel, request_or_message: Any, message: Any) -> None:
        if message:
            self.log(level, message, request=request_or_message)
        else:
            # a single argument is the message
            self.log(level, request_or_message)

    def info(self, request_or_message: Any = None, message: Any = None) -> None:
        self._dispatch(LogLevel.INFO, request_or_message, message)

    def debug(self, request_or_message: Any = None, message: Any = None) -> None:
        self._dispatch(LogLevel.DEBUG, request_or_message, message)

    def error(self, request_or_message: Any = None, message: Any = None) -> None:
        self._dispatch(LogLevel.ERROR, request_or_message, message)


class BoundLogger:
    """Logger bound to one request context."""

    def __init__(self, logger: CommonLogger, context: RequestContext) -> None:
        self._logger = logger
        self.context = context

    def log(self, level: Union[LogLevel, str, None], message: Any = None) -> None:
        self._logger.log(level, message, request=self.context)

    def info(self, message: Any) -> None:
        self.log(LogLevel.INFO, message)

    def debug(self, message: Any) -> None:
        self.log(LogLevel.DEBUG, message)

    def error(self, message: Any) -> None:
        self.log(LogLevel.ERROR, message)
