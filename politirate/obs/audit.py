"""Audit trail for API requests.

Every request produces one JSON :class:`AuditLogRecord` on the ``audit``
logger. Mutating requests (votes, ratings, moderation, settings changes) are
also appended to a per-day object in S3 by :class:`S3AuditSink`. Contact
details and credentials never reach either destination in clear text.
"""
from __future__ import annotations

import json
import logging
import random
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Callable
from uuid import uuid4

import boto3
from botocore.exceptions import BotoCoreError, ClientError  # type: ignore[import-untyped]
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from politirate.core.config import Settings

LOGGER = logging.getLogger("audit")

REDACTED = "***"
_SENSITIVE_KEYS = frozenset(
    {
        "password",
        "access_token",
        "refresh_token",
        "email",
        "user_email",
        "contact_email",
        "contact_phone",
        "phone",
    }
)
_MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})
_UNAUDITED_PATHS = frozenset({"/metrics", "/api/healthz", "/api/readyz"})


def mask_payload(value: Any) -> Any:
    """Redact credentials and contact details anywhere in a JSON payload.

    Values under a sensitive key are replaced outright; any other string that
    looks like an e-mail address keeps only its first character and domain.
    """

    if isinstance(value, dict):
        return {
            key: (REDACTED if value_ is not None else None) if key.lower() in _SENSITIVE_KEYS else mask_payload(value_)
            for key, value_ in value.items()
        }
    if isinstance(value, list):
        return [mask_payload(item) for item in value]
    if isinstance(value, str) and "@" in value:
        local, _, domain = value.rpartition("@")
        if not domain:
            return f"{REDACTED}@{REDACTED}"
        return f"{local[:1]}{REDACTED}@{domain}"
    return value


@dataclass(slots=True)
class AuditLogRecord:
    timestamp: str
    request_id: str
    method: str
    path: str
    route: str | None
    status: int
    duration_ms: float
    actor_id: str | None
    actor_role: str | None
    ip_address: str | None
    query: dict[str, Any]
    body: Any

    def to_json(self) -> str:
        payload = asdict(self)
        payload["duration_ms"] = round(self.duration_ms, 2)
        return json.dumps(payload, default=str)


class S3AuditSink:
    """Append audit records to ``<prefix>/YYYY/MM/DD/audit.log`` in a bucket."""

    def __init__(self, settings: Settings, client_factory: Callable[[], Any] | None = None) -> None:
        self._settings = settings
        self._client_factory = client_factory or self._default_client
        self._client: Any | None = None
        self._bucket_ready = False

    def _default_client(self) -> Any:
        return boto3.client(
            "s3",
            region_name=self._settings.aws_region,
            endpoint_url=self._settings.s3_endpoint_url,
        )

    def reset(self) -> None:
        self._client = None
        self._bucket_ready = False

    def should_sample(self) -> bool:
        rate = self._settings.audit_log_sample_rate
        if rate <= 0:
            return False
        return rate >= 1 or random.random() <= rate

    def object_key(self, when: datetime) -> str:
        prefix = self._settings.audit_log_prefix.rstrip("/")
        return f"{prefix}/{when:%Y/%m/%d}/audit.log"

    def _client_with_bucket(self) -> Any:
        if self._client is None:
            self._client = self._client_factory()
        if not self._bucket_ready:
            bucket = self._settings.audit_log_bucket
            try:
                self._client.head_bucket(Bucket=bucket)
            except ClientError:
                params: dict[str, Any] = {"Bucket": bucket}
                if self._settings.aws_region != "us-east-1" and self._settings.s3_endpoint_url is None:
                    params["CreateBucketConfiguration"] = {"LocationConstraint": self._settings.aws_region}
                self._client.create_bucket(**params)
            self._bucket_ready = True
        return self._client

    def _existing(self, client: Any, key: str) -> bytes:
        try:
            return client.get_object(Bucket=self._settings.audit_log_bucket, Key=key)["Body"].read()
        except client.exceptions.NoSuchKey:  # type: ignore[attr-defined]
            return b""
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in {"404", "NoSuchKey"}:
                return b""
            raise

    def write(self, record: AuditLogRecord) -> None:
        if not self.should_sample():
            return
        client = self._client_with_bucket()
        key = self.object_key(datetime.now(timezone.utc))
        client.put_object(
            Bucket=self._settings.audit_log_bucket,
            Key=key,
            Body=self._existing(client, key) + record.to_json().encode("utf-8") + b"\n",
            ContentType="application/json",
        )


class AuditMiddleware(BaseHTTPMiddleware):
    """Log one audit record per request and persist the mutating ones."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        settings: Settings,
        logger: logging.Logger | None = None,
        s3_client_factory: Callable[[], Any] | None = None,
    ) -> None:
        super().__init__(app)
        self._logger = logger or LOGGER
        self.sink = S3AuditSink(settings, s3_client_factory)

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        request.state.request_id = request_id
        if request.url.path in _UNAUDITED_PATHS:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

        started = time.perf_counter()
        body = await request.body()
        _replay_body(request, body)

        response = await call_next(request)

        record = AuditLogRecord(
            timestamp=datetime.now(timezone.utc).isoformat(),
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            route=getattr(request.scope.get("route"), "path", None),
            status=response.status_code,
            duration_ms=(time.perf_counter() - started) * 1000,
            actor_id=getattr(request.state, "user_id", None),
            actor_role=getattr(request.state, "user_role", None),
            ip_address=request.client.host if request.client else None,
            query=mask_payload(dict(request.query_params.multi_items())),
            body=_decode_body(body),
        )
        self._logger.info(record.to_json())

        if request.method in _MUTATING_METHODS:
            try:
                self.sink.write(record)
            except (BotoCoreError, ClientError) as exc:
                self._logger.error("failed to persist audit record", extra={"error": str(exc)})

        response.headers["X-Request-ID"] = request_id
        return response


def _decode_body(body: bytes) -> Any:
    if not body:
        return None
    try:
        return mask_payload(json.loads(body))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return "<binary>"


def _replay_body(request: Request, body: bytes) -> None:
    """Let the endpoint read a body the middleware has already consumed."""

    consumed = False

    async def receive() -> dict[str, Any]:
        nonlocal consumed
        if consumed:
            return {"type": "http.request", "body": b"", "more_body": False}
        consumed = True
        return {"type": "http.request", "body": body, "more_body": False}

    request._receive = receive  # type: ignore[attr-defined]


__all__ = ["AuditLogRecord", "AuditMiddleware", "S3AuditSink", "mask_payload"]
