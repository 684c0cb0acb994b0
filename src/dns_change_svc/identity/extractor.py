"""Caller identity extraction from requests."""

from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


@dataclass
class SubjectExtractor:
    """
    Extracts the numeric user id ("sub") of the caller.

    Supported sources, in order:
    - Custom extractor (if configured)
    - JWT bearer token ``sub`` claim (signature is verified by the gateway
      in front of this service, not here)
    - Trusted ``X-User-ID`` header set by that gateway
    """
    jwt_header: str = "Authorization"
    user_id_header: str = "X-User-ID"
    jwt_user_claim: str = "sub"

    custom_extractor: Callable[[Request], int | None] | None = None

    def extract(self, request: Request) -> int | None:
        if self.custom_extractor:
            sub = self.custom_extractor(request)
            if sub is not None:
                return sub

        sub = self._extract_jwt(request)
        if sub is not None:
            return sub

        return self._extract_header(request)

    def _extract_jwt(self, request: Request) -> int | None:
        """Read the user claim from a JWT Bearer token."""
        auth_header = request.headers.get(self.jwt_header, "")
        if not auth_header.startswith("Bearer "):
            return None

        token = auth_header[7:]

        try:
            # JWT format: header.payload.signature
            parts = token.split(".")
            if len(parts) != 3:
                return None

            payload_b64 = parts[1]
            padding = 4 - len(payload_b64) % 4
            if padding != 4:
                payload_b64 += "=" * padding

            payload = json.loads(base64.urlsafe_b64decode(payload_b64))
            return _as_user_id(payload.get(self.jwt_user_claim))

        except (ValueError, TypeError, AttributeError) as e:
            logger.debug(f"Failed to extract JWT subject: {e}")
            return None

    def _extract_header(self, request: Request) -> int | None:
        return _as_user_id(request.headers.get(self.user_id_header))


def _as_user_id(value: object) -> int | None:
    """Coerce a claim or header to a positive integer user id."""
    if value is None or isinstance(value, bool):
        return None
    try:
        user_id = int(str(value).strip())
    except ValueError:
        return None
    return user_id if user_id > 0 else None


class SubjectMiddleware(BaseHTTPMiddleware):
    """Populates ``request.state.sub`` with the caller's user id (or None)."""

    def __init__(self, app: ASGIApp, extractor: SubjectExtractor | None = None):
        super().__init__(app)
        self.extractor = extractor or SubjectExtractor()

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.sub = self.extractor.extract(request)
        return await call_next(request)
