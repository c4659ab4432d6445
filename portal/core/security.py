from __future__ import annotations

import base64
import binascii
import hmac
import json
import time
from hashlib import sha256
from typing import Literal

from fastapi import Header, HTTPException
from pydantic import BaseModel

from portal.core.config import get_settings


Role = Literal["user", "admin"]


class Principal(BaseModel):
    id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def _auth_error(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


def _extract_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _auth_error("invalid authorization header")
    return token.strip()


def _token_key() -> bytes:
    settings = get_settings()
    return settings.token_signing_secret.encode("utf-8")


def issue_token(subject: str, role: Role, ttl_seconds: int | None = None) -> str:
    settings = get_settings()
    now = int(time.time())
    payload = {
        "sub": subject,
        "role": role,
        "iat": now,
        "exp": now + (ttl_seconds if ttl_seconds is not None else settings.token_ttl_seconds),
    }
    body = json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
    mac = hmac.new(_token_key(), body, sha256).digest()
    return base64.urlsafe_b64encode(body + mac).decode("ascii")


def verify_token(token: str) -> Principal:
    try:
        raw = base64.urlsafe_b64decode(token.encode("ascii"))
    except (binascii.Error, ValueError) as exc:
        raise _auth_error("invalid token encoding") from exc

    if len(raw) <= 32:
        raise _auth_error("invalid token body")

    body, mac = raw[:-32], raw[-32:]
    expected = hmac.new(_token_key(), body, sha256).digest()
    if not hmac.compare_digest(mac, expected):
        raise _auth_error("token signature mismatch")

    payload = json.loads(body.decode("utf-8"))
    if int(time.time()) > int(payload.get("exp", 0)):
        raise _auth_error("token expired")
    if payload.get("role") not in {"user", "admin"} or not payload.get("sub"):
        raise _auth_error("token claims invalid")
    return Principal(id=str(payload["sub"]), role=payload["role"])


def get_principal(authorization: str | None = Header(default=None)) -> Principal:
    settings = get_settings()
    if not settings.auth_enabled:
        return Principal(id=settings.dev_principal_id, role="admin")

    token = _extract_token(authorization)
    if not token:
        raise _auth_error("missing bearer token")
    return verify_token(token)
