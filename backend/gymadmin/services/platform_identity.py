# Overview: Client for the hosted auth platform that validates bearer tokens.

"""
Platform Identity Client

Bearer tokens are issued by the hosted auth platform, not by this service.
They are validated by asking the platform who the token belongs to:

    GET {PLATFORM_AUTH_URL}/auth/v1/user
    apikey: <service key>
    Authorization: Bearer <token>

A 200 response carries the platform user; 401/403 mean the token is not
valid. Transport errors and 5xx responses raise StorageUnavailable so the
caller answers 503 instead of treating an outage as a bad token.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from ..errors import StorageUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlatformUser:
    id: str
    email: str | None


class PlatformIdentityClient:
    def __init__(
        self,
        base_url: str,
        service_key: str = "",
        *,
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.service_key = service_key
        self.timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.base_url)

    def get_user(self, token: str) -> PlatformUser | None:
        """Return the platform user owning `token`, or None if the token is rejected."""
        if not token or not self.configured:
            return None

        headers = {
            "apikey": self.service_key,
            "Authorization": f"Bearer {token}",
        }

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.get(f"{self.base_url}/auth/v1/user", headers=headers)
        except httpx.HTTPError as e:
            logger.error("Platform identity request failed: %s", e)
            raise StorageUnavailable("Identity service is temporarily unavailable") from e

        if response.status_code >= 500:
            logger.error("Platform identity service returned %s", response.status_code)
            raise StorageUnavailable("Identity service is temporarily unavailable")

        if response.status_code != 200:
            return None

        try:
            payload = response.json()
        except ValueError:
            logger.warning("Platform identity service returned a non-JSON body")
            return None

        user_id = payload.get("id") if isinstance(payload, dict) else None
        if not user_id:
            return None

        return PlatformUser(id=str(user_id), email=payload.get("email"))
