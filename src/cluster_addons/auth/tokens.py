"""Signed tokens handed to in-cluster components that call back home."""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable

import jwt

SIGNING_ALGORITHM = "HS256"


class TokenGenerator:
    """Issue HS256 JWTs identifying a cluster to the alert endpoint.

    Args:
        issuer: ``iss`` claim.
        audience: ``aud`` claim.
        signing_key: Shared HMAC key.
        ttl_seconds: Token lifetime; None issues tokens without ``exp``.
        clock: Returns the current UNIX time (tests pass a fixed clock).
    """

    def __init__(
        self,
        issuer: str,
        audience: str,
        signing_key: str,
        *,
        ttl_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not signing_key:
            raise ValueError("signing_key must not be empty")
        self._issuer = issuer
        self._audience = audience
        self._signing_key = signing_key
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    def generate(self, cluster_id: int, organization_id: int) -> tuple[str, str]:
        """Generate a token for a cluster.

        Returns:
            ``(token_id, token)``; the id is the ``jti`` claim.
        """
        now = int(self._clock())
        token_id = str(uuid.uuid4())
        claims: dict[str, object] = {
            "iss": self._issuer,
            "aud": self._audience,
            "iat": now,
            "jti": token_id,
            "sub": f"clusters/{organization_id}/{cluster_id}",
            "clusterID": cluster_id,
            "organizationID": organization_id,
        }
        if self._ttl_seconds is not None:
            claims["exp"] = now + self._ttl_seconds

        token = jwt.encode(claims, self._signing_key, algorithm=SIGNING_ALGORITHM)
        return token_id, token
