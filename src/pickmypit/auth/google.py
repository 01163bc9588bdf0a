"""Google sign-in: exchange an OAuth access token for the user's profile."""

from __future__ import annotations

from dataclasses import dataclass

import httpx
import structlog

from pickmypit.config import get_settings
from pickmypit.exceptions import AuthenticationError, ExternalServiceError, ValidationError

logger = structlog.get_logger()


@dataclass(frozen=True)
class GoogleProfile:
    email: str
    given_name: str | None = None
    family_name: str | None = None
    picture: str | None = None


class GoogleOAuthClient:
    """Calls the Google userinfo endpoint with a bearer token."""

    def __init__(self, userinfo_url: str, timeout: float = 10.0) -> None:
        self.userinfo_url = userinfo_url
        self.timeout = timeout

    async def fetch_profile(self, token: str) -> GoogleProfile:
        """
        Resolve ``token`` to a Google profile.

        Raises:
            AuthenticationError: Google rejected the token.
            ValidationError: The profile carries no email.
            ExternalServiceError: Timeout (retryable) or any other upstream failure.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    self.userinfo_url,
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.TimeoutException as e:
            logger.warning("google_userinfo_timeout")
            raise ExternalServiceError("Google sign-in timed out", retryable=True) from e
        except httpx.HTTPError as e:
            logger.exception("google_userinfo_failed")
            raise ExternalServiceError("Google sign-in failed") from e

        if response.status_code == 401:
            raise AuthenticationError("Invalid Google token", code="token_invalid")
        if response.status_code >= 400:
            logger.warning("google_userinfo_error", status_code=response.status_code)
            raise ExternalServiceError("Google sign-in failed")

        data = response.json()
        email = data.get("email")
        if not email:
            raise ValidationError("Invalid Google token")
        return GoogleProfile(
            email=str(email).lower().strip(),
            given_name=data.get("given_name"),
            family_name=data.get("family_name"),
            picture=data.get("picture"),
        )


def get_google_client() -> GoogleOAuthClient:
    """FastAPI dependency; tests override it with a stub client."""
    settings = get_settings()
    return GoogleOAuthClient(settings.google_userinfo_url, timeout=settings.external_timeout_seconds)
