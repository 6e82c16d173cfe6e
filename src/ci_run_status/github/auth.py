"""GitHub authentication providers."""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

import aiohttp
import jwt

from .exceptions import GitHubAuthenticationError

if TYPE_CHECKING:
    from ..config.models import GitHubConfig

logger = logging.getLogger(__name__)

# Refresh installation tokens this many seconds before GitHub expires them
TOKEN_EXPIRY_MARGIN = 60


@dataclass
class AuthToken:
    """Authentication token with metadata."""

    token: str
    token_type: str = "Bearer"
    expires_at: int | None = None

    @property
    def is_expired(self) -> bool:
        """Check if token is expired (or about to be)."""
        if self.expires_at is None:
            return False
        return time.time() >= self.expires_at - TOKEN_EXPIRY_MARGIN

    def to_header(self) -> dict[str, str]:
        """Convert to authorization header."""
        return {"Authorization": f"{self.token_type} {self.token}"}


class AuthProvider(ABC):
    """Abstract base class for authentication providers."""

    @abstractmethod
    async def get_token(self) -> AuthToken:
        """Get a valid authentication token."""
        pass

    @abstractmethod
    async def refresh_token(self) -> AuthToken:
        """Obtain a fresh authentication token."""
        pass


class PersonalAccessTokenAuth(AuthProvider):
    """Personal access token (or Actions GITHUB_TOKEN) provider."""

    def __init__(self, token: str):
        if not token:
            raise GitHubAuthenticationError("Personal Access Token is required")
        self._token = AuthToken(token=token, token_type="token")  # nosec B106

    async def get_token(self) -> AuthToken:
        return self._token

    async def refresh_token(self) -> AuthToken:
        return self._token


class GitHubAppAuth(AuthProvider):
    """GitHub App authentication provider.

    Signs a short-lived RS256 JWT with the app's private key. When an
    installation id is configured, the JWT is exchanged for an installation
    access token, which is cached until shortly before it expires.
    """

    def __init__(
        self,
        app_id: str,
        private_key: str,
        installation_id: str | None = None,
        base_url: str = "https://api.github.com",
    ):
        """Initialize GitHub App authentication.

        Args:
            app_id: GitHub App ID
            private_key: PEM private key used for JWT signing
            installation_id: Installation to request access tokens for
            base_url: GitHub API base URL
        """
        if not app_id or not private_key:
            raise GitHubAuthenticationError(
                "GitHub App authentication requires app_id and private_key"
            )
        self.app_id = app_id
        self.private_key = private_key
        self.installation_id = installation_id
        self.base_url = base_url.rstrip("/")
        self._current_token: AuthToken | None = None
        self._lock = asyncio.Lock()

    def _generate_jwt(self) -> str:
        """Generate JWT for GitHub App authentication."""
        now = int(time.time())
        payload = {
            "iat": now - 60,  # tolerate clock drift
            "exp": now + 600,  # GitHub maximum is 10 minutes
            "iss": self.app_id,
        }

        try:
            token = jwt.encode(payload, self.private_key, algorithm="RS256")
            return token if isinstance(token, str) else token.decode("utf-8")
        except Exception as e:
            raise GitHubAuthenticationError(f"Failed to generate JWT: {e}") from e

    async def get_token(self) -> AuthToken:
        if self._current_token and not self._current_token.is_expired:
            return self._current_token

        async with self._lock:
            if self._current_token and not self._current_token.is_expired:
                return self._current_token
            return await self.refresh_token()

    async def refresh_token(self) -> AuthToken:
        jwt_token = self._generate_jwt()

        if not self.installation_id:
            self._current_token = AuthToken(
                token=jwt_token,
                token_type="Bearer",  # nosec B106
                expires_at=int(time.time()) + 600,
            )
            return self._current_token

        self._current_token = await self._exchange_for_installation_token(jwt_token)
        return self._current_token

    async def _exchange_for_installation_token(self, jwt_token: str) -> AuthToken:
        """Exchange an app JWT for an installation access token.

        Raises:
            GitHubAuthenticationError: If GitHub refuses the exchange
        """
        url = (
            f"{self.base_url}/app/installations/{self.installation_id}/access_tokens"
        )
        headers = {
            "Authorization": f"Bearer {jwt_token}",
            "Accept": "application/vnd.github+json",
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(url, headers=headers) as response:
                    if response.status != 201:
                        text = await response.text()
                        raise GitHubAuthenticationError(
                            f"Installation token exchange failed: {text}",
                            status_code=response.status,
                        )
                    data = await response.json()
        except aiohttp.ClientError as e:
            raise GitHubAuthenticationError(
                f"Installation token exchange failed: {e}"
            ) from e

        expires_at = None
        if data.get("expires_at"):
            expires_at = int(
                datetime.fromisoformat(
                    data["expires_at"].replace("Z", "+00:00")
                ).timestamp()
            )

        logger.debug(f"Obtained installation token for installation {self.installation_id}")
        return AuthToken(
            token=data["token"],
            token_type="token",  # nosec B106
            expires_at=expires_at,
        )


def create_auth_provider(config: "GitHubConfig") -> AuthProvider:
    """Build the auth provider described by a GitHub configuration.

    A personal access token wins over GitHub App credentials when both are set.
    """
    if config.token:
        return PersonalAccessTokenAuth(config.token)

    if config.app_id and config.private_key:
        return GitHubAppAuth(
            app_id=config.app_id,
            private_key=config.private_key,
            installation_id=config.installation_id,
            base_url=config.base_url,
        )

    raise GitHubAuthenticationError(
        "No GitHub credentials configured: set a token or GitHub App credentials"
    )
