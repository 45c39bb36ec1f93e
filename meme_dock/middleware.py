"""Request tracking middleware, Appwrite JWT authentication and rate limiting."""

import asyncio
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime

from appwrite.exception import AppwriteException
from appwrite.services.account import Account
from appwrite.services.teams import Teams
from fastapi import Request
from jose import JWTError, jwt
from loguru import logger
from slowapi import Limiter
from slowapi.util import get_remote_address

from .clients import create_admin_client, create_jwt_client
from .config import Settings, settings
from .exceptions import AuthenticationError, AuthorizationError, ConfigError


async def add_request_id(request: Request, call_next):
    """Add request ID to context for tracking.

    Args:
        request: Incoming FastAPI request.
        call_next: Next middleware or handler in chain.

    Returns:
        Response with X-Request-ID header.
    """
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    request.state.request_id = request_id

    with logger.contextualize(request_id=request_id):
        logger.debug(
            "Request started",
            method=request.method,
            path=request.url.path,
            client=request.client.host if request.client else None,
        )

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        logger.debug("Request completed", status_code=response.status_code)

        return response


def get_limiter(config: Settings | None = None) -> Limiter:
    """Create the rate limiter, backed by Redis when configured."""
    config = config or settings
    return Limiter(
        key_func=get_remote_address,
        storage_uri=config.redis_url or "memory://",
        default_limits=[config.default_rate_limit],
        enabled=config.rate_limit_enabled,
    )


limiter = get_limiter()


@dataclass(frozen=True)
class AuthContext:
    """Who is making the request."""

    user_id: str | None = None
    is_admin: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


def bearer_token(request: Request) -> str | None:
    """Extract the token from an ``Authorization: Bearer`` header."""
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    token = header[len("Bearer ") :].strip()
    return token or None


def check_token_claims(token: str) -> dict:
    """Reject malformed or expired JWTs before asking Appwrite.

    The signature is not verified here; Appwrite does that.

    Raises:
        AuthenticationError: If the token cannot be decoded or has expired.
    """
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError as e:
        raise AuthenticationError("Invalid token format") from e

    exp = claims.get("exp")
    if isinstance(exp, int | float) and datetime.fromtimestamp(exp, UTC) <= datetime.now(UTC):
        raise AuthenticationError("Invalid or expired token")
    return claims


class AppwriteAuthenticator:
    """Resolves Appwrite JWTs to users and checks admin team membership."""

    def __init__(self, config: Settings | None = None):
        self.config = config or settings

    @property
    def is_configured(self) -> bool:
        return self.config.is_appwrite_configured

    async def get_user_id(self, token: str) -> str:
        """Verify a JWT with Appwrite and return the user's ID.

        Raises:
            AuthenticationError: If Appwrite rejects the token.
        """
        check_token_claims(token)
        client = create_jwt_client(token, self.config)
        loop = asyncio.get_running_loop()
        try:
            user = await loop.run_in_executor(None, lambda: Account(client).get())
        except AppwriteException as e:
            logger.warning(f"Token verification failed: {e.message}")
            raise AuthenticationError("Invalid or expired token") from e

        user_id = user.get("$id")
        if not user_id:
            raise AuthenticationError("Invalid token")
        return user_id

    async def is_admin(self, user_id: str) -> bool:
        """Check membership of the configured admin team.

        Raises:
            ConfigError: If no admin team is configured.
        """
        team_id = self.config.appwrite_admin_team_id
        if not team_id:
            raise ConfigError("Server configuration error: Admin team not configured")

        teams = Teams(create_admin_client(self.config))
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, lambda: teams.list_memberships(team_id))
        return any(m.get("userId") == user_id for m in result.get("memberships", []))


def _authenticator(request: Request) -> AppwriteAuthenticator:
    return request.app.state.authenticator


async def require_user(request: Request) -> str:
    """Dependency: the authenticated user's ID."""
    auth = _authenticator(request)
    if not auth.is_configured:
        raise ConfigError("Server configuration error: Appwrite endpoint or project ID not set")

    token = bearer_token(request)
    if token is None:
        raise AuthenticationError("Authentication required")

    user_id = await auth.get_user_id(token)
    request.state.user_id = user_id
    return user_id


async def require_admin(request: Request) -> str:
    """Dependency: the authenticated user's ID, who must belong to the admin team."""
    auth = _authenticator(request)
    if not auth.config.appwrite_admin_team_id:
        raise ConfigError("Server configuration error: Admin team not configured")

    user_id = await require_user(request)
    if not await auth.is_admin(user_id):
        logger.warning(f"User {user_id} denied admin access to {request.url.path}")
        raise AuthorizationError()
    return user_id


async def optional_user(request: Request) -> AuthContext:
    """Dependency: identify the caller when possible, never fail."""
    auth = _authenticator(request)
    token = bearer_token(request)
    if token is None or not auth.is_configured:
        return AuthContext()

    try:
        user_id = await auth.get_user_id(token)
    except AuthenticationError as e:
        logger.debug(f"Optional authentication failed: {e.message}")
        return AuthContext()

    try:
        is_admin = await auth.is_admin(user_id)
    except (ConfigError, AppwriteException) as e:
        logger.debug(f"Admin check skipped: {e}")
        is_admin = False

    return AuthContext(user_id=user_id, is_admin=is_admin)
