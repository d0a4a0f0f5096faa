"""
Supabase identity backend.

Wraps ``AsyncClient.auth`` behind IIdentityBackend: maps Supabase sessions
to the client's Session model and Supabase errors to the auth error kinds.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import httpx
import jwt
from pydantic import ValidationError as PydanticValidationError
from supabase import AsyncClient, AuthError

from shared.config import Settings, get_settings
from shared.exceptions import NetworkUnavailableError, StudyCoreError
from shared.models import Session
from shared.observability import mask_email
from .interfaces import SessionChangeHandler
from .models import AuthEvent
from .exceptions import (
    EmailNotConfirmedError,
    InvalidCredentialsError,
    SessionQueryFailedError,
    UnknownAuthError,
)

logger = logging.getLogger(__name__)

# Redirect targets embedded in emails
VERIFIED_REDIRECT_PATH = "/login?verified=true"
RESET_PASSWORD_REDIRECT_PATH = "/reset-password"


def token_issued_at(access_token: Optional[str]) -> datetime:
    """
    Read the ``iat`` claim of an access token.

    The signature is not checked: the client is not the verifying party and
    only needs the issue time. Falls back to now for malformed tokens.
    """
    if access_token:
        try:
            claims = jwt.decode(access_token, options={"verify_signature": False})
        except jwt.PyJWTError as e:
            logger.debug(f"Could not decode access token: {e}")
        else:
            iat = claims.get("iat")
            if iat is not None:
                return datetime.fromtimestamp(iat, tz=timezone.utc)
    return datetime.now(timezone.utc)


def map_auth_session(auth_session: Any) -> Session:
    """
    Map a Supabase auth session to the client's Session model.

    Raises:
        UnknownAuthError: The backend returned a session the model rejects
    """
    user = auth_session.user
    metadata = user.user_metadata or {}
    try:
        return Session(
            user_id=str(user.id),
            email=user.email or None,
            email_verified_at=user.email_confirmed_at,
            issued_at=token_issued_at(auth_session.access_token),
            role_hint=metadata.get("role"),
        )
    except PydanticValidationError as e:
        logger.warning(f"Malformed session for user {user.id}: {e.error_count()} invalid fields")
        raise UnknownAuthError("Malformed session from identity backend") from e


# Substrings of Supabase error codes/messages, checked in order
_ERROR_PATTERNS: tuple[tuple[str, type[StudyCoreError]], ...] = (
    ("invalid_credentials", InvalidCredentialsError),
    ("invalid login credentials", InvalidCredentialsError),
    ("email_not_confirmed", EmailNotConfirmedError),
    ("email not confirmed", EmailNotConfirmedError),
)


def classify_auth_error(error: AuthError) -> StudyCoreError:
    """Map a Supabase auth error to an auth error kind."""
    message = getattr(error, "message", None) or str(error)
    code = getattr(error, "code", None) or ""
    haystack = f"{code} {message}".lower()

    for pattern, error_cls in _ERROR_PATTERNS:
        if pattern in haystack:
            return error_cls(message)

    # Retryable fetch errors carry status 0: the request never got an answer
    if getattr(error, "status", None) == 0:
        return NetworkUnavailableError("auth", message)
    return UnknownAuthError(message)


class SupabaseIdentityBackend:
    """
    Implementation of IIdentityBackend over the Supabase async client.

    The client persists and refreshes the session itself; this adapter never
    stores tokens.
    """

    def __init__(self, db: AsyncClient, settings: Optional[Settings] = None):
        self._db = db
        self._settings = settings or get_settings()

    async def get_session(self) -> Optional[Session]:
        try:
            auth_session = await self._db.auth.get_session()
        except httpx.TransportError as e:
            raise SessionQueryFailedError(f"Session query failed: {e}") from e
        except AuthError as e:
            raise SessionQueryFailedError(getattr(e, "message", None) or str(e)) from e

        if auth_session is None:
            return None
        try:
            return map_auth_session(auth_session)
        except UnknownAuthError as e:
            raise SessionQueryFailedError(e.message) from e

    async def sign_in(self, email: str, password: str) -> Optional[Session]:
        try:
            response = await self._db.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except httpx.TransportError as e:
            raise NetworkUnavailableError("auth", str(e)) from e
        except AuthError as e:
            error = classify_auth_error(e)
            logger.info(f"Sign-in rejected for {mask_email(email)}: {error.code} ({error.message})")
            raise error from e

        if response is None or response.session is None:
            return None
        return map_auth_session(response.session)

    async def sign_up(
        self,
        email: str,
        password: str,
        role_hint: Optional[str] = None,
    ) -> Optional[Session]:
        options: dict[str, Any] = {
            "email_redirect_to": self._settings.redirect_url(VERIFIED_REDIRECT_PATH),
        }
        if role_hint:
            options["data"] = {"role": role_hint}

        try:
            response = await self._db.auth.sign_up(
                {"email": email, "password": password, "options": options}
            )
        except httpx.TransportError as e:
            raise NetworkUnavailableError("auth", str(e)) from e
        except AuthError as e:
            error = classify_auth_error(e)
            logger.info(f"Sign-up rejected for {mask_email(email)}: {error.code} ({error.message})")
            raise error from e

        if response is None or response.session is None:
            return None
        return map_auth_session(response.session)

    async def sign_out(self, scope: str = "local") -> None:
        try:
            await self._db.auth.sign_out({"scope": scope})
        except httpx.TransportError as e:
            raise NetworkUnavailableError("auth", str(e)) from e
        except AuthError as e:
            raise classify_auth_error(e) from e

    async def reset_password_request(self, email: str) -> None:
        try:
            await self._db.auth.reset_password_for_email(
                email,
                {"redirect_to": self._settings.redirect_url(RESET_PASSWORD_REDIRECT_PATH)},
            )
        except httpx.TransportError as e:
            raise NetworkUnavailableError("auth", str(e)) from e
        except AuthError as e:
            raise classify_auth_error(e) from e

    async def resend_verification(self, email: str) -> None:
        try:
            await self._db.auth.resend(
                {
                    "type": "signup",
                    "email": email,
                    "options": {
                        "email_redirect_to": self._settings.redirect_url(VERIFIED_REDIRECT_PATH),
                    },
                }
            )
        except httpx.TransportError as e:
            raise NetworkUnavailableError("auth", str(e)) from e
        except AuthError as e:
            raise classify_auth_error(e) from e

    def subscribe_session_changes(self, handler: SessionChangeHandler) -> Callable[[], None]:
        def _on_change(event: str, auth_session: Any) -> None:
            try:
                auth_event = AuthEvent(event)
            except ValueError:
                logger.debug(f"Ignoring auth event {event}")
                return
            try:
                session = map_auth_session(auth_session) if auth_session is not None else None
            except StudyCoreError:
                logger.warning(f"Dropping {auth_event.value} event with a malformed session")
                return
            handler(auth_event, session)

        subscription = self._db.auth.on_auth_state_change(_on_change)
        return subscription.unsubscribe
