"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules:
an in-memory identity backend that emits session-change notifications the
way Supabase does, session and token factories, and the wired-up auth
components.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Union

import jwt  # PyJWT
import pytest
import pytest_asyncio

from app.dependencies import reset_container
from shared.cache import DisplayCache
from shared.config import Settings, get_settings
from shared.database import reset_client_cache
from shared.models import Session
from shared.storage import LocalStore
from modules.auth.coordination import SignInCoordinator
from modules.auth.models import AuthEvent
from modules.auth.orchestrator import SignInOrchestrator
from modules.auth.resolver import SessionResolver
from modules.auth.service import AuthService
from modules.auth.state import AuthStateStore
from modules.navigation.router import HistoryRouter
from modules.profiles.gate import ProfileGate
from modules.profiles.repository import InMemoryProfileStore


# Test JWT secret (only for minting tokens; the client never verifies them)
TEST_JWT_SECRET = "test-secret-key-for-testing-only"

TEST_USER_ID = "user-123"
TEST_USER_EMAIL = "user@test.com"


def create_test_token(
    user_id: str = TEST_USER_ID,
    email: str = TEST_USER_EMAIL,
    issued_at: Optional[datetime] = None,
) -> str:
    """Create a Supabase-style access token."""
    now = issued_at or datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "email": email,
        "aud": "authenticated",
        "role": "authenticated",
        "exp": int((now + timedelta(hours=1)).timestamp()),
        "iat": int(now.timestamp()),
    }
    return jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")


def create_test_session(
    user_id: str = TEST_USER_ID,
    email: str = TEST_USER_EMAIL,
    verified: bool = True,
    role_hint: Optional[str] = None,
) -> Session:
    now = datetime.now(timezone.utc)
    return Session(
        user_id=user_id,
        email=email,
        email_verified_at=now if verified else None,
        issued_at=now,
        role_hint=role_hint,
    )


class FakeIdentityBackend:
    """
    In-memory identity backend.

    Like Supabase, a successful sign-in emits SIGNED_IN to subscribers
    before the sign-in call returns, and a sign-out emits SIGNED_OUT.
    Set ``hold_sign_in`` to an Event to keep sign-in calls pending.
    """

    def __init__(self, session: Optional[Session] = None) -> None:
        self.current_session = session
        self.sign_in_outcome: Union[Session, Exception, None] = None
        self.sign_up_outcome: Union[Session, Exception, None] = None
        self.get_session_error: Optional[Exception] = None
        self.sign_out_error: Optional[Exception] = None
        self.request_error: Optional[Exception] = None
        self.hold_sign_in: Optional[asyncio.Event] = None
        self.sign_in_calls: list[tuple[str, str]] = []
        self.sign_up_calls: list[tuple[str, str, Optional[str]]] = []
        self.sign_out_scopes: list[str] = []
        self.password_resets: list[str] = []
        self.verification_resends: list[str] = []
        self.sign_in_cancelled = False
        self._handlers: list[Callable] = []

    async def get_session(self) -> Optional[Session]:
        await asyncio.sleep(0)
        if self.get_session_error is not None:
            raise self.get_session_error
        return self.current_session

    async def sign_in(self, email: str, password: str) -> Optional[Session]:
        self.sign_in_calls.append((email, password))
        try:
            if self.hold_sign_in is not None:
                await self.hold_sign_in.wait()
            else:
                await asyncio.sleep(0)
        except asyncio.CancelledError:
            self.sign_in_cancelled = True
            raise
        outcome = self.sign_in_outcome
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is not None:
            self.current_session = outcome
            self.emit(AuthEvent.SIGNED_IN, outcome)
        return outcome

    async def sign_up(
        self,
        email: str,
        password: str,
        role_hint: Optional[str] = None,
    ) -> Optional[Session]:
        self.sign_up_calls.append((email, password, role_hint))
        await asyncio.sleep(0)
        outcome = self.sign_up_outcome
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is not None:
            self.current_session = outcome
            self.emit(AuthEvent.SIGNED_IN, outcome)
        return outcome

    async def sign_out(self, scope: str = "local") -> None:
        self.sign_out_scopes.append(scope)
        await asyncio.sleep(0)
        if self.sign_out_error is not None:
            raise self.sign_out_error
        had_session = self.current_session is not None
        self.current_session = None
        if had_session:
            self.emit(AuthEvent.SIGNED_OUT, None)

    async def reset_password_request(self, email: str) -> None:
        await asyncio.sleep(0)
        if self.request_error is not None:
            raise self.request_error
        self.password_resets.append(email)

    async def resend_verification(self, email: str) -> None:
        await asyncio.sleep(0)
        if self.request_error is not None:
            raise self.request_error
        self.verification_resends.append(email)

    def subscribe_session_changes(self, handler: Callable) -> Callable[[], None]:
        self._handlers.append(handler)

        def _unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return _unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    def emit(self, event: AuthEvent, session: Optional[Session] = None) -> None:
        for handler in list(self._handlers):
            handler(event, session)


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset cached settings, clients and the container around each test."""
    get_settings.cache_clear()
    reset_client_cache()
    reset_container()
    yield
    get_settings.cache_clear()
    reset_client_cache()
    reset_container()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        supabase_url="",
        supabase_anon_key="",
        signin_timeout_seconds=6.0,
        max_failed_resolutions=3,
        local_storage_path=tmp_path / "local_storage.json",
    )


@pytest.fixture
def make_session() -> Callable[..., Session]:
    """Factory for client sessions."""
    return create_test_session


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Factory for signed access tokens."""
    return create_test_token


@pytest.fixture
def verified_session() -> Session:
    return create_test_session(verified=True)


@pytest.fixture
def unverified_session() -> Session:
    return create_test_session(verified=False)


@pytest.fixture
def backend() -> FakeIdentityBackend:
    return FakeIdentityBackend()


@pytest.fixture
def profile_store() -> InMemoryProfileStore:
    return InMemoryProfileStore()


@pytest.fixture
def complete_profile_row() -> dict:
    return {
        "id": "profile-1",
        "user_id": TEST_USER_ID,
        "email": TEST_USER_EMAIL,
        "role": "student",
        "full_name": "Ada",
        "approved": True,
    }


@pytest.fixture
def router() -> HistoryRouter:
    """Router showing the login form, as when a visitor is about to sign in."""
    return HistoryRouter(initial_route="login")


@pytest.fixture
def local_store(settings) -> LocalStore:
    return LocalStore(settings.local_storage_path)


@pytest.fixture
def display_cache() -> DisplayCache:
    return DisplayCache(ttl_seconds=300)


@pytest.fixture
def coordinator(local_store) -> SignInCoordinator:
    return SignInCoordinator(local_store)


@pytest.fixture
def auth_state() -> AuthStateStore:
    return AuthStateStore()


@pytest.fixture
def gate(profile_store) -> ProfileGate:
    return ProfileGate(profile_store)


@pytest.fixture
def orchestrator(backend, gate, router, coordinator, auth_state) -> SignInOrchestrator:
    return SignInOrchestrator(
        backend,
        SessionResolver(backend),
        gate,
        router,
        coordinator,
        auth_state,
        timeout_seconds=6.0,
    )


@pytest.fixture
def auth_service(backend, profile_store, router, local_store, display_cache, settings) -> AuthService:
    return AuthService(
        backend=backend,
        profile_store=profile_store,
        router=router,
        local_store=local_store,
        display_cache=display_cache,
        settings=settings,
    )


@pytest_asyncio.fixture
async def started_auth_service(auth_service):
    """Auth service with the event arbitrator running."""
    auth_service.arbitrator.start()
    yield auth_service
    await auth_service.close()
