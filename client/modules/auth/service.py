"""
Authentication service implementation.

The public face of the auth layer. Screens call these methods and read
``use_auth_state()``; every side-effecting method returns a result object
and never raises for backend, network or validation failures.
"""

import logging
from typing import Any, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from shared.cache import DisplayCache
from shared.config import Settings, get_settings
from shared.exceptions import ErrorKind, StudyCoreError
from shared.models import CompositeAuthState, Session
from shared.observability import mask_email
from shared.storage import LocalStore
from modules.navigation.decision import decide_destination
from modules.navigation.models import Route
from modules.navigation.router import IRouter, is_on
from modules.profiles.gate import ProfileGate
from modules.profiles.interfaces import IProfileStore
from modules.profiles.models import Profile, ProfileUpdate, Role
from .arbitrator import EventArbitrator
from .coordination import SignInCoordinator
from .interfaces import IIdentityBackend
from .models import AuthResult, SignInResult
from .orchestrator import SignInOrchestrator, normalize_email
from .recovery import RecoveryController
from .resolver import SessionResolver
from .state import AuthStateStore

logger = logging.getLogger(__name__)


def profile_cache_key(user_id: str) -> str:
    return f"profile:{user_id}"


class AuthService:
    """
    Facade over the auth state machine.

    Wires the Session Resolver, Profile Gate, Sign-In Orchestrator, Event
    Arbitrator and Recovery Controller around one shared coordinator and
    one cached auth state.
    """

    def __init__(
        self,
        backend: IIdentityBackend,
        profile_store: IProfileStore,
        router: IRouter,
        local_store: LocalStore,
        display_cache: Optional[DisplayCache] = None,
        settings: Optional[Settings] = None,
    ):
        self._settings = settings or get_settings()
        self._backend = backend
        self._profile_store = profile_store
        self._router = router
        if display_cache is None:
            display_cache = DisplayCache(self._settings.display_cache_ttl_seconds)
        self._display_cache = display_cache

        self._state = AuthStateStore()
        self._coordinator = SignInCoordinator(local_store)
        self._resolver = SessionResolver(backend)
        self._gate = ProfileGate(profile_store)
        self._orchestrator = SignInOrchestrator(
            backend,
            self._resolver,
            self._gate,
            router,
            self._coordinator,
            self._state,
            timeout_seconds=self._settings.signin_timeout_seconds,
        )
        self._arbitrator = EventArbitrator(
            backend, self._gate, router, self._coordinator, self._state
        )
        self._recovery = RecoveryController(
            backend,
            self._coordinator,
            self._state,
            router,
            local_store,
            display_cache=self._display_cache,
            max_failed_resolutions=self._settings.max_failed_resolutions,
        )

    # Components, exposed for the container and tests

    @property
    def arbitrator(self) -> EventArbitrator:
        return self._arbitrator

    @property
    def coordinator(self) -> SignInCoordinator:
        return self._coordinator

    @property
    def recovery(self) -> RecoveryController:
        return self._recovery

    @property
    def display_cache(self) -> DisplayCache:
        return self._display_cache

    @property
    def session(self) -> Optional[Session]:
        return self._state.session

    @property
    def profile(self) -> Optional[Profile]:
        return self._state.profile

    def use_auth_state(self) -> CompositeAuthState:
        """Current composite auth state, derived fresh on every call."""
        return self._state.snapshot()

    # Lifecycle

    async def initialize(self) -> AuthResult:
        """
        Start-up: honour a requested reset, drop flags left by a crashed
        run, start listening for session changes and route the user.
        """
        if self._coordinator.debug_reset_requested():
            logger.warning("Auth reset requested by a previous run")
            await self._recovery.reset_auth_state()
        self._coordinator.clear_stale()
        self._arbitrator.start()
        return await self.route_current_user()

    async def close(self) -> None:
        await self._arbitrator.stop()

    async def route_current_user(self) -> AuthResult:
        """Resolve the session and profile, then navigate accordingly."""
        resolution = await self._resolver.resolve_session()
        if await self._recovery.record_resolution(resolution):
            return AuthResult.fail(ErrorKind.SESSION_QUERY_FAILED, destination=Route.LOGIN)

        if resolution.error is not None:
            self._state.clear()
            return AuthResult.fail(resolution.error, destination=self._route(self._state.snapshot()))

        self._state.set_session(resolution.session)
        auth_state = await self._state.refresh_profile(self._gate)
        return AuthResult.ok(destination=self._route(auth_state), profile=self._state.profile)

    # Credentials

    async def sign_in(self, email: str, password: str) -> SignInResult:
        return await self._orchestrator.sign_in(email, password)

    async def sign_up(
        self,
        email: str,
        password: str,
        role: Union[Role, str] = Role.STUDENT,
    ) -> AuthResult:
        """
        Register a new account.

        When the backend requires email verification (no session returned)
        the user is sent to verify-email; otherwise the SIGNED_IN
        notification routes them.
        """
        email = normalize_email(email)
        role_value = role.value if isinstance(role, Role) else role
        parsed = Role.from_hint(role_value)
        if parsed.value != role_value:
            logger.warning(f"Sign-up role {role_value!r} not allowed, using {parsed.value}")

        try:
            session = await self._backend.sign_up(email, password, role_hint=parsed.value)
        except StudyCoreError as e:
            logger.info(f"Sign-up for {mask_email(email)} failed: {e.kind.value}")
            return AuthResult.fail(e.kind)

        logger.info(f"Signed up {mask_email(email)} as {parsed.value}")
        if session is not None:
            return AuthResult.ok()
        destination = self._route(CompositeAuthState(is_authenticated=True, is_verified=False))
        return AuthResult.ok(destination=destination)

    async def sign_out(self) -> AuthResult:
        """Sign out this device. Local state is cleared even if the backend call fails."""
        error: Optional[ErrorKind] = None
        session = self._state.session
        try:
            await self._backend.sign_out()
        except StudyCoreError as e:
            logger.warning(f"Sign-out failed: {e.message}")
            error = e.kind

        self._state.clear()
        if session is not None:
            self._display_cache.clear(key_pattern=profile_cache_key(session.user_id))
        destination = self._route(self._state.snapshot())
        if error is not None:
            return AuthResult.fail(error, destination=destination)
        return AuthResult.ok(destination=destination)

    async def reset_password(self, email: str) -> AuthResult:
        email = normalize_email(email)
        try:
            await self._backend.reset_password_request(email)
        except StudyCoreError as e:
            logger.info(f"Password reset for {mask_email(email)} failed: {e.kind.value}")
            return AuthResult.fail(e.kind)
        return AuthResult.ok()

    async def resend_verification(self, email: str) -> AuthResult:
        email = normalize_email(email)
        try:
            await self._backend.resend_verification(email)
        except StudyCoreError as e:
            logger.info(f"Verification resend for {mask_email(email)} failed: {e.kind.value}")
            return AuthResult.fail(e.kind)
        return AuthResult.ok()

    # Profile

    async def update_profile(self, fields: Union[ProfileUpdate, dict[str, Any]]) -> AuthResult:
        """
        Update the signed-in user's profile.

        Completing the profile while on setup-profile routes the user on.
        """
        session = self._state.session
        if session is None:
            return AuthResult.fail(ErrorKind.PROFILE_NOT_FOUND)

        try:
            update = fields if isinstance(fields, ProfileUpdate) else ProfileUpdate(**fields)
        except PydanticValidationError as e:
            logger.info(f"Rejected profile update: {e.error_count()} invalid fields")
            return AuthResult.fail(ErrorKind.PROFILE_UPDATE_FAILED)

        try:
            profile = await self._gate.update_profile(session.user_id, update)
        except StudyCoreError as e:
            logger.warning(f"Profile update for user {session.user_id} failed: {e.message}")
            return AuthResult.fail(e.kind)

        self._state.set_profile(profile)
        self._display_cache.set(profile_cache_key(session.user_id), profile)
        destination = None
        if profile.is_complete and is_on(self._router, Route.SETUP_PROFILE):
            destination = self._route(self._state.snapshot())
        return AuthResult.ok(destination=destination, profile=profile)

    async def refresh_profile(self) -> AuthResult:
        """Re-read the signed-in user's profile into the cache."""
        if self._state.session is None:
            return AuthResult.fail(ErrorKind.PROFILE_NOT_FOUND)
        auth_state = await self._state.refresh_profile(self._gate)
        if auth_state.profile_unavailable:
            return AuthResult.fail(self._state.profile_error or ErrorKind.UNKNOWN)
        profile = self._state.profile
        if profile is not None:
            self._display_cache.set(profile_cache_key(profile.user_id), profile)
        return AuthResult.ok(profile=profile)

    async def get_display_profile(self, force_refresh: bool = False) -> AuthResult:
        """
        Read the signed-in user's profile for display, through the display cache.

        Never provisions a profile and never feeds routing; the Profile Gate
        stays the only source for identity decisions.

        Args:
            force_refresh: Re-read the store even if a cached copy is valid
        """
        session = self._state.session
        if session is None:
            return AuthResult.fail(ErrorKind.PROFILE_NOT_FOUND)

        try:
            profile = await self._display_cache.fetch(
                profile_cache_key(session.user_id),
                lambda: self._profile_store.get_profile(session.user_id),
                force_refresh=force_refresh,
            )
        except StudyCoreError as e:
            logger.warning(f"Display profile for user {session.user_id} unavailable: {e.message}")
            return AuthResult.fail(e.kind)

        if profile is None:
            return AuthResult.fail(ErrorKind.PROFILE_NOT_FOUND)
        return AuthResult.ok(profile=profile)

    # Recovery

    async def reset_auth_state(self) -> AuthResult:
        return await self._recovery.reset_auth_state()

    async def clear_all_local_data(self) -> AuthResult:
        return await self._recovery.clear_all_local_data()

    def request_debug_reset(self) -> None:
        self._recovery.request_debug_reset()

    def _route(self, auth_state: CompositeAuthState) -> Optional[Route]:
        """Navigate by the decision function unless a sign-in owns navigation."""
        if self._coordinator.is_active():
            return None
        destination = decide_destination(auth_state)
        if not is_on(self._router, destination):
            self._router.navigate(destination.value)
        return destination
