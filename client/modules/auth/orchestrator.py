"""
Sign-In Orchestrator.

Drives one credential submission to a single navigation:

    submit credentials -> check returned session -> Profile Gate
        -> decide_destination -> navigate (once) -> complete token

The submission runs under a deadline. When it expires the network call is
cancelled and the user gets a retryable network failure.
"""

import asyncio
import hashlib
import logging
from typing import Optional

from shared.exceptions import ErrorKind, StudyCoreError
from shared.models import CompositeAuthState
from shared.observability import mask_email
from shared.registry import InFlightRegistry
from modules.navigation.decision import decide_destination
from modules.navigation.models import Route
from modules.navigation.router import IRouter, is_on
from modules.profiles.gate import ProfileGate
from .coordination import SignInCoordinator, SignInToken
from .exceptions import EmailNotConfirmedError
from .interfaces import IIdentityBackend
from .models import AuthFailure, SignInResult, SignInStatus
from .resolver import SessionResolver
from .state import AuthStateStore

logger = logging.getLogger(__name__)

DEFAULT_SIGNIN_TIMEOUT_SECONDS = 6.0


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _submission_key(email: str, password: str) -> str:
    # Identity of a submission without keeping the password as a dict key
    return hashlib.sha256(f"{email}\x00{password}".encode("utf-8")).hexdigest()


class SignInOrchestrator:
    """
    Executes credential submissions.

    Identical submissions made while one is in flight share its result;
    a submission with different credentials is rejected until the first
    reaches an outcome.
    """

    def __init__(
        self,
        backend: IIdentityBackend,
        resolver: SessionResolver,
        gate: ProfileGate,
        router: IRouter,
        coordinator: SignInCoordinator,
        state: AuthStateStore,
        timeout_seconds: float = DEFAULT_SIGNIN_TIMEOUT_SECONDS,
    ) -> None:
        self._backend = backend
        self._resolver = resolver
        self._gate = gate
        self._router = router
        self._coordinator = coordinator
        self._state = state
        self._timeout = timeout_seconds
        self._submissions: InFlightRegistry[SignInResult] = InFlightRegistry("sign-in")

    @property
    def is_submitting(self) -> bool:
        return len(self._submissions) > 0

    async def sign_in(self, email: str, password: str) -> SignInResult:
        """
        Sign in with email and password.

        Args:
            email: Email as typed (normalized here)
            password: Password

        Returns:
            SignInResult; never raises for backend or network failures
        """
        email = normalize_email(email)
        key = _submission_key(email, password)

        if self.is_submitting and not self._submissions.is_pending(key):
            logger.info(f"Rejecting sign-in for {mask_email(email)}: another sign-in is in flight")
            return SignInResult(status=SignInStatus.REJECTED)

        return await self._submissions.run(key, lambda: self._submit(email, password))

    async def _submit(self, email: str, password: str) -> SignInResult:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._timeout

        # Begun before the credential call: the SIGNED_IN notification it
        # triggers must already see an active sign-in.
        token = self._coordinator.begin(email)
        token.bind(asyncio.current_task())
        logger.info(f"Signing in {mask_email(email)}")

        try:
            try:
                session = await asyncio.wait_for(
                    self._backend.sign_in(email, password), self._timeout
                )
            except asyncio.TimeoutError:
                logger.warning(
                    f"Sign-in for {mask_email(email)} timed out after {self._timeout}s"
                )
                return SignInResult.failed(ErrorKind.NETWORK_UNAVAILABLE)
            except EmailNotConfirmedError:
                # Right password, unverified account: send them to verification
                destination = self._navigate(
                    token, CompositeAuthState(is_authenticated=True, is_verified=False)
                )
                return SignInResult.failed(ErrorKind.EMAIL_NOT_CONFIRMED, destination=destination)
            except StudyCoreError as e:
                logger.info(f"Sign-in for {mask_email(email)} failed: {e.kind.value}")
                return SignInResult.failed(e.kind)

            if session is None:
                logger.warning(f"Sign-in for {mask_email(email)} returned no session")
                return SignInResult.failed(ErrorKind.UNKNOWN)

            resolution = self._resolver.resolve_from(session)
            self._state.set_session(session)
            if resolution.is_verified:
                remaining = max(deadline - loop.time(), 0.0)
                auth_state = await self._state.refresh_profile(self._gate, timeout=remaining)
            else:
                auth_state = self._state.snapshot()

            destination = self._navigate(token, auth_state)
            return SignInResult(
                status=SignInStatus.SUCCEEDED,
                destination=destination,
                session=session,
                profile_unavailable=auth_state.profile_unavailable,
            )
        except asyncio.CancelledError:
            if not token.cancelled:
                raise
            logger.info(f"Sign-in for {mask_email(email)} cancelled by auth reset")
            return SignInResult(
                status=SignInStatus.CANCELLED,
                error=AuthFailure.from_kind(ErrorKind.UNKNOWN),
            )
        finally:
            self._coordinator.complete(token)

    def _navigate(self, token: SignInToken, auth_state: CompositeAuthState) -> Optional[Route]:
        """Apply the decision function once for ``token``'s sequence."""
        destination = decide_destination(auth_state)
        if not self._coordinator.claim_navigation(token):
            logger.info(f"Sign-in {token.id} no longer owns navigation, skipping {destination.value}")
            return None
        if not is_on(self._router, destination):
            self._router.navigate(destination.value)
        return destination
