"""Tests for the auth service facade."""

import pytest

from shared.exceptions import ErrorKind, NetworkUnavailableError
from modules.auth.coordination import AUTH_DEBUG_KEY, DIRECT_SIGNIN_KEY
from modules.auth.exceptions import InvalidCredentialsError, SessionQueryFailedError
from modules.auth.service import AuthService, profile_cache_key
from modules.navigation.models import Route
from modules.profiles.repository import InMemoryProfileStore


@pytest.fixture
def make_service(backend, router, local_store, display_cache, settings):
    """Build an auth service over a given profile store."""
    def _make(store):
        return AuthService(
            backend=backend,
            profile_store=store,
            router=router,
            local_store=local_store,
            display_cache=display_cache,
            settings=settings,
        )
    return _make


class TestInitialize:
    @pytest.mark.asyncio
    async def test_signed_out_visitor_stays_on_login(self, started_auth_service, router):
        result = await started_auth_service.initialize()

        assert result.success is True
        assert result.destination == Route.LOGIN
        assert router.history == []
        assert started_auth_service.arbitrator.running

    @pytest.mark.asyncio
    async def test_returning_user_goes_to_dashboard(
        self, make_service, backend, router, complete_profile_row, verified_session
    ):
        backend.current_session = verified_session
        service = make_service(InMemoryProfileStore([complete_profile_row]))
        try:
            result = await service.initialize()
        finally:
            await service.close()

        assert result.destination == Route.DASHBOARD
        assert result.profile.full_name == "Ada"
        assert router.history == ["dashboard"]
        assert service.use_auth_state().is_profile_complete is True

    @pytest.mark.asyncio
    async def test_requested_reset_runs_first(self, started_auth_service, backend, local_store):
        local_store.set(AUTH_DEBUG_KEY, True)

        await started_auth_service.initialize()

        assert backend.sign_out_scopes == ["global"]
        assert local_store.get(AUTH_DEBUG_KEY) is None

    @pytest.mark.asyncio
    async def test_stale_sign_in_flag_cleared(self, started_auth_service, backend, local_store):
        local_store.set(DIRECT_SIGNIN_KEY, True)

        await started_auth_service.initialize()

        assert local_store.get(DIRECT_SIGNIN_KEY) is None
        assert backend.sign_out_scopes == []

    @pytest.mark.asyncio
    async def test_session_query_failure_routes_to_login(self, started_auth_service, backend, router):
        backend.get_session_error = SessionQueryFailedError("boom")
        router.navigate("dashboard")

        result = await started_auth_service.initialize()

        assert result.success is False
        assert result.error.kind == ErrorKind.SESSION_QUERY_FAILED
        assert router.current_route == "login"
        assert started_auth_service.session is None


class TestSignUp:
    @pytest.mark.asyncio
    async def test_verification_required_goes_to_verify_email(self, auth_service, backend, router):
        backend.sign_up_outcome = None

        result = await auth_service.sign_up(" New@Test.com", "secret1", role="tutor")

        assert result.success is True
        assert result.destination == Route.VERIFY_EMAIL
        assert router.history == ["verify-email"]
        assert backend.sign_up_calls == [("new@test.com", "secret1", "tutor")]

    @pytest.mark.asyncio
    async def test_admin_role_not_self_service(self, auth_service, backend):
        await auth_service.sign_up("new@test.com", "secret1", role="admin")

        assert backend.sign_up_calls[0][2] == "student"

    @pytest.mark.asyncio
    async def test_immediate_session_routed_by_event(self, started_auth_service, backend, router, verified_session):
        backend.sign_up_outcome = verified_session

        result = await started_auth_service.sign_up("user@test.com", "secret1")
        await started_auth_service.arbitrator.drain()

        assert result.success is True
        assert result.destination is None
        assert router.history == ["setup-profile"]

    @pytest.mark.asyncio
    async def test_failure(self, auth_service, backend, router):
        backend.sign_up_outcome = NetworkUnavailableError("auth")

        result = await auth_service.sign_up("user@test.com", "secret1")

        assert result.error.kind == ErrorKind.NETWORK_UNAVAILABLE
        assert router.history == []


class TestSignInAndOut:
    @pytest.mark.asyncio
    async def test_sign_in_delegates(self, auth_service, backend):
        backend.sign_in_outcome = InvalidCredentialsError()

        result = await auth_service.sign_in("user@test.com", "secret1")

        assert result.error.kind == ErrorKind.INVALID_CREDENTIALS

    @pytest.mark.asyncio
    async def test_sign_out_navigates_once(self, started_auth_service, backend, router, verified_session):
        backend.sign_in_outcome = verified_session
        await started_auth_service.sign_in("user@test.com", "secret1")
        await started_auth_service.arbitrator.drain()

        result = await started_auth_service.sign_out()
        await started_auth_service.arbitrator.drain()

        assert result.success is True
        assert result.destination == Route.LOGIN
        assert backend.sign_out_scopes == ["local"]
        assert router.history == ["setup-profile", "login"]
        assert started_auth_service.session is None

    @pytest.mark.asyncio
    async def test_sign_out_failure_still_clears_local_state(self, auth_service, backend, router, verified_session):
        backend.sign_in_outcome = verified_session
        await auth_service.sign_in("user@test.com", "secret1")
        backend.sign_out_error = NetworkUnavailableError("auth")

        result = await auth_service.sign_out()

        assert result.success is False
        assert auth_service.session is None
        assert router.current_route == "login"


class TestAccountRequests:
    @pytest.mark.asyncio
    async def test_reset_password(self, auth_service, backend):
        result = await auth_service.reset_password("User@Test.com")

        assert result.success is True
        assert backend.password_resets == ["user@test.com"]

    @pytest.mark.asyncio
    async def test_resend_verification(self, auth_service, backend):
        result = await auth_service.resend_verification("user@test.com")

        assert result.success is True
        assert backend.verification_resends == ["user@test.com"]

    @pytest.mark.asyncio
    async def test_request_failure(self, auth_service, backend):
        backend.request_error = NetworkUnavailableError("auth")

        result = await auth_service.reset_password("user@test.com")

        assert result.error.kind == ErrorKind.NETWORK_UNAVAILABLE
        assert backend.password_resets == []


class TestProfile:
    @pytest.mark.asyncio
    async def test_update_requires_session(self, auth_service):
        result = await auth_service.update_profile({"full_name": "Ada"})
        assert result.error.kind == ErrorKind.PROFILE_NOT_FOUND

    @pytest.mark.asyncio
    async def test_completing_profile_leaves_setup(self, started_auth_service, backend, router, verified_session):
        backend.current_session = verified_session
        await started_auth_service.initialize()
        assert router.current_route == "setup-profile"

        result = await started_auth_service.update_profile({"full_name": "Ada"})

        assert result.success is True
        assert result.destination == Route.DASHBOARD
        assert result.profile.full_name == "Ada"
        assert router.history == ["setup-profile", "dashboard"]

    @pytest.mark.asyncio
    async def test_role_is_not_editable(self, started_auth_service, backend, verified_session):
        backend.current_session = verified_session
        await started_auth_service.initialize()

        result = await started_auth_service.update_profile({"role": "admin"})

        assert result.error.kind == ErrorKind.PROFILE_UPDATE_FAILED
        assert started_auth_service.profile.role.value == "student"

    @pytest.mark.asyncio
    async def test_refresh_failure_reported(self, make_service, backend, verified_session):
        class OfflineStore(InMemoryProfileStore):
            async def get_profile(self, user_id):
                raise NetworkUnavailableError("profiles")

        backend.current_session = verified_session
        service = make_service(OfflineStore())
        try:
            await service.initialize()
            result = await service.refresh_profile()
        finally:
            await service.close()

        assert result.success is False
        assert result.error.kind == ErrorKind.NETWORK_UNAVAILABLE
        assert service.use_auth_state().profile_unavailable is True

    @pytest.mark.asyncio
    async def test_refresh_requires_session(self, auth_service):
        result = await auth_service.refresh_profile()
        assert result.error.kind == ErrorKind.PROFILE_NOT_FOUND



class TestDisplayProfile:
    @pytest.mark.asyncio
    async def test_requires_session(self, auth_service):
        result = await auth_service.get_display_profile()
        assert result.error.kind == ErrorKind.PROFILE_NOT_FOUND

    @pytest.mark.asyncio
    async def test_second_read_served_from_cache(
        self, make_service, backend, display_cache, complete_profile_row, verified_session
    ):
        store = InMemoryProfileStore([complete_profile_row])
        backend.current_session = verified_session
        service = make_service(store)
        await service.route_current_user()
        display_cache.clear()
        reads = store.get_calls

        first = await service.get_display_profile()
        second = await service.get_display_profile()

        assert first.profile.full_name == "Ada"
        assert second.profile == first.profile
        assert store.get_calls == reads + 1
        assert display_cache.is_cached(profile_cache_key(verified_session.user_id))

    @pytest.mark.asyncio
    async def test_force_refresh_rereads_store(
        self, make_service, backend, display_cache, complete_profile_row, verified_session
    ):
        store = InMemoryProfileStore([complete_profile_row])
        backend.current_session = verified_session
        service = make_service(store)
        await service.route_current_user()
        await service.get_display_profile()
        reads = store.get_calls

        await service.get_display_profile(force_refresh=True)

        assert store.get_calls == reads + 1

    @pytest.mark.asyncio
    async def test_missing_profile_not_provisioned(self, auth_service, profile_store, backend, unverified_session):
        backend.current_session = unverified_session
        await auth_service.route_current_user()

        result = await auth_service.get_display_profile()

        assert result.error.kind == ErrorKind.PROFILE_NOT_FOUND
        assert len(profile_store) == 0

    @pytest.mark.asyncio
    async def test_update_refreshes_cached_copy(self, started_auth_service, backend, verified_session):
        backend.current_session = verified_session
        await started_auth_service.initialize()
        await started_auth_service.get_display_profile()

        await started_auth_service.update_profile({"full_name": "Grace"})
        result = await started_auth_service.get_display_profile()

        assert result.profile.full_name == "Grace"

    @pytest.mark.asyncio
    async def test_store_failure_reported(self, make_service, backend, verified_session):
        class OfflineStore(InMemoryProfileStore):
            async def get_profile(self, user_id):
                raise NetworkUnavailableError("profiles")

        backend.current_session = verified_session
        service = make_service(OfflineStore())
        await service.route_current_user()

        result = await service.get_display_profile()

        assert result.error.kind == ErrorKind.NETWORK_UNAVAILABLE
        assert not service.display_cache.is_cached(profile_cache_key(verified_session.user_id))

    @pytest.mark.asyncio
    async def test_sign_out_drops_cached_copy(self, auth_service, backend, display_cache, verified_session):
        backend.sign_in_outcome = verified_session
        await auth_service.sign_in("user@test.com", "secret1")
        await auth_service.get_display_profile()
        assert display_cache.is_cached(profile_cache_key(verified_session.user_id))

        await auth_service.sign_out()

        assert not display_cache.is_cached(profile_cache_key(verified_session.user_id))

class TestRecoveryDelegates:
    @pytest.mark.asyncio
    async def test_clear_all_local_data(self, auth_service, local_store):
        local_store.set("theme", "dark")

        result = await auth_service.clear_all_local_data()

        assert result.destination == Route.LOGIN
        assert local_store.keys() == []

    def test_request_debug_reset(self, auth_service, local_store):
        auth_service.request_debug_reset()
        assert local_store.get_flag(AUTH_DEBUG_KEY) is True
