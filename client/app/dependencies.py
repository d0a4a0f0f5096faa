"""
Dependency wiring for the client.

This module provides the "container" that wires together all module
implementations. Each module consumes its collaborators through an
interface, and this file creates the concrete implementations.

To run against something other than Supabase (an in-memory store for
development, a different identity provider), pass the replacements to the
container instead of changing the modules.
"""

from typing import TYPE_CHECKING, Optional

from shared.cache import DisplayCache
from shared.config import Settings, get_settings
from shared.storage import LocalStore

# Type checking imports for interfaces (avoids import cycles)
if TYPE_CHECKING:
    from modules.auth.interfaces import IIdentityBackend
    from modules.auth.service import AuthService
    from modules.navigation.router import HistoryRouter
    from modules.profiles.interfaces import IProfileStore


class ServiceContainer:
    """
    Container for all service instances.

    Synchronous components are created lazily on first access. The auth
    service needs the async Supabase client, so it is built by ``auth()``.

    All services are cached as singletons within the container.
    Use reset() to clear all cached services for testing.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        identity_backend: "IIdentityBackend | None" = None,
        profile_store: "IProfileStore | None" = None,
    ) -> None:
        self._settings = settings
        self._identity_backend = identity_backend
        self._profile_store = profile_store
        self._local_store: LocalStore | None = None
        self._display_cache: DisplayCache | None = None
        self._router: "HistoryRouter | None" = None
        self._auth_service: "AuthService | None" = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def local_store(self) -> LocalStore:
        """Get the persisted local key/value store."""
        if self._local_store is None:
            self._local_store = LocalStore(self.settings.local_storage_path)
        return self._local_store

    @property
    def display_cache(self) -> DisplayCache:
        """Get the screen data cache."""
        if self._display_cache is None:
            self._display_cache = DisplayCache(self.settings.display_cache_ttl_seconds)
        return self._display_cache

    @property
    def router(self) -> "HistoryRouter":
        """Get the router."""
        if self._router is None:
            from modules.navigation.router import HistoryRouter
            self._router = HistoryRouter()
        return self._router

    async def identity_backend(self) -> "IIdentityBackend":
        """Get the identity backend (Supabase unless one was injected)."""
        if self._identity_backend is None:
            from modules.auth.backend import SupabaseIdentityBackend
            from shared.database import get_supabase_client
            self._identity_backend = SupabaseIdentityBackend(
                await get_supabase_client(), self.settings
            )
        return self._identity_backend

    async def profile_store(self) -> "IProfileStore":
        """Get the profile store (Supabase unless one was injected)."""
        if self._profile_store is None:
            from modules.profiles.repository import SupabaseProfileRepository
            from shared.database import get_supabase_client
            self._profile_store = SupabaseProfileRepository(await get_supabase_client())
        return self._profile_store

    async def auth(self) -> "AuthService":
        """Get the auth service instance."""
        if self._auth_service is None:
            from modules.auth.service import AuthService
            self._auth_service = AuthService(
                backend=await self.identity_backend(),
                profile_store=await self.profile_store(),
                router=self.router,
                local_store=self.local_store,
                display_cache=self.display_cache,
                settings=self.settings,
            )
        return self._auth_service

    def reset(self) -> None:
        """
        Reset all cached services.

        This is primarily for testing - allows tests to get fresh
        service instances with different mock dependencies.
        Injected backends are kept.
        """
        self._local_store = None
        self._display_cache = None
        self._router = None
        self._auth_service = None


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """
    Reset the service container.

    This clears the cached container, so the next call to get_container()
    will create a fresh container with new service instances.

    Primarily used for testing.
    """
    global _container
    _container = None
