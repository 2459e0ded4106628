"""Current user's profile plus a cache of other users' public profiles."""

import time
from typing import Any, Callable, Optional

from sellexa.data.cache_keys import TTL, StateKeys
from sellexa.data.models.profile import KYCStatus, Profile
from sellexa.data.repositories.base import ProfileRepository
from sellexa.data.request_cache import CacheEntry
from sellexa.stores.base import BaseStore, LoadingFlags, entry_from_dict, entry_to_dict
from sellexa.stores.persistence import StatePersistence
from sellexa.stores.user_store import UserStore
from sellexa.utils.logger import get_current_logger

CURRENT = "current"


class ProfileStore(BaseStore):
    state_name = StateKeys.PROFILE
    ttl = TTL.PROFILE

    def __init__(
        self,
        user_store: UserStore,
        repository: ProfileRepository,
        persistence: Optional[StatePersistence] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(persistence, clock)
        self.user_store = user_store
        self.repository = repository

        self.current_profile: Optional[CacheEntry[Optional[Profile]]] = None
        self.profile_error: Optional[str] = None

        self.profiles_cache: dict[str, Optional[Profile]] = {}
        self.profile_error_by_id: dict[str, Optional[str]] = {}

        self.loading = LoadingFlags()

    @property
    def is_loading_profile(self) -> bool:
        return self.loading.is_loading(CURRENT)

    def is_loading_profile_by_id(self, user_id: str) -> bool:
        return self.loading.is_loading(f"id:{user_id}")

    async def fetch_current_profile(self) -> None:
        if self.entry_is_fresh(self.current_profile):
            return

        user_id = self.user_store.get_user_id()
        if not user_id:
            return

        if not self.loading.try_acquire(CURRENT):
            return

        self.profile_error = None
        try:
            profile = await self.repository.get_profile(user_id)
            self.current_profile = self.refreshed(profile)
        except Exception as e:
            get_current_logger().error(f"Error fetching current profile: {e}")
            self.profile_error = str(e) or "Failed to fetch profile"
            return
        finally:
            self.loading.release(CURRENT)

        await self.save_state()

    async def fetch_profile_by_id(self, user_id: str) -> Optional[Profile]:
        """Return a public profile, fetching it only the first time it is asked for."""
        cached = self.profiles_cache.get(user_id)
        if cached is not None:
            return cached

        key = f"id:{user_id}"
        if not self.loading.try_acquire(key):
            return None

        self.profile_error_by_id[user_id] = None
        try:
            profile = await self.repository.get_public_profile(user_id)
            self.profiles_cache[user_id] = profile
        except Exception as e:
            get_current_logger().error(f"Error fetching profile for {user_id}: {e}")
            self.profile_error_by_id[user_id] = str(e) or "Failed to fetch profile"
            return None
        finally:
            self.loading.release(key)

        await self.save_state()
        return profile

    async def update_profile(self, updates: dict[str, Any]) -> bool:
        user_id = self.user_store.get_user_id()
        if not user_id:
            return False

        try:
            await self.repository.update_profile(user_id, updates)
        except Exception as e:
            get_current_logger().error(f"Error updating profile: {e}")
            return False

        if self.current_profile is not None and self.current_profile.data is not None:
            merged = self.current_profile.data.model_copy(update=updates)
            # Keep the refresh time: this is a local write, not a backend read
            self.current_profile = CacheEntry(data=merged, timestamp=self.current_profile.timestamp)
            await self.save_state()
        return True

    def clear_profile_cache(self) -> None:
        self.current_profile = None
        self.profiles_cache = {}
        self.profile_error_by_id = {}

    def get_current_profile(self) -> Optional[Profile]:
        return self.current_profile.data if self.current_profile else None

    def get_profile_by_id(self, user_id: str) -> Optional[Profile]:
        return self.profiles_cache.get(user_id)

    def is_profile_stale(self) -> bool:
        return self.entry_is_stale(self.current_profile)

    def is_authenticated(self) -> bool:
        return self.user_store.is_authenticated()

    def _kyc_status(self) -> Optional[str]:
        profile = self.get_current_profile()
        return profile.kyc_status if profile else None

    def is_kyc_verified(self) -> bool:
        return self._kyc_status() == KYCStatus.VERIFIED.value

    def is_kyc_pending(self) -> bool:
        return self._kyc_status() == KYCStatus.PENDING.value

    def is_kyc_rejected(self) -> bool:
        return self._kyc_status() == KYCStatus.REJECTED.value

    def snapshot(self) -> dict[str, Any]:
        return {
            "current_profile": entry_to_dict(
                self.current_profile, lambda p: p.model_dump(mode="json") if p else None
            ),
            "profiles_cache": {
                user_id: profile.model_dump(mode="json") if profile else None
                for user_id, profile in self.profiles_cache.items()
            },
        }

    def restore_snapshot(self, state: dict[str, Any]) -> None:
        self.current_profile = entry_from_dict(
            state.get("current_profile"), lambda raw: Profile.model_validate(raw) if raw else None
        )
        self.profiles_cache = {
            user_id: Profile.model_validate(raw) if raw else None
            for user_id, raw in (state.get("profiles_cache") or {}).items()
        }
