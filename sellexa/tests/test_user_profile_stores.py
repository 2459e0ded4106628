import pytest

from sellexa.data.models import AuthEvent, Profile, Session
from sellexa.stores import ProfileStore, UserStore
from sellexa.tests.fakes import FakeAuth, FakeClock, FakeProfileRepository, make_user


@pytest.mark.asyncio
async def test_initialize_user_installs_listener_once() -> None:
    auth = FakeAuth(make_user())
    store = UserStore(auth)

    await store.initialize_user()
    store.user = None
    await store.initialize_user()

    assert store.is_initialized
    assert store.is_auth_listener_setup
    assert len(auth.listeners) == 1
    assert store.get_user_id() == "user-1"
    assert store.get_user_email() == "ada@example.com"


@pytest.mark.asyncio
async def test_auth_events_drive_user() -> None:
    auth = FakeAuth(make_user())
    store = UserStore(auth)
    await store.initialize_user()

    auth.emit(AuthEvent.SIGNED_OUT, None)
    assert not store.is_authenticated()

    auth.emit(AuthEvent.SIGNED_IN, Session(access_token="t", user=make_user("user-2")))
    assert store.get_user_id() == "user-2"

    auth.emit(AuthEvent.TOKEN_REFRESHED, None)
    assert store.user is None


@pytest.mark.asyncio
async def test_initialize_failure_records_error() -> None:
    store = UserStore(FakeAuth(fail_get_user=True))

    await store.initialize_user()

    assert store.user is None
    assert store.error == "Auth session missing"
    assert store.is_initialized
    assert not store.is_loading
    assert store.is_auth_listener_setup


@pytest.mark.asyncio
async def test_restored_user_still_follows_auth_events() -> None:
    auth = FakeAuth(make_user())
    store = UserStore(auth)
    store.restore_snapshot({"user": make_user().model_dump(mode="json"), "is_initialized": True})

    await store.initialize_user()
    assert store.is_auth_listener_setup
    assert len(auth.listeners) == 1
    assert store.get_user_id() == "user-1"

    auth.emit(AuthEvent.SIGNED_OUT, None)
    assert store.user is None


@pytest.mark.asyncio
async def test_restored_user_cleared_when_backend_session_is_gone() -> None:
    store = UserStore(FakeAuth(user=None))
    store.restore_snapshot({"user": make_user().model_dump(mode="json"), "is_initialized": True})

    await store.initialize_user()

    assert not store.is_authenticated()


@pytest.mark.asyncio
async def test_sign_out_and_teardown() -> None:
    auth = FakeAuth(make_user())
    store = UserStore(auth)
    await store.initialize_user()

    assert await store.sign_out()
    assert store.user is None
    assert auth.sign_out_calls == 1

    store.teardown()
    assert auth.listeners == []
    assert not store.is_auth_listener_setup


async def _profile_store(clock: FakeClock, kyc_status: str = "pending") -> tuple[ProfileStore, FakeProfileRepository]:
    repository = FakeProfileRepository({
        "user-1": Profile(id="user-1", handle="ada", name="Ada", kyc_status=kyc_status),
        "seller-1": Profile(id="seller-1", handle="chidi_textiles"),
    })
    user_store = UserStore(FakeAuth(make_user()), clock=clock)
    await user_store.initialize_user()
    return ProfileStore(user_store, repository, clock=clock), repository


@pytest.mark.asyncio
async def test_current_profile_refreshes_after_ttl(clock: FakeClock) -> None:
    store, repository = await _profile_store(clock)

    await store.fetch_current_profile()
    await store.fetch_current_profile()
    assert repository.calls.count(("get_profile", "user-1")) == 1
    assert store.get_current_profile().handle == "ada"
    assert not store.is_profile_stale()

    clock.advance(600)
    assert store.is_profile_stale()
    await store.fetch_current_profile()
    assert repository.calls.count(("get_profile", "user-1")) == 2


@pytest.mark.asyncio
async def test_kyc_predicates(clock: FakeClock) -> None:
    store, _ = await _profile_store(clock, kyc_status="verified")
    assert not store.is_kyc_verified()

    await store.fetch_current_profile()

    assert store.is_kyc_verified()
    assert not store.is_kyc_pending()
    assert not store.is_kyc_rejected()


@pytest.mark.asyncio
async def test_profile_by_id_is_fetched_once(clock: FakeClock) -> None:
    store, repository = await _profile_store(clock)

    first = await store.fetch_profile_by_id("seller-1")
    clock.advance(10_000)
    second = await store.fetch_profile_by_id("seller-1")

    assert first.handle == second.handle == "chidi_textiles"
    assert repository.calls.count(("get_public_profile", "seller-1")) == 1
    assert store.get_profile_by_id("seller-1") is first


@pytest.mark.asyncio
async def test_update_profile_merges_without_moving_timestamp(clock: FakeClock) -> None:
    store, _ = await _profile_store(clock)
    await store.fetch_current_profile()
    fetched_at = store.current_profile.timestamp

    clock.advance(60)
    assert await store.update_profile({"name": "Ada O."})

    assert store.get_current_profile().name == "Ada O."
    assert store.get_current_profile().handle == "ada"
    assert store.current_profile.timestamp == fetched_at


@pytest.mark.asyncio
async def test_profile_mutations_need_a_user(clock: FakeClock) -> None:
    repository = FakeProfileRepository()
    store = ProfileStore(UserStore(FakeAuth()), repository, clock=clock)

    await store.fetch_current_profile()

    assert not await store.update_profile({"name": "x"})
    assert repository.calls == []
    assert not store.is_authenticated()
