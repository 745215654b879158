import asyncio

import pytest

from cartotaco.auth.provider import AuthProvider, AuthResult, StaticAuthProvider
from cartotaco.datasource import MemoryDataSource
from cartotaco.favorites import FAVORITES_TABLE, FavoritesStore
from cartotaco.results import NOT_AUTHENTICATED

USER = {"id": "taco_fan", "username": "taco_fan", "role": "user"}


class BrokenAuth(AuthProvider):
    async def get_current_user(self) -> AuthResult:
        return AuthResult(error="session expired")


@pytest.fixture
def favorites_source():
    return MemoryDataSource({
        FAVORITES_TABLE: [
            {"user_id": "taco_fan", "est_id": 1, "created_at": "2026-01-01T00:00:00+00:00"},
            {"user_id": "taco_fan", "est_id": 3, "created_at": "2026-01-05T00:00:00+00:00"},
            {"user_id": "someone_else", "est_id": 2, "created_at": "2026-01-02T00:00:00+00:00"},
        ],
    })


@pytest.fixture
def favorites(favorites_source):
    return FavoritesStore(favorites_source, StaticAuthProvider(USER))


def test_load_reads_only_current_user(favorites):
    ids = asyncio.run(favorites.load())
    assert ids == frozenset({1, 3})
    assert favorites.count == 2
    assert favorites.loaded


def test_load_failure_gives_empty_set(favorites, favorites_source, caplog):
    asyncio.run(favorites.add(2))
    favorites_source.fail(FAVORITES_TABLE, "timeout")

    ids = asyncio.run(favorites.load())

    assert ids == frozenset()
    assert favorites.ids == frozenset()
    assert "Could not load favorites" in caplog.text


def test_load_without_user_is_empty(favorites_source):
    store = FavoritesStore(favorites_source, StaticAuthProvider(None))
    assert asyncio.run(store.load()) == frozenset()


def test_concurrent_loads_share_one_query(favorites_source, favorites):
    calls = []
    original = favorites_source.select

    async def counting_select(*args, **kwargs):
        calls.append(args)
        await asyncio.sleep(0)
        return await original(*args, **kwargs)

    favorites_source.select = counting_select

    async def scenario():
        return await asyncio.gather(favorites.load(), favorites.load(), favorites.load())

    results = asyncio.run(scenario())
    assert len(calls) == 1
    assert all(result == frozenset({1, 3}) for result in results)


def test_add_then_remove(favorites, favorites_source):
    result = asyncio.run(favorites.add(5))
    assert result.success
    assert favorites.is_favorited(5)
    assert {"user_id": "taco_fan", "est_id": 5} in [
        {"user_id": r["user_id"], "est_id": r["est_id"]} for r in favorites_source.rows(FAVORITES_TABLE)
    ]

    result = asyncio.run(favorites.remove(5))
    assert result.success
    assert not favorites.is_favorited(5)
    assert all(r["est_id"] != 5 for r in favorites_source.rows(FAVORITES_TABLE))


def test_duplicate_add_counts_as_success(favorites, favorites_source):
    # row for (taco_fan, 1) already exists remotely but is not loaded locally
    result = asyncio.run(favorites.add(1))

    assert result.success
    assert favorites.is_favorited(1)
    assert len([r for r in favorites_source.rows(FAVORITES_TABLE) if r["est_id"] == 1]) == 1


def test_remote_failure_leaves_set_unchanged(favorites, favorites_source):
    asyncio.run(favorites.load())
    favorites_source.fail(FAVORITES_TABLE, "permission denied")

    added = asyncio.run(favorites.add(9))
    removed = asyncio.run(favorites.remove(1))

    assert not added.success
    assert added.error == "permission denied"
    assert not removed.success
    assert favorites.ids == frozenset({1, 3})


def test_toggle_round_trip(favorites):
    asyncio.run(favorites.load())
    before = favorites.ids

    assert asyncio.run(favorites.toggle(7)) is True
    assert asyncio.run(favorites.toggle(7)) is False
    assert favorites.ids == before


def test_toggle_reports_actual_state_on_failure(favorites, favorites_source):
    favorites_source.fail(FAVORITES_TABLE)
    assert asyncio.run(favorites.toggle(4)) is False
    assert favorites.count == 0


def test_flip_returns_write_result(favorites, favorites_source):
    result = asyncio.run(favorites.flip(4))
    assert result.success
    assert result.data == {"favorited": True}

    favorites_source.fail(FAVORITES_TABLE, "write denied")
    failed = asyncio.run(favorites.flip(4))
    assert not failed.success
    assert failed.error == "write denied"
    assert favorites.is_favorited(4)


def test_load_finishing_after_add_keeps_added_id(favorites_source, favorites):
    original = favorites_source.select
    started = release = None

    async def slow_select(*args, **kwargs):
        result = await original(*args, **kwargs)
        started.set()
        await release.wait()
        return result

    favorites_source.select = slow_select

    async def scenario():
        nonlocal started, release
        started, release = asyncio.Event(), asyncio.Event()
        loading = asyncio.ensure_future(favorites.load())
        await started.wait()
        added = await favorites.add(7)
        release.set()
        await loading
        return added

    added = asyncio.run(scenario())

    assert added.success
    assert 7 in favorites.ids
    assert not favorites.loaded

    favorites_source.select = original
    assert asyncio.run(favorites.load()) == frozenset({1, 3, 7})


@pytest.mark.parametrize("auth", [StaticAuthProvider(None), BrokenAuth(), None])
def test_writes_require_user(favorites_source, auth):
    store = FavoritesStore(favorites_source, auth)

    added = asyncio.run(store.add(1))
    removed = asyncio.run(store.remove(1))

    assert added.error == NOT_AUTHENTICATED
    assert removed.error == NOT_AUTHENTICATED
    assert len(favorites_source.rows(FAVORITES_TABLE)) == 3


def test_subscribers_see_new_sets(favorites):
    seen = []
    favorites.subscribe(seen.append)

    asyncio.run(favorites.add(2))
    asyncio.run(favorites.add(2))

    assert seen == [frozenset({2})]
