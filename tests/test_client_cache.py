import asyncio

import pytest

from app.client.cache import NotificationPoller, QueryCache
from app.client.invalidation import InvalidationBinder, keys_for


class CountingFetcher:
    def __init__(self, value="data"):
        self.calls = 0
        self.value = value
        self.gate = asyncio.Event()
        self.gate.set()

    async def __call__(self):
        self.calls += 1
        await self.gate.wait()
        return f"{self.value}-{self.calls}"


@pytest.mark.parametrize(
    "envelope, expected",
    [
        (
            {"type": "new_message", "message": {"id": 1, "conversationId": 3}},
            [("/api/conversations", 3, "messages"), ("/api/conversations",)],
        ),
        (
            {"type": "send_message", "conversationId": 3, "userId": 1, "content": "x"},
            [("/api/conversations", 3, "messages")],
        ),
        (
            {"type": "new_post", "post": {"id": 9, "userId": 2, "communityId": 5}},
            [("/api/posts",), ("/api/communities", 5, "posts"), ("/api/users", 2, "posts")],
        ),
        (
            {"type": "new_post", "post": {"id": 9, "userId": 2, "communityId": None}},
            [("/api/posts",), ("/api/users", 2, "posts")],
        ),
        ({"type": "user_status", "userId": 1, "status": "online"}, [("/api/users",)]),
        ({"type": "join", "userId": 1}, [("/api/users",)]),
        ({"type": "typing", "userId": 1, "conversationId": 3}, []),
        ({"type": "user_typing", "userId": 1, "conversationId": 3}, []),
        ({"type": "confetti"}, []),
    ],
)
def test_invalidation_rules(envelope, expected):
    assert keys_for(envelope) == expected


async def test_query_fetches_once_then_serves_cache():
    cache = QueryCache()
    fetcher = CountingFetcher()
    key = ("/api/posts",)

    assert await cache.query(key, fetcher) == "data-1"
    assert await cache.query(key, fetcher) == "data-1"
    assert fetcher.calls == 1


async def test_invalidate_matches_by_prefix():
    cache = QueryCache()
    posts, trending, users = ("/api/posts",), ("/api/posts", "trending"), ("/api/users",)
    for key in (posts, trending, users):
        await cache.query(key, CountingFetcher())

    matched = cache.invalidate(("/api/posts",))
    await cache.settle()

    assert sorted(matched) == sorted([posts, trending])
    assert cache.entry(trending).invalidations == 1
    assert cache.entry(users).invalidations == 0
    assert cache.get(trending) == "data-2"
    assert cache.get(users) == "data-1"


async def test_consecutive_invalidations_share_one_request():
    cache = QueryCache()
    fetcher = CountingFetcher()
    key = ("/api/conversations", 1, "messages")
    await cache.query(key, fetcher)

    fetcher.gate.clear()
    cache.invalidate(key)
    await asyncio.sleep(0)
    cache.invalidate(key)
    assert cache.is_inflight(key)
    assert fetcher.calls == 2

    fetcher.gate.set()
    await cache.settle()
    assert fetcher.calls == 2
    assert cache.entry(key).invalidations == 2
    assert cache.entry(key).stale is False


def test_invalidate_without_loop_only_marks_stale():
    cache = QueryCache()
    key = ("/api/posts",)
    cache.set(key, ["cached"])

    cache.invalidate(key)

    assert cache.entry(key).stale is True
    assert cache.get(key) == ["cached"]


async def test_failed_refetch_keeps_entry_stale():
    cache = QueryCache()
    key = ("/api/posts",)
    cache.set(key, ["old"])

    async def broken():
        raise RuntimeError("boom")

    cache.register(key, broken)
    cache.invalidate(key)
    await cache.settle()

    assert cache.entry(key).stale is True
    assert isinstance(cache.entry(key).error, RuntimeError)
    assert cache.get(key) == ["old"]


async def test_duplicate_new_message_invalidates_once():
    cache = QueryCache()
    fetcher = CountingFetcher()
    key = ("/api/conversations", 4, "messages")
    await cache.query(key, fetcher)
    binder = InvalidationBinder(cache)
    envelope = {"type": "new_message", "message": {"id": 77, "conversationId": 4}}

    assert binder(envelope) != []
    assert binder(dict(envelope)) == []
    await cache.settle()

    assert cache.entry(key).invalidations == 1
    assert fetcher.calls == 2

    binder({"type": "new_message", "message": {"id": 78, "conversationId": 4}})
    await cache.settle()
    assert cache.entry(key).invalidations == 2


async def test_poller_invalidates_notifications():
    cache = QueryCache()
    fetcher = CountingFetcher()
    key = ("/api/notifications",)
    await cache.query(key, fetcher)

    poller = NotificationPoller(cache, interval=0.01)
    poller.start()
    await asyncio.sleep(0.05)
    await poller.stop()
    await cache.settle()

    assert not poller.running
    assert cache.entry(key).invalidations >= 1
    assert fetcher.calls >= 2


async def test_binder_forgets_oldest_ids_past_its_limit():
    cache = QueryCache()
    binder = InvalidationBinder(cache, max_seen=2)

    for message_id in (1, 2, 3):
        binder({"type": "new_message", "message": {"id": message_id, "conversationId": 4}})

    assert len(binder._seen) == 2
    assert binder({"type": "new_message", "message": {"id": 3, "conversationId": 4}}) == []
    # id 1 was evicted, so a late redelivery counts as new
    assert binder({"type": "new_message", "message": {"id": 1, "conversationId": 4}}) != []
