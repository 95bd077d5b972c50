import time
from datetime import timedelta

import pytest

from breachcheck.cache import Cache


@pytest.fixture
def cache():
    c = Cache(ttl=60, cleanup_interval=None)
    yield c
    c.close()


def test_set_and_get(cache):
    cache.set("a", True)
    cache.set("b", False)
    assert cache.get("a") is True
    assert cache.get("b") is False


def test_missing_key_returns_none(cache):
    assert cache.get("missing") is None


def test_set_overwrites(cache):
    cache.set("a", True)
    cache.set("a", False)
    assert cache.get("a") is False
    assert len(cache) == 1


def test_delete(cache):
    cache.set("a", True)
    cache.delete("a")
    cache.delete("never-there")
    assert cache.get("a") is None
    assert len(cache) == 0


def test_expired_entry_is_hidden_but_counted_until_removed():
    with Cache(ttl=-1, cleanup_interval=None) as c:
        c.set("a", True)
        assert c.get("a") is None
        assert len(c) == 1
        assert c.remove_expired() == 1
        assert len(c) == 0


def test_remove_expired_keeps_live_entries():
    with Cache(ttl=60, cleanup_interval=None) as c:
        c.set("a", True)
        c.set("b", False)
        assert c.remove_expired() == 0
        assert len(c) == 2


def test_timedelta_ttl():
    with Cache(ttl=timedelta(minutes=15), cleanup_interval=None) as c:
        assert c.ttl == 900.0


def test_background_cleanup_removes_expired():
    with Cache(ttl=-1, cleanup_interval=0.01) as c:
        c.set("a", True)
        deadline = time.monotonic() + 5
        while len(c) and time.monotonic() < deadline:
            time.sleep(0.01)
        assert len(c) == 0


@pytest.mark.parametrize("interval", [0, -5])
def test_non_positive_cleanup_interval_rejected(interval):
    with pytest.raises(ValueError):
        Cache(ttl=60, cleanup_interval=interval)


def test_close_is_idempotent():
    c = Cache(ttl=60, cleanup_interval=0.01)
    c.set("a", True)
    c.close()
    c.close()
    assert c.get("a") is True