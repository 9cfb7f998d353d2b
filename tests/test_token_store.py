from concurrent.futures import ThreadPoolExecutor
from unittest import mock

import pytest

import token_auth_app.token_store as token_store_module
from token_auth_app.token_store import (
    InMemoryRevocationStore,
    RedisRevocationStore,
    build_revocation_store,
    fingerprint,
)


def test_register_then_revoke(store):
    store.register("refresh-1")
    assert store.is_active("refresh-1")

    store.revoke("refresh-1")
    assert not store.is_active("refresh-1")


def test_register_is_idempotent(store):
    store.register("refresh-1")
    store.register("refresh-1")

    assert len(store) == 1
    store.revoke("refresh-1")
    assert not store.is_active("refresh-1")


def test_revoking_unknown_token_is_not_an_error(store):
    store.revoke("never-issued")
    assert not store.is_active("never-issued")


def test_store_keeps_fingerprints_not_tokens(store):
    store.register("refresh-secret-value")

    assert "refresh-secret-value" not in store._active
    assert fingerprint("refresh-secret-value") in store._active


def test_concurrent_mutations_on_distinct_tokens():
    store = InMemoryRevocationStore()
    tokens = [f"token-{i}" for i in range(500)]

    with ThreadPoolExecutor(max_workers=16) as pool:
        list(pool.map(store.register, tokens))
        # Revoke every other token while the rest are being re-registered.
        list(pool.map(lambda t: store.revoke(t) if int(t.split("-")[1]) % 2 else store.register(t), tokens))

    assert len(store) == 250
    assert all(store.is_active(t) for t in tokens[::2])
    assert not any(store.is_active(t) for t in tokens[1::2])


def test_redis_store_uses_set_commands():
    client = mock.MagicMock()
    store = RedisRevocationStore(client, key="refresh")

    store.register("refresh-1")
    client.sadd.assert_called_once_with("refresh", fingerprint("refresh-1"))

    client.sismember.return_value = 1
    assert store.is_active("refresh-1") is True
    client.sismember.assert_called_once_with("refresh", fingerprint("refresh-1"))

    client.sismember.return_value = 0
    assert store.is_active("refresh-1") is False

    store.revoke("refresh-1")
    client.srem.assert_called_once_with("refresh", fingerprint("refresh-1"))


@pytest.mark.parametrize("url", [None, "", "memory://"])
def test_build_store_defaults_to_memory(url):
    assert isinstance(build_revocation_store(url), InMemoryRevocationStore)


def test_build_store_from_redis_url(monkeypatch):
    fake_client = mock.MagicMock()
    from_url = mock.MagicMock(return_value=fake_client)
    monkeypatch.setattr(token_store_module.redis.Redis, "from_url", from_url)

    store = build_revocation_store("redis://cache:6379/2", key="tokens")

    assert isinstance(store, RedisRevocationStore)
    assert store.client is fake_client
    assert store.key == "tokens"
    assert from_url.call_args.args[0] == "redis://cache:6379/2"
    assert from_url.call_args.kwargs["decode_responses"] is True


def test_build_store_rejects_unknown_scheme():
    with pytest.raises(ValueError):
        build_revocation_store("postgres://db/tokens")


def test_consume_removes_active_token_once(store):
    store.register("refresh-1")

    assert store.consume("refresh-1") is True
    assert store.consume("refresh-1") is False
    assert not store.is_active("refresh-1")


def test_concurrent_consume_has_single_winner():
    store = InMemoryRevocationStore()
    store.register("refresh-1")

    with ThreadPoolExecutor(max_workers=16) as pool:
        results = list(pool.map(store.consume, ["refresh-1"] * 64))

    assert results.count(True) == 1


def test_redis_consume_uses_srem_result():
    client = mock.MagicMock()
    store = RedisRevocationStore(client, key="refresh")

    client.srem.return_value = 1
    assert store.consume("refresh-1") is True
    client.srem.return_value = 0
    assert store.consume("refresh-1") is False
    client.srem.assert_called_with("refresh", fingerprint("refresh-1"))
