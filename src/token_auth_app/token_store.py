from __future__ import annotations

import hashlib
import threading
from typing import Optional

import redis


def fingerprint(token: str) -> str:
	"""Stable digest under which a refresh token is recorded."""
	return hashlib.sha256(token.encode("utf-8")).hexdigest()


class RevocationStore:
	"""Abstract interface for the set of currently valid refresh tokens.

	A token is active from ``register`` until ``revoke``. Callers never see
	how the set is kept, so a durable backend can replace the in-memory one
	without touching the session code.
	"""

	def register(self, token: str) -> None:  # pragma: no cover - interface
		raise NotImplementedError

	def is_active(self, token: str) -> bool:  # pragma: no cover - interface
		raise NotImplementedError

	def revoke(self, token: str) -> None:  # pragma: no cover - interface
		raise NotImplementedError

	def consume(self, token: str) -> bool:  # pragma: no cover - interface
		"""Revoke ``token`` and report whether it was active, in one step."""
		raise NotImplementedError


class InMemoryRevocationStore(RevocationStore):
	"""In-process revocation store for development and testing.

	Refresh tokens are kept as fingerprints in a set guarded by a lock. This
	is not suitable for multi-process deployments, where each worker would
	see its own logouts only; use ``RedisRevocationStore`` there.
	"""

	def __init__(self) -> None:
		self._active: set[str] = set()
		self._lock = threading.Lock()

	def register(self, token: str) -> None:
		with self._lock:
			self._active.add(fingerprint(token))

	def is_active(self, token: str) -> bool:
		with self._lock:
			return fingerprint(token) in self._active

	def revoke(self, token: str) -> None:
		with self._lock:
			self._active.discard(fingerprint(token))

	def consume(self, token: str) -> bool:
		digest = fingerprint(token)
		with self._lock:
			if digest not in self._active:
				return False
			self._active.remove(digest)
			return True

	def __len__(self) -> int:
		with self._lock:
			return len(self._active)


class RedisRevocationStore(RevocationStore):
	"""Revocation store backed by a single Redis set.

	SADD, SISMEMBER and SREM are atomic on the server, so concurrent workers
	agree on which refresh tokens are active.
	"""

	DEFAULT_KEY = "token_auth:refresh_tokens"

	def __init__(self, client: redis.Redis, key: str = DEFAULT_KEY) -> None:
		self.client = client
		self.key = key

	@classmethod
	def from_url(
		cls,
		url: str,
		key: str = DEFAULT_KEY,
		*,
		socket_timeout: float = 5.0,
	) -> "RedisRevocationStore":
		client = redis.Redis.from_url(
			url,
			decode_responses=True,
			socket_timeout=socket_timeout,
			socket_connect_timeout=socket_timeout,
		)
		return cls(client, key)

	def register(self, token: str) -> None:
		self.client.sadd(self.key, fingerprint(token))

	def is_active(self, token: str) -> bool:
		return bool(self.client.sismember(self.key, fingerprint(token)))

	def revoke(self, token: str) -> None:
		self.client.srem(self.key, fingerprint(token))

	def consume(self, token: str) -> bool:
		# SREM reports how many members it removed.
		return bool(self.client.srem(self.key, fingerprint(token)))


def build_revocation_store(
	url: Optional[str] = None,
	key: str = RedisRevocationStore.DEFAULT_KEY,
) -> RevocationStore:
	"""Create the revocation store named by ``url``.

	An empty value or ``memory://`` selects the in-memory store; Redis URLs
	select the Redis-backed one.
	"""

	if not url or url == "memory://":
		return InMemoryRevocationStore()
	if url.startswith(("redis://", "rediss://", "unix://")):
		return RedisRevocationStore.from_url(url, key)
	raise ValueError(f"Unsupported revocation store URL: {url}")
