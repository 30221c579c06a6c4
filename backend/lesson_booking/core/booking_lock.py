from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
import logging
import threading
import time
from typing import Iterator, List, Optional, Sequence, Set

from redis import Redis
from redis.exceptions import RedisError

from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def slot_claim_key(slot_start: datetime) -> str:
    rounded = slot_start.astimezone(timezone.utc).replace(second=0, microsecond=0)
    return f"slot:{rounded.strftime('%Y%m%dT%H%MZ')}:claim"


def slot_claim_keys(start: datetime, end: datetime, bucket_minutes: int) -> List[str]:
    """
    Keys of every fixed-width time bucket that [start, end) touches, sorted.

    Buckets are aligned to the epoch, so two writers whose padded lessons
    overlap always share at least one key, whatever their start times.
    """
    bucket = timedelta(minutes=bucket_minutes)
    offset_minutes = int((start.astimezone(timezone.utc) - _EPOCH).total_seconds() // 60)
    current = _EPOCH + timedelta(minutes=offset_minutes - offset_minutes % bucket_minutes)
    keys = []
    while current < end:
        keys.append(slot_claim_key(current))
        current += bucket
    return keys


class SlotClaimer:
    """
    Short-lived claims on time buckets, taken around the re-check-before-write.

    A set of held keys serializes writers inside one instance; a Redis
    ``SET NX EX`` key per bucket serializes writers across instances. Redis is
    optional and fails open: when it is missing or erroring the claim falls
    back to the in-process keys and the calendar re-check remains the
    safeguard. Claims never wait; a held key means the caller backs off.
    """

    def __init__(
        self,
        redis_client: Optional[Redis] = None,
        *,
        namespace: str = "mzk",
        ttl_s: int = 30,
    ) -> None:
        self._redis = redis_client
        self._namespace = namespace
        self._ttl_s = ttl_s
        # Only keys held right now; released keys are dropped
        self._held: Set[str] = set()
        self._held_lock = threading.Lock()

    @classmethod
    def from_url(cls, redis_url: Optional[str], *, namespace: str = "mzk", ttl_s: int = 30) -> "SlotClaimer":
        if not redis_url:
            return cls(None, namespace=namespace, ttl_s=ttl_s)
        try:
            client = Redis.from_url(redis_url, encoding="utf-8", decode_responses=True)
            client.ping()
        except RedisError as exc:
            logger.warning("slot_claim_redis_unavailable: %s", exc)
            return cls(None, namespace=namespace, ttl_s=ttl_s)
        return cls(client, namespace=namespace, ttl_s=ttl_s)

    @property
    def held_count(self) -> int:
        with self._held_lock:
            return len(self._held)

    def _namespaced_key(self, key: str) -> str:
        return f"{self._namespace}:lock:{key}"

    def acquire(self, keys: Sequence[str]) -> bool:
        """Take every key or none of them."""
        ordered = sorted(set(keys))
        with self._held_lock:
            if any(key in self._held for key in ordered):
                prometheus_metrics.record_slot_claim("acquire", "blocked_local")
                return False
            self._held.update(ordered)

        if self._redis is None:
            prometheus_metrics.record_slot_claim("acquire", "local_only")
            return True

        taken: List[str] = []
        for key in ordered:
            try:
                acquired = bool(
                    self._redis.set(
                        self._namespaced_key(key), str(time.time()), nx=True, ex=self._ttl_s
                    )
                )
            except RedisError as exc:
                prometheus_metrics.record_slot_claim("acquire", "error")
                logger.warning(
                    "slot_claim_acquire_failed",
                    extra={"slot_key": key, "error": str(exc), "error_type": type(exc).__name__},
                )
                continue

            if not acquired:
                self._release_remote(taken)
                self._release_local(ordered)
                prometheus_metrics.record_slot_claim("acquire", "blocked")
                return False
            taken.append(key)

        prometheus_metrics.record_slot_claim("acquire", "success")
        return True

    def release(self, keys: Sequence[str]) -> None:
        ordered = sorted(set(keys))
        try:
            self._release_remote(ordered)
        finally:
            self._release_local(ordered)

    def _release_remote(self, keys: Sequence[str]) -> None:
        if self._redis is None:
            return
        for key in keys:
            try:
                deleted = self._redis.delete(self._namespaced_key(key))
                prometheus_metrics.record_slot_claim("release", "success" if deleted else "not_found")
            except RedisError as exc:
                prometheus_metrics.record_slot_claim("release", "error")
                logger.warning(
                    "slot_claim_release_failed",
                    extra={"slot_key": key, "error": str(exc), "error_type": type(exc).__name__},
                )

    def _release_local(self, keys: Sequence[str]) -> None:
        with self._held_lock:
            self._held.difference_update(keys)

    @contextmanager
    def claim(self, keys: Sequence[str]) -> Iterator[bool]:
        acquired = self.acquire(keys)
        try:
            yield acquired
        finally:
            if acquired:
                self.release(keys)
