"""Weighted consistent-hash ring used to select destinations."""

from __future__ import annotations

import bisect
import hashlib
from typing import Iterator

HASH_SPACE = 2**32


def hash_key(key: str) -> int:
    """Stable 32-bit hash of *key* (independent of ``PYTHONHASHSEED``)."""
    digest = hashlib.md5(key.encode("utf-8")).digest()
    return int.from_bytes(digest[:4], "big")


class HashRing:
    """
    Each destination owns ``round(weight * points_per_weight)`` points on a
    32-bit circle. A key belongs to the owner of the first point at or after
    the key's hash, wrapping around at the end.
    """

    def __init__(self, weights: dict[str, float], points_per_weight: int = 100) -> None:
        self.points_per_weight = points_per_weight
        self._points: dict[str, int] = {}
        entries: list[tuple[int, str]] = []
        for destination in sorted(weights):
            count = int(round(weights[destination] * points_per_weight))
            if count <= 0:
                continue
            self._points[destination] = count
            for i in range(count):
                entries.append((hash_key(f"{destination}-{i}"), destination))
        entries.sort()
        self._hashes = [h for h, _ in entries]
        self._owners = [d for _, d in entries]

    def get(self, key: str) -> str | None:
        if not self._hashes:
            return None
        idx = bisect.bisect_left(self._hashes, hash_key(key))
        if idx == len(self._hashes):
            idx = 0
        return self._owners[idx]

    def iter_from(self, key_hash: int = 0) -> Iterator[str]:
        """Walk every point clockwise starting at *key_hash*, yielding owners."""
        if not self._hashes:
            return
        start = bisect.bisect_left(self._hashes, key_hash % HASH_SPACE)
        n = len(self._owners)
        for offset in range(n):
            yield self._owners[(start + offset) % n]

    def points(self) -> dict[str, int]:
        return dict(self._points)

    def destinations(self) -> list[str]:
        return sorted(self._points)

    def __len__(self) -> int:
        return len(self._hashes)

    def __bool__(self) -> bool:
        return bool(self._hashes)
