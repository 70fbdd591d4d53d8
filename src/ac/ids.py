"""Collision-free issue id generation.

Ids look like ``<prefix>-<suffix>``. The prefix is derived once per store from
the working directory; the suffix comes from a hash of the issue title and its
creation timestamp, so the same (title, timestamp) pair always produces the
same first candidate. That keeps re-imports of an external record stable.
"""

from __future__ import annotations

import hashlib
from collections.abc import Container
from datetime import datetime
from pathlib import Path

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"
_WINDOW_BYTES = 4
# SHA-256 gives 32 bytes; windows start at offsets 0..27.
WINDOW_COUNT = 28


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def derive_prefix(path: str | Path) -> str:
    """Map the first two bytes of sha256(path) to two base-36 characters."""
    digest = hashlib.sha256(str(path).encode("utf-8")).digest()
    return "".join(_BASE36[b % 36] for b in digest[:2])


def candidate_ids(prefix: str, title: str, created_at: datetime) -> list[str]:
    """Return the hash-window candidates for (title, created_at), in probe order."""
    digest = hashlib.sha256((title + created_at.isoformat()).encode("utf-8")).digest()
    return [
        f"{prefix}-{_base36(int.from_bytes(digest[offset : offset + _WINDOW_BYTES], 'big'))}"
        for offset in range(WINDOW_COUNT)
    ]


def generate_issue_id(prefix: str, title: str, created_at: datetime, existing: Container[str]) -> str:
    """Return the first candidate id not in *existing*.

    Falls back to ``<prefix>-<hex counter>`` only after every hash window
    collides.
    """
    for candidate in candidate_ids(prefix, title, created_at):
        if candidate not in existing:
            return candidate
    counter = 0
    while True:
        candidate = f"{prefix}-{counter:x}"
        if candidate not in existing:
            return candidate
        counter += 1
