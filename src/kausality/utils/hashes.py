"""Actor fingerprints and bounded fingerprint sets stored in annotations."""

from __future__ import annotations

import hashlib

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"
HASH_LENGTH = 5


def user_identifier(username: str, uid: str) -> str:
    """Return the identity to fingerprint: username, falling back to UID."""
    return username if username else uid


def hash_username(identity: str) -> str:
    """Return the 5-character base36 fingerprint of an actor identity.

    Pipeline: sha256 → first 4 bytes as big-endian uint32 → base36 →
    zero-pad to 5 characters.
    """
    digest = hashlib.sha256(identity.encode("utf-8")).digest()
    n = int.from_bytes(digest[:4], "big")
    encoded = _to_base36(n).rjust(HASH_LENGTH, "0")
    return encoded[:HASH_LENGTH]


def _to_base36(n: int) -> str:
    if n == 0:
        return "0"
    digits: list[str] = []
    while n:
        n, rem = divmod(n, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def parse_hashes(value: str | None) -> list[str]:
    """Split a comma-separated annotation value, dropping blanks."""
    if not value:
        return []
    return [p.strip() for p in value.split(",") if p.strip()]


def join_hashes(hashes: list[str]) -> str:
    return ",".join(hashes)


def contains_hash(hashes: list[str], h: str) -> bool:
    return h in hashes


def intersect(a: list[str], b: list[str]) -> list[str]:
    """Return the hashes of ``b`` that also appear in ``a``, in ``b`` order."""
    present = set(a)
    return [h for h in b if h in present]


def append_bounded(hashes: list[str], h: str, limit: int) -> list[str]:
    """Append ``h`` unless present, keeping only the newest ``limit`` entries."""
    if h in hashes:
        return list(hashes)
    updated = [*hashes, h]
    if len(updated) > limit:
        updated = updated[len(updated) - limit:]
    return updated
