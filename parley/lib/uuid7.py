from __future__ import annotations

import secrets
import threading
import time
import uuid as _uuid

# Monotonic state for same-millisecond IDs (RFC 9562 Method 2)
_state_lock = threading.Lock()
_last_timestamp_ms = 0
_counter = 0

_USE_NATIVE = hasattr(_uuid, "uuid7")


def uuid7() -> str:
    """Generate UUID v7 (time-ordered) so record ids sort by creation."""
    if _USE_NATIVE:
        return str(_uuid.uuid7())

    global _last_timestamp_ms, _counter

    with _state_lock:
        timestamp_ms = int(time.time() * 1000)

        if timestamp_ms == _last_timestamp_ms:
            _counter = (_counter + 1) & 0xFFF
        else:
            _counter = secrets.randbits(12)
            _last_timestamp_ms = timestamp_ms

        # 48-bit timestamp + 4-bit version + 12-bit counter
        time_high = (timestamp_ms >> 16) & 0xFFFFFFFF
        time_low = timestamp_ms & 0xFFFF
        time_low_and_version = (time_low << 16) | (7 << 12) | _counter

        # Variant 10, then 62 random bits
        rand_b_high = secrets.randbits(14)
        rand_b_low = secrets.randbits(48)
        variant_and_rand = (0b10 << 62) | (rand_b_high << 48) | rand_b_low

        uuid_int = (time_high << 96) | (time_low_and_version << 64) | variant_and_rand

        return str(_uuid.UUID(int=uuid_int))


def prefixed(prefix: str) -> str:
    """Return ``{prefix}-{uuid7}``, e.g. ``snap-0192...``."""
    return f"{prefix}-{uuid7()}"

