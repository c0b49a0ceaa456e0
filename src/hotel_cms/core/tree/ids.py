"""Client-side node id generation."""

import time
import uuid


def now_ms() -> int:
    return int(time.time() * 1000)


def generate_id(prefix: str = "node") -> str:
    """Generate a fresh node id like ``cat-1718000000000-3f9a1c0e``."""
    return f"{prefix or 'node'}-{now_ms()}-{uuid.uuid4().hex[:8]}"
