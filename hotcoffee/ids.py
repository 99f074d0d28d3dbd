"""Identifier helpers shared by the services."""

import re
import time
import uuid


def generate_order_id() -> str:
    """Timestamp prefix plus a short uuid suffix, e.g. ORD-1707000000000-a1b2c3d4."""
    ts = int(time.time() * 1000)
    short_uuid = uuid.uuid4().hex[:8]
    return f"ORD-{ts}-{short_uuid}"


def slugify(name: str, fallback: str = "menu_item") -> str:
    cleaned = name.strip().lower().replace(" ", "_")
    cleaned = re.sub(r"[^a-z0-9_]", "", cleaned)
    return cleaned or fallback
