from __future__ import annotations

from watchtracker.core.models import ProductRecord

DEMO_SOURCE = "Falco Watches"

_DEMO_ITEMS: tuple[tuple[str, str, str], ...] = (
    ("Falco Navigator GMT", "$425", "40mm"),
    ("Falco Explorer II", "$395", "42mm"),
    ("Falco Submariner Heritage", "$485", "40mm"),
    ("Falco Speedmaster", "$525", "38mm"),
    ("Falco Day-Date Classic", "$650", "36mm"),
    ("Falco Aqua Terra", "$445", "41mm"),
    ("Falco Pilot Chronograph", "$595", "43mm"),
    ("Falco Diver Pro", "$385", "44mm"),
    ("Falco Field Watch", "$325", "38mm"),
    ("Falco Dress Watch Elite", "$475", "40mm"),
)


def demo_records(now: int) -> list[ProductRecord]:
    """Sample watches one second apart, newest first."""
    return [
        ProductRecord(name=name, price=price, size=size, source=DEMO_SOURCE, timestamp=now - 1000 * offset)
        for offset, (name, price, size) in enumerate(_DEMO_ITEMS, start=1)
    ]
