# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Bitmask permission model.

A role carries one 8-bit integer; every bit is an independent capability.
Internally the mask stays an ``int`` so checks are a single AND.  Everything
that crosses a module boundary names capabilities through :class:`Capability`
instead of bare numbers.
"""

from enum import IntFlag

PERMISSION_MASK = 0xFF


class Capability(IntFlag):
    CREATE = 1
    EDIT = 2
    DELETE = 4
    VIEW = 8
    DERIVE = 16
    AUDIT = 32
    EXPORT = 64
    LOCK = 128


ALL_CAPABILITIES = Capability(PERMISSION_MASK)


def has_permission(bitmask: int, required: int) -> bool:
    """True iff every bit of *required* is set in *bitmask*."""
    return (int(bitmask) & int(required)) == int(required)


def capabilities_of(bitmask: int) -> list[Capability]:
    """Single-bit capabilities present in *bitmask*, lowest bit first."""
    return [cap for cap in Capability if bitmask & cap]


def capability_names(bitmask: int) -> list[str]:
    return [cap.name.lower() for cap in capabilities_of(bitmask)]
