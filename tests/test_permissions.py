"""Tests for the bitmask permission model."""

import pytest

from core.permissions import (
    ALL_CAPABILITIES,
    Capability,
    capabilities_of,
    capability_names,
    has_permission,
)


def test_has_permission_matches_bitwise_and_for_every_pair():
    for bitmask in range(256):
        for required in range(256):
            assert has_permission(bitmask, required) is ((bitmask & required) == required)


def test_capability_bits_are_the_eight_single_bits():
    assert [int(c) for c in Capability] == [1, 2, 4, 8, 16, 32, 64, 128]
    assert [c.name for c in Capability] == [
        "CREATE", "EDIT", "DELETE", "VIEW", "DERIVE", "AUDIT", "EXPORT", "LOCK",
    ]


@pytest.mark.parametrize("capability", list(Capability))
def test_full_mask_grants_every_capability(capability):
    assert has_permission(255, capability)
    assert has_permission(ALL_CAPABILITIES, capability)


@pytest.mark.parametrize("capability", list(Capability))
def test_empty_mask_grants_nothing(capability):
    assert not has_permission(0, capability)


def test_combined_requirement_needs_all_bits():
    required = Capability.VIEW | Capability.DERIVE
    assert has_permission(Capability.VIEW | Capability.DERIVE | Capability.CREATE, required)
    assert not has_permission(Capability.VIEW, required)


def test_zero_requirement_is_always_satisfied():
    assert has_permission(0, 0)


def test_capabilities_of_lists_set_bits_in_order():
    mask = Capability.CREATE | Capability.VIEW | Capability.LOCK
    assert capabilities_of(mask) == [Capability.CREATE, Capability.VIEW, Capability.LOCK]
    assert capability_names(mask) == ["create", "view", "lock"]
    assert capability_names(0) == []
    assert len(capabilities_of(255)) == 8
