"""
Pure load rules: status machine, derived fields, merge patch, image references.
"""

from datetime import date

import pytest

from freightdesk.models.load import (NON_REASSIGNABLE, Load, LoadStatus,
                                     can_transition, compute_expected_payout,
                                     derive_load_number, sources_for)
from freightdesk.schemas.load import LoadUpdate
from freightdesk.services.loads import is_valid_image_reference, merge_load_patch

ALLOWED = {
    (LoadStatus.PENDING, LoadStatus.ACCEPTED),
    (LoadStatus.PENDING, LoadStatus.REJECTED),
    (LoadStatus.ACCEPTED, LoadStatus.COMPLETED),
}


@pytest.mark.parametrize("current", list(LoadStatus))
@pytest.mark.parametrize("target", list(LoadStatus))
def test_only_three_transitions_exist(current, target):
    assert can_transition(current, target) is ((current, target) in ALLOWED)


def test_reserved_statuses_are_unreachable():
    assert sources_for(LoadStatus.IN_TRANSIT) == []
    assert sources_for(LoadStatus.DELIVERED) == []
    assert sources_for(LoadStatus.COMPLETED) == [LoadStatus.ACCEPTED]


def test_non_reassignable_states():
    assert NON_REASSIGNABLE == {LoadStatus.ACCEPTED, LoadStatus.COMPLETED}


def test_load_number_is_last_eight_upper():
    assert derive_load_number("0123456789abcdef0123456789abcdef") == "89ABCDEF"


@pytest.mark.parametrize(
    "terms, expected",
    [
        (30, date(2025, 1, 31)),
        (45, date(2025, 2, 15)),
        (60, date(2025, 3, 2)),
        (90, date(2025, 4, 1)),
        (120, date(2025, 5, 1)),
    ],
)
def test_expected_payout_adds_calendar_days(terms, expected):
    assert compute_expected_payout(date(2025, 1, 1), terms) == expected


def _load(**fields) -> Load:
    base = dict(
        pickup_location="Athens",
        dropoff_location="Patras",
        client_name="Acme",
        client_price=1000.0,
        notes="keep me",
        pallets=12,
        shipping_type="FTL",
    )
    base.update(fields)
    return Load(**base)


def test_merge_patch_touches_only_present_fields():
    load = _load()
    applied = merge_load_patch(load, LoadUpdate.model_validate({"clientPrice": 1500, "shippingType": "LTL"}))
    assert sorted(applied) == ["client_price", "shipping_type"]
    assert load.client_price == 1500
    assert load.shipping_type == "LTL"
    assert load.notes == "keep me"
    assert load.pickup_location == "Athens"


def test_merge_patch_null_clears_only_nullable_fields():
    load = _load()
    applied = merge_load_patch(load, LoadUpdate.model_validate({"pallets": None, "notes": None}))
    assert applied == ["pallets"]
    assert load.pallets is None
    assert load.notes == "keep me"


def test_merge_patch_empty_is_a_no_op():
    load = _load()
    assert merge_load_patch(load, LoadUpdate()) == []
    assert load.client_price == 1000.0


@pytest.mark.parametrize(
    "ref, ok",
    [
        ("data:image/jpeg;base64,/9j/4AAQ", True),
        ("https://cdn.example.com/pod.jpg", True),
        ("http://cdn.example.com/pod.jpg", True),
        ("data:text/plain;base64,aGk=", False),
        ("ftp://cdn.example.com/pod.jpg", False),
        ("", False),
        (None, False),
    ],
)
def test_image_reference_forms(ref, ok):
    assert is_valid_image_reference(ref) is ok
