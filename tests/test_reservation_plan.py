"""Tests for the pure slot planning functions."""

import random

import pytest

from partypallet.domain.scheduling.reservation import (
    SLOT_AVAILABLE,
    SLOT_BLOCKED,
    SLOT_BOOKED,
    SlotSpec,
    plan_block,
    plan_release,
    plan_reservation,
    plan_set_slots,
    validate_disjoint,
)
from partypallet.domain.scheduling.time_calculator import TimeWindow, to_minutes
from partypallet.shared.errors import (
    BookingEngineError,
    SlotBookedError,
    SlotConflictError,
    ValidationError,
)


def bounds(slots):
    return [(s.start, s.end, s.status) for s in slots]


def assert_disjoint(slots):
    ordered = sorted(slots, key=lambda s: to_minutes(s.start))
    for current, following in zip(ordered, ordered[1:]):
        assert to_minutes(following.start) >= to_minutes(current.end)


class TestPlanReservation:
    def test_reserving_on_empty_day_adds_booked_slot(self):
        planned = plan_reservation([], TimeWindow.parse("14:00", "18:00"))
        assert bounds(planned) == [("14:00", "18:00", SLOT_BOOKED)]

    def test_available_slot_is_trimmed_around_booking(self):
        slots = [SlotSpec("10:00", "20:00")]
        planned = plan_reservation(slots, TimeWindow.parse("12:00", "14:00"))
        assert bounds(planned) == [
            ("10:00", "12:00", SLOT_AVAILABLE),
            ("12:00", "14:00", SLOT_BOOKED),
            ("14:00", "20:00", SLOT_AVAILABLE),
        ]

    def test_available_slot_with_same_bounds_becomes_booked(self):
        planned = plan_reservation([SlotSpec("12:00", "14:00")], TimeWindow.parse("12:00", "14:00"))
        assert bounds(planned) == [("12:00", "14:00", SLOT_BOOKED)]

    @pytest.mark.parametrize(
        "status, message",
        [
            (SLOT_BLOCKED, r"Time slot is blocked \(13:00-15:00\)"),
            (SLOT_BOOKED, "Time slot conflicts with existing booking"),
        ],
    )
    def test_overlap_with_unavailable_slot_conflicts(self, status, message):
        slots = [SlotSpec("13:00", "15:00", status)]
        with pytest.raises(SlotConflictError, match=message):
            plan_reservation(slots, TimeWindow.parse("14:00", "18:00"))

    def test_adjacent_booking_is_allowed(self):
        slots = [SlotSpec("10:00", "14:00", SLOT_BOOKED)]
        planned = plan_reservation(slots, TimeWindow.parse("14:00", "18:00"))
        assert len(planned) == 2


class TestPlanRelease:
    def test_release_flips_exact_bounds_only(self):
        slots = [SlotSpec("10:00", "12:00", SLOT_BOOKED), SlotSpec("14:00", "16:00", SLOT_BOOKED)]
        planned = plan_release(slots, TimeWindow.parse("14:00", "16:00"))
        assert bounds(planned) == [
            ("10:00", "12:00", SLOT_BOOKED),
            ("14:00", "16:00", SLOT_AVAILABLE),
        ]

    def test_release_of_missing_window_is_a_no_op(self):
        slots = [SlotSpec("10:00", "12:00", SLOT_BOOKED)]
        assert plan_release(slots, TimeWindow.parse("12:00", "13:00")) == slots


class TestPlanBlock:
    def test_block_over_booked_slot_fails(self):
        with pytest.raises(SlotBookedError):
            plan_block([SlotSpec("10:00", "12:00", SLOT_BOOKED)], TimeWindow.parse("11:00", "13:00"))

    def test_reblocking_same_bounds_updates_note(self):
        slots = [SlotSpec("10:00", "12:00", SLOT_BLOCKED, "maintenance")]
        planned = plan_block(slots, TimeWindow.parse("10:00", "12:00"), "private event")
        assert planned == [SlotSpec("10:00", "12:00", SLOT_BLOCKED, "private event")]

    def test_partial_overlap_with_blocked_slot_is_rejected(self):
        with pytest.raises(ValidationError):
            plan_block([SlotSpec("10:00", "12:00", SLOT_BLOCKED)], TimeWindow.parse("11:00", "13:00"))

    def test_available_slots_are_trimmed(self):
        planned = plan_block([SlotSpec("09:00", "17:00")], TimeWindow.parse("09:00", "10:00"), "setup")
        assert bounds(planned) == [
            ("09:00", "10:00", SLOT_BLOCKED),
            ("10:00", "17:00", SLOT_AVAILABLE),
        ]


class TestPlanSetSlots:
    def test_booked_slots_survive_replacement(self):
        current = [SlotSpec("10:00", "12:00", SLOT_BOOKED), SlotSpec("13:00", "15:00")]
        supplied = [SlotSpec("16:00", "20:00")]
        planned = plan_set_slots(current, supplied)
        assert bounds(planned) == [
            ("10:00", "12:00", SLOT_BOOKED),
            ("16:00", "20:00", SLOT_AVAILABLE),
        ]

    def test_supplied_slot_matching_booked_bounds_is_dropped(self):
        current = [SlotSpec("10:00", "12:00", SLOT_BOOKED)]
        planned = plan_set_slots(current, [SlotSpec("10:00", "12:00")])
        assert bounds(planned) == [("10:00", "12:00", SLOT_BOOKED)]

    def test_supplied_slot_overlapping_booking_is_rejected(self):
        current = [SlotSpec("10:00", "12:00", SLOT_BOOKED)]
        with pytest.raises(ValidationError, match="must not overlap"):
            plan_set_slots(current, [SlotSpec("11:00", "13:00")])

    def test_booked_status_cannot_be_supplied(self):
        with pytest.raises(ValidationError):
            plan_set_slots([], [SlotSpec("10:00", "12:00", SLOT_BOOKED)])

    def test_supplied_slots_are_sorted(self):
        planned = plan_set_slots([], [SlotSpec("15:00", "16:00"), SlotSpec("9:00", "10:00")])
        assert [s.start for s in planned] == ["09:00", "15:00"]


def test_validate_disjoint_rejects_overlap():
    with pytest.raises(ValidationError):
        validate_disjoint([SlotSpec("10:00", "12:00"), SlotSpec("11:59", "13:00")])


def test_slots_stay_disjoint_under_random_operations():
    rng = random.Random(20261018)
    slots: list = []

    for _ in range(500):
        start = rng.randrange(0, 23 * 60, 30)
        end = min(start + rng.choice([30, 60, 90, 120, 240]), 23 * 60 + 59)
        window = TimeWindow(f"{start // 60:02d}:{start % 60:02d}", f"{end // 60:02d}:{end % 60:02d}")
        operation = rng.choice(["reserve", "release", "block", "set"])
        try:
            if operation == "reserve":
                slots = plan_reservation(slots, window)
            elif operation == "release":
                slots = plan_release(slots, window)
            elif operation == "block":
                slots = plan_block(slots, window, "random")
            else:
                slots = plan_set_slots(slots, [SlotSpec(window.start, window.end)])
        except BookingEngineError:
            pass
        assert_disjoint(slots)
