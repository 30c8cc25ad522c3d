"""Tests for mechanic availability requests, decisions and approved hours."""

from datetime import date, time
from uuid import uuid4

import pytest

from workshop_kernel.exceptions import (
    AvailabilityDecidedError,
    AvailabilityNotFoundError,
    InvalidTimeRangeError,
    UnauthorizedActorError,
    ValidationError,
)
from workshop_modules.availability.models import AvailabilityStatus, net_minutes
from workshop_modules.availability.selectors import week_start

MONDAY = date(2024, 3, 4)
SATURDAY = date(2024, 3, 9)
NEXT_MONDAY = date(2024, 3, 11)


@pytest.fixture
def monday_shift(availability_service, mechanic_id):
    return availability_service.request(mechanic_id, MONDAY, time(9, 0), time(17, 0), notes=" vroeg weg? ")


class TestNetMinutes:

    @pytest.mark.parametrize(
        "start,end,expected",
        [
            (time(9, 0), time(17, 0), 450),
            (time(9, 0), time(15, 0), 360),
            (time(9, 0), time(15, 1), 331),
            (time(13, 30), time(14, 0), 30),
        ],
    )
    def test_break_over_six_hours(self, start, end, expected):
        assert net_minutes(start, end) == expected

    def test_week_start(self):
        assert week_start(SATURDAY) == MONDAY
        assert week_start(MONDAY) == MONDAY


class TestRequests:

    def test_request_is_pending(self, monday_shift, mechanic_id):
        assert monday_shift.status == AvailabilityStatus.PENDING
        assert monday_shift.user_id == mechanic_id
        assert monday_shift.notes == "vroeg weg?"
        assert monday_shift.net_minutes == 450

    def test_end_must_follow_start(self, availability_service, mechanic_id):
        with pytest.raises(InvalidTimeRangeError):
            availability_service.request(mechanic_id, MONDAY, time(12, 0), time(12, 0))

    def test_request_many(self, availability_service, availability, mechanic_id):
        rows = availability_service.request_many(
            mechanic_id, [SATURDAY, MONDAY, MONDAY], time(10, 0), time(14, 0),
        )
        assert [r.date for r in rows] == [MONDAY, SATURDAY]
        assert len(availability.pending()) == 2

    def test_request_many_needs_days(self, availability_service, mechanic_id):
        with pytest.raises(ValidationError):
            availability_service.request_many(mechanic_id, [], time(10, 0), time(14, 0))


class TestDecisions:

    def test_admin_approves(self, availability_service, monday_shift, admin_id, clock):
        approved = availability_service.decide(monday_shift.id, "approved", admin_id)

        assert approved.status == AvailabilityStatus.APPROVED
        assert approved.approved_by == admin_id
        assert approved.approved_at == clock.now()

    def test_mechanic_cannot_decide(self, availability_service, monday_shift, mechanic_id):
        with pytest.raises(UnauthorizedActorError):
            availability_service.decide(monday_shift.id, AvailabilityStatus.APPROVED, mechanic_id)

    def test_pending_is_not_a_decision(self, availability_service, monday_shift, admin_id):
        with pytest.raises(ValidationError):
            availability_service.decide(monday_shift.id, AvailabilityStatus.PENDING, admin_id)

    def test_unknown_request(self, availability_service, admin_id):
        with pytest.raises(AvailabilityNotFoundError):
            availability_service.decide(uuid4(), "rejected", admin_id)


class TestEdits:

    def test_owner_edit_resets_to_pending(self, availability_service, monday_shift, admin_id, mechanic_id):
        availability_service.decide(monday_shift.id, "approved", admin_id)

        edited = availability_service.update(monday_shift.id, mechanic_id, end_time=time(16, 0))
        assert edited.end_time == time(16, 0)
        assert edited.status == AvailabilityStatus.PENDING
        assert edited.approved_by is None

    def test_admin_edit_keeps_status(self, availability_service, monday_shift, admin_id):
        availability_service.decide(monday_shift.id, "approved", admin_id)

        edited = availability_service.update(monday_shift.id, admin_id, start_time=time(8, 0), notes=None)
        assert edited.status == AvailabilityStatus.APPROVED
        assert edited.start_time == time(8, 0)
        assert edited.notes is None

    def test_edit_checks_range(self, availability_service, monday_shift, mechanic_id):
        with pytest.raises(InvalidTimeRangeError):
            availability_service.update(monday_shift.id, mechanic_id, start_time=time(18, 0))

    def test_other_mechanic_cannot_edit(self, availability_service, monday_shift, second_mechanic_id):
        with pytest.raises(UnauthorizedActorError):
            availability_service.update(monday_shift.id, second_mechanic_id, day=SATURDAY)

    def test_owner_deletes_pending_only(self, availability_service, availability, monday_shift, admin_id, mechanic_id):
        availability_service.decide(monday_shift.id, "rejected", admin_id)
        with pytest.raises(AvailabilityDecidedError):
            availability_service.delete(monday_shift.id, mechanic_id)

        availability_service.delete(monday_shift.id, admin_id)
        assert availability.for_user(mechanic_id) == []


class TestAvailabilitySelector:

    def test_for_week(self, availability_service, availability, mechanic_id, second_mechanic_id):
        availability_service.request(mechanic_id, MONDAY, time(9, 0), time(12, 0))
        availability_service.request(second_mechanic_id, SATURDAY, time(9, 0), time(12, 0))
        availability_service.request(mechanic_id, NEXT_MONDAY, time(9, 0), time(12, 0))

        assert [a.date for a in availability.for_week(date(2024, 3, 6))] == [MONDAY, SATURDAY]
        assert [a.date for a in availability.for_week(SATURDAY, user_id=mechanic_id)] == [MONDAY]
        assert [a.date for a in availability.for_user(mechanic_id, start=date(2024, 3, 5))] == [NEXT_MONDAY]

    def test_approved_hours(self, availability_service, availability, admin_id, mechanic_id, second_mechanic_id):
        shifts = [
            availability_service.request(mechanic_id, MONDAY, time(9, 0), time(17, 0)),
            availability_service.request(mechanic_id, SATURDAY, time(10, 0), time(14, 0)),
            availability_service.request(second_mechanic_id, MONDAY, time(9, 0), time(12, 0)),
        ]
        for shift in shifts[:2]:
            availability_service.decide(shift.id, "approved", admin_id)
        availability_service.decide(shifts[2].id, "rejected", admin_id)

        [hours] = availability.approved_hours(date(2024, 3, 1), date(2024, 3, 31))
        assert hours.user_id == mechanic_id
        assert hours.total_minutes == 450 + 240
        assert hours.saturday_count == 1
