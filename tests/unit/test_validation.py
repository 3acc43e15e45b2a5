from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from campushub.domain import validation
from campushub.domain.exceptions import (
	InvalidCapacityError,
	InvalidEmailDomainError,
	InvalidPositionError,
	InvalidScheduleError,
	MissingFieldError,
	ValidationError,
)
from campushub.domain.models import Position

WHEN = datetime(2026, 9, 1, 10, 0, tzinfo=timezone.utc)


def test_institutional_email_normalised():
	assert validation.ensure_institutional_email("  Asha@CMRIT.ac.in ") == "asha@cmrit.ac.in"


@pytest.mark.parametrize(
	"email",
	["asha@gmail.com", "@cmrit.ac.in", "a b@cmrit.ac.in", "x@y@cmrit.ac.in", "", None, "asha@cmrit.ac.in.evil.com"],
)
def test_institutional_email_rejected(email):
	with pytest.raises(InvalidEmailDomainError):
		validation.ensure_institutional_email(email)


def test_club_requires_name():
	with pytest.raises(MissingFieldError) as excinfo:
		validation.validate_club(name="   ", contact_email=None, created_by=uuid4())
	assert excinfo.value.detail == "name_required"


def test_club_without_owner_requires_contact_email():
	with pytest.raises(MissingFieldError) as excinfo:
		validation.validate_club(name="Drama", contact_email=None, created_by=None)
	assert excinfo.value.detail == "contact_email_required"


def test_club_contact_email_must_be_institutional():
	with pytest.raises(InvalidEmailDomainError):
		validation.validate_club(name="Drama", contact_email="drama@gmail.com", created_by=uuid4())


def test_event_deadline_after_date_rejected():
	with pytest.raises(InvalidScheduleError):
		validation.validate_event(
			title="Fest",
			event_date=WHEN,
			registration_deadline=WHEN + timedelta(minutes=1),
			max_participants=None,
			created_by=uuid4(),
		)


def test_event_deadline_equal_to_date_allowed():
	checked = validation.validate_event(
		title=" Fest ",
		event_date=WHEN,
		registration_deadline=WHEN,
		max_participants=0,
		created_by=uuid4(),
	)
	assert checked["title"] == "Fest"
	assert checked["max_participants"] == 0


@pytest.mark.parametrize("capacity", [-1, True, 2.5, "10"])
def test_event_capacity_must_be_non_negative_int(capacity):
	with pytest.raises(InvalidCapacityError):
		validation.ensure_capacity(capacity)


def test_naive_datetimes_rejected():
	with pytest.raises(ValidationError) as excinfo:
		validation.ensure_aware(datetime(2026, 9, 1, 10, 0), "event_date")
	assert excinfo.value.detail == "event_date_timezone_required"


def test_event_without_creator_rejected():
	with pytest.raises(MissingFieldError):
		validation.validate_event(
			title="Fest",
			event_date=WHEN,
			registration_deadline=None,
			max_participants=None,
			created_by=None,
		)


def test_position_parsing():
	assert validation.parse_position("secretary") is Position.SECRETARY
	with pytest.raises(InvalidPositionError):
		validation.parse_position("treasurer")
