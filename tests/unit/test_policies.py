from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from campushub.domain import policies
from campushub.domain.exceptions import ForbiddenError
from campushub.domain.models import Action, Club, Event, Identity, Registration, RegistrationStatus, Role

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


def _identity(role: Role) -> Identity:
	return Identity(
		id=uuid4(),
		email="someone@cmrit.ac.in",
		full_name="Someone",
		role=role,
		created_at=NOW,
		updated_at=NOW,
	)


def _club(created_by) -> Club:
	return Club(id=uuid4(), name="Chess", created_by=created_by, created_at=NOW, updated_at=NOW)


def _event(created_by, *, event_date=NOW + timedelta(days=1), is_active=True) -> Event:
	return Event(
		id=uuid4(),
		title="Open Day",
		event_date=event_date,
		created_by=created_by,
		is_active=is_active,
		created_at=NOW,
		updated_at=NOW,
	)


@pytest.mark.parametrize(
	("role", "allowed"),
	[(Role.STUDENT, False), (Role.FACULTY, True), (Role.CLUB_OFFICER, True)],
)
@pytest.mark.parametrize("action", [Action.CREATE_CLUB, Action.CREATE_EVENT])
def test_publishing_requires_faculty_or_officer(role, allowed, action):
	assert policies.can_perform(_identity(role), action, now=NOW) is allowed


@pytest.mark.parametrize("role", list(Role))
@pytest.mark.parametrize("action", [Action.EDIT_CLUB, Action.DEACTIVATE_CLUB, Action.MANAGE_MEMBERSHIP])
def test_club_actions_follow_ownership_for_every_role(role, action):
	owner = _identity(role)
	stranger = _identity(role)
	club = _club(owner.id)
	assert policies.can_perform(owner, action, club, now=NOW) is True
	assert policies.can_perform(stranger, action, club, now=NOW) is False


@pytest.mark.parametrize("role", list(Role))
def test_unowned_submission_is_locked_for_everyone(role):
	club = _club(None)
	assert policies.can_perform(_identity(role), Action.EDIT_CLUB, club, now=NOW) is False


@pytest.mark.parametrize("action", [Action.EDIT_EVENT, Action.DEACTIVATE_EVENT])
def test_event_actions_follow_creator(action):
	creator = _identity(Role.FACULTY)
	event = _event(creator.id)
	assert policies.can_perform(creator, action, event, now=NOW)
	assert not policies.can_perform(_identity(Role.FACULTY), action, event, now=NOW)


@pytest.mark.parametrize("role", list(Role))
def test_register_open_to_every_role(role):
	event = _event(uuid4())
	assert policies.can_perform(_identity(role), Action.REGISTER, event, now=NOW)


def test_register_denied_for_inactive_or_completed_event():
	student = _identity(Role.STUDENT)
	inactive = _event(uuid4(), is_active=False)
	completed = _event(uuid4(), event_date=NOW - timedelta(days=3))
	assert not policies.can_perform(student, Action.REGISTER, inactive, now=NOW)
	assert not policies.can_perform(student, Action.REGISTER, completed, now=NOW)


def test_cancel_registration_limited_to_registrant():
	student = _identity(Role.STUDENT)
	registration = Registration(
		id=uuid4(),
		event_id=uuid4(),
		user_id=student.id,
		status=RegistrationStatus.CONFIRMED,
		created_at=NOW,
	)
	assert policies.can_perform(student, Action.CANCEL_REGISTRATION, registration, now=NOW)
	assert not policies.can_perform(_identity(Role.FACULTY), Action.CANCEL_REGISTRATION, registration, now=NOW)


def test_missing_identity_or_resource_is_denied():
	assert not policies.can_perform(None, Action.CREATE_CLUB, now=NOW)
	assert not policies.can_perform(_identity(Role.FACULTY), Action.EDIT_CLUB, None, now=NOW)


def test_assert_can_perform_raises_distinguishable_forbidden():
	with pytest.raises(ForbiddenError) as excinfo:
		policies.assert_can_perform(_identity(Role.STUDENT), Action.CREATE_EVENT, now=NOW)
	assert excinfo.value.detail == "create_event_not_permitted"
	assert excinfo.value.kind == "forbidden"
