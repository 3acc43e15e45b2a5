from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from campushub.domain.events_service import EventsService
from campushub.domain.exceptions import (
	AlreadyRegisteredError,
	CapacityExceededError,
	ConflictError,
	EventInactiveError,
	EventNotUpcomingError,
	ForbiddenError,
	NotFoundError,
	RegistrationClosedError,
)
from campushub.domain.models import Position, Registration, Role
from campushub.domain.registration_service import RegistrationService
from campushub.schemas import dto


@pytest.mark.asyncio
async def test_concurrent_registrations_never_overbook(repo, make_identity, make_event):
	creator = await make_identity(Role.FACULTY)
	event = await make_event(creator, max_participants=3)
	students = [await make_identity() for _ in range(10)]
	service = RegistrationService(repo)

	results = await asyncio.gather(
		*(service.register(event.id, student) for student in students),
		return_exceptions=True,
	)

	accepted = [r for r in results if not isinstance(r, BaseException)]
	rejected = [r for r in results if isinstance(r, BaseException)]
	assert len(accepted) == 3
	assert len(rejected) == 7
	assert all(isinstance(exc, CapacityExceededError) for exc in rejected)
	# Every caller passed the pre-check together, so the losers were stopped by the atomic insert.
	assert any(exc.contended for exc in rejected)
	assert await repo.count_active_registrations(event.id) == 3
	assert len({r.user_id for r in accepted}) == 3


@pytest.mark.asyncio
async def test_same_identity_twice_yields_already_registered(repo, make_identity, make_event):
	creator = await make_identity(Role.FACULTY)
	event = await make_event(creator, max_participants=5)
	student = await make_identity()
	service = RegistrationService(repo)

	first = await service.register(event.id, student)
	with pytest.raises(AlreadyRegisteredError):
		await service.register(event.id, student)

	assert first.user_id == student.id
	assert await repo.count_active_registrations(event.id) == 1


@pytest.mark.asyncio
async def test_same_identity_concurrently_stores_one_registration(repo, make_identity, make_event):
	creator = await make_identity(Role.FACULTY)
	event = await make_event(creator)
	student = await make_identity()
	service = RegistrationService(repo)

	results = await asyncio.gather(
		service.register(event.id, student),
		service.register(event.id, student),
		return_exceptions=True,
	)

	assert sum(1 for r in results if isinstance(r, AlreadyRegisteredError)) == 1
	assert await repo.count_active_registrations(event.id) == 1


@pytest.mark.asyncio
async def test_cancel_frees_a_seat(repo, make_identity, make_event):
	creator = await make_identity(Role.FACULTY)
	event = await make_event(creator, max_participants=1)
	first, second = await make_identity(), await make_identity()
	service = RegistrationService(repo)

	registration = await service.register(event.id, first)
	with pytest.raises(CapacityExceededError) as excinfo:
		await service.register(event.id, second)
	assert excinfo.value.contended is False

	await service.cancel(first, registration.id)
	replacement = await service.register(event.id, second)

	assert replacement.user_id == second.id
	assert await repo.count_active_registrations(event.id) == 1


@pytest.mark.asyncio
async def test_cancel_twice_is_not_found(repo, make_identity, make_event):
	creator = await make_identity(Role.FACULTY)
	event = await make_event(creator)
	student = await make_identity()
	service = RegistrationService(repo)
	registration = await service.register(event.id, student)

	await service.cancel(student, registration.id)
	with pytest.raises(NotFoundError):
		await service.cancel(student, registration.id)


@pytest.mark.asyncio
async def test_cancel_by_someone_else_is_forbidden(repo, make_identity, make_event):
	creator = await make_identity(Role.FACULTY)
	event = await make_event(creator)
	student = await make_identity()
	service = RegistrationService(repo)
	registration = await service.register(event.id, student)

	with pytest.raises(ForbiddenError):
		await service.cancel(creator, registration.id)


@pytest.mark.asyncio
async def test_deadline_and_capacity_scenario(repo, make_identity, make_event):
	creator = await make_identity(Role.FACULTY)
	t = datetime.now(timezone.utc) + timedelta(days=3)
	event = await make_event(
		creator,
		event_date=t,
		max_participants=2,
		registration_deadline=t - timedelta(hours=1),
	)
	a, b, c, d = [await make_identity() for _ in range(4)]
	service = RegistrationService(repo)

	await service.register(event.id, a, now=t - timedelta(hours=2))
	with pytest.raises(RegistrationClosedError):
		await service.register(event.id, b, now=t - timedelta(minutes=30))
	await service.register(event.id, c, now=t - timedelta(hours=2))
	with pytest.raises(CapacityExceededError):
		await service.register(event.id, d, now=t - timedelta(hours=2))

	assert await repo.count_active_registrations(event.id) == 2


@pytest.mark.asyncio
async def test_registering_exactly_at_deadline_is_accepted(repo, make_identity, make_event):
	creator = await make_identity(Role.FACULTY)
	t = datetime.now(timezone.utc) + timedelta(days=3)
	deadline = t - timedelta(hours=1)
	event = await make_event(creator, event_date=t, registration_deadline=deadline)
	service = RegistrationService(repo)

	registration = await service.register(event.id, await make_identity(), now=deadline)

	assert registration.event_id == event.id
	with pytest.raises(RegistrationClosedError):
		await service.register(event.id, await make_identity(), now=deadline + timedelta(microseconds=1))


@pytest.mark.asyncio
async def test_inactive_event_rejected_first(repo, make_identity, make_event):
	creator = await make_identity(Role.FACULTY)
	past_deadline = datetime.now(timezone.utc) - timedelta(days=1)
	event = await make_event(creator, registration_deadline=past_deadline)
	await repo.deactivate_event(event.id)

	with pytest.raises(EventInactiveError):
		await RegistrationService(repo).register(event.id, await make_identity())


@pytest.mark.asyncio
async def test_ongoing_event_not_upcoming(repo, make_identity, make_event):
	creator = await make_identity(Role.FACULTY)
	event = await make_event(creator, starts_in=-timedelta(hours=1))

	with pytest.raises(EventNotUpcomingError):
		await RegistrationService(repo).register(event.id, await make_identity())


@pytest.mark.asyncio
async def test_unknown_event_is_not_found(repo, make_identity):
	with pytest.raises(NotFoundError):
		await RegistrationService(repo).register(uuid4(), await make_identity())


@pytest.mark.asyncio
async def test_zero_capacity_rejects_everyone(repo, make_identity, make_event):
	creator = await make_identity(Role.FACULTY)
	event = await make_event(creator, max_participants=0)

	with pytest.raises(CapacityExceededError):
		await RegistrationService(repo).register(event.id, await make_identity())


@pytest.mark.asyncio
async def test_registration_listings(repo, make_identity, make_event):
	creator = await make_identity(Role.FACULTY)
	event = await make_event(creator)
	other_event = await make_event(creator)
	student = await make_identity()
	service = RegistrationService(repo)
	await service.register(event.id, student)
	await service.register(other_event.id, student)

	roster = await service.list_registrations(creator, event.id)
	mine = await service.my_registrations(student)

	assert [r.user_id for r in roster] == [student.id]
	assert {r.event_id for r in mine} == {event.id, other_event.id}
	with pytest.raises(ForbiddenError):
		await service.list_registrations(student, event.id)


@pytest.mark.asyncio
async def test_capacity_edit_racing_a_registration_never_overbooks(repo, make_identity, make_event):
	creator = await make_identity(Role.FACULTY)
	event = await make_event(creator, max_participants=2)
	registrations = RegistrationService(repo)
	await registrations.register(event.id, await make_identity())

	register_result, edit_result = await asyncio.gather(
		registrations.register(event.id, await make_identity()),
		EventsService(repo).update_event(creator, event.id, dto.EventUpdateRequest(max_participants=1)),
		return_exceptions=True,
	)

	stored = await repo.get_event(event.id)
	assert await repo.count_active_registrations(event.id) <= stored.max_participants
	failures = [r for r in (register_result, edit_result) if isinstance(r, BaseException)]
	assert len(failures) == 1
	if isinstance(register_result, BaseException):
		assert isinstance(register_result, CapacityExceededError)
		assert stored.max_participants == 1
	else:
		assert isinstance(edit_result, ConflictError)
		assert edit_result.detail == "capacity_below_registrations"
		assert stored.max_participants == 2


@pytest.mark.asyncio
async def test_deactivation_racing_a_registration(repo, make_identity, make_event):
	creator = await make_identity(Role.FACULTY)
	event = await make_event(creator, max_participants=5)

	register_result, deactivated = await asyncio.gather(
		RegistrationService(repo).register(event.id, await make_identity()),
		EventsService(repo).deactivate_event(creator, event.id),
		return_exceptions=True,
	)

	assert not deactivated.is_active
	if isinstance(register_result, BaseException):
		assert isinstance(register_result, EventInactiveError)
		assert await repo.count_active_registrations(event.id) == 0
	else:
		assert isinstance(register_result, Registration)
		assert register_result.created_at <= deactivated.updated_at


@pytest.mark.asyncio
async def test_insert_rereads_event_under_lock(repo, make_identity, make_event):
	creator = await make_identity(Role.FACULTY)
	event = await make_event(creator, max_participants=2)
	first, second = await make_identity(), await make_identity()
	await repo.insert_registration_if_capacity(event_id=event.id, user_id=first.id)

	await repo.update_event(event.id, {"max_participants": 1})
	with pytest.raises(CapacityExceededError) as excinfo:
		await repo.insert_registration_if_capacity(event_id=event.id, user_id=second.id)
	assert excinfo.value.contended

	await repo.deactivate_event(event.id)
	with pytest.raises(EventInactiveError):
		await repo.insert_registration_if_capacity(event_id=event.id, user_id=second.id)


@pytest.mark.asyncio
async def test_repository_refuses_capacity_below_registrations(repo, make_identity, make_event):
	creator = await make_identity(Role.FACULTY)
	event = await make_event(creator, max_participants=3)
	await repo.insert_registration_if_capacity(event_id=event.id, user_id=(await make_identity()).id)

	with pytest.raises(ConflictError) as excinfo:
		await repo.update_event(event.id, {"max_participants": 0})

	assert excinfo.value.detail == "capacity_below_registrations"
	assert (await repo.get_event(event.id)).max_participants == 3


@pytest.mark.asyncio
async def test_deactivation_releases_lock_entries(repo, make_identity, make_event, make_club):
	creator = await make_identity(Role.FACULTY)
	event = await make_event(creator, max_participants=3)
	club = await make_club(creator)
	await repo.insert_registration_if_capacity(event_id=event.id, user_id=(await make_identity()).id)
	await repo.insert_membership_if_absent(
		club_id=club.id, user_id=(await make_identity()).id, position=Position.OTHER
	)
	assert event.id in repo._event_locks
	assert club.id in repo._club_locks

	await repo.deactivate_event(event.id)
	await repo.deactivate_club(club.id)

	assert event.id not in repo._event_locks
	assert club.id not in repo._club_locks
