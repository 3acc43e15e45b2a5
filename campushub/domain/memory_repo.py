"""Process-local repository used for local runs and tests.

Every call yields to the event loop once before touching state, the way a
network round-trip would, so concurrent callers interleave. Conditional inserts
hold a per-event (registrations) or per-club (memberships) ``asyncio.Lock``
across their check and write; event edits and deactivation take the same
per-event lock, so a registration always decides on the event's current row.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Iterable
from uuid import UUID, uuid4

from campushub.domain import models
from campushub.domain.exceptions import (
	AlreadyRegisteredError,
	CapacityExceededError,
	ConflictError,
	DuplicateMembershipError,
	EmailTakenError,
	EventInactiveError,
	NotFoundError,
)
from campushub.domain.repo import CLUB_PATCH_COLUMNS, EVENT_PATCH_COLUMNS, IDENTITY_PATCH_COLUMNS


def _now() -> datetime:
	return datetime.now(timezone.utc)


class InMemoryRepository:
	"""Dict-backed implementation of ``Repository``."""

	def __init__(self) -> None:
		self.identities: dict[UUID, models.Identity] = {}
		self.clubs: dict[UUID, models.Club] = {}
		self.memberships: dict[UUID, models.Membership] = {}
		self.events: dict[UUID, models.Event] = {}
		self.registrations: dict[UUID, models.Registration] = {}
		# One lock per live event/club; deactivation drops the entry.
		self._event_locks: defaultdict[UUID, asyncio.Lock] = defaultdict(asyncio.Lock)
		self._club_locks: defaultdict[UUID, asyncio.Lock] = defaultdict(asyncio.Lock)
		self._identity_lock = asyncio.Lock()

	async def _io(self) -> None:
		await asyncio.sleep(0)

	# --- Identities -------------------------------------------------------

	async def create_identity(
		self,
		*,
		email: str,
		full_name: str,
		role: models.Role,
		department: str | None,
		year_of_study: int | None,
		student_id: str | None,
	) -> models.Identity:
		await self._io()
		async with self._identity_lock:
			lowered = email.lower()
			if any(existing.email.lower() == lowered for existing in self.identities.values()):
				raise EmailTakenError()
			now = _now()
			identity = models.Identity(
				id=uuid4(),
				email=email,
				full_name=full_name,
				role=role,
				department=department,
				year_of_study=year_of_study,
				student_id=student_id,
				created_at=now,
				updated_at=now,
			)
			self.identities[identity.id] = identity
		return identity

	async def get_identity(self, identity_id: UUID) -> models.Identity | None:
		await self._io()
		return self.identities.get(identity_id)

	async def find_identity_by_email(self, email: str) -> models.Identity | None:
		await self._io()
		lowered = email.strip().lower()
		for identity in self.identities.values():
			if identity.email.lower() == lowered:
				return identity
		return None

	async def update_identity(self, identity_id: UUID, patch: dict[str, Any]) -> models.Identity | None:
		await self._io()
		current = self.identities.get(identity_id)
		if current is None:
			return None
		changes = {key: value for key, value in patch.items() if key in IDENTITY_PATCH_COLUMNS}
		updated = current.model_copy(update={**changes, "updated_at": _now()})
		self.identities[identity_id] = updated
		return updated

	# --- Clubs ------------------------------------------------------------

	async def get_club(self, club_id: UUID) -> models.Club | None:
		await self._io()
		return self.clubs.get(club_id)

	async def list_clubs(self) -> list[models.Club]:
		await self._io()
		active = [club for club in self.clubs.values() if club.is_active]
		return sorted(active, key=lambda club: club.name)

	async def create_club(self, data: dict[str, Any]) -> models.Club:
		await self._io()
		now = _now()
		club = models.Club(
			id=uuid4(),
			name=data["name"],
			description=data.get("description"),
			department=data.get("department"),
			contact_email=data.get("contact_email"),
			contact_phone=data.get("contact_phone"),
			established_date=data.get("established_date"),
			created_by=data.get("created_by"),
			created_at=now,
			updated_at=now,
		)
		self.clubs[club.id] = club
		return club

	async def update_club(self, club_id: UUID, patch: dict[str, Any]) -> models.Club | None:
		await self._io()
		current = self.clubs.get(club_id)
		if current is None or not current.is_active:
			return None
		changes = {key: value for key, value in patch.items() if key in CLUB_PATCH_COLUMNS}
		updated = current.model_copy(update={**changes, "updated_at": _now()})
		self.clubs[club_id] = updated
		return updated

	async def deactivate_club(self, club_id: UUID) -> models.Club | None:
		await self._io()
		current = self.clubs.get(club_id)
		if current is None or not current.is_active:
			return None
		updated = current.model_copy(update={"is_active": False, "updated_at": _now()})
		self.clubs[club_id] = updated
		self._club_locks.pop(club_id, None)
		return updated

	# --- Events -----------------------------------------------------------

	async def get_event(self, event_id: UUID) -> models.Event | None:
		await self._io()
		return self.events.get(event_id)

	async def list_events(self, event_filter: models.EventFilter) -> list[models.Event]:
		await self._io()
		selected: list[models.Event] = []
		for event in self.events.values():
			if not event_filter.include_inactive and not event.is_active:
				continue
			if event_filter.club_id is not None and event.club_id != event_filter.club_id:
				continue
			if event_filter.created_by is not None and event.created_by != event_filter.created_by:
				continue
			if event_filter.starts_at_or_after is not None and event.event_date < event_filter.starts_at_or_after:
				continue
			selected.append(event)
		if event_filter.newest_first:
			# Ties keep the latest insert first.
			selected.reverse()
		if event_filter.order_by_created:
			selected.sort(key=lambda event: event.created_at, reverse=event_filter.newest_first)
		else:
			selected.sort(key=lambda event: event.event_date, reverse=event_filter.newest_first)
		if event_filter.limit is not None:
			selected = selected[: event_filter.limit]
		return selected

	async def create_event(self, data: dict[str, Any]) -> models.Event:
		await self._io()
		now = _now()
		event = models.Event(
			id=uuid4(),
			title=data["title"],
			description=data.get("description"),
			event_date=data["event_date"],
			location=data.get("location"),
			max_participants=data.get("max_participants"),
			registration_deadline=data.get("registration_deadline"),
			club_id=data.get("club_id"),
			created_by=data["created_by"],
			created_at=now,
			updated_at=now,
		)
		self.events[event.id] = event
		return event

	async def update_event(self, event_id: UUID, patch: dict[str, Any]) -> models.Event | None:
		async with self._event_locks[event_id]:
			await self._io()
			current = self.events.get(event_id)
			if current is None or not current.is_active:
				return None
			capacity = patch.get("max_participants")
			if capacity is not None and capacity < len(self._active_for_event(event_id)):
				raise ConflictError("capacity_below_registrations")
			changes = {key: value for key, value in patch.items() if key in EVENT_PATCH_COLUMNS}
			updated = current.model_copy(update={**changes, "updated_at": _now()})
			self.events[event_id] = updated
		return updated

	async def deactivate_event(self, event_id: UUID) -> models.Event | None:
		async with self._event_locks[event_id]:
			await self._io()
			current = self.events.get(event_id)
			if current is None or not current.is_active:
				return None
			updated = current.model_copy(update={"is_active": False, "updated_at": _now()})
			self.events[event_id] = updated
			self._event_locks.pop(event_id, None)
		return updated

	# --- Memberships ------------------------------------------------------

	async def get_membership(self, membership_id: UUID) -> models.Membership | None:
		await self._io()
		return self.memberships.get(membership_id)

	async def list_memberships(self, club_id: UUID) -> list[models.Membership]:
		await self._io()
		return [m for m in self.memberships.values() if m.club_id == club_id and m.is_active]

	async def list_roster(self, club_id: UUID) -> list[models.RosterEntry]:
		await self._io()
		entries: list[models.RosterEntry] = []
		for membership in self.memberships.values():
			if membership.club_id != club_id or not membership.is_active:
				continue
			identity = self.identities.get(membership.user_id)
			if identity is None:
				continue
			entries.append(
				models.RosterEntry(
					membership=membership,
					full_name=identity.full_name,
					email=identity.email,
					department=identity.department,
				)
			)
		return entries

	async def insert_membership_if_absent(
		self,
		*,
		club_id: UUID,
		user_id: UUID,
		position: models.Position,
	) -> models.Membership:
		async with self._club_locks[club_id]:
			await self._io()
			for existing in self.memberships.values():
				if existing.club_id == club_id and existing.user_id == user_id and existing.is_active:
					raise DuplicateMembershipError()
			membership = models.Membership(
				id=uuid4(),
				club_id=club_id,
				user_id=user_id,
				position=position,
				joined_at=_now(),
			)
			self.memberships[membership.id] = membership
		return membership

	async def update_membership_position(
		self,
		membership_id: UUID,
		position: models.Position,
	) -> models.Membership | None:
		await self._io()
		current = self.memberships.get(membership_id)
		if current is None or not current.is_active:
			return None
		updated = current.model_copy(update={"position": position})
		self.memberships[membership_id] = updated
		return updated

	async def deactivate_membership(self, membership_id: UUID) -> models.Membership | None:
		await self._io()
		current = self.memberships.get(membership_id)
		if current is None or not current.is_active:
			return None
		updated = current.model_copy(update={"is_active": False})
		self.memberships[membership_id] = updated
		return updated

	# --- Registrations ----------------------------------------------------

	def _active_for_event(self, event_id: UUID) -> list[models.Registration]:
		return [r for r in self.registrations.values() if r.event_id == event_id and r.is_active]

	async def get_registration(self, registration_id: UUID) -> models.Registration | None:
		await self._io()
		return self.registrations.get(registration_id)

	async def get_active_registration(self, event_id: UUID, user_id: UUID) -> models.Registration | None:
		await self._io()
		for registration in self._active_for_event(event_id):
			if registration.user_id == user_id:
				return registration
		return None

	async def count_active_registrations(self, event_id: UUID) -> int:
		await self._io()
		return len(self._active_for_event(event_id))

	async def count_active_registrations_many(self, event_ids: Iterable[UUID]) -> dict[UUID, int]:
		await self._io()
		return {event_id: len(self._active_for_event(event_id)) for event_id in event_ids}

	async def insert_registration_if_capacity(self, *, event_id: UUID, user_id: UUID) -> models.Registration:
		async with self._event_locks[event_id]:
			await self._io()
			event = self.events.get(event_id)
			if event is None:
				raise NotFoundError("event_not_found")
			if not event.is_active:
				raise EventInactiveError()
			active = self._active_for_event(event_id)
			if any(registration.user_id == user_id for registration in active):
				raise AlreadyRegisteredError()
			if event.max_participants is not None and len(active) >= event.max_participants:
				raise CapacityExceededError(contended=True)
			registration = models.Registration(
				id=uuid4(),
				event_id=event_id,
				user_id=user_id,
				status=models.RegistrationStatus.CONFIRMED,
				created_at=_now(),
			)
			self.registrations[registration.id] = registration
		return registration

	async def cancel_registration(self, registration_id: UUID) -> models.Registration | None:
		await self._io()
		current = self.registrations.get(registration_id)
		if current is None or not current.is_active:
			return None
		updated = current.model_copy(
			update={"status": models.RegistrationStatus.CANCELLED, "cancelled_at": _now()}
		)
		self.registrations[registration_id] = updated
		return updated

	async def list_event_registrations(self, event_id: UUID) -> list[models.Registration]:
		await self._io()
		return self._active_for_event(event_id)

	async def list_user_registrations(self, user_id: UUID) -> list[models.Registration]:
		await self._io()
		owned = [r for r in self.registrations.values() if r.user_id == user_id and r.is_active]
		return list(reversed(owned))
