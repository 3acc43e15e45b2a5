"""Repository interface and the asyncpg-backed implementation.

Services only talk to storage through ``Repository``. Storage failures leave
this module as ``UnavailableError``; business collisions detected by the store
(unique indexes, capacity under lock) leave it as the matching ``ConflictError``.
"""

from __future__ import annotations

import asyncio
import functools
from typing import Any, Iterable, Optional, Protocol
from uuid import UUID

import asyncpg

from campushub.domain import models
from campushub.domain.exceptions import (
	AlreadyRegisteredError,
	CapacityExceededError,
	ConflictError,
	DuplicateMembershipError,
	EmailTakenError,
	EventInactiveError,
	NotFoundError,
	UnavailableError,
)
from campushub.infra.postgres import get_pool
from campushub.obs import logging as obs_logging
from campushub.obs import metrics as obs_metrics
from campushub.settings import settings

logger = obs_logging.get_logger(__name__)

IDENTITY_PATCH_COLUMNS = frozenset({"full_name", "department", "year_of_study", "bio"})
CLUB_PATCH_COLUMNS = frozenset(
	{"name", "description", "department", "contact_email", "contact_phone", "established_date"}
)
EVENT_PATCH_COLUMNS = frozenset(
	{"title", "description", "event_date", "location", "max_participants", "registration_deadline", "club_id"}
)


class Repository(Protocol):
	"""Storage operations the domain services depend on."""

	async def create_identity(
		self,
		*,
		email: str,
		full_name: str,
		role: models.Role,
		department: str | None,
		year_of_study: int | None,
		student_id: str | None,
	) -> models.Identity: ...

	async def get_identity(self, identity_id: UUID) -> models.Identity | None: ...

	async def find_identity_by_email(self, email: str) -> models.Identity | None: ...

	async def update_identity(self, identity_id: UUID, patch: dict[str, Any]) -> models.Identity | None: ...

	async def get_club(self, club_id: UUID) -> models.Club | None: ...

	async def list_clubs(self) -> list[models.Club]: ...

	async def create_club(self, data: dict[str, Any]) -> models.Club: ...

	async def update_club(self, club_id: UUID, patch: dict[str, Any]) -> models.Club | None: ...

	async def deactivate_club(self, club_id: UUID) -> models.Club | None: ...

	async def get_event(self, event_id: UUID) -> models.Event | None: ...

	async def list_events(self, event_filter: models.EventFilter) -> list[models.Event]: ...

	async def create_event(self, data: dict[str, Any]) -> models.Event: ...

	async def update_event(self, event_id: UUID, patch: dict[str, Any]) -> models.Event | None:
		"""Apply ``patch`` to an active event.

		A new ``max_participants`` is compared with the active registration count
		while the event is locked against registrations; a lower value raises
		``ConflictError("capacity_below_registrations")``.
		"""
		...

	async def deactivate_event(self, event_id: UUID) -> models.Event | None: ...

	async def get_membership(self, membership_id: UUID) -> models.Membership | None: ...

	async def list_memberships(self, club_id: UUID) -> list[models.Membership]: ...

	async def list_roster(self, club_id: UUID) -> list[models.RosterEntry]: ...

	async def insert_membership_if_absent(
		self,
		*,
		club_id: UUID,
		user_id: UUID,
		position: models.Position,
	) -> models.Membership: ...

	async def update_membership_position(
		self,
		membership_id: UUID,
		position: models.Position,
	) -> models.Membership | None: ...

	async def deactivate_membership(self, membership_id: UUID) -> models.Membership | None: ...

	async def get_registration(self, registration_id: UUID) -> models.Registration | None: ...

	async def get_active_registration(self, event_id: UUID, user_id: UUID) -> models.Registration | None: ...

	async def count_active_registrations(self, event_id: UUID) -> int: ...

	async def count_active_registrations_many(self, event_ids: Iterable[UUID]) -> dict[UUID, int]: ...

	async def insert_registration_if_capacity(self, *, event_id: UUID, user_id: UUID) -> models.Registration:
		"""Insert a confirmed registration if the event, read under its lock, still has a seat.

		Raises ``EventInactiveError``, ``AlreadyRegisteredError`` or
		``CapacityExceededError(contended=True)`` from that locked read.
		"""
		...

	async def cancel_registration(self, registration_id: UUID) -> models.Registration | None: ...

	async def list_event_registrations(self, event_id: UUID) -> list[models.Registration]: ...

	async def list_user_registrations(self, user_id: UUID) -> list[models.Registration]: ...


_repository: Optional[Repository] = None


def get_repository() -> Repository:
	"""Return the process-wide repository selected by ``settings.repository_backend``."""
	global _repository
	if _repository is None:
		if settings.repository_backend == "memory":
			from campushub.domain.memory_repo import InMemoryRepository

			_repository = InMemoryRepository()
		else:
			_repository = PostgresRepository()
	return _repository


def set_repository(repository: Optional[Repository]) -> None:
	global _repository
	_repository = repository


_STORAGE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


def _translated(operation: str):
	"""Surface driver and network failures as ``UnavailableError``."""

	def decorator(func):
		@functools.wraps(func)
		async def wrapper(*args, **kwargs):
			try:
				return await func(*args, **kwargs)
			except _STORAGE_ERRORS as exc:
				obs_metrics.inc_repository_failure(operation)
				logger.warning(
					"repository_unavailable",
					extra={"operation": operation, "error": type(exc).__name__},
				)
				raise UnavailableError() from exc

		return wrapper

	return decorator


def _set_clause(patch: dict[str, Any], allowed: frozenset[str]) -> tuple[str, list[Any]]:
	columns = [column for column in patch if column in allowed]
	params = [patch[column] for column in columns]
	clause = ", ".join(f"{column}=${idx}" for idx, column in enumerate(columns, start=1))
	return clause, params


class PostgresRepository:
	"""Thin data-access layer around asyncpg."""

	# --- Identities -------------------------------------------------------

	@_translated("create_identity")
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
		pool = await get_pool()
		async with pool.acquire() as conn:
			try:
				record = await conn.fetchrow(
					"""
					INSERT INTO identities (email, full_name, role, department, year_of_study, student_id)
					VALUES ($1, $2, $3, $4, $5, $6)
					RETURNING *
					""",
					email,
					full_name,
					role.value,
					department,
					year_of_study,
					student_id,
				)
			except asyncpg.UniqueViolationError as exc:
				raise EmailTakenError() from exc
		return models.Identity.model_validate(dict(record))

	@_translated("get_identity")
	async def get_identity(self, identity_id: UUID) -> models.Identity | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM identities WHERE id=$1", identity_id)
		return models.Identity.model_validate(dict(record)) if record else None

	@_translated("find_identity_by_email")
	async def find_identity_by_email(self, email: str) -> models.Identity | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM identities WHERE lower(email)=lower($1)", email.strip())
		return models.Identity.model_validate(dict(record)) if record else None

	@_translated("update_identity")
	async def update_identity(self, identity_id: UUID, patch: dict[str, Any]) -> models.Identity | None:
		clause, params = _set_clause(patch, IDENTITY_PATCH_COLUMNS)
		if not clause:
			return await self.get_identity(identity_id)
		params.append(identity_id)
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				f"UPDATE identities SET {clause}, updated_at=NOW() WHERE id=${len(params)} RETURNING *",
				*params,
			)
		return models.Identity.model_validate(dict(record)) if record else None

	# --- Clubs ------------------------------------------------------------

	@_translated("get_club")
	async def get_club(self, club_id: UUID) -> models.Club | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM clubs WHERE id=$1", club_id)
		return models.Club.model_validate(dict(record)) if record else None

	@_translated("list_clubs")
	async def list_clubs(self) -> list[models.Club]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch("SELECT * FROM clubs WHERE is_active ORDER BY name ASC, id ASC")
		return [models.Club.model_validate(dict(row)) for row in rows]

	@_translated("create_club")
	async def create_club(self, data: dict[str, Any]) -> models.Club:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				INSERT INTO clubs (name, description, department, contact_email, contact_phone,
					established_date, created_by)
				VALUES ($1, $2, $3, $4, $5, $6, $7)
				RETURNING *
				""",
				data["name"],
				data.get("description"),
				data.get("department"),
				data.get("contact_email"),
				data.get("contact_phone"),
				data.get("established_date"),
				data.get("created_by"),
			)
		return models.Club.model_validate(dict(record))

	@_translated("update_club")
	async def update_club(self, club_id: UUID, patch: dict[str, Any]) -> models.Club | None:
		clause, params = _set_clause(patch, CLUB_PATCH_COLUMNS)
		if not clause:
			return await self.get_club(club_id)
		params.append(club_id)
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				f"UPDATE clubs SET {clause}, updated_at=NOW() WHERE id=${len(params)} AND is_active RETURNING *",
				*params,
			)
		return models.Club.model_validate(dict(record)) if record else None

	@_translated("deactivate_club")
	async def deactivate_club(self, club_id: UUID) -> models.Club | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				UPDATE clubs
				SET is_active = FALSE, updated_at = NOW()
				WHERE id=$1 AND is_active
				RETURNING *
				""",
				club_id,
			)
		return models.Club.model_validate(dict(record)) if record else None

	# --- Events -----------------------------------------------------------

	@_translated("get_event")
	async def get_event(self, event_id: UUID) -> models.Event | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM events WHERE id=$1", event_id)
		return models.Event.model_validate(dict(record)) if record else None

	@_translated("list_events")
	async def list_events(self, event_filter: models.EventFilter) -> list[models.Event]:
		params: list[object] = []
		where_clauses: list[str] = []
		if not event_filter.include_inactive:
			where_clauses.append("is_active")
		if event_filter.club_id is not None:
			params.append(event_filter.club_id)
			where_clauses.append(f"club_id=${len(params)}")
		if event_filter.created_by is not None:
			params.append(event_filter.created_by)
			where_clauses.append(f"created_by=${len(params)}")
		if event_filter.starts_at_or_after is not None:
			params.append(event_filter.starts_at_or_after)
			where_clauses.append(f"event_date >= ${len(params)}")
		order_column = "created_at" if event_filter.order_by_created else "event_date"
		direction = "DESC" if event_filter.newest_first else "ASC"
		query = "SELECT * FROM events"
		if where_clauses:
			query += " WHERE " + " AND ".join(where_clauses)
		query += f" ORDER BY {order_column} {direction}, id ASC"
		if event_filter.limit is not None:
			params.append(event_filter.limit)
			query += f" LIMIT ${len(params)}"
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(query, *params)
		return [models.Event.model_validate(dict(row)) for row in rows]

	@_translated("create_event")
	async def create_event(self, data: dict[str, Any]) -> models.Event:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				INSERT INTO events (title, description, event_date, location, max_participants,
					registration_deadline, club_id, created_by)
				VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
				RETURNING *
				""",
				data["title"],
				data.get("description"),
				data["event_date"],
				data.get("location"),
				data.get("max_participants"),
				data.get("registration_deadline"),
				data.get("club_id"),
				data["created_by"],
			)
		return models.Event.model_validate(dict(record))

	@_translated("update_event")
	async def update_event(self, event_id: UUID, patch: dict[str, Any]) -> models.Event | None:
		clause, params = _set_clause(patch, EVENT_PATCH_COLUMNS)
		if not clause:
			return await self.get_event(event_id)
		params.append(event_id)
		capacity = patch.get("max_participants")
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				locked = await conn.fetchval(
					"SELECT id FROM events WHERE id=$1 AND is_active FOR UPDATE",
					event_id,
				)
				if locked is None:
					return None
				if capacity is not None:
					taken = await conn.fetchval(
						"SELECT COUNT(*) FROM event_registrations WHERE event_id=$1 AND status='confirmed'",
						event_id,
					)
					if capacity < int(taken or 0):
						raise ConflictError("capacity_below_registrations")
				record = await conn.fetchrow(
					f"UPDATE events SET {clause}, updated_at=NOW() WHERE id=${len(params)} RETURNING *",
					*params,
				)
		return models.Event.model_validate(dict(record)) if record else None

	@_translated("deactivate_event")
	async def deactivate_event(self, event_id: UUID) -> models.Event | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				UPDATE events
				SET is_active = FALSE, updated_at = NOW()
				WHERE id=$1 AND is_active
				RETURNING *
				""",
				event_id,
			)
		return models.Event.model_validate(dict(record)) if record else None

	# --- Memberships ------------------------------------------------------

	@_translated("get_membership")
	async def get_membership(self, membership_id: UUID) -> models.Membership | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM club_members WHERE id=$1", membership_id)
		return models.Membership.model_validate(dict(record)) if record else None

	@_translated("list_memberships")
	async def list_memberships(self, club_id: UUID) -> list[models.Membership]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"SELECT * FROM club_members WHERE club_id=$1 AND is_active ORDER BY joined_at ASC, id ASC",
				club_id,
			)
		return [models.Membership.model_validate(dict(row)) for row in rows]

	@_translated("list_roster")
	async def list_roster(self, club_id: UUID) -> list[models.RosterEntry]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT m.*, i.full_name, i.email, i.department
				FROM club_members m
				JOIN identities i ON i.id = m.user_id
				WHERE m.club_id=$1 AND m.is_active
				ORDER BY m.joined_at ASC, m.id ASC
				""",
				club_id,
			)
		return [
			models.RosterEntry(
				membership=models.Membership.model_validate(dict(row)),
				full_name=row["full_name"],
				email=row["email"],
				department=row["department"],
			)
			for row in rows
		]

	@_translated("insert_membership_if_absent")
	async def insert_membership_if_absent(
		self,
		*,
		club_id: UUID,
		user_id: UUID,
		position: models.Position,
	) -> models.Membership:
		pool = await get_pool()
		async with pool.acquire() as conn:
			# club_members_active_uniq is a partial unique index over active rows
			record = await conn.fetchrow(
				"""
				INSERT INTO club_members (club_id, user_id, position)
				VALUES ($1, $2, $3)
				ON CONFLICT (club_id, user_id) WHERE is_active DO NOTHING
				RETURNING *
				""",
				club_id,
				user_id,
				position.value,
			)
		if record is None:
			raise DuplicateMembershipError()
		return models.Membership.model_validate(dict(record))

	@_translated("update_membership_position")
	async def update_membership_position(
		self,
		membership_id: UUID,
		position: models.Position,
	) -> models.Membership | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"UPDATE club_members SET position=$1 WHERE id=$2 AND is_active RETURNING *",
				position.value,
				membership_id,
			)
		return models.Membership.model_validate(dict(record)) if record else None

	@_translated("deactivate_membership")
	async def deactivate_membership(self, membership_id: UUID) -> models.Membership | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				UPDATE club_members
				SET is_active = FALSE, left_at = NOW()
				WHERE id=$1 AND is_active
				RETURNING *
				""",
				membership_id,
			)
		return models.Membership.model_validate(dict(record)) if record else None

	# --- Registrations ----------------------------------------------------

	@_translated("get_registration")
	async def get_registration(self, registration_id: UUID) -> models.Registration | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM event_registrations WHERE id=$1", registration_id)
		return models.Registration.model_validate(dict(record)) if record else None

	@_translated("get_active_registration")
	async def get_active_registration(self, event_id: UUID, user_id: UUID) -> models.Registration | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				SELECT * FROM event_registrations
				WHERE event_id=$1 AND user_id=$2 AND status='confirmed'
				""",
				event_id,
				user_id,
			)
		return models.Registration.model_validate(dict(record)) if record else None

	@_translated("count_active_registrations")
	async def count_active_registrations(self, event_id: UUID) -> int:
		pool = await get_pool()
		async with pool.acquire() as conn:
			count = await conn.fetchval(
				"SELECT COUNT(*) FROM event_registrations WHERE event_id=$1 AND status='confirmed'",
				event_id,
			)
		return int(count or 0)

	@_translated("count_active_registrations_many")
	async def count_active_registrations_many(self, event_ids: Iterable[UUID]) -> dict[UUID, int]:
		ids = list(event_ids)
		if not ids:
			return {}
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT event_id, COUNT(*) AS taken
				FROM event_registrations
				WHERE event_id = ANY($1::uuid[]) AND status='confirmed'
				GROUP BY event_id
				""",
				ids,
			)
		counts = {event_id: 0 for event_id in ids}
		counts.update({row["event_id"]: int(row["taken"]) for row in rows})
		return counts

	@_translated("insert_registration_if_capacity")
	async def insert_registration_if_capacity(self, *, event_id: UUID, user_id: UUID) -> models.Registration:
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				# The row lock serialises check-and-insert per event, and against edits and
				# deactivation of the same event; other events are untouched.
				event = await conn.fetchrow(
					"SELECT is_active, max_participants FROM events WHERE id=$1 FOR UPDATE",
					event_id,
				)
				if event is None:
					raise NotFoundError("event_not_found")
				if not event["is_active"]:
					raise EventInactiveError()
				existing = await conn.fetchval(
					"""
					SELECT 1 FROM event_registrations
					WHERE event_id=$1 AND user_id=$2 AND status='confirmed'
					""",
					event_id,
					user_id,
				)
				if existing:
					raise AlreadyRegisteredError()
				capacity = event["max_participants"]
				if capacity is not None:
					taken = await conn.fetchval(
						"SELECT COUNT(*) FROM event_registrations WHERE event_id=$1 AND status='confirmed'",
						event_id,
					)
					if int(taken or 0) >= capacity:
						raise CapacityExceededError(contended=True)
				try:
					record = await conn.fetchrow(
						"""
						INSERT INTO event_registrations (event_id, user_id, status)
						VALUES ($1, $2, 'confirmed')
						RETURNING *
						""",
						event_id,
						user_id,
					)
				except asyncpg.UniqueViolationError as exc:
					raise AlreadyRegisteredError() from exc
		return models.Registration.model_validate(dict(record))

	@_translated("cancel_registration")
	async def cancel_registration(self, registration_id: UUID) -> models.Registration | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				UPDATE event_registrations
				SET status='cancelled', cancelled_at=NOW()
				WHERE id=$1 AND status='confirmed'
				RETURNING *
				""",
				registration_id,
			)
		return models.Registration.model_validate(dict(record)) if record else None

	@_translated("list_event_registrations")
	async def list_event_registrations(self, event_id: UUID) -> list[models.Registration]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT * FROM event_registrations
				WHERE event_id=$1 AND status='confirmed'
				ORDER BY created_at ASC, id ASC
				""",
				event_id,
			)
		return [models.Registration.model_validate(dict(row)) for row in rows]

	@_translated("list_user_registrations")
	async def list_user_registrations(self, user_id: UUID) -> list[models.Registration]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT * FROM event_registrations
				WHERE user_id=$1 AND status='confirmed'
				ORDER BY created_at DESC, id ASC
				""",
				user_id,
			)
		return [models.Registration.model_validate(dict(row)) for row in rows]
