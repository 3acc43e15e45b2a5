"""Validation rules shared by club and event create/edit operations."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from campushub.domain.exceptions import (
	InvalidCapacityError,
	InvalidEmailDomainError,
	InvalidPositionError,
	InvalidRoleError,
	InvalidScheduleError,
	MissingFieldError,
	ValidationError,
)
from campushub.domain.models import Position, Role
from campushub.settings import settings


def require_text(value: Optional[str], field: str) -> str:
	cleaned = (value or "").strip()
	if not cleaned:
		raise MissingFieldError(f"{field}_required")
	return cleaned


def optional_text(value: Optional[str]) -> Optional[str]:
	if value is None:
		return None
	cleaned = value.strip()
	return cleaned or None


def ensure_institutional_email(email: Optional[str], *, domain: Optional[str] = None) -> str:
	"""Return the normalised address or raise if it is outside the institution."""
	suffix = "@" + (domain or settings.institutional_email_domain)
	address = (email or "").strip().lower()
	local = address[: -len(suffix)] if address.endswith(suffix) else ""
	if not local or "@" in local or any(ch.isspace() for ch in local):
		raise InvalidEmailDomainError()
	return address


def ensure_aware(value: datetime, field: str) -> datetime:
	if value.tzinfo is None:
		raise ValidationError(f"{field}_timezone_required")
	return value.astimezone(timezone.utc)


def ensure_schedule(event_date: datetime, registration_deadline: Optional[datetime]) -> None:
	if registration_deadline is not None and registration_deadline > event_date:
		raise InvalidScheduleError("deadline_after_event_date")


def ensure_capacity(max_participants: Optional[int]) -> None:
	if max_participants is None:
		return
	if isinstance(max_participants, bool) or not isinstance(max_participants, int) or max_participants < 0:
		raise InvalidCapacityError()


def parse_position(value: Position | str) -> Position:
	try:
		return Position(value)
	except ValueError as exc:
		raise InvalidPositionError() from exc


def parse_role(value: Role | str) -> Role:
	try:
		return Role(value)
	except ValueError as exc:
		raise InvalidRoleError() from exc


def validate_club(
	*,
	name: Optional[str],
	contact_email: Optional[str],
	created_by: Optional[UUID],
) -> dict[str, Optional[str]]:
	"""Check club fields and return the normalised name and contact email.

	A club needs either an owning identity or a contact email; a contact email,
	when given, must be institutional.
	"""
	clean_name = require_text(name, "name")
	email = optional_text(contact_email)
	if email is None and created_by is None:
		raise MissingFieldError("contact_email_required")
	if email is not None:
		email = ensure_institutional_email(email)
	return {"name": clean_name, "contact_email": email}


def validate_event(
	*,
	title: Optional[str],
	event_date: datetime,
	registration_deadline: Optional[datetime],
	max_participants: Optional[int],
	created_by: Optional[UUID],
) -> dict[str, object]:
	"""Check event fields and return normalised values (UTC datetimes, stripped title)."""
	clean_title = require_text(title, "title")
	if created_by is None:
		raise MissingFieldError("created_by_required")
	when = ensure_aware(event_date, "event_date")
	deadline = ensure_aware(registration_deadline, "registration_deadline") if registration_deadline else None
	ensure_schedule(when, deadline)
	ensure_capacity(max_participants)
	return {
		"title": clean_title,
		"event_date": when,
		"registration_deadline": deadline,
		"max_participants": max_participants,
	}
