"""Domain models for campus identities, clubs, events and registrations."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class Role(str, Enum):
	STUDENT = "student"
	FACULTY = "faculty"
	CLUB_OFFICER = "club_officer"


class Position(str, Enum):
	PRESIDENT = "president"
	VICE_PRESIDENT = "vice_president"
	SECRETARY = "secretary"
	EVENT_MANAGER = "event_manager"
	PR_TEAM = "pr_team"
	OTHER = "other"


class LifecycleStage(str, Enum):
	UPCOMING = "upcoming"
	ONGOING = "ongoing"
	COMPLETED = "completed"


class Action(str, Enum):
	CREATE_CLUB = "create_club"
	EDIT_CLUB = "edit_club"
	DEACTIVATE_CLUB = "deactivate_club"
	MANAGE_MEMBERSHIP = "manage_membership"
	CREATE_EVENT = "create_event"
	EDIT_EVENT = "edit_event"
	DEACTIVATE_EVENT = "deactivate_event"
	REGISTER = "register"
	CANCEL_REGISTRATION = "cancel_registration"


class RegistrationStatus(str, Enum):
	CONFIRMED = "confirmed"
	CANCELLED = "cancelled"


class Identity(BaseModel):
	"""An authenticated principal; the role is fixed at sign-up."""

	id: UUID
	email: str
	full_name: str
	role: Role
	department: Optional[str] = None
	year_of_study: Optional[int] = None
	student_id: Optional[str] = None
	bio: Optional[str] = None
	created_at: datetime
	updated_at: datetime

	model_config = ConfigDict(from_attributes=True)


class Club(BaseModel):
	"""Represents a club; ``created_by`` is null for public submissions."""

	id: UUID
	name: str
	description: Optional[str] = None
	department: Optional[str] = None
	contact_email: Optional[str] = None
	contact_phone: Optional[str] = None
	established_date: Optional[date] = None
	created_by: Optional[UUID] = None
	is_active: bool = True
	created_at: datetime
	updated_at: datetime

	model_config = ConfigDict(from_attributes=True)


class Membership(BaseModel):
	"""Ties an identity to a club's officer roster."""

	id: UUID
	club_id: UUID
	user_id: UUID
	position: Position
	joined_at: datetime
	is_active: bool = True

	model_config = ConfigDict(from_attributes=True)


class RosterEntry(BaseModel):
	"""Active membership joined with the member's public profile."""

	membership: Membership
	full_name: str
	email: str
	department: Optional[str] = None


class Event(BaseModel):
	"""Represents a published event."""

	id: UUID
	title: str
	description: Optional[str] = None
	event_date: datetime
	location: Optional[str] = None
	max_participants: Optional[int] = None
	registration_deadline: Optional[datetime] = None
	club_id: Optional[UUID] = None
	created_by: UUID
	is_active: bool = True
	created_at: datetime
	updated_at: datetime

	model_config = ConfigDict(from_attributes=True)


class EventView(BaseModel):
	"""Event as shown in listings; inactive events carry no stage."""

	event: Event
	stage: Optional[LifecycleStage] = None
	registered_count: int = 0
	seats_left: Optional[int] = None


class Registration(BaseModel):
	"""Represents a seat taken by an identity on an event."""

	id: UUID
	event_id: UUID
	user_id: UUID
	status: RegistrationStatus
	created_at: datetime
	cancelled_at: Optional[datetime] = None

	model_config = ConfigDict(from_attributes=True)

	@property
	def is_active(self) -> bool:
		return self.status is RegistrationStatus.CONFIRMED


class EventFilter(BaseModel):
	"""Selection criteria understood by ``Repository.list_events``."""

	club_id: Optional[UUID] = None
	created_by: Optional[UUID] = None
	starts_at_or_after: Optional[datetime] = None
	include_inactive: bool = False
	newest_first: bool = False
	order_by_created: bool = False
	limit: Optional[int] = None
