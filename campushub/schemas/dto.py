"""Pydantic schemas for the campushub API."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from campushub.domain import models


class SignUpRequest(BaseModel):
	email: str = Field(..., max_length=320)
	full_name: str = Field(..., max_length=120)
	# Free text on purpose: unknown roles surface as invalid_role, not a schema error.
	role: str
	department: Optional[str] = Field(default=None, max_length=120)
	year_of_study: Optional[int] = None
	student_id: Optional[str] = Field(default=None, max_length=40)


class ProfileUpdateRequest(BaseModel):
	full_name: Optional[str] = Field(default=None, max_length=120)
	bio: Optional[str] = Field(default=None, max_length=2000)
	department: Optional[str] = Field(default=None, max_length=120)


class IdentityResponse(BaseModel):
	id: UUID
	email: str
	full_name: str
	role: models.Role
	department: Optional[str] = None
	year_of_study: Optional[int] = None
	student_id: Optional[str] = None
	bio: Optional[str] = None
	created_at: datetime

	@classmethod
	def from_model(cls, identity: models.Identity) -> "IdentityResponse":
		return cls.model_validate(identity.model_dump())


class ClubCreateRequest(BaseModel):
	name: str = Field(..., max_length=120)
	description: Optional[str] = Field(default=None, max_length=4000)
	department: Optional[str] = Field(default=None, max_length=120)
	contact_email: Optional[str] = Field(default=None, max_length=320)
	contact_phone: Optional[str] = Field(default=None, max_length=40)
	established_date: Optional[date] = None


class ClubUpdateRequest(BaseModel):
	name: Optional[str] = Field(default=None, max_length=120)
	description: Optional[str] = Field(default=None, max_length=4000)
	department: Optional[str] = Field(default=None, max_length=120)
	contact_email: Optional[str] = Field(default=None, max_length=320)
	contact_phone: Optional[str] = Field(default=None, max_length=40)
	established_date: Optional[date] = None


class ClubResponse(BaseModel):
	id: UUID
	name: str
	description: Optional[str] = None
	department: Optional[str] = None
	contact_email: Optional[str] = None
	contact_phone: Optional[str] = None
	established_date: Optional[date] = None
	created_by: Optional[UUID] = None
	is_active: bool
	created_at: datetime
	updated_at: datetime
	officer_count: Optional[int] = None

	@classmethod
	def from_model(cls, club: models.Club, *, officer_count: int | None = None) -> "ClubResponse":
		return cls(**club.model_dump(), officer_count=officer_count)


class ClubListResponse(BaseModel):
	items: List[ClubResponse]


class MemberAddRequest(BaseModel):
	email: str = Field(..., max_length=320)
	position: str


class MemberUpdateRequest(BaseModel):
	position: str


class MembershipResponse(BaseModel):
	id: UUID
	club_id: UUID
	user_id: UUID
	position: models.Position
	joined_at: datetime
	is_active: bool

	@classmethod
	def from_model(cls, membership: models.Membership) -> "MembershipResponse":
		return cls.model_validate(membership.model_dump())


class RosterEntryResponse(MembershipResponse):
	full_name: str
	email: str
	department: Optional[str] = None

	@classmethod
	def from_entry(cls, entry: models.RosterEntry) -> "RosterEntryResponse":
		return cls(
			**entry.membership.model_dump(),
			full_name=entry.full_name,
			email=entry.email,
			department=entry.department,
		)


class RosterResponse(BaseModel):
	club_id: UUID
	items: List[RosterEntryResponse]


class EventCreateRequest(BaseModel):
	title: str = Field(..., max_length=200)
	description: Optional[str] = Field(default=None, max_length=8000)
	event_date: datetime
	location: Optional[str] = Field(default=None, max_length=200)
	max_participants: Optional[int] = None
	registration_deadline: Optional[datetime] = None
	club_id: Optional[UUID] = None


class EventUpdateRequest(BaseModel):
	title: Optional[str] = Field(default=None, max_length=200)
	description: Optional[str] = Field(default=None, max_length=8000)
	event_date: Optional[datetime] = None
	location: Optional[str] = Field(default=None, max_length=200)
	max_participants: Optional[int] = None
	registration_deadline: Optional[datetime] = None
	club_id: Optional[UUID] = None


class EventResponse(BaseModel):
	id: UUID
	title: str
	description: Optional[str] = None
	event_date: datetime
	location: Optional[str] = None
	max_participants: Optional[int] = None
	registration_deadline: Optional[datetime] = None
	club_id: Optional[UUID] = None
	created_by: UUID
	is_active: bool
	created_at: datetime
	updated_at: datetime
	stage: Optional[models.LifecycleStage] = None
	registered_count: int = 0
	seats_left: Optional[int] = None

	@classmethod
	def from_view(cls, view: models.EventView) -> "EventResponse":
		return cls(
			**view.event.model_dump(),
			stage=view.stage,
			registered_count=view.registered_count,
			seats_left=view.seats_left,
		)


class EventListResponse(BaseModel):
	items: List[EventResponse]


class RegistrationResponse(BaseModel):
	id: UUID
	event_id: UUID
	user_id: UUID
	status: models.RegistrationStatus
	created_at: datetime
	cancelled_at: Optional[datetime] = None

	@classmethod
	def from_model(cls, registration: models.Registration) -> "RegistrationResponse":
		return cls.model_validate(registration.model_dump())


class RegistrationListResponse(BaseModel):
	items: List[RegistrationResponse]
