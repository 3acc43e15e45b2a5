"""Typed outcomes raised by the campus domain services.

Every rejection a service can produce is one of these classes. ``kind`` is the
coarse taxonomy the hosting application switches on (forbidden, not_found,
conflict, invalid, invalid_state, unavailable); ``detail`` is the stable,
machine-readable reason.
"""

from __future__ import annotations

from fastapi import status

if hasattr(status, "HTTP_422_UNPROCESSABLE_CONTENT"):
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_CONTENT
else:  # pragma: no cover - older Starlette builds
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_ENTITY


class CampusError(Exception):
	"""Base class for campus domain errors."""

	status_code: int = status.HTTP_400_BAD_REQUEST
	kind: str = "error"
	detail: str = "campus_error"

	def __init__(self, detail: str | None = None) -> None:
		super().__init__(detail or self.detail)
		if detail:
			self.detail = detail


class ForbiddenError(CampusError):
	"""Raised when the authorization policy denies an action."""

	status_code = status.HTTP_403_FORBIDDEN
	kind = "forbidden"
	detail = "forbidden"


class NotFoundError(CampusError):
	"""Thrown when a referenced entity is missing or no longer active."""

	status_code = status.HTTP_404_NOT_FOUND
	kind = "not_found"
	detail = "not_found"


class IdentityNotFoundError(NotFoundError):
	detail = "identity_not_found"


class ConflictError(CampusError):
	"""Raised for business-rule collisions and lost races."""

	status_code = status.HTTP_409_CONFLICT
	kind = "conflict"
	detail = "conflict"


class DuplicateMembershipError(ConflictError):
	detail = "duplicate_membership"


class AlreadyRegisteredError(ConflictError):
	detail = "already_registered"


class EmailTakenError(ConflictError):
	detail = "email_taken"


class CapacityExceededError(ConflictError):
	"""No seat left on the event.

	``contended`` is True when the seat was lost inside the atomic conditional
	insert (another caller committed first) rather than at the pre-check.
	"""

	detail = "capacity_exceeded"

	def __init__(self, detail: str | None = None, *, contended: bool = False) -> None:
		super().__init__(detail)
		self.contended = contended


class ValidationError(CampusError):
	"""Raised for malformed input not covered by schema validation."""

	status_code = _HTTP_422
	kind = "invalid"
	detail = "validation_error"


class MissingFieldError(ValidationError):
	detail = "missing_field"


class InvalidPositionError(ValidationError):
	detail = "invalid_position"


class InvalidRoleError(ValidationError):
	detail = "invalid_role"


class InvalidEmailDomainError(ValidationError):
	detail = "invalid_email_domain"


class InvalidScheduleError(ValidationError):
	detail = "invalid_schedule"


class InvalidCapacityError(ValidationError):
	detail = "invalid_capacity"


class RegistrationRejected(CampusError):
	"""Event state does not accept registrations."""

	status_code = status.HTTP_409_CONFLICT
	kind = "invalid_state"
	detail = "registration_rejected"


class EventInactiveError(RegistrationRejected):
	detail = "event_inactive"


class RegistrationClosedError(RegistrationRejected):
	detail = "registration_closed"


class EventNotUpcomingError(RegistrationRejected):
	detail = "event_not_upcoming"


class UnavailableError(CampusError):
	"""Storage-level failure; the caller may retry."""

	status_code = status.HTTP_503_SERVICE_UNAVAILABLE
	kind = "unavailable"
	detail = "repository_unavailable"
