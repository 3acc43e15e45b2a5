"""Registration and capacity engine.

``register`` runs the acceptance checks against a fresh read of the event and
its registration count, then hands the seat to the repository's atomic
conditional insert. The pre-checks reject the common cases cheaply; the
conditional insert re-reads the event under its lock and alone decides the last
seat when callers race with each other or with an edit or deactivation.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from campushub.domain import lifecycle, models, policies, repo as repo_module
from campushub.domain.exceptions import (
	AlreadyRegisteredError,
	CampusError,
	CapacityExceededError,
	EventInactiveError,
	EventNotUpcomingError,
	ForbiddenError,
	NotFoundError,
	RegistrationClosedError,
)
from campushub.domain.models import Action, LifecycleStage
from campushub.obs import logging as obs_logging
from campushub.obs import metrics as obs_metrics

logger = obs_logging.get_logger(__name__)

_OUTCOMES: dict[type[CampusError], str] = {
	EventInactiveError: "inactive",
	RegistrationClosedError: "closed",
	EventNotUpcomingError: "not_upcoming",
	AlreadyRegisteredError: "already_registered",
}


def _now() -> datetime:
	return datetime.now(timezone.utc)


class RegistrationService:
	"""Accepts, cancels and lists event registrations."""

	def __init__(self, repository: repo_module.Repository | None = None) -> None:
		self._repository = repository

	@property
	def repo(self) -> repo_module.Repository:
		return self._repository or repo_module.get_repository()

	async def load_event(self, event_id: UUID) -> models.Event:
		"""Fetch an event regardless of its active flag; registration reports inactivity itself."""
		event = await self.repo.get_event(event_id)
		if event is None:
			raise NotFoundError("event_not_found")
		return event

	async def register(
		self,
		event_id: UUID,
		identity: models.Identity,
		*,
		now: Optional[datetime] = None,
	) -> models.Registration:
		moment = now or _now()
		try:
			registration = await self._register(event_id, identity, moment)
		except CapacityExceededError as exc:
			obs_metrics.inc_registration_attempt("capacity_race" if exc.contended else "capacity_exceeded")
			logger.info(
				"registration.rejected",
				extra={"event_id": str(event_id), "reason": exc.detail, "contended": exc.contended},
			)
			raise
		except (EventInactiveError, RegistrationClosedError, EventNotUpcomingError, AlreadyRegisteredError) as exc:
			obs_metrics.inc_registration_attempt(_OUTCOMES[type(exc)])
			logger.info("registration.rejected", extra={"event_id": str(event_id), "reason": exc.detail})
			raise
		obs_metrics.inc_registration_attempt("accepted")
		logger.info(
			"registration.accepted",
			extra={"event_id": str(event_id), "registration_id": str(registration.id), "user_id": str(identity.id)},
		)
		return registration

	async def _register(self, event_id: UUID, identity: models.Identity, now: datetime) -> models.Registration:
		event = await self.load_event(event_id)
		if not event.is_active:
			raise EventInactiveError()
		if event.registration_deadline is not None and now > event.registration_deadline:
			raise RegistrationClosedError()
		if lifecycle.classify(event, now) is not LifecycleStage.UPCOMING:
			raise EventNotUpcomingError()
		if await self.repo.get_active_registration(event_id, identity.id) is not None:
			raise AlreadyRegisteredError()
		if event.max_participants is not None:
			taken = await self.repo.count_active_registrations(event_id)
			if taken >= event.max_participants:
				raise CapacityExceededError(contended=False)
		return await self.repo.insert_registration_if_capacity(
			event_id=event_id,
			user_id=identity.id,
		)

	async def cancel(self, actor: models.Identity, registration_id: UUID) -> models.Registration:
		registration = await self.repo.get_registration(registration_id)
		if registration is None or not registration.is_active:
			raise NotFoundError("registration_not_found")
		policies.assert_can_perform(actor, Action.CANCEL_REGISTRATION, registration)
		cancelled = await self.repo.cancel_registration(registration_id)
		if cancelled is None:
			raise NotFoundError("registration_not_found")
		obs_metrics.inc_registration_cancelled()
		logger.info(
			"registration.cancelled",
			extra={"registration_id": str(registration_id), "event_id": str(registration.event_id)},
		)
		return cancelled

	async def list_registrations(self, actor: models.Identity, event_id: UUID) -> list[models.Registration]:
		"""Active registrations on an event, visible to the event's creator only."""
		event = await self.load_event(event_id)
		if not policies.can_perform(actor, Action.EDIT_EVENT, event):
			obs_metrics.inc_authz_denied("list_registrations")
			raise ForbiddenError("list_registrations_not_permitted")
		return await self.repo.list_event_registrations(event_id)

	async def my_registrations(self, identity: models.Identity) -> list[models.Registration]:
		return await self.repo.list_user_registrations(identity.id)
