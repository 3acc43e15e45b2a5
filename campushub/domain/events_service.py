"""Event publishing, editing and listing."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional
from uuid import UUID

from campushub.domain import lifecycle, models, policies, repo as repo_module, validation
from campushub.domain.exceptions import ConflictError, NotFoundError
from campushub.domain.models import Action, LifecycleStage
from campushub.obs import logging as obs_logging
from campushub.obs import metrics as obs_metrics
from campushub.schemas import dto
from campushub.settings import settings

logger = obs_logging.get_logger(__name__)


def _now() -> datetime:
	return datetime.now(timezone.utc)


class EventsService:
	"""Business logic for events; registrations are handled by ``RegistrationService``."""

	def __init__(self, repository: repo_module.Repository | None = None) -> None:
		self._repository = repository

	@property
	def repo(self) -> repo_module.Repository:
		return self._repository or repo_module.get_repository()

	async def create_event(self, actor: models.Identity, payload: dto.EventCreateRequest) -> models.EventView:
		policies.assert_can_perform(actor, Action.CREATE_EVENT)
		checked = validation.validate_event(
			title=payload.title,
			event_date=payload.event_date,
			registration_deadline=payload.registration_deadline,
			max_participants=payload.max_participants,
			created_by=actor.id,
		)
		if payload.club_id is not None:
			await self._require_club(payload.club_id)
		event = await self.repo.create_event(
			{
				**checked,
				"description": validation.optional_text(payload.description),
				"location": validation.optional_text(payload.location),
				"club_id": payload.club_id,
				"created_by": actor.id,
			}
		)
		obs_metrics.inc_event_created()
		logger.info("event.created", extra={"event_id": str(event.id), "actor_id": str(actor.id)})
		return self._view(event, 0, _now())

	async def update_event(
		self,
		actor: models.Identity,
		event_id: UUID,
		payload: dto.EventUpdateRequest,
	) -> models.EventView:
		event = await self._load_active(event_id)
		policies.assert_can_perform(actor, Action.EDIT_EVENT, event)
		data = payload.model_dump(exclude_unset=True)
		count = await self.repo.count_active_registrations(event_id)
		if not data:
			return self._view(event, count, _now())
		checked = validation.validate_event(
			title=data.get("title", event.title),
			event_date=data.get("event_date") or event.event_date,
			registration_deadline=data.get("registration_deadline", event.registration_deadline),
			max_participants=data.get("max_participants", event.max_participants),
			created_by=event.created_by,
		)
		capacity = checked["max_participants"]
		# Early rejection; the repository repeats the check with the event locked.
		if "max_participants" in data and capacity is not None and capacity < count:
			raise ConflictError("capacity_below_registrations")
		if data.get("club_id") is not None:
			await self._require_club(data["club_id"])
		patch: dict[str, object] = {}
		for field in ("title", "event_date", "registration_deadline", "max_participants"):
			if field in data:
				patch[field] = checked[field]
		for field in ("description", "location"):
			if field in data:
				patch[field] = validation.optional_text(data[field])
		if "club_id" in data:
			patch["club_id"] = data["club_id"]
		updated = await self.repo.update_event(event_id, patch)
		if updated is None:
			raise NotFoundError("event_not_found")
		logger.info("event.updated", extra={"event_id": str(event_id), "fields": sorted(patch)})
		return self._view(updated, await self.repo.count_active_registrations(event_id), _now())

	async def deactivate_event(self, actor: models.Identity, event_id: UUID) -> models.Event:
		event = await self._load_active(event_id)
		policies.assert_can_perform(actor, Action.DEACTIVATE_EVENT, event)
		deactivated = await self.repo.deactivate_event(event_id)
		if deactivated is None:
			raise NotFoundError("event_not_found")
		obs_metrics.inc_event_deactivated()
		logger.info("event.deactivated", extra={"event_id": str(event_id), "actor_id": str(actor.id)})
		return deactivated

	async def get_event_view(self, event_id: UUID, *, now: Optional[datetime] = None) -> models.EventView:
		event = await self._load_active(event_id)
		count = await self.repo.count_active_registrations(event_id)
		return self._view(event, count, now or _now())

	async def upcoming_feed(self, *, now: Optional[datetime] = None, limit: Optional[int] = None) -> list[models.EventView]:
		"""Active events starting at or after ``now``, soonest first."""
		moment = now or _now()
		events = await self.repo.list_events(
			models.EventFilter(starts_at_or_after=moment, limit=self._clamp(limit))
		)
		return await self._views(events, moment)

	async def club_events(
		self,
		club_id: UUID,
		*,
		stage: Optional[LifecycleStage] = None,
		now: Optional[datetime] = None,
	) -> list[models.EventView]:
		await self._require_club(club_id)
		moment = now or _now()
		events = await self.repo.list_events(models.EventFilter(club_id=club_id, newest_first=True))
		views = await self._views(events, moment)
		if stage is None:
			return views
		return [view for view in views if view.stage is stage]

	async def events_created_by(
		self,
		actor: models.Identity,
		*,
		include_inactive: bool = False,
		now: Optional[datetime] = None,
	) -> list[models.EventView]:
		events = await self.repo.list_events(
			models.EventFilter(
				created_by=actor.id,
				include_inactive=include_inactive,
				order_by_created=True,
				newest_first=True,
			)
		)
		return await self._views(events, now or _now())

	# ------------------------------------------------------------------
	# Helpers

	async def _load_active(self, event_id: UUID) -> models.Event:
		event = await self.repo.get_event(event_id)
		if event is None or not event.is_active:
			raise NotFoundError("event_not_found")
		return event

	async def _require_club(self, club_id: UUID) -> models.Club:
		club = await self.repo.get_club(club_id)
		if club is None or not club.is_active:
			raise NotFoundError("club_not_found")
		return club

	async def _views(self, events: Iterable[models.Event], now: datetime) -> list[models.EventView]:
		events = list(events)
		counts = await self.repo.count_active_registrations_many([event.id for event in events])
		return [self._view(event, counts.get(event.id, 0), now) for event in events]

	@staticmethod
	def _view(event: models.Event, count: int, now: datetime) -> models.EventView:
		stage = lifecycle.classify(event, now) if event.is_active else None
		seats_left = None
		if event.max_participants is not None:
			seats_left = max(event.max_participants - count, 0)
		return models.EventView(event=event, stage=stage, registered_count=count, seats_left=seats_left)

	@staticmethod
	def _clamp(limit: Optional[int]) -> int:
		if limit is None or limit <= 0:
			return settings.listing_max_limit
		return min(limit, settings.listing_max_limit)
