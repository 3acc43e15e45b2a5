"""Events API endpoints."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Response

from campushub.api._errors import to_http_error
from campushub.domain import models
from campushub.domain.events_service import EventsService
from campushub.domain.exceptions import CampusError
from campushub.infra.auth import get_current_identity
from campushub.schemas import dto

router = APIRouter(tags=["events"])
_service = EventsService()


def _listing(views: list[models.EventView]) -> dto.EventListResponse:
	return dto.EventListResponse(items=[dto.EventResponse.from_view(view) for view in views])


@router.get("/events/upcoming", response_model=dto.EventListResponse)
async def upcoming_feed_endpoint(limit: Optional[int] = None) -> dto.EventListResponse:
	try:
		views = await _service.upcoming_feed(limit=limit)
	except CampusError as exc:
		raise to_http_error(exc) from exc
	return _listing(views)


@router.get("/events/mine", response_model=dto.EventListResponse)
async def my_events_endpoint(
	include_inactive: bool = False,
	identity: models.Identity = Depends(get_current_identity),
) -> dto.EventListResponse:
	try:
		views = await _service.events_created_by(identity, include_inactive=include_inactive)
	except CampusError as exc:
		raise to_http_error(exc) from exc
	return _listing(views)


@router.get("/clubs/{club_id}/events", response_model=dto.EventListResponse)
async def club_events_endpoint(
	club_id: UUID,
	stage: Optional[models.LifecycleStage] = None,
) -> dto.EventListResponse:
	try:
		views = await _service.club_events(club_id, stage=stage)
	except CampusError as exc:
		raise to_http_error(exc) from exc
	return _listing(views)


@router.post("/events", response_model=dto.EventResponse, status_code=201)
async def create_event_endpoint(
	payload: dto.EventCreateRequest,
	identity: models.Identity = Depends(get_current_identity),
) -> dto.EventResponse:
	try:
		view = await _service.create_event(identity, payload)
	except CampusError as exc:
		raise to_http_error(exc) from exc
	return dto.EventResponse.from_view(view)


@router.get("/events/{event_id}", response_model=dto.EventResponse)
async def get_event_endpoint(event_id: UUID) -> dto.EventResponse:
	try:
		view = await _service.get_event_view(event_id)
	except CampusError as exc:
		raise to_http_error(exc) from exc
	return dto.EventResponse.from_view(view)


@router.patch("/events/{event_id}", response_model=dto.EventResponse)
async def update_event_endpoint(
	event_id: UUID,
	payload: dto.EventUpdateRequest,
	identity: models.Identity = Depends(get_current_identity),
) -> dto.EventResponse:
	try:
		view = await _service.update_event(identity, event_id, payload)
	except CampusError as exc:
		raise to_http_error(exc) from exc
	return dto.EventResponse.from_view(view)


@router.delete("/events/{event_id}", status_code=204)
async def deactivate_event_endpoint(
	event_id: UUID,
	identity: models.Identity = Depends(get_current_identity),
) -> Response:
	try:
		await _service.deactivate_event(identity, event_id)
	except CampusError as exc:
		raise to_http_error(exc) from exc
	return Response(status_code=204)
