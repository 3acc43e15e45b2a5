"""Event registration endpoints."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, Response

from campushub.api._errors import to_http_error
from campushub.domain import models, policies
from campushub.domain.exceptions import CampusError
from campushub.domain.models import Action
from campushub.domain.registration_service import RegistrationService
from campushub.infra.auth import get_current_identity
from campushub.schemas import dto

router = APIRouter(tags=["registrations"])
_service = RegistrationService()


@router.post("/events/{event_id}/registrations", response_model=dto.RegistrationResponse, status_code=201)
async def register_endpoint(
	event_id: UUID,
	identity: models.Identity = Depends(get_current_identity),
) -> dto.RegistrationResponse:
	now = datetime.now(timezone.utc)
	try:
		event = await _service.load_event(event_id)
		# Inactive events fall through to the engine so callers see event_inactive.
		if event.is_active:
			policies.assert_can_perform(identity, Action.REGISTER, event, now=now)
		registration = await _service.register(event_id, identity, now=now)
	except CampusError as exc:
		raise to_http_error(exc) from exc
	return dto.RegistrationResponse.from_model(registration)


@router.get("/events/{event_id}/registrations", response_model=dto.RegistrationListResponse)
async def list_registrations_endpoint(
	event_id: UUID,
	identity: models.Identity = Depends(get_current_identity),
) -> dto.RegistrationListResponse:
	try:
		registrations = await _service.list_registrations(identity, event_id)
	except CampusError as exc:
		raise to_http_error(exc) from exc
	return dto.RegistrationListResponse(items=[dto.RegistrationResponse.from_model(r) for r in registrations])


@router.get("/registrations/mine", response_model=dto.RegistrationListResponse)
async def my_registrations_endpoint(
	identity: models.Identity = Depends(get_current_identity),
) -> dto.RegistrationListResponse:
	try:
		registrations = await _service.my_registrations(identity)
	except CampusError as exc:
		raise to_http_error(exc) from exc
	return dto.RegistrationListResponse(items=[dto.RegistrationResponse.from_model(r) for r in registrations])


@router.delete("/registrations/{registration_id}", status_code=204)
async def cancel_registration_endpoint(
	registration_id: UUID,
	identity: models.Identity = Depends(get_current_identity),
) -> Response:
	try:
		await _service.cancel(identity, registration_id)
	except CampusError as exc:
		raise to_http_error(exc) from exc
	return Response(status_code=204)
