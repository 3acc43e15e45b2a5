"""Identity sign-up and profile endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from campushub.api._errors import to_http_error
from campushub.domain import models
from campushub.domain.exceptions import CampusError
from campushub.domain.identity_service import IdentityService
from campushub.infra.auth import get_current_identity
from campushub.schemas import dto

router = APIRouter(tags=["identities"])
_service = IdentityService()


@router.post("/identities", response_model=dto.IdentityResponse, status_code=201)
async def sign_up_endpoint(payload: dto.SignUpRequest) -> dto.IdentityResponse:
	try:
		identity = await _service.sign_up(payload)
	except CampusError as exc:
		raise to_http_error(exc) from exc
	return dto.IdentityResponse.from_model(identity)


@router.get("/identities/me", response_model=dto.IdentityResponse)
async def get_me_endpoint(
	identity: models.Identity = Depends(get_current_identity),
) -> dto.IdentityResponse:
	return dto.IdentityResponse.from_model(identity)


@router.patch("/identities/me", response_model=dto.IdentityResponse)
async def update_me_endpoint(
	payload: dto.ProfileUpdateRequest,
	identity: models.Identity = Depends(get_current_identity),
) -> dto.IdentityResponse:
	try:
		updated = await _service.update_profile(identity, payload)
	except CampusError as exc:
		raise to_http_error(exc) from exc
	return dto.IdentityResponse.from_model(updated)
