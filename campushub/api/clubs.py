"""Clubs API endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response

from campushub.api._errors import to_http_error
from campushub.domain import models
from campushub.domain.clubs_service import ClubsService
from campushub.domain.exceptions import CampusError
from campushub.infra.auth import get_current_identity
from campushub.schemas import dto

router = APIRouter(tags=["clubs"])
_service = ClubsService()


@router.get("/clubs", response_model=dto.ClubListResponse)
async def list_clubs_endpoint() -> dto.ClubListResponse:
	try:
		clubs = await _service.list_clubs()
	except CampusError as exc:
		raise to_http_error(exc) from exc
	return dto.ClubListResponse(items=[dto.ClubResponse.from_model(club) for club in clubs])


@router.post("/clubs", response_model=dto.ClubResponse, status_code=201)
async def create_club_endpoint(
	payload: dto.ClubCreateRequest,
	identity: models.Identity = Depends(get_current_identity),
) -> dto.ClubResponse:
	try:
		club = await _service.create_club(identity, payload)
	except CampusError as exc:
		raise to_http_error(exc) from exc
	return dto.ClubResponse.from_model(club, officer_count=0)


@router.post("/clubs/submissions", response_model=dto.ClubResponse, status_code=201)
async def submit_club_endpoint(payload: dto.ClubCreateRequest) -> dto.ClubResponse:
	try:
		club = await _service.submit_club(payload)
	except CampusError as exc:
		raise to_http_error(exc) from exc
	return dto.ClubResponse.from_model(club, officer_count=0)


@router.get("/clubs/{club_id}", response_model=dto.ClubResponse)
async def get_club_endpoint(club_id: UUID) -> dto.ClubResponse:
	try:
		club = await _service.get_club(club_id)
		officers = await _service.officer_count(club_id)
	except CampusError as exc:
		raise to_http_error(exc) from exc
	return dto.ClubResponse.from_model(club, officer_count=officers)


@router.patch("/clubs/{club_id}", response_model=dto.ClubResponse)
async def update_club_endpoint(
	club_id: UUID,
	payload: dto.ClubUpdateRequest,
	identity: models.Identity = Depends(get_current_identity),
) -> dto.ClubResponse:
	try:
		club = await _service.update_club(identity, club_id, payload)
	except CampusError as exc:
		raise to_http_error(exc) from exc
	return dto.ClubResponse.from_model(club)


@router.delete("/clubs/{club_id}", status_code=204)
async def deactivate_club_endpoint(
	club_id: UUID,
	identity: models.Identity = Depends(get_current_identity),
) -> Response:
	try:
		await _service.deactivate_club(identity, club_id)
	except CampusError as exc:
		raise to_http_error(exc) from exc
	return Response(status_code=204)
