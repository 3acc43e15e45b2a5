"""Club roster endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response

from campushub.api._errors import to_http_error
from campushub.domain import models
from campushub.domain.exceptions import CampusError
from campushub.domain.membership_service import MembershipService
from campushub.infra.auth import get_current_identity
from campushub.schemas import dto

router = APIRouter(tags=["members"])
_service = MembershipService()


@router.get("/clubs/{club_id}/members", response_model=dto.RosterResponse)
async def list_roster_endpoint(club_id: UUID) -> dto.RosterResponse:
	try:
		entries = await _service.list_roster(club_id)
	except CampusError as exc:
		raise to_http_error(exc) from exc
	return dto.RosterResponse(club_id=club_id, items=[dto.RosterEntryResponse.from_entry(entry) for entry in entries])


@router.post("/clubs/{club_id}/members", response_model=dto.MembershipResponse, status_code=201)
async def add_member_endpoint(
	club_id: UUID,
	payload: dto.MemberAddRequest,
	identity: models.Identity = Depends(get_current_identity),
) -> dto.MembershipResponse:
	try:
		membership = await _service.add_member(identity, club_id, payload)
	except CampusError as exc:
		raise to_http_error(exc) from exc
	return dto.MembershipResponse.from_model(membership)


@router.patch("/memberships/{membership_id}", response_model=dto.MembershipResponse)
async def assign_position_endpoint(
	membership_id: UUID,
	payload: dto.MemberUpdateRequest,
	identity: models.Identity = Depends(get_current_identity),
) -> dto.MembershipResponse:
	try:
		membership = await _service.assign_position(identity, membership_id, payload)
	except CampusError as exc:
		raise to_http_error(exc) from exc
	return dto.MembershipResponse.from_model(membership)


@router.delete("/memberships/{membership_id}", status_code=204)
async def remove_member_endpoint(
	membership_id: UUID,
	identity: models.Identity = Depends(get_current_identity),
) -> Response:
	try:
		await _service.remove_member(identity, membership_id)
	except CampusError as exc:
		raise to_http_error(exc) from exc
	return Response(status_code=204)
