"""Club create/edit/deactivate rules and club listings."""

from __future__ import annotations

from uuid import UUID

from campushub.domain import models, policies, repo as repo_module, validation
from campushub.domain.exceptions import NotFoundError
from campushub.domain.models import Action
from campushub.obs import logging as obs_logging
from campushub.obs import metrics as obs_metrics
from campushub.schemas import dto

logger = obs_logging.get_logger(__name__)


class ClubsService:
	"""Business logic for club metadata; rosters live in ``MembershipService``."""

	def __init__(self, repository: repo_module.Repository | None = None) -> None:
		self._repository = repository

	@property
	def repo(self) -> repo_module.Repository:
		return self._repository or repo_module.get_repository()

	async def list_clubs(self) -> list[models.Club]:
		return await self.repo.list_clubs()

	async def get_club(self, club_id: UUID) -> models.Club:
		return await self._load_active(club_id)

	async def officer_count(self, club_id: UUID) -> int:
		return len(await self.repo.list_memberships(club_id))

	async def create_club(self, actor: models.Identity, payload: dto.ClubCreateRequest) -> models.Club:
		policies.assert_can_perform(actor, Action.CREATE_CLUB)
		club = await self._insert(payload, created_by=actor.id)
		obs_metrics.inc_club_created("member")
		logger.info("club.created", extra={"club_id": str(club.id), "actor_id": str(actor.id)})
		return club

	async def submit_club(self, payload: dto.ClubCreateRequest) -> models.Club:
		"""Record a publicly submitted club; it has no owner until reviewed."""
		club = await self._insert(payload, created_by=None)
		obs_metrics.inc_club_created("submission")
		logger.info("club.submitted", extra={"club_id": str(club.id)})
		return club

	async def update_club(
		self,
		actor: models.Identity,
		club_id: UUID,
		payload: dto.ClubUpdateRequest,
	) -> models.Club:
		club = await self._load_active(club_id)
		policies.assert_can_perform(actor, Action.EDIT_CLUB, club)
		data = payload.model_dump(exclude_unset=True)
		if not data:
			return club
		checked = validation.validate_club(
			name=data.get("name", club.name),
			contact_email=data.get("contact_email", club.contact_email),
			created_by=club.created_by,
		)
		patch: dict[str, object] = {}
		if "name" in data:
			patch["name"] = checked["name"]
		if "contact_email" in data:
			patch["contact_email"] = checked["contact_email"]
		for field in ("description", "department", "contact_phone"):
			if field in data:
				patch[field] = validation.optional_text(data[field])
		if "established_date" in data:
			patch["established_date"] = data["established_date"]
		updated = await self.repo.update_club(club_id, patch)
		if updated is None:
			raise NotFoundError("club_not_found")
		logger.info("club.updated", extra={"club_id": str(club_id), "fields": sorted(patch)})
		return updated

	async def deactivate_club(self, actor: models.Identity, club_id: UUID) -> models.Club:
		club = await self._load_active(club_id)
		policies.assert_can_perform(actor, Action.DEACTIVATE_CLUB, club)
		deactivated = await self.repo.deactivate_club(club_id)
		if deactivated is None:
			raise NotFoundError("club_not_found")
		obs_metrics.inc_club_deactivated()
		logger.info("club.deactivated", extra={"club_id": str(club_id), "actor_id": str(actor.id)})
		return deactivated

	# ------------------------------------------------------------------
	# Helpers

	async def _load_active(self, club_id: UUID) -> models.Club:
		club = await self.repo.get_club(club_id)
		if club is None or not club.is_active:
			raise NotFoundError("club_not_found")
		return club

	async def _insert(self, payload: dto.ClubCreateRequest, *, created_by: UUID | None) -> models.Club:
		checked = validation.validate_club(
			name=payload.name,
			contact_email=payload.contact_email,
			created_by=created_by,
		)
		return await self.repo.create_club(
			{
				"name": checked["name"],
				"description": validation.optional_text(payload.description),
				"department": validation.optional_text(payload.department),
				"contact_email": checked["contact_email"],
				"contact_phone": validation.optional_text(payload.contact_phone),
				"established_date": payload.established_date,
				"created_by": created_by,
			}
		)
