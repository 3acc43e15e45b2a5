"""Officer roster maintenance for clubs."""

from __future__ import annotations

from uuid import UUID

from campushub.domain import models, policies, repo as repo_module, validation
from campushub.domain.exceptions import IdentityNotFoundError, NotFoundError
from campushub.domain.models import Action
from campushub.obs import logging as obs_logging
from campushub.obs import metrics as obs_metrics
from campushub.schemas import dto

logger = obs_logging.get_logger(__name__)


class MembershipService:
	"""Adds, re-positions and removes club officers on behalf of the club owner."""

	def __init__(self, repository: repo_module.Repository | None = None) -> None:
		self._repository = repository

	@property
	def repo(self) -> repo_module.Repository:
		return self._repository or repo_module.get_repository()

	async def list_roster(self, club_id: UUID) -> list[models.RosterEntry]:
		await self._load_club(club_id)
		entries = await self.repo.list_roster(club_id)
		return sorted(entries, key=lambda entry: entry.membership.joined_at)

	async def add_member(
		self,
		actor: models.Identity,
		club_id: UUID,
		payload: dto.MemberAddRequest,
	) -> models.Membership:
		club = await self._load_club(club_id)
		policies.assert_can_perform(actor, Action.MANAGE_MEMBERSHIP, club)
		position = validation.parse_position(payload.position)
		member = await self.repo.find_identity_by_email(payload.email.strip().lower())
		if member is None:
			raise IdentityNotFoundError()
		membership = await self.repo.insert_membership_if_absent(
			club_id=club_id,
			user_id=member.id,
			position=position,
		)
		obs_metrics.inc_membership_change("added")
		logger.info(
			"membership.added",
			extra={"club_id": str(club_id), "membership_id": str(membership.id), "position": position.value},
		)
		return membership

	async def assign_position(
		self,
		actor: models.Identity,
		membership_id: UUID,
		payload: dto.MemberUpdateRequest,
	) -> models.Membership:
		membership = await self._load_membership(membership_id)
		club = await self._load_club(membership.club_id)
		policies.assert_can_perform(actor, Action.MANAGE_MEMBERSHIP, club)
		position = validation.parse_position(payload.position)
		if position is membership.position:
			return membership
		updated = await self.repo.update_membership_position(membership_id, position)
		if updated is None:
			raise NotFoundError("membership_not_found")
		obs_metrics.inc_membership_change("repositioned")
		logger.info("membership.repositioned", extra={"membership_id": str(membership_id), "position": position.value})
		return updated

	async def remove_member(self, actor: models.Identity, membership_id: UUID) -> models.Membership:
		membership = await self._load_membership(membership_id)
		club = await self._load_club(membership.club_id)
		policies.assert_can_perform(actor, Action.MANAGE_MEMBERSHIP, club)
		removed = await self.repo.deactivate_membership(membership_id)
		if removed is None:
			raise NotFoundError("membership_not_found")
		obs_metrics.inc_membership_change("removed")
		logger.info("membership.removed", extra={"club_id": str(club.id), "membership_id": str(membership_id)})
		return removed

	async def _load_club(self, club_id: UUID) -> models.Club:
		club = await self.repo.get_club(club_id)
		if club is None or not club.is_active:
			raise NotFoundError("club_not_found")
		return club

	async def _load_membership(self, membership_id: UUID) -> models.Membership:
		membership = await self.repo.get_membership(membership_id)
		if membership is None or not membership.is_active:
			raise NotFoundError("membership_not_found")
		return membership
