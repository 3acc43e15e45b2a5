"""Sign-up and profile maintenance for campus identities."""

from __future__ import annotations

from uuid import UUID

from campushub.domain import models, repo as repo_module, validation
from campushub.domain.exceptions import NotFoundError, ValidationError
from campushub.obs import logging as obs_logging
from campushub.obs import metrics as obs_metrics
from campushub.schemas import dto

logger = obs_logging.get_logger(__name__)

MAX_YEAR_OF_STUDY = 6


class IdentityService:
	"""Creates identities at first sign-up and lets them edit their own profile."""

	def __init__(self, repository: repo_module.Repository | None = None) -> None:
		self._repository = repository

	@property
	def repo(self) -> repo_module.Repository:
		return self._repository or repo_module.get_repository()

	async def sign_up(self, payload: dto.SignUpRequest) -> models.Identity:
		email = validation.ensure_institutional_email(payload.email)
		full_name = validation.require_text(payload.full_name, "full_name")
		role = validation.parse_role(payload.role)
		year = payload.year_of_study
		if year is not None and not 1 <= year <= MAX_YEAR_OF_STUDY:
			raise ValidationError("invalid_year_of_study")
		identity = await self.repo.create_identity(
			email=email,
			full_name=full_name,
			role=role,
			department=validation.optional_text(payload.department),
			year_of_study=year,
			student_id=validation.optional_text(payload.student_id),
		)
		obs_metrics.inc_identity_created(role.value)
		logger.info("identity.created", extra={"identity_id": str(identity.id), "role": role.value})
		return identity

	async def get_identity(self, identity_id: UUID) -> models.Identity:
		identity = await self.repo.get_identity(identity_id)
		if identity is None:
			raise NotFoundError("identity_not_found")
		return identity

	async def update_profile(self, actor: models.Identity, payload: dto.ProfileUpdateRequest) -> models.Identity:
		"""Edit the caller's own display fields; role and email never change here."""
		data = payload.model_dump(exclude_unset=True)
		patch: dict[str, object] = {}
		if "full_name" in data:
			patch["full_name"] = validation.require_text(data["full_name"], "full_name")
		if "bio" in data:
			patch["bio"] = validation.optional_text(data["bio"])
		if "department" in data:
			patch["department"] = validation.optional_text(data["department"])
		if not patch:
			return actor
		updated = await self.repo.update_identity(actor.id, patch)
		if updated is None:
			raise NotFoundError("identity_not_found")
		logger.info("identity.updated", extra={"identity_id": str(actor.id), "fields": sorted(patch)})
		return updated
