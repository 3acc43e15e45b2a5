from __future__ import annotations

import pytest

from campushub.domain.clubs_service import ClubsService
from campushub.domain.exceptions import ForbiddenError, InvalidEmailDomainError, MissingFieldError, NotFoundError
from campushub.domain.models import Role
from campushub.schemas import dto


@pytest.mark.asyncio
async def test_faculty_creates_and_owns_club(repo, make_identity):
	faculty = await make_identity(Role.FACULTY)
	club = await ClubsService(repo).create_club(faculty, dto.ClubCreateRequest(name="  Robotics  ", department="ME"))

	assert club.name == "Robotics"
	assert club.created_by == faculty.id
	assert club.is_active is True


@pytest.mark.asyncio
async def test_student_cannot_create_club(repo, make_identity):
	student = await make_identity()
	with pytest.raises(ForbiddenError):
		await ClubsService(repo).create_club(student, dto.ClubCreateRequest(name="Robotics"))
	assert repo.clubs == {}


@pytest.mark.asyncio
async def test_public_submission_has_no_owner(repo, make_identity):
	service = ClubsService(repo)
	club = await service.submit_club(dto.ClubCreateRequest(name="Film Society", contact_email="film@cmrit.ac.in"))
	faculty = await make_identity(Role.FACULTY)

	assert club.created_by is None
	with pytest.raises(ForbiddenError):
		await service.update_club(faculty, club.id, dto.ClubUpdateRequest(name="Cinema"))


@pytest.mark.asyncio
async def test_public_submission_requires_institutional_contact(repo):
	service = ClubsService(repo)
	with pytest.raises(MissingFieldError):
		await service.submit_club(dto.ClubCreateRequest(name="Film Society"))
	with pytest.raises(InvalidEmailDomainError):
		await service.submit_club(dto.ClubCreateRequest(name="Film Society", contact_email="film@gmail.com"))


@pytest.mark.asyncio
async def test_owner_edits_and_non_owner_is_forbidden(repo, make_identity, make_club):
	owner = await make_identity(Role.CLUB_OFFICER)
	other = await make_identity(Role.FACULTY)
	club = await make_club(owner)
	service = ClubsService(repo)

	updated = await service.update_club(owner, club.id, dto.ClubUpdateRequest(description="Bots and more"))
	with pytest.raises(ForbiddenError):
		await service.update_club(other, club.id, dto.ClubUpdateRequest(description="Hijacked"))

	assert updated.description == "Bots and more"
	assert updated.name == club.name


@pytest.mark.asyncio
async def test_deactivate_is_soft_and_hides_club(repo, make_identity, make_club):
	owner = await make_identity(Role.FACULTY)
	club = await make_club(owner)
	service = ClubsService(repo)

	deactivated = await service.deactivate_club(owner, club.id)

	assert deactivated.is_active is False
	assert club.id in repo.clubs
	assert await service.list_clubs() == []
	with pytest.raises(NotFoundError):
		await service.get_club(club.id)
	with pytest.raises(NotFoundError):
		await service.deactivate_club(owner, club.id)


@pytest.mark.asyncio
async def test_list_clubs_ordered_by_name(repo, make_identity, make_club):
	owner = await make_identity(Role.FACULTY)
	await make_club(owner, name="Quiz")
	await make_club(owner, name="Art")

	names = [club.name for club in await ClubsService(repo).list_clubs()]

	assert names == ["Art", "Quiz"]
