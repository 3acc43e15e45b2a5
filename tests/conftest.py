from __future__ import annotations

from datetime import datetime, timedelta, timezone
from itertools import count
from uuid import UUID

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from campushub.domain import models, repo as repo_module
from campushub.domain.memory_repo import InMemoryRepository
from campushub.main import app
from campushub.settings import settings

_sequence = count(1)


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Run every test against the in-process store in dev mode."""
	original_env = settings.environment
	original_backend = settings.repository_backend
	settings.environment = "dev"
	settings.repository_backend = "memory"
	try:
		yield
	finally:
		settings.environment = original_env
		settings.repository_backend = original_backend


@pytest.fixture()
def repo():
	store = InMemoryRepository()
	repo_module.set_repository(store)
	try:
		yield store
	finally:
		repo_module.set_repository(None)


@pytest.fixture()
def make_identity(repo):
	async def _make(role: models.Role = models.Role.STUDENT, *, name: str | None = None) -> models.Identity:
		n = next(_sequence)
		return await repo.create_identity(
			email=f"user{n}@{settings.institutional_email_domain}",
			full_name=name or f"User {n}",
			role=role,
			department="CSE",
			year_of_study=None,
			student_id=None,
		)

	return _make


@pytest.fixture()
def make_club(repo):
	async def _make(owner: models.Identity | None, *, name: str = "Robotics Club") -> models.Club:
		return await repo.create_club(
			{
				"name": name,
				"contact_email": f"club@{settings.institutional_email_domain}",
				"created_by": owner.id if owner else None,
			}
		)

	return _make


@pytest.fixture()
def make_event(repo):
	async def _make(
		creator: models.Identity,
		*,
		starts_in: timedelta = timedelta(days=2),
		max_participants: int | None = None,
		registration_deadline: datetime | None = None,
		club_id: UUID | None = None,
		event_date: datetime | None = None,
	) -> models.Event:
		when = event_date or datetime.now(timezone.utc) + starts_in
		return await repo.create_event(
			{
				"title": "Hack Night",
				"event_date": when,
				"max_participants": max_participants,
				"registration_deadline": registration_deadline,
				"club_id": club_id,
				"created_by": creator.id,
			}
		)

	return _make


@pytest_asyncio.fixture
async def api_client(repo):
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
