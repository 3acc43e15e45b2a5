"""Caller identity resolution for FastAPI endpoints.

Token verification belongs to the identity provider in front of the API; by the
time a request reaches us the caller is named by the ``X-User-Id`` header.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import Header, HTTPException, status

from campushub.domain import models, repo as repo_module


async def get_current_identity(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
) -> models.Identity:
	"""Resolve the caller to a stored identity or reject with 401."""
	raw = (x_user_id or "").strip()
	if not raw:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="missing_identity")
	try:
		identity_id = UUID(raw)
	except ValueError:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_identity")
	identity = await repo_module.get_repository().get_identity(identity_id)
	if identity is None:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="unknown_identity")
	return identity
