"""Error translation helpers for the campushub API."""

from __future__ import annotations

from fastapi import HTTPException

from campushub.domain import exceptions


def to_http_error(exc: exceptions.CampusError) -> HTTPException:
	"""Translate a domain outcome into a FastAPI HTTP error."""
	return HTTPException(status_code=exc.status_code, detail=exc.detail)
