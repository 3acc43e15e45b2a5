"""Operations endpoints providing health checks and metrics."""

from __future__ import annotations

import asyncpg
from fastapi import APIRouter, HTTPException, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from campushub.infra.postgres import get_pool
from campushub.settings import settings

router = APIRouter(prefix="", tags=["ops"])


@router.get("/health")
async def health() -> Response:
	payload = {"status": "ok", "service": settings.service_name, "commit": settings.git_commit}
	if settings.repository_backend != "postgres":
		return JSONResponse(payload)
	try:
		pool = await get_pool()
		async with pool.acquire() as conn:
			await conn.execute("SELECT 1")
	except (asyncpg.PostgresError, OSError):
		return JSONResponse({**payload, "status": "unavailable"}, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
	return JSONResponse(payload)


@router.get("/metrics")
async def prometheus_metrics() -> Response:
	if not (settings.obs_metrics_public or settings.is_dev()):
		raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="metrics_not_public")
	return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
