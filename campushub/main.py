"""FastAPI application entrypoint."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from campushub import obs
from campushub.api import ops, router as api_router
from campushub.api.errors import install_error_handlers
from campushub.infra import postgres
from campushub.obs import logging as obs_logging
from campushub.settings import settings

logger = obs_logging.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	uses_postgres = settings.repository_backend == "postgres"
	if uses_postgres:
		await postgres.init_pool()
	logger.info(
		"app.startup",
		extra={"environment": settings.environment, "repository_backend": settings.repository_backend},
	)
	try:
		yield
	finally:
		if uses_postgres:
			await postgres.close_pool()
		logger.info("app.shutdown")


def create_app() -> FastAPI:
	app = FastAPI(title="CampusHub API", lifespan=lifespan)
	obs.init(app)
	install_error_handlers(app)
	app.include_router(api_router)
	app.include_router(ops.router)
	return app


app = create_app()
