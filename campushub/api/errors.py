"""Global error handlers ensuring request_id is included in JSON responses."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from campushub.domain.exceptions import CampusError
from campushub.obs import logging as obs_logging


def get_request_id(request: Request) -> str:
	rid = getattr(request.state, "request_id", None)
	return rid or obs_logging.current_request_id("unknown")


def install_error_handlers(app: FastAPI) -> None:
	@app.exception_handler(StarletteHTTPException)
	async def http_exc_handler(request: Request, exc: StarletteHTTPException):
		payload = {"detail": exc.detail, "request_id": get_request_id(request)}
		return JSONResponse(status_code=exc.status_code, content=payload, headers=getattr(exc, "headers", None))

	@app.exception_handler(RequestValidationError)
	async def validation_exc_handler(request: Request, exc: RequestValidationError):
		payload = {
			"detail": "validation_error",
			"errors": jsonable_encoder(exc.errors()),
			"request_id": get_request_id(request),
		}
		return JSONResponse(status_code=422, content=payload)

	@app.exception_handler(CampusError)
	async def campus_exc_handler(request: Request, exc: CampusError):
		# Outcomes raised outside an endpoint's own translation, e.g. from dependencies.
		payload = {"detail": exc.detail, "kind": exc.kind, "request_id": get_request_id(request)}
		return JSONResponse(status_code=exc.status_code, content=payload)
