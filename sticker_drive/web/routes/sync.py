"""Sync trigger and status endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from sticker_drive.sync.run import (
    STATUS_ERROR,
    STATUS_NO_BASELINE,
    STATUS_NOT_CONFIGURED,
    SyncReport,
)
from sticker_drive.web.dependencies import Services, get_services

router = APIRouter(prefix="/sync", tags=["Sync"])

NO_STORE = {"Cache-Control": "no-store"}


class DriveSyncRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    full_sync: bool = Field(default=True, alias="fullSync")
    setup_webhook: bool = Field(default=False, alias="setupWebhook")


def _report_response(report: SyncReport, explicit: bool) -> JSONResponse:
    status_code = 200
    if report.status == STATUS_ERROR:
        status_code = 500
    elif explicit and report.status == STATUS_NOT_CONFIGURED:
        status_code = 400
    elif explicit and report.status == STATUS_NO_BASELINE:
        status_code = 409
    return JSONResponse(report.to_dict(), status_code=status_code, headers=NO_STORE)


@router.post("/auto")
async def auto_sync(services: Services = Depends(get_services)) -> JSONResponse:
    """Opportunistic sync, e.g. fired by the frontend on page load."""
    report = await services.orchestrator.trigger_auto_sync()
    return _report_response(report, explicit=False)


@router.get("/auto")
async def auto_sync_status(services: Services = Depends(get_services)) -> JSONResponse:
    return JSONResponse(services.orchestrator.throttle.status(), headers=NO_STORE)


@router.post("/drive")
async def drive_sync(
    body: DriveSyncRequest | None = None,
    services: Services = Depends(get_services),
) -> JSONResponse:
    """Explicit full or incremental sync, optionally registering a webhook."""
    body = body or DriveSyncRequest()
    report = await services.orchestrator.trigger_sync(
        full=body.full_sync, setup_webhook=body.setup_webhook
    )
    return _report_response(report, explicit=True)


@router.get("/drive")
async def drive_sync_overview(services: Services = Depends(get_services)) -> JSONResponse:
    overview = await services.orchestrator.sync_overview()
    return JSONResponse(overview, headers=NO_STORE)
