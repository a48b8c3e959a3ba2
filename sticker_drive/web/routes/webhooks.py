"""Google Drive push-notification webhook.

Google posts header-only notifications; the body is empty. The ``sync``
resource state is the handshake sent when a channel is created.
"""

from __future__ import annotations

import hmac
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from sticker_drive.sync.run import STATUS_SYNCED
from sticker_drive.web.dependencies import Services, get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


def _verify_channel(request: Request, services: Services) -> bool:
    headers = request.headers
    if not headers.get("x-goog-channel-id") or not headers.get("x-goog-resource-state"):
        return False
    expected = services.settings.drive.webhook_channel_token
    if expected:
        received = headers.get("x-goog-channel-token", "")
        return hmac.compare_digest(received.encode(), expected.encode())
    return True


@router.post("/google-drive")
async def google_drive_notification(
    request: Request, services: Services = Depends(get_services)
) -> JSONResponse:
    if not _verify_channel(request, services):
        return JSONResponse({"error": "Invalid webhook"}, status_code=401)

    resource_state = request.headers["x-goog-resource-state"]
    logger.info(
        f"Drive notification: state={resource_state} "
        f"channel={request.headers['x-goog-channel-id']} "
        f"resource={request.headers.get('x-goog-resource-id')}"
    )
    if resource_state == "sync":
        return JSONResponse({"status": "ok"})

    report = await services.orchestrator.trigger_webhook_sync()
    body = report.to_dict()
    # Google retries non-2xx deliveries; failures are reported in the body.
    if report.status == STATUS_SYNCED:
        body["status"] = "processed"
        body["processed"] = report.items_synced
    return JSONResponse(body)


@router.get("/google-drive")
async def google_drive_verification(request: Request) -> Response:
    challenge = request.query_params.get("hub.challenge")
    if challenge:
        return PlainTextResponse(challenge)
    return JSONResponse({"status": "ok"})
