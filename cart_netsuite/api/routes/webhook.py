"""
3DCart webhook endpoint.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, JSONResponse

from cart_netsuite.api.dependencies import get_app_settings, get_webhook_controller
from cart_netsuite.api.pages import webhook_info_page
from cart_netsuite.config import Settings
from cart_netsuite.controllers.webhook_controller import WebhookController

router = APIRouter(tags=["webhook"])


@router.post("/webhook")
async def receive_webhook(
    request: Request,
    x_signature: Optional[str] = Header(None),
    controller: WebhookController = Depends(get_webhook_controller)
):
    """Process a 3DCart order webhook."""
    payload = await request.body()
    status_code, body = await run_in_threadpool(controller.handle_webhook, payload, x_signature)
    return JSONResponse(status_code=status_code, content=body)


@router.get("/webhook", response_class=HTMLResponse)
async def webhook_info(request: Request, settings: Settings = Depends(get_app_settings)):
    """Setup information for the webhook endpoint."""
    return HTMLResponse(webhook_info_page(settings, str(request.url)))
