"""
Status dashboard and connection test endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, JSONResponse

from cart_netsuite.api.dependencies import get_status_controller
from cart_netsuite.api.pages import status_page
from cart_netsuite.controllers.status_controller import StatusController

router = APIRouter(tags=["status"])

SERVICE_NAMES = ('3dcart', 'netsuite', 'sendgrid')


@router.get("/status")
async def integration_status(
    format: Optional[str] = None,
    detailed: bool = False,
    controller: StatusController = Depends(get_status_controller)
):
    """HTML dashboard, or the JSON report with ?format=json."""
    if detailed:
        status = await run_in_threadpool(controller.get_detailed_status)
    else:
        status = await run_in_threadpool(controller.get_status)

    if format == 'json':
        return JSONResponse(status)
    return HTMLResponse(status_page(status))


@router.get("/status/services/{service_name}")
async def service_status(
    service_name: str,
    controller: StatusController = Depends(get_status_controller)
):
    """Connection test for a single service."""
    if service_name.lower() not in SERVICE_NAMES:
        raise HTTPException(status_code=404, detail=f"Unknown service: {service_name}")
    return await run_in_threadpool(controller.test_service_connection, service_name)
