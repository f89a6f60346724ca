"""
Manual order upload endpoints.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse

from cart_netsuite.api.dependencies import get_app_settings, get_order_controller
from cart_netsuite.api.pages import upload_error_page, upload_form_page, upload_results_page
from cart_netsuite.config import Settings
from cart_netsuite.controllers.order_controller import OrderController
from cart_netsuite.utils.error_handler import FileUploadError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["upload"])


@router.get("/upload", response_class=HTMLResponse)
async def upload_form(settings: Settings = Depends(get_app_settings)):
    return HTMLResponse(upload_form_page(settings))


@router.post("/upload", response_class=HTMLResponse)
async def upload_orders(
    order_file: Optional[UploadFile] = File(None),
    controller: OrderController = Depends(get_order_controller)
):
    """Import an order file and show the per-row results."""
    filename = order_file.filename if order_file else None
    content = b''
    if order_file:
        # One byte past the limit is enough for the size check to reject it
        content = await order_file.read(controller.settings.upload_max_file_size + 1)

    try:
        results = await run_in_threadpool(controller.handle_file_upload, filename, content)
    except FileUploadError as e:
        logger.error(f"File upload failed: {e}")
        return HTMLResponse(upload_error_page(str(e), e.errors), status_code=400)

    return HTMLResponse(upload_results_page(results, filename))
