"""
FastAPI dependencies.

Controllers (and their vendor clients) are built per request from the
settings the application was created with.
"""

from fastapi import Depends, Request

from cart_netsuite.config import Settings
from cart_netsuite.controllers.order_controller import OrderController
from cart_netsuite.controllers.status_controller import StatusController
from cart_netsuite.controllers.webhook_controller import WebhookController


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_webhook_controller(settings: Settings = Depends(get_app_settings)) -> WebhookController:
    return WebhookController.from_settings(settings)


def get_order_controller(settings: Settings = Depends(get_app_settings)) -> OrderController:
    return OrderController.from_settings(settings)


def get_status_controller(settings: Settings = Depends(get_app_settings)) -> StatusController:
    return StatusController.from_settings(settings)
