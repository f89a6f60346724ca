"""
Command line entry point for the 3DCart-NetSuite integration.

Commands:
    serve          Run the webhook/upload/status web application
    process-order  Sync one or more 3DCart orders by id
    import-file    Import a CSV/XLSX/XLS order file
    status         Print the integration status report
    daily-summary  Email the last 24 hours of activity

Credentials come from the environment or a .env file, or from AWS Secrets
Manager when AWS_SECRET_NAME is set.
"""

import argparse
import json
import logging
import os
import sys
from datetime import datetime, timedelta
from typing import List, Optional

from cart_netsuite.api.app import create_app
from cart_netsuite.clients.sendgrid_client import SendGridClient
from cart_netsuite.config import Settings, get_settings, load_settings_from_file
from cart_netsuite.controllers.order_controller import OrderController
from cart_netsuite.controllers.status_controller import StatusController
from cart_netsuite.controllers.webhook_controller import WebhookController
from cart_netsuite.notifications.email_service import EmailService
from cart_netsuite.utils.error_handler import FileUploadError
from cart_netsuite.utils.logger import setup_logging, summarize_log_activity


logger = logging.getLogger(__name__)


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, default=str))


def serve(settings: Settings, args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run(create_app(settings), host=args.host, port=args.port, log_config=None)
    return 0


def process_orders(settings: Settings, args: argparse.Namespace) -> int:
    controller = WebhookController.from_settings(settings)

    if len(args.order_ids) == 1:
        result = controller.process_order(args.order_ids[0])
    else:
        result = controller.process_batch_orders(args.order_ids)

    _print_json(result)
    return 0 if result['success'] else 1


def import_file(settings: Settings, args: argparse.Namespace) -> int:
    controller = OrderController.from_settings(settings)

    try:
        with open(args.path, 'rb') as handle:
            content = handle.read()
    except OSError as e:
        logger.error(f"Cannot read {args.path}: {e}")
        return 1

    try:
        results = controller.handle_file_upload(os.path.basename(args.path), content)
    except FileUploadError as e:
        logger.error(str(e))
        return 1

    _print_json(results)
    return 0 if results['failed'] == 0 else 1


def show_status(settings: Settings, args: argparse.Namespace) -> int:
    controller = StatusController.from_settings(settings)

    if args.alert:
        status = controller.check_and_alert()
    elif args.detailed:
        status = controller.get_detailed_status()
    else:
        status = controller.get_status()

    _print_json(status)
    return 0 if status['overall_status'] == 'healthy' else 1


def daily_summary(settings: Settings, args: argparse.Namespace) -> int:
    since = datetime.now() - timedelta(hours=args.hours)
    summary = summarize_log_activity(settings.log_file, since)
    _print_json(summary)

    email_service = EmailService(SendGridClient(settings.sendgrid_api_key), settings)
    return 0 if email_service.send_daily_summary(summary) else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='cart-netsuite',
        description='3DCart to NetSuite order integration',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  cart-netsuite serve --port 8080
  cart-netsuite process-order 12345
  cart-netsuite process-order 12345 12346 12347
  cart-netsuite import-file orders.csv
  cart-netsuite status --detailed
  cart-netsuite status --alert
        """
    )
    parser.add_argument(
        '--env-file', type=str, default=None,
        help='Load settings from this file instead of .env'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    serve_parser = subparsers.add_parser('serve', help='Run the web application')
    serve_parser.add_argument('--host', default='0.0.0.0', help='Bind address (default: 0.0.0.0)')
    serve_parser.add_argument('--port', type=int, default=8000, help='Port (default: 8000)')
    serve_parser.set_defaults(handler=serve)

    order_parser = subparsers.add_parser('process-order', help='Sync orders by 3DCart order id')
    order_parser.add_argument('order_ids', nargs='+', help='3DCart order ids')
    order_parser.set_defaults(handler=process_orders)

    import_parser = subparsers.add_parser('import-file', help='Import an order file')
    import_parser.add_argument('path', help='CSV, XLSX or XLS file')
    import_parser.set_defaults(handler=import_file)

    status_parser = subparsers.add_parser('status', help='Print the status report')
    status_parser.add_argument('--detailed', action='store_true', help='Include recent activity and performance')
    status_parser.add_argument('--alert', action='store_true', help='Email an alert for each failing service')
    status_parser.set_defaults(handler=show_status)

    summary_parser = subparsers.add_parser('daily-summary', help='Email the activity summary')
    summary_parser.add_argument('--hours', type=int, default=24, help='Window in hours (default: 24)')
    summary_parser.set_defaults(handler=daily_summary)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = load_settings_from_file(args.env_file) if args.env_file else get_settings()

    if args.command != 'serve':
        setup_logging(
            settings.log_level,
            settings.log_file,
            max_bytes=settings.log_max_bytes,
            backup_count=settings.log_backup_count
        )

    return args.handler(settings, args)


if __name__ == "__main__":
    sys.exit(main())
