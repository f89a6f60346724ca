"""
Logging configuration for the 3DCart-NetSuite integration.

This module provides centralized logging setup with configurable levels,
formatted output, and a size-rotating file handler, plus helpers for the
structured order, API-call and webhook events every component emits.
"""

import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Message markers scanned by summarize_log_activity
ORDER_COMPLETED = 'Order Event: processing_completed'
ORDER_FAILED = 'Order Event: processing_failed'
CUSTOMER_CREATED = 'Created new customer'
CUSTOMER_EXISTING = 'Using existing customer'
API_CALL = 'API Call'


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 30
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file. If provided, logs to both console
            and a rotating file.
        max_bytes: Size at which the log file is rotated
        backup_count: Number of rotated files to keep

    Example:
        >>> setup_logging("DEBUG", "logs/app.log")
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Remove existing handlers to avoid duplicates
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding='utf-8'
            )
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            logging.error(f"Failed to create file handler for {log_file}: {e}")

    logging.info(f"Logging initialized at {level} level")


def shutdown_logging() -> None:
    """Flush, close and detach the root handlers on application stop."""
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        handler.flush()
        root_logger.removeHandler(handler)
        handler.close()


def _format_context(context: Dict[str, Any]) -> str:
    return ", ".join(f"{key}={value}" for key, value in context.items())


def log_order_event(
    logger: logging.Logger,
    order_id: Any,
    event: str,
    details: Optional[Dict[str, Any]] = None
) -> None:
    """Log an order lifecycle event (processing_started, processing_completed, ...)."""
    context = {'order_id': order_id}
    if details:
        context.update(details)
    logger.info(f"Order Event: {event} | {_format_context(context)}")


def log_api_call(
    logger: logging.Logger,
    service: str,
    endpoint: str,
    method: str,
    status_code: Optional[int],
    duration_ms: Optional[float] = None
) -> None:
    """
    Log an outbound API call.

    2xx responses are logged at INFO, everything else at WARNING.
    """
    context = {
        'service': service,
        'endpoint': endpoint,
        'method': method,
        'response_code': status_code,
    }
    if duration_ms is not None:
        context['duration_ms'] = round(duration_ms, 2)

    if status_code is not None and 200 <= status_code < 300:
        logger.info(f"{API_CALL} Successful | {_format_context(context)}")
    else:
        logger.warning(f"{API_CALL} Failed | {_format_context(context)}")


def log_webhook(
    logger: logging.Logger,
    source: str,
    event: str,
    data: Optional[Dict[str, Any]] = None
) -> None:
    """Log an inbound webhook."""
    context = {'source': source, 'event': event}
    if data:
        context.update(data)
    logger.info(f"Webhook Received | {_format_context(context)}")


def summarize_log_activity(log_file: Optional[str], since: datetime) -> Dict[str, Any]:
    """
    Count integration activity recorded in the log file since a point in time.

    Rotated backups (``app.log.1`` ...) are scanned as well so a rotation
    inside the window doesn't hide activity.

    Args:
        log_file: Path of the active log file
        since: Lower bound (naive local time, matching the log timestamps)

    Returns:
        Counters plus the error messages found in the window
    """
    summary = {
        'orders_processed': 0,
        'orders_successful': 0,
        'orders_failed': 0,
        'customers_created': 0,
        'customers_existing': 0,
        'api_calls': 0,
        'errors': [],
    }

    if not log_file:
        return summary

    candidates = [log_file]
    log_dir = os.path.dirname(log_file) or '.'
    base_name = os.path.basename(log_file)
    if os.path.isdir(log_dir):
        candidates.extend(
            os.path.join(log_dir, name)
            for name in sorted(os.listdir(log_dir))
            if name.startswith(base_name + '.')
        )

    for path in candidates:
        if not os.path.isfile(path):
            continue
        with open(path, 'r', encoding='utf-8', errors='replace') as handle:
            for line in handle:
                try:
                    timestamp = datetime.strptime(line[:19], LOG_DATE_FORMAT)
                except ValueError:
                    continue
                if timestamp < since:
                    continue

                if ORDER_COMPLETED in line:
                    summary['orders_processed'] += 1
                    summary['orders_successful'] += 1
                elif ORDER_FAILED in line:
                    summary['orders_processed'] += 1
                    summary['orders_failed'] += 1
                elif CUSTOMER_CREATED in line:
                    summary['customers_created'] += 1
                elif CUSTOMER_EXISTING in line:
                    summary['customers_existing'] += 1
                elif API_CALL in line:
                    summary['api_calls'] += 1

                if ' - ERROR - ' in line:
                    summary['errors'].append(line.split(' - ERROR - ', 1)[1].strip())

    return summary
