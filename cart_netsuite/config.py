"""
Configuration management for the 3DCart-NetSuite integration.

This module provides a centralized configuration class that loads settings from
environment variables using Pydantic for validation and type safety.

Credentials can be supplied through the environment, a .env file, or pulled
from AWS Secrets Manager at startup when AWS_SECRET_NAME is set.
"""

import os
import json
from typing import Optional, List
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import logging

logger = logging.getLogger(__name__)


# =============================================================================
# AWS Secrets Manager Integration
# =============================================================================

def load_secrets_from_aws(secret_name: Optional[str] = None) -> bool:
    """
    Load secrets from AWS Secrets Manager and set as environment variables.

    This function should be called BEFORE Settings() is instantiated.
    It only runs when a secret name is given or AWS_SECRET_NAME is set.

    Args:
        secret_name: Name of the secret in AWS Secrets Manager.
                    Defaults to env var AWS_SECRET_NAME.

    Returns:
        True if secrets were loaded, False if skipped

    Expected secret JSON structure:
    {
        "THREEDCART_STORE_URL": "https://...",
        "THREEDCART_PRIVATE_KEY": "...",
        "THREEDCART_TOKEN": "...",
        "NETSUITE_ACCOUNT_ID": "1234567",
        "NETSUITE_CONSUMER_KEY": "...",
        "NETSUITE_CONSUMER_SECRET": "...",
        "NETSUITE_TOKEN_ID": "...",
        "NETSUITE_TOKEN_SECRET": "...",
        "SENDGRID_API_KEY": "..."
    }
    """
    secret_name = secret_name or os.environ.get('AWS_SECRET_NAME')

    if not secret_name:
        logger.info("AWS_SECRET_NAME not set - skipping Secrets Manager")
        return False

    # Credentials already present (e.g. from .env in local dev)
    if os.environ.get('NETSUITE_CONSUMER_KEY') is not None:
        logger.info("Credentials already set in environment - skipping Secrets Manager")
        return False

    logger.info(f"Loading secrets from AWS Secrets Manager: {secret_name}")

    try:
        import boto3
        from botocore.exceptions import ClientError

        region = os.environ.get('AWS_REGION', 'us-east-1')
        client = boto3.client('secretsmanager', region_name=region)
        response = client.get_secret_value(SecretId=secret_name)

        if 'SecretString' in response:
            secrets = json.loads(response['SecretString'])
        else:
            import base64
            secrets = json.loads(base64.b64decode(response['SecretBinary']))

        loaded_keys = []
        for key, value in secrets.items():
            env_key = key.upper()
            os.environ[env_key] = str(value)
            loaded_keys.append(env_key)

        logger.info(f"Successfully loaded {len(loaded_keys)} secrets from AWS Secrets Manager")
        logger.debug(f"Loaded keys: {', '.join(loaded_keys)}")

        return True

    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', 'Unknown')
        if error_code == 'ResourceNotFoundException':
            logger.error(f"Secret '{secret_name}' not found in Secrets Manager")
        elif error_code == 'AccessDeniedException':
            logger.error(f"Access denied to secret '{secret_name}' - check IAM permissions")
        else:
            logger.error(f"Failed to load secret '{secret_name}': {e}")
        raise
    except json.JSONDecodeError as e:
        logger.error(f"Secret '{secret_name}' is not valid JSON: {e}")
        raise


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings are validated using Pydantic and can be loaded from:
    - Environment variables
    - .env files (via python-dotenv)
    - Default values where specified
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="3DCart NetSuite Integration")
    app_version: str = Field(default="1.0.0")
    environment: str = Field(
        default="development",
        description="Environment name (development, staging, production)"
    )
    timezone: str = Field(default="America/New_York")

    # 3DCart API Configuration
    threedcart_store_url: str = Field(
        ...,
        description="Store URL used as the base for the 3DCart REST API"
    )
    threedcart_private_key: str = Field(..., description="3DCart application private key")
    threedcart_token: str = Field(..., description="3DCart store access token")
    threedcart_timeout: int = Field(default=30, ge=1)

    # NetSuite API Configuration
    netsuite_account_id: str = Field(..., description="NetSuite account ID (OAuth realm)")
    netsuite_base_url: Optional[str] = Field(
        default=None,
        description="SuiteTalk REST base URL; derived from the account ID when empty"
    )
    netsuite_rest_api_version: str = Field(default="v1")
    netsuite_consumer_key: str = Field(...)
    netsuite_consumer_secret: str = Field(...)
    netsuite_token_id: str = Field(...)
    netsuite_token_secret: str = Field(...)
    netsuite_subsidiary_id: int = Field(default=1)
    netsuite_location_id: int = Field(default=1)
    netsuite_default_item_id: Optional[str] = Field(
        default=None,
        description="Item used when a line item can't be found or created; unset means fail"
    )
    netsuite_timeout: int = Field(default=60, ge=1)

    # SendGrid Configuration
    sendgrid_api_key: str = Field(...)
    sendgrid_from_email: str = Field(default="noreply@yourdomain.com")
    sendgrid_from_name: str = Field(default="3DCart Integration")

    # Notifications
    notifications_enabled: bool = Field(default=True)
    notification_to_emails: str = Field(
        default="admin@yourdomain.com",
        description="Comma-separated list of notification recipients"
    )
    notification_subject_prefix: str = Field(default="[3DCart Integration] ")

    # Webhook
    webhook_secret: Optional[str] = Field(
        default=None,
        description="Shared secret for X-Signature verification"
    )

    # Order Processing
    auto_create_customers: bool = Field(default=True)
    retry_attempts: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Retries after the first failed attempt"
    )
    retry_delay: float = Field(default=5.0, ge=0)
    retry_backoff: float = Field(
        default=1.0,
        ge=1.0,
        description="Delay multiplier between attempts (1.0 keeps a fixed delay)"
    )

    # File Upload
    upload_max_file_size: int = Field(default=10 * 1024 * 1024, ge=1)
    upload_allowed_extensions: str = Field(default="csv,xlsx,xls")
    upload_path: str = Field(default="uploads")

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_file: Optional[str] = Field(default="logs/app.log")
    log_max_bytes: int = Field(default=10 * 1024 * 1024)
    log_backup_count: int = Field(default=30)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard Python logging levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                f"log_level must be one of {valid_levels}, got '{v}'"
            )
        return v_upper

    @field_validator("threedcart_store_url", "netsuite_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        """Ensure base URLs don't end with trailing slash."""
        return v.rstrip("/") if v else v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is one of the expected values."""
        valid_envs = ["development", "staging", "production"]
        v_lower = v.lower()
        if v_lower not in valid_envs:
            raise ValueError(
                f"environment must be one of {valid_envs}, got '{v}'"
            )
        return v_lower

    @property
    def notification_recipients(self) -> List[str]:
        """Notification recipients as a list."""
        return [e.strip() for e in self.notification_to_emails.split(",") if e.strip()]

    @property
    def allowed_extensions(self) -> List[str]:
        """Upload extension allow-list, lower-cased, without dots."""
        return [
            ext.strip().lower().lstrip(".")
            for ext in self.upload_allowed_extensions.split(",")
            if ext.strip()
        ]

    @property
    def netsuite_rest_url(self) -> str:
        """SuiteTalk REST record endpoint root."""
        base = self.netsuite_base_url
        if not base:
            account = self.netsuite_account_id.lower().replace("_", "-")
            base = f"https://{account}.suitetalk.api.netsuite.com"
        return f"{base}/services/rest/record/{self.netsuite_rest_api_version}"


# Global settings instance
_settings: Optional[Settings] = None


def get_settings(force_reload: bool = False) -> Settings:
    """
    Get the application settings singleton.

    Args:
        force_reload: If True, reload settings from environment/files

    Returns:
        Settings: The application settings instance

    Example:
        >>> settings = get_settings()
        >>> print(settings.netsuite_account_id)
    """
    global _settings

    if _settings is None or force_reload:
        from dotenv import load_dotenv
        load_dotenv()

        load_secrets_from_aws()
        _settings = Settings()

    return _settings


def load_settings_from_file(file_path: str) -> Settings:
    """
    Load settings from a specific .env file.

    Args:
        file_path: Path to the .env file

    Returns:
        Settings: The application settings instance

    Example:
        >>> settings = load_settings_from_file("config/prod.env")
    """
    from dotenv import load_dotenv

    if not os.path.exists(file_path):
        raise FileNotFoundError(f"Settings file not found: {file_path}")

    load_dotenv(file_path, override=True)
    return Settings()
