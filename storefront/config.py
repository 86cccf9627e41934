"""
Configuration management for the storefront application.
Loads settings from environment variables and AWS Secrets Manager.
"""
import os
import json
import logging
import boto3
from decimal import Decimal
from typing import Optional

logger = logging.getLogger(__name__)


class Config:
    """Application configuration"""

    # Application settings
    APP_PORT: int = int(os.getenv("APP_PORT", "8000"))
    PROJECT_NAME: str = os.getenv("PROJECT_NAME", "storefront")
    REGION: str = os.getenv("REGION", "eu-west-1")

    # Redis settings
    REDIS_HOST: str = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
    REDIS_AUTH_TOKEN: Optional[str] = os.getenv("REDIS_AUTH_TOKEN")
    REDIS_DB: int = int(os.getenv("REDIS_DB", "0"))
    REDIS_SSL: bool = os.getenv("REDIS_SSL", "false").lower() == "true"

    # Redis connection settings
    REDIS_SOCKET_CONNECT_TIMEOUT: int = 5
    REDIS_SOCKET_TIMEOUT: int = 5
    REDIS_RETRY_ON_TIMEOUT: bool = True
    REDIS_MAX_CONNECTIONS: int = 50

    # Cart settings
    CART_STORAGE_KEY: str = os.getenv("CART_STORAGE_KEY", "oja-cart-storage")
    CART_STORAGE_VERSION: int = 0
    CART_TTL_SECONDS: int = int(os.getenv("CART_TTL_SECONDS", str(30 * 24 * 60 * 60)))  # 30 days default

    # Pricing policy
    VAT_RATE: Decimal = Decimal("0.075")
    MINOR_UNIT_FACTOR: int = int(os.getenv("MINOR_UNIT_FACTOR", "100"))  # kobo per naira

    # Payment gateway settings
    PAYSTACK_SECRET_KEY: Optional[str] = os.getenv("PAYSTACK_SECRET_KEY")
    PAYSTACK_BASE_URL: str = os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co")
    PAYSTACK_CURRENCY: str = os.getenv("PAYSTACK_CURRENCY", "NGN")

    # Catalog settings
    CATALOG_BASE_URL: str = os.getenv("CATALOG_BASE_URL", "https://api.oluwasetemi.dev/products")
    CATALOG_PAGE_SIZE: int = int(os.getenv("CATALOG_PAGE_SIZE", "12"))

    # Where the checkout client reaches this service
    STOREFRONT_API_URL: str = os.getenv("STOREFRONT_API_URL", "http://localhost:8000")
    HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))

    @classmethod
    def load_secrets(cls) -> None:
        """Load Redis and Paystack credentials from AWS Secrets Manager"""
        if cls.REDIS_AUTH_TOKEN and cls.PAYSTACK_SECRET_KEY:
            return  # Already loaded from environment

        secret_name = os.getenv("STOREFRONT_SECRET_NAME")
        if not secret_name:
            return  # No secret name provided, rely on environment

        try:
            client = boto3.client("secretsmanager", region_name=cls.REGION)
            response = client.get_secret_value(SecretId=secret_name)
            secret_data = json.loads(response["SecretString"])

            cls.REDIS_AUTH_TOKEN = cls.REDIS_AUTH_TOKEN or secret_data.get("redis_auth_token")
            cls.PAYSTACK_SECRET_KEY = cls.PAYSTACK_SECRET_KEY or secret_data.get("paystack_secret_key")
            if "redis_endpoint" in secret_data:
                cls.REDIS_HOST = secret_data["redis_endpoint"]
        except Exception as e:
            # Continue with whatever the environment provided
            logger.warning(f"Could not load secrets from Secrets Manager: {e}")


# Load secrets at module import
Config.load_secrets()
