"""
Custom exceptions for the storefront application.
"""
from typing import Dict, Optional


class StorefrontException(Exception):
    """Base exception for storefront operations"""
    pass


class ValidationError(StorefrontException):
    """Raised when request or form validation fails"""
    def __init__(self, message: str, field_errors: Optional[Dict[str, str]] = None):
        self.message = message
        self.field_errors = field_errors or {}
        super().__init__(message)


class GatewayInitError(StorefrontException):
    """Raised when the payment gateway rejects transaction initialization"""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class RedisConnectionError(StorefrontException):
    """Raised when Redis connection fails"""
    pass


class CatalogError(StorefrontException):
    """Raised when the product catalog cannot be queried"""
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)
