from typing import Optional, Dict, Any


class InventoryException(Exception):
    """Base exception for all inventory errors."""

    def __init__(
        self,
        message: str,
        code: str = "internal_error",
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}


class UnknownAccountError(InventoryException):
    """Raised when an account name is not present in the account registry."""

    def __init__(self, account_name: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Unknown AWS account: {account_name}",
            code="unknown_account",
            status_code=500,
            details={"account": account_name, **(details or {})},
        )
        self.account_name = account_name


class AssumeRoleError(InventoryException):
    """Raised when the STS exchange does not yield usable credentials."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message, code="assume_role_failed", status_code=500, details=details
        )


class AdapterError(InventoryException):
    """Raised when an AWS list/describe call fails for a non-benign reason."""

    def __init__(
        self,
        message: str,
        code: str = "adapter_error",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code=code, status_code=500, details=details)


class ConfigurationError(InventoryException):
    """Raised when application configuration is invalid or missing."""

    def __init__(
        self,
        message: str,
        code: str = "config_error",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code=code, status_code=500, details=details)


class ResourceNotFoundError(InventoryException):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        message: str,
        code: str = "not_found",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code=code, status_code=404, details=details)


class InvalidRequestError(InventoryException):
    """Raised when a request is missing a required parameter."""

    def __init__(
        self,
        message: str,
        code: str = "invalid_request",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code=code, status_code=400, details=details)
