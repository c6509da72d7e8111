"""Exception types for mbr-tui."""

from typing import Optional


class MbrError(Exception):
    """Base exception for the terminal client."""


class ConfigurationError(MbrError):
    """Raised when configuration loading or validation fails."""


class ApiError(MbrError):
    """Raised when a request to the Metabase API fails."""
    
    def __init__(
        self,
        message: str,
        endpoint: str = "",
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.endpoint = endpoint
        self.status = status
    
    def __str__(self) -> str:
        if self.status is not None:
            return f"HTTP {self.status} on {self.endpoint}: {self.message}"
        if self.endpoint:
            return f"{self.message} ({self.endpoint})"
        return self.message


class AuthenticationError(ApiError):
    """Raised on 401/403 responses."""
    
    def __str__(self) -> str:
        return f"Authentication failed ({self.status}): {self.message}"


class NotFoundError(ApiError):
    """Raised on 404 responses."""
    
    def __str__(self) -> str:
        return self.message


class RequestTimeoutError(ApiError):
    """Raised when a request exceeds its timeout."""
    
    def __init__(self, endpoint: str, timeout: float, status: Optional[int] = None) -> None:
        if timeout > 0:
            message = f"Request timed out after {timeout:.0f}s"
        else:
            message = "Request timed out"
        super().__init__(message, endpoint=endpoint, status=status)
        self.timeout = timeout
