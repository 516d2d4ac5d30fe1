from typing import Optional, Any

class AccessBotError(Exception):
    """
    Base exception for the access bot.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)

class ConfigurationError(AccessBotError):
    """
    Raised when required settings are missing or malformed. Fatal at startup.
    """
    def __init__(self, message: str = "Invalid configuration", details: Optional[Any] = None):
        super().__init__(message, code="CONFIGURATION_ERROR", status_code=500, details=details)

class SessionNotFoundError(AccessBotError):
    """
    Raised when no session exists for a user id.
    """
    def __init__(self, message: str = "Session not found", details: Optional[Any] = None):
        super().__init__(message, code="NOT_FOUND", status_code=404, details=details)

class AuthenticationError(AccessBotError):
    """
    Raised when authentication fails.
    """
    def __init__(self, message: str = "Authentication failed", details: Optional[Any] = None):
        super().__init__(message, code="AUTHENTICATION_FAILED", status_code=401, details=details)

class ValidationError(AccessBotError):
    """
    Raised when input validation fails.
    """
    def __init__(self, message: str = "Validation error", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=422, details=details)

class ExternalServiceError(AccessBotError):
    """
    Raised when an external service fails.
    """
    def __init__(self, message: str = "External service error", details: Optional[Any] = None):
        super().__init__(message, code="EXTERNAL_SERVICE_ERROR", status_code=502, details=details)

class TelegramAPIError(ExternalServiceError):
    """
    Raised when a Bot API call fails (network error or ok=false response).
    """
    def __init__(self, method: str, description: str = "Telegram API error", error_code: Optional[int] = None):
        self.method = method
        self.description = description
        self.error_code = error_code
        super().__init__(
            f"Telegram API error ({method}): {description}",
            details={"method": method, "error_code": error_code}
        )
