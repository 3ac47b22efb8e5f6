class PMSError(Exception):
    """Base exception for Product Management System errors."""

    def __init__(self, message=None, code=None, details=None):
        """Initialize the exception.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
        """
        self.message = message or "An error occurred in the Product Management System"
        self.code = code
        self.details = details
        super().__init__(self.message)

    def __str__(self):
        """String representation of the error."""
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self):
        """Convert the exception to a dictionary."""
        error_dict = {
            'error': self.__class__.__name__,
            'message': self.message,
        }

        if self.code:
            error_dict['code'] = self.code

        if self.details:
            error_dict['details'] = self.details

        return error_dict


class ConfigError(PMSError):
    """Exception raised for configuration errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Configuration error"
        super().__init__(message, code, details)


class ValidationError(PMSError):
    """Exception raised for data validation errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Validation error"
        super().__init__(message, code, details)


class NotFoundError(PMSError):
    """Exception raised when a requested entity is not found."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Entity not found"
        super().__init__(message, code, details)


class CapacityError(PMSError):
    """Exception raised when a collection cannot grow."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Collection capacity could not be expanded"
        super().__init__(message, code, details)


class StorageError(PMSError):
    """Exception raised for data file read/write errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Storage error"
        super().__init__(message, code, details)


class CorruptDataError(StorageError):
    """Exception raised when a data file does not parse or fails validation."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Data file is corrupt"
        super().__init__(message, code, details)


class ReportingError(PMSError):
    """Exception raised for reporting errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Reporting error"
        super().__init__(message, code, details)
