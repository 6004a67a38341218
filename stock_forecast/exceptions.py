class StockForecastError(Exception):
    """Base exception for the Stock Forecast system."""
    
    def __init__(self, message=None, code=None, details=None):
        """Initialize the exception.
        
        Args:
            message: Error message
            code: Error code
            details: Additional error details
        """
        self.message = message or "An error occurred in the Stock Forecast system"
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


class ConfigError(StockForecastError):
    """Exception raised for configuration errors."""
    
    def __init__(self, message=None, code=None, details=None):
        message = message or "Configuration error"
        super().__init__(message, code, details)


class ValidationError(StockForecastError):
    """Exception raised for data validation errors."""
    
    def __init__(self, message=None, code=None, details=None):
        message = message or "Validation error"
        super().__init__(message, code, details)


class NotFoundError(StockForecastError):
    """Exception raised when a requested product or purchase order is not found."""
    
    def __init__(self, message=None, code=None, details=None):
        message = message or "Resource not found"
        super().__init__(message, code, details)


class StorageError(StockForecastError):
    """Exception raised for product store errors."""
    
    def __init__(self, message=None, code=None, details=None):
        message = message or "Storage error"
        super().__init__(message, code, details)


class ImportFormatError(StockForecastError):
    """Exception raised when an imported document has the wrong shape."""
    
    def __init__(self, message=None, code=None, details=None):
        message = message or "Import format error"
        super().__init__(message, code, details)
