"""Custom exceptions for the sales order application."""

class SalesOrderError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv

class BusinessLogicError(SalesOrderError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)

class NotFoundError(SalesOrderError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)

class PricingPreconditionError(SalesOrderError, ValueError):
    """
    Raised when the pricing engine receives inputs it must never see.

    Quantity <= 0, discount outside [0, 100), negative prices or rates,
    a zero list price in the reverse calculation. These are programmer
    errors: callers validate user input before reaching the engine.
    """
    def __init__(self, message, payload=None):
        super().__init__(message, 500, payload)
