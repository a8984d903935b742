class InvalidArgumentError(ValueError):
    """Raised when a query parameter is malformed, e.g. a reversed date range."""
