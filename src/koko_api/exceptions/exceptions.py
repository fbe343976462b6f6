

class ResourceNotFoundError(Exception):
    """Raised when a resource is not found"""
    pass


class ForbiddenError(Exception):
    """Raised when the caller lacks access to a resource"""
    pass


class BadRequestError(Exception):
    """Raised when a request is well-formed but cannot be applied"""
    pass


class ConfigurationError(Exception):
    """Raised when the video provider is not configured"""
    pass


class ProviderError(Exception):
    """Raised when a call to the video provider fails"""
    pass


class UnauthorizedError(Exception):
    """Raised when the request carries no caller identity"""
    pass
