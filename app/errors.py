class GatewayError(Exception):
    """Error rendered to HTTP clients as ``{"error": message}``"""
    status_code = 500

    def __init__(self, message: str = None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__


class BadRequestError(GatewayError):
    """Malformed request"""
    status_code = 400


class NotFoundError(GatewayError):
    """No background check for that email"""
    status_code = 404


class ConflictError(GatewayError):
    """Background check is not in a state that allows this"""
    status_code = 409


class GoneError(GatewayError):
    """This link has already been used or has expired"""
    status_code = 410


class InternalError(GatewayError):
    """Workflow runtime unavailable"""
    status_code = 500
