# pos_backend/errors.py
import enum


class ErrorKind(str, enum.Enum):
    VALIDATION = 'VALIDATION'
    AUTHENTICATION = 'AUTHENTICATION'
    AUTHORIZATION = 'AUTHORIZATION'
    NOT_FOUND = 'NOT_FOUND'
    CONFLICT = 'CONFLICT'
    INTERNAL = 'INTERNAL'


class ApiError(Exception):
    """Domain error with a stable kind; serialized as-is into the response envelope."""

    kind = ErrorKind.INTERNAL
    status_code = 500
    default_message = 'Internal server error'

    def __init__(self, message=None, details=None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self):
        error = {'message': self.message}
        if self.details is not None:
            error['details'] = self.details
        return error


class ValidationError(ApiError):
    kind = ErrorKind.VALIDATION
    status_code = 400
    default_message = 'Validation error'


class UnknownProductError(ValidationError):
    """A cart line references a SKU the catalog does not know."""

    def __init__(self, sku):
        self.sku = sku
        super().__init__(f'Product with SKU {sku} not found', details={'sku': sku})


class AuthenticationError(ApiError):
    kind = ErrorKind.AUTHENTICATION
    status_code = 401
    default_message = 'Authentication required'


class AuthorizationError(ApiError):
    kind = ErrorKind.AUTHORIZATION
    status_code = 403
    default_message = 'Access forbidden'


class NotFoundError(ApiError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404
    default_message = 'Not found'


class ConflictError(ApiError):
    kind = ErrorKind.CONFLICT
    status_code = 409
    default_message = 'Conflict'


class InternalError(ApiError):
    pass
