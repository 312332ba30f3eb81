import enum


class ErrorCategory(str, enum.Enum):
    """Closed set of resolution failure categories"""
    INVALID_REQUEST = "invalid_request"
    NOT_FOUND = "not_found"
    STORE_UNAVAILABLE = "store_unavailable"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    ErrorCategory.INVALID_REQUEST: 400,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.STORE_UNAVAILABLE: 503,
}


class ResolutionError(Exception):
    """Base class for failures that prevent a redirect"""
    category: ErrorCategory

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def http_status(self) -> int:
        return self.category.http_status


class InvalidRequest(ResolutionError):
    category = ErrorCategory.INVALID_REQUEST


class NotFound(ResolutionError):
    category = ErrorCategory.NOT_FOUND

    def __init__(self, message: str = "Link not found or not active"):
        super().__init__(message)


class StoreUnavailable(ResolutionError):
    category = ErrorCategory.STORE_UNAVAILABLE

    def __init__(self, message: str = "Link storage is temporarily unavailable"):
        super().__init__(message)


class ClickRecordError(Exception):
    """Raised by a click recorder when an event could not be appended"""


class LinkError(Exception):
    """Base class for link management failures"""
    status_code = 400


class InvalidLinkData(LinkError):
    status_code = 400


class CodeUnavailable(LinkError):
    status_code = 409


class LinkNotFound(LinkError):
    status_code = 404


class InvalidStatusTransition(LinkError):
    status_code = 409


class PlanRestriction(LinkError):
    status_code = 403
