# app/errors.py
"""
Error taxonomy shared by the gateway, the sync services and the API layer
"""


class HubError(Exception):
    """Base class for all hub errors"""

    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class NotFoundError(HubError):
    """A referenced project, deliverable, comment, post or user does not exist"""

    status_code = 404


class ValidationError(HubError):
    """Malformed reminder policy, missing post fields or an illegal transition"""

    status_code = 422


class PermissionDeniedError(HubError):
    """A non-admin attempted an admin-only or someone else's mutation"""

    status_code = 403


class TransientIOError(HubError):
    """Network or backend failure; prior state is left intact"""

    status_code = 503
