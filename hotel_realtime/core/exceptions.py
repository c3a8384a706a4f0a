"""
Exceptions raised by the real-time client and the backend collaborator client
"""


class RealtimeError(Exception):
    """Base exception for the notification client"""
    pass


class TransportError(RealtimeError):
    """The push connection could not be opened, or dropped"""
    pass


class BackendError(RealtimeError):
    """A REST call to the PHP backend failed or returned success: false"""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
