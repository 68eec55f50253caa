"""Startup errors for the hello service.

Every error here is fatal: `main` logs it and exits with status 1.
"""


class ServiceStartupError(Exception):
    """Base class for errors that prevent the service from starting."""


class ListenerBindError(ServiceStartupError):
    """The listening socket could not be bound."""

    def __init__(self, host: str, port: int, reason: str):
        self.host = host
        self.port = port
        self.reason = reason
        super().__init__(f"could not listen on {host}:{port}: {reason}")
