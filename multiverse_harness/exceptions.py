# (c) Copyright IBM Corp. 2021
# (c) Copyright Instana Inc. 2016


class CollectorError(Exception):
    """Base class for every problem talking to the collector."""

    pass


class ServerConnectionError(CollectorError):
    """The collector could not be reached or answered with a non-200 status."""

    pass


class CollectorException(CollectorError):
    """The collector answered with an exception envelope.

    The ``error_type`` is the exception class name reported by the collector,
    e.g. ``ForceRestartException``.
    """

    def __init__(self, error_type: str, message: str = "") -> None:
        super(CollectorException, self).__init__(f"{error_type}: {message}")
        self.error_type = error_type
        self.message = message
