class DashboardError(Exception):
    """
    Base class for all fleet dashboard errors.
    """


class ConfigError(DashboardError):
    pass


class FetchError(DashboardError):
    """
    A snapshot retrieval attempt failed.

    The message is what the operator sees; callers do not need to
    distinguish subclasses beyond carrying it through.
    """

    def __init__(self, message: str, url: str | None = None):
        super().__init__(message)
        self.message = message
        self.url = url


class TransportError(FetchError):
    """
    Network failure or non-success HTTP status.
    """

    def __init__(
        self, message: str, url: str | None = None, status_code: int | None = None
    ):
        super().__init__(message, url)
        self.status_code = status_code


class ParseError(FetchError):
    """
    Response body is not a JSON object.
    """
