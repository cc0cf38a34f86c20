"""Domain errors raised by the service layer and mapped to HTTP responses in main."""


class TramDocError(Exception):
    error_code = "error"
    status_code = 400

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class NotFoundError(TramDocError):
    """The record does not exist or is not owned by the caller."""

    error_code = "not_found"
    status_code = 404


class InvalidArgumentError(TramDocError):
    error_code = "invalid_argument"
    status_code = 400
