"""Errors raised while parsing request bodies."""


class LoggerError(Exception):
    """Exception for logger related issues."""


class BodyParserError(Exception):
    """Base error for a rejected request body, carrying the HTTP status to answer with."""

    status_code: int = 400
    code: str = "invalid_body"

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.__cause__ = cause

    @property
    def cause(self) -> BaseException | None:
        return self.__cause__

    def to_dict(self) -> dict[str, str]:
        return {"error": self.code, "detail": str(self)}


class EmptyBodyError(BodyParserError):
    """A body was expected for the content-type, but none was sent."""

    status_code = 411
    code = "empty_body"


class MalformedBodyError(BodyParserError):
    """The body could not be decoded or parsed as XML."""

    status_code = 400
    code = "malformed_body"


class UnsupportedCharsetError(BodyParserError):
    """The content-type names a charset Python has no codec for."""

    status_code = 415
    code = "unsupported_charset"
