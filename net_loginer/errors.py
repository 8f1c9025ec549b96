"""Exception hierarchy for net_loginer.

Transport failures are not wrapped: they surface as the
``requests.RequestException`` subclasses raised by the HTTP layer.
"""

from typing import Any


class NetLoginerError(Exception):
    pass


class ConfigError(NetLoginerError):
    pass


class ImageDecodeError(NetLoginerError):
    """Raised when captcha bytes cannot be decoded into an image."""
    pass


class ModelLoadError(NetLoginerError):
    """Raised when the recognition model buffer is not a loadable model."""
    pass


class ModelOutputError(NetLoginerError):
    pass


class CaptchaMisreadError(NetLoginerError):
    def __init__(self, attempts: int, last_code: str) -> None:
        super().__init__(f'Implausible verify code {last_code!r} after {attempts} captcha(s)')
        self.attempts = attempts
        self.last_code = last_code


class AuthParseError(NetLoginerError):
    """The portal answered with something outside the known protocol."""
    pass


class MissingField(AuthParseError):
    def __init__(self, field: str) -> None:
        super().__init__(f'Response missing field: {field}')
        self.field = field


class FieldParseError(AuthParseError):
    def __init__(self, field: str, value: Any) -> None:
        super().__init__(f'Failed to parse field: {field}, origin value: {value!r}')
        self.field = field
        self.value = value


class UnsupportedErrorCode(AuthParseError):
    def __init__(self, code: int) -> None:
        super().__init__(f'Unsupported error code: {code}')
        self.code = code
