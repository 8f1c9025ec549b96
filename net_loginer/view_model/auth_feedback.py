import json
from typing import Any, Callable, Dict, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from net_loginer.configs.web.enums import ErrorCode
from net_loginer.configs.web.param_schema import (
    AuthResponse,
    InvalidPasswordData,
    UserLockedData,
)
from net_loginer.errors import AuthParseError, FieldParseError, MissingField, UnsupportedErrorCode
from net_loginer.model.auth_result import (
    AuthResult,
    InvalidPassword,
    InvalidVerifyCode,
    Success,
    UserLocked,
    UserNotFound,
)

T = TypeVar('T', bound=BaseModel)


def _validate(schema: Type[T], payload: Any) -> T:
    """Validate ``payload`` and translate the first pydantic error into a parse error."""
    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        err = e.errors()[0]
        field = '.'.join(str(part) for part in err['loc']) or schema.__name__
        if err['type'] == 'missing':
            raise MissingField(field) from e
        raise FieldParseError(field, err.get('input')) from e


class AuthFeedback:
    """Turns the JSON body of ``/portalauth/login`` into an ``AuthResult``."""

    def __init__(self) -> None:
        self._handlers: Dict[ErrorCode, Callable[[Any], AuthResult]] = {
            ErrorCode.INVALID_VERIFY_CODE: self._invalid_verify_code,
            ErrorCode.INVALID_CREDENTIALS: self._invalid_credentials,
            ErrorCode.USER_LOCKED: self._user_locked,
        }
        missing = set(ErrorCode) - set(self._handlers)
        if missing:
            raise RuntimeError(f'Unhandled error codes: {missing}')

    def parse(self, content: Union[bytes, str]) -> AuthResult:
        try:
            payload = json.loads(content)
        except ValueError as e:
            raise AuthParseError(f'Login response is not JSON: {content[:200]!r}') from e
        return self.parse_json(payload)

    def parse_json(self, payload: Any) -> AuthResult:
        if not isinstance(payload, dict):
            raise FieldParseError('<body>', payload)

        resp = _validate(AuthResponse, payload)
        if resp.success:
            return Success()

        if resp.errorcode is None:
            raise MissingField('errorcode')
        try:
            code = int(resp.errorcode)
        except ValueError:
            raise FieldParseError('errorcode', resp.errorcode) from None

        try:
            handler = self._handlers[ErrorCode(code)]
        except ValueError:
            raise UnsupportedErrorCode(code) from None
        return handler(resp.data)

    @staticmethod
    def _invalid_verify_code(data: Any) -> AuthResult:
        return InvalidVerifyCode()

    @staticmethod
    def _invalid_credentials(data: Any) -> AuthResult:
        if data is None:
            return UserNotFound()
        parsed = _validate(InvalidPasswordData, data)
        return InvalidPassword(parsed.remain_times, parsed.lock_time)

    @staticmethod
    def _user_locked(data: Any) -> AuthResult:
        if data is None:
            raise MissingField('data')
        parsed = _validate(UserLockedData, data)
        return UserLocked(parsed.remain_lock_time)
