from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Success:
    pass


@dataclass(frozen=True)
class InvalidVerifyCode:
    pass


@dataclass(frozen=True)
class UserNotFound:
    pass


@dataclass(frozen=True)
class InvalidPassword:
    remain_times: int
    lock_time: int  # minutes


@dataclass(frozen=True)
class UserLocked:
    remain_lock_time: int  # minutes


@dataclass(frozen=True)
class RetryBudgetExhausted:
    attempts: int


@dataclass(frozen=True)
class CaptchaMisread:
    attempts: int


AuthResult = Union[
    Success, InvalidVerifyCode, UserNotFound, InvalidPassword, UserLocked, RetryBudgetExhausted,
    CaptchaMisread,
]

# Outcomes that say something about the account rather than the attachment point
ACCOUNT_FAILURES = (UserNotFound, InvalidPassword, UserLocked)


def describe(result: AuthResult) -> str:
    if isinstance(result, Success):
        return 'Login successful'
    if isinstance(result, InvalidVerifyCode):
        return 'Invalid verify code'
    if isinstance(result, UserNotFound):
        return 'User not found'
    if isinstance(result, InvalidPassword):
        return (
            f'Invalid password. Enter the wrong password {result.remain_times} more times '
            f'and you will be locked out for {result.lock_time} minutes'
        )
    if isinstance(result, UserLocked):
        return f'You are locked. Remaining lock time {result.remain_lock_time} minutes'
    if isinstance(result, RetryBudgetExhausted):
        return f'Verify code rejected {result.attempts} times, giving up'
    if isinstance(result, CaptchaMisread):
        return f'No plausible verify code after {result.attempts} captchas, giving up'
    raise TypeError(f'Unknown auth result: {result!r}')
