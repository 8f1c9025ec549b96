from enum import IntEnum


class ErrorCode(IntEnum):
    INVALID_VERIFY_CODE = 3010
    # data is null for an unknown user, otherwise carries remainTimes/lockTime
    INVALID_CREDENTIALS = 10503
    USER_LOCKED = 10505
