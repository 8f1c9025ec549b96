from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator

from net_loginer.configs.common import AGREED, AUTH_TYPE


class PageParams(BaseModel):
    """Single-use correlation tokens from the portal redirect."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    push_page_id: str = Field(alias='pushPageId')
    ssid: str


class LoginModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_name: str = Field(alias='userName')
    user_pass: str = Field(alias='userPass')
    uaddress: str
    valid_code: str = Field(alias='validCode')
    push_page_id: str = Field(alias='pushPageId')
    ssid: str
    agreed: str = AGREED
    auth_type: str = Field(AUTH_TYPE, alias='authType')


class AuthResponse(BaseModel):
    success: StrictBool
    errorcode: Optional[str] = None
    data: Any = None

    @field_validator('errorcode', mode='before')
    @classmethod
    def _code_as_str(cls, v):
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class InvalidPasswordData(BaseModel):
    remain_times: int = Field(alias='remainTimes')
    lock_time: int = Field(alias='lockTime')


class UserLockedData(BaseModel):
    remain_lock_time: int = Field(alias='remainLockTime')
