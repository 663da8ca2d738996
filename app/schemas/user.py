from pydantic import BaseModel, ConfigDict

from app.core.constants import RoleEnum


class Account(BaseModel):
    id: int
    full_name: str
    email: str
    role: RoleEnum
    is_active: bool
    model_config = ConfigDict(from_attributes=True)


class UserContext(BaseModel):
    """The authenticated account and the role it acts with."""
    account: Account
    role: RoleEnum
    model_config = ConfigDict(from_attributes=True)


class TokenPayload(BaseModel):
    sub: str
    role: RoleEnum
