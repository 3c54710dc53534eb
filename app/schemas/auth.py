"""Authentication schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class OperatorInfo(BaseModel):
    """Currently authenticated operator."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: Optional[str]
    last_login: Optional[datetime]


class PasswordChange(BaseModel):
    """Signed-in operator changing their own password."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)
    confirm_password: str

    @model_validator(mode="after")
    def _passwords_match(self) -> "PasswordChange":
        if self.new_password != self.confirm_password:
            raise ValueError("New passwords do not match")
        return self
