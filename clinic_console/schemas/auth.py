# clinic_console/schemas/auth.py
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class LoginIn(BaseModel):
    email: str
    password: str


class RegisterIn(BaseModel):
    name: str = Field(..., min_length=1)
    email: str
    password: str = Field(..., min_length=6)
    password_confirmation: str

    @model_validator(mode="after")
    def passwords_match(self) -> "RegisterIn":
        if self.password != self.password_confirmation:
            raise ValueError("Passwords do not match")
        return self


class AuthResponse(BaseModel):
    message: Optional[str] = None
    access_token: Optional[str] = None
    token_type: Optional[str] = "Bearer"
    # older backend builds answer with "token"
    token: Optional[str] = None

    model_config = ConfigDict(extra="allow")

    @property
    def bearer(self) -> Optional[str]:
        return self.access_token or self.token


class UserOut(BaseModel):
    id: Optional[int] = None
    name: Optional[str] = None
    email: Optional[str] = None

    model_config = ConfigDict(extra="allow")
