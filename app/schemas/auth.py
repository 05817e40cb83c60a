from pydantic import BaseModel, EmailStr, Field
from typing import Literal, Optional

Role = Literal["OWNER", "MANAGER", "STAFF"]


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: dict


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    role: Role = "MANAGER"

    class Config:
        populate_by_name = True


class PasswordResetRequest(BaseModel):
    email: EmailStr


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=6)
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    role: Optional[Role] = None

    class Config:
        populate_by_name = True


class CurrentUserResponse(BaseModel):
    user_id: str
    email: str
    role: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    business_id: Optional[str] = None
    restaurant_id: Optional[str] = None
