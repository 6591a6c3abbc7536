import re

from pydantic import BaseModel, field_validator

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class UserCreate(BaseModel):
    username: str
    email: str
    password: str

    @field_validator("username")
    @classmethod
    def validate_username(cls, v):
        v = (v or "").strip()
        if not 3 <= len(v) <= 50:
            raise ValueError("Username must be between 3 and 50 characters")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        v = (v or "").strip().lower()
        if not EMAIL_RE.match(v):
            raise ValueError("Invalid email format")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        if not v or len(v) < 4:
            raise ValueError("Password must be at least 4 characters long")
        return v


class UserLogin(BaseModel):
    email: str = ""
    password: str = ""


class UserOut(BaseModel):
    id: int
    username: str
    email: str
    role: str

    model_config = {
        "from_attributes": True
    }


class RegisterResponse(BaseModel):
    user: UserOut


class LoginResponse(BaseModel):
    token: str
    user: UserOut
