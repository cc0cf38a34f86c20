from typing import Optional
from datetime import datetime
from pydantic import field_validator
from sqlmodel import Field, SQLModel

# bcrypt refuses passwords longer than this many bytes
MAX_PASSWORD_BYTES = 72

class UserBase(SQLModel):
    email: str = Field(unique=True, index=True)
    username: str = Field(unique=True, index=True, min_length=3, max_length=50)
    full_name: str = Field(default="")
    avatar: str = Field(default="")
    is_active: bool = Field(default=True)

class User(UserBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    hashed_password: str
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

class UserCreate(UserBase):
    password: str = Field(min_length=6)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded")
        return value

class UserRead(UserBase):
    id: int
    created_at: datetime

class Token(SQLModel, table=False):
    access_token: str
    token_type: str

class TokenPayload(SQLModel):
    sub: Optional[int] = None
