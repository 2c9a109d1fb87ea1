from pydantic import BaseModel, Field
from typing import Literal, Optional


class AccountRegister(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(min_length=6)
    phone: Optional[str] = None
    address: Optional[str] = None
    role: Literal["user", "admin"] = "user"
    secret_key: Optional[str] = None


class AccountLogin(BaseModel):
    email: str
    password: str


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=6)


class AccountOut(BaseModel):
    id: int
    name: str
    email: str
    role: str
    phone: Optional[str]
    address: Optional[str]

    class Config:
        from_attributes = True


class OwnerOut(BaseModel):
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    id: int
    name: str
    email: str
    role: str
    token: str
