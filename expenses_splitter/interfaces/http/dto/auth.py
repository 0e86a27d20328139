from __future__ import annotations

from pydantic import BaseModel, Field


class LoginRequestDTO(BaseModel):
    username: str = Field(max_length=64)
    password: str = Field(max_length=128)  # length rules apply on register only


class RegisterRequestDTO(BaseModel):
    username: str = Field(max_length=64)
    password: str = Field(max_length=128)
    confirm_password: str = Field(max_length=128)


class UserDTO(BaseModel):
    id: int
    username: str


class CurrentUserDTO(BaseModel):
    user: UserDTO | None = None


class SessionInfoDTO(BaseModel):
    user: UserDTO
    created_at: str
    expires_at: str


class AuthSuccessDTO(BaseModel):
    ok: bool = True
    redirect: str = "/"
