from .auth import (AuthSuccessDTO, CurrentUserDTO, LoginRequestDTO,
                   RegisterRequestDTO, SessionInfoDTO, UserDTO)

__all__ = [
    "AuthSuccessDTO",
    "CurrentUserDTO",
    "LoginRequestDTO",
    "RegisterRequestDTO",
    "SessionInfoDTO",
    "UserDTO",
]
