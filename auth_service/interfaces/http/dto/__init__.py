from .auth import (
    LoginRequestDTO,
    PublicUserDTO,
    RefreshRequestDTO,
    RegisterRequestDTO,
    RegisterResponseDTO,
    RevokeRequestDTO,
    TokenPairDTO,
)

__all__ = [
    "LoginRequestDTO",
    "PublicUserDTO",
    "RefreshRequestDTO",
    "RegisterRequestDTO",
    "RegisterResponseDTO",
    "RevokeRequestDTO",
    "TokenPairDTO",
]
