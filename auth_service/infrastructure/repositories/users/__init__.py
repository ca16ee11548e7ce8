from .sqlalchemy_user_repository import (
    SqlAlchemyCredentialRepository,
    SqlAlchemySessionTokenRepository,
)

__all__ = ["SqlAlchemyCredentialRepository", "SqlAlchemySessionTokenRepository"]
