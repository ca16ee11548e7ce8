from .password_hashing import WerkzeugPasswordHasher
from .token_codec import JwtTokenCodec

__all__ = ["JwtTokenCodec", "WerkzeugPasswordHasher"]
