import random
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import ExpiredSignatureError, JWTError, jwt

from identity.core.config import settings
from identity.utils.errors import InvalidTokenError

CODE_MIN = 100000
CODE_MAX = 999999
STATE_TOKEN_TYPE = "state"

_system_random = random.SystemRandom()


def generate_otp(rng=None) -> str:
    """Six digit numeric code, shared by email confirmation and password reset."""
    rng = rng or _system_random
    return str(rng.randint(CODE_MIN, CODE_MAX))


class TokenIssuer:
    """
    Signs and verifies bearer tokens with a single process-wide secret.

    Access tokens carry ``sub``, ``email`` and ``isOAuthUser``. State tokens
    carry whatever payload the caller hands over (pre-registration data)
    and live only a few minutes.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        access_token_ttl: timedelta = timedelta(hours=1),
        state_token_ttl: timedelta = timedelta(minutes=5),
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.access_token_ttl = access_token_ttl
        self.state_token_ttl = state_token_ttl

    def _sign(self, claims: Dict[str, Any], ttl: timedelta) -> str:
        to_encode = dict(claims)
        to_encode["exp"] = datetime.now(timezone.utc) + ttl
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def issue_access_token(self, subject_id: str, email: str, is_oauth_user: bool) -> str:
        return self._sign(
            {"sub": str(subject_id), "email": email, "isOAuthUser": bool(is_oauth_user)},
            self.access_token_ttl,
        )

    def issue_state_token(self, payload: Dict[str, Any], ttl: Optional[timedelta] = None) -> str:
        claims = dict(payload, typ=STATE_TOKEN_TYPE)
        return self._sign(claims, ttl if ttl is not None else self.state_token_ttl)

    def verify(self, token: str) -> Dict[str, Any]:
        if not token:
            raise InvalidTokenError("Missing token")
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise InvalidTokenError("Token expired")
        except JWTError:
            raise InvalidTokenError("Could not validate credentials")


def get_token_issuer(settings=settings) -> TokenIssuer:
    return TokenIssuer(
        secret_key=settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        access_token_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        state_token_ttl=timedelta(minutes=settings.STATE_TOKEN_EXPIRE_MINUTES),
    )
