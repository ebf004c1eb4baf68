from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt

from services.errors import AuthTokenError

class TokenVerifier:
    """
    Reads the role and username claims of an HS256 bearer token.

    Tokens are issued elsewhere (the login service); this side only verifies
    the signature and expiry.
    """
    def __init__(self, secret: str, algorithm: str = "HS256"):
        self.secret = secret
        self.algorithm = algorithm

    def _claims(self, token: str) -> dict:
        if not token:
            raise AuthTokenError("Missing or invalid token")
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError as e:
            raise AuthTokenError("Token expired") from e
        except JWTError as e:
            raise AuthTokenError("Invalid token") from e

    def extract_username(self, token: str) -> str:
        username = self._claims(token).get("sub")
        if not username:
            raise AuthTokenError("Invalid token")
        return username

    def extract_role(self, token: str) -> str:
        role = self._claims(token).get("role")
        if not role:
            raise AuthTokenError("Invalid token")
        return role

def create_access_token(
    username: str,
    role: str,
    secret: str,
    algorithm: str = "HS256",
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Signs a token the verifier accepts. Meant for tests and local tooling."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=30))
    return jwt.encode({"sub": username, "role": role, "exp": expire}, secret, algorithm=algorithm)
