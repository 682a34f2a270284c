from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from services.errors import AuthenticationError

ALGO = "HS256"


class TokenIssuer:
    """Signs and verifies bearer tokens whose `sub` is the user id."""

    def __init__(self, secret_key: str, expire_minutes: int = 60):
        if not secret_key:
            raise RuntimeError("SECRET_KEY is not set")
        self._secret_key = secret_key
        self._expire_minutes = expire_minutes

    def create_access_token(self, user_id: str) -> str:
        expire = datetime.now(timezone.utc) + timedelta(minutes=self._expire_minutes)
        return jwt.encode({"sub": user_id, "exp": expire}, self._secret_key, algorithm=ALGO)

    def decode_user_id(self, token: str) -> str:
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[ALGO])
        except ExpiredSignatureError:
            raise AuthenticationError("Token has expired") from None
        except JWTError:
            raise AuthenticationError("Invalid authentication token") from None
        user_id = payload.get("sub")
        if not user_id:
            raise AuthenticationError("Invalid token payload")
        return user_id
