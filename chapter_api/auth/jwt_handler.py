from datetime import datetime, timedelta, timezone

import jwt

from chapter_api.core import config


class TokenIssuer:
    """Signs the session tokens handed out on login.

    Tokens carry ``accountId`` and ``role`` and expire after a fixed window.
    There is no revocation list; expiry is the only way a token stops working.
    """

    def __init__(
        self,
        secret_key: str | None = None,
        algorithm: str | None = None,
        expires_minutes: int | None = None,
    ) -> None:
        self.secret_key = secret_key or config.JWT_SECRET_KEY
        self.algorithm = algorithm or config.JWT_ALGORITHM
        self.expires_minutes = expires_minutes or config.JWT_EXPIRES_MINUTES

    def issue(self, account_id: int, role: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(account_id),
            "accountId": account_id,
            "role": role,
            "iat": now,
            "exp": now + timedelta(minutes=self.expires_minutes),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def decode(self, token: str) -> dict:
        return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
