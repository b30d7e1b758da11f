"""
Signed link tokens.

A token is a JWT carrying the redirect key and its issue time:

    {"key": "a1b2c3d4e5f6a7b8", "iat": 1760000000}

Tokens have no expiry claim. They stay valid until the signing secret is
rotated, which invalidates every link issued under the old secret.
"""

from datetime import datetime, timezone

import jwt

from redirector_app.exceptions import InvalidTokenError


class TokenCodec:
    """Signs redirect keys and verifies presented tokens (stateless)"""

    def __init__(self, secret: str, algorithm: str = "HS256"):
        self.secret = secret
        self.algorithm = algorithm

    def sign(self, key: str) -> str:
        """Create a token bound to `key` and the current time"""
        payload = {"key": key, "iat": datetime.now(timezone.utc)}
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> str:
        """
        Verify a token and return the key it was issued for.

        Fails closed: anything other than a well-formed, correctly signed
        token with a string `key` claim raises InvalidTokenError.
        """
        if not token:
            raise InvalidTokenError("Empty token")

        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["key"]},
            )
        except jwt.PyJWTError as exc:
            raise InvalidTokenError(f"Token verification failed: {exc}") from exc

        key = payload.get("key")
        if not isinstance(key, str) or not key:
            raise InvalidTokenError("Token carries no usable key claim")

        return key
