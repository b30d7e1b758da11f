"""
Error taxonomy for the redirector.

Each error maps to one HTTP status at the API boundary:

- ValidationError   -> 400 (malformed destination, slug or email)
- AuthError         -> 403 (invalid, expired or mismatched token)
- NotFoundError     -> 404 (unknown key)
- StoreError        -> 500 (persistence failure)
- KeyCollisionError -> 409 (key/slug already taken, safe to retry)
"""


class RedirectorError(Exception):
    """Base class for all redirector errors"""


class ValidationError(RedirectorError):
    """Input failed validation. The message is safe to show to the caller."""


class AuthError(RedirectorError):
    """Access denied. The message is for logs only, never for the caller."""


class InvalidTokenError(AuthError):
    """Token could not be verified (bad signature, malformed, wrong claims)"""


class NotFoundError(RedirectorError):
    """No redirect record for the requested key"""


class StoreError(RedirectorError):
    """The redirect store failed to complete an operation"""


class KeyCollisionError(StoreError):
    """
    The store rejected a record because its key or slug already exists.

    Retryable: issuing again draws a fresh random key.
    """
