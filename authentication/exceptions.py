class AuthError(Exception):
    """Authentication failed"""

    kind = 'authentication_failed'
    status_code = 401

    def __init__(self, message=None):
        super().__init__(message or self.__doc__)
        self.message = message or self.__doc__


class InvalidCredentials(AuthError):
    """Invalid username or password"""

    kind = 'invalid_credentials'


class UserAlreadyExists(AuthError):
    """A user with this username or email already exists"""

    kind = 'user_exists'
    status_code = 409


class TokenError(AuthError):
    """Invalid token"""

    kind = 'invalid_token'

    def __init__(self, message=None, expired=False):
        super().__init__(message)
        self.expired = expired
        if expired:
            self.kind = 'token_expired'


class SessionRevoked(TokenError):
    """Session revoked, please log in again"""

    kind = 'session_revoked'
