"""
JWT issuing and verification for SolSpace sessions.

Access tokens are short lived and carry the session id; refresh tokens carry a
unique jti that is rotated on every refresh.
"""

from datetime import timedelta
import hashlib
import uuid

import jwt
from django.conf import settings
from django.utils import timezone

from authentication.exceptions import TokenError


class JWTConfig:
    """Token settings, built once and handed to TokenService"""

    def __init__(self, access_secret, refresh_secret, access_lifetime=timedelta(minutes=15),
                 refresh_lifetime=timedelta(days=7), algorithm='HS256',
                 issuer='solspace', audience='solspace-users'):
        self.access_secret = access_secret
        self.refresh_secret = refresh_secret
        self.access_lifetime = access_lifetime
        self.refresh_lifetime = refresh_lifetime
        self.algorithm = algorithm
        self.issuer = issuer
        self.audience = audience

    @classmethod
    def from_settings(cls):
        return cls(
            access_secret=settings.JWT_ACCESS_SECRET,
            refresh_secret=settings.JWT_REFRESH_SECRET,
            access_lifetime=settings.JWT_ACCESS_LIFETIME,
            refresh_lifetime=settings.JWT_REFRESH_LIFETIME,
            algorithm=settings.JWT_ALGORITHM,
            issuer=settings.JWT_ISSUER,
            audience=settings.JWT_AUDIENCE,
        )


def generate_device_id(device_info):
    """Stable short fingerprint of user agent + ip"""
    device_string = '|'.join([
        device_info.get('user_agent', ''),
        device_info.get('ip_address', ''),
    ])
    return hashlib.sha256(device_string.encode('utf-8')).hexdigest()[:16]


class TokenService:

    def __init__(self, config=None):
        self.config = config or JWTConfig.from_settings()

    def _encode(self, payload, secret, lifetime):
        now = timezone.now()
        payload = dict(payload)
        payload.update({
            'iat': int(now.timestamp()),
            'exp': int((now + lifetime).timestamp()),
            'iss': self.config.issuer,
            'aud': self.config.audience,
        })
        return jwt.encode(payload, secret, algorithm=self.config.algorithm)

    def _decode(self, token, secret, expected_type):
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.config.algorithm],
                issuer=self.config.issuer,
                audience=self.config.audience,
            )
        except jwt.ExpiredSignatureError:
            raise TokenError("Token expired", expired=True)
        except jwt.InvalidTokenError as e:
            raise TokenError(f"Invalid token: {e}")

        if payload.get('type') != expected_type:
            raise TokenError("Wrong token type")
        return payload

    def generate_access_token(self, user, session):
        return self._encode(
            {
                'type': 'access',
                'user_id': str(user.pk),
                'username': user.username,
                'session_id': str(session.pk),
            },
            self.config.access_secret,
            self.config.access_lifetime,
        )

    def generate_refresh_token(self, user, session):
        return self._encode(
            {
                'type': 'refresh',
                'user_id': str(user.pk),
                'session_id': str(session.pk),
                'jti': session.refresh_jti,
                'token_version': session.token_version,
            },
            self.config.refresh_secret,
            self.config.refresh_lifetime,
        )

    def new_refresh_jti(self):
        return uuid.uuid4().hex

    def refresh_expiry(self):
        return timezone.now() + self.config.refresh_lifetime

    def generate_token_pair(self, user, session):
        return {
            'access_token': self.generate_access_token(user, session),
            'refresh_token': self.generate_refresh_token(user, session),
            'token_type': 'Bearer',
            'expires_in': int(self.config.access_lifetime.total_seconds()),
            'session_id': str(session.pk),
        }

    def verify_access_token(self, token):
        return self._decode(token, self.config.access_secret, 'access')

    def verify_refresh_token(self, token):
        return self._decode(token, self.config.refresh_secret, 'refresh')


def extract_bearer_token(auth_header):
    """Return the token of an `Authorization: Bearer <token>` header, or None"""
    if not auth_header:
        return None
    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != 'bearer':
        return None
    return parts[1]
