import secrets
import uuid

from .constants import ACCESS_CODE_CHARS, ACCESS_CODE_LENGTH


def normalize_id(value):
    """
    Canonical string form of an identifier.

    Accepts a model instance, a UUID, an int or a string so that ownership and
    membership checks never compare two representations of the same id.
    """
    if value is None:
        return None
    if hasattr(value, '_meta') and hasattr(value, 'pk'):
        value = value.pk
    if isinstance(value, uuid.UUID):
        return str(value)
    value = str(value).strip()
    try:
        return str(uuid.UUID(value))
    except ValueError:
        return value


def same_id(a, b):
    a, b = normalize_id(a), normalize_id(b)
    return a is not None and a == b


def generate_access_code():
    return ''.join(secrets.choice(ACCESS_CODE_CHARS) for _ in range(ACCESS_CODE_LENGTH))
