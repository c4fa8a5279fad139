import base64
import binascii
from urllib.parse import quote


def encode_token(token: bytes) -> str:
    """Encode an opaque task token as padded standard base64"""
    return base64.b64encode(token).decode('ascii')


def decode_token(value: str) -> bytes:
    """Decode a base64 token taken from a URL path segment.

    Both the standard and the URL-safe alphabets are accepted. Padding is
    required. Raises ValueError on anything else, including an empty token.
    """
    if not value:
        raise ValueError("Token is required")
    try:
        if '-' in value or '_' in value:
            if '+' in value or '/' in value:
                raise ValueError("Token mixes base64 alphabets")
            value = value.replace('-', '+').replace('_', '/')
        token = base64.b64decode(value.encode('ascii'), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise ValueError(f"Invalid token encoding: {e}") from e
    if not token:
        raise ValueError("Token is required")
    return token


def token_path(token: str) -> str:
    """Quote an encoded token for use as a single URL path segment"""
    return quote(token, safe='')
