from .logger import setup_logger, get_logger
from .tokens import encode_token, decode_token, token_path
from .validators import validate_email, validate_json_object, validate_required_fields

__all__ = [
    'setup_logger', 'get_logger',
    'encode_token', 'decode_token', 'token_path',
    'validate_email', 'validate_json_object', 'validate_required_fields'
]
