import re
from typing import Any, Dict, Optional, Tuple


def validate_email(email: str) -> Tuple[bool, Optional[str]]:
    """Validate email format"""
    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    if not email:
        return False, "Email is required"
    if not isinstance(email, str) or not re.match(pattern, email):
        return False, "Invalid email format"
    return True, None


def validate_json_object(data: Any) -> Tuple[bool, Optional[str]]:
    """Validate that a request body decoded to a JSON object"""
    if data is None:
        return False, "Request body must be JSON"
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"
    return True, None


def validate_required_fields(data: Dict, fields) -> Tuple[bool, Optional[str]]:
    """Validate that all required fields are present"""
    for field in fields:
        if field not in data or data[field] is None:
            return False, f"{field} is required"
    return True, None
