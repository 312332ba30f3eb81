import secrets
import string
from sqlalchemy.orm import Session


# Base62: a-z A-Z 0-9, codes are case-sensitive
CHARSET = string.ascii_letters + string.digits

RESERVED_CODES = [
    'admin', 'api', 'static', 'www', 'app', 'docs', 'redoc',
    'openapi', 'health', 'status', 'login', 'logout', 'auth'
]


def generate_short_code(db: Session, domain: str, length: int = 6) -> str:
    """
    Generate a short code that is free under the given domain.

    Args:
        db: Database session for uniqueness check
        domain: Domain the code will live under
        length: Length of the code

    Returns:
        A code not yet used under the domain

    Note:
        6 chars: 62^6 = 56,800,235,584 combinations
    """
    max_attempts = 10

    for _ in range(max_attempts):
        code = ''.join(secrets.choice(CHARSET) for _ in range(length))
        if is_code_available(code, domain, db):
            return code

    # If we couldn't find a unique code, increase length by 1
    if length < 10:
        return generate_short_code(db, domain, length + 1)

    raise ValueError("Unable to generate unique short code")


def validate_custom_code(code: str) -> tuple[bool, str]:
    """
    Validate a user-chosen short code.

    Args:
        code: The custom code to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not code:
        return False, "Code cannot be empty"

    # Check length
    if len(code) < 3:
        return False, "Code must be at least 3 characters"

    if len(code) > 32:
        return False, "Code must be at most 32 characters"

    # Only allowed characters: letters, digits, hyphen, underscore
    allowed = set(CHARSET + '-_')

    if not all(c in allowed for c in code):
        return False, "Code can only contain letters, digits, hyphens and underscores"

    # Cannot start or end with hyphen
    if code.startswith('-') or code.endswith('-'):
        return False, "Code cannot start or end with a hyphen"

    if code.lower() in RESERVED_CODES:
        return False, f"'{code}' is a reserved word and cannot be used"

    return True, ""


def is_code_available(code: str, domain: str, db: Session) -> bool:
    """
    Check if a short code is free under a domain, whatever the link status.

    Args:
        code: The short code to check
        domain: Domain scope of the code
        db: Database session

    Returns:
        True if available, False otherwise
    """
    from ..models import Link

    existing = db.query(Link.id).filter(
        Link.short_code == code,
        Link.domain == domain
    ).first()

    return existing is None
