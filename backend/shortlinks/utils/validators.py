from urllib.parse import urlparse
from typing import Optional

MAX_URL_LENGTH = 2048


def is_valid_url(url: str) -> tuple[bool, str]:
    """
    Validate if a URL is valid and safe.

    Args:
        url: The URL to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url or len(url) < 1:
        return False, "URL cannot be empty"

    if len(url) > MAX_URL_LENGTH:
        return False, f"URL is too long (max {MAX_URL_LENGTH} characters)"

    try:
        result = urlparse(url)
    except ValueError as e:
        return False, f"Invalid URL: {str(e)}"

    # Must have scheme and netloc
    if not all([result.scheme, result.netloc]):
        return False, "Invalid URL format"

    # Only http and https
    if result.scheme not in ['http', 'https']:
        return False, "Only HTTP and HTTPS URLs are allowed"

    # Check for suspicious/blocked domains
    suspicious_domains = ['localhost', '127.0.0.1', '0.0.0.0', '::1']

    hostname = (result.hostname or "").lower()
    if hostname in suspicious_domains:
        return False, "Internal/private URLs are not allowed"

    if hostname.startswith(('10.', '192.168.', '172.16.')):
        return False, "Internal/private URLs are not allowed"

    return True, ""


def normalize_domain(domain: Optional[str]) -> Optional[str]:
    """
    Lowercase a hostname and strip any port, returning None for blanks.

    Args:
        domain: Raw hostname, possibly taken from a Host header

    Returns:
        Normalized hostname or None
    """
    if domain is None:
        return None

    domain = domain.strip().lower()
    if not domain:
        return None

    if domain.startswith('['):
        # Bracketed IPv6 literal, keep as-is minus port
        return domain.split(']')[0] + ']'

    return domain.split(':')[0]


def get_client_ip(request) -> str:
    """
    Get client IP address from request.

    Args:
        request: FastAPI request object

    Returns:
        Client IP address
    """
    # Check for X-Forwarded-For header (if behind proxy)
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # Take the first IP in the chain
        return forwarded.split(",")[0].strip()

    for header in ("CF-Connecting-IP", "X-Real-IP"):
        value = request.headers.get(header)
        if value:
            return value.strip()

    # Otherwise use client.host
    return request.client.host if request.client else "unknown"
