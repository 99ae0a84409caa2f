"""General-purpose helper utilities shared by every analyzer.

URL canonicalisation, display truncation, number formatting and the
rounding rules used for every percentage in the reports.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional
from urllib.parse import urljoin, urlparse

_DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize_url(url: Optional[str], base: Optional[str] = None) -> str:
    """Return the canonical form of a URL for equality checks.

    Lower-cases scheme and host, drops default ports, fragments and the
    trailing slash (the root path stays ``/``).  Relative URLs are
    resolved against *base* when one is given.

    Examples:
        >>> normalize_url("HTTPS://Example.com:443/Blog/#top")
        'https://example.com/Blog'
        >>> normalize_url("/about/", base="https://example.com/team")
        'https://example.com/about'
    """
    url = (url or "").strip()
    if not url:
        return ""
    if base:
        url = urljoin(base, url)

    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()
    if not host:
        return url.split("#", 1)[0].rstrip("/") or "/"

    scheme = parsed.scheme.lower()
    try:
        port = parsed.port
    except ValueError:
        port = None
    netloc = host
    if port and _DEFAULT_PORTS.get(scheme) != port:
        netloc = f"{host}:{port}"

    path = parsed.path.rstrip("/") or "/"
    query = f"?{parsed.query}" if parsed.query else ""
    return f"{scheme}://{netloc}{path}{query}"


def truncate_url(url: str, max_length: int = 50) -> str:
    """Shorten a URL for display, keeping only the path of absolute URLs."""
    parsed = urlparse(url or "")
    if parsed.scheme and parsed.netloc:
        text = parsed.path or "/"
    else:
        text = url or ""
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def truncate_text(text: str, max_length: int = 160, suffix: str = "...") -> str:
    """Truncate text to a maximum length, breaking at word boundaries.

    Args:
        text: Input text.
        max_length: Maximum allowed length including suffix.
        suffix: String appended when truncation occurs.

    Returns:
        Truncated text with suffix if it was shortened.
    """
    if len(text) <= max_length:
        return text
    truncated = text[: max_length - len(suffix)]
    last_space = truncated.rfind(" ")
    if last_space > 0:
        truncated = truncated[:last_space]
    return truncated.rstrip(".,;:!? ") + suffix


def get_image_filename(src: str, max_length: int = 30) -> str:
    """Return the file name part of an image source, shortened for display."""
    path = urlparse(urljoin("https://example.com/", src or "")).path
    filename = path.rsplit("/", 1)[-1] or (src or "")
    if len(filename) <= max_length:
        return filename
    return filename[: max_length - 3] + "..."


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round like a spreadsheet does (0.5 always goes up), not banker's rounding.

    Examples:
        >>> round_half_up(2.5)
        3.0
        >>> round_half_up(1.25, 1)
        1.3
    """
    quantum = Decimal(1).scaleb(-ndigits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def percent(part: int, whole: int, default: int = 0) -> int:
    """Integer percentage of *part* in *whole*, rounded half up.

    Returns *default* when *whole* is zero so callers never divide by zero.
    """
    if whole <= 0:
        return default
    return (200 * part + whole) // (2 * whole)


def format_bytes(size: Optional[int]) -> str:
    """Format a byte count for display (e.g. 2097152 -> '2.0 MB')."""
    if not size:
        return "0 B"
    units = ["B", "KB", "MB", "GB"]
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(units) - 1:
        value /= 1024
        unit += 1
    if unit == 0:
        return f"{int(value)} B"
    return f"{value:.1f} {units[unit]}"


def format_load_time(ms: Optional[float]) -> str:
    """Format a load time in milliseconds (e.g. 3400 -> '3.4s')."""
    if not ms:
        return "0ms"
    if ms < 1000:
        return f"{round_half_up(ms):.0f}ms"
    return f"{ms / 1000:.1f}s"


def extract_domain(url: str) -> str:
    """Extract the domain from a URL.

    Args:
        url: Full URL string.

    Returns:
        Domain name without protocol or path.
    """
    parsed = urlparse(url if "://" in url else f"https://{url}")
    return (parsed.hostname or "").lower()
