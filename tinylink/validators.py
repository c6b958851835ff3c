import re
from typing import Annotated, Any

from pydantic import TypeAdapter, UrlConstraints, ValidationError
from pydantic_core import Url

CODE_PATTERN = re.compile(r"[A-Za-z0-9]{6,8}")
# Whitespace at the edges or control characters anywhere would be silently
# dropped by the URL parser, so the stored string would differ from the checked one
UNSAFE_URL_CHARS = re.compile(r"^\s|\s$|[\x00-\x1f\x7f]")

# No max_length, unlike HttpUrl
_http_url = TypeAdapter(
    Annotated[Url, UrlConstraints(allowed_schemes=["http", "https"], host_required=True)]
)

def is_valid_code(code: Any) -> bool:
    """True for 6-8 ASCII letters or digits, nothing else."""
    return isinstance(code, str) and CODE_PATTERN.fullmatch(code) is not None

def is_valid_url(url: Any) -> bool:
    """True for absolute http(s) URLs with a host.

    Other schemes (javascript:, file:, ftp:) and relative references fail.
    """
    if not isinstance(url, str) or not url or UNSAFE_URL_CHARS.search(url):
        return False
    try:
        parsed = _http_url.validate_python(url)
    except ValidationError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.host)
