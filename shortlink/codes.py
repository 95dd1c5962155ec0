"""Short code generation and allocation.

Uniqueness is two-phase. ``allocate_code`` asks storage whether a code is
already held by an active link so the API can answer 409 up front, but that
check races with concurrent creates. The partial unique index on
``links.code`` is what actually guarantees one live link per code; the link
service turns a violation at insert time into the same CodeConflict.
"""
import re
import secrets
import string
from typing import Awaitable, Callable, Optional

from .errors import CodeConflict, CodeSpaceExhausted, InvalidFormat

ALPHABET = string.ascii_letters + string.digits
CODE_PATTERN = re.compile(r"^[A-Za-z0-9]{6,8}$")
DEFAULT_LENGTH = 6

# Path segments routed before /{code}. static, healthz and metrics are
# well-formed codes, so they must never be handed out.
RESERVED_CODES = frozenset({"api", "code", "static", "healthz", "metrics", "favicon.ico"})

def validate_format(code) -> bool:
    return isinstance(code, str) and CODE_PATTERN.fullmatch(code) is not None

def is_reserved(code: str) -> bool:
    return code in RESERVED_CODES

def generate_code(length: int = DEFAULT_LENGTH) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))

async def allocate_code(
    is_taken: Callable[[str], Awaitable[bool]],
    requested: Optional[str] = None,
    *,
    max_attempts: int = 10,
) -> str:
    """Return a code that no active link holds right now.

    ``is_taken`` is the storage pre-check. A requested code is validated and
    checked once; otherwise random codes are drawn until a free one turns up
    or ``max_attempts`` is spent.
    """
    if requested is not None:
        if not validate_format(requested):
            raise InvalidFormat(requested)
        if is_reserved(requested) or await is_taken(requested):
            raise CodeConflict(requested)
        return requested

    for _ in range(max_attempts):
        candidate = generate_code(DEFAULT_LENGTH)
        if is_reserved(candidate):
            continue
        if not await is_taken(candidate):
            return candidate
    raise CodeSpaceExhausted(max_attempts)
