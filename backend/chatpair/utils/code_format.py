import re
import secrets

from chatpair.core.exceptions import InvalidFormatError

CODE_LENGTH = 8
CODE_MIN = 10_000_000
CODE_MAX = 99_999_999

# [0-9] rather than \d: \d also matches non-ASCII digits.
CODE_PATTERN = re.compile(r"[0-9]{8}")

_system_random = secrets.SystemRandom()


def is_valid_code(code) -> bool:
    return isinstance(code, str) and CODE_PATTERN.fullmatch(code) is not None


def validate_code_format(code) -> str:
    """Return ``code`` unchanged or raise InvalidFormatError."""
    if not is_valid_code(code):
        raise InvalidFormatError()
    return code


def draw_code(rng=None) -> str:
    """Draw an 8-digit code uniformly from 10000000..99999999."""
    rng = rng or _system_random
    return str(rng.randint(CODE_MIN, CODE_MAX))
