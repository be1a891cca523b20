# ============================================
#     PairLink - Session Code Generator
# ============================================

import re
import secrets

from pairlink.config import CODE_ALPHABET, CODE_LENGTH, CODE_MAX_ATTEMPTS
from pairlink.errors import CodeSpaceExhausted
from pairlink.logger import log_warning


# =====================================================
#   VALIDATION
# =====================================================

# Any ASCII letter/digit is accepted here; codes outside the
# generator alphabet simply never match a live session.
CODE_REGEX = re.compile(r"^[A-Za-z0-9]{%d}$" % CODE_LENGTH)


def normalize_code(code):
    """Trim and upper-case a user-typed code. Non-strings are returned as-is."""
    if not isinstance(code, str):
        return code
    return code.strip().upper()


def is_valid_code(code) -> bool:
    if not isinstance(code, str):
        return False
    return bool(CODE_REGEX.fullmatch(code))


# =====================================================
#   GENERATION
# =====================================================

def generate_code(alphabet: str = CODE_ALPHABET, length: int = CODE_LENGTH) -> str:
    # secrets, not random: small alphabet, codes must resist guessing.
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_unique_code(is_taken, max_attempts: int = CODE_MAX_ATTEMPTS, generator=generate_code) -> str:
    """
    Draw codes until `is_taken(code)` is False.

    Raises CodeSpaceExhausted after `max_attempts` colliding draws.
    """
    for _ in range(max_attempts):
        code = generator()
        if not is_taken(code):
            return code

    log_warning("codes", f"No free session code after {max_attempts} attempts")
    raise CodeSpaceExhausted()
