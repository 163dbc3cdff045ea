"""Join codes: short, human-shareable group identifiers."""
import random
import secrets
from typing import Optional

# Letters and digits minus the look-alikes O/0 and I/1
JOIN_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
JOIN_CODE_LENGTH = 6

_system_random = secrets.SystemRandom()


def generate_join_code(rng: Optional[random.Random] = None) -> str:
    """Draw JOIN_CODE_LENGTH characters independently and uniformly from the alphabet."""
    rng = rng or _system_random
    return "".join(rng.choice(JOIN_CODE_ALPHABET) for _ in range(JOIN_CODE_LENGTH))


def normalize_join_code(code: str) -> str:
    return (code or "").strip().upper()


def is_well_formed_join_code(code: str) -> bool:
    return len(code) == JOIN_CODE_LENGTH and all(c in JOIN_CODE_ALPHABET for c in code)
