"""Account identity parsing for the control API.

Targets are stored by 32-bit account id. Callers may pass either that id or
the full 64-bit id of an individual public-universe account.
"""

from blocker.errors import InvalidInput

ACCOUNT_ID_MAX = 0xFFFFFFFF
# Universe public (1), type individual (1), instance desktop (1)
INDIVIDUAL_ID64_PREFIX = 0x01100001
INDIVIDUAL_ID64_BASE = INDIVIDUAL_ID64_PREFIX << 32

INVALID_INDIVIDUAL = "AccountID is not a valid Steam individual"


def parse_account_id(raw) -> int:
    """Return the account id for ``raw`` or raise ``InvalidInput``."""
    text = str(raw).strip()
    if not (text.isascii() and text.isdigit()):
        raise InvalidInput(INVALID_INDIVIDUAL)
    value = int(text)
    if value > ACCOUNT_ID_MAX:
        if value >> 32 != INDIVIDUAL_ID64_PREFIX:
            raise InvalidInput(INVALID_INDIVIDUAL)
        value &= ACCOUNT_ID_MAX
    if value == 0:
        raise InvalidInput(INVALID_INDIVIDUAL)
    return value


def to_id64(account_id: int) -> int:
    return INDIVIDUAL_ID64_BASE + account_id
