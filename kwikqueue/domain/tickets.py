"""Ticket code and ticket number allocation"""

import random
from typing import Iterable, Optional

TICKET_CODE_MIN = 1000
TICKET_CODE_MAX = 9999

_rng = random.SystemRandom()


def allocate(rng: Optional[random.Random] = None) -> str:
    """
    Draw a 4-digit ticket code uniformly from [1000, 9999].

    Codes are display-only; two active orders of the same company may share
    one because identity is carried by the order id.
    """
    return str((rng or _rng).randint(TICKET_CODE_MIN, TICKET_CODE_MAX))


def allocate_unique(
    taken: Iterable[str],
    rng: Optional[random.Random] = None,
    attempts: int = 25,
) -> str:
    """Draw a code not present in `taken`, falling back to a plain draw"""
    used = set(taken)
    code = allocate(rng)
    for _ in range(attempts):
        if code not in used:
            return code
        code = allocate(rng)
    return code


def next_ticket_number(numbers_today: Iterable[Optional[int]]) -> int:
    """Sequential per-company daily number: one past today's highest"""
    return max((n for n in numbers_today if n is not None), default=0) + 1
