import logging
import random
from typing import Awaitable, Callable, Optional

from identity.utils.errors import ConflictError

MAX_ATTEMPTS = 10
PHONE_PREFIX = "+55"
PHONE_MIN = 10_000_000_000
PHONE_MAX = 99_999_999_999


def make_tax_id(rng) -> str:
    """Placeholder tax ID: three 3-digit groups and one 2-digit group, no separators."""
    return (
        f"{rng.randint(0, 999):03d}"
        f"{rng.randint(0, 999):03d}"
        f"{rng.randint(0, 999):03d}"
        f"{rng.randint(0, 99):02d}"
    )


def make_phone(rng) -> str:
    return f"{PHONE_PREFIX}{rng.randint(PHONE_MIN, PHONE_MAX)}"


class UniqueIdentifierGenerator:
    """
    Synthesizes placeholder tax IDs and phone numbers for accounts created
    through OAuth. These values are syntactically valid only; they are never
    meant to pass real-world check digit validation.
    """

    def __init__(self, directory, rng=None, max_attempts: int = MAX_ATTEMPTS,
                 logger: Optional[logging.Logger] = None):
        self.directory = directory
        self.rng = rng or random.SystemRandom()
        self.max_attempts = max_attempts
        self.logger = logger or logging.getLogger(__name__)

    async def _generate(self, make: Callable[..., str], lookup: Callable[[str], Awaitable], label: str) -> str:
        for attempt in range(1, self.max_attempts + 1):
            candidate = make(self.rng)
            if await lookup(candidate) is None:
                return candidate
            self.logger.debug(f"Generated {label} already taken (attempt {attempt}/{self.max_attempts})")

        self.logger.error(f"Could not generate a unique {label} after {self.max_attempts} attempts")
        raise ConflictError("unique value exhausted")

    async def generate_unique_tax_id(self) -> str:
        return await self._generate(make_tax_id, self.directory.find_by_tax_id, "tax ID")

    async def generate_unique_phone(self) -> str:
        return await self._generate(make_phone, self.directory.find_by_phone, "phone")
