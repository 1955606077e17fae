"""Random, DNS-safe names for churned objects."""

from __future__ import annotations

import random
import string
from typing import Optional

NAME_PREFIX = "kubernoisy-"
NAME_SUFFIX_LENGTH = 18
NAME_ALPHABET = string.digits + string.ascii_lowercase

_default_random = random.SystemRandom()


def generate_name(
    rng: Optional[random.Random] = None,
    prefix: str = NAME_PREFIX,
    length: int = NAME_SUFFIX_LENGTH,
) -> str:
    """Return ``prefix`` followed by ``length`` random ``[0-9a-z]`` characters."""

    source = rng or _default_random
    suffix = "".join(source.choices(NAME_ALPHABET, k=length))
    return f"{prefix}{suffix}"


__all__ = ["NAME_ALPHABET", "NAME_PREFIX", "NAME_SUFFIX_LENGTH", "generate_name"]
