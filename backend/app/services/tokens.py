"""
Project access tokens — generation, normalization, validation.

Format: JW-XXXX-XXXX-XXXX where X ∈ [A-Z0-9] (17 characters total).
The formatted string is the canonical key: it is the project's document
ID, its lookup code, and the credential a client types into the portal.

Design rules:
  • normalize_token() and is_valid_token() are separate steps. The admin UI
    normalizes on every keystroke and validates to colour the field.
  • Randomness is injected. SecureRandomSource is used whenever the OS
    CSPRNG is available; otherwise the generator degrades to the
    non-cryptographic FallbackRandomSource instead of failing. Callers can
    read TokenGenerator.is_secure to see which path is active.
  • Each entropy byte is reduced modulo 36. 256 is not a multiple of 36 so
    the first 4 symbols are slightly more likely — acceptable for a
    human-shareable identifier that is not key material.

Uniqueness against existing projects is enforced in app.services.projects.
"""

from __future__ import annotations

import logging
import random
import re
import secrets
import string
from typing import Protocol

logger = logging.getLogger(__name__)

TOKEN_PREFIX = "JW-"
TOKEN_ALPHABET = string.ascii_uppercase + string.digits
TOKEN_FORMAT_HINT = "JW-XXXX-XXXX-XXXX (where X is A-Z or 0-9)"

_GROUPS = 3
_GROUP_SIZE = 4
_ENTROPY_BYTES = _GROUPS * _GROUP_SIZE

# fullmatch, not ^…$: "$" would also accept a trailing newline.
_TOKEN_RE = re.compile(r"JW-[A-Z0-9]{4}-[A-Z0-9]{4}-[A-Z0-9]{4}")


# ── Errors ──────────────────────────────────────────────────
class TokenError(Exception):
    """Base class for token lifecycle failures."""


class InvalidTokenFormat(TokenError):
    """Candidate token does not match the fixed pattern."""

    def __init__(self, candidate: str) -> None:
        self.candidate = candidate
        super().__init__(
            f"Invalid token format '{candidate}'. "
            f"Token must match format: {TOKEN_FORMAT_HINT}."
        )


class TokenAlreadyExists(TokenError):
    """A manually supplied token is already some project's key."""

    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(
            f"Token '{token}' already exists. Please use a different token code."
        )


class TokenAllocationExhausted(TokenError):
    """Auto-generation found no free token within the attempt bound."""

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(
            f"Could not allocate a unique token after {attempts} attempts. "
            "Please try again."
        )


# ── Randomness sources ──────────────────────────────────────
class RandomSource(Protocol):
    """Entropy capability injected into TokenGenerator."""

    is_secure: bool

    def read(self, n: int) -> bytes: ...


class SecureRandomSource:
    """OS CSPRNG via the secrets module."""

    is_secure = True

    def read(self, n: int) -> bytes:
        return secrets.token_bytes(n)


class FallbackRandomSource:
    """Mersenne Twister — used only when the OS CSPRNG is unavailable."""

    is_secure = False

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)

    def read(self, n: int) -> bytes:
        return bytes(self._rng.getrandbits(8) for _ in range(n))


def default_random_source() -> RandomSource:
    """Best available source. Never raises."""
    try:
        secrets.token_bytes(1)
    except NotImplementedError:
        logger.warning(
            "No OS randomness source available — project tokens will use "
            "a non-cryptographic generator"
        )
        return FallbackRandomSource()
    return SecureRandomSource()


# ── Generator ───────────────────────────────────────────────
class TokenGenerator:
    """Produces well-formed tokens from an injected RandomSource."""

    def __init__(self, source: RandomSource | None = None) -> None:
        self._source = source if source is not None else default_random_source()

    @property
    def is_secure(self) -> bool:
        return self._source.is_secure

    def generate(self) -> str:
        raw = self._source.read(_ENTROPY_BYTES)
        if len(raw) < _ENTROPY_BYTES:
            raise ValueError(
                f"Random source returned {len(raw)} bytes, need {_ENTROPY_BYTES}"
            )

        symbols = [TOKEN_ALPHABET[b % len(TOKEN_ALPHABET)] for b in raw[:_ENTROPY_BYTES]]
        groups = [
            "".join(symbols[i:i + _GROUP_SIZE])
            for i in range(0, _ENTROPY_BYTES, _GROUP_SIZE)
        ]
        return TOKEN_PREFIX + "-".join(groups)


# ── Normalize / validate ────────────────────────────────────
def normalize_token(raw: str) -> str:
    """
    Canonical form for comparison and storage.

    Strips all whitespace (leading, trailing and internal) and uppercases.
    Total and idempotent; the result is not necessarily a valid token.

        >>> normalize_token("  jw-a1b2-c3d4-e5f6 ")
        'JW-A1B2-C3D4-E5F6'
    """
    return "".join(raw.split()).upper()


def is_valid_token(candidate: object) -> bool:
    """True iff candidate is exactly JW-XXXX-XXXX-XXXX. Does not normalize."""
    if not isinstance(candidate, str):
        return False
    return _TOKEN_RE.fullmatch(candidate) is not None


def parse_token(raw: str) -> str:
    """Normalize then validate. Returns the canonical token or raises InvalidTokenFormat."""
    token = normalize_token(raw)
    if not is_valid_token(token):
        raise InvalidTokenFormat(token)
    return token


# ── Dependency ──────────────────────────────────────────────
_generator: TokenGenerator | None = None


def get_token_generator() -> TokenGenerator:
    """FastAPI dependency: process-wide generator, built on first use."""
    global _generator
    if _generator is None:
        _generator = TokenGenerator()
        if not _generator.is_secure:
            logger.warning("Token generator is running without a CSPRNG")
    return _generator
