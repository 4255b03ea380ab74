"""
Identifier codec for Paste Gateway.

An identifier is a fixed-length string over the configured alphabet:

    id[0]   date code     alphabet[floor((now - dateOffset) / dateRotation) % charLen]
    id[1]   check code    alphabet[checksum(id[2:]) % charLen]
    id[2:]  random payload, idLen - 2 characters drawn with replacement

The date code groups identifiers minted in the same time window under one
leading character without exposing a precise timestamp. The check code is a
keyed integrity tag: it rejects typos and casual enumeration (there are only
256 checksum values), but it is not a capability token and must never be
used to authorize anything.

Checksum buffer layout (length fixed at paddingLen):

    secret bytes ++ utf-8 payload ++ zero padding  ->  sha256(...)[0]

A buffer that would need negative padding is a configuration error.
"""

import hashlib
import random
import re
import time
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Callable, Optional, Pattern, Tuple

from ..config import GatewayConfig
from ..errors import ConfigurationError


def _now_ms() -> int:
    return int(time.time() * 1000)


@lru_cache(maxsize=32)
def _path_patterns(characters: str) -> Tuple[Pattern[str], Pattern[str]]:
    """
    Build the two accepted request path shapes for an alphabet.

    1. /<identifier>[.<extension>]   (an optional trailing slash is tolerated)
    2. /<identifier>/<filename>

    The extension shape is tried first.
    """
    id_class = "[" + "".join(re.escape(ch) for ch in characters) + "]+"
    with_extension = re.compile(rf"^/({id_class})(?:\.([A-Za-z0-9]+))?/?$")
    with_filename = re.compile(rf"^/({id_class})/([^/]+)$")
    return with_extension, with_filename


@dataclass(frozen=True)
class IdentifierMatch:
    """A validated identifier plus the optional suffix taken from the path."""

    identifier: str
    extension: Optional[str] = None
    filename: Optional[str] = None

    @property
    def suffix(self) -> Optional[str]:
        return self.extension or self.filename


@dataclass(frozen=True)
class IdentifierCodec:
    """
    Generate and validate identifiers for one effective configuration.

    ``clock`` returns milliseconds since the epoch and ``rng`` supplies the
    random payload; both are injectable for deterministic tests.
    """

    config: GatewayConfig
    clock: Callable[[], int] = _now_ms
    rng: random.Random = field(default_factory=random.SystemRandom)

    def _chr(self, num: int) -> str:
        return self.config.characters[int(num) % self.config.char_len]

    def checksum(self, s: str) -> int:
        """Return the first byte of the keyed SHA-256 digest of ``s``."""
        text = s.encode("utf-8")
        secret = self.config.secret
        padding = self.config.padding_len - len(secret) - len(text)
        if padding < 0:
            raise ConfigurationError(
                f"paddingLen={self.config.padding_len} cannot hold secret and payload "
                f"({len(secret) + len(text)} bytes)"
            )
        buffer = secret + text + bytes(padding)
        return hashlib.sha256(buffer).digest()[0]

    def check_code(self, payload: str) -> str:
        return self._chr(self.checksum(payload))

    def date_code(self, now_ms: Optional[int] = None) -> str:
        now = self.clock() if now_ms is None else now_ms
        bucket = (now - self.config.date_offset) // self.config.date_rotation
        return self._chr(bucket)

    def random_payload(self) -> str:
        alphabet = self.config.characters
        return "".join(self.rng.choice(alphabet) for _ in range(self.config.id_len - 2))

    def generate(self) -> str:
        """Mint a new identifier: date code, check code, random payload."""
        payload = self.random_payload()
        return self.date_code() + self.check_code(payload) + payload

    def is_valid(self, identifier: str) -> bool:
        if len(identifier) != self.config.id_len:
            return False
        if any(ch not in self.config.characters for ch in identifier):
            return False
        # The date code is not checked.
        return identifier[1] == self.check_code(identifier[2:])

    def validate(self, path: str) -> Optional[IdentifierMatch]:
        """
        Extract and verify an identifier from a request path.

        Returns:
            Optional[IdentifierMatch]: The identifier with its extension or
            filename suffix, or None when the path has no acceptable shape,
            the identifier has the wrong length, or its check code is wrong.
        """
        with_extension, with_filename = _path_patterns(self.config.characters)

        match = with_extension.match(path)
        if match:
            candidate = IdentifierMatch(identifier=match.group(1), extension=match.group(2))
        else:
            match = with_filename.match(path)
            if not match:
                return None
            candidate = IdentifierMatch(identifier=match.group(1), filename=match.group(2))

        if not self.is_valid(candidate.identifier):
            return None
        return candidate
