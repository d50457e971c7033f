from __future__ import annotations

import logging
import math
import random
import re
import time
from dataclasses import dataclass
from functools import cached_property
from typing import Optional, TextIO, Tuple

from sscrypt.errors import MalformedKeyError, NoInverseError
from sscrypt.numtheory import DEFAULT_ITERS, lcm, make_prime, mod_inverse

log = logging.getLogger(__name__)

MIN_NBITS = 32

_HEX_RE = re.compile(r"[0-9a-fA-F]+")


def block_size(modulus: int) -> int:
    """Bytes per block for a modulus: (bitlength - 1) // 8."""
    return (modulus.bit_length() - 1) // 8

# ===== SS keys =====

@dataclass(frozen=True)
class PublicKey:
    n: int
    username: str = ""

    @cached_property
    def block_size(self) -> int:
        # floor(sqrt(p*p*q)) < p*q, so blocks sized from the root always fit below pq
        return block_size(math.isqrt(self.n))


@dataclass(frozen=True)
class PrivateKey:
    pq: int
    d: int

    @cached_property
    def block_size(self) -> int:
        return block_size(self.pq)


def _pair_ok(p: int, q: int) -> bool:
    if p == q:
        return False
    if p % (q - 1) == 0 or q % (p - 1) == 0:
        return False
    # p must not divide q - 1 (and vice versa), otherwise gcd(n, lcm(p-1, q-1)) > 1
    return (q - 1) % p != 0 and (p - 1) % q != 0


def make_public(
    nbits: int,
    iters: int = DEFAULT_ITERS,
    rng: Optional[random.Random] = None,
    timeout: Optional[float] = None,
) -> Tuple[int, int, int]:
    """
    Picks primes p, q and returns (p, q, n) with n = p*p*q.

    pbits is drawn from [ceil(nbits/5), 2*ceil(nbits/5)), q takes the remaining
    nbits - 2*pbits. q is redrawn until the pair satisfies the SS constraints.
    """
    if nbits < MIN_NBITS:
        raise ValueError(f"nbits must be >= {MIN_NBITS}")
    if rng is None:
        rng = random.SystemRandom()

    deadline = time.monotonic() + timeout if timeout is not None else None

    low = -(-nbits // 5)
    pbits = rng.randrange(low, 2 * low)
    qbits = nbits - 2 * pbits
    log.debug("nbits=%d pbits=%d qbits=%d", nbits, pbits, qbits)

    p = make_prime(pbits, iters, rng, deadline)
    while True:
        q = make_prime(qbits, iters, rng, deadline)
        if _pair_ok(p, q):
            break
        log.debug("rejected prime pair, drawing q again")

    return p, q, p * p * q


def make_private(p: int, q: int) -> Tuple[int, int]:
    """Returns (d, pq) for secret primes p, q."""
    n = p * p * q
    pq = p * q
    lam = lcm(p - 1, q - 1)
    d = mod_inverse(n, lam)
    if d is None:
        raise NoInverseError("n has no inverse modulo lcm(p-1, q-1)")
    return d, pq


def generate_keypair(
    nbits: int = 256,
    iters: int = DEFAULT_ITERS,
    rng: Optional[random.Random] = None,
    username: str = "",
    timeout: Optional[float] = None,
) -> Tuple[PublicKey, PrivateKey]:
    p, q, n = make_public(nbits, iters, rng, timeout)
    d, pq = make_private(p, q)
    return PublicKey(n=n, username=username), PrivateKey(pq=pq, d=d)

# ===== Key files =====
# public:  <n hex>\n<username>\n
# private: <pq hex>\n<d hex>\n

def write_public(pub: PublicKey, f: TextIO) -> None:
    f.write(f"{pub.n:x}\n")
    f.write(f"{pub.username}\n")


def write_private(priv: PrivateKey, f: TextIO) -> None:
    f.write(f"{priv.pq:x}\n")
    f.write(f"{priv.d:x}\n")


def _read_line(f: TextIO, lineno: int, what: str) -> str:
    line = f.readline()
    if line == "":
        raise MalformedKeyError(f"missing {what}", lineno)
    return line.rstrip("\r\n")


def _parse_hex(text: str, lineno: int, what: str) -> int:
    text = text.strip()
    if not _HEX_RE.fullmatch(text):
        raise MalformedKeyError(f"{what} is not a hex number", lineno)
    return int(text, 16)


def read_public(f: TextIO) -> PublicKey:
    n = _parse_hex(_read_line(f, 1, "modulus n"), 1, "modulus n")
    username = _read_line(f, 2, "username")
    if n < 2:
        raise MalformedKeyError("modulus n is too small", 1)
    return PublicKey(n=n, username=username)


def read_private(f: TextIO) -> PrivateKey:
    pq = _parse_hex(_read_line(f, 1, "modulus pq"), 1, "modulus pq")
    d = _parse_hex(_read_line(f, 2, "exponent d"), 2, "exponent d")
    if pq < 2:
        raise MalformedKeyError("modulus pq is too small", 1)
    return PrivateKey(pq=pq, d=d)
