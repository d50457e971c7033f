from __future__ import annotations

import logging
import random
import time
from typing import Optional, Tuple

from sscrypt.errors import PrimeSearchTimeout

log = logging.getLogger(__name__)

DEFAULT_ITERS = 50

# ===== Random source =====

def make_rng(seed: Optional[int] = None) -> random.Random:
    """
    Seeded -> deterministic random.Random (tests, reproducible keys).
    No seed -> random.SystemRandom backed by os.urandom.
    The returned object is passed explicitly to every function that draws randomness.
    """
    if seed is None:
        return random.SystemRandom()
    return random.Random(seed)


def _rng_or_default(rng: Optional[random.Random]) -> random.Random:
    return rng if rng is not None else random.SystemRandom()

# ===== Modular arithmetic =====

def gcd(a: int, b: int) -> int:
    while b != 0:
        a, b = b, a % b
    return abs(a)


def lcm(a: int, b: int) -> int:
    g = gcd(a, b)
    if g == 0:
        raise ValueError("lcm(0, 0) is undefined")
    return abs(a * b) // g


def mod_inverse(a: int, n: int) -> Optional[int]:
    """
    Inverse of a modulo n via the extended Euclidean algorithm.
    Returns None when gcd(a, n) != 1, otherwise a value in [0, n).
    """
    if n <= 0:
        raise ValueError("modulus must be positive")
    a %= n

    r, r_new = n, a
    t, t_new = 0, 1
    while r_new != 0:
        quotient = r // r_new
        r, r_new = r_new, r - quotient * r_new
        t, t_new = t_new, t - quotient * t_new

    if r > 1:
        return None
    if t < 0:
        t += n
    return t % n


def pow_mod(a: int, d: int, n: int) -> int:
    """a**d % n by square-and-multiply."""
    if n <= 0:
        raise ValueError("modulus must be positive")
    if d < 0:
        raise ValueError("exponent must be non-negative")

    v = 1 % n
    p = a % n
    while d > 0:
        if d & 1:
            v = (v * p) % n
        p = (p * p) % n
        d >>= 1
    return v

# ===== Miller-Rabin =====

def _split_r_s(n: int) -> Tuple[int, int]:
    # n - 1 = 2**r * s, s odd
    r, s = 0, n - 1
    while s % 2 == 0:
        s //= 2
        r += 1
    return r, s


def witness(a: int, n: int) -> bool:
    """True when a proves the odd number n composite."""
    r, s = _split_r_s(n)
    x = pow_mod(a, s, n)
    for _ in range(r):
        y = pow_mod(x, 2, n)
        if y == 1 and x != 1 and x != n - 1:
            return True
        x = y
    return x != 1


def is_prime(n: int, iters: int = DEFAULT_ITERS, rng: Optional[random.Random] = None) -> bool:
    if n < 2 or (n != 2 and n % 2 == 0):
        return False
    if n == 2 or n == 3:
        return True

    rng = _rng_or_default(rng)
    for _ in range(iters):
        a = rng.randint(2, n - 2)
        if witness(a, n):
            return False
    return True


def make_prime(
    bits: int,
    iters: int = DEFAULT_ITERS,
    rng: Optional[random.Random] = None,
    deadline: Optional[float] = None,
) -> int:
    """
    Random probable prime p with 2**bits <= p < 2**(bits + 1).

    Retries until a prime turns up. deadline is a time.monotonic() value;
    when it passes, PrimeSearchTimeout is raised instead of drawing again.
    """
    if bits < 1:
        raise ValueError("bits must be >= 1")

    rng = _rng_or_default(rng)
    top = 1 << bits
    attempts = 0
    while True:
        if deadline is not None and time.monotonic() > deadline:
            raise PrimeSearchTimeout(f"no {bits + 1}-bit prime found after {attempts} candidates")
        attempts += 1
        p = rng.getrandbits(bits) + top
        if is_prime(p, iters, rng):
            log.debug("found %d-bit prime after %d candidates", bits + 1, attempts)
            return p
