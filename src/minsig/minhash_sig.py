"""
MinHash signatures for sets of numbers, using a family of universal hashes
h_i(x) = ((a_i * x + b_i) mod P) mod n with P = 433494437.

Elements are normalized to an exact key (Decimal, or Fraction when the
decimal expansion does not terminate) and sorted before hashing; fractional
values hash by their integral part (truncated toward zero). Python integers
are unbounded so a_i * x is exact; elements must satisfy |x| < 10**1000.
"""
from __future__ import annotations
from concurrent.futures import Executor, Future
from decimal import MAX_EMAX, MIN_EMIN, Decimal, localcontext
from fractions import Fraction
from typing import Iterable, Optional, Sequence, Set, Tuple, Union
import logging
import numbers
import random
import threading

logger = logging.getLogger(__name__)

LARGE_PRIME = 433494437
EMPTY_SLOT = 2**31 - 1  # every real hash value is < min(n, LARGE_PRIME)
MAX_ELEMENT_DIGITS = 1000
_MAX_MAGNITUDE = 10**MAX_ELEMENT_DIGITS

ElementKey = Union[Decimal, Fraction]


class InvalidParameter(ValueError):
    pass


class InvalidElement(ValueError):
    pass


class TaskCancelled(RuntimeError):
    pass


def _require_int(name: str, value, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameter(f"{name} must be an int, got {type(value).__name__}")
    if value < minimum:
        raise InvalidParameter(f"{name} must be >= {minimum}, got {value}")
    return value


def _terminating_decimal(frac: Fraction) -> Optional[Decimal]:
    """Exact Decimal for a fraction whose denominator is 2**p * 5**q, else None."""
    den = frac.denominator
    p = q = 0
    while den % 2 == 0:
        den //= 2
        p += 1
    while den % 5 == 0:
        den //= 5
        q += 1
    if den != 1:
        return None
    k = max(p, q)
    scaled = frac.numerator * (10**k // frac.denominator)
    with localcontext() as ctx:
        ctx.prec = scaled.bit_length() // 3 + 2  # at least the digit count of scaled
        ctx.Emin, ctx.Emax = MIN_EMIN, MAX_EMAX
        return Decimal(scaled).scaleb(-k)


def normalize_element(x) -> ElementKey:
    """
    Exact key of a numeric element, comparable and hashable across types.
    Floats go through their shortest round-trip repr, so 0.1 becomes Decimal('0.1')
    rather than its binary expansion. Rationals like 1/3 stay Fractions.
    """
    if isinstance(x, bool) or not isinstance(x, numbers.Number):
        raise InvalidElement(f"not a real number: {x!r}")
    if isinstance(x, Decimal):
        key = x
    elif isinstance(x, int):
        key = Decimal(x)
    elif isinstance(x, float):
        key = Decimal(repr(x))
    elif isinstance(x, numbers.Rational):
        frac = Fraction(x.numerator, x.denominator)
        if abs(frac) >= _MAX_MAGNITUDE:
            raise InvalidElement(f"element magnitude must be below 10**{MAX_ELEMENT_DIGITS}")
        key = _terminating_decimal(frac)
        if key is None:
            key = frac
    elif isinstance(x, numbers.Real):
        key = Decimal(repr(float(x)))
    else:
        raise InvalidElement(f"not a real number: {x!r}")
    if isinstance(key, Decimal):
        if not key.is_finite():
            raise InvalidElement(f"element must be finite: {x!r}")
        if key.copy_abs() >= _MAX_MAGNITUDE:
            raise InvalidElement(f"element magnitude must be below 10**{MAX_ELEMENT_DIGITS}")
    return key


def normalize_elements(elements: Iterable) -> Tuple[ElementKey, ...]:
    """Normalize, drop duplicates and sort ascending."""
    distinct: Set[ElementKey] = {normalize_element(x) for x in elements}
    return tuple(sorted(distinct))


class SignatureTask:
    """
    One deferred signature computation over an already sorted element tuple.
    Safe to run on any worker: it only reads the generator's coefficients.
    Start and cancel are decided under one lock, so cancel() returning True
    means the reduction never runs.
    """

    def __init__(self, a: Tuple[int, ...], b: Tuple[int, ...], n: int,
                 elements: Tuple[ElementKey, ...]):
        self._a = a
        self._b = b
        self._n = n
        self.elements = elements
        self._lock = threading.Lock()
        self._cancelled = False
        self._started = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> bool:
        with self._lock:
            if self._started:
                return False
            self._cancelled = True
            return True

    def submit(self, executor: Executor) -> Future:
        return executor.submit(self)

    def __call__(self) -> Tuple[int, ...]:
        with self._lock:
            if self._cancelled:
                raise TaskCancelled("signature task was cancelled before it ran")
            self._started = True
        return self._reduce()

    def _reduce(self) -> Tuple[int, ...]:
        a, b, n = self._a, self._b, self._n
        sig = [EMPTY_SLOT] * len(a)
        # distinct keys can share an integral part
        xs = []
        for key in self.elements:
            x = int(key)
            if not xs or xs[-1] != x:
                xs.append(x)
        for x in xs:
            for i in range(len(sig)):
                hv = ((a[i] * x + b[i]) % LARGE_PRIME) % n
                if hv < sig[i]:
                    sig[i] = hv
        return tuple(sig)


class SignatureGenerator:
    """
    Holds sig_size random (a, b) coefficient pairs over a domain of size n.

    The coefficients are drawn once from random.SystemRandom unless a seed or
    an explicit random.Random is given, and never change afterwards, so one
    generator can serve any number of concurrent signature computations.
    """

    __slots__ = ("_n", "_sig_size", "_a", "_b")

    def __init__(self, n: int, sig_size: int, seed: Optional[int] = None,
                 rng: Optional[random.Random] = None):
        _require_int("n", n, 2)
        _require_int("sig_size", sig_size, 1)
        if seed is not None and rng is not None:
            raise InvalidParameter("pass either seed or rng, not both")
        if rng is None:
            rng = random.SystemRandom() if seed is None else random.Random(seed)

        a, b = [], []
        for _ in range(sig_size):
            a.append(rng.randint(1, n - 1))
            b.append(rng.randint(0, n - 1))
        self._n = n
        self._sig_size = sig_size
        self._a: Tuple[int, ...] = tuple(a)
        self._b: Tuple[int, ...] = tuple(b)
        logger.debug("SignatureGenerator ready: n=%d sig_size=%d seeded=%s",
                     n, sig_size, seed is not None)

    @property
    def n(self) -> int:
        return self._n

    @property
    def sig_size(self) -> int:
        return self._sig_size

    @property
    def a(self) -> Tuple[int, ...]:
        return self._a

    @property
    def b(self) -> Tuple[int, ...]:
        return self._b

    def task(self, elements: Iterable) -> SignatureTask:
        """Normalize now, hash later. Bad elements raise here, not on the worker."""
        return SignatureTask(self._a, self._b, self._n, normalize_elements(elements))

    def __call__(self, elements: Iterable) -> SignatureTask:
        return self.task(elements)

    def signature_of(self, elements: Iterable) -> Tuple[int, ...]:
        return self.task(elements)()

    def __repr__(self) -> str:
        return f"SignatureGenerator(n={self._n}, sig_size={self._sig_size})"


def is_empty_signature(sig: Sequence[int]) -> bool:
    return all(v == EMPTY_SLOT for v in sig)


def estimate_jaccard(sig_a: Sequence[int], sig_b: Sequence[int]) -> float:
    """Estimate Jaccard similarity as the fraction of equal components."""
    if len(sig_a) != len(sig_b):
        raise ValueError(f"signature lengths differ: {len(sig_a)} != {len(sig_b)}")
    empty_a, empty_b = is_empty_signature(sig_a), is_empty_signature(sig_b)
    if empty_a or empty_b:
        return 1.0 if empty_a and empty_b else 0.0
    eq = sum(1 for x, y in zip(sig_a, sig_b) if x == y)
    return eq / len(sig_a)


def jaccard_of_sets(a: Set, b: Set) -> float:
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    inter = len(a & b)
    return inter / (len(a) + len(b) - inter)
