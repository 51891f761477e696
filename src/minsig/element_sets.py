"""
Turn token streams into numeric element sets: overlapping word k-grams,
each hashed to an unsigned 64-bit int.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Set
import hashlib
import re

import xxhash
from blake3 import blake3

from minsig.minhash_sig import InvalidParameter

HASH_NAMES = ("xxhash64", "blake3", "blake2b")


@dataclass
class KGramConfig:
    k_words: int = 5            # k-gram size (in tokens)
    hash_name: str = "xxhash64"  # "xxhash64" | "blake3" | "blake2b"
    seed: int = 0

    def validate(self):
        if self.k_words < 1:
            raise InvalidParameter(f"k_words must be >= 1, got {self.k_words}")
        if self.hash_name not in HASH_NAMES:
            raise InvalidParameter(f"unknown hash_name {self.hash_name!r}, expected one of {HASH_NAMES}")


def stable_hash_64(data: bytes, seed: int = 0, hash_name: str = "xxhash64") -> int:
    if hash_name == "xxhash64":
        return xxhash.xxh3_64_intdigest(data, seed=seed & 0xFFFFFFFFFFFFFFFF)
    s = (seed & 0xFFFFFFFFFFFFFFFF).to_bytes(8, "big", signed=False)
    if hash_name == "blake3":
        return int.from_bytes(blake3(s + data).digest()[:8], "big", signed=False)
    h = hashlib.blake2b(s + data, digest_size=8, person=b"minsig")
    return int.from_bytes(h.digest(), "big", signed=False)


def tokenize(s: str) -> List[str]:
    return re.findall(r'\w+', s.lower())


def k_gram(tokens: List[str], k: int) -> List[str]:
    if len(tokens) < k: return []
    return [' '.join(tokens[i:i+k]) for i in range(len(tokens)-k+1)]


def hashed_k_gram_set(tokens: List[str], cfg: KGramConfig) -> Set[int]:
    cfg.validate()
    return {stable_hash_64(s.encode("utf-8"), seed=cfg.seed, hash_name=cfg.hash_name)
            for s in k_gram(tokens, cfg.k_words)}
