"""
Run many signature computations on a thread pool.
Each set becomes one SignatureTask; results come back in input order.
"""
from __future__ import annotations
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Iterable, List, Tuple
import logging
import time

from minsig.minhash_sig import InvalidParameter, SignatureGenerator

logger = logging.getLogger(__name__)


def submit_all(generator: SignatureGenerator, sets: Iterable[Iterable],
               executor: Executor) -> List[Future]:
    """Submit one task per set to a pool the caller owns. Nothing is submitted if any set is invalid."""
    tasks = [generator.task(s) for s in sets]
    return [t.submit(executor) for t in tasks]


def signatures_of(generator: SignatureGenerator, sets: Iterable[Iterable],
                  max_workers: int = 4) -> List[Tuple[int, ...]]:
    if isinstance(max_workers, bool) or not isinstance(max_workers, int) or max_workers < 1:
        raise InvalidParameter(f"max_workers must be an int >= 1, got {max_workers!r}")

    tasks = [generator.task(s) for s in sets]
    logger.info("Computing %d signatures (sig_size=%d, workers=%d)",
                len(tasks), generator.sig_size, max_workers)
    started = time.perf_counter()

    results: List[Tuple[int, ...]] = []
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [t.submit(executor) for t in tasks]
        for idx, fut in enumerate(futures):
            try:
                results.append(fut.result())
            except Exception:
                logger.exception("Signature task %d failed", idx)
                for pending in futures[idx + 1:]:
                    pending.cancel()
                raise

    logger.info("Computed %d signatures in %.3fs", len(results), time.perf_counter() - started)
    return results
