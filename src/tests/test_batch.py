import logging
from concurrent.futures import ThreadPoolExecutor

import pytest

import minsig.minhash_sig as mh
from minsig.batch import signatures_of, submit_all
from minsig.config import SignatureConfig


def _sets():
    return [set(range(i, i + 25)) for i in range(0, 200, 10)] + [set()]


def test_batch_matches_sequential_in_order():
    cfg = SignatureConfig(n=5000, sig_size=32, seed=17, max_workers=3)
    gen = cfg.build()
    sets = _sets()
    expected = [gen.signature_of(s) for s in sets]
    assert signatures_of(gen, sets, max_workers=cfg.max_workers) == expected
    assert mh.is_empty_signature(expected[-1])


def test_batch_logs_progress(caplog):
    gen = mh.SignatureGenerator(100, 4, seed=0)
    with caplog.at_level(logging.INFO, logger="minsig.batch"):
        signatures_of(gen, [{1}, {2}], max_workers=1)
    assert "Computing 2 signatures" in caplog.text
    assert "Computed 2 signatures" in caplog.text


def test_batch_empty_input():
    gen = mh.SignatureGenerator(100, 4, seed=0)
    assert signatures_of(gen, []) == []


@pytest.mark.parametrize("workers", [0, -1, 1.5, True])
def test_batch_rejects_bad_worker_count(workers):
    gen = mh.SignatureGenerator(100, 4, seed=0)
    with pytest.raises(mh.InvalidParameter):
        signatures_of(gen, [{1}], max_workers=workers)


def test_batch_rejects_bad_elements_before_scheduling():
    gen = mh.SignatureGenerator(100, 4, seed=0)
    with pytest.raises(mh.InvalidElement):
        signatures_of(gen, [{1}, {"x"}])


def test_batch_propagates_task_failure(monkeypatch, caplog):
    def boom(self):
        raise RuntimeError("worker died")

    monkeypatch.setattr(mh.SignatureTask, "__call__", boom)
    gen = mh.SignatureGenerator(100, 4, seed=0)
    with caplog.at_level(logging.ERROR, logger="minsig.batch"):
        with pytest.raises(RuntimeError, match="worker died"):
            signatures_of(gen, [{1}, {2}], max_workers=2)
    assert "Signature task 0 failed" in caplog.text


def test_submit_all_with_caller_pool():
    gen = mh.SignatureGenerator(1000, 8, seed=5)
    sets = _sets()
    with ThreadPoolExecutor(max_workers=2) as pool:
        futures = submit_all(gen, sets, pool)
        results = [f.result() for f in futures]
    assert results == [gen.signature_of(s) for s in sets]


class _CountingExecutor(ThreadPoolExecutor):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.submitted = 0

    def submit(self, fn, *args, **kwargs):
        self.submitted += 1
        return super().submit(fn, *args, **kwargs)


def test_submit_all_submits_nothing_when_a_set_is_invalid():
    gen = mh.SignatureGenerator(100, 4, seed=0)
    with _CountingExecutor(max_workers=1) as pool:
        with pytest.raises(mh.InvalidElement):
            submit_all(gen, [{1}, {2}, {"x"}], pool)
        assert pool.submitted == 0
