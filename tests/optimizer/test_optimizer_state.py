"""Tests for optimizer state persistence."""

from tasrun.optimizer.state import OptimizationRecord, OptimizerStore


def test_load_missing_file(store):
    assert store.load() is False
    assert store.record.lo_bound is None


def test_save_and_load(tmp_path):
    path = tmp_path / "state" / "optimization.json"
    store = OptimizerStore(path)
    store.record.lo_bound = 8
    store.record.hi_bound = 16
    store.record.mid_value = 12
    store.record.history.extend([1, 2, 4, 8, 16, 12])
    store.save()

    reloaded = OptimizerStore(path)
    assert reloaded.load() is True
    assert reloaded.record.lo_bound == 8
    assert reloaded.record.hi_bound == 16
    assert reloaded.record.mid_value == 12
    assert reloaded.record.history == [1, 2, 4, 8, 16, 12]


def test_corrupt_file_resets(store):
    store.path.write_text("{not json", encoding="utf-8")
    assert store.load() is False
    assert store.record.lo_bound is None
    assert store.record.history == []


def test_clear_persists_empty_record(store):
    store.record.lo_bound = 3
    store.record.history.append(3)
    store.save()

    store.clear()

    reloaded = OptimizerStore(store.path)
    assert reloaded.load() is True
    assert reloaded.record.lo_bound is None
    assert reloaded.record.history == []


def test_converged_and_exhausted():
    assert OptimizationRecord(lo_bound=5, hi_bound=5).converged
    assert not OptimizationRecord(lo_bound=4, hi_bound=5).converged
    assert OptimizationRecord(lo_bound=6, hi_bound=5).exhausted
    assert not OptimizationRecord(lo_bound=6).exhausted
    assert not OptimizationRecord().converged
