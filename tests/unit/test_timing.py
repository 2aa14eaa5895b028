"""Unit tests for stage timing."""

import itertools

import pytest

from src.services.timing import StageTimer


class TestStageTimer:
    """Test per-stage accumulation."""

    def test_records_each_stage(self):
        timer = StageTimer()
        with timer.stage("fetch"):
            pass
        with timer.stage("parse"):
            pass

        assert set(timer.stages) == {"fetch", "parse"}
        assert all(ms >= 0 for ms in timer.stages.values())
        assert timer.total_ms >= sum(timer.stages.values())

    def test_repeated_stage_is_summed(self, monkeypatch):
        ticks = itertools.chain([0.0, 1.0, 1.5, 2.0, 2.25], itertools.repeat(3.0))
        monkeypatch.setattr("src.services.timing.time.perf_counter", lambda: next(ticks))

        timer = StageTimer()
        with timer.stage("render"):
            pass
        with timer.stage("render"):
            pass

        assert timer.stages["render"] == pytest.approx(750.0)

    def test_stage_is_recorded_when_it_raises(self):
        timer = StageTimer()
        with pytest.raises(ValueError):
            with timer.stage("detect"):
                raise ValueError("boom")

        assert "detect" in timer.stages
