"""Unit tests for the ResultAggregator class."""

import pytest

from load_panel.core.models import ResultSummary
from load_panel.core.results import ResultAggregator


@pytest.mark.unit
class TestResultAggregator:
    def test_empty_summary_is_zero(self):
        summary = ResultAggregator().summary()
        assert summary == ResultSummary()
        assert summary.count == 0
        assert summary.mean_execution_time_ms == 0.0
        assert summary.mean_cpu_ms == 0.0

    def test_summary_means(self, result_factory):
        agg = ResultAggregator()
        agg.append(result_factory(execution_time_ms=10, user=1.0, system=1.0))
        agg.append(result_factory(execution_time_ms=20, user=2.0, system=0.0))
        agg.append(result_factory(execution_time_ms=60, user=3.0, system=3.0))

        summary = agg.summary()
        assert summary.count == 3
        assert summary.mean_execution_time_ms == pytest.approx(30.0)
        assert summary.mean_cpu_ms == pytest.approx((2.0 + 2.0 + 6.0) / 3)
        assert summary.min_execution_time_ms == 10
        assert summary.max_execution_time_ms == 60

    def test_append_is_newest_first(self, result_factory):
        agg = ResultAggregator()
        first = result_factory(execution_time_ms=1)
        second = result_factory(execution_time_ms=2)
        agg.append(first)
        agg.append(second)
        assert agg.results == (second, first)

    def test_capacity_evicts_oldest(self, result_factory):
        agg = ResultAggregator(capacity=50)
        for i in range(120):
            agg.append(result_factory(execution_time_ms=i))
            assert len(agg) <= 50
        assert len(agg) == 50
        assert agg.results[0].execution_time_ms == 119
        assert agg.results[-1].execution_time_ms == 70

    def test_append_with_larger_capacity_override(self, result_factory):
        agg = ResultAggregator(capacity=50)
        for i in range(150):
            agg.append(result_factory(execution_time_ms=i), capacity=100)
        assert len(agg) == 100
        assert agg.results[0].execution_time_ms == 149

    def test_replace_keeps_given_order(self, result_factory):
        agg = ResultAggregator()
        agg.append(result_factory(execution_time_ms=999))
        batch = [result_factory(execution_time_ms=i) for i in range(4)]
        agg.replace(batch)
        assert [r.execution_time_ms for r in agg.results] == [0, 1, 2, 3]

    def test_replace_truncates_to_capacity(self, result_factory):
        agg = ResultAggregator(capacity=3)
        agg.replace(result_factory(execution_time_ms=i) for i in range(10))
        assert [r.execution_time_ms for r in agg.results] == [0, 1, 2]

    def test_clear(self, result_factory):
        agg = ResultAggregator()
        agg.append(result_factory())
        agg.clear()
        assert len(agg) == 0
        assert agg.summary().count == 0

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            ResultAggregator(capacity=0)
