# backend/tests/unit/monitoring/test_prometheus_metrics.py
from unittest.mock import Mock

import pytest

from parkshare.core.config import settings
from parkshare.monitoring.prometheus_metrics import REGISTRY, PrometheusMetrics, prometheus_metrics
from parkshare.services.base import BaseService


def _sample(name, labels=None):
    return REGISTRY.get_sample_value(name, labels or {}) or 0


class _Widgets(BaseService):
    @BaseService.measure_operation("spin")
    def spin(self, fail=False):
        if fail:
            raise RuntimeError("jammed")
        return "ok"


class TestMeasureOperation:
    def test_success_recorded(self):
        labels = {"service": "_Widgets", "operation": "spin", "status": "success"}
        before = _sample("parkshare_service_operations_total", labels)
        assert _Widgets(Mock()).spin() == "ok"
        assert _sample("parkshare_service_operations_total", labels) == before + 1

    def test_error_recorded_and_reraised(self):
        labels = {"service": "_Widgets", "operation": "spin", "error_type": "RuntimeError"}
        before = _sample("parkshare_errors_total", labels)
        with pytest.raises(RuntimeError):
            _Widgets(Mock()).spin(fail=True)
        assert _sample("parkshare_errors_total", labels) == before + 1

    def test_in_process_metrics(self):
        service = _Widgets(Mock())
        service.spin()
        service.spin()
        stats = service.get_metrics()["spin"]
        assert stats["success_count"] >= 2
        assert stats["avg_time"] <= stats["max_time"]

    def test_disabled_skips_prometheus(self, monkeypatch):
        monkeypatch.setattr(settings, "metrics_enabled", False)
        labels = {"service": "_Widgets", "operation": "spin", "status": "success"}
        before = _sample("parkshare_service_operations_total", labels)
        _Widgets(Mock()).spin()
        assert _sample("parkshare_service_operations_total", labels) == before


class TestExposition:
    def test_counters_are_exposed(self):
        prometheus_metrics.inc_booking_conflict("create")
        text = prometheus_metrics.get_metrics().decode()
        assert 'parkshare_booking_conflicts_total{stage="create"}' in text

    def test_cache_invalidated_on_record(self):
        first = prometheus_metrics.get_metrics()
        assert prometheus_metrics.get_metrics() is first
        prometheus_metrics.inc_booking_created()
        assert PrometheusMetrics._cache_payload is None

    def test_content_type(self):
        assert prometheus_metrics.get_content_type().startswith("text/plain")
