"""OpenTelemetry + Prometheus fallback wiring for cchistory."""
from __future__ import annotations

import logging
from typing import Any

from cchistory import config

logger = logging.getLogger("cchistory.observability")


_initialized = False
_enabled = False
_meter_provider: Any | None = None

_commands_counter: Any | None = None
_parser_failure_counter: Any | None = None

_prom_enabled = False
_prom_commands_counter: Any | None = None
_prom_parser_failure_counter: Any | None = None


def _normalize_otlp_endpoint(base_endpoint: str, signal_path: str) -> str:
    endpoint = (base_endpoint or "").strip()
    if not endpoint:
        return ""
    if endpoint.endswith(signal_path):
        return endpoint
    if endpoint.endswith("/"):
        endpoint = endpoint[:-1]
    if endpoint.endswith("/v1"):
        return f"{endpoint}{signal_path[3:]}"
    return f"{endpoint}{signal_path}"


def _labels(**values: str) -> dict[str, str]:
    return {key: (value or "").strip() or "unknown" for key, value in values.items()}


def initialize() -> None:
    global _initialized, _enabled, _meter_provider
    global _commands_counter, _parser_failure_counter
    global _prom_enabled, _prom_commands_counter, _prom_parser_failure_counter

    if _initialized:
        return

    _initialized = True

    if not config.OTEL_ENABLED:
        logger.debug("OpenTelemetry disabled (CCHISTORY_OTEL_ENABLED=false)")
        return

    try:
        from opentelemetry import metrics
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
        from opentelemetry.sdk.resources import Resource
    except ImportError as exc:
        logger.warning("OpenTelemetry dependencies unavailable: %s", exc)
        return

    metrics_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/metrics")
    service_name = config.OTEL_SERVICE_NAME or "cchistory"

    resource = Resource.create(
        {
            "service.name": service_name,
            "service.namespace": "cchistory",
        }
    )

    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=metrics_endpoint or None)
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    metrics.set_meter_provider(meter_provider)
    meter = metrics.get_meter("cchistory")

    _commands_counter = meter.create_counter(
        "cchistory_commands_total",
        unit="1",
        description="Commands recovered from conversation logs",
    )
    _parser_failure_counter = meter.create_counter(
        "cchistory_parser_failures_total",
        unit="1",
        description="Count of line, file and directory read failures",
    )

    _meter_provider = meter_provider
    _enabled = True

    if config.PROM_PORT > 0:
        try:
            from prometheus_client import Counter, start_http_server

            start_http_server(config.PROM_PORT)
            _prom_enabled = True
            _prom_commands_counter = Counter(
                "cchistory_commands_total",
                "Commands recovered from conversation logs",
                ["source", "status"],
            )
            _prom_parser_failure_counter = Counter(
                "cchistory_parser_failures_total",
                "Count of line, file and directory read failures",
                ["category", "project"],
            )
            logger.info("Prometheus fallback metrics server listening on port %s", config.PROM_PORT)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Prometheus fallback not started: %s", exc)
            _prom_enabled = False

    logger.info(
        "OpenTelemetry initialized (service=%s endpoint=%s)",
        service_name,
        config.OTEL_ENDPOINT,
    )


def shutdown() -> None:
    global _enabled
    if not _initialized:
        return
    try:
        if _meter_provider is not None:
            _meter_provider.shutdown()
    except Exception as exc:  # noqa: BLE001
        logger.debug("Meter provider shutdown failed: %s", exc)
    _enabled = False


def record_command(source: str, success: bool) -> None:
    labels = _labels(source=source, status="success" if success else "error")
    if _enabled and _commands_counter is not None:
        _commands_counter.add(1, labels)
    if _prom_enabled and _prom_commands_counter is not None:
        _prom_commands_counter.labels(**labels).inc()


def record_parser_failure(category: str, *, project_id: str = "") -> None:
    labels = _labels(category=category, project=project_id)
    if _enabled and _parser_failure_counter is not None:
        _parser_failure_counter.add(1, labels)
    if _prom_enabled and _prom_parser_failure_counter is not None:
        _prom_parser_failure_counter.labels(**labels).inc()
