"""
Logging / Tracing 매니저

- 표준 logging 포맷 설정 (basicConfig)
- OpenTelemetry Tracer/Meter Provider 구성 (OTLP 엔드포인트가 있을 때만 외부로 내보냄)
- @traced, @trace_class 데코레이터: 메서드 호출마다 span 하나
  Repository 메서드의 span 에는 대상 테이블이 db.sql.table 속성으로 붙습니다.
"""

import inspect
import logging
from functools import wraps
from typing import Any, Callable, Dict, Optional

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Status, StatusCode

from notes_gateway.config.resources import LoggingConfig

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_tracer_provider: Optional[TracerProvider] = None
_meter_provider: Optional[MeterProvider] = None
_initialized = False
_service_version = "1.0.0"


def _build_resource(config: LoggingConfig) -> Resource:
    return Resource.create({
        "service.name": config.service_name,
        "service.version": config.service_version,
        "deployment.environment": config.environment,
    })


def _build_tracer_provider(config: LoggingConfig, resource: Resource) -> TracerProvider:
    provider = TracerProvider(resource=resource)
    if config.otlp_endpoint:
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=config.otlp_endpoint)))
    if config.enable_console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    return provider


def _build_meter_provider(config: LoggingConfig, resource: Resource) -> MeterProvider:
    readers = []
    if config.otlp_endpoint:
        readers.append(PeriodicExportingMetricReader(OTLPMetricExporter(endpoint=config.otlp_endpoint)))
    return MeterProvider(resource=resource, metric_readers=readers)


def initialize_logging(config: LoggingConfig) -> bool:
    """
    logging 과 OpenTelemetry 를 한 번만 초기화합니다.

    OpenTelemetry 구성에 실패해도 서비스는 추적 없이 계속 동작합니다.

    Returns:
        bool: OpenTelemetry 초기화 성공 여부
    """
    global _tracer_provider, _meter_provider, _initialized, _service_version

    if _initialized:
        return True

    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)
    _initialized = True
    _service_version = config.service_version

    try:
        resource = _build_resource(config)
        _tracer_provider = _build_tracer_provider(config, resource)
        _meter_provider = _build_meter_provider(config, resource)
        trace.set_tracer_provider(_tracer_provider)
        metrics.set_meter_provider(_meter_provider)
    except Exception:
        logger.warning("OpenTelemetry 초기화 실패 - 추적 없이 계속 진행합니다", exc_info=True)
        return False

    logger.info(
        "OpenTelemetry 초기화 완료: service=%s, environment=%s, otlp=%s",
        config.service_name,
        config.environment,
        bool(config.otlp_endpoint),
    )
    return True


def shutdown_logging() -> None:
    """남은 span/metric 을 내보내고 provider 종료"""
    global _tracer_provider, _meter_provider, _initialized
    if _tracer_provider is not None:
        _tracer_provider.shutdown()
        _tracer_provider = None
    if _meter_provider is not None:
        _meter_provider.shutdown()
        _meter_provider = None
    _initialized = False


def get_tracer(name: str) -> trace.Tracer:
    return trace.get_tracer(name, _service_version)


def get_meter(name: str) -> metrics.Meter:
    return metrics.get_meter(name, _service_version)


def is_initialized() -> bool:
    return _initialized


# ==================== Tracing Decorators ====================


def _span_attributes(args: tuple) -> Dict[str, Any]:
    """첫 인자(self)가 테이블을 가진 Repository 면 테이블 이름을 span 속성으로"""
    table = getattr(args[0], "table", None) if args else None
    return {"db.sql.table": table} if isinstance(table, str) else {}


def traced(operation_name: Optional[str] = None):
    """
    함수/메서드 호출을 span 으로 감쌉니다. 예외는 span 에 기록한 뒤 그대로 전파합니다.
    """

    def decorator(func: Callable) -> Callable:
        tracer = get_tracer(func.__module__)
        span_name = operation_name or func.__qualname__

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                with tracer.start_as_current_span(span_name, attributes=_span_attributes(args)) as span:
                    try:
                        result = await func(*args, **kwargs)
                    except Exception as e:
                        span.record_exception(e)
                        span.set_status(Status(StatusCode.ERROR, str(e)))
                        raise
                    span.set_status(Status(StatusCode.OK))
                    return result

            return async_wrapper

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            with tracer.start_as_current_span(span_name, attributes=_span_attributes(args)) as span:
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    span.record_exception(e)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    raise
                span.set_status(Status(StatusCode.OK))
                return result

        return sync_wrapper

    return decorator


def trace_class(cls):
    """
    public 메서드 전체에 @traced 적용 (상속 메서드 포함)
    staticmethod/classmethod/property 와 _ 로 시작하는 이름은 건너뜁니다.
    """
    for attr_name in dir(cls):
        if attr_name.startswith("_"):
            continue
        raw = inspect.getattr_static(cls, attr_name)
        if isinstance(raw, (staticmethod, classmethod, property)):
            continue
        if inspect.isfunction(raw):
            setattr(cls, attr_name, traced()(raw))
    return cls
