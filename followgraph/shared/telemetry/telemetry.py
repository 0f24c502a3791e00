"""OpenTelemetry tracing for the follow graph.

TelemetryConfig is built from Settings at startup, installs the global
tracer provider and instruments the SQL engine, the Redis client and
stdlib logging. Spans for follow/unfollow come from @traced.
"""

import logging
import threading

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from sqlalchemy.ext.asyncio import AsyncEngine

from followgraph.core.config import Settings

logger = logging.getLogger(__name__)

EXPORTERS = ("console", "otlp", "none")


class TelemetryConfig:
    """Tracer provider lifecycle plus library instrumentation.

    Exporters: console (local runs), otlp (collector over gRPC) or none
    (spans are created and sampled but never exported).
    """

    def __init__(
        self,
        service_name: str,
        service_version: str,
        environment: str = "development",
        exporter: str = "console",
        otlp_endpoint: str | None = None,
        sample_rate: float = 1.0,
    ) -> None:
        self.service_name = service_name
        self.service_version = service_version
        self.environment = environment
        self.exporter = exporter
        self.otlp_endpoint = otlp_endpoint
        self.sample_rate = sample_rate
        self.tracer_provider: TracerProvider | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "TelemetryConfig":
        return cls(
            service_name=settings.app_name,
            service_version=settings.app_version,
            environment=settings.telemetry_environment,
            exporter=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )

    def _build_exporter(self) -> SpanExporter | None:
        """Return the span exporter for self.exporter, or None for "none"."""
        if self.exporter == "none":
            return None
        if self.exporter == "otlp":
            if self.otlp_endpoint:
                return OTLPSpanExporter(
                    endpoint=self.otlp_endpoint,
                    insecure=self.otlp_endpoint.startswith("http://"),
                )
            logger.warning("TELEMETRY_OTLP_ENDPOINT not set; falling back to console exporter")
        elif self.exporter not in EXPORTERS:
            logger.warning("Unknown telemetry exporter '%s', using console", self.exporter)
        return ConsoleSpanExporter()

    def setup(self) -> TracerProvider | None:
        """Install the global tracer provider. Returns None if setup failed."""
        try:
            provider = TracerProvider(
                resource=Resource(
                    attributes={
                        SERVICE_NAME: self.service_name,
                        SERVICE_VERSION: self.service_version,
                        "deployment.environment": self.environment,
                    }
                ),
                sampler=ParentBased(TraceIdRatioBased(self.sample_rate)),
            )
            exporter = self._build_exporter()
            if exporter is not None:
                provider.add_span_processor(BatchSpanProcessor(exporter))
            trace.set_tracer_provider(provider)
        except Exception:
            logger.exception("Failed to initialize telemetry")
            return None
        self.tracer_provider = provider
        logger.info(
            "OpenTelemetry initialized: service=%s exporter=%s sample_rate=%s",
            self.service_name,
            self.exporter,
            self.sample_rate,
        )
        return provider

    def instrument(self, engine: AsyncEngine | None = None, redis_enabled: bool = False) -> None:
        """Instrument logging always, the SQL engine if given, Redis if enabled.

        Instrumentation failures are logged; tracing is never a reason to
        refuse startup.
        """
        if self.tracer_provider is None:
            return
        try:
            LoggingInstrumentor().instrument(
                tracer_provider=self.tracer_provider, set_logging_format=True
            )
            if engine is not None:
                SQLAlchemyInstrumentor().instrument(
                    engine=engine.sync_engine,
                    tracer_provider=self.tracer_provider,
                    enable_commenter=True,
                )
            if redis_enabled:
                RedisInstrumentor().instrument(tracer_provider=self.tracer_provider)
        except Exception:
            logger.exception("Failed to instrument follow graph dependencies")
            return
        logger.info(
            "Instrumented logging%s%s",
            ", sqlalchemy" if engine is not None else "",
            ", redis" if redis_enabled else "",
        )

    def shutdown(self) -> None:
        """Flush pending spans and shut the tracer provider down."""
        if self.tracer_provider is None:
            return
        try:
            self.tracer_provider.shutdown()
        except Exception:
            logger.exception("Error during telemetry shutdown")
        self.tracer_provider = None


_telemetry: TelemetryConfig | None = None
_telemetry_lock = threading.RLock()


def get_telemetry() -> TelemetryConfig | None:
    """Return the process telemetry instance (set by create_lifespan)."""
    with _telemetry_lock:
        return _telemetry


def set_telemetry(telemetry: TelemetryConfig | None) -> None:
    """Set (or clear, with None) the process telemetry instance."""
    global _telemetry
    with _telemetry_lock:
        _telemetry = telemetry
