import logging

import pytest
from fastapi import HTTPException
from httpx import ASGITransport, AsyncClient
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider

from stockroom.common import ServiceSettings, build_app, configure_logging
from stockroom.common.tracing import _INSTRUMENTED_APPS, configure_tracing, get_tracer


@pytest.mark.usefixtures("caplog")
class TestTracingInstrumentation:
    def test_tracing_sets_provider_once(self, caplog: pytest.LogCaptureFixture) -> None:
        settings = ServiceSettings(
            enable_tracing=True,
            enable_metrics=False,
            app_name="Tracing Test Service",
        )
        configure_logging(settings)
        caplog.set_level(logging.WARNING)
        before = len(_INSTRUMENTED_APPS)
        app = build_app(settings)
        after_first = len(_INSTRUMENTED_APPS)
        assert after_first == before + 1
        configure_tracing(app, settings)
        after_second = len(_INSTRUMENTED_APPS)
        assert after_second == after_first
        provider = trace.get_tracer_provider()
        assert isinstance(provider, TracerProvider)

    def test_logging_injects_trace_identifiers(self, caplog: pytest.LogCaptureFixture) -> None:
        settings = ServiceSettings(
            enable_tracing=True,
            enable_metrics=False,
            app_name="Logging Trace Test",
        )
        configure_logging(settings)
        build_app(settings)
        caplog.clear()
        tracer = get_tracer("tests")
        logger = logging.getLogger("trace-test")
        with caplog.at_level(logging.INFO):
            logger.info("outside span")
            outside_record = next(
                record for record in caplog.records if record.message == "outside span"
            )
            assert getattr(outside_record, "trace_id", "-") == "-"
            assert getattr(outside_record, "span_id", "-") == "-"
            with tracer.start_as_current_span("span"):
                logger.info("inside span")
        inside_record = next(record for record in caplog.records if record.message == "inside span")
        trace_id = getattr(inside_record, "trace_id", "-")
        span_id = getattr(inside_record, "span_id", "-")
        assert trace_id != "-"
        assert span_id != "-"
        assert len(trace_id) == 32
        assert len(span_id) == 16


class TestErrorRendering:
    @pytest.mark.asyncio
    async def test_errors_render_as_error_objects(self, caplog: pytest.LogCaptureFixture) -> None:
        app = build_app(ServiceSettings(enable_metrics=False, enable_tracing=False, app_name="Error Test"))

        @app.get("/boom")
        async def boom() -> None:
            raise RuntimeError("kaput")

        @app.get("/teapot")
        async def teapot() -> None:
            raise HTTPException(status_code=418, detail="short and stout")

        @app.get("/typed/{value}")
        async def typed(value: int) -> dict[str, int]:
            return {"value": value}

        transport = ASGITransport(app=app, raise_app_exceptions=False)
        with caplog.at_level(logging.ERROR):
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                crashed = await client.get("/boom")
                refused = await client.get("/teapot")
                invalid = await client.get("/typed/abc")

        assert crashed.status_code == 500
        assert crashed.json() == {"error": "Internal server error"}
        assert any("/boom" in record.getMessage() for record in caplog.records)
        assert refused.status_code == 418
        assert refused.json() == {"error": "short and stout"}
        assert invalid.status_code == 400
        assert invalid.json()["error"].startswith("path.value")
