from fastapi.testclient import TestClient
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
import pytest

from app.main import app


@pytest.fixture
def span_exporter(monkeypatch: pytest.MonkeyPatch) -> InMemorySpanExporter:
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    monkeypatch.setattr(app.state, "tracer", provider.get_tracer("test"), raising=False)
    return exporter


def test_request_span_is_named_by_route_template(
    client: TestClient,
    span_exporter: InMemorySpanExporter,
) -> None:
    client.get("/jobs/1")
    client.get("/jobs/2")

    spans = span_exporter.get_finished_spans()
    assert [span.name for span in spans] == ["GET /jobs/{job_id}", "GET /jobs/{job_id}"]
    assert spans[0].attributes["http.route"] == "/jobs/{job_id}"
    assert spans[0].attributes["http.status_code"] == 200


def test_unrouted_request_span_keeps_method_name(
    client: TestClient,
    span_exporter: InMemorySpanExporter,
) -> None:
    response = client.get("/no-such-path")

    assert response.status_code == 404
    assert [span.name for span in span_exporter.get_finished_spans()] == ["GET"]
