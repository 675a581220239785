"""
Tests for elastics/client.py and elastics/es_logger.py, without a live cluster.
"""

import pytest

from tclogger import logger

from elastics import es_logger
from elastics.client import ElasticSearchClient
from elastics.es_logger import ESDebugLogger
from elastics.webpages.errors import BackendFailure
from elastics.webpages.plans import CompiledPlan


class FakeResponse:
    def __init__(self, body: dict):
        self.body = body


class FakeElasticsearch:
    def __init__(self, error: Exception = None):
        self.error = error
        self.calls = []
        self.closed = False

    def search(self, index: str, body: dict):
        self.calls.append((index, body))
        if self.error is not None:
            raise self.error
        return FakeResponse({"hits": {"total": {"value": 0}, "hits": []}})

    def close(self):
        self.closed = True


def _make_plan() -> CompiledPlan:
    return CompiledPlan(
        indices=["cw12", "cc1511"],
        pre_query={"match_all": {}},
        terminate_after=100,
        size=10,
    )


def _make_client(fake: FakeElasticsearch) -> ElasticSearchClient:
    client = ElasticSearchClient({"host": "http://localhost:9200"}, verbose=False)
    client.client = fake
    return client


def test_execute():
    logger.note("> Test: execute compiled plan")
    fake = FakeElasticsearch()
    client = _make_client(fake)
    res = client.execute(_make_plan(), context="simple")
    assert res["hits"]["hits"] == []
    index, body = fake.calls[0]
    assert index == "cw12,cc1511"
    assert body["query"] == {"match_all": {}}
    assert body["terminate_after"] == 100
    client.close()
    assert fake.closed is True
    assert client.client is None
    logger.success("  PASSED")


def test_execute_failure(tmp_path, monkeypatch):
    logger.note("> Test: backend error -> BackendFailure and es.log entry")
    log_file = tmp_path / "logs" / "es.log"
    monkeypatch.setattr(es_logger, "_es_debug_logger", ESDebugLogger(log_file))
    client = _make_client(FakeElasticsearch(error=ConnectionError("refused")))

    with pytest.raises(BackendFailure) as exc_info:
        client.execute(_make_plan(), context="phrase")
    assert isinstance(exc_info.value.__cause__, ConnectionError)

    log_content = log_file.read_text(encoding="utf-8")
    assert "[ES ERROR]" in log_content
    assert "Index: cw12,cc1511" in log_content
    assert "Context: phrase" in log_content
    assert "Error Type: ConnectionError" in log_content
    assert '"match_all"' in log_content
    logger.success("  PASSED")


if __name__ == "__main__":
    test_execute()
    logger.success("\n✓ All client tests passed")

    # python -m tests.webpages.test_client
