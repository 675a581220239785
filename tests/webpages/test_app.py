"""
Tests for apps/search_app.py: HTTP surface over a fake backend.
"""

from fastapi.testclient import TestClient
from tclogger import logger

from apps.search_app import SearchApp, to_int, to_list, is_flag_set
from elastics.webpages.config import SearchConfig
from elastics.webpages.errors import BackendFailure
from elastics.webpages.searcher import WebpageSearcher

APP_ENVS = {"app_name": "Webpage Search", "version": "0.1.0"}
SEARCH_ENVS = {
    "indices": ["cw12", "cc1511"],
    "default_indices": ["cw12"],
    "default_simple": {"main_fields": [{"name": "title_lang.%lang%"}]},
    "phrase_search": {"slop": 0, "max_slop": 2},
}
RES_DICT = {
    "hits": {
        "total": {"value": 1},
        "hits": [
            {
                "_id": "doc-1",
                "_index": "cw12",
                "_score": 3.0,
                "_source": {
                    "warc_target_hostname": "example.com",
                    "title_lang": {"en": "Hello"},
                },
            }
        ],
    }
}


class FakeBackend:
    def __init__(self, error: Exception = None):
        self.error = error
        self.plans = []
        self.contexts = []
        self.closed = False

    def execute(self, plan, context: str = None) -> dict:
        self.plans.append(plan)
        self.contexts.append(context)
        if self.error is not None:
            raise self.error
        return RES_DICT

    def close(self):
        self.closed = True


def _make_client(backend: FakeBackend) -> TestClient:
    config = SearchConfig.from_envs(SEARCH_ENVS, {"results_per_page": 10})
    searcher = WebpageSearcher(config, backend)
    return TestClient(SearchApp(APP_ENVS, searcher=searcher).app)


def test_param_helpers():
    logger.note("> Test: request param helpers")
    assert to_int("3") == 3
    assert to_int(" 7 ") == 7
    assert to_int("abc") is None
    assert to_int(None) is None
    assert to_list("cw12, cc1511") == ["cw12", "cc1511"]
    assert to_list(["cw12,cc1511", "cc1704"]) == ["cw12", "cc1511", "cc1704"]
    assert to_list("") is None
    assert is_flag_set("") is True
    assert is_flag_set("false") is False
    assert is_flag_set(None) is False
    assert is_flag_set(True) is True
    logger.success("  PASSED")


def test_get_search():
    logger.note("> Test: GET /api/v1/_search")
    backend = FakeBackend()
    client = _make_client(backend)
    resp = client.get(
        "/api/v1/_search",
        params={"query": "hello", "index": "cc1511", "from": "3", "size": "5"},
    )
    assert resp.status_code == 200
    res = resp.json()
    assert res["meta"]["total_results"] == 1
    assert res["meta"]["indices"] == ["cc1511"]
    assert res["results"][0]["uuid"] == "doc-1"
    assert res["results"][0]["title"] == "Hello"
    assert backend.contexts == ["simple"]
    assert backend.plans[0].from_ == 3
    assert backend.plans[0].size == 5
    assert backend.plans[0].explain is False
    logger.success("  PASSED")


def test_get_search_q_and_explain():
    logger.note("> Test: `q` fallback and presence flag `explain`")
    backend = FakeBackend()
    client = _make_client(backend)
    resp = client.get("/api/v1/_search?q=hello&explain")
    assert resp.status_code == 200
    assert backend.plans[0].explain is True
    assert backend.plans[0].from_ == 1
    assert backend.plans[0].size == 10
    logger.success("  PASSED")


def test_post_phrases():
    logger.note("> Test: POST /api/v1/_phrases")
    backend = FakeBackend()
    client = _make_client(backend)
    resp = client.post(
        "/api/v1/_phrases",
        json={"query": "hello world", "slop": 2, "from": 11, "index": ["cw12"]},
    )
    assert resp.status_code == 200
    assert backend.contexts == ["phrase"]
    plan = backend.plans[0]
    assert plan.collapse_field == "warc_target_hostname.raw"
    assert plan.from_ == 11
    assert plan.indices == ["cw12"]
    logger.success("  PASSED")


def test_empty_query():
    logger.note("> Test: empty query -> 400")
    backend = FakeBackend()
    client = _make_client(backend)
    for resp in [
        client.get("/api/v1/_search"),
        client.get("/api/v1/_phrases", params={"query": "   "}),
        client.post("/api/v1/_search", json={"query": ""}),
    ]:
        assert resp.status_code == 400
        assert resp.json() == {"detail": "Empty search query"}
    assert backend.plans == []
    logger.success("  PASSED")


def test_backend_failure():
    logger.note("> Test: backend failure -> 503")
    backend = FakeBackend(error=BackendFailure("Search backend unavailable"))
    client = _make_client(backend)
    resp = client.get("/api/v1/_search", params={"query": "hello"})
    assert resp.status_code == 503
    assert resp.json() == {"detail": "Search backend unavailable"}
    logger.success("  PASSED")


def test_lifespan_closes_backend():
    logger.note("> Test: backend closed on shutdown")
    backend = FakeBackend()
    with _make_client(backend) as client:
        assert client.get("/api/v1/_search", params={"q": "x"}).status_code == 200
        assert backend.closed is False
    assert backend.closed is True
    logger.success("  PASSED")


if __name__ == "__main__":
    test_param_helpers()
    test_get_search()
    test_get_search_q_and_explain()
    test_post_phrases()
    test_empty_query()
    test_backend_failure()
    test_lifespan_closes_backend()
    logger.success("\n✓ All app tests passed")

    # python -m tests.webpages.test_app
