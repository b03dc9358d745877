import asyncio
import json
import os

import httpx
import pytest

from fleet_dashboard.config import DEFAULT_TIMEOUT
from fleet_dashboard.errors import FetchError, ParseError, TransportError
from fleet_dashboard.fetcher import SnapshotFetcher

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")
URL = "https://storage.example.com/dashboard-data/fleet.json"


def _fixture_bytes() -> bytes:
    with open(os.path.join(FIXTURES_DIR, "fleet_snapshot.json"), "rb") as f:
        return f.read()


def _fetcher(handler, url=URL, clock=None) -> SnapshotFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    kwargs = {"client": client}
    if clock is not None:
        kwargs["clock"] = clock
    return SnapshotFetcher(url, **kwargs)


def test_fetch_success():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, content=_fixture_bytes())

    result = asyncio.run(_fetcher(handler).fetch())

    assert result.ok
    assert result.error is None
    assert len(result.snapshot.deployments) == 5
    assert result.snapshot.subscription_name == "retail-prod"
    assert seen[0].method == "GET"
    assert "authorization" not in seen[0].headers


def test_cache_bust_param_changes_every_call():
    urls = []

    def handler(request):
        urls.append(request.url)
        return httpx.Response(200, json={"deployments": []})

    fetcher = _fetcher(handler, clock=lambda: 1760000000.0)

    async def run():
        await fetcher.fetch()
        await fetcher.fetch()

    asyncio.run(run())

    tokens = [int(u.params["t"]) for u in urls]
    assert tokens[0] == 1760000000000
    assert tokens[1] > tokens[0]
    assert urls[0].path == "/dashboard-data/fleet.json"


def test_cache_bust_keeps_existing_query():
    urls = []

    def handler(request):
        urls.append(request.url)
        return httpx.Response(200, json={})

    asyncio.run(_fetcher(handler, url=URL + "?sv=2024&sig=abc").fetch())

    assert urls[0].params["sv"] == "2024"
    assert urls[0].params["sig"] == "abc"
    assert "t" in urls[0].params


@pytest.mark.parametrize("status", [403, 404, 500, 503])
def test_http_error_status_is_transport_error(status):
    def handler(request):
        return httpx.Response(status, text="nope")

    result = asyncio.run(_fetcher(handler).fetch())

    assert not result.ok
    assert result.snapshot is None
    assert isinstance(result.error, TransportError)
    assert result.error.status_code == status
    assert str(status) in result.error.message


def test_connection_error_is_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = asyncio.run(_fetcher(handler).fetch())

    assert isinstance(result.error, TransportError)
    assert "connection refused" in result.error.message


def test_timeout_is_transport_error():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    result = asyncio.run(_fetcher(handler).fetch())

    assert isinstance(result.error, TransportError)
    assert "timed out" in result.error.message


def test_invalid_json_is_parse_error():
    def handler(request):
        return httpx.Response(200, text="<html>maintenance</html>")

    result = asyncio.run(_fetcher(handler).fetch())

    assert isinstance(result.error, ParseError)
    assert result.snapshot is None


def test_non_object_json_is_parse_error():
    def handler(request):
        return httpx.Response(200, text=json.dumps([1, 2, 3]))

    result = asyncio.run(_fetcher(handler).fetch())

    assert isinstance(result.error, ParseError)
    assert "list" in result.error.message


def test_fetch_document_raises():
    def handler(request):
        return httpx.Response(500)

    with pytest.raises(TransportError):
        asyncio.run(_fetcher(handler).fetch_document())


def test_permissive_optional_fields():
    def handler(request):
        return httpx.Response(
            200,
            json={
                "deployments": [{"cluster": "c1", "namespace": "n1", "extra": True}],
                "clusters": "not-a-list",
            },
        )

    result = asyncio.run(_fetcher(handler).fetch())

    assert result.ok
    d = result.snapshot.deployments[0]
    assert d.version is None
    assert d.pod_status is None
    assert d.admin_ui_url is None
    assert result.snapshot.clusters == ()
    assert result.snapshot.version_distribution == {}


def test_request_url_merges_signed_query():
    fetcher = SnapshotFetcher(URL + "?sv=2024&sig=abc%2Bdef", clock=lambda: 1.5)
    url = fetcher.request_url()

    assert url.params["sv"] == "2024"
    assert url.params["sig"] == "abc+def"
    assert url.params["t"] == "1500"
    assert url.path == "/dashboard-data/fleet.json"


def test_non_finite_count_does_not_escape_fetch():
    def handler(request):
        return httpx.Response(
            200,
            text='{"summary": {"totalClusters": 1e400,'
            ' "versionDistribution": {"v2504": 1e400}},'
            ' "clusters": [{"name": "c1", "nodeCount": -1e400}]}',
        )

    result = asyncio.run(_fetcher(handler).fetch())

    assert result.ok
    assert result.snapshot.version_distribution == {"v2504": 0}
    assert result.snapshot.counter("totalClusters") == 0
    assert result.snapshot.clusters[0].node_count == 0


def test_unusable_snapshot_shape_is_parse_error(monkeypatch):
    def handler(request):
        return httpx.Response(200, json={})

    def broken_snapshot(doc):
        raise ValueError("bad counter")

    monkeypatch.setattr("fleet_dashboard.fetcher.FleetSnapshot", broken_snapshot)

    result = asyncio.run(_fetcher(handler).fetch())

    assert isinstance(result.error, ParseError)
    assert "bad counter" in result.error.message


def test_any_fetch_error_becomes_a_result():
    class CustomFetchError(FetchError):
        pass

    class FailingFetcher(SnapshotFetcher):
        async def _get(self, client):
            raise CustomFetchError("storage account disabled", self.url)

    result = asyncio.run(FailingFetcher(URL, client=httpx.AsyncClient()).fetch())

    assert not result.ok
    assert isinstance(result.error, CustomFetchError)


def test_default_timeout_comes_from_config():
    assert SnapshotFetcher(URL).timeout == DEFAULT_TIMEOUT
