import importlib

import pytest
import anyio
import httpx

from services.workers.narrator.session import ReportSession


class FakeGenerator:
    def __init__(self):
        self.requests = []
        self.reports = ["# Sales Report\n\n## Key Findings\n\nRevenue **rose** in *February*."]
        self.error = None

    def __call__(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.reports[-1]


@pytest.fixture()
def api_app(monkeypatch):
    monkeypatch.delenv("GENERATION_API_KEY", raising=False)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

    from services.api import app as app_module

    importlib.reload(app_module)

    generator = FakeGenerator()
    app_module.session = ReportSession(generator, model="test-model", max_tokens=256)

    transport = httpx.ASGITransport(app=app_module.app)
    async_client = httpx.AsyncClient(transport=transport, base_url="http://testserver")

    class SyncClient:
        def request(self, method: str, url: str, **kwargs):
            return anyio.run(lambda: async_client.request(method, url, **kwargs))

        def get(self, url: str, **kwargs):
            return self.request("GET", url, **kwargs)

        def post(self, url: str, **kwargs):
            return self.request("POST", url, **kwargs)

        def put(self, url: str, **kwargs):
            return self.request("PUT", url, **kwargs)

    try:
        yield {
            "client": SyncClient(),
            "module": app_module,
            "generator": generator,
        }
    finally:
        anyio.run(async_client.aclose)
