"""Tests for the dashboard service wiring, caching and degradation."""

from __future__ import annotations

import asyncio
import dataclasses

import httpx
import pytest

from local_feed.cache import TTLCache
from local_feed.config import FALLBACK_EQUITIES, Settings
from local_feed.errors import UpstreamExhausted
from local_feed.http.fetcher import TextFetcher
from local_feed.service import DashboardService

LISTING = (
    '<table class="type_2"><thead><tr><th>N</th><th>종목명</th><th>거래대금</th></tr></thead>'
    '<tr><td>1</td><td><a href="/item/main.naver?code=005930">삼성전자</a></td><td>900</td></tr>'
    '<tr><td>2</td><td><a href="/item/main.naver?code=000660">SK하이닉스</a></td><td>800</td></tr>'
    "</table>"
)

QUOTE = (
    '<p class="no_today"><span class="blind">72,300</span></p>'
    '<p class="no_exday"><span class="blind">상승</span><span class="blind">1,200</span>'
    '<span class="blind">1.69%</span></p>'
)

NAVER_FX = '<p class="no_today"><span class="blind">1,385.50</span></p>'


def _atom(n: int) -> str:
    entries = "".join(
        f'<entry><title>t{i}</title><link href="https://s/{i}"/><id>https://s/{i}</id>'
        f"<updated>2024-05-0{i + 1}T00:00:00Z</updated></entry>"
        for i in range(n)
    )
    return f'<feed xmlns="http://www.w3.org/2005/Atom"><title>Wire</title>{entries}</feed>'


class Recorder:
    """Mock transport handler that counts requests per matched pattern."""

    def __init__(self, routes: dict[str, object]) -> None:
        self.routes = routes
        self.hits: dict[str, int] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        for pattern, response in self.routes.items():
            if pattern in url:
                self.hits[pattern] = self.hits.get(pattern, 0) + 1
                if isinstance(response, type) and issubclass(response, Exception):
                    raise response("simulated", request=request)
                return httpx.Response(
                    response.status_code, headers=response.headers, content=response.content
                )
        return httpx.Response(404, text="Not found")


def _make_service(recorder: Recorder, **settings: object) -> DashboardService:
    client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    return DashboardService(
        Settings(fetch_timeout=1.0, **settings),
        fetcher=TextFetcher(client=client, timeout=1.0),
        cache=TTLCache(),
    )


class TestWiring:
    def test_injected_collaborators_are_used(self) -> None:
        recorder = Recorder({"wire.example": httpx.Response(200, text=_atom(2))})
        client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
        fetcher = TextFetcher(client=client, timeout=1.0)
        cache = TTLCache()

        service = DashboardService(Settings(fetch_timeout=1.0), fetcher=fetcher, cache=cache)
        service.aggregator.feeds_for = lambda _cat: ["https://wire.example/atom"]

        assert service.cache is cache
        assert service.fetcher is fetcher

        asyncio.run(service.news("economy"))

        assert "news:economy" in cache
        assert len(cache) == 1

    def test_cached_aggregate_is_immutable(self) -> None:
        recorder = Recorder({"wire.example": httpx.Response(200, text=_atom(2))})
        service = _make_service(recorder)
        service.aggregator.feeds_for = lambda _cat: ["https://wire.example/atom"]

        async def run_test():
            first = await service.news("economy")
            with pytest.raises(dataclasses.FrozenInstanceError):
                first.items = ()
            with pytest.raises(AttributeError):
                first.items.append(first.items[0])
            return await service.news("economy")

        result = asyncio.run(run_test())

        assert isinstance(result.items, tuple)
        assert len(result.items) == 2


class TestStocks:
    def test_fx_outage_keeps_quotes(self) -> None:
        recorder = Recorder(
            {
                "exchangeDetail": httpx.Response(503),
                "er-api": httpx.Response(503),
                "sise_": httpx.Response(200, text=LISTING),
                "item/main.naver": httpx.Response(200, text=QUOTE),
            }
        )
        service = _make_service(recorder)

        snapshot = asyncio.run(service.stocks())

        assert snapshot.fx.rate is None
        assert "FX fallback failed" in snapshot.fx.error
        assert [q.code for q in snapshot.items] == ["005930", "000660"]
        assert snapshot.items[0].name == "삼성전자"
        assert snapshot.items[0].price == 72300
        assert snapshot.to_dict()["fx"]["usd_krw"] is None

    def test_ranking_outage_uses_static_list(self) -> None:
        recorder = Recorder(
            {
                "exchangeDetail": httpx.Response(200, text=NAVER_FX),
                "item/main.naver": httpx.Response(200, text=QUOTE),
            }
        )
        service = _make_service(recorder, stock_count=3)

        snapshot = asyncio.run(service.stocks())

        assert snapshot.fx.rate == 1385.5
        assert [q.code for q in snapshot.items] == [c.code for c in FALLBACK_EQUITIES[:3]]


class TestCaching:
    def test_fx_served_from_cache(self) -> None:
        recorder = Recorder({"exchangeDetail": httpx.Response(200, text=NAVER_FX)})
        service = _make_service(recorder)

        async def run_test():
            first = await service.fx()
            second = await service.fx()
            return first, second

        first, second = asyncio.run(run_test())

        assert first is second
        assert recorder.hits["exchangeDetail"] == 1

    def test_concurrent_news_requests_share_one_fetch(self) -> None:
        recorder = Recorder({"wire.example": httpx.Response(200, text=_atom(2))})
        service = _make_service(recorder)
        service.aggregator.feeds_for = lambda _cat: ["https://wire.example/atom"]

        async def run_test():
            return await asyncio.gather(*(service.news("economy") for _ in range(5)))

        results = asyncio.run(run_test())

        assert all(r is results[0] for r in results)
        assert recorder.hits["wire.example"] == 1

    def test_fx_failure_not_cached(self) -> None:
        recorder = Recorder({})
        service = _make_service(recorder)

        async def run_test():
            with pytest.raises(UpstreamExhausted):
                await service.fx()
            recorder.routes["exchangeDetail"] = httpx.Response(200, text=NAVER_FX)
            return await service.fx()

        assert asyncio.run(run_test()).rate == 1385.5


class TestNews:
    def test_one_feed_timing_out(self) -> None:
        recorder = Recorder(
            {
                "good.example": httpx.Response(200, text=_atom(3)),
                "slow.example": httpx.ReadTimeout,
            }
        )
        service = _make_service(recorder)
        service.aggregator.feeds_for = lambda _cat: [
            "https://good.example/atom",
            "https://slow.example/rss",
        ]

        result = asyncio.run(service.news("sports"))

        assert len(result.items) == 3
        assert result.failure_count == 1
        assert result.category.id == "sports"
        assert result.items[0].title == "t2"

    def test_unknown_category_shares_default_key(self) -> None:
        recorder = Recorder({"wire.example": httpx.Response(200, text=_atom(1))})
        service = _make_service(recorder)
        service.aggregator.feeds_for = lambda _cat: ["https://wire.example/atom"]

        async def run_test():
            await service.news("nope")
            await service.news("all")

        asyncio.run(run_test())
        assert recorder.hits["wire.example"] == 1
        assert "news:all" in service.cache


def test_meta_is_static() -> None:
    data = DashboardService.meta()
    assert [c["id"] for c in data["categories"]][:2] == ["all", "politics"]
    assert "lat" not in data["locations"][0]
