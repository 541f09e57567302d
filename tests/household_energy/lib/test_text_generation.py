from __future__ import annotations

import datetime as dt
import json

import httpx

from household_energy.lib.text_generation import HttpTextGenerationClient, build_prompt_payload
from household_energy.models.config import BudgetConfig, TextGenerationConfig
from household_energy.models.devices import Device
from household_energy.models.weather import WeatherForecast


def _client(
    handler: httpx.MockTransport,
    *,
    token: str | None = None,
    model: str | None = None,
) -> HttpTextGenerationClient:
    return HttpTextGenerationClient(
        config=TextGenerationConfig(base_url="https://llm.test/plan", token=token, model=model),
        transport=handler,
    )


async def test_generate_posts_task_and_returns_text() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"text": 'Here you go: {"plan": {}}'})

    reply = await _client(httpx.MockTransport(handler), token="secret", model="m1").generate(
        "cost", {"numDays": 30}
    )

    assert reply == 'Here you go: {"plan": {}}'
    request = seen[0]
    assert request.method == "POST"
    assert request.headers["Authorization"] == "Bearer secret"
    body = json.loads(request.content)
    assert body["task"] == "cost"
    assert body["model"] == "m1"
    assert body["data"] == {"numDays": 30}
    assert "JSON" in body["instructions"]


async def test_generate_returns_json_object_directly() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"emissionRatings": {"ac": 5}})

    reply = await _client(httpx.MockTransport(handler)).generate("emission_ratings", {})
    assert reply == {"emissionRatings": {"ac": 5}}


async def test_generate_without_token_sends_no_auth_header() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="plain reply")

    reply = await _client(httpx.MockTransport(handler)).generate("eco", {})

    assert reply == "plain reply"
    assert "Authorization" not in seen[0].headers
    assert "model" not in json.loads(seen[0].content)


async def test_generate_http_error_returns_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    assert await _client(httpx.MockTransport(handler)).generate("cost", {}) is None


async def test_generate_unexpected_reply_returns_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[1, 2, 3])

    assert await _client(httpx.MockTransport(handler)).generate("cost", {}) is None


def test_build_prompt_payload() -> None:
    payload = build_prompt_payload(
        devices=[
            Device(id="ac", name="AC", type="air conditioner", watts=1500, hours_per_day=8, priority=4)
        ],
        weather=[
            WeatherForecast(
                date=dt.date(2026, 10, 19),
                temp_min=24,
                temp_max=32,
                avg_temp=28,
                humidity=78,
                weather_code=2,
                condition="Partly cloudy",
            )
        ],
        budget=BudgetConfig(price_per_kwh=50, preferred_budget=45000, average_monthly_cost=50000),
        num_days=30,
    )

    assert payload["numDays"] == 30
    assert payload["devices"] == [
        {
            "id": "ac",
            "name": "AC",
            "type": "air conditioner",
            "watts": 1500,
            "priority": 4,
            "baselineHours": 8,
            "frequency": "daily",
        }
    ]
    assert payload["weather"][0]["date"] == "2026-10-19"
    assert payload["weather"][0]["condition"] == "Partly cloudy"
    assert payload["budget"] == {
        "pricePerKwh": 50,
        "preferredBudget": 45000,
        "averageMonthlyCost": 50000,
        "currency": "₦",
    }
