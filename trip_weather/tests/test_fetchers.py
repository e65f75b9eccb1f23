"""Provider adapters against mocked upstream APIs (respx for httpx)."""
import asyncio
from datetime import date

import httpx
import pytest
import respx

from trip_weather.services.fetchers import (
    AccuWeatherFetcher,
    ClimateNormalsFetcher,
    OpenWeather18mFetcher,
    OpenWeatherFetcher,
    WeatherFetcher,
)
from trip_weather.services.icons import ICON_CODES
from trip_weather.services.retry import RetryPolicy

OW_BASE = "https://api.openweathermap.org"
ACCU_BASE = "http://dataservice.accuweather.com"
TOMORROW_BASE = "https://api.tomorrow.io"

LAT, LON = 48.85, 2.35


def run_fetch(fetcher_cls, base_url, iso_date, today=date(2024, 12, 28), api_key="test-key"):
    async def go():
        async with httpx.AsyncClient() as client:
            fetcher = fetcher_cls(
                api_key=api_key,
                base_url=base_url,
                client=client,
                retry=RetryPolicy(attempts=3, base_delay_s=0),
                clock=lambda: today,
            )
            return await fetcher.fetch(LAT, LON, iso_date)

    return asyncio.run(go())


def assert_valid(record, source, confidence):
    assert record is not None
    assert record.source == source
    assert record.confidence == confidence
    assert record.hi_c >= record.lo_c
    assert record.precip_mm >= 0
    assert record.icon in ICON_CODES


def _onecall_payload(days=8):
    return {
        "daily": [
            {
                "dt": 1735344000 + i * 86400,
                "temp": {"min": 0.96 + i, "max": 5.04 + i},
                "weather": [{"id": 500, "icon": "10d"}],
                **({"rain": 2.3} if i == 4 else {}),
            }
            for i in range(days)
        ]
    }


# OpenWeather (near-term) ----------------------------------------------------
@respx.mock
def test_openweather_picks_entry_at_day_offset():
    route = respx.get(f"{OW_BASE}/data/3.0/onecall").mock(
        return_value=httpx.Response(200, json=_onecall_payload())
    )
    record = run_fetch(OpenWeatherFetcher, OW_BASE, "2025-01-01")

    assert_valid(record, "openweather", "high")
    assert record.iso_date == "2025-01-01"
    assert record.hi_c == 9.0
    assert record.lo_c == 5.0
    assert record.precip_mm == 2.3
    assert record.icon == "10d"
    params = route.calls.last.request.url.params
    assert params["appid"] == "test-key"
    assert params["units"] == "metric"
    assert params["exclude"] == "current,minutely,hourly,alerts"


@respx.mock
def test_openweather_missing_rain_is_zero():
    respx.get(f"{OW_BASE}/data/3.0/onecall").mock(return_value=httpx.Response(200, json=_onecall_payload()))
    record = run_fetch(OpenWeatherFetcher, OW_BASE, "2024-12-29")
    assert record.precip_mm == 0.0


@respx.mock
def test_openweather_offset_beyond_forecast_returns_none():
    respx.get(f"{OW_BASE}/data/3.0/onecall").mock(return_value=httpx.Response(200, json=_onecall_payload(days=3)))
    assert run_fetch(OpenWeatherFetcher, OW_BASE, "2025-01-01") is None


@respx.mock
def test_openweather_http_error_is_not_retried():
    route = respx.get(f"{OW_BASE}/data/3.0/onecall").mock(return_value=httpx.Response(401, json={"cod": 401}))
    assert run_fetch(OpenWeatherFetcher, OW_BASE, "2025-01-01") is None
    assert route.call_count == 1


@respx.mock
def test_openweather_transport_errors_retried_then_none():
    route = respx.get(f"{OW_BASE}/data/3.0/onecall").mock(side_effect=httpx.ConnectError("unreachable"))
    assert run_fetch(OpenWeatherFetcher, OW_BASE, "2025-01-01") is None
    assert route.call_count == 3


@respx.mock
def test_openweather_recovers_after_transient_failure():
    route = respx.get(f"{OW_BASE}/data/3.0/onecall").mock(
        side_effect=[httpx.ConnectError("blip"), httpx.Response(200, json=_onecall_payload())]
    )
    record = run_fetch(OpenWeatherFetcher, OW_BASE, "2025-01-01")
    assert_valid(record, "openweather", "high")
    assert route.call_count == 2


@respx.mock
def test_openweather_malformed_json_returns_none():
    respx.get(f"{OW_BASE}/data/3.0/onecall").mock(return_value=httpx.Response(200, content=b"<html>oops"))
    assert run_fetch(OpenWeatherFetcher, OW_BASE, "2025-01-01") is None


@respx.mock(assert_all_called=False)
def test_missing_api_key_skips_request():
    route = respx.get(f"{OW_BASE}/data/3.0/onecall").mock(return_value=httpx.Response(200, json=_onecall_payload()))
    assert run_fetch(OpenWeatherFetcher, OW_BASE, "2025-01-01", api_key=None) is None
    assert route.call_count == 0


# AccuWeather (extended) -----------------------------------------------------
def _accu_day(iso, icon=18, rain=40, hi=8.26, lo=2.04):
    return {
        "Date": f"{iso}T07:00:00+01:00",
        "Temperature": {"Minimum": {"Value": lo, "Unit": "C"}, "Maximum": {"Value": hi, "Unit": "C"}},
        "Day": {"Icon": icon, "RainProbability": rain},
    }


def _mock_accu(days):
    respx.get(f"{ACCU_BASE}/locations/v1/cities/geoposition/search").mock(
        return_value=httpx.Response(200, json={"Key": "623", "LocalizedName": "Paris"})
    )
    return respx.get(f"{ACCU_BASE}/forecasts/v1/daily/45day/623").mock(
        return_value=httpx.Response(200, json={"DailyForecasts": days})
    )


@respx.mock
def test_accuweather_matches_calendar_date():
    route = _mock_accu([_accu_day("2025-01-19", icon=1), _accu_day("2025-01-20"), _accu_day("2025-01-21", icon=1)])
    record = run_fetch(AccuWeatherFetcher, ACCU_BASE, "2025-01-20", today=date(2025, 1, 1))

    assert_valid(record, "accuweather", "medium")
    assert record.hi_c == 8.3
    assert record.lo_c == 2.0
    assert record.precip_mm == pytest.approx(10.16)
    assert record.icon == "10d"
    assert route.calls.last.request.url.params["metric"] == "true"


@respx.mock
def test_accuweather_unknown_icon_defaults_to_clear():
    _mock_accu([_accu_day("2025-01-20", icon=99, rain=0)])
    record = run_fetch(AccuWeatherFetcher, ACCU_BASE, "2025-01-20", today=date(2025, 1, 1))
    assert record.icon == "01d"
    assert record.precip_mm == 0.0


@respx.mock
def test_accuweather_missing_rain_probability_returns_none():
    day = _accu_day("2025-01-20")
    del day["Day"]["RainProbability"]
    _mock_accu([day])
    assert run_fetch(AccuWeatherFetcher, ACCU_BASE, "2025-01-20", today=date(2025, 1, 1)) is None


@respx.mock
def test_accuweather_date_missing_returns_none():
    _mock_accu([_accu_day("2025-01-19")])
    assert run_fetch(AccuWeatherFetcher, ACCU_BASE, "2025-01-20", today=date(2025, 1, 1)) is None


@respx.mock(assert_all_called=False)
def test_accuweather_location_lookup_failure_returns_none():
    respx.get(f"{ACCU_BASE}/locations/v1/cities/geoposition/search").mock(return_value=httpx.Response(503))
    forecast = respx.get(f"{ACCU_BASE}/forecasts/v1/daily/45day/623").mock(return_value=httpx.Response(200, json={}))
    assert run_fetch(AccuWeatherFetcher, ACCU_BASE, "2025-01-20", today=date(2025, 1, 1)) is None
    assert forecast.call_count == 0


# OpenWeather day summary (long-range) ---------------------------------------
@respx.mock
def test_openweather18m_cloudy_dry_day():
    route = respx.get(f"{OW_BASE}/data/3.0/climate/day_summary").mock(
        return_value=httpx.Response(
            200,
            json={
                "date": "2025-06-01",
                "temperature": {"min": 12.34, "max": 21.06},
                "precipitation": {"total": 0},
                "cloud_cover": {"afternoon": 75},
            },
        )
    )
    record = run_fetch(OpenWeather18mFetcher, OW_BASE, "2025-06-01")

    assert_valid(record, "openweather18m", "low")
    assert (record.hi_c, record.lo_c) == (21.1, 12.3)
    assert record.precip_mm == 0.0
    assert record.icon == "03d"
    assert route.calls.last.request.url.params["date"] == "2025-06-01"


@respx.mock
def test_openweather18m_precipitation_means_rain():
    respx.get(f"{OW_BASE}/data/3.0/climate/day_summary").mock(
        return_value=httpx.Response(200, json={"temperature": {"min": 10, "max": 15}, "precipitation": 3.2, "clouds": 10})
    )
    record = run_fetch(OpenWeather18mFetcher, OW_BASE, "2025-06-01")
    assert record.precip_mm == 3.2
    assert record.icon == "10d"


@respx.mock
def test_openweather18m_defaults_to_partly_cloudy():
    respx.get(f"{OW_BASE}/data/3.0/climate/day_summary").mock(
        return_value=httpx.Response(200, json={"temperature": {"min": 10, "max": 15}})
    )
    record = run_fetch(OpenWeather18mFetcher, OW_BASE, "2025-06-01")
    assert record.precip_mm == 0.0
    assert record.icon == "02d"


@respx.mock
def test_openweather18m_inverted_temperatures_rejected():
    respx.get(f"{OW_BASE}/data/3.0/climate/day_summary").mock(
        return_value=httpx.Response(200, json={"temperature": {"min": 15, "max": 10}})
    )
    assert run_fetch(OpenWeather18mFetcher, OW_BASE, "2025-06-01") is None


# Tomorrow.io climate normals ------------------------------------------------
def _normals(*entries):
    return {"timelines": {"daily": [{"time": t, "values": v} for t, v in entries]}}


@respx.mock
def test_climate_normals_match_month_and_day_ignoring_year():
    route = respx.get(f"{TOMORROW_BASE}/v4/climate/normals").mock(
        return_value=httpx.Response(
            200,
            json=_normals(
                ("2024-07-14T00:00:00Z", {"temperatureMax": 30, "temperatureMin": 20, "precipitationProbability": 80}),
                (
                    "2024-07-15T00:00:00Z",
                    {"temperatureMax": 28.46, "temperatureMin": 17.0, "precipitationProbability": 20, "cloudCover": 30},
                ),
            ),
        )
    )
    record = run_fetch(ClimateNormalsFetcher, TOMORROW_BASE, "2028-07-15")

    assert_valid(record, "climateNormals", "low")
    assert record.iso_date == "2028-07-15"
    assert (record.hi_c, record.lo_c) == (28.5, 17.0)
    assert record.precip_mm == pytest.approx(5.08)
    assert record.icon == "02d"
    assert route.calls.last.request.url.params["location"] == f"{LAT},{LON}"


@respx.mock
def test_climate_normals_cold_day_is_snow():
    respx.get(f"{TOMORROW_BASE}/v4/climate/normals").mock(
        return_value=httpx.Response(
            200,
            json=_normals(
                ("2024-01-20T00:00:00Z", {"temperatureMax": 1.2, "temperatureMin": -3, "precipitationProbability": 10, "cloudCover": 20})
            ),
        )
    )
    record = run_fetch(ClimateNormalsFetcher, TOMORROW_BASE, "2027-01-20")
    assert record.icon == "13d"


@respx.mock
def test_climate_normals_missing_day_returns_none():
    respx.get(f"{TOMORROW_BASE}/v4/climate/normals").mock(
        return_value=httpx.Response(200, json=_normals(("2024-01-21T00:00:00Z", {"temperatureMax": 3, "temperatureMin": 0})))
    )
    assert run_fetch(ClimateNormalsFetcher, TOMORROW_BASE, "2027-01-20") is None


@respx.mock
def test_climate_normals_missing_precipitation_probability_returns_none():
    respx.get(f"{TOMORROW_BASE}/v4/climate/normals").mock(
        return_value=httpx.Response(
            200,
            json=_normals(("2024-01-20T00:00:00Z", {"temperatureMax": 6.0, "temperatureMin": 1.0, "cloudCover": 20})),
        )
    )
    assert run_fetch(ClimateNormalsFetcher, TOMORROW_BASE, "2027-01-20") is None


def test_fetcher_base_cannot_be_instantiated():
    with pytest.raises(TypeError):
        WeatherFetcher(api_key="k", base_url=OW_BASE, client=None)
