"""Trip weather service.

Subpackages:
- api: FastAPI application, middleware and routes.
- schemas: Wire models for weather records and health.
- services: Source selection, provider fetchers, caching and fan-out.
- tests: Unit tests for the trip_weather package.
"""

__all__ = [
    "api",
    "schemas",
    "services",
]
