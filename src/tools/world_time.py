from __future__ import annotations

import logging
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Callable, Iterator, Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from agent.errors import TimezoneResolutionError, UnsupportedCityError
from tools.base import ToolDescriptor, ToolParameter

logger = logging.getLogger(__name__)

TOOL_NAME = "GetCityTime"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_city(city: str) -> str:
    """Trim and title-case a city name: ``"  new   YORK "`` -> ``"New York"``.

    Hyphenated parts are capitalized separately, so ``"zürich-west"`` becomes
    ``"Zürich-West"``.
    """
    return " ".join(
        "-".join(part.capitalize() for part in word.split("-"))
        for word in str(city).lower().split()
    )


class CityTimezones(Mapping[str, str]):
    """Read-only city -> IANA timezone table with case-insensitive lookup."""

    def __init__(self, entries: Mapping[str, str]) -> None:
        self._entries = MappingProxyType(
            {normalize_city(city).casefold(): zone for city, zone in entries.items()}
        )
        self._names = tuple(normalize_city(city) for city in entries)

    def __getitem__(self, city: str) -> str:
        return self._entries[normalize_city(city).casefold()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def resolve(self, city: str) -> str:
        try:
            return self[city]
        except KeyError:
            raise UnsupportedCityError(normalize_city(city)) from None


DEFAULT_CITY_TIMEZONES = CityTimezones(
    {
        "Zurich": "Europe/Zurich",
        "Geneva": "Europe/Zurich",
        "London": "Europe/London",
        "New York": "America/New_York",
        "Tokyo": "Asia/Tokyo",
        "Sydney": "Australia/Sydney",
    }
)


def load_zone(timezone_id: str) -> ZoneInfo:
    try:
        return ZoneInfo(timezone_id)
    except ZoneInfoNotFoundError as exc:
        raise TimezoneResolutionError(timezone_id, "unknown timezone") from exc
    except (ValueError, OSError) as exc:
        raise TimezoneResolutionError(timezone_id, "timezone data could not be loaded") from exc


class CityTimeTool:
    def __init__(self, timezones: CityTimezones = DEFAULT_CITY_TIMEZONES, clock: Clock = utc_now) -> None:
        self.timezones = timezones
        self.clock = clock

    def get_city_time(self, city: str) -> str:
        name = normalize_city(city)
        try:
            timezone_id = self.timezones.resolve(name)
            zone = load_zone(timezone_id)
            local = self.clock().astimezone(zone)
        except UnsupportedCityError:
            logger.debug("No timezone mapping for %r", name)
            return f"I'm sorry, I don't have the timezone mapping for {name} in my database."
        except TimezoneResolutionError as exc:
            logger.warning("Timezone lookup failed for %s: %s", name, exc, exc_info=exc.__cause__)
            return f"Error retrieving time for {name}: {exc.reason} '{exc.timezone_id}'."
        except Exception:
            logger.exception("Unexpected failure while computing the time for %s", name)
            return f"Error retrieving time for {name}: the local time could not be computed."
        return f"It is {local:%H:%M} in {name}."

    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(
            name=TOOL_NAME,
            description="Get the current time for a specific city",
            func=self.get_city_time,
            parameters=[
                ToolParameter(
                    name="city",
                    description="The name of the city, e.g. Tokyo, Zurich, London",
                )
            ],
        )


def supported_cities(timezones: CityTimezones = DEFAULT_CITY_TIMEZONES) -> list[str]:
    return list(timezones)
