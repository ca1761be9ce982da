"""Deterministic stand-in data returned when a source is unconfigured or fails.

Every builder is a pure function of its arguments so that degraded responses
are reproducible.
"""
from __future__ import annotations

import datetime as dt
from typing import List

from trip_rag.core.schemas import (
    Attraction,
    EMTItem,
    Hotel,
    LocalEvent,
    Location,
    TransportOption,
    WeatherCondition,
    WeatherForecast,
)


def mock_attractions(destination: str) -> List[Attraction]:
    return [
        Attraction(
            id="mock_1",
            name=f"{destination} Historic Center",
            type="culture",
            location=Location(address=f"Old Town, {destination}"),
            rating=4.5,
            price_level=1,
            opening_hours=["9:00-18:00", "Daily"],
            description="Historic downtown area with traditional architecture",
            tags=["historic", "walking", "culture"],
        ),
        Attraction(
            id="mock_2",
            name=f"{destination} Art Museum",
            type="museum",
            location=Location(address=f"Museum Quarter, {destination}"),
            rating=4.3,
            price_level=2,
            opening_hours=["10:00-17:00", "Tue-Sun"],
            description="Local art and cultural exhibits",
            tags=["art", "culture", "indoor"],
        ),
        Attraction(
            id="mock_3",
            name=f"{destination} Central Park",
            type="park",
            location=Location(address=f"City Center, {destination}"),
            rating=4.6,
            price_level=0,
            opening_hours=["6:00-22:00", "Daily"],
            description="Large green space for walks and picnics",
            tags=["nature", "outdoor", "relaxation"],
        ),
    ]


def mock_hotels(destination: str) -> List[Hotel]:
    return [
        Hotel(
            id="hotel_1",
            name=f"Grand {destination} Hotel",
            location=Location(address=f"Downtown, {destination}"),
            rating=4.2,
            price_per_night=120,
            amenities=["WiFi", "Pool", "Restaurant", "Gym"],
            booking_url="https://example.com/book",
        ),
        Hotel(
            id="hotel_2",
            name=f"{destination} Budget Inn",
            location=Location(address=f"City Center, {destination}"),
            rating=3.8,
            price_per_night=80,
            amenities=["WiFi", "Parking"],
            booking_url="https://example.com/book",
        ),
    ]


def mock_weather(start_date: dt.date, end_date: dt.date) -> WeatherForecast:
    """Mild weather for every day of the trip, inclusive of both ends."""

    forecast: List[WeatherCondition] = []
    day = start_date
    while day <= end_date:
        forecast.append(
            WeatherCondition(
                date=day,
                temperature=20.0 + len(forecast) % 5,
                description="Clear skies",
                humidity=60,
                wind_speed=8.0,
                icon="01d",
            )
        )
        day += dt.timedelta(days=1)

    return WeatherForecast(
        current=WeatherCondition(
            date=start_date,
            temperature=22.0,
            description="Partly cloudy",
            humidity=65,
            wind_speed=10.5,
            icon="02d",
        ),
        forecast=forecast,
    )


def mock_local_events(destination: str, start_date: dt.date) -> List[LocalEvent]:
    return [
        LocalEvent(
            id="event_1",
            name=f"{destination} Music Festival",
            location=Location(address=f"Central Park, {destination}"),
            date=start_date + dt.timedelta(days=1),
            category="Music",
            price=50.0,
            description="Annual music festival featuring local and international artists",
        ),
        LocalEvent(
            id="event_2",
            name=f"{destination} Food Market",
            location=Location(address=f"Market Square, {destination}"),
            date=start_date + dt.timedelta(days=2),
            category="Food",
            price=0.0,
            description="Weekly food market with local delicacies",
        ),
    ]


def mock_transportation(destination: str) -> List[TransportOption]:
    return [
        TransportOption(
            type="flight",
            from_="Current Location",
            to=destination,
            duration="2h 30m",
            price=299.99,
            provider="AirlineX",
        ),
        TransportOption(
            type="train",
            from_="Current Location",
            to=destination,
            duration="4h 15m",
            price=89.99,
            provider="RailService",
        ),
    ]


def emt_inventory(destination: str) -> List[EMTItem]:
    """Fixed emergency-services inventory for a destination."""

    return [
        EMTItem(
            id="emt_1",
            name=f"{destination} International Hospital",
            type="facility",
            location=Location(address=f"Medical District, {destination}"),
            description="24/7 emergency medical services for international travelers",
            contact="+1-800-MEDICAL",
        ),
        EMTItem(
            id="emt_2",
            name="Travel Medical Kit",
            type="equipment",
            location=Location(address=f"Pharmacy Chain, {destination}"),
            description="Essential medical supplies for travelers",
            contact="+1-800-PHARMACY",
        ),
    ]
