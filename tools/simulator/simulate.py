#!/usr/bin/env python3
"""AquaWatch citizen report simulator.

Generates report traffic around a handful of contamination incidents, with
several citizens reporting each one from nearby, so hotspots and duplicate
groups show up on the server.

Usage:
    # 20 citizens around 4 incidents in Montreal for 2 minutes
    python -m tools.simulator.simulate --server http://localhost:4000 --citizens 20 --incidents 4 --duration 120

    # Specific location, wider spread
    python -m tools.simulator.simulate --center 48.8566,2.3522 --radius-km 8
"""

from __future__ import annotations

import argparse
import asyncio
import math
import random
import time
import uuid
from dataclasses import dataclass

import httpx

_NOTES = [
    "Brown water from the tap since this morning",
    "Strong chlorine smell",
    "Oily film on the surface near the outlet",
    "Dead fish along the bank",
    "Foam and odd colour downstream of the pipe",
]
_TYPES = ["chemical", "biological", "sediment", "unknown"]


@dataclass
class Incident:
    lat: float
    lng: float
    contamination_type: str


@dataclass
class SimCitizen:
    reporter_id: str
    incident: Incident
    reports_sent: int = 0
    errors: int = 0


def scatter(lat: float, lng: float, max_m: float) -> tuple[float, float]:
    """Random point within max_m meters of (lat, lng)."""
    angle = random.uniform(0, 2 * math.pi)
    dist_m = random.uniform(0, max_m)
    # Approximate: 1 degree latitude = 111,000 m
    dlat = dist_m * math.cos(angle) / 111_000
    dlng = dist_m * math.sin(angle) / (111_000 * math.cos(math.radians(lat)))
    return lat + dlat, lng + dlng


def make_report_payload(citizen: SimCitizen, spread_m: float) -> dict:
    lat, lng = scatter(citizen.incident.lat, citizen.incident.lng, spread_m)
    return {
        "lat": round(lat, 6),
        "lng": round(lng, 6),
        "notes": random.choice(_NOTES),
        "photos": [f"sim/{uuid.uuid4().hex[:12]}" for _ in range(random.randint(0, 2))],
        "contaminationType": citizen.incident.contamination_type,
        "reporterId": citizen.reporter_id,
    }


async def run_citizen(
    client: httpx.AsyncClient,
    citizen: SimCitizen,
    server_url: str,
    reports_per_minute: float,
    duration_seconds: float,
    spread_m: float,
) -> None:
    """Simulate one citizen reporting the same incident repeatedly."""
    interval = 60.0 / reports_per_minute
    end_time = time.monotonic() + duration_seconds

    # Stagger start so citizens don't all report at once.
    await asyncio.sleep(random.uniform(0, interval))

    while time.monotonic() < end_time:
        try:
            resp = await client.post(
                f"{server_url}/api/v1/reports",
                json=make_report_payload(citizen, spread_m),
            )
            if resp.status_code == 201:
                citizen.reports_sent += 1
            else:
                citizen.errors += 1
        except httpx.RequestError:
            citizen.errors += 1

        await asyncio.sleep(interval)


async def print_server_summary(client: httpx.AsyncClient, server_url: str) -> None:
    try:
        stats = (await client.get(f"{server_url}/api/v1/stats")).json()
        hotspots = (await client.get(f"{server_url}/api/v1/analytics/hotspots",
                                     params={"cellSize": 0.01})).json()
        duplicates = (await client.get(f"{server_url}/api/v1/reports/duplicates")).json()
    except (httpx.RequestError, ValueError) as exc:
        print(f"\nCould not read server summary: {exc}")
        return

    busiest = sorted(hotspots["cells"], key=lambda c: c["count"], reverse=True)[:5]
    print("\nServer stats:")
    print(f"  Reports received: {stats['reports_received']}")
    print(f"  Reports stored: {stats['reports_stored']}")
    print(f"  Active reporters: {stats['recent_activity']['active_reporters']}")
    print(f"  Hotspot cells: {len(hotspots['cells'])}")
    for cell in busiest:
        print(f"    {cell['count']:4d} @ {cell['center']['lat']:.3f}, {cell['center']['lng']:.3f}")
    print(f"  Duplicate groups: {len(duplicates['groups'])}")


async def run_simulation(args: argparse.Namespace) -> None:
    """Run the full simulation."""
    center_lat, center_lng = args.center
    incidents = []
    for _ in range(args.incidents):
        lat, lng = scatter(center_lat, center_lng, args.radius_km * 1000)
        incidents.append(Incident(lat=lat, lng=lng, contamination_type=random.choice(_TYPES)))

    citizens = [
        SimCitizen(reporter_id=str(uuid.uuid4()), incident=random.choice(incidents))
        for _ in range(args.citizens)
    ]

    print(f"Starting simulation: {args.citizens} citizens, {args.incidents} incidents")
    print(f"  Center: {center_lat:.4f}, {center_lng:.4f}")
    print(f"  Radius: {args.radius_km} km, report spread: {args.spread_m} m")
    print(f"  Duration: {args.duration}s")
    print(f"  Server: {args.server}")
    print()

    start = time.monotonic()

    async with httpx.AsyncClient(timeout=10.0) as client:
        tasks = [
            run_citizen(client, c, args.server, args.reports_per_minute,
                        args.duration, args.spread_m)
            for c in citizens
        ]
        await asyncio.gather(*tasks)

        elapsed = time.monotonic() - start
        total = sum(c.reports_sent for c in citizens)
        errors = sum(c.errors for c in citizens)

        print(f"\nSimulation complete in {elapsed:.1f}s")
        print(f"  Reports sent: {total}")
        print(f"  Errors: {errors}")

        await print_server_summary(client, args.server)


def main():
    parser = argparse.ArgumentParser(description="AquaWatch citizen report simulator")
    parser.add_argument("--server", default="http://localhost:4000", help="Server URL")
    parser.add_argument("--citizens", type=int, default=10, help="Number of simulated citizens")
    parser.add_argument("--incidents", type=int, default=3, help="Number of contamination incidents")
    parser.add_argument("--duration", type=int, default=60, help="Simulation duration in seconds")
    parser.add_argument("--reports-per-minute", type=float, default=2,
                        help="Reports per minute per citizen")
    parser.add_argument("--center", type=str, default="45.5017,-73.5673",
                        help="Center lat,lng (default: Montreal)")
    parser.add_argument("--radius-km", type=float, default=5.0,
                        help="Radius in km over which incidents are placed")
    parser.add_argument("--spread-m", type=float, default=150.0,
                        help="How far from its incident a report may land, in meters")

    args = parser.parse_args()

    lat, lng = args.center.split(",")
    args.center = (float(lat), float(lng))

    asyncio.run(run_simulation(args))


if __name__ == "__main__":
    main()
