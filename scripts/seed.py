#!/usr/bin/env python3
"""
Seed script: creates a demo journey, activities, services, maturity model,
measurements and an open campaign.
Run after migrations: python scripts/seed.py
"""

import asyncio
import os
import sys
from uuid import NAMESPACE_URL, uuid5

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from smt.config import settings
from smt.database import get_engine_url_and_connect_args
from smt.models import Activity, Campaign, Journey, MaturityModel, Measurement, Service


def _id(name: str) -> str:
    """Stable ids so re-running the seed is idempotent."""
    return str(uuid5(NAMESPACE_URL, f"smt-demo/{name}"))


JOURNEY = Journey(journey_id=_id("journey/checkout"), name="Checkout")
ACTIVITIES = [
    Activity(activity_id=_id("activity/cart"), name="Cart", journey_id=JOURNEY.journey_id),
    Activity(activity_id=_id("activity/payment"), name="Payment", journey_id=JOURNEY.journey_id),
]
SERVICES = [
    Service(service_id=_id("service/cart-api"), name="cart-api", activity_id=ACTIVITIES[0].activity_id),
    Service(service_id=_id("service/cart-ui"), name="cart-ui", activity_id=ACTIVITIES[0].activity_id),
    Service(service_id=_id("service/payment-gateway"), name="payment-gateway", activity_id=ACTIVITIES[1].activity_id),
]
MODEL = MaturityModel(maturity_model_id=_id("model/observability"), name="Observability")
MEASUREMENTS = [
    Measurement(measurement_id=_id(f"measurement/{name}"), maturity_model_id=MODEL.maturity_model_id, name=name)
    for name in (
        "Has centralized logging",
        "Exposes health endpoint",
        "Emits request metrics",
        "Has distributed tracing",
    )
]
CAMPAIGN = Campaign(
    campaign_id=_id("campaign/2026-q4"),
    maturity_model_id=MODEL.maturity_model_id,
    name="Observability 2026 Q4",
)


async def seed():
    url, connect_args = get_engine_url_and_connect_args(settings.database_url)
    engine = create_async_engine(url, connect_args=connect_args)
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        # merge() makes the seed safe to re-run
        for obj in [JOURNEY, *ACTIVITIES, *SERVICES, MODEL, *MEASUREMENTS, CAMPAIGN]:
            await session.merge(obj)
        await session.commit()

    await engine.dispose()

    print("Seed complete!")
    print(f"Campaign: {CAMPAIGN.campaign_id}")
    print("Example: curl -X POST http://localhost:8000/v1/evaluations/evidence \\")
    print('  -H "X-Actor-Id: demo-user" \\')
    print('  -H "Content-Type: application/json" \\')
    print(
        "  -d '{"
        f'"service_id":"{SERVICES[0].service_id}",'
        f'"measurement_id":"{MEASUREMENTS[0].measurement_id}",'
        f'"campaign_id":"{CAMPAIGN.campaign_id}",'
        '"evidence_location":"https://example.com/runbooks/logging",'
        '"notes":"Logs shipped to the central cluster since March"'
        "}'"
    )


if __name__ == "__main__":
    asyncio.run(seed())
