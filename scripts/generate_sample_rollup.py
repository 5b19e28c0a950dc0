#!/usr/bin/env python3
"""
Print a sample campaign rollup as JSON.
Runs the rollup engine in-memory (no DB/API needed).
Usage: python scripts/generate_sample_rollup.py
"""

import sys
from pathlib import Path
from types import SimpleNamespace

# Add project root
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from smt.engine.rollup import compute_campaign_results

CAMPAIGN_ID = "campaign-1"

# service -> statuses of its evaluations
SAMPLE = {
    "cart-api": ["implemented", "implemented", "implemented", "evidence_submitted"],
    "cart-ui": ["implemented", "not_implemented", "not_implemented", "not_implemented"],
    "payment-gateway": ["implemented", "implemented", "implemented", "implemented"],
}

ACTIVITY_OF = {
    "cart-api": SimpleNamespace(activity_id="cart", name="Cart"),
    "cart-ui": SimpleNamespace(activity_id="cart", name="Cart"),
    "payment-gateway": SimpleNamespace(activity_id="payment", name="Payment"),
}

JOURNEY_OF = {
    "cart": SimpleNamespace(journey_id="checkout", name="Checkout"),
    "payment": SimpleNamespace(journey_id="checkout", name="Checkout"),
}


def main():
    evaluations = [
        SimpleNamespace(service_id=service_id, campaign_id=CAMPAIGN_ID, status=status)
        for service_id, statuses in SAMPLE.items()
        for status in statuses
    ]
    results = compute_campaign_results(
        evaluations,
        ACTIVITY_OF,
        JOURNEY_OF,
        service_names={sid: sid for sid in SAMPLE},
    )
    print(results.model_dump_json(indent=2))


if __name__ == "__main__":
    main()
