"""Maturity rollup endpoints."""

from fastapi import APIRouter

from smt.api.deps import ReporterDep
from smt.schemas.rollup import CampaignResults, ModelMaturitySummary

router = APIRouter()


@router.get("/campaigns/{campaign_id}/results", response_model=CampaignResults)
async def get_campaign_results(campaign_id: str, reporter: ReporterDep):
    """Journey / activity / service breakdown plus the campaign-wide level."""
    return await reporter.campaign_results(campaign_id)


@router.get("/activities/{activity_id}/maturity", response_model=list[ModelMaturitySummary])
async def get_activity_maturity(activity_id: str, reporter: ReporterDep):
    return await reporter.activity_maturity(activity_id)


@router.get("/journeys/{journey_id}/maturity", response_model=list[ModelMaturitySummary])
async def get_journey_maturity(journey_id: str, reporter: ReporterDep):
    return await reporter.journey_maturity(journey_id)
