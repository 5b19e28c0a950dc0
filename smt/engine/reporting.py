"""Maturity reports - loads source data and runs the rollup engine.

Nothing here is cached: every call re-queries the stores so results are
never staler than the query that fed them.
"""

from smt.engine import rollup
from smt.errors import NotFoundError
from smt.models import Service
from smt.schemas.rollup import CampaignResults, LevelCount, ModelMaturitySummary
from smt.storage.interfaces import CatalogStore, EvaluationStore


class MaturityReporter:
    """Read-only: never writes, so it takes no locks."""

    def __init__(self, evaluations: EvaluationStore, catalog: CatalogStore):
        self.evaluations = evaluations
        self.catalog = catalog

    async def campaign_results(self, campaign_id: str) -> CampaignResults:
        if await self.catalog.get_campaign(campaign_id) is None:
            raise NotFoundError("Campaign not found")

        evaluations = await self.evaluations.list_for_campaign(campaign_id)

        service_ids = list(dict.fromkeys(ev.service_id for ev in evaluations))
        activity_of = {}
        service_names = {}
        for service_id in service_ids:
            service = await self.catalog.get_service(service_id)
            if service is not None:
                service_names[service_id] = service.name
            activity_of[service_id] = await self.catalog.activity_of(service_id)

        journey_of = {}
        for activity in activity_of.values():
            if activity is not None and activity.activity_id not in journey_of:
                journey_of[activity.activity_id] = await self.catalog.journey_of(
                    activity.activity_id
                )

        return rollup.compute_campaign_results(
            evaluations, activity_of, journey_of, service_names
        )

    async def level_distribution(self) -> list[LevelCount]:
        services = await self.catalog.list_services()
        service_ids = [s.service_id for s in services]
        evaluations = await self.evaluations.list_for_services(service_ids)
        return rollup.level_distribution(service_ids, evaluations)

    async def activity_maturity(self, activity_id: str) -> list[ModelMaturitySummary]:
        if await self.catalog.get_activity(activity_id) is None:
            raise NotFoundError("Activity not found")
        services = await self.catalog.services_of(activity_id)
        return await self._summarize(services)

    async def journey_maturity(self, journey_id: str) -> list[ModelMaturitySummary]:
        if await self.catalog.get_journey(journey_id) is None:
            raise NotFoundError("Journey not found")
        services: list[Service] = []
        for activity in await self.catalog.activities_of(journey_id):
            services.extend(await self.catalog.services_of(activity.activity_id))
        return await self._summarize(services)

    async def _summarize(self, services: list[Service]) -> list[ModelMaturitySummary]:
        if not services:
            return []
        evaluations = await self.evaluations.list_for_services(s.service_id for s in services)
        campaign_models = await self.catalog.campaign_models(
            {ev.campaign_id for ev in evaluations}
        )
        return rollup.summarize_by_maturity_model(evaluations, campaign_models)
