"""Shared fixtures: in-memory stores standing in for the SQL repositories."""

from collections.abc import Iterable

import httpx
import pytest

from smt.engine.lifecycle import EvaluationLifecycle
from smt.engine.reporting import MaturityReporter
from smt.models import (
    Activity,
    Campaign,
    EvaluationHistory,
    EvaluationKey,
    Journey,
    MaturityModel,
    Measurement,
    MeasurementEvaluation,
    Service,
)
from smt.models.evaluation import utcnow

SERVICE_ID = "svc-1"
MEASUREMENT_ID = "m-1"
CAMPAIGN_ID = "camp-1"

LONG_PAGE = "<html><body>" + "Runbook for centralized logging. " * 20 + "</body></html>"
GOOD_NOTES = "Looks good, fully rolled out"


class InMemoryEvaluationStore:
    def __init__(self):
        self.records: dict[str, MeasurementEvaluation] = {}
        self.commits = 0

    async def get(self, key: EvaluationKey, *, for_update: bool = False):
        for evaluation in self.records.values():
            if evaluation.key == key:
                return evaluation
        return None

    async def get_by_id(self, evaluation_id: str, *, for_update: bool = False):
        return self.records.get(evaluation_id)

    async def get_or_create(self, key: EvaluationKey):
        evaluation = await self.get(key)
        if evaluation is None:
            evaluation = MeasurementEvaluation.initial(key)
            self.records[evaluation.evaluation_id] = evaluation
        return evaluation

    async def save(self, evaluation: MeasurementEvaluation):
        evaluation.updated_at = utcnow()
        self.records[evaluation.evaluation_id] = evaluation
        return evaluation

    async def list_for_campaign(self, campaign_id: str):
        return [e for e in self.records.values() if e.campaign_id == campaign_id]

    async def list_for_services(self, service_ids: Iterable[str]):
        ids = set(service_ids)
        return [e for e in self.records.values() if e.service_id in ids]

    async def commit(self):
        self.commits += 1

    def add(self, service_id, measurement_id, campaign_id, status="not_implemented", **fields):
        """Seed a record directly, bypassing the lifecycle."""
        evaluation = MeasurementEvaluation.initial(
            EvaluationKey(service_id, measurement_id, campaign_id)
        )
        evaluation.status = status
        for name, value in fields.items():
            setattr(evaluation, name, value)
        self.records[evaluation.evaluation_id] = evaluation
        return evaluation


class InMemoryHistoryStore:
    def __init__(self):
        self.entries: list[EvaluationHistory] = []

    async def append(self, entry: EvaluationHistory):
        entry.sequence = len(self.entries) + 1
        self.entries.append(entry)
        return entry

    async def list_for_evaluation(self, evaluation_id: str):
        rows = [e for e in self.entries if e.evaluation_id == evaluation_id]
        return sorted(rows, key=lambda e: (e.created_at, e.sequence), reverse=True)


class InMemoryCatalogStore:
    def __init__(self):
        self.journeys: dict[str, Journey] = {}
        self.activities: dict[str, Activity] = {}
        self.services: dict[str, Service] = {}
        self.models: dict[str, MaturityModel] = {}
        self.measurements: dict[str, Measurement] = {}
        self.campaigns: dict[str, Campaign] = {}

    def add_journey(self, journey_id, name=None):
        self.journeys[journey_id] = Journey(journey_id=journey_id, name=name or journey_id)

    def add_activity(self, activity_id, journey_id=None, name=None):
        self.activities[activity_id] = Activity(
            activity_id=activity_id, name=name or activity_id, journey_id=journey_id
        )

    def add_service(self, service_id, activity_id=None, name=None):
        self.services[service_id] = Service(
            service_id=service_id, name=name or service_id, activity_id=activity_id
        )

    def add_model(self, model_id, name=None):
        self.models[model_id] = MaturityModel(maturity_model_id=model_id, name=name or model_id)

    def add_measurement(self, measurement_id, model_id="model-1"):
        self.measurements[measurement_id] = Measurement(
            measurement_id=measurement_id, maturity_model_id=model_id, name=measurement_id
        )

    def add_campaign(self, campaign_id, model_id="model-1", name=None):
        self.campaigns[campaign_id] = Campaign(
            campaign_id=campaign_id, maturity_model_id=model_id, name=name or campaign_id
        )

    async def services_of(self, activity_id):
        return [s for s in self.services.values() if s.activity_id == activity_id]

    async def activities_of(self, journey_id):
        return [a for a in self.activities.values() if a.journey_id == journey_id]

    async def activity_of(self, service_id):
        service = self.services.get(service_id)
        if service is None or service.activity_id is None:
            return None
        return self.activities.get(service.activity_id)

    async def journey_of(self, activity_id):
        activity = self.activities.get(activity_id)
        if activity is None or activity.journey_id is None:
            return None
        return self.journeys.get(activity.journey_id)

    async def list_services(self):
        return list(self.services.values())

    async def get_service(self, service_id):
        return self.services.get(service_id)

    async def get_activity(self, activity_id):
        return self.activities.get(activity_id)

    async def get_journey(self, journey_id):
        return self.journeys.get(journey_id)

    async def get_campaign(self, campaign_id):
        return self.campaigns.get(campaign_id)

    async def measurement_exists(self, measurement_id):
        return measurement_id in self.measurements

    async def campaign_models(self, campaign_ids):
        result = {}
        for campaign_id in campaign_ids:
            campaign = self.campaigns.get(campaign_id)
            if campaign is not None:
                result[campaign_id] = self.models[campaign.maturity_model_id]
        return result


class RecordingDispatcher:
    """Collects enqueued evaluation ids instead of running jobs."""

    def __init__(self):
        self.enqueued: list[str] = []
        self.running = False

    def enqueue(self, evaluation_id: str) -> bool:
        self.enqueued.append(evaluation_id)
        return True


@pytest.fixture()
def evaluation_store() -> InMemoryEvaluationStore:
    return InMemoryEvaluationStore()


@pytest.fixture()
def history_store() -> InMemoryHistoryStore:
    return InMemoryHistoryStore()


@pytest.fixture()
def catalog() -> InMemoryCatalogStore:
    store = InMemoryCatalogStore()
    store.add_model("model-1", name="Observability")
    store.add_journey("journey-1")
    store.add_activity("activity-1", journey_id="journey-1")
    store.add_service(SERVICE_ID, activity_id="activity-1")
    store.add_measurement(MEASUREMENT_ID)
    store.add_campaign(CAMPAIGN_ID)
    return store


@pytest.fixture()
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture()
def lifecycle(evaluation_store, history_store, catalog, dispatcher) -> EvaluationLifecycle:
    return EvaluationLifecycle(
        evaluations=evaluation_store,
        history=history_store,
        catalog=catalog,
        dispatcher=dispatcher,
    )


@pytest.fixture()
def reporter(evaluation_store, catalog) -> MaturityReporter:
    return MaturityReporter(evaluation_store, catalog)


@pytest.fixture()
def key() -> EvaluationKey:
    return EvaluationKey(SERVICE_ID, MEASUREMENT_ID, CAMPAIGN_ID)


def mock_client(handler) -> httpx.AsyncClient:
    """httpx client whose requests are answered by handler(request)."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def serve_page(text: str = LONG_PAGE, status_code: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, text=text)

    return handler
