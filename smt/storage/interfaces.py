"""Store capabilities injected into the lifecycle and rollup services.

The SQL implementations live in smt.storage.repositories; tests swap in
in-memory fakes.
"""

from collections.abc import Iterable
from typing import Protocol

from smt.models import (
    Activity,
    Campaign,
    EvaluationHistory,
    EvaluationKey,
    Journey,
    MaturityModel,
    MeasurementEvaluation,
    Service,
)


class EvaluationStore(Protocol):
    async def get(
        self, key: EvaluationKey, *, for_update: bool = False
    ) -> MeasurementEvaluation | None: ...

    async def get_by_id(
        self, evaluation_id: str, *, for_update: bool = False
    ) -> MeasurementEvaluation | None: ...

    async def get_or_create(self, key: EvaluationKey) -> MeasurementEvaluation:
        """Load the evaluation locked for update, creating a not_implemented one if missing."""
        ...

    async def save(self, evaluation: MeasurementEvaluation) -> MeasurementEvaluation: ...

    async def list_for_campaign(self, campaign_id: str) -> list[MeasurementEvaluation]: ...

    async def list_for_services(
        self, service_ids: Iterable[str]
    ) -> list[MeasurementEvaluation]: ...

    async def commit(self) -> None:
        """End the unit of work, releasing row locks."""
        ...


class HistoryStore(Protocol):
    async def append(self, entry: EvaluationHistory) -> EvaluationHistory: ...

    async def list_for_evaluation(self, evaluation_id: str) -> list[EvaluationHistory]:
        """Newest first."""
        ...


class CatalogStore(Protocol):
    async def services_of(self, activity_id: str) -> list[Service]: ...

    async def activities_of(self, journey_id: str) -> list[Activity]: ...

    async def activity_of(self, service_id: str) -> Activity | None: ...

    async def journey_of(self, activity_id: str) -> Journey | None: ...

    async def list_services(self) -> list[Service]: ...

    async def get_service(self, service_id: str) -> Service | None: ...

    async def get_activity(self, activity_id: str) -> Activity | None: ...

    async def get_journey(self, journey_id: str) -> Journey | None: ...

    async def get_campaign(self, campaign_id: str) -> Campaign | None: ...

    async def measurement_exists(self, measurement_id: str) -> bool: ...

    async def campaign_models(
        self, campaign_ids: Iterable[str]
    ) -> dict[str, MaturityModel]: ...
