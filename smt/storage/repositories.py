"""SQLAlchemy implementations of the store interfaces."""

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from smt.errors import NotFoundError
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


def _key_clause(key: EvaluationKey):
    return (
        MeasurementEvaluation.service_id == key.service_id,
        MeasurementEvaluation.measurement_id == key.measurement_id,
        MeasurementEvaluation.campaign_id == key.campaign_id,
    )


def initial_row(key: EvaluationKey) -> dict:
    """Column values of a fresh, never-evaluated record for the triple."""
    fresh = MeasurementEvaluation.initial(key)
    return {c.key: getattr(fresh, c.key) for c in MeasurementEvaluation.__table__.columns}


class SqlEvaluationStore:
    """Evaluation records. Row locks (SELECT ... FOR UPDATE) last until commit()."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(
        self, key: EvaluationKey, *, for_update: bool = False
    ) -> MeasurementEvaluation | None:
        stmt = select(MeasurementEvaluation).where(*_key_clause(key))
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_id(
        self, evaluation_id: str, *, for_update: bool = False
    ) -> MeasurementEvaluation | None:
        stmt = select(MeasurementEvaluation).where(
            MeasurementEvaluation.evaluation_id == evaluation_id
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create(self, key: EvaluationKey) -> MeasurementEvaluation:
        """Insert-if-absent on the unique triple, then lock the row."""
        await self.db.execute(
            insert(MeasurementEvaluation)
            .values(**initial_row(key))
            .on_conflict_do_nothing(
                index_elements=["service_id", "measurement_id", "campaign_id"]
            )
        )
        evaluation = await self.get(key, for_update=True)
        if evaluation is None:
            raise NotFoundError("Evaluation not found")
        return evaluation

    async def save(self, evaluation: MeasurementEvaluation) -> MeasurementEvaluation:
        evaluation.updated_at = utcnow()
        self.db.add(evaluation)
        await self.db.flush()
        return evaluation

    async def list_for_campaign(self, campaign_id: str) -> list[MeasurementEvaluation]:
        result = await self.db.execute(
            select(MeasurementEvaluation)
            .where(MeasurementEvaluation.campaign_id == campaign_id)
            .order_by(MeasurementEvaluation.created_at)
        )
        return list(result.scalars().all())

    async def list_for_services(
        self, service_ids: Iterable[str]
    ) -> list[MeasurementEvaluation]:
        ids = list(service_ids)
        if not ids:
            return []
        result = await self.db.execute(
            select(MeasurementEvaluation)
            .where(MeasurementEvaluation.service_id.in_(ids))
            .order_by(MeasurementEvaluation.created_at)
        )
        return list(result.scalars().all())

    async def commit(self) -> None:
        await self.db.commit()


class SqlHistoryStore:
    """Append-only audit entries."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(self, entry: EvaluationHistory) -> EvaluationHistory:
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def list_for_evaluation(self, evaluation_id: str) -> list[EvaluationHistory]:
        result = await self.db.execute(
            select(EvaluationHistory)
            .where(EvaluationHistory.evaluation_id == evaluation_id)
            .order_by(EvaluationHistory.created_at.desc(), EvaluationHistory.sequence.desc())
        )
        return list(result.scalars().all())


class SqlCatalogStore:
    """Read-only view of catalog containment."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def services_of(self, activity_id: str) -> list[Service]:
        result = await self.db.execute(
            select(Service).where(Service.activity_id == activity_id).order_by(Service.name)
        )
        return list(result.scalars().all())

    async def activities_of(self, journey_id: str) -> list[Activity]:
        result = await self.db.execute(
            select(Activity).where(Activity.journey_id == journey_id).order_by(Activity.name)
        )
        return list(result.scalars().all())

    async def activity_of(self, service_id: str) -> Activity | None:
        result = await self.db.execute(
            select(Activity)
            .join(Service, Service.activity_id == Activity.activity_id)
            .where(Service.service_id == service_id)
        )
        return result.scalar_one_or_none()

    async def journey_of(self, activity_id: str) -> Journey | None:
        result = await self.db.execute(
            select(Journey)
            .join(Activity, Activity.journey_id == Journey.journey_id)
            .where(Activity.activity_id == activity_id)
        )
        return result.scalar_one_or_none()

    async def list_services(self) -> list[Service]:
        result = await self.db.execute(select(Service).order_by(Service.name))
        return list(result.scalars().all())

    async def get_service(self, service_id: str) -> Service | None:
        return await self.db.get(Service, service_id)

    async def get_activity(self, activity_id: str) -> Activity | None:
        return await self.db.get(Activity, activity_id)

    async def get_journey(self, journey_id: str) -> Journey | None:
        return await self.db.get(Journey, journey_id)

    async def get_campaign(self, campaign_id: str) -> Campaign | None:
        return await self.db.get(Campaign, campaign_id)

    async def measurement_exists(self, measurement_id: str) -> bool:
        return await self.db.get(Measurement, measurement_id) is not None

    async def campaign_models(self, campaign_ids: Iterable[str]) -> dict[str, MaturityModel]:
        ids = list(campaign_ids)
        if not ids:
            return {}
        result = await self.db.execute(
            select(Campaign.campaign_id, MaturityModel)
            .join(MaturityModel, MaturityModel.maturity_model_id == Campaign.maturity_model_id)
            .where(Campaign.campaign_id.in_(ids))
        )
        return {campaign_id: model for campaign_id, model in result.all()}
