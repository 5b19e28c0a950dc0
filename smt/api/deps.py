"""Wiring of stores and engine services for request handlers."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from smt.database import get_db
from smt.engine.dispatch import ValidationDispatcher
from smt.engine.lifecycle import EvaluationLifecycle
from smt.engine.reporting import MaturityReporter
from smt.storage.repositories import SqlCatalogStore, SqlEvaluationStore, SqlHistoryStore


def build_lifecycle(db: AsyncSession, dispatcher: ValidationDispatcher) -> EvaluationLifecycle:
    return EvaluationLifecycle(
        evaluations=SqlEvaluationStore(db),
        history=SqlHistoryStore(db),
        catalog=SqlCatalogStore(db),
        dispatcher=dispatcher,
    )


async def get_lifecycle(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> EvaluationLifecycle:
    return build_lifecycle(db, request.app.state.dispatcher)


async def get_reporter(db: Annotated[AsyncSession, Depends(get_db)]) -> MaturityReporter:
    return MaturityReporter(SqlEvaluationStore(db), SqlCatalogStore(db))


LifecycleDep = Annotated[EvaluationLifecycle, Depends(get_lifecycle)]
ReporterDep = Annotated[MaturityReporter, Depends(get_reporter)]
