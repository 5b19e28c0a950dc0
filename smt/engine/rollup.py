"""Maturity rollup engine - evaluations to percentages and levels.

Pure functions over plain data: the caller supplies the evaluations of a
campaign plus the service -> activity and activity -> journey edges read
from the catalog, and gets back a freshly computed result tree.
"""

from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from smt.engine.status import EvaluationStatus
from smt.schemas.rollup import (
    ActivityResult,
    CampaignResults,
    JourneyResult,
    LevelCount,
    ModelMaturitySummary,
    ServiceResult,
)

# Lower bound (inclusive) of each level, highest first
LEVEL_THRESHOLDS: list[tuple[float, int]] = [
    (100.0, 4),
    (75.0, 3),
    (50.0, 2),
    (25.0, 1),
]
MAX_LEVEL = 4


class EvaluationLike(Protocol):
    service_id: str
    campaign_id: str
    status: str


class MaturityModelLike(Protocol):
    maturity_model_id: str
    name: str


def maturity_level(percentage: float) -> int:
    """Map a 0-100 percentage to a discrete 0-4 level."""
    for lower_bound, level in LEVEL_THRESHOLDS:
        if percentage >= lower_bound:
            return level
    return 0


def percentage_of(implemented: int, total: int) -> float:
    """Implemented share as a percentage; 0 when there is nothing to count."""
    if total <= 0:
        return 0.0
    return implemented / total * 100


def is_implemented(evaluation: EvaluationLike) -> bool:
    return evaluation.status == EvaluationStatus.IMPLEMENTED.value


def _tally(evaluations: Iterable[EvaluationLike]) -> tuple[int, int]:
    implemented = total = 0
    for ev in evaluations:
        total += 1
        if is_implemented(ev):
            implemented += 1
    return implemented, total


def score_services(
    evaluations: Iterable[EvaluationLike],
    service_names: Mapping[str, str] | None = None,
) -> list[ServiceResult]:
    """Per-service percentage and level, in order of first appearance."""
    service_names = service_names or {}
    counts: dict[str, list[int]] = {}
    for ev in evaluations:
        implemented_total = counts.setdefault(ev.service_id, [0, 0])
        implemented_total[1] += 1
        if is_implemented(ev):
            implemented_total[0] += 1

    results = []
    for service_id, (implemented, total) in counts.items():
        pct = percentage_of(implemented, total)
        results.append(
            ServiceResult(
                service_id=service_id,
                service_name=service_names.get(service_id),
                maturity_level=maturity_level(pct),
                percentage=pct,
            )
        )
    return results


def _group_by_parent(
    child_ids: Iterable[str],
    parent_of: Mapping[str, Any],
    parent_id_attr: str,
) -> dict[str, tuple[Any, list[str]]]:
    groups: dict[str, tuple[Any, list[str]]] = {}
    for child_id in child_ids:
        parent = parent_of.get(child_id)
        if parent is None:
            continue
        parent_id = getattr(parent, parent_id_attr)
        groups.setdefault(parent_id, (parent, []))[1].append(child_id)
    return groups


def rollup_activities(
    service_results: list[ServiceResult],
    activity_of: Mapping[str, Any],
) -> list[ActivityResult]:
    """Activity level = min of its scored services. Unscored activities are omitted."""
    by_id = {r.service_id: r for r in service_results}
    results = []
    for activity_id, (activity, service_ids) in _group_by_parent(
        by_id, activity_of, "activity_id"
    ).items():
        children = [by_id[sid] for sid in service_ids]
        results.append(
            ActivityResult(
                activity_id=activity_id,
                activity_name=getattr(activity, "name", None),
                maturity_level=min(c.maturity_level for c in children),
                service_results=children,
            )
        )
    return results


def rollup_journeys(
    activity_results: list[ActivityResult],
    journey_of: Mapping[str, Any],
) -> list[JourneyResult]:
    """Journey level = min of its scored activities."""
    by_id = {r.activity_id: r for r in activity_results}
    results = []
    for journey_id, (journey, activity_ids) in _group_by_parent(
        by_id, journey_of, "journey_id"
    ).items():
        children = [by_id[aid] for aid in activity_ids]
        results.append(
            JourneyResult(
                journey_id=journey_id,
                journey_name=getattr(journey, "name", None),
                maturity_level=min(c.maturity_level for c in children),
                activity_results=children,
            )
        )
    return results


def compute_campaign_results(
    evaluations: Iterable[EvaluationLike],
    activity_of: Mapping[str, Any],
    journey_of: Mapping[str, Any],
    service_names: Mapping[str, str] | None = None,
) -> CampaignResults:
    """
    Full rollup for one campaign.

    activity_of maps service id -> containing activity (or None) and
    journey_of maps activity id -> containing journey (or None).

    The overall figure is a flat ratio over every evaluation in the
    campaign, not the minimum of the journey/activity branches.
    """
    evaluations = list(evaluations)
    service_results = score_services(evaluations, service_names)
    activity_results = rollup_activities(service_results, activity_of)
    journey_results = rollup_journeys(activity_results, journey_of)

    implemented, total = _tally(evaluations)
    overall_percentage = percentage_of(implemented, total)
    return CampaignResults(
        journey_results=journey_results,
        activity_results=activity_results,
        service_results=service_results,
        overall_level=maturity_level(overall_percentage),
        overall_percentage=overall_percentage,
    )


def level_distribution(
    service_ids: Iterable[str],
    evaluations: Iterable[EvaluationLike],
) -> list[LevelCount]:
    """
    Number of services at each level across all campaigns.

    Unlike the campaign rollup, a service with no evaluations at all is
    counted at level 0 instead of being left out.
    """
    by_service: dict[str, list[EvaluationLike]] = {sid: [] for sid in service_ids}
    for ev in evaluations:
        if ev.service_id in by_service:
            by_service[ev.service_id].append(ev)

    counts = [0] * (MAX_LEVEL + 1)
    for service_evaluations in by_service.values():
        implemented, total = _tally(service_evaluations)
        counts[maturity_level(percentage_of(implemented, total))] += 1
    return [LevelCount(level=f"Level {level}", count=n) for level, n in enumerate(counts)]


def summarize_by_maturity_model(
    evaluations: Iterable[EvaluationLike],
    campaign_models: Mapping[str, MaturityModelLike | None],
) -> list[ModelMaturitySummary]:
    """Flat percentage and level per maturity model of the evaluations' campaigns."""
    groups: dict[str, tuple[Any, list[int]]] = {}
    for ev in evaluations:
        model = campaign_models.get(ev.campaign_id)
        if model is None:
            continue
        _, counts = groups.setdefault(model.maturity_model_id, (model, [0, 0]))
        counts[1] += 1
        if is_implemented(ev):
            counts[0] += 1

    summaries = []
    for model_id, (model, (implemented, total)) in groups.items():
        pct = percentage_of(implemented, total)
        summaries.append(
            ModelMaturitySummary(
                maturity_model_id=model_id,
                maturity_model_name=getattr(model, "name", None),
                maturity_level=maturity_level(pct),
                percentage=pct,
            )
        )
    return summaries
