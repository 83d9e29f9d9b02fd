"""Reconcile a domain's durable tasks with the recommendations of a new scan.

Task lifecycle:

    pending --(user)--> completed --(scan no longer reports it)--> verified
    completed / verified --(scan reports it again)--> regressed

Planning is pure (``plan_task_sync``); applying the plan is done by
``sync_tasks_from_scan`` under a per-domain lock against a ``TaskStore``.
"""

import uuid
from collections.abc import Collection, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Protocol

import structlog

from api.config import Settings, get_settings
from api.metrics import record_persistence_failure, record_task_transition
from api.models.task import TaskStatus
from api.services.scan_service import PersistenceFailure
from worker.analysis.result import (
    AuthorityReport,
    AuthorityVerdict,
    Effort,
    Priority,
    Recommendation,
)
from worker.recommendations.categories import (
    authority_category_slug,
    category_slug_for,
    scoring_keys_for,
)
from worker.recommendations.keys import authority_task_key, is_authority_task_key
from worker.tasks.locks import DomainLockRegistry, get_domain_locks

logger = structlog.get_logger(__name__)

MAX_TITLE_LENGTH = 120


class Transition(StrEnum):
    CREATED = "created"
    REFRESHED = "refreshed"
    REGRESSED = "regressed"
    VERIFIED = "verified"


@dataclass(frozen=True)
class ExistingTask:
    """The parts of a stored task the planner needs."""

    id: Any
    recommendation_key: str
    category: str
    status: TaskStatus


@dataclass(frozen=True)
class TaskDraft:
    """Task content derived from one scan (new task or refresh of an old one)."""

    recommendation_key: str
    category: str
    title: str
    description: str
    how_to: str
    priority: str
    effort: str

    def refresh_values(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "how_to": self.how_to,
            "priority": self.priority,
            "effort": self.effort,
        }


@dataclass(frozen=True)
class TaskChange:
    """An update to apply to an existing task."""

    task_id: Any
    recommendation_key: str
    transition: Transition
    values: dict[str, Any]


@dataclass
class TaskSyncPlan:
    creates: list[TaskDraft] = field(default_factory=list)
    changes: list[TaskChange] = field(default_factory=list)

    def count(self, transition: Transition) -> int:
        if transition == Transition.CREATED:
            return len(self.creates)
        return sum(1 for change in self.changes if change.transition == transition)


@dataclass
class TaskSyncReport:
    created: int = 0
    refreshed: int = 0
    regressed: int = 0
    verified: int = 0
    failures: list[PersistenceFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> dict[str, Any]:
        return {
            "created": self.created,
            "refreshed": self.refreshed,
            "regressed": self.regressed,
            "verified": self.verified,
            "failures": [failure.to_dict() for failure in self.failures],
        }


class TaskStore(Protocol):
    """Storage used by the synchronizer. ``SqlTaskStore`` is the production one."""

    async def list_tasks(self, domain: str) -> list[ExistingTask]: ...

    async def insert_tasks(
        self, domain: str, drafts: Sequence[TaskDraft], scan_id: uuid.UUID | None
    ) -> int:
        """Insert tasks, skipping keys that already exist. Returns rows inserted."""
        ...

    async def update_task(self, change: TaskChange) -> None: ...


def _truncate(text: str, limit: int = MAX_TITLE_LENGTH) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


def verdict_priority(verdict: AuthorityVerdict) -> Priority:
    if verdict == AuthorityVerdict.RESTRUCTURE:
        return Priority.HIGH
    if verdict == AuthorityVerdict.STRENGTHEN:
        return Priority.MEDIUM
    return Priority.LOW


def draft_from_recommendation(rec: Recommendation) -> TaskDraft:
    return TaskDraft(
        recommendation_key=rec.key,
        category=category_slug_for(rec.category),
        title=rec.title,
        description=rec.description,
        how_to=rec.how_to,
        priority=Priority(rec.priority).value,
        effort=Effort(rec.effort).value,
    )


def drafts_from_authority_report(report: AuthorityReport) -> list[TaskDraft]:
    """One task per action plan item of an authority report."""
    priority = verdict_priority(report.verdict).value
    category = authority_category_slug(report.key)
    return [
        TaskDraft(
            recommendation_key=authority_task_key(report.key, action),
            category=category,
            title=_truncate(action),
            description=f"{report.label} raporu önerisi",
            how_to=action,
            priority=priority,
            effort=Effort.MEDIUM.value,
        )
        for action in report.action_plan
    ]


def build_task_drafts(
    recommendations: Iterable[Recommendation],
    authority_reports: Iterable[AuthorityReport] = (),
) -> list[TaskDraft]:
    """Drafts for every reported issue; a repeated key keeps its first occurrence."""
    drafts: dict[str, TaskDraft] = {}
    candidates = [draft_from_recommendation(rec) for rec in recommendations]
    for report in authority_reports:
        candidates.extend(drafts_from_authority_report(report))
    for draft in candidates:
        drafts.setdefault(draft.recommendation_key, draft)
    return list(drafts.values())


def can_verify(
    category: str,
    crawl_reliable: bool,
    no_data_categories: Collection[str],
    *,
    source_failed: bool = False,
) -> bool:
    """
    A fix can only be confirmed when the scan actually measured its category.

    ``source_failed`` is set when the generator that reports the task's issue
    raised; its absence from the scan then proves nothing.
    """
    if not crawl_reliable or source_failed:
        return False
    return not any(key in no_data_categories for key in scoring_keys_for(category))


def plan_task_sync(
    existing: Sequence[ExistingTask],
    recommendations: Iterable[Recommendation],
    *,
    scan_id: uuid.UUID | None,
    crawl_reliable: bool,
    no_data_categories: Collection[str],
    authority_reports: Iterable[AuthorityReport] = (),
    recommendations_failed: bool = False,
    authority_reports_failed: bool = False,
    now: datetime | None = None,
) -> TaskSyncPlan:
    """
    Decide which tasks to create and how existing ones change.

    Args:
        existing: Tasks already stored for the domain
        recommendations: Recommendations of the new scan
        scan_id: Id of the persisted scan (recorded as last seen)
        crawl_reliable: Whether the scan's crawl passed the reliability gate
        no_data_categories: Scoring categories the scan could not evaluate
        authority_reports: Authority reports whose action plans become tasks
        recommendations_failed: The recommendation engine raised or is missing
        authority_reports_failed: An authority report generator raised or none
            is configured

    Returns:
        TaskSyncPlan. Tasks are never deleted; absent pending or regressed
        tasks are left alone.
    """
    now = now or datetime.now(UTC)
    drafts = build_task_drafts(recommendations, authority_reports)
    present = {draft.recommendation_key: draft for draft in drafts}
    by_key = {task.recommendation_key: task for task in existing}

    plan = TaskSyncPlan()
    plan.creates = [draft for key, draft in present.items() if key not in by_key]

    for task in existing:
        draft = present.get(task.recommendation_key)
        if draft is not None:
            values: dict[str, Any] = {"last_seen_scan_id": scan_id, **draft.refresh_values()}
            if task.status in (TaskStatus.COMPLETED, TaskStatus.VERIFIED):
                values.update(status=TaskStatus.REGRESSED.value, verified_at=None)
                transition = Transition.REGRESSED
            else:
                transition = Transition.REFRESHED
            plan.changes.append(
                TaskChange(task.id, task.recommendation_key, transition, values)
            )
        elif task.status == TaskStatus.COMPLETED:
            source_failed = (
                authority_reports_failed
                if is_authority_task_key(task.recommendation_key)
                else recommendations_failed
            )
            if can_verify(
                task.category, crawl_reliable, no_data_categories, source_failed=source_failed
            ):
                plan.changes.append(
                    TaskChange(
                        task.id,
                        task.recommendation_key,
                        Transition.VERIFIED,
                        {"status": TaskStatus.VERIFIED.value, "verified_at": now},
                    )
                )
            else:
                logger.info(
                    "task_verification_deferred",
                    recommendation_key=task.recommendation_key,
                    category=task.category,
                    crawl_reliable=crawl_reliable,
                    source_failed=source_failed,
                )

    return plan


def _chunks(items: Sequence[TaskDraft], size: int) -> Iterable[Sequence[TaskDraft]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


async def _insert_drafts(
    store: TaskStore,
    domain: str,
    drafts: Sequence[TaskDraft],
    scan_id: uuid.UUID | None,
    batch_size: int,
    report: TaskSyncReport,
) -> None:
    for batch in _chunks(drafts, batch_size):
        try:
            report.created += await store.insert_tasks(domain, batch, scan_id)
            continue
        except Exception as e:
            logger.warning(
                "task_batch_insert_failed",
                domain=domain,
                batch_size=len(batch),
                error=str(e),
            )

        for draft in batch:
            try:
                report.created += await store.insert_tasks(domain, [draft], scan_id)
            except Exception as e:
                logger.error(
                    "task_insert_failed",
                    domain=domain,
                    recommendation_key=draft.recommendation_key,
                    error=str(e),
                )
                record_persistence_failure("task")
                report.failures.append(
                    PersistenceFailure(
                        entity="task", key=draft.recommendation_key, reason=str(e)
                    )
                )


async def sync_tasks_from_scan(
    store: TaskStore,
    domain: str,
    recommendations: Sequence[Recommendation],
    *,
    scan_id: uuid.UUID | None,
    crawl_reliable: bool,
    no_data_categories: Collection[str],
    authority_reports: Mapping[str, AuthorityReport] | Iterable[AuthorityReport] = (),
    recommendations_failed: bool = False,
    authority_reports_failed: bool = False,
    locks: DomainLockRegistry | None = None,
    settings: Settings | None = None,
) -> TaskSyncReport:
    """
    Apply a scan's recommendations to the stored tasks of ``domain``.

    Runs under the domain's lock so concurrent scans of one site never
    interleave. Failures are collected in the report, never raised.
    """
    settings = settings or get_settings()
    locks = locks or get_domain_locks()
    if isinstance(authority_reports, Mapping):
        authority_reports = authority_reports.values()

    report = TaskSyncReport()
    async with locks.hold(domain):
        existing = await store.list_tasks(domain)
        plan = plan_task_sync(
            existing,
            recommendations,
            scan_id=scan_id,
            crawl_reliable=crawl_reliable,
            no_data_categories=no_data_categories,
            authority_reports=authority_reports,
            recommendations_failed=recommendations_failed,
            authority_reports_failed=authority_reports_failed,
        )

        await _insert_drafts(
            store, domain, plan.creates, scan_id, settings.task_batch_size, report
        )

        for change in plan.changes:
            try:
                await store.update_task(change)
            except Exception as e:
                logger.error(
                    "task_update_failed",
                    domain=domain,
                    recommendation_key=change.recommendation_key,
                    transition=change.transition.value,
                    error=str(e),
                )
                record_persistence_failure("task")
                report.failures.append(
                    PersistenceFailure(
                        entity="task", key=change.recommendation_key, reason=str(e)
                    )
                )
                continue

            if change.transition == Transition.REFRESHED:
                report.refreshed += 1
            elif change.transition == Transition.REGRESSED:
                report.regressed += 1
            else:
                report.verified += 1

    for transition in Transition:
        record_task_transition(transition.value, getattr(report, transition.value))

    logger.info(
        "task_sync_completed",
        domain=domain,
        existing=len(existing),
        created=report.created,
        refreshed=report.refreshed,
        regressed=report.regressed,
        verified=report.verified,
        failures=len(report.failures),
    )
    return report
