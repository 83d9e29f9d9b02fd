"""Site endpoints: latest scan and tasks per domain."""

from fastapi import APIRouter

from api.deps import DbSession, ScanServiceDep, TaskServiceDep
from api.schemas.responses import SuccessResponse
from api.schemas.scan import ScanRead, SiteOverview
from api.schemas.task import TaskRead
from worker.tasks.scan import domain_for, normalize_url

router = APIRouter(prefix="/sites", tags=["sites"])


def _domain(raw: str) -> str:
    return domain_for(normalize_url(raw))


@router.get(
    "/{domain}",
    response_model=SuccessResponse[SiteOverview],
    summary="Latest scan and tasks of a site",
)
async def get_site(
    domain: str,
    db: DbSession,
    scans: ScanServiceDep,
    tasks: TaskServiceDep,
) -> SuccessResponse[SiteOverview]:
    domain = _domain(domain)
    latest = await scans.get_latest_scan(db, domain)
    task_rows = await tasks.list_tasks(db, domain)
    return SuccessResponse(
        data=SiteOverview(
            domain=domain,
            latest_scan=ScanRead.model_validate(latest) if latest is not None else None,
            tasks=[TaskRead.model_validate(task) for task in task_rows],
        )
    )


@router.get(
    "/{domain}/tasks",
    response_model=SuccessResponse[list[TaskRead]],
    summary="List tasks of a site",
)
async def list_site_tasks(
    domain: str,
    db: DbSession,
    tasks: TaskServiceDep,
) -> SuccessResponse[list[TaskRead]]:
    """Tasks in creation order."""
    task_rows = await tasks.list_tasks(db, _domain(domain))
    return SuccessResponse(
        data=[TaskRead.model_validate(task) for task in task_rows],
        meta={"total": len(task_rows)},
    )
