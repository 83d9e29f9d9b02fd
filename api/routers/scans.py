"""Scan submission endpoints."""

from fastapi import APIRouter, status

from api.deps import JobServiceDep
from api.schemas.responses import SuccessResponse
from api.schemas.scan import ScanCreate, ScanQueued

router = APIRouter(prefix="/scans", tags=["scans"])


@router.post(
    "",
    response_model=SuccessResponse[ScanQueued],
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start a scan",
)
async def create_scan(body: ScanCreate, jobs: JobServiceDep) -> SuccessResponse[ScanQueued]:
    """
    Queue a scan of the given URL.

    The scan runs in the background worker; poll ``/v1/jobs/{job_id}`` for
    its outcome. An unparsable URL is rejected with 422.
    """
    job_id, domain = jobs.enqueue_scan(body.url)
    return SuccessResponse(data=ScanQueued(job_id=job_id, domain=domain))
