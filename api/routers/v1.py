"""V1 API router - aggregates all versioned endpoints."""

from fastapi import APIRouter

from api.routers import jobs, scans, sites, tasks

router = APIRouter()

router.include_router(scans.router)
router.include_router(jobs.router)
router.include_router(sites.router)
router.include_router(tasks.router)


@router.get("/")
async def v1_root() -> dict[str, str]:
    return {"version": "1", "status": "active"}
