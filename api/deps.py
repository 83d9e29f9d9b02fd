"""FastAPI dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends

from api.config import Settings, get_settings
from api.database import DbSession
from api.services.job_service import JobService, job_service
from api.services.scan_service import ScanService, scan_service
from api.services.task_service import TaskService, task_service

__all__ = ["DbSession", "SettingsDep", "JobServiceDep", "ScanServiceDep", "TaskServiceDep"]


SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_job_service() -> JobService:
    return job_service


def get_scan_service() -> ScanService:
    return scan_service


def get_task_service() -> TaskService:
    return task_service


JobServiceDep = Annotated[JobService, Depends(get_job_service)]
ScanServiceDep = Annotated[ScanService, Depends(get_scan_service)]
TaskServiceDep = Annotated[TaskService, Depends(get_task_service)]
