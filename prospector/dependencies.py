from typing import Annotated

from fastapi import Depends, Request

from prospector.config import Settings
from prospector.jobs import JobStore
from prospector.services.factory import Services


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_job_store(request: Request) -> JobStore:
    return request.app.state.job_store


def get_services(request: Request) -> Services:
    return request.app.state.services


SettingsDep = Annotated[Settings, Depends(get_settings)]
JobStoreDep = Annotated[JobStore, Depends(get_job_store)]
ServicesDep = Annotated[Services, Depends(get_services)]
