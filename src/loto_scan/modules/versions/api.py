from __future__ import annotations

from fastapi import APIRouter

from loto_scan.modules.versions.schemas import FrontVersionOut
from loto_scan.modules.versions.service import get_front_version, list_front_versions

router = APIRouter(tags=["versions"])


@router.get("/versions", response_model=list[FrontVersionOut])
def list_versions() -> list[FrontVersionOut]:
    return [
        FrontVersionOut(front_version=v.front_version, need_update=v.need_update)
        for v in list_front_versions()
    ]


@router.get("/versions/{front_version}", response_model=FrontVersionOut)
def check_version(front_version: str) -> FrontVersionOut:
    v = get_front_version(front_version)
    return FrontVersionOut(front_version=v.front_version, need_update=v.need_update)
