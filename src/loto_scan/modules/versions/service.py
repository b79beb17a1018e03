from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FrontVersion:
    front_version: str
    need_update: bool


# Mobile front-ends older than 1.0.2 must update before scanning.
FRONT_VERSIONS: tuple[FrontVersion, ...] = (
    FrontVersion("1.0.0", need_update=True),
    FrontVersion("1.0.1", need_update=True),
    FrontVersion("1.0.2", need_update=False),
    FrontVersion("1.0.3", need_update=False),
)


def list_front_versions() -> list[FrontVersion]:
    return list(FRONT_VERSIONS)


def get_front_version(front_version: str) -> FrontVersion:
    v = (front_version or "").strip()
    for known in FRONT_VERSIONS:
        if known.front_version == v:
            return known
    # Unknown builds are not trusted to parse current responses.
    return FrontVersion(v, need_update=True)
