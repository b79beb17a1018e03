from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class FrontVersionOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    front_version: str = Field(serialization_alias="frontVersion")
    need_update: bool = Field(serialization_alias="needUpdate")
