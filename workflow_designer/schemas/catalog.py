from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RoleOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(alias="idrbRoleMaster")
    name: str = Field(alias="rbRoleName")


class UserOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(alias="idrbUserMaster")
    name: str = Field(alias="username")
