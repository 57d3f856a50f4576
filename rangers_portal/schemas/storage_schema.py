from pydantic import BaseModel, Field


class StoredObject(BaseModel):
    path: str
    url: str


class RemoveObjectsRequest(BaseModel):
    paths: list[str] = Field(default_factory=list)


class RemoveObjectsResponse(BaseModel):
    removed: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
