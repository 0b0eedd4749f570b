from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class FolderCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    parent_id: str | None = None


class FolderUpdate(BaseModel):
    """Rename and/or move. Send `parent_id: null` to move a folder to root."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    parent_id: str | None = None


class FolderResponse(BaseModel):
    id: str
    name: str
    parent_id: str | None = None
    created_at: datetime
    owner_address: str

    model_config = {"from_attributes": True}


class FolderNode(BaseModel):
    type: Literal["folder"] = "folder"
    id: str
    name: str
    parent_id: str | None = None
    children: list["TreeNode"] = []


class NoteNode(BaseModel):
    type: Literal["note"] = "note"
    id: str
    name: str
    parent_id: str | None = None


TreeNode = Annotated[Union[FolderNode, NoteNode], Field(discriminator="type")]


class TreeAnomaly(BaseModel):
    node_id: str
    kind: Literal["dangling_parent", "cycle"]
    parent_id: str


class TreeBuildResult(BaseModel):
    nodes: list[TreeNode] = []
    anomalies: list[TreeAnomaly] = []


FolderNode.model_rebuild()
TreeBuildResult.model_rebuild()
