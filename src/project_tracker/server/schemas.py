"""Pydantic request models. Wire keys are camelCase; snake_case is accepted too."""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt
from pydantic.alias_generators import to_camel

from ..domain.patch import ProjectCreate, ProjectPatch, ReorderItem, TaskCreate, TaskPatch


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def supplied(self) -> dict:
        """Fields present in the request body, explicit nulls included."""
        return self.model_dump(exclude_unset=True)


class CreateProjectRequest(_WireModel):
    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    color: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    def to_create(self) -> ProjectCreate:
        return ProjectCreate(**self.model_dump())


class UpdateProjectRequest(_WireModel):
    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    color: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    def to_patch(self) -> ProjectPatch:
        return ProjectPatch.from_mapping(self.supplied())


class CreateTaskRequest(_WireModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[str] = None
    project_id: Optional[str] = None

    def to_create(self) -> TaskCreate:
        return TaskCreate(**self.model_dump())


class UpdateTaskRequest(_WireModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[str] = None
    project_id: Optional[str] = None
    kanban_position: Optional[Union[StrictInt, StrictFloat]] = None

    def to_patch(self) -> TaskPatch:
        return TaskPatch.from_mapping(self.supplied())


class ReorderItemRequest(_WireModel):
    id: str
    kanban_position: Union[StrictInt, StrictFloat]
    status: str

    def to_item(self) -> ReorderItem:
        return ReorderItem(id=self.id, kanban_position=self.kanban_position, status=self.status)


class ReorderRequest(_WireModel):
    updates: list[ReorderItemRequest] = Field(default_factory=list)


class UpdateUserRequest(_WireModel):
    name: Optional[str] = None
    theme_preference: Optional[str] = None
