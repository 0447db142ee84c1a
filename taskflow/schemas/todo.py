from pydantic import Field, field_validator, model_validator
from typing import List, Optional
from datetime import datetime
from taskflow.models.todo import Priority, TITLE_MAX_LENGTH, DESCRIPTION_MAX_LENGTH
from taskflow.schemas.user import CamelModel

def check_title(v):
    if v is None or not v.strip():
        raise ValueError("Title is required")
    v = v.strip()
    if len(v) > TITLE_MAX_LENGTH:
        raise ValueError(f"Title cannot be more than {TITLE_MAX_LENGTH} characters")
    return v

def check_description(v):
    if v is None:
        return v
    v = v.strip()
    if len(v) > DESCRIPTION_MAX_LENGTH:
        raise ValueError(f"Description cannot be more than {DESCRIPTION_MAX_LENGTH} characters")
    return v or None

def check_priority(v):
    if v not in {priority.value for priority in Priority}:
        raise ValueError("Priority must be one of: low, medium, high")
    return v

class TodoCreate(CamelModel):
    """Schema for creating a new todo"""
    title: Optional[str] = Field(None, validate_default=True)
    description: Optional[str] = None
    priority: Priority = Priority.LOW
    due_date: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        return check_title(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return check_description(v)

    @field_validator("priority", mode="before")
    @classmethod
    def validate_priority(cls, v):
        return check_priority(v)

class TodoUpdate(CamelModel):
    """Schema for updating a todo (all fields optional)"""
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[Priority] = None
    due_date: Optional[datetime] = None
    completed: Optional[bool] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        return check_title(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return check_description(v)

    @field_validator("priority", mode="before")
    @classmethod
    def validate_priority(cls, v):
        return check_priority(v)

    @model_validator(mode="after")
    def reject_null_completed(self):
        if "completed" in self.model_fields_set and self.completed is None:
            raise ValueError("Completed must be true or false")
        return self

class TodoResponse(CamelModel):
    """Schema for todo response"""
    id: int
    user_id: int
    title: str
    description: Optional[str] = None
    priority: Priority
    due_date: Optional[datetime] = None
    completed: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class TodoItemResponse(CamelModel):
    success: bool = True
    todo: TodoResponse

class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int

class TodoStats(CamelModel):
    total: int
    completed: int
    pending: int

class TodoListResponse(CamelModel):
    success: bool = True
    todos: List[TodoResponse]
    pagination: Pagination
    stats: TodoStats
