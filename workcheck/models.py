from sqlmodel import SQLModel, Field, Column, Relationship, Text
from typing import List, Optional
from datetime import datetime


class Task(SQLModel, table=True):
    __tablename__ = "tasks"

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: str = Field(max_length=50)
    change: Optional[str] = Field(default=None, sa_column=Column(Text))
    risk: Optional[str] = Field(default=None, max_length=20)
    user_name: str = Field(max_length=100, index=True)
    month: str = Field(max_length=10, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    files: List["TaskFile"] = Relationship(
        back_populates="task",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "TaskFile.id"},
    )
    checks: List["TaskCheck"] = Relationship(
        back_populates="task",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "TaskCheck.sort_order",
        },
    )


class TaskFile(SQLModel, table=True):
    __tablename__ = "task_files"

    id: Optional[int] = Field(default=None, primary_key=True)
    task_pk: Optional[int] = Field(default=None, foreign_key="tasks.id", index=True)
    file: str = Field(sa_column=Column(Text, nullable=False))
    test: Optional[str] = Field(default=None, max_length=50)

    task: Optional[Task] = Relationship(back_populates="files")


class TaskCheck(SQLModel, table=True):
    __tablename__ = "task_checks"

    id: Optional[int] = Field(default=None, primary_key=True)
    task_pk: Optional[int] = Field(default=None, foreign_key="tasks.id", index=True)
    check_item: str = Field(sa_column=Column(Text, nullable=False))
    status: Optional[str] = Field(default=None, max_length=50)
    sort_order: int = Field(default=0)

    task: Optional[Task] = Relationship(back_populates="checks")


class CheckTemplate(SQLModel, table=True):
    __tablename__ = "check_templates"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    is_default: bool = Field(default=False, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    items: List["CheckTemplateItem"] = Relationship(
        back_populates="template",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "CheckTemplateItem.sort_order",
        },
    )


class CheckTemplateItem(SQLModel, table=True):
    __tablename__ = "check_template_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    template_id: Optional[int] = Field(default=None, foreign_key="check_templates.id", index=True)
    item_text: str = Field(max_length=500)
    sort_order: int = Field(default=0)

    template: Optional[CheckTemplate] = Relationship(back_populates="items")
