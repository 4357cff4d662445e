# workcheck/store.py
"""
Task and check-template persistence.

Tasks live in (user_name, month) buckets. A save replaces the whole bucket
inside one transaction, so readers see either the old or the new set.
"""

import logging
import re
from datetime import datetime
from typing import Iterable, List, Sequence

from sqlmodel import Session, select

from .db import engine
from . import models
from .schemas import CheckPayload, FilePayload, TaskPayload

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_NAME = "Default check template"
DEFAULT_TEMPLATE_DESCRIPTION = "Built-in checklist for code changes"
DEFAULT_CHECK_ITEMS = (
    "Code merge completed",
    "Merge conflicts confirmed",
    "Core logic covered by unit tests",
    "High-risk points reviewed",
    "Log levels appropriate",
    "Exception fallback handling in place",
    "PaaS parameters verified",
    "CMC parameters verified",
    "Performance testing completed",
)

_TRAILING_SUFFIX_RE = re.compile(r"-[A-Za-z0-9_]*$")


# ---------- task id de-duplication ----------
def assign_unique_task_ids(task_ids: Iterable[str]) -> List[str]:
    """
    Make ids unique in batch order. A repeated id loses one trailing
    '-suffix' and is renumbered: T1, T1 -> T1, T1-1; T-1, T-1 -> T-1, T-2.
    """
    used = set()
    result = []
    for task_id in task_ids:
        if task_id in used:
            base = _TRAILING_SUFFIX_RE.sub("", task_id)
            suffix = 1
            while f"{base}-{suffix}" in used:
                suffix += 1
            task_id = f"{base}-{suffix}"
        used.add(task_id)
        result.append(task_id)
    return result


# ---------- row <-> payload conversion ----------
def _to_payload(task: models.Task) -> TaskPayload:
    checks = sorted(task.checks, key=lambda c: (c.sort_order, c.id or 0))
    return TaskPayload(
        id=task.id,
        task_id=task.task_id,
        change=task.change,
        risk=task.risk,
        user_name=task.user_name,
        month=task.month,
        files=[FilePayload(id=f.id, file=f.file, test=f.test) for f in task.files],
        checks=[
            CheckPayload(id=c.id, check_item=c.check_item, status=c.status, sort_order=c.sort_order)
            for c in checks
        ],
    )


def _to_row(payload: TaskPayload, task_id: str, user_name: str, month: str) -> models.Task:
    # client-sent ids are ignored: a save always inserts fresh rows
    now = datetime.utcnow()
    return models.Task(
        task_id=task_id,
        change=payload.change,
        risk=payload.risk,
        user_name=user_name,
        month=month,
        created_at=now,
        updated_at=now,
        files=[models.TaskFile(file=f.file, test=f.test) for f in payload.files or []],
        checks=[
            models.TaskCheck(check_item=c.check_item, status=c.status, sort_order=c.sort_order)
            for c in payload.checks or []
        ],
    )


def _bucket_query(user_name: str, month: str):
    return (
        select(models.Task)
        .where(models.Task.user_name == user_name, models.Task.month == month)
        .order_by(models.Task.id)
    )


# ---------- tasks ----------
def load_tasks(user_name: str, month: str) -> List[TaskPayload]:
    with Session(engine) as session:
        tasks = session.exec(_bucket_query(user_name, month)).all()
        return [_to_payload(t) for t in tasks]


def save_tasks(user_name: str, month: str, tasks: Sequence[TaskPayload]) -> List[TaskPayload]:
    """
    Replace every task in (user_name, month) with ``tasks``.

    Delete and insert share one transaction; on any error it is rolled back
    and the previous bucket contents stay in place.
    """
    task_ids = assign_unique_task_ids(t.task_id for t in tasks)
    with Session(engine) as session:
        try:
            existing = session.exec(_bucket_query(user_name, month)).all()
            for task in existing:
                session.delete(task)
            session.flush()
            logger.info("Deleted %s tasks for user=%s month=%s", len(existing), user_name, month)

            rows = [_to_row(payload, task_id, user_name, month) for payload, task_id in zip(tasks, task_ids)]
            session.add_all(rows)
            session.commit()
        except Exception:
            session.rollback()
            logger.exception("Saving tasks for user=%s month=%s failed, rolled back", user_name, month)
            raise

        logger.info("Saved %s tasks for user=%s month=%s", len(rows), user_name, month)
        return [_to_payload(t) for t in session.exec(_bucket_query(user_name, month)).all()]


def list_users() -> List[str]:
    with Session(engine) as session:
        return list(session.exec(select(models.Task.user_name).distinct().order_by(models.Task.user_name)).all())


def list_months() -> List[str]:
    """Distinct months, newest first."""
    with Session(engine) as session:
        return list(session.exec(select(models.Task.month).distinct().order_by(models.Task.month.desc())).all())


# ---------- check templates ----------
def _default_template(session: Session):
    statement = select(models.CheckTemplate).where(models.CheckTemplate.is_default == True)  # noqa: E712
    return session.exec(statement.order_by(models.CheckTemplate.id)).first()


def get_check_template() -> List[str]:
    """Items of the default template, or the built-in list when none is stored."""
    with Session(engine) as session:
        template = _default_template(session)
        if template is None:
            return list(DEFAULT_CHECK_ITEMS)
        items = sorted(template.items, key=lambda i: (i.sort_order, i.id or 0))
        return [item.item_text for item in items]


def init_default_template() -> bool:
    """Create the default template unless one exists. Returns True if created."""
    with Session(engine) as session:
        if _default_template(session) is not None:
            return False
        template = models.CheckTemplate(
            name=DEFAULT_TEMPLATE_NAME,
            description=DEFAULT_TEMPLATE_DESCRIPTION,
            is_default=True,
            items=[
                models.CheckTemplateItem(item_text=text, sort_order=index)
                for index, text in enumerate(DEFAULT_CHECK_ITEMS)
            ],
        )
        session.add(template)
        session.commit()
        logger.info("Created default check template with %s items", len(DEFAULT_CHECK_ITEMS))
        return True


def check_database() -> None:
    """Touch every table; raises if the schema is missing."""
    with Session(engine) as session:
        for model in (models.CheckTemplate, models.CheckTemplateItem, models.Task, models.TaskFile, models.TaskCheck):
            session.exec(select(model).limit(1)).first()
