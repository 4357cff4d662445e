# workcheck/main.py
"""
FastAPI entrypoint for the WorkCheck API.

Exposes (under settings.API_PREFIX, default /api):
 - GET  /load, POST /save          -> monthly task buckets (save = full replace)
 - GET  /check-template            -> review checklist items
 - POST /init-template             -> create the default template (idempotent)
 - GET  /users, /months            -> distinct users / months with tasks
 - GET  /init-database, /check-database, /health
 - GET  /git/commits, /git/file-diff, /git/file-commits, /git/check-repo
                                   -> commit provenance from a local working copy

Every response carries "success". Handled errors return 200 with
success=false; persistence and unexpected errors return 500.
"""

import logging
import time
from typing import List, Optional
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .db import TABLE_NAMES, init_db
from .settings import settings
from .schemas import TaskPayload
from . import file_matcher, git_utils, store

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL or "INFO",
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("workcheck.main")

NOT_A_REPOSITORY = "The given path is not a git repository"


# -----------------------------------------------------------
# STARTUP INITIALIZATION
# -----------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("App startup complete. Database initialized.")
    yield
    logger.info("App shutdown.")


app = FastAPI(title="WorkCheck API", version="1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

api = APIRouter(prefix=settings.API_PREFIX)
git_api = APIRouter(prefix=f"{settings.API_PREFIX}/git")


def _fail(error: str, status_code: int = 200, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error, **extra})


# -----------------------------------------------------------
# ERROR HANDLERS
# -----------------------------------------------------------
def _validation_errors(exc: RequestValidationError) -> list:
    return [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()]


@app.exception_handler(SQLAlchemyError)
async def persistence_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Persistence error on %s: %s", request.url.path, exc)
    return _fail(str(exc), status_code=500)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return _fail("Invalid request", status_code=422, detail=_validation_errors(exc))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    return _fail(str(exc), status_code=500)


# -----------------------------------------------------------
# TASKS
# -----------------------------------------------------------
@api.get("/load")
def load_tasks(user: str, month: str):
    tasks = store.load_tasks(user, month)
    return {"success": True, "tasks": [t.model_dump(by_alias=True) for t in tasks]}


@api.post("/save")
def save_tasks(user: str, month: str, tasks: List[TaskPayload]):
    saved = store.save_tasks(user, month, tasks)
    return {
        "success": True,
        "tasks": [t.model_dump(by_alias=True) for t in saved],
        "message": "Saved successfully",
    }


@api.get("/users")
def list_users():
    return {"success": True, "users": store.list_users()}


@api.get("/months")
def list_months():
    return {"success": True, "months": store.list_months()}


# -----------------------------------------------------------
# CHECK TEMPLATE / DATABASE
# -----------------------------------------------------------
@api.get("/check-template")
def check_template():
    return {"success": True, "checks": store.get_check_template()}


@api.post("/init-template")
def init_template():
    created = store.init_default_template()
    message = "Default template created" if created else "Default template already exists"
    return {"success": True, "message": message}


@api.get("/init-database")
def init_database():
    init_db()
    store.init_default_template()
    return {"success": True, "message": "Database initialized: tables created and default check template added"}


@api.get("/check-database")
def check_database():
    try:
        store.check_database()
    except SQLAlchemyError as e:
        logger.warning("Database check failed: %s", e)
        return _fail(
            f"Database may not be initialized: {e}",
            message=f"Call {settings.API_PREFIX}/init-database to initialize the database",
        )
    return {"success": True, "message": "Database connection OK, tables exist", "tables": TABLE_NAMES}


@api.get("/health")
def health():
    return {
        "success": True,
        "status": "OK",
        "message": "WorkCheck API is running",
        "timestamp": int(time.time() * 1000),
    }


# -----------------------------------------------------------
# GIT
# -----------------------------------------------------------
@git_api.get("/commits")
def get_commits(userName: str, month: str, projectPath: Optional[str] = None):
    if not projectPath:
        return {"success": True, "commits": [], "remoteUrl": None, "total": 0}
    if not git_utils.is_repository(projectPath):
        return _fail(NOT_A_REPOSITORY)
    try:
        commits = git_utils.commits_for_month(projectPath, userName, month)
    except ValueError as e:
        return _fail(str(e))

    remote = git_utils.remote_url(projectPath)
    return {
        "success": True,
        "commits": [c.to_dict() for c in commits],
        "remoteUrl": remote,
        "total": len(commits),
    }


@git_api.get("/file-diff")
def get_file_diff(projectPath: str, commitHash: str, filePath: str):
    if not git_utils.is_repository(projectPath):
        return _fail(NOT_A_REPOSITORY)
    content = git_utils.diff_for_file(projectPath, commitHash, filePath)
    return {"success": True, "content": content, "commitHash": commitHash, "filePath": filePath}


@git_api.get("/file-commits")
def get_file_commits(
    fileName: str,
    userName: str,
    projectPath: str,
    month: Optional[str] = None,
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
):
    if not git_utils.is_repository(projectPath):
        return _fail(NOT_A_REPOSITORY)
    try:
        commits = git_utils.commits_for_period(projectPath, userName, month, startDate, endDate)
    except ValueError as e:
        return _fail(str(e))

    matched = file_matcher.filter_commits_by_file(fileName, commits)
    return {
        "success": True,
        "commits": [c.to_dict() for c in matched],
        "remoteUrl": git_utils.remote_url(projectPath),
        "defaultBranch": git_utils.default_branch(projectPath),
        "total": len(matched),
    }


@git_api.get("/check-repo")
def check_repo(projectPath: str):
    is_repo = git_utils.is_repository(projectPath)
    return {
        "success": True,
        "isRepository": is_repo,
        "remoteUrl": git_utils.remote_url(projectPath) if is_repo else None,
    }


app.include_router(api)
app.include_router(git_api)
