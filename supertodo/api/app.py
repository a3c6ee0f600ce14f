"""FastAPI web application for supertodo.

A thin surface over StorageService: it holds no invariants of its own, passes
request bodies through untouched so the core's validators produce every
message, and maps each ErrorKind to one HTTP status.
"""

import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from supertodo import __version__
from supertodo.api.models import (
    CategoryListResponse,
    CategoryResponse,
    GroupedTasksResponse,
    TaskListResponse,
    TaskResponse,
)
from supertodo.database.database import STORAGE_NAMESPACE, STORAGE_QUOTA_BYTES, get_db, init_db
from supertodo.database.kv_store import SqlKeyValueStore
from supertodo.database.storage_service import StorageService
from supertodo.engine.date_groups import GROUP_ORDER, get_group_display_name
from supertodo.errors import ErrorKind, SupertodoError
from supertodo.integrations.backup import ImportResult

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.INVALID_REFERENCE: 400,
    ErrorKind.IMPORT_VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.DUPLICATE_NAME: 409,
    ErrorKind.QUOTA_EXCEEDED: 507,
    ErrorKind.CORRUPTED_DATA: 500,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(
    title="supertodo API",
    description="Daily task organizer: tasks, categories, date groups and backup",
    version=__version__,
    lifespan=lifespan,
)


def get_storage_service(db: Session = Depends(get_db)) -> StorageService:
    """Storage service bound to the request's database session."""
    store = SqlKeyValueStore(db, quota_bytes=STORAGE_QUOTA_BYTES)
    return StorageService(store, namespace=STORAGE_NAMESPACE)


@app.exception_handler(SupertodoError)
async def handle_supertodo_error(request: Request, exc: SupertodoError):
    status_code = ERROR_STATUS_CODES[exc.kind]
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=status_code, content={"detail": exc.message, "error": exc.to_dict()})


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


# ---- tasks ----

@app.get("/tasks", response_model=TaskListResponse)
def list_tasks(service: StorageService = Depends(get_storage_service)):
    tasks = service.list_tasks()
    return TaskListResponse(tasks=tasks, count=len(tasks))


@app.post("/tasks", response_model=TaskResponse, status_code=201)
def create_task(
    data: Dict[str, Any] = Body(...),
    service: StorageService = Depends(get_storage_service),
):
    return TaskResponse(task=service.create_task(data))


@app.get("/tasks/grouped", response_model=GroupedTasksResponse)
def grouped_tasks(
    today: Optional[date] = None,
    service: StorageService = Depends(get_storage_service),
):
    """Tasks grouped by due date relative to ``today`` (defaults to the server's date)."""
    reference = today or date.today()
    groups = service.tasks_grouped_by_date(reference)
    return GroupedTasksResponse(
        today=reference.isoformat(),
        order=[group.value for group in GROUP_ORDER],
        display_names={group.value: get_group_display_name(group) for group in GROUP_ORDER},
        groups={group.value: tasks for group, tasks in groups.items()},
    )


@app.get("/tasks/uncategorized", response_model=TaskListResponse)
def uncategorized_tasks(service: StorageService = Depends(get_storage_service)):
    tasks = service.tasks_in_category(None)
    return TaskListResponse(tasks=tasks, count=len(tasks))


@app.get("/tasks/{task_id}", response_model=TaskResponse)
def get_task(task_id: str, service: StorageService = Depends(get_storage_service)):
    task = service.get_task(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return TaskResponse(task=task)


@app.patch("/tasks/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: str,
    updates: Dict[str, Any] = Body(...),
    service: StorageService = Depends(get_storage_service),
):
    return TaskResponse(task=service.update_task(task_id, updates))


@app.post("/tasks/{task_id}/toggle", response_model=TaskResponse)
def toggle_task(task_id: str, service: StorageService = Depends(get_storage_service)):
    return TaskResponse(task=service.toggle_task_completion(task_id))


@app.delete("/tasks/{task_id}", status_code=204)
def delete_task(task_id: str, service: StorageService = Depends(get_storage_service)):
    service.delete_task(task_id)
    return Response(status_code=204)


# ---- categories ----

@app.get("/categories", response_model=CategoryListResponse)
def list_categories(service: StorageService = Depends(get_storage_service)):
    categories = service.list_categories()
    return CategoryListResponse(categories=categories, count=len(categories))


@app.post("/categories", response_model=CategoryResponse, status_code=201)
def create_category(
    data: Dict[str, Any] = Body(...),
    service: StorageService = Depends(get_storage_service),
):
    return CategoryResponse(category=service.create_category(data))


@app.get("/categories/{category_id}", response_model=CategoryResponse)
def get_category(category_id: str, service: StorageService = Depends(get_storage_service)):
    category = service.get_category(category_id)
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return CategoryResponse(category=category)


@app.patch("/categories/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: str,
    updates: Dict[str, Any] = Body(...),
    service: StorageService = Depends(get_storage_service),
):
    return CategoryResponse(category=service.update_category(category_id, updates))


@app.delete("/categories/{category_id}", status_code=204)
def delete_category(category_id: str, service: StorageService = Depends(get_storage_service)):
    service.delete_category(category_id)
    return Response(status_code=204)


@app.get("/categories/{category_id}/tasks", response_model=TaskListResponse)
def category_tasks(category_id: str, service: StorageService = Depends(get_storage_service)):
    tasks = service.tasks_in_category(category_id)
    return TaskListResponse(tasks=tasks, count=len(tasks))


# ---- backup ----

@app.get("/export")
def export_data(service: StorageService = Depends(get_storage_service)):
    """Backup document with every task and category."""
    return service.export_data()


@app.post("/import", response_model=ImportResult)
def import_data(
    document: Any = Body(...),
    service: StorageService = Depends(get_storage_service),
):
    """Replace all tasks and categories with the document's contents."""
    return service.import_data(document)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
