"""Worker routes (APP_ROLE=worker)."""

from fastapi import APIRouter

from chatrelay.api.routes import tasks_messenger

router = APIRouter()


@router.get("/tasks/health")
def tasks_health() -> dict:
    return {"status": "ok", "subsystem": "tasks"}


router.include_router(tasks_messenger.router)
