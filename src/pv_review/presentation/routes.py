from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Header
from fastapi.responses import JSONResponse

from src.pv_review.application.services import TaskService
from src.pv_review.domain.exceptions import (
    AuthenticationError,
    GatewayError,
    MalformedResultError,
    ProjectAccessDeniedError,
    ProjectNotFoundError,
    TaskAccessDeniedError,
    TaskNotFoundError,
)
from src.pv_review.domain.models.outcomes import Deferred, Immediate, Rejected
from src.pv_review.domain.models.task_kind import TaskKind

router = APIRouter(tags=["tasks"])
logger = logging.getLogger(__name__)

# Instantiate services once (simple DI)
_task_service = TaskService()

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"description": "Preconditions not met."},
    401: {"description": "Missing or invalid credential."},
    403: {"description": "The caller does not own the project or task."},
    404: {"description": "Unknown function, project or task."},
    500: {"description": "Internal server error."},
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"errorMessage": message})


def _credential(authorization: str | None) -> str | None:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization.removeprefix("Bearer ").strip() or None


@router.post(
    "/functions/{function_name}",
    summary="Invoke a review function",
    description=(
        "Submits work to `extract-data`, `analyze-compliance` or `generate-deliverables`.\n"
        "- 200 `{immediateResult}`: the work ran synchronously\n"
        "- 202 `{taskId}`: poll `GET /tasks/{taskId}` until it is completed or failed\n"
        "- 4xx/5xx `{errorMessage}`: the work was refused, no task was created\n"
    ),
    responses=_ERROR_RESPONSES,
)
async def invoke_function(
    function_name: str,
    body: dict[str, Any] | None = Body(default=None),
    authorization: str | None = Header(default=None),
):
    try:
        kind = TaskKind.from_function_name(function_name)
    except ValueError:
        return _error(404, f"Unknown function {function_name!r}")

    try:
        outcome = await _task_service.invoke(kind, body or {}, _credential(authorization))
    except AuthenticationError as exc:
        return _error(401, str(exc))
    except ProjectAccessDeniedError as exc:
        return _error(403, str(exc))
    except ProjectNotFoundError as exc:
        return _error(404, str(exc))
    except GatewayError as exc:
        status_code = exc.status_code if exc.status_code in (402, 429) else 500
        return _error(status_code, str(exc))
    except MalformedResultError as exc:
        return _error(500, str(exc))
    except Exception as exc:
        logger.exception("Function invocation failed", extra={"function": function_name})
        return _error(500, str(exc) or "Internal server error")

    if isinstance(outcome, Rejected):
        return _error(400, outcome.reason)
    if isinstance(outcome, Deferred):
        return JSONResponse(status_code=202, content={"taskId": outcome.task_id})
    if isinstance(outcome, Immediate):
        return JSONResponse(status_code=200, content={"immediateResult": outcome.result})
    return _error(500, "Unexpected submission outcome")


@router.get(
    "/tasks/{task_id}",
    summary="Read a task",
    description=(
        "Returns `{status, progress, result, errorMessage}`. `result` is set only once the "
        "task is completed and `errorMessage` only once it failed."
    ),
    responses=_ERROR_RESPONSES,
)
async def read_task(task_id: str, authorization: str | None = Header(default=None)):
    try:
        status = await _task_service.get_status(task_id, _credential(authorization))
    except AuthenticationError as exc:
        return _error(401, str(exc))
    except TaskAccessDeniedError as exc:
        return _error(403, str(exc))
    except TaskNotFoundError as exc:
        return _error(404, str(exc))

    return {
        "status": status.state.value,
        "progress": status.progress,
        "result": status.result,
        "errorMessage": status.error,
    }
