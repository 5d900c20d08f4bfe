"""FastAPI server that exposes the request dispatcher to a presentation shell."""

from __future__ import annotations

from threading import Thread
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException
from sqlalchemy.exc import SQLAlchemyError
import uvicorn

from quiz_crafter.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from quiz_crafter.constants.network_constants import API_PREFIX, DEFAULT_HOST, DEFAULT_PORT
from quiz_crafter.core.request_dispatcher import RequestDispatcher

_STORAGE_FAILURE_DETAIL = "The quiz store could not complete the request. Please try again."


def _get_dispatcher_dependency(dispatcher: RequestDispatcher):
    def dependency() -> RequestDispatcher:
        return dispatcher

    return dependency


def create_api_app(dispatcher: RequestDispatcher) -> FastAPI:
    """Create a FastAPI application wired to the provided dispatcher."""
    app = FastAPI(
        title=f"{APP_NAME} API",
        version=APP_VERSION,
        description=APP_ABOUT_TEXT,
        license_info={"name": APP_LICENSE},
    )
    dispatcher_dep = _get_dispatcher_dependency(dispatcher)

    @app.get(f"{API_PREFIX}/operations")
    def list_operations(
        manager: RequestDispatcher = Depends(dispatcher_dep),
    ) -> dict[str, object]:
        return {"operations": manager.operations}

    @app.post(f"{API_PREFIX}/{{operation}}")
    def invoke_operation(
        operation: str,
        payload: Any = Body(default=None),
        manager: RequestDispatcher = Depends(dispatcher_dep),
    ) -> dict[str, Any]:
        if operation not in manager.operations:
            raise HTTPException(status_code=404, detail=f"Unknown operation '{operation}'.")
        try:
            return manager.dispatch(operation, payload)
        except SQLAlchemyError as exc:
            raise HTTPException(status_code=500, detail=_STORAGE_FAILURE_DETAIL) from exc

    return app


def start_api_server(
    dispatcher: RequestDispatcher,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> Thread:
    """Start the FastAPI server in a background daemon thread."""
    app = create_api_app(dispatcher)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="QuizApiServer", daemon=True)
    thread.start()
    return thread
