from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from assistant_relay.bootstrap import AppRuntime
from assistant_relay.relay import RelayRequest
from assistant_relay.schemas import HealthResponse, RunAssistantRequest, ToolOutputRequest
from assistant_relay.tools.pending_calls import ToolCallAlreadyCompletedError, UnknownToolCallError


def _runtime(request: Request) -> AppRuntime:
    return request.app.state.runtime


router = APIRouter(prefix="/api")


@router.get("/message")
async def message() -> dict:
    return {"message": "Hello from assistant-relay"}


@router.get("/send-message")
async def send_message(request: Request) -> dict:
    return {
        "greeting": "Hello from assistant-relay",
        "date": datetime.now(UTC).isoformat(),
        "url": str(request.url),
        "headers": dict(request.headers),
    }


@router.post("/run-assistant")
async def run_assistant(body: RunAssistantRequest, request: Request) -> dict:
    logger.info(
        f"run-assistant: assistant={body.assistant_id} thread={body.thread_id or '-'} "
        f"site={body.wordpress_url} message_len={len(body.message)}"
    )
    return await _runtime(request).relay.handle(
        RelayRequest(
            message=body.message,
            assistant_id=body.assistant_id,
            api_key_name=body.api_key_name,
            wordpress_url=body.wordpress_url,
            thread_id=body.thread_id,
            webhook_url=body.webhook_url,
        )
    )


@router.get("/tool-outputs")
async def list_pending_tool_calls(request: Request) -> list[dict]:
    return _runtime(request).pending_calls.list_pending()


@router.post("/tool-outputs/{tool_call_id}")
async def complete_tool_call(tool_call_id: str, body: ToolOutputRequest, request: Request) -> dict:
    try:
        _runtime(request).pending_calls.complete(tool_call_id, body.output)
    except UnknownToolCallError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown tool call: {tool_call_id}")
    except ToolCallAlreadyCompletedError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Tool call already completed: {tool_call_id}")
    logger.info(f"Tool call {tool_call_id} completed externally")
    return {"success": True, "toolCallId": tool_call_id}


def create_app(runtime: AppRuntime) -> FastAPI:
    app = FastAPI(
        title="assistant-relay",
        description="Relays chat widget messages to a hosted assistant",
        version="0.1.0",
    )
    app.state.runtime = runtime

    app.add_middleware(
        CORSMiddleware,
        allow_origins=runtime.config.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Accept"],
        expose_headers=["Content-Type"],
        max_age=86400,
    )

    @app.get("/healthz", response_model=HealthResponse)
    async def healthz() -> HealthResponse:
        return HealthResponse(pending_tool_calls=len(runtime.pending_calls.list_pending()))

    app.include_router(router)
    return app
