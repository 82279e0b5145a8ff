from __future__ import annotations

from dataclasses import dataclass

from assistant_relay.app_config import AppConfig
from assistant_relay.credentials import CredentialResolver
from assistant_relay.locks import InMemoryLockManager
from assistant_relay.logging_config import setup_logging
from assistant_relay.relay import AssistantRelay
from assistant_relay.tool_handler import ToolHandler
from assistant_relay.tools.pending_calls import PendingToolCalls, PendingToolHandler
from assistant_relay.tools.webhook_submit import WebhookToolHandler


@dataclass
class AppRuntime:
    config: AppConfig
    relay: AssistantRelay
    pending_calls: PendingToolCalls
    log_descriptions: list[str]


def create_tool_handler(app: AppConfig, pending_calls: PendingToolCalls) -> ToolHandler:
    if app.tool_handler == "pending":
        return PendingToolHandler(pending_calls)
    return WebhookToolHandler(
        submission_url=app.submission_url,
        submission_path=app.submission_path,
        report_type=app.report_type,
        report_status=app.report_status,
        timeout_seconds=app.tool_call_timeout_seconds,
    )


def bootstrap_runtime(app: AppConfig, *, configure_logging: bool = True) -> AppRuntime:
    log_descriptions = setup_logging(level=app.log_level, consumers=app.log_consumers) if configure_logging else []

    pending_calls = PendingToolCalls()
    relay = AssistantRelay(
        app,
        credentials=CredentialResolver(timeout_seconds=app.credential_timeout_seconds),
        locks=InMemoryLockManager(poll_interval_seconds=app.session_lock_poll_seconds),
        tool_handler=create_tool_handler(app, pending_calls),
    )

    return AppRuntime(
        config=app,
        relay=relay,
        pending_calls=pending_calls,
        log_descriptions=log_descriptions,
    )
