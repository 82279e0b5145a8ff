from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_SUBMISSION_PATH = "/wp-json/brand-voice/v1/submit"


@dataclass
class RuntimeEnv:
    host: str
    port: int


@dataclass
class AppConfig:
    poll_interval_seconds: float
    run_deadline_seconds: float
    tool_call_timeout_seconds: float
    tool_batch_timeout_seconds: float
    credential_timeout_seconds: float
    session_lock_poll_seconds: float
    cancel_active_runs: bool
    cancel_max_attempts: int
    cancel_retry_seconds: float
    openai_max_retries: int
    submission_url: str | None
    submission_path: str
    report_type: str
    report_status: str
    tool_handler: str
    cors_origins: list[str]
    log_level: str
    log_consumers: list | None


def load_json_config() -> dict:
    config_path = Path.cwd() / "config.json"
    if config_path.exists():
        with open(config_path) as f:
            return json.load(f)
    return {}


def _to_bool(value: object, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    return bool(value)


def parse_app_config(config: dict) -> AppConfig:
    tool_handler = str(config.get("ToolHandler", "webhook")).strip().lower()
    if tool_handler not in {"webhook", "pending"}:
        raise ValueError(f"Unknown tool handler: {tool_handler!r}. Supported: 'webhook', 'pending'")

    return AppConfig(
        poll_interval_seconds=float(config.get("PollIntervalSeconds", 1.0)),
        run_deadline_seconds=float(config.get("RunDeadlineSeconds", 25)),
        tool_call_timeout_seconds=float(config.get("ToolCallTimeoutSeconds", 5)),
        tool_batch_timeout_seconds=float(config.get("ToolBatchTimeoutSeconds", 10)),
        credential_timeout_seconds=float(config.get("CredentialTimeoutSeconds", 5)),
        session_lock_poll_seconds=float(config.get("SessionLockPollSeconds", 0.1)),
        cancel_active_runs=_to_bool(config.get("CancelActiveRuns", True), default=True),
        cancel_max_attempts=max(1, int(config.get("CancelMaxAttempts", 5))),
        cancel_retry_seconds=float(config.get("CancelRetrySeconds", 1.0)),
        openai_max_retries=int(config.get("OpenAIMaxRetries", 4)),
        submission_url=str(config.get("SubmissionUrl", "")).strip() or None,
        submission_path=str(config.get("SubmissionPath", DEFAULT_SUBMISSION_PATH)),
        report_type=str(config.get("ReportType", "brand_voice")),
        report_status=str(config.get("ReportStatus", "pending")),
        tool_handler=tool_handler,
        cors_origins=list(config.get("CorsOrigins", ["*"])),
        log_level=config.get("LogLevel", "INFO"),
        log_consumers=config.get("LogConsumers"),
    )


def resolve_runtime_env() -> RuntimeEnv:
    return RuntimeEnv(
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", 7753)),
    )
