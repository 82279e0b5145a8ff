import re
import sys
from pathlib import Path
from typing import Any

from loguru import logger

# Request identifiers bound with ``logger.contextualize`` in the relay.
CONTEXT_FIELDS = ("assistant_id", "thread_id", "run_id")

_CONTEXT = "[{extra[assistant_id]} {extra[thread_id]} {extra[run_id]}]"
CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> <level>{level:<8}</level> "
    f"<magenta>{_CONTEXT}</magenta> <cyan>{{name}}</cyan>:<cyan>{{line}}</cyan> - <level>{{message}}</level>"
)
FILE_FORMAT = f"{{time:YYYY-MM-DD HH:mm:ss.SSS}} | {{level:<8}} | {_CONTEXT} | {{name}}:{{function}}:{{line}} - {{message}}"

# OpenAI-style secret keys, plus "apiKey": "..." pairs echoed from tenant sites.
_SECRET_PATTERNS = (
    re.compile(r"\bsk-[A-Za-z0-9_\-]{8,}"),
    re.compile(r"(?<=[\"']apiKey[\"']: [\"'])[^\"']+"),
)


def mask_secret(value: str | None, visible: int = 4) -> str:
    if not value:
        return "<empty>"
    if len(value) <= visible * 2:
        return "*" * len(value)
    return f"{value[:visible]}...{value[-visible:]}"


def redact(text: str) -> str:
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(lambda m: mask_secret(m.group(0)), text)
    return text


def _patch_record(record: dict) -> None:
    extra = record["extra"]
    for name in CONTEXT_FIELDS:
        extra.setdefault(name, "-")
    record["message"] = redact(record["message"])


def _console_sink(level: str, **_: Any) -> str:
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT)
    return f"console (stderr, {level})"


def _file_sink(level: str, path: str = "logs/assistant-relay.log", rotation: str = "10 MB", retention: int = 5) -> str:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    logger.add(path, level=level, format=FILE_FORMAT, rotation=rotation, retention=retention, enqueue=True)
    return f"file ({path}, {level})"


_SINKS = {
    "console": _console_sink,
    "file": _file_sink,
}


def setup_logging(level: str = "INFO", consumers: list[dict[str, Any]] | None = None) -> list[str]:
    """Install the request-context patcher and the configured sinks.

    Every record carries ``assistant_id``/``thread_id``/``run_id`` (``-`` when
    unbound) and has secret-looking values masked before any sink sees it.
    Returns a description per registered sink.
    """
    logger.remove()
    logger.configure(patcher=_patch_record)

    descriptions: list[str] = []
    for config in consumers if consumers is not None else [{"type": "console"}]:
        add_sink = _SINKS.get(config.get("type", ""))
        if add_sink is None:
            logger.warning(f"Unknown log consumer type: {config.get('type')!r}")
            continue
        options = {k: v for k, v in config.items() if k not in ("type", "level")}
        descriptions.append(add_sink(config.get("level", level), **options))
    return descriptions
