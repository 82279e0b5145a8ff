import uvicorn
from dotenv import load_dotenv
from loguru import logger

from assistant_relay.app_config import load_json_config, parse_app_config, resolve_runtime_env
from assistant_relay.bootstrap import bootstrap_runtime
from assistant_relay.server import create_app


def run() -> None:
    load_dotenv()

    app_config = parse_app_config(load_json_config())
    env = resolve_runtime_env()
    runtime = bootstrap_runtime(app_config)

    logger.info(f"assistant-relay listening on {env.host}:{env.port}")
    logger.info(
        f"Run deadline: {app_config.run_deadline_seconds:g}s, poll: {app_config.poll_interval_seconds:g}s, "
        f"tool handler: {app_config.tool_handler}"
    )
    if runtime.log_descriptions:
        logger.info(f"Logging: {', '.join(runtime.log_descriptions)}")

    uvicorn.run(
        create_app(runtime),
        host=env.host,
        port=env.port,
        log_level=app_config.log_level.lower(),
        timeout_graceful_shutdown=5,
    )


if __name__ == "__main__":
    run()
