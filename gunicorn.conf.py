"""
Gunicorn Configuration

Uvicorn workers under Gunicorn. Bind address, log level and the worker
timeout come from the application settings so one .env drives both the
app and the process manager.
"""

import multiprocessing
import os

from insight_engine.config import get_settings

_settings = get_settings()

bind = os.getenv("BIND", f"{_settings.api_host}:{_settings.api_port}")
backlog = 2048

workers = int(os.getenv("WORKERS", multiprocessing.cpu_count() * 2 + 1))
worker_class = "uvicorn.workers.UvicornWorker"
max_requests = 10000
max_requests_jitter = 1000
keepalive = 5
graceful_timeout = 30

# A question may wait on the language model for the full request timeout
timeout = int(_settings.llm.timeout_seconds) + 30

proc_name = _settings.app_name

errorlog = "-"
accesslog = "-"
loglevel = _settings.monitoring.log_level.lower()


def post_fork(server, worker):
    """Each worker renders logs through the application's structlog setup."""
    from insight_engine.config.logging import configure_logging

    configure_logging(settings=_settings)


def when_ready(server):
    server.log.info(
        "Serving %s (%s) with %s workers, language model %s",
        _settings.app_name,
        _settings.app_env,
        server.cfg.workers,
        "enabled" if _settings.llm.is_configured else "disabled",
    )
