"""nfo logging for the fixprompt service.

``setup_logging`` runs once per process: from the server lifespan (so a bare
``uvicorn fixprompt.server:app`` is covered) and from each CLI command. It
routes the stdlib ``fixprompt.*`` loggers through nfo sinks:

    stderr      TerminalSink, format from FIXPROMPT_LOG_FORMAT
    log file    MarkdownSink behind RedactingSink, only when FIXPROMPT_LOG_FILE is set

Loggers worth knowing:
    fixprompt.access    one line per HTTP request (method, path, status, ms)
    fixprompt.core      prompt length, platform, context mode, scores
    fixprompt.gateway   upstream failures and retries

Prompt text never reaches a sink. Modules log lengths and counts only. The
arguments and return values of ``@log_call`` functions carry prompts, so the
terminal sink hides them and the log file gets them through ``RedactingSink``.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import replace

import litellm
from nfo.configure import configure
from nfo.logger import Logger
from nfo.models import LogEntry
from nfo.sinks import MarkdownSink, Sink
from nfo.terminal import TerminalSink

from fixprompt.env_config import EnvConfig, get_env_config

# LiteLLM and its HTTP stack log request payloads at INFO
QUIET_LOGGERS = ("LiteLLM", "LiteLLM Router", "LiteLLM Proxy", "litellm", "httpx", "httpcore")

REDACTED = "<redacted>"

_logger: Logger | None = None


class RedactingSink(Sink):
    """Pass entries to ``delegate`` with call arguments and return values blanked.

    Keyword names and types survive; their values do not.
    """

    def __init__(self, delegate: Sink) -> None:
        self.delegate = delegate

    def write(self, entry: LogEntry) -> None:
        self.delegate.write(replace(
            entry,
            args=tuple(REDACTED for _ in entry.args),
            kwargs={key: REDACTED for key in entry.kwargs},
            return_value=REDACTED if entry.return_type else None,
        ))

    def close(self) -> None:
        self.delegate.close()


def setup_logging(env: EnvConfig | None = None, level: str | None = None) -> Logger:
    """Configure nfo from ``env`` (default: ``get_env_config()``).

    ``level`` overrides ``env.log_level``. Later calls return the first
    logger unchanged.
    """
    global _logger

    if _logger is not None:
        return _logger

    env = env or get_env_config()
    sinks = [
        TerminalSink(
            format=env.log_format,
            stream=sys.stderr,
            show_args=False,
            show_return=False,
            show_duration=True,
            show_traceback=env.environment != "production",
        ),
    ]
    if env.log_file:
        sinks.append(RedactingSink(MarkdownSink(file_path=env.log_file)))

    _logger = configure(
        name="fixprompt",
        level=(level or env.log_level).upper(),
        sinks=sinks,
        bridge_stdlib=True,
        propagate_stdlib=False,
        env_prefix="FIXPROMPT_NFO_",
        environment=env.environment,
        version=_get_version(),
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    litellm.suppress_debug_info = True

    logging.getLogger("fixprompt.logging").debug(
        f"Logging ready: level={(level or env.log_level).upper()} format={env.log_format} "
        f"file={env.log_file or '-'}"
    )
    return _logger


def reset_logging() -> None:
    """Forget the configured logger so the next ``setup_logging`` reconfigures (for testing)."""
    global _logger
    _logger = None


def _get_version() -> str:
    from fixprompt import __version__
    return __version__
