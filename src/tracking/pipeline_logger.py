# src/tracking/pipeline_logger.py
"""Per-run pipeline log: every step request, response and outcome for one article.

Each run owns its own PipelineLogger instance; nothing is shared between
concurrent runs. Records are JSON lines appended to
``{log_dir}/{mode}-pipeline-{timestamp}-{session}.log``; a concise line is also
emitted on the module logger so the run shows up in the application log.
Orchestrators accept ``None`` in place of a logger, so every call site is
guarded and logging never affects a step outcome.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal

from newsforge.logging.handlers import create_rotating_handler
from newsforge.logging.logger import JsonFormatter

logger = logging.getLogger(__name__)

PipelineMode = Literal["digest", "aggregate"]

CONSOLE_ONLY = "console-only"

_FILE_ROTATION = "10MB"
_FILE_RETENTION = 5


def _to_loggable(value: Any) -> Any:
    """Turn pydantic models and exceptions into JSON-friendly values."""
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, BaseException):
        return {"name": type(value).__name__, "message": str(value)}
    if isinstance(value, dict):
        return {k: _to_loggable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_loggable(v) for v in value]
    return value


class PipelineLogger:
    """Append-only structured log for a single pipeline run."""

    def __init__(
        self,
        session_id: str,
        mode: PipelineMode = "digest",
        log_dir: Path | str = Path("logs"),
        file_logging: bool = True,
    ) -> None:
        self._session_id = session_id
        self._mode: PipelineMode = mode
        self._closed = False

        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%f")
        self._log_file_path: Path | None = None

        # Standalone logger, not registered with logging.getLogger, so one
        # instance per run does not leak into the logger manager.
        self._run_logger = logging.Logger(f"newsforge.pipeline.{mode}.{session_id}")
        self._run_logger.setLevel(logging.INFO)

        if file_logging:
            path = Path(log_dir).expanduser() / f"{mode}-pipeline-{timestamp}-{session_id}.log"
            try:
                handler = create_rotating_handler(
                    path, rotation=_FILE_ROTATION, retention=_FILE_RETENTION
                )
            except OSError as e:
                logger.warning(
                    "Cannot open pipeline log file %s, using console only: %s", path, e
                )
            else:
                handler.setFormatter(JsonFormatter())
                self._run_logger.addHandler(handler)
                self._log_file_path = path

        self._emit(
            logging.INFO,
            "LOGGER_INIT",
            f"{mode.capitalize()} pipeline logger initialized",
            {
                "sessionId": session_id,
                "pipelineMode": mode,
                "logFilePath": self.get_log_file_path(),
            },
        )

    # --- Properties ---

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def mode(self) -> PipelineMode:
        return self._mode

    @property
    def closed(self) -> bool:
        return self._closed

    def get_log_file_path(self) -> str:
        """Where this run's records go, or 'console-only'."""
        return str(self._log_file_path) if self._log_file_path else CONSOLE_ONLY

    # --- Events ---

    def log_initial_request(self, request: Any) -> None:
        self._emit(logging.INFO, "PIPELINE_START", "Pipeline started", {"request": request})

    def log_step_request(self, step_number: int, step_name: str, request: Any) -> None:
        self._emit(
            logging.INFO,
            f"STEP_{step_number}_REQUEST",
            f"Step {step_number} ({step_name}) request",
            {"request": request},
        )

    def log_step_response(self, step_number: int, step_name: str, response: Any) -> None:
        self._emit(
            logging.INFO,
            f"STEP_{step_number}_RESPONSE",
            f"Step {step_number} ({step_name}) response",
            {"response": response},
        )

    def log_step_complete(self, step_number: int, step_name: str, result: Any) -> None:
        self._emit(
            logging.INFO,
            f"STEP_{step_number}_COMPLETE",
            f"Step {step_number} ({step_name}) complete",
            {"result": result},
        )

    def log_note(self, tag: str, message: str, data: Any = None) -> None:
        """Free-form annotation, e.g. a skipped step."""
        self._emit(logging.INFO, tag, message, {"note": data} if data is not None else None)

    def log_error(self, tag: str, error: Any) -> None:
        self._emit(
            logging.ERROR,
            tag,
            f"Error occurred in {self._mode} pipeline",
            {"error": error},
        )

    def log_pipeline_complete(self, success: bool, final_response: Any) -> None:
        self._emit(
            logging.INFO if success else logging.WARNING,
            "PIPELINE_COMPLETE",
            f"Pipeline {'succeeded' if success else 'failed'}",
            {"success": success, "response": final_response},
        )

    def close(self) -> None:
        """Flush and detach file handlers. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        for handler in list(self._run_logger.handlers):
            handler.flush()
            handler.close()
            self._run_logger.removeHandler(handler)

    # --- Internals ---

    def _emit(self, level: int, tag: str, message: str, data: dict[str, Any] | None) -> None:
        logger.log(level, "[%s:%s] %s (session=%s)", self._mode.upper(), tag, message, self._session_id)
        if self._closed or not self._run_logger.handlers:
            return
        payload: dict[str, Any] = {
            "step": tag,
            "pipelineMode": self._mode,
            "sessionId": self._session_id,
        }
        if data:
            payload.update({k: _to_loggable(v) for k, v in data.items()})
        self._run_logger.log(level, message, extra={"data": payload})
