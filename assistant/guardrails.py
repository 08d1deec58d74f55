"""Tool-usage audit log.

Every memory tool invocation is appended to a JSON-lines file so the
planner's reads and writes can be reviewed after a session.
"""

import json
import os
import threading
import time

from assistant import config


class ToolUsageLogger:
    """Append-only JSON-lines logger for every tool invocation."""

    def __init__(self, log_dir: str = config.TOOL_LOG_DIR):
        self._log_path = os.path.join(log_dir, "tool_usage.jsonl")
        self._lock = threading.Lock()

    @property
    def path(self) -> str:
        return self._log_path

    def log(
        self,
        tool_name: str,
        tool_args: dict,
        result_summary: str,
    ) -> None:
        """Write a single log entry."""
        entry = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%S%z"),
            "tool": tool_name,
            "args": tool_args,
            "result": result_summary[:500],  # keep logs compact
        }
        with self._lock:
            with open(self._log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry) + "\n")


# Shared singleton
tool_logger = ToolUsageLogger()
