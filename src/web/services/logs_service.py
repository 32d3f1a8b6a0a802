from __future__ import annotations

from collections import deque
from typing import List, Optional


class LogsService:
    @staticmethod
    def tail(path: Optional[str], lines: int = 200) -> List[str]:
        """Last `lines` lines of the log file, or a one-line note when unreadable."""
        if not path:
            return ["(log_path not configured)"]
        try:
            with open(path, "r", encoding="utf-8", errors="replace") as f:
                return list(deque(f, maxlen=max(1, lines)))
        except FileNotFoundError:
            return [f"(log file not found: {path})"]
        except OSError as e:
            return [f"(failed to read log file: {e})"]
