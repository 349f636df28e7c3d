import os
from pathlib import Path
from typing import Optional


class TaskPaths:
    """
    Log path manager for the client.

    Structure:
    - Client logs: <logs_root>/<name>.log

    `logs_root` defaults to the CHATBOT_LOG_DIR environment variable, then "logs".
    """

    def __init__(self, logs_root: Optional[str | Path] = None):
        self.logs_root = Path(logs_root or os.getenv("CHATBOT_LOG_DIR") or "logs")

    def get_log_path(self, name: str = "chatbot") -> str:
        """
        Get standardized log file path, creating its directory.

        Args:
            name: Log file name (without .log extension)

        Returns:
            Full path to log file as string
        """
        p = self.logs_root / f"{name}.log"
        p.parent.mkdir(parents=True, exist_ok=True)
        return str(p)
