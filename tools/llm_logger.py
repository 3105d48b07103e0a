import json
from datetime import datetime
from typing import Any, Dict, List, Optional
from pathlib import Path
import logging
import threading

from tools import settings

logger = logging.getLogger(__name__)


class LLMLogger:
    """Append-only JSON log of the prompts sent to the LLM and its replies."""

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self.log_file = Path(settings.data_dir) / "Log" / "llm_log.json"
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        if not self.log_file.exists():
            self.log_file.write_text("[]", encoding="utf-8")
        self._initialized = True

    def log_llm_call(
        self,
        messages: List[Dict[str, str]],
        response: Any,
        model: str,
        module: str,
        metadata: Optional[Dict] = None,
    ):
        """Record one call. Failures are logged and otherwise ignored."""
        try:
            entry = {
                "timestamp": datetime.now().isoformat(),
                "module": module,
                "metadata": metadata or {},
                "request": {"model": model, "messages": messages},
                "response": self._extract_response_data(response),
            }
            with self._lock:
                logs = self._read_logs()
                logs.append(entry)
                self._write_logs(logs)
        except Exception as e:
            logger.warning("Failed to log LLM call: %s", e)

    @staticmethod
    def _extract_response_data(response: Any) -> Dict:
        metadata = getattr(response, "response_metadata", None) or {}
        usage = metadata.get("token_usage", {})
        return {
            "id": metadata.get("id", ""),
            "model": metadata.get("model_name", metadata.get("model", "")),
            "content": getattr(response, "content", str(response)),
            "finish_reason": metadata.get("finish_reason", "stop"),
            "usage": {
                "prompt_tokens": usage.get("prompt_tokens", 0),
                "completion_tokens": usage.get("completion_tokens", 0),
                "total_tokens": usage.get("total_tokens", 0),
            },
        }

    def _read_logs(self) -> List[Dict]:
        try:
            with open(self.log_file, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError):
            return []

    def _write_logs(self, logs: List[Dict]):
        with open(self.log_file, "w", encoding="utf-8") as f:
            json.dump(logs, f, indent=2, ensure_ascii=False)

    def read_entries(self) -> List[Dict]:
        with self._lock:
            return self._read_logs()


def get_llm_logger() -> LLMLogger:
    """Get singleton LLMLogger instance"""
    return LLMLogger()
