"""
Structured logging for pipeline operations (ingest, index build, search, debounce).
"""

import logging
from typing import Any, Dict


def _truncate(text: str, limit: int = 50) -> str:
    return text[:limit] + "..." if len(text) > limit else text


class StructuredLogger:
    """Structured logger for semantic search operations."""

    def __init__(self, name: str = "semsearch"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None, level: int = logging.INFO):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        self.logger.log(level, message)

    def log_ingest(self, document_count: int, status: str = "success", details: Dict[str, Any] = None):
        """Log a bulk corpus ingest."""
        log_details = {"document_count": document_count}
        if details:
            log_details.update(details)

        level = logging.ERROR if status == "failed" else logging.INFO
        self.log_operation("ingest", status, log_details, level)

    def log_index_build(self, index_type: str, size: int, duration_ms: float, status: str = "success"):
        """Log a vector index build."""
        log_details = {
            "index_type": index_type,
            "size": size,
            "duration_ms": round(duration_ms, 2)
        }
        self.log_operation("index.build", status, log_details)

    def log_search(self, query: str, result_count: int, generation: int = None, status: str = "success"):
        """Log a search cycle."""
        log_details = {"query": _truncate(query), "result_count": result_count}
        if generation is not None:
            log_details["generation"] = generation

        level = logging.DEBUG if status in ("not_ready", "superseded", "stale") else logging.INFO
        self.log_operation("search", status, log_details, level)

    def log_debounce(self, action: str, query: str):
        """Log debouncer transitions."""
        self.log_operation(f"debounce.{action}", "ok", {"query": _truncate(query)}, logging.DEBUG)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


# Global logger instance
logger = StructuredLogger()
