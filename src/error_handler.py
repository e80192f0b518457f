"""Error handling helpers for the contract pipeline."""
from typing import Any, Dict
import logging

logger = logging.getLogger(__name__)


class ErrorHandler:
    def handle_exception(self, exc: Exception, context: Dict[str, Any] = None) -> Dict[str, Any]:
        logger.error("Unhandled exception in contract pipeline: %s", exc, exc_info=True)
        body: Dict[str, Any] = {"success": False, "error": str(exc) or exc.__class__.__name__}
        if context:
            body["context"] = context
        return body
