"""
ClickUp — MOCK task tracker.

⚠️  Mock implementation for development and testing.
"""

import logging
from typing import Any, Dict, List, Optional

from src.integrations.contracts.interfaces import ContractRequest, TaskResult, TaskTracker
from src.integrations.policy.response_wrappers import ProviderError

logger = logging.getLogger(__name__)


class ClickUpMockClient(TaskTracker):
    def __init__(self, fail_with: Optional[str] = None, error_code: Optional[str] = None):
        self._fail_with = fail_with
        self._error_code = error_code
        self._counter = 0
        self.tasks: List[Dict[str, Any]] = []

    def create_task(
        self, request: ContractRequest, document_id: Optional[str], invoice_url: Optional[str]
    ) -> TaskResult:
        if self._fail_with:
            raise ProviderError("clickup", self._fail_with, code=self._error_code)

        self._counter += 1
        task_id = f"mock{self._counter:05d}"
        self.tasks.append({
            "id": task_id,
            "name": f"Contract: {request.client_company} - {request.contract_type.value.upper()}",
            "document_id": document_id,
            "invoice_url": invoice_url,
        })
        logger.info("[CLICKUP MOCK] Task %s created for %s", task_id, request.client_company)
        return TaskResult(id=task_id, url=f"https://app.clickup.mock/t/{task_id}")

    def get_workspace_tree(self) -> List[Dict[str, Any]]:
        return [{
            "id": "mock-team",
            "name": "Mock Workspace",
            "spaces": [{
                "id": "mock-space",
                "name": "Operations",
                "folders": [],
                "folderless_lists": [{"id": "mock-list", "name": "Contracts"}],
            }],
        }]
