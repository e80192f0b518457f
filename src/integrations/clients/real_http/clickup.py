"""
Real ClickUp HTTP Client.

Creates the tracking task for each contract and walks the workspace tree for
the diagnostics endpoint. ClickUp authenticates with the raw personal token in
the ``Authorization`` header.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from src.integrations.contracts.interfaces import ContractRequest, TaskResult, TaskTracker
from src.integrations.policy.response_wrappers import ProviderError, normalize_clickup_task
from src.utils.config_loader import ClickUpConfig, mask_secret

logger = logging.getLogger(__name__)


def task_description(request: ContractRequest, document_id: Optional[str], invoice_url: Optional[str]) -> str:
    return (
        "New contract generated and sent for signature.\n\n"
        f"Client: {request.client_company}\n"
        f"Contact: {request.client_name} ({request.client_title})\n"
        f"Email: {request.client_email}\n"
        f"Type: {request.contract_type.value}\n"
        f"Amount: ${request.formatted_amount}\n"
        f"SignNow Doc ID: {document_id or 'N/A'}\n"
        f"Invoice: {invoice_url or 'N/A'}"
    )


class ClickUpClient(TaskTracker):
    def __init__(
        self,
        config: ClickUpConfig,
        http_client: Optional[httpx.Client] = None,
        timeout_seconds: float = 55.0,
    ) -> None:
        self.config = config
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(base_url=config.api_url, timeout=timeout_seconds)

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        if not self.config.api_token:
            raise ProviderError("clickup", "CLICKUP_API_TOKEN not set")

        headers = {"Authorization": self.config.api_token, "Content-Type": "application/json"}
        try:
            response = self._http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise ProviderError("clickup", f"ClickUp request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError(
                "clickup",
                f"ClickUp parse error: {response.text[:200]}",
                status_code=response.status_code,
            ) from exc

        if not isinstance(data, dict):
            raise ProviderError("clickup", f"Unexpected ClickUp response: {data!r}", status_code=response.status_code)
        if data.get("err"):
            raise ProviderError(
                "clickup",
                str(data["err"]),
                status_code=response.status_code,
                code=data.get("ECODE"),
                payload=data,
            )
        if response.is_error:
            raise ProviderError(
                "clickup",
                f"ClickUp {method} {path} returned {response.status_code}",
                status_code=response.status_code,
                payload=data,
            )
        return data

    def create_task(
        self, request: ContractRequest, document_id: Optional[str], invoice_url: Optional[str]
    ) -> TaskResult:
        if not self.config.list_id:
            raise ProviderError("clickup", "CLICKUP_LIST_ID not set")

        logger.info(
            "CLICKUP: Creating task in list %s (token %s)",
            self.config.list_id,
            mask_secret(self.config.api_token),
        )
        data = self._request(
            "POST",
            f"/list/{self.config.list_id}/task",
            json={
                "name": f"Contract: {request.client_company} - {request.contract_type.value.upper()}",
                "description": task_description(request, document_id, invoice_url),
                "status": "to do",
                "priority": 2,
                "tags": ["contract", "auto-generated"],
            },
        )
        task = normalize_clickup_task(data)
        logger.info("CLICKUP: Task created: %s", task.id)
        return TaskResult(id=task.id, url=task.url)

    def get_workspace_tree(self) -> List[Dict[str, Any]]:
        """Teams, spaces, folders and lists visible to the token. Read-only."""
        teams: List[Dict[str, Any]] = []
        for team in self._request("GET", "/team").get("teams", []):
            team_info: Dict[str, Any] = {"id": team.get("id"), "name": team.get("name"), "spaces": []}

            spaces = self._request("GET", f"/team/{team.get('id')}/space", params={"archived": "false"})
            for space in spaces.get("spaces", []):
                space_info: Dict[str, Any] = {
                    "id": space.get("id"),
                    "name": space.get("name"),
                    "folders": [],
                    "folderless_lists": [],
                }

                folders = self._request("GET", f"/space/{space.get('id')}/folder", params={"archived": "false"})
                for folder in folders.get("folders", []):
                    space_info["folders"].append({
                        "id": folder.get("id"),
                        "name": folder.get("name"),
                        "lists": [{"id": lst.get("id"), "name": lst.get("name")} for lst in folder.get("lists") or []],
                    })

                lists = self._request("GET", f"/space/{space.get('id')}/list", params={"archived": "false"})
                for lst in lists.get("lists", []):
                    space_info["folderless_lists"].append({"id": lst.get("id"), "name": lst.get("name")})

                team_info["spaces"].append(space_info)
            teams.append(team_info)
        return teams
