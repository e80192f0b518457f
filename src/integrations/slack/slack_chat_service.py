import logging
from typing import Any, Dict, List, Optional

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

from src.integrations.policy.response_wrappers import ProviderError

logger = logging.getLogger(__name__)


class SlackChatService:
    def __init__(self, token: str, channel: str, client: WebClient = None):
        self.client = client or WebClient(token=token)
        self.channel = channel

    def open_view(self, trigger_id: str, view: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self.client.views_open(trigger_id=trigger_id, view=view)
            return response.data
        except SlackApiError as e:
            raise ProviderError("slack", f"Slack API error: {self._extract_slack_error(e)}") from e

    def post_message(
        self,
        text: str,
        blocks: Optional[List[Dict[str, Any]]] = None,
        channel: Optional[str] = None,
    ) -> Dict[str, Any]:
        target = channel or self.channel
        if not target:
            raise ProviderError("slack", "Slack API error: no channel configured")
        kwargs: Dict[str, Any] = {"channel": target, "text": text}
        if blocks:
            kwargs["blocks"] = blocks
        try:
            response = self.client.chat_postMessage(**kwargs)
            return response.data
        except SlackApiError as e:
            raise ProviderError("slack", f"Slack API error: {self._extract_slack_error(e)}") from e

    def send_direct_message(self, user_id: str, text: str) -> Dict[str, Any]:
        # Posting to a user id delivers into the bot's DM with that user.
        return self.post_message(text=text, channel=user_id)

    @staticmethod
    def _extract_slack_error(exc: Exception) -> str:
        response = getattr(exc, "response", None)
        if isinstance(response, dict):
            return str(response.get("error", "unknown_error"))
        try:
            return str(response["error"])  # type: ignore[index]
        except Exception:
            return str(exc)
