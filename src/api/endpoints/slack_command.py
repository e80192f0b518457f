import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from starlette.concurrency import run_in_threadpool

from src.api.dependencies import get_settings, get_slack_service, verify_slack_request
from src.integrations.policy.response_wrappers import ProviderError
from src.integrations.slack.slack_chat_service import SlackChatService
from src.pipeline.notifier import build_contract_modal
from src.utils.config_loader import Settings

logger = logging.getLogger(__name__)

router = APIRouter()


def _ephemeral(text: str):
    return {"response_type": "ephemeral", "text": text}


@router.post("/slack-command", tags=["Slack"])
async def slack_command(
    request: Request,
    settings: Settings = Depends(get_settings),
    slack: Optional[SlackChatService] = Depends(get_slack_service),
):
    """Handle /new-contract by opening the contract modal."""
    await verify_slack_request(request, settings)
    form = await request.form()

    if slack is None:
        return _ephemeral("Error: SLACK_BOT_TOKEN not configured. Contact admin.")

    trigger_id = form.get("trigger_id")
    logger.info("SLACK-CMD: trigger_id=%s user=%s", trigger_id, form.get("user_name"))
    if not trigger_id:
        return _ephemeral("Error: No trigger_id received. Please try again.")

    # Slack expects the modal within 3 seconds of the trigger
    try:
        await run_in_threadpool(slack.open_view, trigger_id, build_contract_modal())
    except ProviderError as e:
        logger.error("SLACK-CMD: views.open error: %s", e)
        return _ephemeral(f"Error opening form: {e}")

    return Response(status_code=200)
