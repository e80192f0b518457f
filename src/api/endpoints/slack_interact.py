import logging
from typing import Callable, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response

from src.api.dependencies import (
    get_clock,
    get_pipeline_builder,
    get_settings,
    get_slack_service,
    verify_slack_request,
)
from src.integrations.contracts.interfaces import ContractRequest
from src.integrations.slack.slack_chat_service import SlackChatService
from src.pipeline.notifier import MODAL_CALLBACK_ID, SlackContractNotifier
from src.pipeline.validation import (
    ContractValidationError,
    build_contract_request,
    extract_interaction_payload,
    extract_view_values,
)
from src.utils.config_loader import Settings

logger = logging.getLogger(__name__)

router = APIRouter()


def process_submission(
    request: ContractRequest,
    user_id: Optional[str],
    settings: Settings,
    builder: Callable,
    clock: Callable,
    slack: Optional[SlackChatService],
) -> None:
    """Runs after Slack has been answered: notice, pipeline, summary, submitter DM."""
    notifier = SlackContractNotifier(slack) if slack is not None else None

    try:
        if notifier is not None:
            try:
                notifier.processing(request)
            except Exception as e:
                logger.warning("SLACK-INTERACT: processing notice failed: %s", e)

        pipeline = builder(settings, clock)
        try:
            result = pipeline.run(request)
        finally:
            pipeline.close()
        logger.info("SLACK-INTERACT: success=%s company=%s", result.success, request.client_company)

        if notifier is not None and user_id and settings.slack.dm_submitter:
            try:
                notifier.direct_message(user_id, request, result)
            except Exception as e:
                logger.warning("SLACK-INTERACT: DM failed: %s", e)
    except Exception as e:
        logger.error("SLACK-INTERACT: Error: %s", e, exc_info=True)
        if notifier is not None:
            try:
                notifier.crashed(request.client_company, str(e))
            except Exception as post_error:
                logger.error("SLACK-INTERACT: crash notice failed: %s", post_error)


@router.post("/slack-interact", tags=["Slack"])
async def slack_interact(
    request: Request,
    background_tasks: BackgroundTasks,
    settings: Settings = Depends(get_settings),
    builder: Callable = Depends(get_pipeline_builder),
    clock: Callable = Depends(get_clock),
    slack: Optional[SlackChatService] = Depends(get_slack_service),
):
    """Accept the /new-contract modal submission and finish the work in the background."""
    await verify_slack_request(request, settings)
    payload = extract_interaction_payload(await request.form())

    if not payload or payload.get("type") != "view_submission":
        return Response(status_code=200)
    view = payload.get("view") or {}
    if view.get("callback_id") != MODAL_CALLBACK_ID:
        return Response(status_code=200)

    values = extract_view_values(view.get("state") or {})
    try:
        contract = build_contract_request(
            values,
            today=clock().date(),
            strict_contract_type=settings.strict_contract_type,
        )
    except ContractValidationError as e:
        logger.info("SLACK-INTERACT: validation failed: %s", e.message)
        return {"response_action": "errors", "errors": e.field_errors}

    user_id = (payload.get("user") or {}).get("id")
    logger.info("SLACK-INTERACT: company=%s email=%s", contract.client_company, contract.client_email)
    background_tasks.add_task(process_submission, contract, user_id, settings, builder, clock, slack)
    return {"response_action": "clear"}
