import logging
from typing import Any, Callable, Dict, Optional

from fastapi import APIRouter, Body, Depends

from src.api.dependencies import get_clock, get_pipeline_builder, get_settings, get_slack_service
from src.error_handler import ErrorHandler
from src.integrations.slack.slack_chat_service import SlackChatService
from src.pipeline.notifier import SlackContractNotifier
from src.pipeline.validation import ContractValidationError, build_contract_request
from src.utils.config_loader import Settings

logger = logging.getLogger(__name__)

router = APIRouter()
error_handler = ErrorHandler()


@router.post("/slack-contract", tags=["Slack"])
def slack_contract(
    payload: Dict[str, Any] = Body(...),
    settings: Settings = Depends(get_settings),
    builder: Callable = Depends(get_pipeline_builder),
    clock: Callable = Depends(get_clock),
    slack: Optional[SlackChatService] = Depends(get_slack_service),
):
    """Workflow Builder webhook. Validates strictly, then runs the full pipeline."""
    logger.info("SLACK-CONTRACT: Fields received: %s", ", ".join(payload.keys()))
    notifier = SlackContractNotifier(slack) if slack is not None else None

    try:
        request = build_contract_request(
            payload,
            today=clock().date(),
            strict_contract_type=True,
            require_scope=True,
        )
    except ContractValidationError as e:
        errors = e.error_lines()
        logger.info("SLACK-CONTRACT: Validation failed: %s", "; ".join(errors))
        if notifier is not None:
            try:
                notifier.validation_failed(errors, payload)
            except Exception as post_error:
                logger.error("SLACK-CONTRACT: could not post validation errors: %s", post_error)
        return {
            "success": False,
            "errors": errors,
            "message": "Validation failed: " + ", ".join(errors),
        }

    try:
        pipeline = builder(settings, clock)
        try:
            result = pipeline.run(request)
        finally:
            pipeline.close()
    except Exception as e:
        body = error_handler.handle_exception(e, context={"company": request.client_company})
        if notifier is not None:
            try:
                notifier.crashed(request.client_company, body["error"])
            except Exception as post_error:
                logger.error("SLACK-CONTRACT: could not post crash notice: %s", post_error)
        return {"success": False, "error": f"Pipeline call failed: {body['error']}"}

    return result.to_response()
