"""
Slack reporting for the contract pipeline.

Builds the Block Kit payloads (channel summary, validation error card,
/new-contract modal) and posts them through SlackChatService.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from src.integrations.contracts.interfaces import (
    ContractNotifier,
    ContractRequest,
    InvoiceResult,
    PipelineResult,
    StageError,
    TaskResult,
)
from src.integrations.slack.slack_chat_service import SlackChatService

logger = logging.getLogger(__name__)

MODAL_CALLBACK_ID = "new_contract_submit"


def _mrkdwn(text: str) -> Dict[str, str]:
    return {"type": "mrkdwn", "text": text}


def _input_block(block_id: str, label: str, placeholder: str, multiline: bool = False) -> Dict[str, Any]:
    element: Dict[str, Any] = {
        "type": "plain_text_input",
        "action_id": "value",
        "placeholder": {"type": "plain_text", "text": placeholder},
    }
    if multiline:
        element["multiline"] = True
    return {
        "type": "input",
        "block_id": block_id,
        "label": {"type": "plain_text", "text": label},
        "element": element,
    }


def build_contract_modal() -> Dict[str, Any]:
    """The /new-contract form."""
    return {
        "type": "modal",
        "callback_id": MODAL_CALLBACK_ID,
        "title": {"type": "plain_text", "text": "New Contract"},
        "submit": {"type": "plain_text", "text": "Generate Contract"},
        "close": {"type": "plain_text", "text": "Cancel"},
        "blocks": [
            {
                "type": "input",
                "block_id": "contract_type",
                "label": {"type": "plain_text", "text": "Contract Type"},
                "element": {
                    "type": "static_select",
                    "action_id": "value",
                    "placeholder": {"type": "plain_text", "text": "Select contract type"},
                    "options": [
                        {"text": {"type": "plain_text", "text": "Sprint 1"}, "value": "sprint1"},
                        {"text": {"type": "plain_text", "text": "Phase 2"}, "value": "phase2"},
                    ],
                },
            },
            _input_block("client_company", "Company Name", "e.g. Acme Corp"),
            _input_block("client_first", "Client First Name", "e.g. John"),
            _input_block("client_last", "Client Last Name", "e.g. Doe"),
            _input_block("client_title", "Client Title", "e.g. CEO, VP Marketing"),
            _input_block("client_email", "Client Email", "e.g. john@acme.com"),
            _input_block("amount", "Contract Amount ($)", "e.g. 5000"),
            _input_block(
                "scope",
                "Scope of Work",
                "e.g. SEO authority link building - 10 links/month",
                multiline=True,
            ),
        ],
    }


def pipeline_lines(result: PipelineResult) -> List[str]:
    lines: List[str] = []

    if result.document_id and result.signing_link:
        label = "View & Send Contract" if result.signing_link_error else "Send to Client for Signing"
        lines.append(f":white_check_mark: *Contract* generated — <{result.signing_link}|{label}>")
    else:
        lines.append(":x: *Contract* generation failed")

    if isinstance(result.stripe, InvoiceResult) and result.stripe.invoice_url:
        lines.append(f":white_check_mark: *Stripe Invoice* created — <{result.stripe.invoice_url}|View Invoice>")
    else:
        reason = f": {result.stripe.error}" if isinstance(result.stripe, StageError) else ""
        lines.append(f":x: *Stripe Invoice* failed{reason}")

    if isinstance(result.clickup, TaskResult):
        lines.append(f":white_check_mark: *ClickUp Task* created — <{result.clickup.url}|View Task>")
    else:
        reason = f": {result.clickup.error}" if isinstance(result.clickup, StageError) else ""
        lines.append(f":x: *ClickUp Task* failed{reason}")

    return lines


def build_summary_blocks(request: ContractRequest, result: PipelineResult) -> List[Dict[str, Any]]:
    return [
        {"type": "header", "text": {"type": "plain_text", "text": "New Contract Created", "emoji": True}},
        {
            "type": "section",
            "fields": [
                _mrkdwn(f"*Client:*\n{request.client_name}"),
                _mrkdwn(f"*Company:*\n{request.client_company}"),
                _mrkdwn(f"*Type:*\n{request.variant_label}"),
                _mrkdwn(f"*Amount:*\n${request.formatted_amount}"),
            ],
        },
        {
            "type": "section",
            "fields": [
                _mrkdwn(f"*Email:*\n{request.client_email}"),
                _mrkdwn(f"*Title:*\n{request.client_title}"),
            ],
        },
        {"type": "divider"},
        {"type": "section", "text": _mrkdwn("*Pipeline Results:*")},
        {"type": "section", "text": _mrkdwn("\n".join(pipeline_lines(result)))},
        {"type": "context", "elements": [_mrkdwn(f"Scope: {request.scope or 'N/A'}")]},
    ]


def build_error_blocks(errors: List[str], raw: Mapping[str, Any]) -> List[Dict[str, Any]]:
    submitted_by = (
        f"{raw.get('client_first') or '?'} {raw.get('client_last') or '?'} "
        f"at {raw.get('client_company') or '?'}"
    )
    bullet_list = "\n".join(f"• {e}" for e in errors)
    return [
        {"type": "header", "text": {"type": "plain_text", "text": "Contract Form Error", "emoji": True}},
        {
            "type": "section",
            "text": _mrkdwn(f":warning: The contract form had validation errors:\n\n{bullet_list}"),
        },
        {"type": "context", "elements": [_mrkdwn(f"Submitted by: {submitted_by}")]},
    ]


class SlackContractNotifier(ContractNotifier):
    def __init__(self, slack: SlackChatService):
        self.slack = slack

    def report(self, request: ContractRequest, result: PipelineResult) -> None:
        if result.success:
            self.slack.post_message(
                text=f"New contract created for {request.client_company}",
                blocks=build_summary_blocks(request, result),
            )
            logger.info("Posted contract summary for %s", request.client_company)
        else:
            self.slack.post_message(
                text=(
                    f":warning: Contract pipeline error for *{request.client_company}*: "
                    f"{result.error or result.message or 'Unknown error'}"
                )
            )

    def processing(self, request: ContractRequest) -> None:
        self.slack.post_message(
            text=(
                f":hourglass_flowing_sand: *Generating contract for {request.client_company}...* "
                "This takes about 15 seconds."
            )
        )

    def validation_failed(self, errors: List[str], raw: Mapping[str, Any]) -> None:
        self.slack.post_message(
            text="Contract form had validation errors",
            blocks=build_error_blocks(errors, raw),
        )

    def crashed(self, company: Optional[str], error: str) -> None:
        self.slack.post_message(text=f":x: Contract pipeline crashed for *{company or 'unknown'}*: {error}")

    def direct_message(self, user_id: str, request: ContractRequest, result: PipelineResult) -> None:
        if result.success:
            text = (
                f":white_check_mark: Contract for *{request.client_company}* is ready! "
                f"Check <#{self.slack.channel}> for the links."
            )
        else:
            text = (
                f":x: Contract for *{request.client_company}* had issues: "
                f"{result.error or result.message or 'Unknown'}"
            )
        self.slack.send_direct_message(user_id, text)
