import logging
from typing import Any, Callable, Dict

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from src.api.dependencies import get_clock, get_pipeline_builder, get_settings, verify_api_key
from src.error_handler import ErrorHandler
from src.pipeline.validation import ContractValidationError, build_contract_request
from src.utils.config_loader import Settings

logger = logging.getLogger(__name__)

router = APIRouter()
error_handler = ErrorHandler()


@router.post("/generate-and-send", tags=["Contracts"], dependencies=[Depends(verify_api_key)])
def generate_and_send(
    payload: Dict[str, Any] = Body(...),
    settings: Settings = Depends(get_settings),
    builder: Callable = Depends(get_pipeline_builder),
    clock: Callable = Depends(get_clock),
):
    """Render, upload, invoice and track one contract. Blocks until every stage has run."""
    try:
        request = build_contract_request(
            payload,
            today=clock().date(),
            strict_contract_type=settings.strict_contract_type,
        )
    except ContractValidationError as e:
        logger.info("[SKIP] %s", e.message)
        return {"success": False, "skipped": True, "message": e.message, "errors": e.field_errors}

    try:
        pipeline = builder(settings, clock)
        try:
            result = pipeline.run(request)
        finally:
            pipeline.close()
    except Exception as e:
        return JSONResponse(
            status_code=500,
            content=error_handler.handle_exception(e, context={"company": request.client_company}),
        )

    return JSONResponse(status_code=200 if result.success else 500, content=result.to_response())
