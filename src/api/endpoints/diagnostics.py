import logging
from datetime import datetime

from fastapi import APIRouter, Depends

from src.api.dependencies import get_settings, get_workspace_client, verify_api_key
from src.integrations.policy.response_wrappers import ProviderError
from src.utils.config_loader import Settings, mask_secret

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/debug", tags=["Diagnostics"])
async def debug(settings: Settings = Depends(get_settings)):
    """Deployment probe: which build is live."""
    return {
        "status": "ok",
        "timestamp": datetime.now().isoformat(),
        "version": settings.app_version,
        "mods": settings.app_build_tags,
    }


@router.get("/debug/credentials", tags=["Diagnostics"], dependencies=[Depends(verify_api_key)])
async def debug_credentials(settings: Settings = Depends(get_settings)):
    """Which credentials are present, never their values."""
    return {
        "integrations_mode": "real" if settings.use_real_integrations() else "mock",
        "signnow": {
            "configured": settings.signnow.configured,
            "client_id": mask_secret(settings.signnow.client_id),
            "email": settings.signnow.email or "EMPTY",
            "send_invite": settings.signnow.send_invite,
        },
        "stripe": {
            "configured": settings.stripe.configured,
            "secret_key": mask_secret(settings.stripe.secret_key),
        },
        "clickup": {
            "configured": settings.clickup.configured,
            "api_token": mask_secret(settings.clickup.api_token),
            "list_id": settings.clickup.list_id or "EMPTY",
        },
        "slack": {
            "configured": settings.slack.configured,
            "bot_token": mask_secret(settings.slack.bot_token),
            "channel_id": settings.slack.channel_id or "EMPTY",
            "signing_secret": bool(settings.slack.signing_secret),
        },
    }


@router.get("/debug/clickup", tags=["Diagnostics"], dependencies=[Depends(verify_api_key)])
def debug_clickup(
    settings: Settings = Depends(get_settings),
    client=Depends(get_workspace_client),
):
    """Walk the ClickUp workspace so the right CLICKUP_LIST_ID can be picked."""
    try:
        teams = client.get_workspace_tree()
    except ProviderError as e:
        logger.error("ClickUp workspace lookup failed: %s", e)
        return {"configured_list_id": settings.clickup.list_id or None, "error": str(e)}
    finally:
        client.close()

    return {"configured_list_id": settings.clickup.list_id or None, "teams": teams}
