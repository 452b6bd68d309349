"""Authentication router for Strava OAuth flow."""
import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import RedirectResponse

from stridesync.config import settings
from stridesync.exceptions import ConfigError, StravaSyncError
from stridesync.services.strava import StravaService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


def _frontend_redirect(**params: str) -> RedirectResponse:
    return RedirectResponse(url=f"{settings.FRONTEND_URL}/?{urlencode(params)}")


@router.get("/strava")
async def strava_login():
    """
    Initiate Strava OAuth flow.

    Redirects user to Strava authorization page.
    """
    try:
        auth_url = StravaService.get_authorization_url()
    except ConfigError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return RedirectResponse(url=auth_url)


@router.get("/strava/callback")
async def strava_callback(
    code: Optional[str] = Query(None, description="Authorization code from Strava"),
    error: Optional[str] = Query(None, description="Error from Strava"),
):
    """
    Handle Strava OAuth callback.

    Exchanges the authorization code for an access token and sends the
    browser back to the frontend with either ?token= or ?error=.
    """
    # User denied access or Strava reported a problem
    if error:
        return _frontend_redirect(error=error)

    if not code:
        return _frontend_redirect(error="no_code_provided")

    try:
        token_data = await StravaService.exchange_token(code)
        access_token = token_data["access_token"]
    except (StravaSyncError, KeyError, ValueError) as e:
        logger.error("OAuth callback error: %s", e)
        return _frontend_redirect(error="token_exchange_failed")

    logger.info("Strava authorization completed")
    return _frontend_redirect(token=access_token)
