"""Strava API service for OAuth and activity data retrieval."""
import logging
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlencode

import httpx

from stridesync.config import settings
from stridesync.exceptions import (
    AuthError,
    NetworkError,
    RateLimitError,
    StravaSyncError,
)
from stridesync.schemas import AthleteProfile, RawActivity

logger = logging.getLogger(__name__)

DEFAULT_STREAM_KEYS = ("latlng", "altitude", "heartrate")


class StravaService:
    """OAuth side of the Strava integration."""

    @staticmethod
    def get_authorization_url(state: Optional[str] = None) -> str:
        """
        Build Strava OAuth authorization URL.

        Args:
            state: Optional state parameter for CSRF protection

        Returns:
            Full authorization URL to redirect user to

        Raises:
            ConfigError: If STRAVA_CLIENT_ID is not configured
        """
        settings.require_oauth_credentials(need_secret=False)

        params = {
            "client_id": settings.STRAVA_CLIENT_ID,
            "redirect_uri": settings.STRAVA_REDIRECT_URI,
            "response_type": "code",
            "approval_prompt": "force",
            "scope": "activity:read_all",
        }

        if state:
            params["state"] = state

        return f"{settings.STRAVA_AUTH_URL}?{urlencode(params)}"

    @staticmethod
    async def exchange_token(
        code: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> Dict:
        """
        Exchange authorization code for an access token.

        Args:
            code: Authorization code from Strava callback
            transport: Optional httpx transport (used by tests)

        Returns:
            Dictionary containing token data and athlete info

        Raises:
            ConfigError: If client credentials are missing (before any request)
            NetworkError: If the token endpoint rejects the exchange
        """
        settings.require_oauth_credentials()

        async with httpx.AsyncClient(transport=transport, timeout=settings.HTTP_TIMEOUT) as client:
            try:
                response = await client.post(
                    settings.STRAVA_TOKEN_URL,
                    data={
                        "client_id": settings.STRAVA_CLIENT_ID,
                        "client_secret": settings.STRAVA_CLIENT_SECRET,
                        "code": code,
                        "grant_type": "authorization_code",
                    },
                )
            except httpx.HTTPError as e:
                raise NetworkError(f"Token exchange failed: {e}") from e

            if response.is_error:
                raise NetworkError(
                    f"Token exchange failed: {response.reason_phrase}",
                    status_code=response.status_code,
                    status_text=response.reason_phrase,
                )
            return response.json()


class StravaClient:
    """
    Client for the Strava REST API bound to one bearer token.

    Holds no state besides the token; every call opens its own
    httpx.AsyncClient and pages are fetched strictly one after another.
    """

    def __init__(
        self,
        access_token: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        base_url: Optional[str] = None,
    ):
        self.access_token = access_token
        self._transport = transport
        self._base_url = base_url or settings.STRAVA_API_BASE

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Authorization": f"Bearer {self.access_token}"},
            timeout=settings.HTTP_TIMEOUT,
            transport=self._transport,
        )

    @staticmethod
    async def _get(client: httpx.AsyncClient, path: str, what: str, params: Optional[Dict] = None) -> Any:
        """
        Issue a GET and translate failures into sync errors.

        401 maps to AuthError, 429 to RateLimitError, anything else
        (transport errors and bad JSON included) to NetworkError.
        """
        try:
            response = await client.get(path, params=params)
        except httpx.HTTPError as e:
            raise NetworkError(f"Failed to fetch {what}: {e}") from e

        if response.status_code == 401:
            raise AuthError("invalid or expired token")
        if response.status_code == 429:
            raise RateLimitError("Rate limited by Strava API - please try again in a few minutes")
        if response.is_error:
            raise NetworkError(
                f"Failed to fetch {what}: {response.reason_phrase}",
                status_code=response.status_code,
                status_text=response.reason_phrase,
            )

        try:
            return response.json()
        except ValueError as e:
            raise NetworkError(f"Failed to fetch {what}: invalid JSON response") from e

    async def get_profile(self) -> AthleteProfile:
        """
        Fetch the authenticated athlete.

        Raises:
            AuthError: On any non-success response
        """
        async with self._client() as client:
            try:
                athlete = await self._get(client, "/athlete", "athlete info")
            except AuthError:
                raise
            except NetworkError as e:
                if e.status_code is None:
                    raise
                raise AuthError(f"Failed to fetch athlete info (HTTP {e.status_code})") from e
            except RateLimitError as e:
                raise AuthError("Failed to fetch athlete info (HTTP 429)") from e

        return {
            "id": athlete.get("id"),
            "first_name": athlete.get("firstname") or "",
            "last_name": athlete.get("lastname") or "",
        }

    async def fetch_all_activities(self, page_size: int = 200, max_pages: int = 10) -> List[RawActivity]:
        """
        Fetch the athlete's activity history, page by page.

        Pagination stops on the first empty page or after max_pages pages,
        which caps history at page_size * max_pages records.

        Args:
            page_size: Activities per page (max 200)
            max_pages: Hard upper bound on the number of requests

        Returns:
            List of raw activity dictionaries

        Raises:
            AuthError: On 401 from any page
            RateLimitError: On 429 from the first page
            NetworkError: On any other failure of the first page
        """
        activities: List[RawActivity] = []
        page = 1

        async with self._client() as client:
            while page <= max_pages:
                logger.debug("Fetching page %d of activities (per_page=%d)", page, page_size)
                try:
                    data = await self._get(
                        client,
                        "/athlete/activities",
                        "activities",
                        params={"per_page": page_size, "page": page},
                    )
                    if not isinstance(data, list):
                        raise NetworkError("Failed to fetch activities: unexpected response")
                except AuthError:
                    raise
                except StravaSyncError as e:
                    if page == 1:
                        raise
                    logger.warning(
                        "Error fetching page %d, keeping %d activities from earlier pages: %s",
                        page, len(activities), e,
                    )
                    break

                if not data:
                    logger.debug("No more activities on page %d, stopping pagination", page)
                    break

                activities.extend(data)
                page += 1

        logger.info("Fetched %d activities from Strava", len(activities))
        return activities

    async def fetch_activity(self, activity_id: int) -> Dict:
        """Fetch a single activity's detailed data."""
        async with self._client() as client:
            return await self._get(client, f"/activities/{activity_id}", f"activity {activity_id}")

    async def fetch_activity_streams(
        self,
        activity_id: int,
        keys: Iterable[str] = DEFAULT_STREAM_KEYS,
    ) -> Dict[str, Any]:
        """
        Fetch time-series streams (GPS, altitude, heart rate) for an activity.

        Args:
            activity_id: Strava activity id
            keys: Stream types to request

        Returns:
            Streams keyed by type
        """
        async with self._client() as client:
            return await self._get(
                client,
                f"/activities/{activity_id}/streams",
                f"streams for activity {activity_id}",
                params={"keys": ",".join(keys), "key_by_type": "true"},
            )
