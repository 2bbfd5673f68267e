"""Microsoft identity platform device code authentication."""

import asyncio
import logging
import time
from typing import Any, Callable, Dict, List, Optional

import httpx

from .browser import present_device_code
from .config import (
    AUTHORITY_HOST,
    CLIENT_ID,
    DEVICE_CODE_GRANT_TYPE,
    SCOPES,
    SLOW_DOWN_INCREMENT,
    TENANT_ID,
)
from .exceptions import AuthenticationError
from .models import AccessToken, DeviceCodeChallenge


class DeviceCodeAuthenticator:
    """Obtains Graph access tokens through the device code flow.

    The first call to :meth:`get_token` asks the identity platform for a
    device code, hands the challenge to ``prompt`` and polls until the user
    completes the sign-in in a browser. Tokens are kept in memory and renewed
    with the refresh token once they expire.

    Attributes:
        client_id: Public client application id.
        tenant_id: Tenant to sign in against, ``common`` for any account.
        scopes: Delegated permissions requested for the token.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        client_id: str = CLIENT_ID,
        tenant_id: str = TENANT_ID,
        scopes: Optional[List[str]] = None,
        prompt: Callable[[DeviceCodeChallenge], None] = present_device_code,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.http_client = http_client
        self.client_id = client_id
        self.tenant_id = tenant_id
        self.scopes = scopes or list(SCOPES)
        self.prompt = prompt
        self.logger = logger or logging.getLogger(__name__)
        self._token: Optional[AccessToken] = None
        self._lock = asyncio.Lock()

    @property
    def device_code_url(self) -> str:
        return f"{AUTHORITY_HOST}/{self.tenant_id}/oauth2/v2.0/devicecode"

    @property
    def token_url(self) -> str:
        return f"{AUTHORITY_HOST}/{self.tenant_id}/oauth2/v2.0/token"

    async def get_token(self) -> str:
        """Return a valid access token, signing in or refreshing if needed.

        Raises:
            AuthenticationError: If the user declines or the flow fails.
        """
        async with self._lock:
            if self._token is not None and not self._token.is_expired():
                return self._token.access_token

            if self._token is not None and self._token.refresh_token:
                try:
                    self._token = await self._refresh(self._token.refresh_token)
                    return self._token.access_token
                except AuthenticationError as e:
                    self.logger.warning(f"Token refresh failed, signing in again: {e}")

            self._token = await self.authenticate()
            return self._token.access_token

    async def authenticate(self) -> AccessToken:
        """Run the full device code flow."""
        challenge = await self._request_device_code()
        self.prompt(challenge)
        return await self._poll_for_token(challenge)

    async def _request_device_code(self) -> DeviceCodeChallenge:
        data = await self._post_form(self.device_code_url, {
            'client_id': self.client_id,
            'scope': ' '.join(self.scopes),
        })

        if 'error' in data:
            raise AuthenticationError(
                f"Failed to request device code: {data.get('error_description', data['error'])}")

        try:
            return DeviceCodeChallenge.model_validate(data)
        except ValueError as e:
            raise AuthenticationError(f"Unexpected device code response: {e}")

    async def _poll_for_token(self, challenge: DeviceCodeChallenge) -> AccessToken:
        interval = challenge.interval
        deadline = time.monotonic() + challenge.expires_in

        while time.monotonic() < deadline:
            await asyncio.sleep(interval)

            data = await self._post_form(self.token_url, {
                'client_id': self.client_id,
                'grant_type': DEVICE_CODE_GRANT_TYPE,
                'device_code': challenge.device_code,
            })

            if 'access_token' in data:
                self.logger.info("Successfully authenticated")
                return AccessToken.from_token_response(data)

            error = data.get('error')
            if error == 'authorization_pending':
                self.logger.debug("Waiting for the user to complete sign-in")
                continue
            if error == 'slow_down':
                interval += SLOW_DOWN_INCREMENT
                continue
            if error == 'authorization_declined':
                raise AuthenticationError("Authentication was declined")
            if error == 'expired_token':
                raise AuthenticationError("Device code expired before sign-in completed")
            raise AuthenticationError(
                f"Authentication failed: {data.get('error_description', error or 'unknown error')}")

        raise AuthenticationError("Device code expired before sign-in completed")

    async def _refresh(self, refresh_token: str) -> AccessToken:
        data = await self._post_form(self.token_url, {
            'client_id': self.client_id,
            'grant_type': 'refresh_token',
            'refresh_token': refresh_token,
            'scope': ' '.join(self.scopes),
        })

        if 'access_token' not in data:
            raise AuthenticationError(
                f"Failed to refresh token: {data.get('error_description', data.get('error', 'unknown error'))}")

        token = AccessToken.from_token_response(data)
        if token.refresh_token is None:
            token.refresh_token = refresh_token
        return token

    async def _post_form(self, url: str, form: Dict[str, str]) -> Dict[str, Any]:
        try:
            response = await self.http_client.post(url, data=form)
        except httpx.HTTPError as e:
            raise AuthenticationError(f"Request to {url} failed: {e}")

        try:
            return response.json()
        except ValueError:
            raise AuthenticationError(
                f"Invalid response from {url}: HTTP {response.status_code}")
