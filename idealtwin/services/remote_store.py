"""
Remote profile store client

Generic hosted data store holding one profile blob per account:
- POST /auth/signup, POST /auth/login, GET /auth/session, POST /auth/logout
- GET /profiles/{user_id}, PUT /profiles/{user_id}

Transport errors and 5xx responses count against PERSISTENCE_BREAKER;
4xx responses are answers, not outages.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging

import httpx
import pybreaker

from idealtwin.config import API_TIMEOUT
from idealtwin.exceptions import AuthenticationError, RemoteStoreError, wrap_external_exception
from idealtwin.resilience.circuit_breaker import PERSISTENCE_BREAKER, with_circuit_breaker

logger = logging.getLogger(__name__)


class RemoteProfileStore:
    """Async HTTP client for the profile store"""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = API_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self.access_token: Optional[str] = None

    def _headers(self) -> Dict[str, str]:
        headers = {"apikey": self.api_key} if self.api_key else {}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    @with_circuit_breaker(PERSISTENCE_BREAKER)
    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            response = await client.request(method, path, headers=self._headers(), **kwargs)
        if response.status_code >= 500:
            response.raise_for_status()
        return response

    async def _request(self, method: str, path: str, operation: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._send(method, path, **kwargs)
        except pybreaker.CircuitBreakerError as e:
            raise RemoteStoreError(
                message="Remote store circuit is open",
                operation=operation,
                cause=e,
            )
        except httpx.HTTPError as e:
            raise wrap_external_exception(e, operation=operation)

    @staticmethod
    def _error_text(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text
        return body.get("error") or body.get("message") or response.text

    async def sign_up(self, email: str, password: str, metadata: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create an account

        When the store needs no e-mail confirmation it answers with an
        access token and the new user is signed in.

        Returns:
            The created user record ({'id', 'email', 'email_confirmed_at', ...})

        Raises:
            AuthenticationError: rejected by the store (e.g. e-mail taken)
        """
        response = await self._request(
            "POST", "/auth/signup", "sign_up",
            json={"email": email, "password": password, "data": metadata},
        )
        if response.status_code >= 400:
            raise AuthenticationError(message=self._error_text(response), operation="sign_up")

        body = response.json()
        if body.get("access_token"):
            self.access_token = body["access_token"]
        return body.get("user", {})

    async def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        """Log in and keep the access token for later calls"""
        response = await self._request(
            "POST", "/auth/login", "sign_in",
            json={"email": email, "password": password},
        )
        if response.status_code >= 400:
            raise AuthenticationError(message=self._error_text(response), operation="sign_in")

        body = response.json()
        self.access_token = body.get("access_token")
        return body.get("user", {})

    async def get_session(self) -> Optional[Dict[str, Any]]:
        """Current user for the stored token, or None when not signed in"""
        if not self.access_token:
            return None
        response = await self._request("GET", "/auth/session", "get_session")
        if response.status_code in (401, 403, 404):
            return None
        if response.status_code >= 400:
            raise RemoteStoreError(
                message=f"Session lookup failed: {response.status_code}",
                status_code=response.status_code,
                operation="get_session",
            )
        return response.json().get("user")

    async def fetch_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Profile row ({'username', 'data'}) or None if there is none yet"""
        response = await self._request("GET", f"/profiles/{user_id}", "fetch_profile")
        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise RemoteStoreError(
                message=f"Profile fetch failed: {response.status_code}",
                status_code=response.status_code,
                operation="fetch_profile",
            )
        return response.json()

    async def upsert_profile(self, user_id: str, username: str, data: Dict[str, Any]) -> None:
        """Replace the whole profile blob (last write wins)"""
        response = await self._request(
            "PUT", f"/profiles/{user_id}", "upsert_profile",
            json={
                "id": user_id,
                "username": username,
                "data": data,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            },
        )
        if response.status_code >= 400:
            raise RemoteStoreError(
                message=f"Profile upsert failed: {self._error_text(response)}",
                status_code=response.status_code,
                username=username,
                operation="upsert_profile",
            )

    async def sign_out(self) -> None:
        if self.access_token:
            await self._request("POST", "/auth/logout", "sign_out")
        self.access_token = None
