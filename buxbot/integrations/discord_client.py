#!/usr/bin/env python3
"""
Discord Role Client

This module provides a minimal client for the Discord REST API covering the
three calls role reconciliation needs: read a member's roles, add one role,
remove one role. Each mutation is an independent request.
"""

import logging
from typing import Dict, Optional, Set

import httpx

from buxbot.exceptions import IdentityServiceError

logger = logging.getLogger(__name__)


class DiscordRoleClient:
    """
    A client for guild member role operations on the Discord API.
    """

    DEFAULT_BASE_URL = "https://discord.com/api/v10"

    def __init__(
        self,
        bot_token: str,
        guild_id: str,
        base_url: Optional[str] = None,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not bot_token:
            raise ValueError("Bot token is required for DiscordRoleClient.")
        if not guild_id:
            raise ValueError("Guild id is required for DiscordRoleClient.")
        self.bot_token = bot_token
        self.guild_id = guild_id
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout=timeout, connect=10.0),
            limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
        )

    async def __aenter__(self) -> "DiscordRoleClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _get_headers(self, reason: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "authorization": f"Bot {self.bot_token}",
            "accept": "application/json",
        }
        if reason:
            headers["x-audit-log-reason"] = reason
        return headers

    def _member_url(self, user_id: str) -> str:
        return f"{self.base_url}/guilds/{self.guild_id}/members/{user_id}"

    async def _request(
        self,
        method: str,
        url: str,
        role_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, url, headers=self._get_headers(reason))
        except httpx.RequestError as e:
            raise IdentityServiceError(f"Request error for {method} {url}: {e}", role_id=role_id) from e

        if response.status_code == 429:
            retry_after = response.headers.get("retry-after")
            logger.warning(f"Rate limited by Discord API on {method} {url}. Retry after: {retry_after}")
        if response.status_code >= 400:
            raise IdentityServiceError(
                f"Discord API error for {method} {url}: {response.text[:256]}",
                status_code=response.status_code,
                role_id=role_id,
            )
        return response

    async def get_member_roles(self, user_id: str) -> Set[str]:
        """
        Get the role ids currently held by a guild member.

        Args:
            user_id: Discord user id

        Returns:
            Set of role id strings
        """
        response = await self._request("GET", self._member_url(user_id))
        try:
            roles = response.json().get("roles", [])
        except (ValueError, AttributeError) as e:
            raise IdentityServiceError(f"Malformed member payload for user {user_id}: {e}") from e
        return {str(role_id) for role_id in roles}

    async def add_role(self, user_id: str, role_id: str, reason: Optional[str] = None) -> None:
        await self._request("PUT", f"{self._member_url(user_id)}/roles/{role_id}", role_id=role_id, reason=reason)
        logger.debug(f"Added role {role_id} to user {user_id}")

    async def remove_role(self, user_id: str, role_id: str, reason: Optional[str] = None) -> None:
        await self._request("DELETE", f"{self._member_url(user_id)}/roles/{role_id}", role_id=role_id, reason=reason)
        logger.debug(f"Removed role {role_id} from user {user_id}")
