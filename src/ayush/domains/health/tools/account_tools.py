"""MCP tools for accounts: sign-up, sign-in, sign-out and the user profile."""

from __future__ import annotations

import time

from fastmcp import Context, FastMCP

from ayush.core.auth.accounts import AuthError
from ayush.domains.health.tools.services import ToolServices, respond


def register_account_tools(mcp: FastMCP, services: ToolServices) -> None:
    """Register account tools on the MCP server."""

    @mcp.tool
    async def sign_up(ctx: Context, email: str, password: str, name: str) -> str:
        """Create an account and initialise its profile.

        Args:
            email: Login email address.
            password: Password (at least 6 characters).
            name: Display name.
        """
        start = time.monotonic()
        try:
            user = services.accounts.sign_up(email, password, name)
        except AuthError as exc:
            return services.failure("sign_up", {"email": email}, start, exc)

        profile = user.profile()
        services.repository.save_profile(user.id, profile)
        services.record("sign_up", {"email": email}, start, user_id=user.id)
        return respond("created", user=profile)

    @mcp.tool
    async def sign_in(ctx: Context, email: str, password: str) -> str:
        """Sign in and receive an access token for the other tools.

        Args:
            email: Login email address.
            password: Account password.
        """
        start = time.monotonic()
        try:
            token = services.accounts.sign_in(email, password)
        except AuthError as exc:
            return services.failure("sign_in", {"email": email}, start, exc)

        user = services.accounts.verify_token(token)
        services.record("sign_in", {"email": email}, start, user_id=user.id if user else None)
        return respond("ok", access_token=token, user=user.profile() if user else None)

    @mcp.tool
    async def sign_out(ctx: Context, access_token: str) -> str:
        """Revoke an access token."""
        start = time.monotonic()
        user = services.authenticate(access_token)
        if user is None:
            return services.unauthorized("sign_out", start)
        services.accounts.sign_out(access_token)
        services.record("sign_out", None, start, user_id=user.id)
        return respond("signed_out")

    @mcp.tool
    async def get_profile(ctx: Context, access_token: str) -> str:
        """Return the signed-in user's profile."""
        start = time.monotonic()
        user = services.authenticate(access_token)
        if user is None:
            return services.unauthorized("get_profile", start)
        profile = services.repository.get_profile(user.id)
        services.record("get_profile", None, start, user_id=user.id)
        return respond("ok", profile=profile)
