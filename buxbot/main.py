#!/usr/bin/env python3
"""
BUX Bot operator command line

Runs the holdings engine outside of Discord for maintenance and smoke tests:
list, link and unlink a user's wallets, inspect aggregated holdings, or run a
full profile refresh (holdings, reward accrual and role sync).
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from buxbot.config import AppConfig, settings
from buxbot.core.catalog import COLLECTIONS
from buxbot.core.rewards import format_countdown
from buxbot.core.structures import HoldingsSnapshot, ProfileRefreshResult
from buxbot.core.verification import create_verification_service
from buxbot.exceptions import BuxBotBaseException, ConfigurationError
from buxbot.integrations.discord_client import DiscordRoleClient
from buxbot.integrations.solana_client import SolanaHoldingsReader
from buxbot.utils.logging_config import get_logger, setup_logging

logger = logging.getLogger(__name__)
audit_logger = get_logger("buxbot.audit")


def snapshot_to_dict(snapshot: HoldingsSnapshot, decimals: int) -> Dict[str, Any]:
    return {
        "user_id": snapshot.user_id,
        "wallets": snapshot.wallets,
        "failed_wallets": snapshot.failed_wallets,
        "collections": {
            COLLECTIONS[key].display_name: count for key, count in snapshot.counts().items()
        },
        "bux_balance": f"{snapshot.fungible_balance_display(decimals).normalize():f}",
        "bux_balance_raw": snapshot.fungible_balance,
    }


def refresh_to_dict(result: ProfileRefreshResult, decimals: int) -> Dict[str, Any]:
    data = snapshot_to_dict(result.snapshot, decimals)
    data.update({
        "daily_reward": result.daily_rate,
        "claimable": result.accrual.claimable_balance,
        "accrued_now": result.accrual.accrued,
        "next_accrual_at": result.accrual.next_boundary_timestamp,
        "roles_added": sorted(result.role_delta.added),
        "roles_removed": sorted(result.role_delta.removed),
        "roles_failed": sorted(result.role_delta.failed_additions | result.role_delta.failed_removals),
    })
    return data


def build_role_client(config: AppConfig) -> DiscordRoleClient:
    if not config.discord.token or not config.discord.guild_id:
        raise ConfigurationError("DISCORD_TOKEN and DISCORD_GUILD_ID are required for role sync")
    return DiscordRoleClient(
        bot_token=config.discord.token,
        guild_id=config.discord.guild_id,
        base_url=config.discord.api_base_url,
        timeout=config.discord.request_timeout,
    )


async def run_command(args: argparse.Namespace, config: AppConfig) -> Dict[str, Any]:
    """Execute one CLI command and return a JSON-serializable result."""
    reader = SolanaHoldingsReader(
        rpc_url=config.solana.rpc_url,
        api_key=config.solana.rpc_api_key,
        timeout=config.solana.request_timeout,
    )
    # Only refresh talks to Discord
    role_client: Optional[DiscordRoleClient] = None
    try:
        if args.command == "refresh":
            role_client = build_role_client(config)
        service = await create_verification_service(config, reader, role_client)

        if args.command == "wallets":
            return {"user_id": args.user_id, "wallets": sorted(await service.list_wallets(args.user_id))}

        if args.command == "link":
            added = await service.link_wallet(args.user_id, args.wallet)
            audit_logger.info("wallet_linked", user_id=args.user_id, wallet=args.wallet, new=added)
            return {"user_id": args.user_id, "wallet": args.wallet, "linked": added}

        if args.command == "unlink":
            removed = await service.unlink_wallet(args.user_id, args.wallet)
            audit_logger.info("wallet_unlinked", user_id=args.user_id, wallet=args.wallet, existed=removed)
            return {"user_id": args.user_id, "wallet": args.wallet, "unlinked": removed}

        if args.command == "holdings":
            snapshot = await service.aggregator.aggregate(args.user_id)
            data = snapshot_to_dict(snapshot, config.solana.bux_decimals)
            data["daily_reward"] = service.rewards.daily_rate(snapshot)
            return data

        if args.command == "rewards":
            remaining = await service.rewards.time_until_next_accrual(args.user_id)
            return {
                "user_id": args.user_id,
                "claimable": await service.rewards.get_claimable(args.user_id),
                "next_accrual_in": format_countdown(remaining) if remaining is not None else None,
            }

        if args.command == "refresh":
            result = await service.refresh_profile(args.user_id)
            audit_logger.info(
                "profile_refreshed",
                user_id=args.user_id,
                roles_added=sorted(result.role_delta.added),
                roles_removed=sorted(result.role_delta.removed),
                accrued=result.accrual.accrued,
            )
            return refresh_to_dict(result, config.solana.bux_decimals)

        raise ConfigurationError(f"Unknown command: {args.command}")
    finally:
        await reader.close()
        if role_client is not None:
            await role_client.close()


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="BUX Bot - holdings, rewards and role sync for BUXDAO",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m buxbot wallets 123456789012345678
  python -m buxbot link 123456789012345678 <wallet>
  python -m buxbot holdings 123456789012345678
  python -m buxbot refresh 123456789012345678
        """
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override log level from configuration"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    wallets = subparsers.add_parser("wallets", help="List a user's linked wallets")
    wallets.add_argument("user_id")

    link = subparsers.add_parser("link", help="Link a wallet to a user")
    link.add_argument("user_id")
    link.add_argument("wallet")

    unlink = subparsers.add_parser("unlink", help="Unlink a wallet from a user")
    unlink.add_argument("user_id")
    unlink.add_argument("wallet")

    holdings = subparsers.add_parser("holdings", help="Aggregate a user's holdings without side effects")
    holdings.add_argument("user_id")

    rewards = subparsers.add_parser("rewards", help="Show claimable BUX and time to the next accrual")
    rewards.add_argument("user_id")

    refresh = subparsers.add_parser("refresh", help="Aggregate holdings, accrue rewards and sync roles")
    refresh.add_argument("user_id")

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point."""
    args = parse_arguments(argv)
    setup_logging(
        log_level=args.log_level or settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
    )

    try:
        result = asyncio.run(run_command(args, settings))
    except BuxBotBaseException as e:
        logger.error(f"{args.command} failed: {e}")
        print(json.dumps({"error": str(e), "type": type(e).__name__}), file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
