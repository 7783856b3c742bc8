"""
Test the operator command line.
"""

import json
from unittest.mock import patch

import pytest

from buxbot.config import AggregationConfig, AppConfig, DiscordConfig, RoleConfig
from buxbot.exceptions import ConfigurationError
from buxbot.main import main, parse_arguments, run_command
from tests.test_utils import BUX, ROLE_IDS, WALLET_A, FakeHoldingsReader, bux, nft


@pytest.fixture
def config(tmp_path) -> AppConfig:
    hashlists = tmp_path / "hashlists"
    hashlists.mkdir()
    (hashlists / "fcked_catz.json").write_text(json.dumps(["catz-0", "catz-1"]))
    return AppConfig(
        database_path=str(tmp_path / "buxbot.db"),
        hashlist_directory=str(hashlists),
        roles=RoleConfig(**ROLE_IDS),
        discord=DiscordConfig(token=None, guild_id=None),
        aggregation=AggregationConfig(wallet_delay_seconds=0),
    )


@pytest.fixture
def reader():
    fake = FakeHoldingsReader({WALLET_A: [nft("catz-0"), bux(2600)]})
    with patch("buxbot.main.SolanaHoldingsReader", return_value=fake):
        yield fake


def test_parse_arguments():
    args = parse_arguments(["--log-level", "DEBUG", "link", "123", WALLET_A])
    assert args.command == "link"
    assert args.user_id == "123"
    assert args.wallet == WALLET_A
    assert args.log_level == "DEBUG"


def test_parse_arguments_requires_command():
    with pytest.raises(SystemExit):
        parse_arguments([])


async def test_link_then_list(config, reader):
    linked = await run_command(parse_arguments(["link", "u1", WALLET_A]), config)
    listed = await run_command(parse_arguments(["wallets", "u1"]), config)

    assert linked["linked"] is True
    assert listed["wallets"] == [WALLET_A]
    assert reader.closed


async def test_holdings(config, reader):
    await run_command(parse_arguments(["link", "u1", WALLET_A]), config)

    result = await run_command(parse_arguments(["holdings", "u1"]), config)

    assert result["collections"]["Fcked Catz"] == 1
    assert result["bux_balance"] == "2600"
    assert result["bux_balance_raw"] == 2600 * BUX
    assert result["daily_reward"] == 2


async def test_rewards_before_first_refresh(config, reader):
    result = await run_command(parse_arguments(["rewards", "u1"]), config)
    assert result == {"user_id": "u1", "claimable": 0, "next_accrual_in": None}


async def test_refresh_requires_discord_config(config, reader):
    with pytest.raises(ConfigurationError):
        await run_command(parse_arguments(["refresh", "u1"]), config)
    assert reader.closed


def test_main_reports_errors(config, reader, capsys):
    with patch("buxbot.main.settings", config), patch("buxbot.main.setup_logging"):
        exit_code = main(["link", "u1", "not-a-wallet"])

    assert exit_code == 1
    error = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert error["type"] == "InvalidAddressError"
