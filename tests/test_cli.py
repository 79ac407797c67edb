"""
Tests for the CryptoPulse CLI
"""

import json
import pytest
from unittest.mock import patch

from cryptopulse.api import APIError
from cryptopulse.cli import cli
from cryptopulse.storage import JsonFileStore, WATCHLIST_KEY, ALERTS_KEY

SNAPSHOTS_PATH = 'cryptopulse.api.MarketDataAPI.get_market_snapshots'
COIN_PATH = 'cryptopulse.api.MarketDataAPI.get_coin_snapshot'


@pytest.fixture
def storage_path(isolated_home):
    return isolated_home / ".cryptopulse" / "storage.json"


def test_cli_version(runner):
    result = runner.invoke(cli, ['--version'])
    assert result.exit_code == 0
    assert '0.1.0' in result.output


def test_cli_help(runner):
    result = runner.invoke(cli, ['--help'])
    assert result.exit_code == 0
    assert 'CryptoPulse CLI' in result.output
    assert 'markets' in result.output
    assert 'watchlist' in result.output
    assert 'alerts' in result.output


def test_config_command(runner):
    result = runner.invoke(cli, ['config'])
    assert result.exit_code == 0
    assert 'Configuration' in result.output
    assert 'api_url' in result.output


def test_set_and_reset_config(runner, isolated_home):
    result = runner.invoke(cli, ['set-config', 'per_page', '25'])
    assert result.exit_code == 0
    saved = json.loads((isolated_home / ".cryptopulse" / "config.json").read_text())
    assert saved["per_page"] == 25

    result = runner.invoke(cli, ['reset-config', '--yes'])
    assert result.exit_code == 0
    saved = json.loads((isolated_home / ".cryptopulse" / "config.json").read_text())
    assert saved["per_page"] == 100


def test_watchlist_toggle_and_show(runner, storage_path):
    result = runner.invoke(cli, ['watchlist', 'toggle', 'solana'])
    assert result.exit_code == 0
    assert 'added' in result.output
    assert JsonFileStore(storage_path).get(WATCHLIST_KEY) == ['solana']

    result = runner.invoke(cli, ['watchlist', 'show'])
    assert 'solana' in result.output

    result = runner.invoke(cli, ['watchlist', 'toggle', 'solana'])
    assert 'removed' in result.output
    assert JsonFileStore(storage_path).get(WATCHLIST_KEY) == []


def test_watchlist_add_remove(runner, storage_path):
    runner.invoke(cli, ['watchlist', 'add', 'bitcoin'])
    result = runner.invoke(cli, ['watchlist', 'add', 'bitcoin'])
    assert 'already' in result.output
    assert JsonFileStore(storage_path).get(WATCHLIST_KEY) == ['bitcoin']

    runner.invoke(cli, ['watchlist', 'remove', 'bitcoin'])
    result = runner.invoke(cli, ['watchlist', 'remove', 'bitcoin'])
    assert 'not in your watchlist' in result.output


def test_markets_list_json(runner, snapshots):
    with patch(SNAPSHOTS_PATH, return_value=snapshots):
        result = runner.invoke(cli, ['markets', 'list', '--format', 'json'])
    assert result.exit_code == 0
    assert '"id": "tiny-token"' in result.output
    assert result.output.index('tiny-token') < result.output.index('bitcoin')


def test_markets_list_table(runner, snapshots):
    with patch(SNAPSHOTS_PATH, return_value=snapshots):
        result = runner.invoke(cli, ['markets', 'list', '--search', 'zzz'])
    assert result.exit_code == 0
    assert 'No tokens match' in result.output


def test_markets_list_watchlist_csv(runner, snapshots, tmp_path):
    runner.invoke(cli, ['watchlist', 'toggle', 'ethereum'])
    runner.invoke(cli, ['watchlist', 'toggle', 'bitcoin'])
    output = tmp_path / "watched.csv"

    with patch(SNAPSHOTS_PATH, return_value=snapshots):
        result = runner.invoke(cli, ['markets', 'list', '--filter', 'watchlist', '--sort', 'name',
                                     '--direction', 'asc', '--format', 'csv', '--output', str(output)])
    assert result.exit_code == 0
    lines = output.read_text().strip().splitlines()
    assert len(lines) == 3
    assert lines[1].startswith('bitcoin,BTC,Bitcoin')
    assert lines[2].startswith('ethereum,ETH,Ethereum')


def test_markets_list_uses_fallback(runner):
    with patch(SNAPSHOTS_PATH, side_effect=APIError("rate limited")):
        result = runner.invoke(cli, ['markets', 'list', '--format', 'json'])
    assert result.exit_code == 0
    assert 'fallback' in result.output
    assert '"id": "bitcoin"' in result.output


def test_markets_list_without_fallback(runner):
    runner.invoke(cli, ['set-config', 'use_fallback', 'false'])
    with patch(SNAPSHOTS_PATH, side_effect=APIError("rate limited")):
        result = runner.invoke(cli, ['markets', 'list'])
    assert result.exit_code == 0
    assert 'API Error' in result.output


def test_markets_score(runner, snapshots):
    with patch(SNAPSHOTS_PATH, return_value=[snapshots[2]]) as mock_fetch:
        result = runner.invoke(cli, ['markets', 'score', 'tiny-token'])
    assert result.exit_code == 0
    assert mock_fetch.call_args.kwargs['ids'] == ['tiny-token']
    assert '97.5' in result.output
    assert 'VeryHigh' in result.output


def test_markets_score_json(runner, snapshots):
    with patch(SNAPSHOTS_PATH, return_value=[snapshots[0]]):
        result = runner.invoke(cli, ['markets', 'score', 'bitcoin', '--format', 'json'])
    assert result.exit_code == 0
    assert '"risk_category": "Low"' in result.output


def test_markets_score_not_found(runner):
    with patch(SNAPSHOTS_PATH, return_value=[]), patch(COIN_PATH, return_value=None) as mock_coin:
        result = runner.invoke(cli, ['markets', 'score', 'nothing'])
    mock_coin.assert_called_once_with('nothing', vs_currency='usd')
    assert result.exit_code == 0
    assert 'not found' in result.output


def test_markets_score_falls_back_to_coin_lookup(runner, snapshots):
    with patch(SNAPSHOTS_PATH, return_value=[]), patch(COIN_PATH, return_value=snapshots[2]):
        result = runner.invoke(cli, ['markets', 'score', 'tiny-token'])
    assert result.exit_code == 0
    assert '97.5' in result.output


def test_watchlist_show_risk_summary(runner, snapshots):
    runner.invoke(cli, ['watchlist', 'add', 'bitcoin'])
    runner.invoke(cli, ['watchlist', 'add', 'tiny-token'])
    with patch(SNAPSHOTS_PATH, return_value=snapshots):
        result = runner.invoke(cli, ['watchlist', 'show', '--risk'])
    assert result.exit_code == 0
    assert 'Watchlist Risk Analysis' in result.output
    assert 'Highest risk: Tiny Token (97.5)' in result.output
    assert 'Average risk: 63.8 (High)' in result.output
    assert 'Distribution: Low 1, VeryHigh 1' in result.output


def test_watchlist_show_risk_without_market_match(runner, snapshots):
    runner.invoke(cli, ['watchlist', 'add', 'solana'])
    with patch(SNAPSHOTS_PATH, return_value=snapshots):
        result = runner.invoke(cli, ['watchlist', 'show', '--risk'])
    assert result.exit_code == 0
    assert 'None of your watched tokens' in result.output


def test_markets_watch(runner, snapshots, storage_path):
    runner.invoke(cli, ['alerts', 'add', 'bitcoin', '50000', '--symbol', 'BTC'])
    with patch(SNAPSHOTS_PATH, return_value=snapshots):
        with patch('cryptopulse.refresh.time.sleep') as mock_sleep:
            result = runner.invoke(cli, ['markets', 'watch', '--iterations', '2', '--interval', '1'])
    assert result.exit_code == 0
    assert mock_sleep.call_count == 1
    assert result.output.count('Alert: BTC') == 1
    assert JsonFileStore(storage_path).get(ALERTS_KEY)[0]['triggered'] is True


def test_alerts_add_and_list(runner):
    result = runner.invoke(cli, ['alerts', 'add', 'ethereum', '2500', '--direction', 'below'])
    assert result.exit_code == 0
    assert 'Alert created' in result.output

    result = runner.invoke(cli, ['alerts', 'list'])
    assert 'ethereum' in result.output
    assert 'below' in result.output


def test_alerts_add_invalid(runner):
    result = runner.invoke(cli, ['alerts', 'add', 'ethereum', '0'])
    assert 'positive' in result.output


def test_alerts_list_live(runner, snapshots):
    runner.invoke(cli, ['alerts', 'add', 'ethereum', '3100'])
    with patch(SNAPSHOTS_PATH, return_value=snapshots):
        result = runner.invoke(cli, ['alerts', 'list', '--live'])
    assert result.exit_code == 0
    assert 'approaching' in result.output


def test_alerts_check(runner, snapshots):
    runner.invoke(cli, ['alerts', 'add', 'bitcoin', '50000'])
    runner.invoke(cli, ['alerts', 'add', 'ethereum', '100', '--direction', 'below'])

    with patch(SNAPSHOTS_PATH, return_value=snapshots):
        result = runner.invoke(cli, ['alerts', 'check'])
    assert result.exit_code == 0
    assert 'bitcoin alert triggered' in result.output
    assert 'ethereum alert triggered' not in result.output

    with patch(SNAPSHOTS_PATH, return_value=snapshots):
        result = runner.invoke(cli, ['alerts', 'check'])
    assert 'No alerts triggered' in result.output


def test_alerts_toggle_reset_remove(runner, storage_path):
    runner.invoke(cli, ['alerts', 'add', 'bitcoin', '50000'])

    result = runner.invoke(cli, ['alerts', 'toggle', '1'])
    assert 'disabled' in result.output
    result = runner.invoke(cli, ['alerts', 'reset', '1'])
    assert 're-armed' in result.output
    result = runner.invoke(cli, ['alerts', 'remove', '1'])
    assert 'Removed' in result.output
    assert JsonFileStore(storage_path).get(ALERTS_KEY) == []

    result = runner.invoke(cli, ['alerts', 'remove', '1'])
    assert 'No alert numbered 1' in result.output


def test_alerts_check_api_error(runner):
    runner.invoke(cli, ['alerts', 'add', 'bitcoin', '50000'])
    with patch(SNAPSHOTS_PATH, side_effect=APIError("down")):
        result = runner.invoke(cli, ['alerts', 'check'])
    assert 'API Error' in result.output
