"""
Tests for the bondex-quote command-line tool
"""

import json
import logging

import pytest
from click.testing import CliRunner

from bondex import __version__
from bondex.cli import cli
from bondex.constants import MAX_POOL_SUPPLY
from bondex.logger import reconfigure_logging

CURVE_TOML = """
[curve]
base_price = 2000000
slope = 3
threshold = 100
reference_supply = 1000
"""


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "bondex.toml"
    path.write_text(CURVE_TOML)
    return str(path)


def _invoke(*args):
    return CliRunner().invoke(cli, list(args))


def _json(result):
    return json.loads(result.output.strip().splitlines()[-1])


class TestQuoteCli:

    def test_version(self):
        result = _invoke("--version")
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_price_from_config(self, config_path):
        result = _invoke("price", "--config", config_path, "--supply", "1000")
        assert result.exit_code == 0, result.output
        assert "unit_price: 2000000" in result.output

    def test_price_with_overrides(self, config_path):
        result = _invoke(
            "price", "--config", config_path, "--supply", "900",
            "--slope", "1000000", "--threshold", "1000", "--json",
        )
        assert result.exit_code == 0, result.output
        assert _json(result) == {"supply": 900, "unit_price": 2_000_100}

    def test_buy(self, config_path):
        result = _invoke(
            "buy", "--config", config_path,
            "--supply", "1000000000", "--quote-in", "1000000", "--json",
        )
        assert result.exit_code == 0, result.output
        quote = _json(result)
        assert quote["fee"] == 5_000
        assert quote["net_in"] == 995_000
        assert quote["token_out"] == 497_500
        assert quote["supply_after"] == 1_000_000_000 - 497_500

    def test_sell(self, config_path):
        result = _invoke(
            "sell", "--config", config_path,
            "--supply", "1000", "--reserve", "2000000", "--token-in", "497500",
        )
        assert result.exit_code == 0, result.output
        assert "gross_out: 995000" in result.output
        assert "net_out: 990025" in result.output

    def test_sell_insolvent(self, config_path):
        result = _invoke(
            "sell", "--config", config_path,
            "--supply", "1000", "--reserve", "1", "--token-in", "497500",
        )
        assert result.exit_code == 1
        assert "cannot pay" in result.output

    def test_price_above_max_supply(self, config_path):
        result = _invoke("price", "--config", config_path, "--supply", str(MAX_POOL_SUPPLY + 1))
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_invalid_curve_option(self, config_path):
        result = _invoke("price", "--config", config_path, "--supply", "1", "--slope", "-1")
        assert result.exit_code == 1
        assert "[curve]" in result.output

    def test_missing_supply(self, config_path):
        result = _invoke("buy", "--config", config_path, "--quote-in", "1")
        assert result.exit_code == 2

    def test_logging_section_applied(self, tmp_path):
        path = tmp_path / "bondex.toml"
        path.write_text(CURVE_TOML + '\n[logging]\nlevel = "WARNING"\n')
        try:
            result = _invoke("price", "--config", str(path), "--supply", "1000")
            assert result.exit_code == 0, result.output
            assert logging.getLogger().level == logging.WARNING
        finally:
            reconfigure_logging()

    def test_no_config_file_needed(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("BONDEX_CONFIG", raising=False)
        result = _invoke("price", "--supply", "1000", "--base-price", "3000000", "--json")
        assert result.exit_code == 0, result.output
        assert "not found" not in result.output
        assert _json(result) == {"supply": 1000, "unit_price": 3_000_000}
