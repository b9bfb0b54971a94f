"""
Bondex Quote CLI

Offline quoting against a bonding curve for a given pool state. Nothing is
executed; the same trade math the engine runs is evaluated and printed.

Usage:
    bondex-quote price --supply N [curve options]
    bondex-quote buy   --supply N --reserve R --quote-in Q [curve options]
    bondex-quote sell  --supply N --reserve R --token-in T [curve options]

Curve options (--base-price, --slope, --threshold, --reference-supply)
override the [curve] section of the config file.
"""

import json
from dataclasses import asdict
from typing import Any, Dict, Optional

import click

from .. import __version__
from ..config import load_config
from ..engine.ledger import PoolRecord
from ..engine.pricing import CheckedPricingOracle, PiecewiseCurve
from ..engine.trade import compute_buy, compute_sell
from ..exceptions import BondexException
from ..tokens.token import CurveParams

CLI_POOL_ID = "cli"


def curve_options(func):
    """Shared curve and pool-state options."""
    options = [
        click.option("--config", "-c", "config_path", type=click.Path(dir_okay=False),
                     default=None, help="TOML config file providing a [curve] section"),
        click.option("--base-price", type=int, default=None, help="Unit price (x10^6) at the reference supply"),
        click.option("--slope", type=int, default=None, help="Price increase (x10^6) per unit bought out"),
        click.option("--threshold", type=int, default=None, help="Units bought out after which the price is flat"),
        click.option("--reference-supply", type=int, default=None, help="Pool supply at launch"),
        click.option("--supply", type=int, required=True, help="Asset units currently in the pool"),
        click.option("--json", "as_json", is_flag=True, help="Print the quote as JSON"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def resolve_curve(
    config_path: Optional[str],
    base_price: Optional[int],
    slope: Optional[int],
    threshold: Optional[int],
    reference_supply: Optional[int],
) -> CurveParams:
    """
    [curve] section from the config, with command-line overrides on top.

    The config's [logging] section is applied on the way.
    """
    config = load_config(config_path)
    config.logging.apply()
    section = config.curve
    if base_price is not None:
        section.base_price = base_price
    if slope is not None:
        section.slope = slope
    if threshold is not None:
        section.threshold = threshold
    if reference_supply is not None:
        section.reference_supply = reference_supply
    return section.to_params()


def emit(result: Dict[str, Any], as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(result))
        return
    for key, value in result.items():
        click.echo(f"{key}: {value}")


@click.group()
@click.version_option(version=__version__, prog_name="bondex-quote")
def cli():
    """Bondex bonding-curve quoting tool

    Prices trades against a curve without touching any engine state.
    """
    pass


@cli.command("price")
@curve_options
def price_cmd(config_path, base_price, slope, threshold, reference_supply, supply, as_json):
    """Unit price (x10^6) at a given pool supply.

    Example:

        bondex-quote price --supply 500000 --base-price 1000000 --slope 2 --reference-supply 1000000
    """
    try:
        params = resolve_curve(config_path, base_price, slope, threshold, reference_supply)
        unit_price = CheckedPricingOracle(PiecewiseCurve()).price(supply, params)
    except BondexException as e:
        raise click.ClickException(str(e))
    emit({"supply": supply, "unit_price": unit_price}, as_json)


@cli.command("buy")
@curve_options
@click.option("--reserve", type=int, default=0, show_default=True, help="Pool quote reserve")
@click.option("--quote-in", type=int, required=True, help="Quote units spent")
def buy_cmd(config_path, base_price, slope, threshold, reference_supply, supply, as_json,
            reserve, quote_in):
    """Asset units received for QUOTE_IN quote units, after the fee.

    Example:

        bondex-quote buy --supply 1000000 --quote-in 1000000 --base-price 2000000
    """
    try:
        params = resolve_curve(config_path, base_price, slope, threshold, reference_supply)
        oracle = CheckedPricingOracle(PiecewiseCurve())
        pool = PoolRecord(CLI_POOL_ID, "", supply, reserve)
        quote = compute_buy(pool, quote_in, lambda s: oracle.price(s, params))
    except BondexException as e:
        raise click.ClickException(str(e))
    emit(asdict(quote), as_json)


@cli.command("sell")
@curve_options
@click.option("--reserve", type=int, default=0, show_default=True, help="Pool quote reserve")
@click.option("--token-in", type=int, required=True, help="Asset units sold back")
def sell_cmd(config_path, base_price, slope, threshold, reference_supply, supply, as_json,
             reserve, token_in):
    """Quote units received for TOKEN_IN asset units, after the fee.

    Example:

        bondex-quote sell --supply 500000 --reserve 2000000 --token-in 1000 --base-price 2000000
    """
    try:
        params = resolve_curve(config_path, base_price, slope, threshold, reference_supply)
        oracle = CheckedPricingOracle(PiecewiseCurve())
        pool = PoolRecord(CLI_POOL_ID, "", supply, reserve)
        quote = compute_sell(pool, token_in, lambda s: oracle.price(s, params))
    except BondexException as e:
        raise click.ClickException(str(e))
    emit(asdict(quote), as_json)


def main():
    cli()


if __name__ == "__main__":
    main()
