"""Click-based CLI for quotedl.

Thin wrapper around library modules: symbol resolution, market list
downloads, provider construction and output all delegate to the package.
"""

from __future__ import annotations

import logging
import time
from typing import NoReturn

import click
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn

from quotedl import __version__
from quotedl.core.config import QuoteConfig, load_config
from quotedl.core.exceptions import ConfigError, QuoteError
from quotedl.core.logging import configure_logging
from quotedl.core.models import Period, date_range
from quotedl.formats.writer import OutputFormat, write_quote, write_quotes
from quotedl.markets import MarketClient, is_market, validate_market, write_market_file
from quotedl.providers import Source, check_source, create_provider, fetch_all
from quotedl.symbols import load_symbol_files

console = Console(stderr=True)
logger = logging.getLogger("quotedl.cli")

_PERIODS = "1m|3m|5m|15m|30m|1h|2h|4h|6h|8h|12h|d|3d|w|m"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _fail(ctx: click.Context, message: str) -> NoReturn:
    """Report ``message`` with the usage text and exit successfully."""
    console.print(f"\n[red]error:[/red] {escape(message)}\n", soft_wrap=True)
    click.echo(ctx.get_help())
    ctx.exit(0)


def _parse_choice(enum_cls, value: str, field: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(f"'{member.value}'" for member in enum_cls)
        raise ConfigError(
            f"invalid {field}, must be one of {allowed}",
            context={"field": field, "value": value},
        ) from None


def _download_markets(names: list[str], outfile: str, config: QuoteConfig, token: str | None) -> None:
    """Handle ``quotedl <market> ...``: save each market list to a file.

    A market that cannot be fetched is logged and the next one is tried.
    """
    for name in names:
        validate_market(name, token)
    with MarketClient(config.http, token=token) as client:
        for name in names:
            try:
                symbols = client.get_market_list(name)
                path = write_market_file(name, symbols, outfile or None)
            except QuoteError as e:
                logger.error("error downloading market %s: %s", name, e)
                console.print(f"[red]\u2717[/red] {name}: {escape(str(e))}", soft_wrap=True)
                continue
            except OSError as e:
                logger.error("error writing market file for %s: %s", name, e)
                continue
            console.print(f"[green]\u2713[/green] {len(symbols)} {name} symbols written to {path}")


def _resolve_symbols(
    args: tuple[str, ...],
    infile: str,
    markets: str,
    config: QuoteConfig,
    token: str | None,
) -> list[str]:
    """Collect symbols from --infile, --markets or the positional arguments."""
    if infile:
        return load_symbol_files(infile)
    if markets:
        names = [m.strip() for m in markets.split(",") if m.strip()]
        for name in names:
            validate_market(name, token)
        symbols: list[str] = []
        with MarketClient(config.http, token=token) as client:
            for name in names:
                try:
                    symbols.extend(client.get_market_list(name))
                except QuoteError as e:
                    logger.error("error downloading market %s: %s", name, e)
        return symbols
    return list(args)


def _progress() -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
    )


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("symbols", nargs=-1)
@click.option("--years", type=int, default=5, show_default=True, help="Number of years to download.")
@click.option("--start", default="", help="Start date, yyyy[-mm[-dd]].")
@click.option("--end", default="", help="End date, yyyy[-mm[-dd]] (default today).")
@click.option("--markets", default="", help="Comma-separated market lists to download quotes for.")
@click.option("--infile", default="", help="File of symbols, one per line (wildcards allowed).")
@click.option("--outfile", default="", help="Output filename.")
@click.option("--period", default="d", show_default=True, help=_PERIODS)
@click.option(
    "--source",
    default="tiingo",
    show_default=True,
    help="|".join(s.value for s in Source),
)
@click.option("--token", envvar="TIINGO_API_TOKEN", default=None, help="Tiingo API token.")
@click.option(
    "--format",
    "fmt",
    default="csv",
    show_default=True,
    help="|".join(f.value for f in OutputFormat),
)
@click.option("--all", "all_in_one", is_flag=True, default=False, help="Write all symbols to one file.")
@click.option("--log", "log_dest", default=None, help="filename|stdout|stderr|discard [default: stdout]")
@click.option("--delay", type=int, default=None, help="Milliseconds between quote requests [default: 100].")
@click.option(
    "--config",
    "config_path",
    type=click.Path(),
    default=None,
    help="Path to quotedl.yml config file.",
)
@click.version_option(__version__, "-v", "--version", prog_name="quotedl")
@click.pass_context
def cli(
    ctx: click.Context,
    symbols: tuple[str, ...],
    years: int,
    start: str,
    end: str,
    markets: str,
    infile: str,
    outfile: str,
    period: str,
    source: str,
    token: str | None,
    fmt: str,
    all_in_one: bool,
    log_dest: str | None,
    delay: int | None,
    config_path: str | None,
) -> None:
    """Download historical price quotes.

    \b
    quotedl <market> [--outfile FILE]
    quotedl [OPTIONS] [--infile FILE | SYMBOL ...]

    Valid markets: etf, nasdaq, nasdaq100, amex, nyse, megacap, largecap,
    midcap, smallcap, microcap, nanocap, telecommunications, health_care,
    finance, real_estate, consumer_discretionary, consumer_staples,
    industrials, basic_materials, energy, utilities, technology,
    tiingo-btc, tiingo-eth, tiingo-usd, coinbase, kraken, huobi-btc,
    huobi-eth, huobi-usdt, huobi-ht.

    Not all periods work with all sources.
    """
    try:
        config = load_config(config_path=config_path)
        configure_logging(log_dest or config.log.destination, config.log.level)

        delay_ms = config.delay_ms if delay is None else delay
        if delay_ms < 0:
            raise ConfigError("delay must be >= 0", context={"field": "delay", "value": delay_ms})
        token = token or config.tiingo_token

        if symbols and not markets and all(is_market(s) for s in symbols):
            _download_markets(list(symbols), outfile, config, token)
            return

        src = _parse_choice(Source, source, "source")
        out_fmt = _parse_choice(OutputFormat, fmt, "format")
        check_source(src, period, token)
        bar_period = Period.parse(period)

        symbol_list = _resolve_symbols(symbols, infile, markets, config, token)
        if not symbol_list:
            raise ConfigError("no symbols specified", context={"field": "symbols"})
        if len(symbol_list) > 1 and outfile and not all_in_one:
            raise ConfigError(
                "outfile not valid with multiple symbols, use --all",
                context={"field": "outfile", "value": outfile},
            )

        from_date, to_date = date_range(start, end, years)
    except (QuoteError, FileNotFoundError, ValueError) as e:
        _fail(ctx, str(e))

    with create_provider(src, config, token=token) as provider, _progress() as progress:
        task = progress.add_task(f"Downloading from {src}...", total=len(symbol_list))
        pause = delay_ms / 1000.0

        if all_in_one:
            quotes = fetch_all(
                provider,
                symbol_list,
                from_date,
                to_date,
                bar_period,
                delay=pause,
                on_symbol=lambda _symbol: progress.advance(task),
            )
            try:
                path = write_quotes(quotes, out_fmt, outfile or None)
            except OSError as e:
                logger.error("error writing file: %s", e)
                return
            written = len(quotes)
            console.print(
                f"[green]\u2713[/green] Wrote {written} of {len(symbol_list)} symbols to {path}"
            )
            return

        written = 0
        for symbol in symbol_list:
            try:
                quote = provider.get_quote(symbol, from_date, to_date, bar_period)
                write_quote(quote, out_fmt, outfile or None)
                written += 1
            except (QuoteError, ValueError) as e:
                logger.error("error downloading %s: %s", symbol, e)
            except OSError as e:
                logger.error("error writing file for %s: %s", symbol, e)
            progress.advance(task)
            time.sleep(pause)

    console.print(f"[green]\u2713[/green] Wrote {written} of {len(symbol_list)} symbol files")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
