"""CLI commands for the local-feed aggregation layer."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

import click

from local_feed.config import Settings
from local_feed.models import NewsAggregate, StocksSnapshot, WeatherSnapshot
from local_feed.service import DashboardService

_DIRECTION_MARK = {"up": ("▲", "red"), "down": ("▼", "blue"), "flat": ("-", "white")}


def _run(call: Callable[[DashboardService], Awaitable[Any]]) -> Any:
    """Run one service call on a fresh service and close it afterwards."""

    async def runner() -> Any:
        service = DashboardService(Settings.from_env())
        try:
            return await call(service)
        finally:
            await service.aclose()

    return asyncio.run(runner())


def _fail(error: Exception) -> None:
    click.echo(f"Error: {error}", err=True)
    raise SystemExit(1)


def _format_ms(ms: int) -> str:
    if not ms:
        return "-"
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


def _format_number(value: float | None, digits: int = 0) -> str:
    if value is None:
        return "-"
    return f"{value:,.{digits}f}"


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log upstream activity")
def cli(verbose: bool) -> None:
    """Local Feed - News, weather, stocks and FX for the dashboard."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option("--json-output", "-j", is_flag=True, help="Output as JSON")
def meta(json_output: bool) -> None:
    """List news categories and weather locations."""
    data = DashboardService.meta()
    if json_output:
        click.echo(json.dumps(data, indent=2, ensure_ascii=False))
        return
    click.echo("Categories:")
    for c in data["categories"]:
        click.echo(f"  {c['id']:<10} {c['label']}")
    click.echo("Locations:")
    for loc in data["locations"]:
        click.echo(f"  {loc['id']:<10} {loc['label']}")


@cli.command()
@click.argument("category", default="all")
@click.option("--limit", "-n", default=20, help="Items to print (default: 20)")
@click.option("--json-output", "-j", is_flag=True, help="Output as JSON")
def news(category: str, limit: int, json_output: bool) -> None:
    """Show aggregated news for a category.

    Example: local-feed news economy
    """
    try:
        result: NewsAggregate = _run(lambda s: s.news(category))
    except Exception as e:
        _fail(e)

    if json_output:
        click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return

    click.echo(f"{result.category.label} ({len(result.items)} items)")
    for item in result.items[:limit]:
        click.echo(f"[{_format_ms(item.published_ms)}] {item.title} - {item.source}")
        click.echo(f"    {item.link}")
    if result.failure_count:
        click.secho(
            f"{result.failure_count}/{result.feed_count} feeds failed",
            fg="yellow",
            err=True,
        )


@cli.command()
@click.argument("location", default="seoul")
@click.option("--json-output", "-j", is_flag=True, help="Output as JSON")
def weather(location: str, json_output: bool) -> None:
    """Show current weather and the daily outlook.

    Example: local-feed weather busan
    """
    try:
        result: WeatherSnapshot = _run(lambda s: s.weather(location))
    except Exception as e:
        _fail(e)

    if json_output:
        click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return

    cur = result.current
    click.echo(f"{result.location.label} ({result.as_of})")
    click.echo(
        f"  {cur.text}  {_format_number(cur.temp_c, 1)}°C "
        f"(feels {_format_number(cur.feels_c, 1)}°C)"
    )
    click.echo(
        f"  PM10 {_format_number(cur.pm10)}  PM2.5 {_format_number(cur.pm2_5)}"
    )
    for day in result.daily:
        click.echo(
            f"  {day.date}  {day.text:<12} "
            f"{_format_number(day.t_min, 1)} / {_format_number(day.t_max, 1)}"
        )


@cli.command()
@click.option("--json-output", "-j", is_flag=True, help="Output as JSON")
def stocks(json_output: bool) -> None:
    """Show the most traded equities with quotes."""
    try:
        result: StocksSnapshot = _run(lambda s: s.stocks())
    except Exception as e:
        _fail(e)

    if json_output:
        click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return

    if result.fx.rate is not None:
        click.echo(f"USD/KRW {_format_number(result.fx.rate, 2)} ({result.fx.source})")
    else:
        click.secho(f"USD/KRW unavailable: {result.fx.error}", fg="yellow")

    for q in result.items:
        if q.error:
            click.echo(f"  {q.code} {q.name:<14} error: {q.error}")
            continue
        mark, color = _DIRECTION_MARK.get(q.direction or "", ("?", "white"))
        click.echo(f"  {q.code} {q.name:<14} {_format_number(q.price):>10} ", nl=False)
        click.secho(
            f"{mark} {_format_number(q.change_amount)} ({_format_number(q.change_percent, 2)}%)",
            fg=color,
        )


@cli.command()
@click.option("--json-output", "-j", is_flag=True, help="Output as JSON")
def fx(json_output: bool) -> None:
    """Show the USD/KRW exchange rate."""
    try:
        result = _run(lambda s: s.fx())
    except Exception as e:
        _fail(e)

    if json_output:
        click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return
    click.echo(f"USD/KRW {_format_number(result.rate, 2)} ({result.source}, {result.as_of})")


if __name__ == "__main__":
    cli()
