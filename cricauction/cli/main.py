"""
cricauction CLI - Command Line Interface for the live auction

Main entry point for all CLI commands.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional, Tuple

import click

from cricauction.core.auction.engine import AuctionEngine
from cricauction.core.auction.models import ALL_ROLES, PlayerRole, Role
from cricauction.core.config import load_config
from cricauction.core.session import AuctionSession
from cricauction.roster import parse_roster, squad_document, squad_filename, squad_text
from cricauction.utils.logger import get_logger, setup_logging

logger = get_logger("cli")

ROLE_CHOICES = [ALL_ROLES] + [role.value for role in PlayerRole]

HOST_HELP = """Commands:
  bid <team-id>       raise the price for a team
  undo                remove the newest bid
  next [item-id]      put the next draft player up
  sold | unsold       close bidding on the live player
  filter <role|All>   restrict 'next' to one role
  team <name> [purse] add a team
  show                print the board
  help                this text
  quit                leave the session"""


# =============================================================================
# Rendering
# =============================================================================


def render_board(engine: AuctionEngine) -> str:
    """Plain-text auction board."""
    lines = [f"== {engine.config.title} =="]

    item = engine.live_item
    if item is None:
        lines.append("No player on the block.")
    else:
        lines.append(
            f"LIVE  {item.name} [{item.id}] ({item.role.value}, {item.age})  "
            f"base ₹{item.base_price:,}"
        )
        top = engine.highest_bid
        if top is not None:
            lines.append(f"      Current bid ₹{top.amount:,} by {top.bidder_name}")
        else:
            lines.append("      No bids yet")
        state = "running" if engine.is_timer_running else "stopped"
        lines.append(f"      Clock {engine.time_left}s ({state})")

    lines.append("")
    lines.append("Teams:")
    for bidder in engine.bidders:
        won = len(engine.items_won(bidder.id))
        lines.append(
            f"  [{bidder.id}] {bidder.name:<24} purse ₹{bidder.remaining:,}  "
            f"squad {won}/{engine.config.max_items_per_bidder}"
        )

    drafts = engine.draft_items()
    lines.append(f"Draft pool: {len(drafts)} players")
    return "\n".join(lines)


# =============================================================================
# Host Console
# =============================================================================


def run_host_command(
    engine: AuctionEngine,
    line: str,
    role_filter: str = ALL_ROLES,
) -> Tuple[bool, str, str]:
    """
    Execute one console line against the engine.

    Returns:
        (quit, message, role_filter)
    """
    parts = line.strip().split()
    if not parts:
        return False, "", role_filter
    command, args = parts[0].lower(), parts[1:]

    if command in ("quit", "exit"):
        return True, "", role_filter
    if command == "help":
        return False, HOST_HELP, role_filter
    if command == "show":
        return False, render_board(engine), role_filter

    if command == "filter":
        if len(args) != 1 or args[0] not in ROLE_CHOICES:
            return False, f"✗ filter expects one of: {', '.join(ROLE_CHOICES)}", role_filter
        return False, f"Filter: {args[0]}", args[0]

    if command == "bid":
        if len(args) != 1:
            return False, "✗ usage: bid <team-id>", role_filter
        ok, reason = engine.place_bid(args[0])
    elif command == "undo":
        ok, reason = engine.undo_last_bid()
    elif command == "next":
        ok, reason = engine.start_next(args[0] if args else None, role_filter=role_filter)
    elif command in ("sold", "unsold"):
        ok, reason = engine.finalize_sale(command == "sold")
    elif command == "team":
        if not args:
            return False, "✗ usage: team <name> [purse]", role_filter
        budget: Optional[int] = None
        name_parts = args
        if len(args) > 1 and args[-1].isdigit():
            budget, name_parts = int(args[-1]), args[:-1]
        ok, reason = engine.add_bidder(" ".join(name_parts), budget)
    else:
        return False, f"✗ unknown command '{command}' (try 'help')", role_filter

    if not ok:
        return False, f"✗ {reason}", role_filter
    message = render_board(engine)
    if reason:
        message = f"{reason}\n{message}"
    return False, message, role_filter


# =============================================================================
# Root Group
# =============================================================================


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--data-dir", default=None, help="Local cache directory")
@click.option("--store-url", default=None, help="Shared snapshot document URL ('memory://' for local only)")
@click.option("--env-file", default=None, help="dotenv file with CRICAUCTION_* settings")
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx, debug, data_dir, store_url, env_file):
    """Live cricket player auction with a replicated broadcast view"""
    level = logging.DEBUG if debug else logging.INFO

    settings = load_config(
        env_file,
        data_dir=Path(data_dir).expanduser() if data_dir else None,
        store_url=store_url,
    )
    setup_logging(level=level, log_dir=str(settings.log_dir))

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


def _session(ctx) -> AuctionSession:
    return AuctionSession.from_settings(ctx.obj["settings"])


# =============================================================================
# Session Commands
# =============================================================================


@cli.command("host")
@click.pass_context
def host(ctx):
    """Run the auction as host (interactive console)"""
    session = _session(ctx)

    async def run_console():
        await session.enter_as_host()
        role_filter = ALL_ROLES
        click.echo(render_board(session.engine))
        click.echo(HOST_HELP)
        try:
            while True:
                try:
                    line = await asyncio.to_thread(
                        click.prompt, "auction", default="", show_default=False
                    )
                except click.Abort:
                    break
                done, message, role_filter = run_host_command(session.engine, line, role_filter)
                if message:
                    click.echo(message)
                if done:
                    break
            await session.channel.flush()
        finally:
            await session.close()

    asyncio.run(run_console())
    click.echo("Host session closed.")


@cli.command("watch")
@click.option("--once", is_flag=True, help="Fetch a single snapshot and exit")
@click.pass_context
def watch(ctx, once):
    """Follow the auction as a viewer"""
    session = _session(ctx)

    async def run_viewer():
        if once:
            try:
                if not await session.refresh():
                    click.echo(f"No snapshot received ({session.sync_status.value}).")
                click.echo(render_board(session.engine))
            finally:
                await session.close()
            return

        def on_change():
            click.echo(render_board(session.engine))
            click.echo("")

        session.engine.add_listener(on_change)
        await session.enter_as_viewer()
        try:
            while True:
                await asyncio.sleep(3600)
        finally:
            await session.close()

    try:
        asyncio.run(run_viewer())
    except KeyboardInterrupt:
        click.echo("\nStopped watching.")


# =============================================================================
# Roster Commands
# =============================================================================


@cli.command("import")
@click.argument("roster_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def import_roster(ctx, roster_file):
    """Append players from a JSON array or CSV file"""
    session = _session(ctx)
    items = parse_roster(roster_file.read_text(encoding="utf-8"))
    if not items:
        click.echo("❌ No players parsed. Use a JSON array or CSV with a header row.")
        ctx.exit(1)

    # Importing edits the roster, which only the host may do
    session.engine.is_host = True
    session.storage.save_role(Role.HOST)
    ok, reason = session.engine.append_items(items)
    if not ok:
        click.echo(f"❌ {reason}")
        ctx.exit(1)

    session.storage.save_snapshot(session.engine.snapshot())
    click.echo(f"✓ Imported {len(items)} players")


@cli.command("export")
@click.argument("team_id")
@click.option("--json", "as_json", is_flag=True, help="Write the squad document instead of text")
@click.option("--output", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.pass_context
def export_squad(ctx, team_id, as_json, output):
    """Print or save a team's squad"""
    engine = _session(ctx).engine
    bidder = engine.get_bidder(team_id)
    if bidder is None:
        click.echo(f"❌ Team '{team_id}' not found")
        ctx.exit(1)

    if not as_json:
        click.echo(squad_text(bidder, engine.items))
        return

    document = json.dumps(squad_document(bidder, engine.items), indent=2, ensure_ascii=False)
    path = output or Path(squad_filename(bidder))
    path.write_text(document, encoding="utf-8")
    click.echo(f"✓ Squad saved to {path}")


# =============================================================================
# Maintenance Commands
# =============================================================================


@cli.command("status")
@click.pass_context
def status(ctx):
    """Show the locally cached auction state"""
    session = _session(ctx)
    click.echo(f"Role: {session.role.value}")
    click.echo(f"Cache: {'present' if session.storage.has_snapshot() else 'empty'}")
    click.echo(render_board(session.engine))


@cli.command("reset")
@click.confirmation_option(prompt="Reset local auction data?")
@click.pass_context
def reset(ctx):
    """Erase local auction data and role"""
    session = _session(ctx)
    asyncio.run(session.reset())
    click.echo("✓ Local auction data cleared")


if __name__ == "__main__":
    cli()
