#!filepath: invest_game/cli.py
from typing import Optional

import typer
import yaml
from pydantic import ValidationError
from rich import print
from rich.markup import escape
from rich.table import Table

from invest_game import __version__
from invest_game.config.app_config import AppConfig
from invest_game.game.catalog import EventCatalog
from invest_game.game.core.events import GlobalScope
from invest_game.game.core.types import Sector
from invest_game.game.session import GameSession
from invest_game.utils.errors import UserInputError
from invest_game.utils.logger import init_logging

app = typer.Typer(help="Investment Game CLI")


@app.command()
def version():
    print(f"v{__version__}")


@app.command()
def events():
    """
    列出事件日程（turn → effects）
    """
    table = Table(title="Scheduled events")
    table.add_column("turn", justify="right")
    table.add_column("key")
    table.add_column("category")
    table.add_column("effects")

    for turn, ev in EventCatalog().items():
        parts = []
        for e in ev.effects:
            scope = "ALL" if isinstance(e.scope, GlobalScope) else e.scope.sector.value
            rng = f" {e.variation[0]:+g}..{e.variation[1]:+g}" if e.variation else ""
            parts.append(f"{scope} {e.base_rate:+g}%{rng}")
        table.add_row(str(turn), ev.key, ev.category.value, ", ".join(parts))

    print(table)


def auto_play_turn(session: GameSession) -> None:
    """
    Scripted player:
      - turn 1: spread 80% of cash over the first instrument of every sector
      - later: read tomorrow's news, buy sectors with good news, dump bad ones
    """
    machine = session.machine
    repo = session.repo
    if repo is None:
        return

    if machine.turn == 1:
        per_sector = int(machine.cash * 0.8) // len(Sector)
        for sector in Sector:
            members = repo.list_by_sector(sector)
            if not members:
                continue
            inst = members[0]
            qty = per_sector // int(inst.price * (1 + machine.cfg.fee_rate) + 1)
            if qty > 0:
                session.buy(inst.id, qty)
        return

    upcoming = machine.catalog.upcoming(machine.turn)
    if upcoming is None:
        return

    for effect in upcoming.effects:
        if isinstance(effect.scope, GlobalScope):
            continue
        members = repo.list_by_sector(effect.scope.sector)
        if effect.base_rate < 0:
            for inst in members:
                holding = repo.get_holding(inst.id)
                if holding is not None and holding.quantity > 0:
                    session.sell(inst.id, holding.quantity)
        elif members:
            inst = members[0]
            qty = machine.trading.max_affordable(inst.id) // 2
            if qty > 0:
                session.buy(inst.id, qty)


@app.command()
def play(
    seed: Optional[int] = typer.Option(None, help="RNG seed (overrides config)"),
    turns: Optional[int] = typer.Option(None, help="Number of turns (overrides config)"),
    config: Optional[str] = typer.Option(None, help="Path to a YAML config"),
    trades: bool = typer.Option(False, "--trades", help="Print the trade history"),
):
    """
    跑完整一局（模拟时钟 + 脚本玩家），打印结果
    """
    try:
        cfg = AppConfig.load(config)
        init_logging(cfg.log)

        updates = {}
        if seed is not None:
            updates["seed"] = seed
        if turns is not None:
            if turns < 1:
                raise UserInputError(f"turns must be >= 1, got {turns}")
            updates["max_turns"] = turns
        game_cfg = cfg.game.model_copy(update=updates)
    except (UserInputError, FileNotFoundError, ValidationError, yaml.YAMLError) as e:
        # pydantic messages carry [type=...] blocks, keep them out of rich markup
        print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    session = GameSession(game_cfg)
    session.start()
    print(f"[green]Playing {game_cfg.max_turns} turns (seed={game_cfg.seed})[/green]")

    while session.machine.is_playing:
        auto_play_turn(session)
        session.advance_turn()
    result = session.run_to_end()

    table = Table(title="Game result")
    table.add_column("metric")
    table.add_column("value", justify="right")
    for k, v in result.summary().items():
        table.add_row(k, str(v))
    print(table)

    if trades:
        df = session.machine.ledger.to_frame("transactions")
        print(df.drop(columns=["created_at"]).to_string(index=False))


if __name__ == "__main__":
    app()

# python -m invest_game.cli play --seed 7
