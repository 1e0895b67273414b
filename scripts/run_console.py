"""Drive stopwatches from the terminal with single-key commands.

Commands: ``t`` start/stop, ``l`` lap, ``a`` add, ``n`` select next,
``r`` reset, ``x`` remove, ``name <text>`` rename, ``q`` quit.
"""

from __future__ import annotations

from pathlib import Path

import hydra
from hydra.utils import to_absolute_path
from omegaconf import DictConfig

from lapwatch.runtime.engine import EngineConfig, EngineSnapshot, TimerEngine
from lapwatch.runtime.trigger import TriggerIntent, fire, resolve_target
from lapwatch.utils.logging import logger, setup_logging


def render(snapshot: EngineSnapshot) -> str:
    if not snapshot.stopwatches:
        return "  (no stopwatches, press 'a' to add one)"
    lines = []
    for sw in snapshot.stopwatches:
        marker = "*" if sw.id == snapshot.active_id else " "
        state = "running" if sw.is_running else "stopped"
        lines.append(f"{marker} {sw.name:<20} {sw.formatted_time:>10}  {state}")
        for lap in sw.laps:
            lines.append(f"      lap {lap.lap_number:>3}  {lap.formatted_lap_time:>10}  {lap.formatted_total_time:>10}")
    return "\n".join(lines)


def select_next(engine: TimerEngine) -> None:
    ids = [sw.id for sw in engine.stopwatches]
    if not ids:
        return
    current = ids.index(engine.active_id) if engine.active_id in ids else -1
    engine.set_active(ids[(current + 1) % len(ids)])


@hydra.main(config_path="../configs", config_name="serve", version_base=None)
def main(cfg: DictConfig) -> None:
    log_file = Path(to_absolute_path(cfg.logging.file)) if cfg.logging.file else None
    setup_logging(log_file, level=cfg.logging.level)

    with TimerEngine(EngineConfig(**cfg.engine)) as engine:
        while True:
            print(render(engine.snapshot()))
            try:
                command = input("> ").strip()
            except (EOFError, KeyboardInterrupt):
                break
            if command == "q":
                break
            if command == "t":
                fire(engine, TriggerIntent.TOGGLE)
            elif command == "l":
                fire(engine, TriggerIntent.LAP)
            elif command == "a":
                engine.add()
            elif command == "n":
                select_next(engine)
            elif command == "r":
                engine.reset(resolve_target(engine))
            elif command == "x" and engine.active_id is not None:
                engine.remove(engine.active_id)
            elif command.startswith("name "):
                engine.rename(resolve_target(engine), command[5:])
            elif command:
                print(f"unknown command {command!r}")
    logger.info("Console session closed")


if __name__ == "__main__":
    main()
