"""Run the lapwatch FastAPI application."""

from __future__ import annotations

from pathlib import Path

import hydra
import uvicorn
from hydra.utils import to_absolute_path
from omegaconf import DictConfig

from lapwatch.runtime.engine import EngineConfig
from lapwatch.serve.api import create_app
from lapwatch.utils.logging import logger, setup_logging


@hydra.main(config_path="../configs", config_name="serve", version_base=None)
def main(cfg: DictConfig) -> None:
    log_file = Path(to_absolute_path(cfg.logging.file)) if cfg.logging.file else None
    setup_logging(log_file, level=cfg.logging.level)

    engine_cfg = EngineConfig(**cfg.engine)
    app = create_app(engine_cfg)
    logger.info("Serving lapwatch on {}:{} (tick={}s, label={!r})", cfg.host, cfg.port, engine_cfg.tick_interval, engine_cfg.label)
    uvicorn.run(app, host=cfg.host, port=cfg.port, log_level=str(cfg.logging.level).lower())


if __name__ == "__main__":
    main()
