"""Entrypoint for `python -m MatPack`.

Usage:
  - Import a single material: `python -m MatPack -i ./Bricks090 -o ./out`
  - Import a batch:           `python -m MatPack -i ./downloads -o ./out`
"""
import logging

logger = logging.getLogger("material_import")


def _run_cli():
    from .cli import main as cli_main
    logger.debug("Dispatching to CLI entrypoint.")
    cli_main()


if __name__ == "__main__":
    _run_cli()
