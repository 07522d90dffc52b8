"""Command-line interface for the material importer."""

import argparse
import logging
import os
import sys

from .config import SHADER_PRESETS, ImporterConfig
from .core import setup_logging

logger = logging.getLogger("material_import")

_EPILOG = """
Examples:
  MatPack --input ./downloads --output ./Assets/Materials
  MatPack --config config.yaml
  MatPack -i ./downloads/Bricks090_2K-PNG.zip -o ./out --preset hdrp
  MatPack -i ./downloads --category-dir --material-dir
  MatPack -i ./downloads --dry-run
  MatPack --generate-config --preset urp
"""


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Import PBR texture sets as materials with channel-packed maps",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=_EPILOG,
    )
    parser.add_argument("--input", "-i",
                        help="Texture set directory, zip file, or a directory of them")
    parser.add_argument("--output", "-o", help="Output directory")
    parser.add_argument("--config", "-c", help="Path to config YAML")
    parser.add_argument("--preset", choices=sorted(SHADER_PRESETS),
                        help="Shader preset used when the config lists no properties")
    parser.add_argument("--shader", help="Override the shader reference")
    parser.add_argument("--category-dir", action="store_true",
                        help="Nest output under the material category (Bricks090 -> Bricks)")
    parser.add_argument("--material-dir", action="store_true",
                        help="Nest output under a directory named after the material")
    parser.add_argument("--workers", type=int, help="Max parallel imports")
    parser.add_argument("--dry-run", action="store_true",
                        help="Report what would be read and packed without writing")
    parser.add_argument("--generate-config", action="store_true",
                        help="Write a config.yaml with the preset's properties expanded")
    parser.add_argument("--log-level",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    return parser


def _fail(message: str, code: int = 1):
    logger.error(message)
    print(f"Error: {message}")
    sys.exit(code)


def _generate_config(args) -> None:
    config = ImporterConfig()
    if args.preset:
        config.preset = args.preset
    config.properties = config.property_dicts()
    dest = args.config or args.output or "config.yaml"
    if os.path.isdir(dest):
        dest = os.path.join(dest, "config.yaml")
    config.to_yaml(dest)
    logger.info("Generated default %s", dest)
    print(f"Generated default {dest}")


def _load_config(path) -> ImporterConfig:
    if not path:
        return ImporterConfig()
    if not os.path.exists(path):
        _fail(f"Config file not found: {path}")
    try:
        return ImporterConfig.from_yaml(path)
    except ValueError as e:
        _fail(f"Invalid config: {e}")


def _apply_overrides(config: ImporterConfig, args) -> None:
    """Let explicit command-line flags win over the config file."""
    if args.input:
        config.input_dir = args.input
    if args.output:
        config.output_dir = args.output
    if args.preset:
        config.preset = args.preset
    if args.shader:
        config.shader = args.shader
    if args.category_dir:
        config.create_category_directory = True
    if args.material_dir:
        config.create_material_directory = True
    if args.workers is not None:
        config.max_workers = args.workers
    if args.dry_run:
        config.dry_run = True
    if args.log_level:
        config.log_level = args.log_level


def _report(results, dry_run: bool) -> None:
    for result in results:
        if result.error:
            print(f"FAILED  {result.name}: {result.error}")
        elif dry_run:
            reads = ", ".join(result.planned_reads) or "-"
            packs = ", ".join(result.planned_syntheses) or "-"
            print(f"PLAN    {result.name}: read {reads}; synthesize {packs}")
        else:
            print(f"OK      {result.name} -> {result.material_path}")


def main():
    """Parse CLI arguments, run the importer, and exit with its status."""
    args = _build_parser().parse_args()

    if args.generate_config:
        _generate_config(args)
        return

    # Make config warnings visible before file logging is set up.
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")

    config = _load_config(args.config)
    _apply_overrides(config, args)

    if not config.input_dir or not os.path.exists(config.input_dir):
        _fail(f"Input path not found: {config.input_dir}")
    try:
        config.validate()
    except ValueError as e:
        _fail(str(e))

    os.makedirs(config.output_dir, exist_ok=True)
    # Swap the early console handler for the progress-bar-safe one.
    setup_logging(config.log_level, os.path.join(config.output_dir, "import.log"), force=True)

    from .importer import MaterialImporter
    importer = MaterialImporter(config)
    try:
        results = importer.run()
    except KeyboardInterrupt:
        logger.warning("Interrupted by user.")
        sys.exit(130)

    _report(results, config.dry_run)
    if importer.failed_imports:
        sys.exit(1)


if __name__ == "__main__":
    main()
