import logging
import sys

import click

from osmcat.cat import run_cat
from osmcat.clean import CLEAN_ATTRIBUTES, CleanOptions
from osmcat.config import CatSettings, load_config
from osmcat.exceptions import ConfigError, OsmCatError
from osmcat.osm_io import ENTITY_TYPES, parse_header_options

log = logging.getLogger("osmcat")


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    # basicConfig is a no-op once the root logger has handlers
    log.setLevel(level.upper())


@click.group()
@click.option('--config', '-C', 'config_path', default=None,
              type=click.Path(exists=True, dir_okay=False),
              help='JSON config file with defaults')
@click.option('--verbose', '-v', is_flag=True, help='Log what is being done')
@click.option('--log-level', default=None,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Log level, overrides --verbose')
@click.pass_context
def main(ctx, config_path, verbose, log_level):
    """
    OSM data tools.
    """
    try:
        cfg = load_config(config_path)
    except ConfigError as e:
        raise click.BadParameter(str(e), param_hint="'--config'") from e
    level = log_level or cfg["log_level"] or ("INFO" if verbose else "WARNING")
    _setup_logging(level)
    ctx.obj = cfg


@main.command()
@click.argument('input_files', nargs=-1, required=True,
                type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', required=True, type=click.Path(dir_okay=False),
              help='Output file')
@click.option('--object-type', '-t', 'object_types', multiple=True,
              type=click.Choice(list(ENTITY_TYPES)),
              help='Read only objects of given type (node, way, relation, changeset)')
@click.option('--clean', '-c', 'clean', multiple=True,
              help=f"Clean attribute ({', '.join(CLEAN_ATTRIBUTES)})")
@click.option('--overwrite', '-O', is_flag=True,
              help='Allow an existing output file to be overwritten')
@click.option('--fsync', is_flag=True,
              help='Call fsync after writing the output file')
@click.option('--input-format', '-F', default=None, help='Format of input files')
@click.option('--output-format', '-f', default=None, help='Format of output file')
@click.option('--output-header', 'output_header', multiple=True, metavar='KEY=VALUE',
              help='Add output header option')
@click.option('--generator', default=None, help='Generator setting for file header')
@click.option('--progress/--no-progress', default=None,
              help='Display progress bar (default: when stderr is a terminal)')
@click.option('--buffer-size', type=click.IntRange(min=1), default=None,
              help='Number of objects per buffer')
@click.pass_obj
def cat(cfg, input_files, output, object_types, clean, overwrite, fsync, input_format,
        output_format, output_header, generator, progress, buffer_size):
    """Concatenate OSM files and convert to different formats."""
    try:
        clean_options = CleanOptions.from_names(clean)
    except ConfigError as e:
        raise click.BadParameter(str(e), param_hint="'--clean'") from e
    try:
        header_options = {**cfg["output_header"], **parse_header_options(output_header)}
    except ConfigError as e:
        raise click.BadParameter(str(e), param_hint="'--output-header'") from e

    if progress is None:
        progress = cfg["progress"]
    if progress is None:
        progress = sys.stderr.isatty()

    settings = CatSettings(
        input_files=tuple(input_files),
        output_file=output,
        object_types=tuple(object_types),
        clean=clean_options,
        output_header=header_options,
        generator=generator or cfg["generator"],
        input_format=input_format,
        output_format=output_format,
        overwrite=overwrite or cfg["overwrite"],
        fsync=fsync or cfg["fsync"],
        progress=progress,
        buffer_size=buffer_size or cfg["buffer_size"],
    )
    _show_arguments(settings)

    try:
        run_cat(settings)
    except (OsmCatError, OSError, RuntimeError) as e:
        log.error(f"cat failed: {e}")
        raise click.ClickException(str(e)) from e


def _show_arguments(settings: CatSettings) -> None:
    log.info("  input files:")
    for name in settings.input_files:
        log.info(f"    {name}")
    log.info(f"  output file: {settings.output_file}")
    log.info(f"  output format: {settings.output_format or '(from file name)'}")
    log.info(f"  overwrite: {'yes' if settings.overwrite else 'no'}")
    log.info(f"  object types: {', '.join(settings.object_types) or 'node, way, relation, changeset'}")
    log.info(f"  attributes to clean: {settings.clean.describe()}")


if __name__ == '__main__':
    main()
