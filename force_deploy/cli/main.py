# force_deploy/cli/main.py
"""Main CLI entry point for force-deploy"""

import logging
import os
import sys
from pathlib import Path
from typing import List

import click
from rich.console import Console
from rich.logging import RichHandler

from ..__version__ import __version__
from ..constants import APP_NAME, ENV_LOG_LEVEL, LOG_FORMAT

# Import all commands
from .commands import deploy

# Protocol output owns stdout, so diagnostics go to stderr
console = Console(stderr=True)


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Setup logging configuration

    Args:
        verbose: Enable verbose output (INFO level)
        debug: Enable debug output (DEBUG level)
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = os.environ.get(ENV_LOG_LEVEL, "WARNING").upper()

    # Configure rich handler
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            RichHandler(
                console=console,
                show_time=debug,
                show_path=debug,
                rich_tracebacks=True,
                tracebacks_suppress=[click]
            )
        ]
    )


class Context:
    """CLI context object shared by all commands"""

    def __init__(self, config_files: List[Path]):
        self.config_files = config_files
        self.verbose: bool = False
        self.debug: bool = False


@click.group(name=APP_NAME)
@click.option('--config', 'config_files', multiple=True,
              type=click.Path(exists=True, dir_okay=False),
              help='YAML config file; repeatable, later files win')
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose output')
@click.option('-d', '--debug', is_flag=True, help='Enable debug output')
@click.option('-q', '--quiet', is_flag=True, help='Suppress all output except errors')
@click.version_option(__version__, prog_name=APP_NAME)
@click.pass_context
def cli(ctx, config_files, verbose, debug, quiet):
    """Force Deploy - Deploy local source files to a Force.com org

    Packages changed source files, refuses to overwrite newer remote
    versions, deploys and reports the outcome as KEY=VALUE lines on
    stdout or in --response-file.

    Settings come from --config files, the FORCE_DEPLOY_CONFIG file and
    command options, the latter winning.
    """
    # Setup logging
    if quiet:
        logging.disable(logging.CRITICAL)
    else:
        setup_logging(verbose=verbose, debug=debug)

    ctx.obj = Context([Path(f) for f in config_files])
    ctx.obj.verbose = verbose
    ctx.obj.debug = debug


# Register commands
for command in deploy.commands:
    cli.add_command(command)


def main():
    """Main entry point for the CLI application

    This function handles:
    - Keyboard interrupts
    - Unexpected exceptions with proper error display
    """
    try:
        cli(prog_name=APP_NAME)

    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(130)

    except Exception as e:
        console.print(f"[red]Unexpected error: {e}[/red]")
        if '--debug' in sys.argv or '-d' in sys.argv:
            console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()
