"""Deploy command implementations"""

from typing import Any, Dict

import click
from rich.console import Console

from ..decorators import deploy_options, project_options, to_overrides
from ...api import Deployer
from ...api.exceptions import ConfigError
from ...services.deploy_service import DeployAction

console = Console(stderr=True)


def run_action(ctx: click.Context, action: DeployAction, params: Dict[str, Any]) -> None:
    """Run an action and exit with 0 on RESULT=SUCCESS, 1 otherwise"""
    deployer = Deployer(config_files=ctx.obj.config_files if ctx.obj else ())

    try:
        result = deployer.run(action.value, **to_overrides(params))
    except ConfigError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        ctx.exit(1)

    if ctx.obj and ctx.obj.verbose:
        console.print(f"[dim]{action.value}: {result.file_count} file(s)[/dim]")
    ctx.exit(0 if result.success else 1)


@click.command(name='deployModified')
@project_options
@deploy_options
@click.pass_context
def deploy_modified(ctx, **params):
    """Deploy files changed since the last deploy or refresh

    Files whose remote version is newer than the one last seen locally
    block the deploy unless --ignore-conflicts is given.

    Examples:

        force-deploy deployModified --project-path ~/proj

        # Validate and run two test methods of one class
        force-deploy deployModified --check-only --tests-to-run "AccountTest.testA,AccountTest.testB"
    """
    run_action(ctx, DeployAction.DEPLOY_MODIFIED, params)


@click.command(name='deployAll')
@project_options
@deploy_options
@click.pass_context
def deploy_all(ctx, **params):
    """Deploy every source file of the project"""
    run_action(ctx, DeployAction.DEPLOY_ALL, params)


@click.command(name='deploySpecificFiles')
@click.option('--specific-files', required=True, type=click.Path(dir_okay=False),
              help='File listing project relative paths, one per line')
@project_options
@deploy_options
@click.pass_context
def deploy_specific_files(ctx, specific_files, **params):
    """Deploy the files named in a list file

    Examples:

        force-deploy deploySpecificFiles --specific-files files.txt
    """
    run_action(ctx, DeployAction.DEPLOY_SPECIFIC_FILES,
               {**params, 'specific_files': specific_files})


@click.command(name='deleteMetadata')
@click.option('--specific-components', required=True, type=click.Path(dir_okay=False),
              help='File listing components such as classes/Foo.cls, one per line')
@click.option('--check-only', is_flag=True,
              help='Validate the deletion only')
@project_options
@click.pass_context
def delete_metadata(ctx, specific_components, **params):
    """Delete components from the remote"""
    run_action(ctx, DeployAction.DELETE_METADATA,
               {**params, 'specific_components': specific_components})


@click.command(name='listModified')
@project_options
@click.pass_context
def list_modified(ctx, **params):
    """List files changed since the last deploy or refresh"""
    run_action(ctx, DeployAction.LIST_MODIFIED, params)


commands = [deploy_modified, deploy_all, deploy_specific_files, delete_metadata, list_modified]
