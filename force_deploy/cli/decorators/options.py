"""Shared click options of the deploy actions"""

from typing import Any, Callable, Dict

import click

from ...constants import (
    CONFIG_API_VERSION,
    CONFIG_ARCHIVE_OUTPUT,
    CONFIG_CALLING_ANOTHER_ORG,
    CONFIG_CHECK_ONLY,
    CONFIG_CLIENT,
    CONFIG_IGNORE_CONFLICTS,
    CONFIG_LOG_FILE,
    CONFIG_PREFER_MD5,
    CONFIG_PROJECT_PATH,
    CONFIG_REPLAY_FILE,
    CONFIG_REPORT_COVERAGE,
    CONFIG_RESPONSE_FILE,
    CONFIG_SESSION_FOLDER,
    CONFIG_SPECIFIC_COMPONENTS,
    CONFIG_SPECIFIC_FILES,
    CONFIG_TEMP_FOLDER,
    CONFIG_TESTS_TO_RUN,
    CONFIG_UPDATE_SESSION,
)

# click parameter name -> configuration key
OPTION_KEYS = {
    'project_path': CONFIG_PROJECT_PATH,
    'response_file': CONFIG_RESPONSE_FILE,
    'session_folder': CONFIG_SESSION_FOLDER,
    'temp_folder': CONFIG_TEMP_FOLDER,
    'log_file': CONFIG_LOG_FILE,
    'client': CONFIG_CLIENT,
    'replay_file': CONFIG_REPLAY_FILE,
    'archive_output': CONFIG_ARCHIVE_OUTPUT,
    'api_version': CONFIG_API_VERSION,
    'calling_another_org': CONFIG_CALLING_ANOTHER_ORG,
    'update_session_data_on_success': CONFIG_UPDATE_SESSION,
    'prefer_md5': CONFIG_PREFER_MD5,
    'ignore_conflicts': CONFIG_IGNORE_CONFLICTS,
    'check_only': CONFIG_CHECK_ONLY,
    'tests_to_run': CONFIG_TESTS_TO_RUN,
    'report_coverage': CONFIG_REPORT_COVERAGE,
    'specific_files': CONFIG_SPECIFIC_FILES,
    'specific_components': CONFIG_SPECIFIC_COMPONENTS,
}


def to_overrides(params: Dict[str, Any]) -> Dict[str, Any]:
    """Map click parameters to configuration keys

    Unset options and flags that were not given are left out so config
    file values stay in effect.
    """
    return {
        OPTION_KEYS[name]: value
        for name, value in params.items()
        if name in OPTION_KEYS and value not in (None, False)
    }


def project_options(func: Callable) -> Callable:
    """Options every action accepts: project layout, client and outputs"""
    options = [
        click.option('--project-path', type=click.Path(file_okay=False),
                     help='Project folder holding src/'),
        click.option('--response-file', type=click.Path(dir_okay=False),
                     help='Write the response here instead of stdout'),
        click.option('--session-folder', type=click.Path(file_okay=False),
                     help='Folder of session.properties (default: <project>/.vim-force.com)'),
        click.option('--temp-folder', type=click.Path(file_okay=False),
                     help='Folder for temporary files'),
        click.option('--log-file', type=click.Path(dir_okay=False),
                     help='File receiving the remote deploy log'),
        click.option('--client', help='Remote client name or package.module:ClassName'),
        click.option('--replay-file', type=click.Path(dir_okay=False),
                     help='Recorded responses for the replay client'),
        click.option('--archive-output', type=click.Path(dir_okay=False),
                     help='Keep a copy of the deployed archive (replay client)'),
        click.option('--api-version', help='Remote API version'),
        click.option('--calling-another-org', is_flag=True,
                     help='Target is not the org the session data belongs to'),
        click.option('--update-session-data-on-success', is_flag=True,
                     help='Update session data even when calling another org'),
        click.option('--prefer-md5', is_flag=True,
                     help='Compare files by MD5 instead of CRC32'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def deploy_options(func: Callable) -> Callable:
    """Options of the actions that package and deploy source files"""
    options = [
        click.option('--ignore-conflicts', is_flag=True,
                     help='Deploy even if the remote has newer versions'),
        click.option('--check-only', is_flag=True,
                     help='Validate only, do not save anything on the remote'),
        click.option('--tests-to-run',
                     help="'*' or comma separated Class[.method] names"),
        click.option('--report-coverage', is_flag=True,
                     help='Write the code coverage side-file'),
    ]
    for option in reversed(options):
        func = option(func)

    return func
