"""
Handles the 'init' command: scaffold a template into a given directory.
"""
from pathlib import Path

import click

from ..cli_utils import add_common_options, standard_command
from .project import prompt_project_info, scaffold_project


@click.command("init")
@click.argument("directory", type=click.Path(file_okay=False, path_type=Path))
@click.argument("repo_path")
@add_common_options('name', 'author', 'answers')
@click.pass_context
@standard_command
def init_handler(ctx, directory, repo_path, project_name, author, answers_file):
    """
    Initialize a directory with a template.

    DIRECTORY is the directory to target (ex. ./my_project); it is created
    if missing. REPO_PATH is the repository path, optionally with a prefix
    (ex. gh:cpr-rs/cpp, cpr-rs/cpp).
    """
    project = prompt_project_info(project_name, author, default_name=directory.resolve().name)
    scaffold_project(ctx, repo_path, directory, project, answers_file=answers_file)
