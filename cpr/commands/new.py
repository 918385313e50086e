"""
Handles the 'new' command: create a directory named after the project.
"""
from pathlib import Path

import click

from ..cli_utils import add_common_options, standard_command
from .project import prompt_project_info, scaffold_project


@click.command("new")
@click.argument("repo_path")
@add_common_options('name', 'author', 'answers')
@click.pass_context
@standard_command
def new_handler(ctx, repo_path, project_name, author, answers_file):
    """
    Create a new project with a template.

    REPO_PATH is the repository path, optionally with a prefix
    (ex. gh:cpr-rs/cpp, cpr-rs/cpp). The project is created in a new
    directory named after the project.
    """
    project = prompt_project_info(project_name, author)
    scaffold_project(ctx, repo_path, Path(project.name), project,
                     answers_file=answers_file, require_new=True)
