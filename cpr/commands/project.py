"""
Shared steps of the ``init`` and ``new`` commands.
"""
import click

from ..cli_utils import load_registry
from ..clone import Cloner
from ..config import logger
from ..progress import RichProgressDisplay
from ..prompts import ClickPrompter, ScriptedPrompter
from ..scaffold import ProjectInfo, ScaffoldPipeline
from ..utils import get_git_author


def prompt_project_info(project_name=None, author=None, default_name=None):
    """Ask for whatever part of the project info was not given on the command line."""
    if not project_name:
        project_name = click.prompt("Project name", default=default_name)
    if not author:
        author = click.prompt("Author", default=get_git_author() or None)
    return ProjectInfo(name=project_name, author=author)


def scaffold_project(ctx, reference, target_dir, project, answers_file=None, require_new=False):
    """Build the pipeline for this invocation and run it."""
    registry = load_registry(ctx)
    if answers_file:
        prompter = ScriptedPrompter.from_file(answers_file)
    else:
        prompter = ClickPrompter()

    pipeline = ScaffoldPipeline(
        registry=registry,
        prompter=prompter,
        cloner=Cloner(display=RichProgressDisplay()),
    )
    result = pipeline.run(reference, target_dir, project, require_new=require_new)

    if result.skipped:
        logger.warning(f"{len(result.skipped)} file(s) were left unrendered")
    click.echo(f"✅ {project.name} is ready in {result.target_dir}")
    return result
