"""
Scaffold pipeline: resolve -> clone -> schema -> prompt -> render -> cleanup.

The pipeline runs synchronously on one thread. Files are rendered in
sorted path order so the same template and answers always give the same
output. A failure after some files were written leaves them in place;
only a directory created for a clone that then failed is removed.
File contents, line endings included, are kept byte for byte apart from
the rendered placeholders.
"""
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List

from .config import logger
from .exit_codes import (
    DirectoryCreateFailed,
    DirectoryExists,
    FormatError,
    ReadFileFailed,
    WriteFileFailed,
)
from .prompts import ErrorAction
from .render import TemplateEngine, build_environment
from .schema import DEFAULT_NAMESPACE, SCHEMA_FILENAME, read_schema
from .services import resolve


class ScaffoldState(Enum):
    RESOLVING = "resolving"
    CLONING = "cloning"
    SCHEMA_CHECK = "schema-check"
    PROMPTING = "prompting"
    WALKING = "walking"
    CLEANUP = "cleanup"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ProjectInfo:
    name: str
    author: str


@dataclass
class ErrorPolicy:
    """Read-error handling state for one run."""

    skip_all_enabled: bool = False


@dataclass
class ScaffoldResult:
    url: str
    target_dir: Path
    rendered: List[Path] = field(default_factory=list)
    skipped: List[Path] = field(default_factory=list)
    answers: Dict[str, object] = field(default_factory=dict)
    schema_removed: bool = False


def prepare_target(target_dir, require_new):
    """
    Make sure ``target_dir`` can receive the clone.

    Args:
        require_new: The directory must not exist yet (the ``new`` flow).
            Otherwise an existing directory is accepted and git decides
            whether it can clone into it.

    Returns:
        bool: True if the directory was created here.

    Raises:
        DirectoryExists: ``require_new`` and the directory already exists.
        DirectoryCreateFailed: the directory could not be created.
    """
    target_dir = Path(target_dir)
    if target_dir.exists():
        if require_new:
            raise DirectoryExists(target_dir)
        return False
    try:
        target_dir.mkdir(parents=True)
    except OSError as e:
        raise DirectoryCreateFailed(target_dir, e.strerror or str(e)) from e
    return True


def remove_target(target_dir):
    """Remove a target directory left behind by a failed clone."""
    try:
        shutil.rmtree(target_dir)
    except OSError as e:
        logger.warning(f"Could not remove {target_dir}: {e}")


def iter_template_files(root):
    """All non-directory entries under ``root``, sorted by relative path."""
    root = Path(root)
    files = [p for p in root.rglob("*") if not p.is_dir()]
    return sorted(files, key=lambda p: p.relative_to(root).as_posix())


class ScaffoldPipeline:
    """
    Clone a template and render it into a project.

    Args:
        registry: Service registry used to resolve references.
        prompter: Object with ``ask(spec)`` and ``ask_error_action(path, error)``.
        cloner: Object with ``clone(url, target_dir)``.
        engine: TemplateEngine used to render each file.
        year: Value of the ``year`` binding; defaults to the current year.
    """

    def __init__(self, registry, prompter, cloner, engine=None, year=None):
        self.registry = registry
        self.prompter = prompter
        self.cloner = cloner
        self.engine = engine or TemplateEngine()
        self.year = year
        self.state = None

    def run(self, reference, target_dir, project, require_new=False):
        """
        Scaffold ``reference`` into ``target_dir``.

        Returns:
            ScaffoldResult

        Raises:
            CommandError: any hard failure; ``state`` is left at FAILED.
        """
        target_dir = Path(target_dir)
        try:
            self.state = ScaffoldState.RESOLVING
            url = resolve(reference, self.registry)
            logger.debug(f"resolved {reference} -> {url}")
            result = ScaffoldResult(url=url, target_dir=target_dir)

            self.state = ScaffoldState.CLONING
            created = prepare_target(target_dir, require_new)
            try:
                self.cloner.clone(url, target_dir)
            except BaseException:
                if created:
                    remove_target(target_dir)
                raise

            self.state = ScaffoldState.SCHEMA_CHECK
            schema = read_schema(target_dir)

            self.state = ScaffoldState.PROMPTING
            questions = schema.questions if schema is not None else []
            result.answers = self.ask_questions(questions)

            self.state = ScaffoldState.WALKING
            values = build_environment(
                project.name,
                project.author,
                year=self.year,
                answers=result.answers,
                namespace=schema.namespace if schema is not None else DEFAULT_NAMESPACE,
            )
            skip_paths = {target_dir / SCHEMA_FILENAME} if schema is not None else set()
            self.walk(target_dir, values, ErrorPolicy(), result, skip_paths)

            self.state = ScaffoldState.CLEANUP
            if schema is not None:
                result.schema_removed = self.remove_schema(target_dir)

            self.state = ScaffoldState.DONE
            logger.info(f"Created project {project.name} in {target_dir}")
            return result
        except BaseException:
            self.state = ScaffoldState.FAILED
            raise

    def ask_questions(self, questions):
        answers = {}
        for spec in questions:
            answers[spec.key] = self.prompter.ask(spec)
            logger.debug(f"answer {spec.key} = {answers[spec.key]!r}")
        return answers

    def walk(self, root, values, policy, result, skip_paths=()):
        for path in iter_template_files(root):
            if path in skip_paths:
                continue
            if self.render_file(path, root, values, policy):
                result.rendered.append(path)
            else:
                result.skipped.append(path)

    def render_file(self, path, root, values, policy):
        """
        Render one file in place.

        Returns:
            bool: False if the file was skipped after a read error.
        """
        relative = path.relative_to(root).as_posix()
        try:
            content = self.read_file(path, relative)
        except ReadFileFailed as e:
            if not self.handle_read_error(e, relative, policy):
                raise
            return False

        logger.debug(f"rendering {relative}")
        try:
            rendered = self.engine.render(content, values)
        except FormatError as e:
            raise FormatError(str(e), path=relative) from e

        try:
            with open(path, "w", encoding="utf-8", newline="") as f:
                f.write(rendered)
        except OSError as e:
            raise WriteFileFailed(relative, e.strerror or str(e)) from e
        return True

    @staticmethod
    def read_file(path, relative):
        try:
            return path.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            reason = getattr(e, "strerror", None) or str(e)
            raise ReadFileFailed(relative, reason) from e

    def handle_read_error(self, error, relative, policy):
        """
        Apply the read-error policy.

        Returns:
            bool: True to skip the file, False to abort the run.
        """
        if policy.skip_all_enabled:
            logger.debug(f"skipping {relative}: {error}")
            return True

        action = self.prompter.ask_error_action(relative, error)
        if action is ErrorAction.SKIP_ALL:
            policy.skip_all_enabled = True
        if action in (ErrorAction.SKIP, ErrorAction.SKIP_ALL):
            logger.warning(f"Skipped {relative}")
            return True
        return False

    @staticmethod
    def remove_schema(target_dir):
        path = Path(target_dir) / SCHEMA_FILENAME
        try:
            path.unlink()
        except OSError as e:
            logger.warning(f"Could not remove {SCHEMA_FILENAME} from the project: {e}")
            return False
        return True
