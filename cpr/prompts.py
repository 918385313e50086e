"""
Prompting collaborators.

The scaffold pipeline only talks to a prompter through ``ask`` and
``ask_error_action``. ``ClickPrompter`` asks on the terminal,
``ScriptedPrompter`` answers from a prepared mapping.
"""
from enum import Enum
from pathlib import Path

import click
import toml

from .config import logger
from .exit_codes import ConfigReadFailed, ConfigParseFailed
from .schema import QuestionKind, SEPARATOR


class ErrorAction(Enum):
    SKIP = "skip"
    SKIP_ALL = "skip-all"
    ABORT = "abort"


ERROR_ACTION_LABELS = {
    ErrorAction.SKIP: "Skip this file",
    ErrorAction.SKIP_ALL: "Skip all files that fail to read",
    ErrorAction.ABORT: "Abort",
}


def fallback_answer(spec):
    """Answer used when nothing better is known: the default, or a neutral value."""
    if spec.default is not None:
        return spec.default
    if spec.kind is QuestionKind.CONFIRM:
        return False
    if spec.kind is QuestionKind.INPUT:
        return ""
    if spec.kind is QuestionKind.INT:
        return 0
    if spec.kind is QuestionKind.FLOAT:
        return 0.0
    if spec.kind is QuestionKind.SELECT:
        return spec.options[0]
    if spec.kind is QuestionKind.MULTI_SELECT:
        return []
    return list(spec.options)


def answer_fits(spec, value):
    """Whether a prepared answer is valid for the question it answers."""
    kind = spec.kind
    if kind is QuestionKind.CONFIRM:
        return isinstance(value, bool)
    if kind is QuestionKind.INPUT:
        return isinstance(value, str)
    if kind is QuestionKind.INT:
        return isinstance(value, int) and not isinstance(value, bool)
    if kind is QuestionKind.FLOAT:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if kind is QuestionKind.SELECT:
        return isinstance(value, str) and value in spec.options
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        return False
    if kind is QuestionKind.MULTI_SELECT:
        return len(set(value)) == len(value) and set(value) <= set(spec.options)
    return sorted(value) == sorted(spec.options)


def _parse_indices(text, count):
    """Parse ``"1, 3"`` into zero-based indices, validating the range."""
    indices = []
    for part in text.replace(" ", "").split(","):
        if not part:
            continue
        if not part.isdigit() or not 1 <= int(part) <= count:
            raise click.BadParameter(f"'{part}' is not a number between 1 and {count}")
        indices.append(int(part) - 1)
    return indices


class ClickPrompter:
    """Interactive prompter on top of click."""

    def ask(self, spec):
        kind = spec.kind
        if kind is QuestionKind.CONFIRM:
            return click.confirm(spec.message, default=bool(spec.default))
        if kind is QuestionKind.INPUT:
            return click.prompt(spec.message, type=str, default=spec.default)
        if kind is QuestionKind.INT:
            return click.prompt(spec.message, type=int, default=spec.default)
        if kind is QuestionKind.FLOAT:
            return click.prompt(spec.message, type=float, default=spec.default)
        if kind is QuestionKind.SELECT:
            return self._select(spec)
        if kind is QuestionKind.MULTI_SELECT:
            return self._multi_select(spec)
        return self._order_select(spec)

    def ask_error_action(self, path, error):
        click.echo(f"Could not read {path}: {error}", err=True)
        for action, label in ERROR_ACTION_LABELS.items():
            click.echo(f"  {action.value:<9} {label}", err=True)
        value = click.prompt(
            "What should happen",
            type=click.Choice([a.value for a in ErrorAction]),
            default=ErrorAction.SKIP.value,
            err=True,
        )
        return ErrorAction(value)

    def _show_choices(self, spec):
        click.echo(spec.message)
        number = 0
        for choice in spec.choices:
            if choice == SEPARATOR:
                click.echo("   " + "-" * 10)
                continue
            number += 1
            click.echo(f"  {number}) {choice}")

    def _select(self, spec):
        options = spec.options
        self._show_choices(spec)
        number = click.prompt("Select one", type=click.IntRange(1, len(options)), default=1)
        return options[number - 1]

    def _multi_select(self, spec):
        options = spec.options
        self._show_choices(spec)
        while True:
            text = click.prompt("Select any (comma separated, empty for none)", default="", show_default=False)
            try:
                picked = set(_parse_indices(text, len(options)))
            except click.BadParameter as e:
                click.echo(f"Error: {e.message}", err=True)
                continue
            return [option for i, option in enumerate(options) if i in picked]

    def _order_select(self, spec):
        options = spec.options
        self._show_choices(spec)
        default = ",".join(str(i) for i in range(1, len(options) + 1))
        while True:
            text = click.prompt("Order (comma separated)", default=default)
            try:
                order = _parse_indices(text, len(options))
            except click.BadParameter as e:
                click.echo(f"Error: {e.message}", err=True)
                continue
            if sorted(order) != list(range(len(options))):
                click.echo(f"Error: list every number from 1 to {len(options)} exactly once", err=True)
                continue
            return [options[i] for i in order]


class ScriptedPrompter:
    """
    Non-interactive prompter.

    Args:
        answers: Mapping of question key to answer. Missing keys, and
            answers that do not fit their question, fall back to the
            question default.
        error_actions: Actions returned in order for successive read errors;
            once exhausted, ``on_error`` is used.
        on_error: Action used when no scripted action is left.
    """

    def __init__(self, answers=None, error_actions=None, on_error=ErrorAction.ABORT):
        self.answers = dict(answers or {})
        self.error_actions = list(error_actions or [])
        self.on_error = on_error
        self.asked = []
        self.errors = []

    def ask(self, spec):
        self.asked.append(spec.key)
        if spec.key not in self.answers:
            return fallback_answer(spec)
        value = self.answers[spec.key]
        if not answer_fits(spec, value):
            logger.warning(f"Ignoring answer {value!r} for `{spec.key}`: not a valid {spec.kind.value} answer")
            return fallback_answer(spec)
        if spec.kind is QuestionKind.FLOAT:
            return float(value)
        return value

    def ask_error_action(self, path, error):
        self.errors.append(path)
        if self.error_actions:
            return self.error_actions.pop(0)
        return self.on_error

    @classmethod
    def from_file(cls, path):
        """
        Build a prompter from a TOML answers file.

        Top-level keys are answers; an optional ``on_error`` picks the read
        error action (``skip``, ``skip-all`` or ``abort``).
        """
        path = Path(path)
        try:
            data = toml.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigReadFailed(path, e.strerror or str(e)) from e
        except toml.TomlDecodeError as e:
            raise ConfigParseFailed(path, str(e)) from e

        on_error = data.pop("on_error", ErrorAction.ABORT.value)
        try:
            action = ErrorAction(on_error)
        except ValueError as e:
            raise ConfigParseFailed(path, f"invalid on_error value: {on_error!r}") from e
        logger.debug(f"loaded {len(data)} scripted answer(s) from {path}")
        return cls(answers=data, on_error=action)
