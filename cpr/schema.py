"""
Embedded template schema (``cpr.toml``).

A template may ship a ``cpr.toml`` at its root describing extra questions::

    namespace = "answers"

    [[questions]]
    key = "license"
    message = "Which license?"
    type = "select"
    choices = ["MIT", "Apache-2.0", "---", "Unlicense"]

A missing file is fine. A file that cannot be read or parsed means the
template is broken and stops the run. Anything malformed inside a parsed
file only produces warnings: templates are third-party content.
"""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional

import toml

from .config import logger
from .exit_codes import ConfigReadFailed, ConfigParseFailed

SCHEMA_FILENAME = "cpr.toml"
SEPARATOR = "---"
DEFAULT_NAMESPACE = "answers"
RESERVED_NAMES = ("project", "author", "year")


class QuestionKind(Enum):
    CONFIRM = "confirm"
    INPUT = "input"
    INT = "int"
    FLOAT = "float"
    SELECT = "select"
    MULTI_SELECT = "multiselect"
    ORDER_SELECT = "orderselect"

    @classmethod
    def parse(cls, value) -> Optional["QuestionKind"]:
        """Match a ``type`` string; case, ``_`` and ``-`` are ignored."""
        if not isinstance(value, str):
            return None
        normalized = value.lower().replace("_", "").replace("-", "")
        for kind in cls:
            if kind.value == normalized:
                return kind
        return None

    @property
    def is_selection(self):
        return self in (QuestionKind.SELECT, QuestionKind.MULTI_SELECT, QuestionKind.ORDER_SELECT)


_DEFAULT_TYPES = {
    QuestionKind.CONFIRM: (bool,),
    QuestionKind.INPUT: (str,),
    QuestionKind.INT: (int,),
    QuestionKind.FLOAT: (int, float),
}


@dataclass
class QuestionSpec:
    """
    One prompt to show the user.

    ``choices`` keeps separator entries for presentation; ``options`` is the
    list of real, selectable values.
    """

    key: str
    message: str
    kind: QuestionKind
    choices: Optional[List[str]] = None
    default: Any = None

    @property
    def options(self) -> List[str]:
        return [c for c in (self.choices or []) if c != SEPARATOR]


@dataclass
class Schema:
    questions: List[QuestionSpec]
    namespace: str = DEFAULT_NAMESPACE


def load_schema_file(path):
    """
    Parse the schema document at ``path``.

    Raises:
        ConfigReadFailed: the file exists but could not be read.
        ConfigParseFailed: the file is not valid TOML.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigReadFailed(path, str(e)) from e
    try:
        return toml.loads(text)
    except toml.TomlDecodeError as e:
        raise ConfigParseFailed(path, str(e)) from e


def interpret(raw_config) -> List[QuestionSpec]:
    """
    Turn a parsed schema document into question specs, in document order.

    Malformed input never raises: a document without a proper ``questions``
    array yields no questions, and a malformed entry is skipped. Every such
    case is logged as a warning.
    """
    if not isinstance(raw_config, dict) or "questions" not in raw_config:
        logger.warning(f"{SCHEMA_FILENAME} has no `questions` array, no extra questions will be asked")
        return []

    entries = raw_config["questions"]
    if not isinstance(entries, list):
        logger.warning(f"`questions` in {SCHEMA_FILENAME} must be an array of tables, ignoring it")
        return []

    if not all(isinstance(entry, dict) for entry in entries):
        logger.warning(f"every entry of `questions` in {SCHEMA_FILENAME} must be a table, ignoring it")
        return []

    specs = []
    seen = set()
    for index, entry in enumerate(entries):
        spec = _interpret_entry(index, entry)
        if spec is None:
            continue
        if spec.key in seen:
            logger.warning(f"question #{index + 1}: duplicate key `{spec.key}`, skipping")
            continue
        seen.add(spec.key)
        specs.append(spec)
    return specs


def _interpret_entry(index, entry) -> Optional[QuestionSpec]:
    label = f"question #{index + 1}"

    for name in ("key", "message", "type"):
        if not isinstance(entry.get(name), str):
            logger.warning(f"{label}: missing or non-string `{name}`, skipping")
            return None

    key = entry["key"]
    label = f"question `{key}`"

    kind = QuestionKind.parse(entry["type"])
    if kind is None:
        logger.warning(f"{label}: unknown type `{entry['type']}`, skipping")
        return None

    choices = None
    if kind.is_selection:
        choices = entry.get("choices")
        if not isinstance(choices, list) or not all(isinstance(c, str) for c in choices):
            logger.warning(f"{label}: `{kind.value}` needs a `choices` array of strings, skipping")
            return None
        if not any(c != SEPARATOR for c in choices):
            logger.warning(f"{label}: `choices` has no selectable values, skipping")
            return None
        if kind is QuestionKind.ORDER_SELECT:
            # separators have no place in an ordering
            choices = [c for c in choices if c != SEPARATOR]

    default = entry.get("default")
    if default is not None:
        allowed = _DEFAULT_TYPES.get(kind)
        # bool is an int subclass
        bad_bool = isinstance(default, bool) and kind is not QuestionKind.CONFIRM
        if allowed is None or not isinstance(default, allowed) or bad_bool:
            logger.warning(f"{label}: ignoring `default` of the wrong type for `{kind.value}`")
            default = None

    return QuestionSpec(key=key, message=entry["message"], kind=kind, choices=choices, default=default)


def interpret_namespace(raw_config) -> str:
    """Namespace the answers are nested under in the template environment."""
    if not isinstance(raw_config, dict) or "namespace" not in raw_config:
        return DEFAULT_NAMESPACE
    namespace = raw_config["namespace"]
    if not isinstance(namespace, str) or not namespace.isidentifier():
        logger.warning(f"`namespace` in {SCHEMA_FILENAME} must be an identifier, using `{DEFAULT_NAMESPACE}`")
        return DEFAULT_NAMESPACE
    if namespace in RESERVED_NAMES:
        logger.warning(f"`namespace` `{namespace}` collides with a built-in value, using `{DEFAULT_NAMESPACE}`")
        return DEFAULT_NAMESPACE
    return namespace


def read_schema(template_dir) -> Optional[Schema]:
    """
    Load and interpret ``cpr.toml`` from ``template_dir``.

    Returns:
        Schema or None when the template has no schema file.
    """
    path = Path(template_dir) / SCHEMA_FILENAME
    if not path.is_file():
        logger.debug(f"no {SCHEMA_FILENAME} in template")
        return None
    raw = load_schema_file(path)
    return Schema(questions=interpret(raw), namespace=interpret_namespace(raw))
