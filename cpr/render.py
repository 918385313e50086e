"""
Template rendering for scaffolded files.

Files are rendered with Jinja2. Placeholders look like
``{{ project.name | snake }}``; the case filters only accept strings.
"""
import re
from datetime import datetime

from jinja2 import Environment, StrictUndefined, TemplateError as JinjaTemplateError, Undefined

from .exit_codes import FormatError

_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z0-9]+|[A-Z]+[0-9]*")


def split_words(value):
    """Split on separators and case boundaries: ``"myHTTPServer_v2"`` -> my, HTTP, Server, v2."""
    return _WORD_RE.findall(value)


def lower(value):
    return " ".join(w.lower() for w in split_words(value))


def upper(value):
    return " ".join(w.upper() for w in split_words(value))


def snake(value):
    return "_".join(w.lower() for w in split_words(value))


def kebab(value):
    return "-".join(w.lower() for w in split_words(value))


def pascal(value):
    return "".join(w.capitalize() for w in split_words(value))


def camel(value):
    words = split_words(value)
    if not words:
        return ""
    return words[0].lower() + "".join(w.capitalize() for w in words[1:])


def title(value):
    return " ".join(w.capitalize() for w in split_words(value))


CASE_CONVERSIONS = {
    "lower": lower,
    "upper": upper,
    "snake": snake,
    "kebab": kebab,
    "pascal": pascal,
    "camel": camel,
    "title": title,
}


def _string_filter(name, convert):
    def apply(value):
        if value is None or isinstance(value, Undefined):
            raise FormatError(f"unable to format None with `{name}`")
        if not isinstance(value, str):
            raise FormatError(f"`{name}` expected to format a string, got {type(value).__name__}")
        return convert(value)

    apply.__name__ = name
    return apply


def build_environment(project_name, author, year=None, answers=None, namespace="answers"):
    """
    Assemble the values available to templates.

    Built-ins are ``project.name``, ``author`` and ``year``; schema answers
    live under ``namespace`` so they never shadow a built-in.
    """
    env = {
        "project": {"name": project_name},
        "author": author,
        "year": year if year is not None else datetime.now().year,
    }
    env[namespace] = dict(answers or {})
    return env


class TemplateEngine:
    """Jinja2 environment with the case filters installed."""

    def __init__(self):
        self.env = Environment(
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            autoescape=False,
        )
        for name, convert in CASE_CONVERSIONS.items():
            self.env.filters[name] = _string_filter(name, convert)

    def render(self, template, values):
        """
        Render ``template`` against ``values``.

        A template with CRLF line endings is rendered with CRLF endings.

        Raises:
            FormatError: a filter got a non-string value, a variable is
                undefined, or the template is malformed.
        """
        env = self.env
        if "\r\n" in template:
            env = env.overlay(newline_sequence="\r\n")
        try:
            return env.from_string(template).render(**values)
        except FormatError:
            raise
        except JinjaTemplateError as e:
            raise FormatError(str(e)) from e
