"""
Unit tests for cpr.scaffold module
"""
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from cpr.exit_codes import (
    ConfigParseFailed,
    DirectoryExists,
    FormatError,
    ReadFileFailed,
    RepositoryNotFound,
    ServiceNotFound,
    WriteFileFailed,
)
from cpr.prompts import ErrorAction, ScriptedPrompter
from cpr.scaffold import (
    ErrorPolicy,
    ProjectInfo,
    ScaffoldPipeline,
    ScaffoldState,
    iter_template_files,
    prepare_target,
)
from cpr.services import Registry, ServiceEntry

INVALID_UTF8 = b"\xff\xfe\x00binary"

SCHEMA = """
[[questions]]
key = "license"
message = "License?"
type = "select"
choices = ["MIT", "---", "GPL-3.0"]

[[questions]]
key = "tests"
message = "Add tests?"
type = "confirm"
"""


class FakeCloner:
    """Writes a fixed template tree instead of cloning."""

    def __init__(self, files=None, error=None):
        self.files = files or {}
        self.error = error
        self.urls = []

    def clone(self, url, target_dir):
        self.urls.append(url)
        if self.error:
            raise self.error
        for name, content in self.files.items():
            path = Path(target_dir) / name
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, str):
                content = content.encode("utf-8")
            path.write_bytes(content)


class TestScaffoldPipeline(unittest.TestCase):
    """Test the scaffold pipeline end to end with a fake cloner"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.target = Path(self.temp_dir) / "demo"
        self.registry = Registry(
            entries={"gh": ServiceEntry("gh", "https://github.com/{{ repo }}.git")},
            default_prefix="gh",
        )
        self.project = ProjectInfo(name="my-demo", author="Jane Doe")

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def run_pipeline(self, files, prompter=None, cloner=None, reference="gh:org/template", **kwargs):
        self.cloner = cloner or FakeCloner(files)
        self.prompter = prompter or ScriptedPrompter()
        self.pipeline = ScaffoldPipeline(self.registry, self.prompter, self.cloner, year=2024)
        return self.pipeline.run(reference, self.target, self.project, **kwargs)

    def test_renders_builtins(self):
        """Test project name, author and year are substituted"""
        result = self.run_pipeline({
            "README.md": "# {{ project.name | title }}\nby {{ author }} ({{ year }})\n",
            "src/{{ name }}.txt": "plain\n",
        })

        self.assertEqual((self.target / "README.md").read_text(), "# My Demo\nby Jane Doe (2024)\n")
        self.assertEqual(self.cloner.urls, ["https://github.com/org/template.git"])
        self.assertEqual(result.url, "https://github.com/org/template.git")
        self.assertEqual(len(result.rendered), 2)
        self.assertEqual(self.pipeline.state, ScaffoldState.DONE)

    def test_schema_answers_and_cleanup(self):
        """Test schema questions are asked and cpr.toml removed"""
        prompter = ScriptedPrompter(answers={"license": "GPL-3.0", "tests": True})
        result = self.run_pipeline({
            "cpr.toml": SCHEMA,
            "LICENSE": "{{ answers.license }} {{ year }} {{ author }}\n",
        }, prompter=prompter)

        self.assertEqual(prompter.asked, ["license", "tests"])
        self.assertEqual(result.answers, {"license": "GPL-3.0", "tests": True})
        self.assertEqual((self.target / "LICENSE").read_text(), "GPL-3.0 2024 Jane Doe\n")
        self.assertFalse((self.target / "cpr.toml").exists())
        self.assertTrue(result.schema_removed)
        self.assertNotIn(self.target / "cpr.toml", result.rendered)

    def test_custom_namespace(self):
        """Test answers nested under a template-defined namespace"""
        prompter = ScriptedPrompter(answers={"tests": False})
        self.run_pipeline({
            "cpr.toml": 'namespace = "tpl"\n' + SCHEMA,
            "out.txt": "{{ tpl.license }} {{ tpl.tests }}",
        }, prompter=prompter)
        self.assertEqual((self.target / "out.txt").read_text(), "MIT False")

    def test_skip_all_read_errors(self):
        """Test 'skip all' leaves broken files alone and renders the rest"""
        prompter = ScriptedPrompter(error_actions=[ErrorAction.SKIP_ALL])
        result = self.run_pipeline({
            "a.txt": INVALID_UTF8,
            "b.txt": "{{ project.name | upper }}",
            "c.txt": INVALID_UTF8,
        }, prompter=prompter)

        self.assertEqual((self.target / "a.txt").read_bytes(), INVALID_UTF8)
        self.assertEqual((self.target / "b.txt").read_text(), "MY DEMO")
        self.assertEqual((self.target / "c.txt").read_bytes(), INVALID_UTF8)
        self.assertEqual(prompter.errors, ["a.txt"])
        self.assertEqual(result.skipped, [self.target / "a.txt", self.target / "c.txt"])
        self.assertEqual(self.pipeline.state, ScaffoldState.DONE)

    def test_skip_single_read_error_asks_again(self):
        """Test 'skip' only applies to the current file"""
        prompter = ScriptedPrompter(error_actions=[ErrorAction.SKIP, ErrorAction.SKIP])
        self.run_pipeline({"a.bin": INVALID_UTF8, "b.bin": INVALID_UTF8}, prompter=prompter)
        self.assertEqual(prompter.errors, ["a.bin", "b.bin"])

    def test_abort_on_read_error(self):
        """Test 'abort' propagates the read failure"""
        prompter = ScriptedPrompter(on_error=ErrorAction.ABORT)
        with self.assertRaises(ReadFileFailed) as ctx:
            self.run_pipeline({"a.txt": INVALID_UTF8, "b.txt": "{{ author }}"}, prompter=prompter)

        self.assertIn("a.txt", str(ctx.exception))
        self.assertIsInstance(ctx.exception.__cause__, UnicodeDecodeError)
        self.assertEqual((self.target / "b.txt").read_text(), "{{ author }}")
        self.assertEqual(self.pipeline.state, ScaffoldState.FAILED)

    def test_format_error_names_file(self):
        """Test filter errors are fatal and name the failing file"""
        with self.assertRaises(FormatError) as ctx:
            self.run_pipeline({"a.txt": "{{ author }}", "b.txt": "{{ year | upper }}"})

        self.assertIn("b.txt", str(ctx.exception))
        # no rollback of files already written
        self.assertEqual((self.target / "a.txt").read_text(), "Jane Doe")
        self.assertEqual(self.pipeline.state, ScaffoldState.FAILED)

    def test_write_failure_is_fatal(self):
        """Test a write failure stops the run"""
        with patch("cpr.scaffold.open", side_effect=OSError(13, "Permission denied"), create=True):
            with self.assertRaises(WriteFileFailed) as ctx:
                self.run_pipeline({"a.txt": "{{ author }}"})
        self.assertIn("a.txt", str(ctx.exception))

    def test_line_endings_preserved(self):
        """Test CRLF files keep their line endings after rendering"""
        self.run_pipeline({
            "run.bat": b"@echo off\r\necho {{ project.name }}\r\n",
            "plain.bat": b"@echo off\r\nexit /b 0\r\n",
            "unix.sh": b"#!/bin/sh\necho {{ author }}\n",
        })

        self.assertEqual((self.target / "run.bat").read_bytes(), b"@echo off\r\necho my-demo\r\n")
        self.assertEqual((self.target / "plain.bat").read_bytes(), b"@echo off\r\nexit /b 0\r\n")
        self.assertEqual((self.target / "unix.sh").read_bytes(), b"#!/bin/sh\necho Jane Doe\n")

    def test_malformed_schema_is_fatal(self):
        """Test a broken cpr.toml stops the run before prompting"""
        prompter = ScriptedPrompter()
        with self.assertRaises(ConfigParseFailed):
            self.run_pipeline({"cpr.toml": "[[questions]\n", "a.txt": "x"}, prompter=prompter)
        self.assertEqual(prompter.asked, [])

    def test_schema_removal_failure_is_not_fatal(self):
        """Test failing to delete cpr.toml only warns"""
        with patch.object(Path, "unlink", side_effect=OSError("busy")):
            with self.assertLogs("cpr", level="WARNING"):
                result = self.run_pipeline({"cpr.toml": SCHEMA, "a.txt": "x"})
        self.assertFalse(result.schema_removed)
        self.assertEqual(self.pipeline.state, ScaffoldState.DONE)

    def test_unknown_prefix_falls_back(self):
        """Test an unknown prefix clones from the default service"""
        self.run_pipeline({"a.txt": "x"}, reference="zz:org/template")
        self.assertEqual(self.cloner.urls, ["https://github.com/org/template.git"])

    def test_unresolvable_reference(self):
        """Test resolution failure happens before cloning"""
        self.registry.default_prefix = "missing"
        cloner = FakeCloner()
        with self.assertRaises(ServiceNotFound):
            self.run_pipeline({}, cloner=cloner, reference="zz:org/template")
        self.assertEqual(cloner.urls, [])
        self.assertEqual(self.pipeline.state, ScaffoldState.FAILED)

    def test_clone_error_propagates(self):
        """Test transport errors end the run"""
        cloner = FakeCloner(error=RepositoryNotFound("https://github.com/org/template.git"))
        with self.assertRaises(RepositoryNotFound):
            self.run_pipeline({}, cloner=cloner)

    def test_clone_error_removes_created_directory(self):
        """Test a failed clone does not leave a new directory behind"""
        cloner = FakeCloner(error=RepositoryNotFound("https://github.com/org/template.git"))
        with self.assertRaises(RepositoryNotFound):
            self.run_pipeline({}, cloner=cloner, require_new=True)
        self.assertFalse(self.target.exists())

        self.run_pipeline({"a.txt": "{{ author }}"}, require_new=True)
        self.assertEqual((self.target / "a.txt").read_text(), "Jane Doe")

    def test_clone_error_keeps_existing_directory(self):
        """Test a failed clone leaves a directory the user already had"""
        self.target.mkdir()
        (self.target / "notes.txt").write_text("keep")
        cloner = FakeCloner(error=RepositoryNotFound("https://github.com/org/template.git"))
        with self.assertRaises(RepositoryNotFound):
            self.run_pipeline({}, cloner=cloner)
        self.assertEqual((self.target / "notes.txt").read_text(), "keep")

    def test_new_project_requires_fresh_directory(self):
        """Test the new-project flow refuses an existing directory"""
        self.target.mkdir()
        cloner = FakeCloner({"a.txt": "x"})
        with self.assertRaises(DirectoryExists):
            self.run_pipeline({}, cloner=cloner, require_new=True)
        self.assertEqual(cloner.urls, [])

    def test_output_is_reproducible(self):
        """Test two runs over the same template give identical files"""
        files = {"b.txt": "{{ project.name | pascal }}", "a/z.txt": "{{ year }}", "a.txt": "{{ author | kebab }}"}
        self.run_pipeline(files)
        first = {p.name: p.read_bytes() for p in iter_template_files(self.target)}

        shutil.rmtree(self.target)
        self.run_pipeline(files)
        second = {p.name: p.read_bytes() for p in iter_template_files(self.target)}
        self.assertEqual(first, second)


class TestWalkHelpers(unittest.TestCase):
    """Test directory preparation and file ordering"""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_files_sorted_by_relative_path(self):
        for name in ["b/z.txt", "b.txt", "a.txt", "c/d/e.txt"]:
            path = self.temp_dir / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("x")

        files = [p.relative_to(self.temp_dir).as_posix() for p in iter_template_files(self.temp_dir)]
        self.assertEqual(files, ["a.txt", "b.txt", "b/z.txt", "c/d/e.txt"])

    def test_prepare_target_creates_directory(self):
        target = self.temp_dir / "x" / "y"
        self.assertTrue(prepare_target(target, require_new=True))
        self.assertTrue(target.is_dir())

    def test_prepare_target_allows_existing_for_init(self):
        self.assertFalse(prepare_target(self.temp_dir, require_new=False))

    def test_error_policy_defaults_off(self):
        self.assertFalse(ErrorPolicy().skip_all_enabled)


if __name__ == '__main__':
    unittest.main()
