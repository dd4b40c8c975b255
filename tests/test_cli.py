"""
tests/test_cli.py

Tests for the load_json_object command-line entry point.

Run with:
    python -m pytest tests/test_cli.py -v
"""

import contextlib
import io
import os
import sqlite3
import sys
import tempfile
import unittest
from unittest.mock import patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import load_json_object
from injection_errors import ConfigurationError


def _run(argv):
    """Run main() and return (exit_code, stdout, stderr)."""
    stdout, stderr = io.StringIO(), io.StringIO()
    with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
        code = load_json_object.main(argv)
    return code, stdout.getvalue(), stderr.getvalue()


class TestArgumentParsing(unittest.TestCase):

    def test_parse_binds(self):
        self.assertEqual(
            load_json_object.parse_binds(["P1_ID=10", "P1_NAME=a=b"]),
            {"P1_ID": "10", "P1_NAME": "a=b"},
        )

    def test_parse_binds_rejects_missing_equals(self):
        with self.assertRaises(ConfigurationError):
            load_json_object.parse_binds(["P1_ID"])

    def test_environment_defaults(self):
        with patch.dict(os.environ, {"LJO_CHUNK_SIZE": "7", "LJO_DATABASE": "x.db"}):
            args = load_json_object.build_arg_parser().parse_args(
                ["--source", "static", "--variable", "a", "--static-json", "{}"]
            )
        self.assertEqual(args.chunk_size, 7)
        self.assertEqual(args.database, "x.db")

    def test_bad_chunk_size_environment_is_usage_error(self):
        for value in ("abc", "0", "-5"):
            with self.subTest(value=value):
                stderr = io.StringIO()
                with patch.dict(os.environ, {"LJO_CHUNK_SIZE": value}):
                    with contextlib.redirect_stderr(stderr):
                        with self.assertRaises(SystemExit) as ctx:
                            load_json_object.main(
                                ["--source", "static", "--variable", "a", "--static-json", "{}"]
                            )
                self.assertEqual(ctx.exception.code, 2)
                self.assertIn("--chunk-size", stderr.getvalue())

    def test_bad_chunk_size_flag_is_usage_error(self):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                load_json_object.main([
                    "--source", "static", "--variable", "a", "--static-json", "{}",
                    "--chunk-size", "many",
                ])
        self.assertEqual(ctx.exception.code, 2)

    def test_missing_source_is_usage_error(self):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                load_json_object.main(["--variable", "a"])
        self.assertEqual(ctx.exception.code, 2)

    def test_splice_into_html(self):
        self.assertEqual(
            load_json_object.splice_into_html("<head>@@</head>", "<script></script>", "@@"),
            "<head><script></script></head>",
        )
        self.assertIsNone(load_json_object.splice_into_html("<head></head>", "x", "@@"))


class TestMain(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def _path(self, name):
        return os.path.join(self.tmp.name, name)

    def test_static_to_stdout(self):
        code, out, _ = _run([
            "--source", "static", "--variable", "myApp.settings",
            "--static-json", '{"theme":"dark"}',
        ])
        self.assertEqual(code, 0)
        self.assertTrue(out.startswith("<script>"))
        self.assertIn('Object.assign(window["myApp"]["settings"],{"theme":"dark"});', out)

    def test_sql_with_binds(self):
        database = self._path("app.db")
        connection = sqlite3.connect(database)
        connection.executescript(
            "create table emp (ename text, job text);"
            "insert into emp values ('SMITH', 'CLERK');"
            "insert into emp values ('KING', 'PRESIDENT');"
        )
        connection.commit()
        connection.close()

        code, out, _ = _run([
            "--source", "sql", "--variable", "myApp.emp", "--database", database,
            "--query", "select ename from emp where job = :P1_JOB",
            "--bind", "P1_JOB=CLERK",
        ])
        self.assertEqual(code, 0)
        self.assertIn('Object.assign(window["myApp"]["emp"],[{"ename":"SMITH"}]);', out)

    def test_procedural_code_file(self):
        code_file = self._path("block.py")
        with open(code_file, "w", encoding="utf-8") as f:
            f.write("json.open_object()\njson.write('k', 'v')\njson.close_object()\n")

        code, out, _ = _run([
            "--source", "plsql", "--variable", "a", "--code-file", code_file,
        ])
        self.assertEqual(code, 0)
        self.assertIn('Object.assign(window["a"],{"k":"v"});', out)

    def test_html_template_and_output_file(self):
        template = self._path("base_index.html")
        output = self._path("index.html")
        with open(template, "w", encoding="utf-8") as f:
            f.write("<html><head><!-- LOAD_JSON_OBJECT --></head></html>")

        code, out, _ = _run([
            "--source", "static", "--variable", "cfg", "--static-json", "{}",
            "--html", template, "--output", output,
        ])
        self.assertEqual(code, 0)
        self.assertEqual(out, "")
        with open(output, encoding="utf-8") as f:
            html = f.read()
        self.assertTrue(html.startswith("<html><head><script>"))
        self.assertTrue(html.endswith("</script>\n</head></html>"))

    def test_missing_placeholder(self):
        template = self._path("base_index.html")
        with open(template, "w", encoding="utf-8") as f:
            f.write("<html></html>")

        code, out, err = _run([
            "--source", "static", "--variable", "cfg", "--static-json", "{}",
            "--html", template,
        ])
        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertIn("not found", err)

    def test_unwritable_output_exit_code(self):
        output = self._path(os.path.join("missing-dir", "index.html"))
        code, out, err = _run([
            "--source", "static", "--variable", "cfg", "--static-json", "{}",
            "--output", output,
        ])
        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertIn("Cannot write", err)

    def test_contract_violation_exit_code(self):
        code, out, err = _run([
            "--source", "jsonsql", "--variable", "a",
            "--json-query", "select '{}' where 1 = 0",
        ])
        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertIn("ContractViolationError", err)

    def test_bad_variable_exit_code(self):
        code, out, err = _run([
            "--source", "static", "--variable", "a..b", "--static-json", "{}",
        ])
        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertIn("ConfigurationError", err)

    def test_missing_source_field_exit_code(self):
        code, _, err = _run(["--source", "sql", "--variable", "a"])
        self.assertEqual(code, 1)
        self.assertIn("query", err)


if __name__ == "__main__":
    unittest.main()
