"""
tests/test_loader.py

Unit tests for JsonObjectLoader — adapter routing and the guarantee that a
failed injection never writes a partial fragment.

Run with:
    python -m pytest tests/test_loader.py -v
"""

import io
import os
import sqlite3
import sys
import unittest
from unittest.mock import MagicMock

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from injection_errors import ConfigurationError, ExecutionError, QueryExecutionError
from script_emitter import ScriptEmitter
from source_adapters import (
    InjectionRequest,
    JsonObjectLoader,
    SourceAdapter,
    SourceKind,
    SqliteQueryExecutor,
    StaticJsonAdapter,
)


def _mock_adapter(kind: SourceKind, payload: str = "{}") -> MagicMock:
    adapter = MagicMock(spec=SourceAdapter)
    adapter.kind = kind
    adapter.name = f"Mock{kind.name}"
    adapter.produce.return_value = payload
    return adapter


class TestJsonObjectLoaderRouting(unittest.TestCase):

    def setUp(self):
        self.connection = sqlite3.connect(":memory:")
        self.loader = JsonObjectLoader(executor=SqliteQueryExecutor(self.connection))

    def tearDown(self):
        self.connection.close()

    def test_routes_every_source(self):
        cases = [
            (dict(source=SourceKind.RAW_QUERY, query="select 1 as n"), '[{"n":1}]'),
            (dict(source=SourceKind.JSON_QUERY, json_query="select '{\"n\":1}'"), '{"n":1}'),
            (
                dict(
                    source=SourceKind.PROCEDURAL_JSON,
                    procedural_block="json.open_object()\njson.write('n', 1)\njson.close_object()",
                ),
                '{"n":1}',
            ),
            (dict(source=SourceKind.STATIC_JSON, static_text='{"n":1}'), '{"n":1}'),
        ]
        for fields, expected in cases:
            with self.subTest(source=fields["source"]):
                request = InjectionRequest(target_path="myApp.data", **fields)
                self.assertEqual(self.loader.load(request), expected)

    def test_render_wraps_payload(self):
        request = InjectionRequest(
            source=SourceKind.STATIC_JSON, target_path="myApp.data", static_text='{"a":1}',
        )
        self.assertEqual(
            self.loader.render(request),
            ScriptEmitter().render("myApp.data", '{"a":1}'),
        )

    def test_inject_appends_to_stream(self):
        stream = io.StringIO()
        stream.write("<body>\n")
        request = InjectionRequest(
            source=SourceKind.STATIC_JSON, target_path="cfg", static_text='{"a":1}',
        )
        self.loader.inject(request, stream)
        self.loader.inject(request, stream)
        self.assertTrue(stream.getvalue().startswith("<body>\n<script>"))
        self.assertEqual(stream.getvalue().count("<script>"), 2)


class TestJsonObjectLoaderFailures(unittest.TestCase):

    def test_query_source_without_executor(self):
        loader = JsonObjectLoader()
        request = InjectionRequest(source=SourceKind.RAW_QUERY, target_path="a", query="select 1")
        with self.assertRaises(ConfigurationError):
            loader.load(request)

    def test_static_source_without_executor(self):
        loader = JsonObjectLoader()
        request = InjectionRequest(source=SourceKind.STATIC_JSON, target_path="a", static_text="{}")
        self.assertIn("Object.assign(window[\"a\"],{});", loader.render(request))

    def test_invalid_request_never_reaches_the_adapter(self):
        adapter = _mock_adapter(SourceKind.STATIC_JSON)
        loader = JsonObjectLoader(adapters=[adapter])
        request = InjectionRequest(source=SourceKind.STATIC_JSON, target_path="", static_text="{}")
        with self.assertRaises(ConfigurationError):
            loader.load(request)
        adapter.produce.assert_not_called()

    def test_adapter_failure_writes_nothing(self):
        for error in (QueryExecutionError("boom"), ExecutionError("boom")):
            with self.subTest(error=type(error).__name__):
                adapter = _mock_adapter(SourceKind.STATIC_JSON)
                adapter.produce.side_effect = error
                loader = JsonObjectLoader(adapters=[adapter])
                stream = io.StringIO()
                request = InjectionRequest(
                    source=SourceKind.STATIC_JSON, target_path="a", static_text="{}",
                )
                with self.assertRaises(type(error)):
                    loader.inject(request, stream)
                self.assertEqual(stream.getvalue(), "")

    def test_query_error_writes_nothing(self):
        connection = sqlite3.connect(":memory:")
        self.addCleanup(connection.close)
        loader = JsonObjectLoader(executor=SqliteQueryExecutor(connection))
        stream = io.StringIO()
        request = InjectionRequest(
            source=SourceKind.RAW_QUERY, target_path="a", query="select * from missing",
        )
        with self.assertRaises(QueryExecutionError):
            loader.inject(request, stream)
        self.assertEqual(stream.getvalue(), "")

    def test_custom_adapter_replaces_stock_one(self):
        adapter = _mock_adapter(SourceKind.STATIC_JSON, '{"custom":true}')
        loader = JsonObjectLoader(adapters=[StaticJsonAdapter(), adapter])
        self.assertIs(loader.adapter_for(SourceKind.STATIC_JSON), adapter)
        request = InjectionRequest(source=SourceKind.STATIC_JSON, target_path="a", static_text="{}")
        self.assertEqual(loader.load(request), '{"custom":true}')

    def test_custom_emitter(self):
        loader = JsonObjectLoader(emitter=ScriptEmitter(root="globalThis"))
        request = InjectionRequest(source=SourceKind.STATIC_JSON, target_path="a", static_text="{}")
        self.assertIn('Object.assign(globalThis["a"],{});', loader.render(request))


if __name__ == "__main__":
    unittest.main()
