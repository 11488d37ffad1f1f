"""Tests for the stdin/stdout entrypoint."""

import io
import json
from unittest.mock import patch

import pytest

from cmd_ai import main as main_mod
from cmd_ai.context import ContextCollector
from cmd_ai.history import HISTORY_KEY, HistoryStore, MemoryStorage
from cmd_ai.llm.generator import CommandGenerator
from cmd_ai.pipeline import Pipeline

from conftest import FakeContextProvider, FakeProvider, text_reply


def _pipeline(provider, entries=None):
    backend = MemoryStorage({HISTORY_KEY: json.dumps(entries)} if entries else None)
    return Pipeline(
        collector=ContextCollector(FakeContextProvider()),
        generator=CommandGenerator(provider, timeout=5),
        history=HistoryStore(backend),
    )


def _run_main(monkeypatch, payload):
    monkeypatch.setattr("sys.stdin", io.StringIO(payload))
    with pytest.raises(SystemExit) as exc:
        main_mod.main()
    return exc.value.code


class TestGenerate:
    def test_prints_command_only(self, monkeypatch, capsys):
        pipeline = _pipeline(FakeProvider(text_reply("du -sh * | sort -h")))
        with patch.object(main_mod, "build_pipeline", return_value=pipeline):
            code = _run_main(monkeypatch, json.dumps({"query": "list files sorted by size"}))

        out = capsys.readouterr()
        assert code == 0
        assert out.out == "du -sh * | sort -h"
        assert "Command pasted" in out.err
        assert pipeline.history.list() == ["list files sorted by size"]

    def test_model_error_to_stderr(self, monkeypatch, capsys):
        pipeline = _pipeline(FakeProvider(error=RuntimeError("invalid api key")))
        with patch.object(main_mod, "build_pipeline", return_value=pipeline):
            code = _run_main(monkeypatch, json.dumps({"query": "ls"}))

        out = capsys.readouterr()
        assert code == 1
        assert out.out == ""
        assert "invalid api key" in out.err

    def test_blank_query(self, monkeypatch, capsys):
        pipeline = _pipeline(FakeProvider(text_reply("ls")))
        with patch.object(main_mod, "build_pipeline", return_value=pipeline):
            code = _run_main(monkeypatch, json.dumps({"query": "  "}))

        assert code == 1
        assert "Please enter a description" in capsys.readouterr().err


class TestHistoryActions:
    def test_history_listing(self, monkeypatch, capsys):
        pipeline = _pipeline(FakeProvider(), entries=["find js files", "kill port", "Find logs"])
        with patch.object(main_mod, "build_pipeline", return_value=pipeline):
            code = _run_main(monkeypatch, json.dumps({"action": "history", "search": "find"}))

        assert code == 0
        assert capsys.readouterr().out == "find js files\nFind logs\n"

    def test_edit_prints_entry(self, monkeypatch, capsys):
        pipeline = _pipeline(FakeProvider(), entries=["a", "b"])
        with patch.object(main_mod, "build_pipeline", return_value=pipeline):
            code = _run_main(monkeypatch, json.dumps({"action": "edit", "index": 1}))

        assert code == 0
        assert capsys.readouterr().out == "b"

    def test_reuse(self, monkeypatch, capsys):
        pipeline = _pipeline(FakeProvider(text_reply("echo b")), entries=["a", "b"])
        with patch.object(main_mod, "build_pipeline", return_value=pipeline):
            code = _run_main(monkeypatch, json.dumps({"action": "reuse", "index": 1}))

        assert code == 0
        assert capsys.readouterr().out == "echo b"
        assert pipeline.history.list() == ["b", "a"]

    def test_reuse_bad_index(self, monkeypatch, capsys):
        pipeline = _pipeline(FakeProvider(text_reply("ls")))
        with patch.object(main_mod, "build_pipeline", return_value=pipeline):
            code = _run_main(monkeypatch, json.dumps({"action": "reuse", "index": 3}))

        assert code == 1
        assert "No history entry" in capsys.readouterr().err

    def test_clear(self, monkeypatch, capsys):
        pipeline = _pipeline(FakeProvider(), entries=["a"])
        with patch.object(main_mod, "build_pipeline", return_value=pipeline):
            code = _run_main(monkeypatch, json.dumps({"action": "clear"}))

        assert code == 0
        assert "History cleared" in capsys.readouterr().err
        assert pipeline.history.list() == []


class TestInput:
    def test_empty_stdin(self, monkeypatch):
        assert _run_main(monkeypatch, "") == 1

    def test_invalid_json(self, monkeypatch, capsys):
        assert _run_main(monkeypatch, "{nope") == 1
        assert "not valid JSON" in capsys.readouterr().err

    def test_unknown_action(self, monkeypatch, capsys):
        pipeline = _pipeline(FakeProvider())
        with patch.object(main_mod, "build_pipeline", return_value=pipeline):
            code = _run_main(monkeypatch, json.dumps({"action": "explode"}))

        assert code == 1
        assert "unknown action" in capsys.readouterr().err


class ReadOnlyStorage(MemoryStorage):
    def set_item(self, key, value):
        raise PermissionError("Read-only file system")


class TestUnexpectedErrors:
    """Failures outside the error taxonomy still end in a message and exit 1."""

    @pytest.mark.asyncio
    async def test_unwritable_history_still_delivers(self, capsys):
        pipeline = Pipeline(
            collector=ContextCollector(FakeContextProvider()),
            generator=CommandGenerator(FakeProvider(text_reply("ls -la")), timeout=5),
            history=HistoryStore(ReadOnlyStorage()),
        )
        with patch.object(main_mod, "build_pipeline", return_value=pipeline):
            code = await main_mod.handle({"query": "list files"})

        assert code == 0
        assert capsys.readouterr().out == "ls -la"

    @pytest.mark.asyncio
    async def test_setup_failure_reported(self, capsys):
        with patch.object(main_mod, "build_pipeline", side_effect=OSError("Permission denied")):
            code = await main_mod.handle({"query": "list files"})

        out = capsys.readouterr()
        assert code == 1
        assert out.out == ""
        assert "cmd-ai: Permission denied" in out.err

    @pytest.mark.asyncio
    async def test_clear_failure_reported(self, capsys):
        class BrokenPipeline:
            generator = CommandGenerator(FakeProvider(), timeout=5)

            def clear_history(self):
                raise RuntimeError("storage locked")

        with patch.object(main_mod, "build_pipeline", return_value=BrokenPipeline()):
            code = await main_mod.handle({"action": "clear"})

        assert code == 1
        assert "storage locked" in capsys.readouterr().err
