"""Tests for the properties CLI command and plugin wiring."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from fusegraph.cli import cli

_LOCAL_PLUGIN_SRC = '''\
import pluggy

from fusegraph.domain.property import SubgraphProperty, describe_subgraph
from fusegraph.domain.selector import OpSetSelector

hookimpl = pluggy.HookimplMarker("fusegraph")


class NormPlugin:
    @hookimpl
    def register_properties(self):
        return {
            "norm": lambda: SubgraphProperty(
                "norm", lambda: OpSetSelector({"SUB", "DIV"}), describe_subgraph, "NORM"
            )
        }
'''


def _write_local_plugin(root: Path) -> None:
    plugin_dir = root / ".fusegraph" / "plugins"
    plugin_dir.mkdir(parents=True)
    (plugin_dir / "norm.py").write_text(_LOCAL_PLUGIN_SRC, encoding="utf-8")


class TestPropertiesCommand:
    def test_lists_builtins(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "properties"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)["data"]
        assert [i["name"] for i in data["items"]] == ["elemwise", "gemm_bias_act"]

    def test_human_table(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["properties"])
        assert result.exit_code == 0
        assert "GEMM_BIAS_ACT" in result.stdout

    def test_local_plugin_discovered(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        _write_local_plugin(tmp_path)
        result = cli_runner.invoke(cli, ["--json", "properties"])
        items = json.loads(result.stdout)["data"]["items"]
        assert {"name": "norm", "subgraph_op": "NORM"} in items

    def test_plugins_disabled(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        _write_local_plugin(tmp_path)
        (tmp_path / "fusegraph.toml").write_text("[plugins]\nenabled = false\n")
        result = cli_runner.invoke(cli, ["--json", "properties"])
        names = [i["name"] for i in json.loads(result.stdout)["data"]["items"]]
        assert names == ["elemwise", "gemm_bias_act"]

    def test_local_plugin_found_from_subdirectory(
        self, cli_runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write_local_plugin(tmp_path)
        sub = tmp_path / "graphs"
        sub.mkdir()
        monkeypatch.chdir(sub)
        result = cli_runner.invoke(cli, ["--json", "properties"])
        names = [i["name"] for i in json.loads(result.stdout)["data"]["items"]]
        assert "norm" in names
