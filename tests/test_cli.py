"""Tests for the dockyard command line."""

import io
import json
import os
from unittest.mock import patch

import pytest
import yaml
from rich.console import Console

from dockyard.cli.main import build_parser, main


@pytest.fixture
def output():
    """Capture everything the CLI prints through its rich console."""
    buffer = io.StringIO()
    with patch("dockyard.cli.main.console", Console(file=buffer, width=200)):
        yield buffer


def run(project_dir, *args):
    return main(["-C", str(project_dir), *args])


REAL_REPLACE = os.replace


def replace_failing_for_compose(src, dst):
    if os.fspath(dst).endswith("docker-compose.yml"):
        raise OSError("disk full")
    return REAL_REPLACE(src, dst)


class TestParser:
    def test_builtin_commands(self):
        parser = build_parser()
        args = parser.parse_args(["init", "--yes", "--no-host-check"])
        assert args.yes and args.no_host_check and not args.stdout

    def test_no_command_prints_help(self, project_dir, output, capsys):
        assert run(project_dir) == 1
        assert "usage: dockyard" in capsys.readouterr().out


class TestCatalogCommands:
    """Tests for plugins and services listings."""

    def test_services(self, project_dir, output):
        assert run(project_dir, "services") == 0
        text = output.getvalue()
        assert "postgresql (PostgreSQL)" in text
        assert "dockyard/postgresql" in text
        assert "5432:5432" in text

    def test_plugins_json(self, project_dir, output, capsys):
        assert run(project_dir, "plugins", "--json") == 0
        plugins = json.loads(capsys.readouterr().out)
        postgresql = next(p for p in plugins if p["name"] == "dockyard/postgresql")
        assert postgresql["source"] == "bundled"
        assert postgresql["config"]["password"] == "********"

    def test_plugins_table(self, project_dir, output):
        assert run(project_dir, "plugins") == 0
        assert "dockyard/traefik" in output.getvalue()

    def test_plugin_info(self, project_dir, output):
        assert run(project_dir, "plugin-info", "dockyard/traefik") == 0
        text = output.getvalue()
        assert "dockyard/traefik" in text
        assert "Services: traefik" in text
        assert "Commands: hosts" in text
        assert "Lifecycle hooks: before:init" in text
        assert "Configuration" in text

    def test_plugin_info_json_redacts_secrets(self, project_dir, output, capsys):
        assert run(project_dir, "plugin-info", "dockyard/postgresql", "--json") == 0
        info = json.loads(capsys.readouterr().out)
        assert info["services"] == ["postgresql"]
        assert info["source"] == "bundled"
        assert info["config"]["password"] == "********"
        assert info["config_schema"]["port"]["max"] == 65535

    def test_plugin_info_local_plugin(self, project_dir, clickhouse_plugin_dir, output):
        assert run(project_dir, "plugin-info", "acme/clickhouse") == 0
        text = output.getvalue()
        assert "(local)" in text
        assert "Commands: clickhouse-query" in text

    def test_plugin_info_unknown(self, project_dir, output):
        assert run(project_dir, "plugin-info", "acme/ghost") == 1
        assert "Plugin 'acme/ghost' not found" in output.getvalue()


class TestSelection:
    """Tests for add and remove."""

    def test_add_and_remove(self, project_dir, output):
        assert run(project_dir, "add", "postgresql") == 0
        assert run(project_dir, "add", "redis", "-e", "REDIS_ARGS=--save 60 1") == 0

        saved = yaml.safe_load((project_dir / "dockyard.yaml").read_text(encoding="utf-8"))
        assert list(saved["services"]) == ["postgresql", "redis"]
        assert saved["services"]["redis"]["environment"] == {"REDIS_ARGS": "--save 60 1"}

        assert run(project_dir, "remove", "postgresql") == 0
        saved = yaml.safe_load((project_dir / "dockyard.yaml").read_text(encoding="utf-8"))
        assert list(saved["services"]) == ["redis"]

    def test_add_unknown_service(self, project_dir, output):
        assert run(project_dir, "add", "cassandra") == 1
        assert "Unknown service 'cassandra'" in output.getvalue()
        assert not (project_dir / "dockyard.yaml").exists()

    def test_add_invalid_env(self, project_dir, output):
        assert run(project_dir, "add", "redis", "-e", "REDIS_ARGS") == 1
        assert "expected KEY=VALUE" in output.getvalue()

    def test_remove_unselected(self, project_dir, output):
        assert run(project_dir, "remove", "redis") == 1

    def test_invalid_project_file(self, project_dir, output):
        (project_dir / "dockyard.yaml").write_text("services: [unclosed\n", encoding="utf-8")
        assert run(project_dir, "services") == 1
        assert "Invalid project configuration" in output.getvalue()


class TestInit:
    """Tests for manifest generation."""

    def test_writes_manifest_and_state(self, project_dir, output):
        run(project_dir, "add", "postgresql")
        assert run(project_dir, "init", "--yes", "--no-host-check") == 0

        compose = yaml.safe_load((project_dir / "docker-compose.yml").read_text(encoding="utf-8"))
        assert list(compose["services"]) == ["traefik", "postgresql"]
        state = yaml.safe_load((project_dir / ".dockyard" / "configuration.yaml").read_text(encoding="utf-8"))
        assert state["project"] == "shop"
        assert (project_dir / ".dockyard" / "traefik" / "dynamic").is_dir()
        assert "Wrote" in output.getvalue()

    def test_rerun_is_byte_identical(self, project_dir, output):
        run(project_dir, "add", "postgresql")
        run(project_dir, "add", "mailpit")
        run(project_dir, "init", "--yes", "--no-host-check")
        first = (project_dir / "docker-compose.yml").read_bytes()
        run(project_dir, "init", "--yes", "--no-host-check")
        assert (project_dir / "docker-compose.yml").read_bytes() == first

    def test_stdout(self, project_dir, output, capsys):
        run(project_dir, "add", "redis")
        assert run(project_dir, "init", "--stdout", "--no-host-check") == 0
        document = yaml.safe_load(capsys.readouterr().out)
        assert list(document["services"]) == ["traefik", "redis"]
        assert not (project_dir / "docker-compose.yml").exists()

    def test_reassignment_reported(self, project_dir, output):
        run(project_dir, "add", "dozzle")
        assert run(project_dir, "init", "--yes", "--no-host-check") == 0
        assert "dozzle: port 8080 taken, using 8081" in output.getvalue()

    def test_failed_manifest_write_restores_state(self, project_dir, output):
        run(project_dir, "add", "postgresql")
        run(project_dir, "init", "--yes", "--no-host-check")
        state_file = project_dir / ".dockyard" / "configuration.yaml"
        previous_state = state_file.read_bytes()
        previous_compose = (project_dir / "docker-compose.yml").read_bytes()

        run(project_dir, "add", "redis")
        with patch("dockyard.services.manifest_writer.os.replace", side_effect=replace_failing_for_compose):
            with pytest.raises(OSError):
                run(project_dir, "init", "--yes", "--no-host-check")

        assert state_file.read_bytes() == previous_state
        assert (project_dir / "docker-compose.yml").read_bytes() == previous_compose

    def test_failed_first_write_leaves_no_state(self, project_dir, output):
        run(project_dir, "add", "redis")
        with patch("dockyard.services.manifest_writer.os.replace", side_effect=replace_failing_for_compose):
            with pytest.raises(OSError):
                run(project_dir, "init", "--yes", "--no-host-check")
        assert not (project_dir / ".dockyard" / "configuration.yaml").exists()
        assert not (project_dir / "docker-compose.yml").exists()

    def test_prompt_rejection_aborts(self, project_dir, output):
        run(project_dir, "add", "dozzle")
        with patch("dockyard.cli.main.sys.stdin.isatty", return_value=True), patch(
            "dockyard.cli.main.confirm", return_value=False
        ) as mock_confirm:
            assert run(project_dir, "init", "--no-host-check") == 1
        mock_confirm.assert_called_once()
        assert "was rejected" in output.getvalue()
        assert not (project_dir / "docker-compose.yml").exists()


class TestDatabaseCommands:
    """Tests for db dump/restore/shell."""

    def test_dump_inside_container(self, project_dir, output, capsys):
        run(project_dir, "add", "postgresql")
        capsys.readouterr()
        assert run(project_dir, "db", "dump", "postgresql") == 0
        assert capsys.readouterr().out.strip() == "docker compose exec -T postgresql pg_dump -U dockyard dockyard"

    def test_shell_is_interactive(self, project_dir, output, capsys):
        run(project_dir, "add", "postgresql")
        capsys.readouterr()
        run(project_dir, "db", "shell", "postgresql")
        assert capsys.readouterr().out.strip() == "docker compose exec postgresql psql -U dockyard dockyard"

    def test_uses_state_from_init(self, project_dir, output, capsys):
        run(project_dir, "add", "postgresql", "-e", "POSTGRES_DB=orders")
        run(project_dir, "init", "--yes", "--no-host-check")
        capsys.readouterr()
        run(project_dir, "db", "dump", "postgresql")
        assert capsys.readouterr().out.strip().endswith("pg_dump -U dockyard orders")

    def test_file_based_database_runs_on_host(self, project_dir, output, capsys):
        run(project_dir, "add", "sqlite")
        capsys.readouterr()
        assert run(project_dir, "db", "dump", "sqlite") == 0
        assert capsys.readouterr().out.strip() == "sqlite3 var/data.db .dump"

    def test_not_a_database(self, project_dir, output):
        run(project_dir, "add", "redis")
        assert run(project_dir, "db", "dump", "redis") == 1
        assert "not a database service" in output.getvalue()

    def test_database_not_selected(self, project_dir, output):
        assert run(project_dir, "db", "dump", "postgresql") == 1


class TestPluginCommands:
    """Tests for commands contributed by plugins."""

    def test_hosts(self, project_dir, output, capsys):
        run(project_dir, "add", "mailpit")
        run(project_dir, "add", "redis")
        capsys.readouterr()
        assert run(project_dir, "hosts") == 0
        lines = [line.split() for line in capsys.readouterr().out.strip().splitlines()]
        assert lines == [["127.0.0.1", "traefik.shop.local"], ["127.0.0.1", "mailpit.shop.local"]]

    def test_local_plugin_command(self, project_dir, clickhouse_plugin_dir, output, capsys):
        assert run(project_dir, "clickhouse-query", "SELECT 1") == 0
        assert capsys.readouterr().out.strip() == "docker compose exec clickhouse clickhouse-client --query 'SELECT 1'"

    def test_local_plugin_service(self, project_dir, clickhouse_plugin_dir, output, capsys):
        run(project_dir, "add", "clickhouse")
        assert run(project_dir, "init", "--stdout", "--no-host-check") == 0
        document = yaml.safe_load(capsys.readouterr().out)
        assert document["services"]["clickhouse"]["image"] == "clickhouse/clickhouse-server:24.8"
        assert document["services"]["clickhouse"]["ports"] == ["8123:8123", "9000:9000"]
