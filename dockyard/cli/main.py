"""
dockyard - compose a docker-compose environment from plugins

Usage:
    dockyard services
    dockyard plugin-info dockyard/postgresql
    dockyard add postgresql
    dockyard init --yes
    dockyard db dump postgresql
"""

import argparse
import json
import logging
import os
import shlex
import sys
from pathlib import Path
from typing import Callable, List, Optional

from dotenv import load_dotenv

# Load environment variables FIRST (before importing project modules)
load_dotenv()

import yaml
from prompt_toolkit.shortcuts import confirm
from rich.console import Console
from rich.table import Table

from dockyard import __version__
from dockyard.constants import COMPOSE_FILE_NAME, CONFIGURATION_FILE_NAME, STATE_DIR_NAME
from dockyard.errors import DockyardError
from dockyard.plugins.definitions import LifecycleEvent, LifecycleEventData
from dockyard.plugins.manager import PluginManager
from dockyard.services.compose_generator import ComposeGenerator
from dockyard.services.configuration import Configuration, ConfigurationBuilder
from dockyard.services.manifest_writer import ManifestWriter
from dockyard.services.port_allocator import PortAllocator, PortChecker
from dockyard.services.project_config import ProjectConfigService
from dockyard.services.template_renderer import TemplateRenderer

logger = logging.getLogger(__name__)

console = Console()

BUILTIN_COMMANDS = ("plugins", "plugin-info", "services", "add", "remove", "init", "db")


def setup_logging() -> None:
    """Configure the root logger. WARNING by default so INFO logs do not pollute output."""
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def ask_reassignment(service: str, requested: int, substitute: int) -> bool:
    return confirm(f"Port {requested} for {service} is already in use. Use {substitute} instead?")


# --- Commands ---------------------------------------------------------------


def cmd_plugins(args) -> int:
    """List registered plugins."""
    plugins = args.manager.list_plugins()
    if args.json:
        print(json.dumps(plugins, indent=2, ensure_ascii=False))
        return 0

    table = Table(title="Plugins")
    table.add_column("Name", style="cyan")
    table.add_column("Version")
    table.add_column("Source")
    table.add_column("Provides")
    table.add_column("Description")
    for plugin in plugins:
        provides = plugin["services"] + [f"{name} (command)" for name in plugin["commands"]]
        table.add_row(plugin["name"], plugin["version"], plugin["source"], ", ".join(provides), plugin["description"])
    console.print(table)
    return 0


def cmd_plugin_info(args) -> int:
    """Show one plugin's contributions and configuration."""
    info = args.manager.get_plugin_info(args.name)
    if args.json:
        print(json.dumps(info, indent=2, ensure_ascii=False))
        return 0

    console.print(f"[bold cyan]{info['name']}[/bold cyan] {info['version']} ({info['source']})")
    console.print(f"  {info['description'] or 'No description'}", markup=False)
    sections = [
        ("Services", info["services"]),
        ("Commands", info["commands"]),
        ("Lifecycle hooks", info["lifecycle"]),
        ("Template overrides", info["templates"]),
        ("Requires", info["requires"]),
    ]
    for title, items in sections:
        if items:
            console.print(f"  {title}: {', '.join(items)}", markup=False)

    schema = info["config_schema"]
    if schema:
        table = Table(title="Configuration")
        table.add_column("Option", style="cyan")
        table.add_column("Type")
        table.add_column("Value")
        table.add_column("Description")
        for key, field in schema.items():
            table.add_row(key, field["type"], str(info["config"].get(key)), field.get("description") or field["label"])
        console.print(table)
    return 0


def cmd_services(args) -> int:
    """List the service catalog."""
    selected = set(args.project.services)
    table = Table(title="Services")
    table.add_column("", width=2)
    table.add_column("Name", style="cyan")
    table.add_column("Category")
    table.add_column("Ports")
    table.add_column("Plugin")
    table.add_column("Selected")
    for name, definition in args.registry.catalog().services.items():
        ports = ", ".join(f"{h}:{c}" for h, c in zip(definition.ports, definition.internal_ports)) or "-"
        table.add_row(
            definition.icon,
            f"{name} ({definition.display_name})",
            definition.category.label,
            ports,
            args.registry.service_owner(name),
            "✓" if name in selected else "",
        )
    console.print(table)
    return 0


def cmd_add(args) -> int:
    """Select a service."""
    args.registry.service(args.service)
    environment = None
    if args.env:
        environment = {}
        for item in args.env:
            key, sep, value = item.partition("=")
            if not sep or not key:
                console.print(f"Invalid --env value '{item}', expected KEY=VALUE", style="red", markup=False)
                return 1
            environment[key] = value
    args.config_service.add_service(args.service, environment)
    console.print(f"[green]✓[/green] Selected {args.service}. Run [bold]dockyard init[/bold] to regenerate {COMPOSE_FILE_NAME}.")
    return 0


def cmd_remove(args) -> int:
    """Deselect a service."""
    if args.service not in args.project.services:
        console.print(f"[yellow]{args.service} is not selected.[/yellow]")
        return 1
    args.config_service.remove_service(args.service)
    console.print(f"[green]✓[/green] Removed {args.service}. Run [bold]dockyard init[/bold] to regenerate {COMPOSE_FILE_NAME}.")
    return 0


def write_manifests(project_root: Path, text: str, configuration: Configuration) -> Path:
    """Write the state file, then the compose manifest.

    If the manifest cannot be written the previous state file is put back, so
    `db` never reads state that does not match docker-compose.yml.
    """
    writer = ManifestWriter()
    state_file = project_root / STATE_DIR_NAME / CONFIGURATION_FILE_NAME
    previous_state = state_file.read_text(encoding="utf-8") if state_file.exists() else None

    writer.write(
        state_file,
        yaml.safe_dump(configuration.to_dict(), sort_keys=False, default_flow_style=False, allow_unicode=True),
    )
    try:
        return writer.write(project_root / COMPOSE_FILE_NAME, text)
    except BaseException:
        logger.error(f"Could not write {COMPOSE_FILE_NAME}, restoring previous state file")
        if previous_state is None:
            state_file.unlink(missing_ok=True)
        else:
            writer.write(state_file, previous_state)
        raise


def cmd_init(args) -> int:
    """Resolve the selection, allocate ports and write docker-compose.yml."""
    confirm_reassignment: Optional[Callable[[str, int, int], bool]] = None
    if not args.yes and sys.stdin.isatty():
        confirm_reassignment = ask_reassignment

    allocator = PortAllocator(checker=PortChecker(check_host=not args.no_host_check), confirm=confirm_reassignment)
    catalog = args.registry.catalog()
    configuration = ConfigurationBuilder(catalog, allocator).build(args.project)

    renderer = TemplateRenderer.from_registry(args.registry)
    text = ComposeGenerator(catalog, renderer).generate(configuration)

    if args.stdout:
        sys.stdout.write(text)
        return 0

    data = LifecycleEventData(
        event=LifecycleEvent.BEFORE_INIT.value,
        project_name=configuration.project_name,
        project_root=args.project_root,
        configuration=configuration,
    )
    args.manager.dispatcher.dispatch(LifecycleEvent.BEFORE_INIT.value, data)

    compose_file = write_manifests(args.project_root, text, configuration)

    for assignment in configuration.allocation.reassignments():
        console.print(
            f"[yellow]![/yellow] {assignment.service}: port {assignment.requested} taken, using {assignment.assigned}"
        )
    console.print(f"[green]✓[/green] Wrote {compose_file} ({len(configuration)} service(s))")

    data = LifecycleEventData(
        event=LifecycleEvent.AFTER_INIT.value,
        project_name=configuration.project_name,
        project_root=args.project_root,
        configuration=configuration,
    )
    args.manager.dispatcher.dispatch(LifecycleEvent.AFTER_INIT.value, data)
    return 0


def load_configuration(args) -> Configuration:
    """Configuration written by the last init, or a fresh one without host checks."""
    state_file = args.project_root / STATE_DIR_NAME / CONFIGURATION_FILE_NAME
    if state_file.exists():
        with open(state_file, "r", encoding="utf-8") as f:
            return Configuration.from_dict(yaml.safe_load(f))
    allocator = PortAllocator(checker=PortChecker(check_host=False))
    return ConfigurationBuilder(args.registry.catalog(), allocator).build(args.project)


def cmd_db(args) -> int:
    """Print the client command for a database service."""
    definition = args.registry.service(args.service)
    if not definition.is_database:
        console.print(f"{args.service} is not a database service.", style="red", markup=False)
        return 1

    service_config = load_configuration(args).service(args.service)
    operations = definition.database_operations
    builders = {
        "dump": operations.dump_command,
        "restore": operations.restore_command,
        "shell": operations.shell_command,
    }
    command = builders[args.action](service_config)

    # File-based databases have no container; their client runs on the host
    if definition.internal_ports:
        exec_prefix = ["docker", "compose", "exec"]
        if args.action != "shell":
            exec_prefix.append("-T")
        command = exec_prefix + [args.service] + command

    print(shlex.join(command))
    return 0


# --- Parser -----------------------------------------------------------------


def build_parser(manager: Optional[PluginManager] = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dockyard",
        description="Compose a docker-compose development environment from plugins",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-C", "--project-dir", default=".", help="Project directory (default: current directory)")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    plugins_parser = subparsers.add_parser("plugins", help="List registered plugins")
    plugins_parser.add_argument("--json", action="store_true", help="Print plugin details as JSON")
    plugins_parser.set_defaults(func=cmd_plugins)

    info_parser = subparsers.add_parser("plugin-info", help="Show details of one plugin")
    info_parser.add_argument("name", help="Plugin name, e.g. dockyard/postgresql")
    info_parser.add_argument("--json", action="store_true", help="Print plugin details as JSON")
    info_parser.set_defaults(func=cmd_plugin_info)

    subparsers.add_parser("services", help="List available services").set_defaults(func=cmd_services)

    add_parser = subparsers.add_parser("add", help="Select a service")
    add_parser.add_argument("service", help="Service name")
    add_parser.add_argument("-e", "--env", action="append", metavar="KEY=VALUE", help="Environment override")
    add_parser.set_defaults(func=cmd_add)

    remove_parser = subparsers.add_parser("remove", help="Deselect a service")
    remove_parser.add_argument("service", help="Service name")
    remove_parser.set_defaults(func=cmd_remove)

    init_parser = subparsers.add_parser("init", help=f"Generate {COMPOSE_FILE_NAME}")
    init_parser.add_argument("-y", "--yes", action="store_true", help="Accept substitute ports without asking")
    init_parser.add_argument("--no-host-check", action="store_true", help="Do not probe host ports")
    init_parser.add_argument("--stdout", action="store_true", help="Print the manifest instead of writing it")
    init_parser.set_defaults(func=cmd_init)

    db_parser = subparsers.add_parser("db", help="Database client commands")
    db_parser.add_argument("action", choices=["dump", "restore", "shell"])
    db_parser.add_argument("service", help="Database service name")
    db_parser.set_defaults(func=cmd_db)

    if manager is not None:
        taken = set(BUILTIN_COMMANDS)
        for artifact in manager.registry.catalog().commands:
            if artifact.name in taken:
                logger.warning(f"Plugin command '{artifact.name}' conflicts with an existing command, skipped")
                continue
            taken.add(artifact.name)
            command_parser = subparsers.add_parser(artifact.name, help=artifact.help)
            if artifact.configure is not None:
                artifact.configure(command_parser)
            command_parser.set_defaults(func=artifact.handler)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    setup_logging()

    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument("-C", "--project-dir", default=".")
    known, _ = pre_parser.parse_known_args(argv)
    project_root = Path(known.project_dir).resolve()

    try:
        config_service = ProjectConfigService(project_root)
        project = config_service.load()
        manager = PluginManager(project_root, project)
        manager.load_all()

        parser = build_parser(manager)
        args = parser.parse_args(argv)
        if not getattr(args, "func", None):
            parser.print_help()
            return 1

        args.project_root = project_root
        args.project = project
        args.config_service = config_service
        args.manager = manager
        args.registry = manager.registry
        return args.func(args) or 0
    except DockyardError as e:
        logger.debug("Command failed", exc_info=True)
        console.print(f"Error: {e}", style="red", markup=False)
        return 1
    except KeyboardInterrupt:
        console.print("\ninterrupted", style="yellow")
        return 130


if __name__ == "__main__":
    sys.exit(main())
