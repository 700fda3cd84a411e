"""Traefik reverse proxy plugin.

Routes every HTTP service to ``https://<service>.<project>.local`` and
serves its own dashboard. The compose template ships with the core
(``traefik.yaml.j2``) and can be replaced with ``@overrides_template``.
"""

import argparse
from pathlib import Path
from typing import Optional

from rich.console import Console

from dockyard.constants import PROXY_SERVICE_NAME, STATE_DIR_NAME
from dockyard.plugins.base import Plugin, on_lifecycle, provides_command, provides_service
from dockyard.plugins.definitions import (
    CommandArtifact,
    LifecycleEvent,
    LifecycleEventData,
    ServiceCategory,
    ServiceDefinition,
)
from dockyard.plugins.schema import ConfigSchema
from dockyard.services.configuration import ProxyConfig


class TraefikPlugin(Plugin):
    name = "dockyard/traefik"
    version = "1.0.0"
    description = "Traefik reverse proxy with HTTPS routing and dashboard"

    def build_schema(self) -> ConfigSchema:
        schema = ConfigSchema()
        (
            schema.string("version", default="v3.1")
            .label("Traefik version")
            .description("Docker image tag to use")
            .integer("http_port", default=80, min=1, max=65535)
            .label("HTTP port")
            .integer("https_port", default=443, min=1, max=65535)
            .label("HTTPS port")
            .integer("dashboard_port", default=8080, min=1, max=65535)
            .label("Dashboard port")
            .string("log_level", default="INFO")
            .enum(["DEBUG", "INFO", "WARN", "ERROR"])
        )
        return schema

    @provides_service
    def traefik_service(self) -> ServiceDefinition:
        return ServiceDefinition(
            name=PROXY_SERVICE_NAME,
            template="traefik.yaml.j2",
            display_name="Traefik",
            description="Reverse proxy routing services by hostname",
            icon="🚦",
            category=ServiceCategory.UTILITY,
            ports=(self.config["http_port"], self.config["https_port"], self.config["dashboard_port"]),
            internal_ports=(80, 443, 8080),
            default_config={
                "version": self.config["version"],
                "log_level": self.config["log_level"],
                "state_dir": STATE_DIR_NAME,
            },
            config_schema=self.schema,
            http_port=8080,
        )

    @on_lifecycle(LifecycleEvent.BEFORE_INIT, priority=100)
    def prepare_directories(self, data: LifecycleEventData) -> None:
        """Create the directories mounted into the proxy container."""
        if data.configuration is None or not data.configuration.proxy.enabled:
            return
        state_dir = Path(data.project_root) / STATE_DIR_NAME
        for directory in (state_dir / "traefik" / "dynamic", state_dir / "certs"):
            directory.mkdir(parents=True, exist_ok=True)
        self.get_logger().debug(f"Prepared proxy directories under {state_dir}")

    @provides_command
    def hosts_command(self) -> CommandArtifact:
        return CommandArtifact(
            name="hosts",
            handler=self._print_hosts,
            help="Print /etc/hosts entries for the proxied services",
            configure=self._configure_hosts,
        )

    @staticmethod
    def _configure_hosts(parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--ip", default="127.0.0.1", help="Address the hostnames resolve to")

    def _print_hosts(self, args: argparse.Namespace) -> Optional[int]:
        console = Console()
        project = args.project
        if not project.proxy.enabled:
            console.print("[yellow]The reverse proxy is disabled for this project.[/yellow]")
            return 1

        proxy = ProxyConfig.from_project(project)
        services = args.registry.catalog().services
        names = [PROXY_SERVICE_NAME] + [n for n in project.services if n != PROXY_SERVICE_NAME]
        for name in names:
            definition = services.get(name)
            if definition is not None and definition.http_exposed:
                console.print(f"{args.ip}\t{proxy.domain(name, project.project)}", highlight=False)
        return 0
