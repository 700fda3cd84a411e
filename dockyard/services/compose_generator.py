"""Compose generator - turns a Configuration into docker-compose YAML.

Services are emitted in configuration order, never sorted, so regenerating
from the same configuration gives the same bytes. Nothing is written here;
see ManifestWriter.
"""

import logging
from typing import Any, Dict, List, Optional

import yaml

from dockyard.constants import COMPOSE_NETWORK
from dockyard.errors import TemplateRenderError, UnknownServiceError
from dockyard.plugins.definitions import ServiceDefinition
from dockyard.plugins.registry import Catalog
from dockyard.services.configuration import Configuration, ServiceConfig
from dockyard.services.label_generator import TraefikLabelGenerator
from dockyard.services.template_renderer import TemplateRenderer

logger = logging.getLogger(__name__)


def _named_volume(entry: Any) -> Optional[str]:
    """Name of the named volume a compose volume entry mounts, None for bind mounts."""
    if isinstance(entry, dict):
        if entry.get("type", "volume") == "volume" and entry.get("source"):
            return str(entry["source"])
        return None
    if not isinstance(entry, str) or ":" not in entry:
        return None
    source = entry.split(":", 1)[0]
    if not source or source[0] in "./~$" or "/" in source:
        return None
    return source


class ComposeGenerator:
    """Renders each selected service and assembles the compose document."""

    def __init__(
        self,
        catalog: Catalog,
        renderer: TemplateRenderer,
        label_generator: Optional[TraefikLabelGenerator] = None,
    ):
        self.catalog = catalog
        self.renderer = renderer
        self.label_generator = label_generator or TraefikLabelGenerator()

    def build_context(self, service: ServiceConfig, definition: ServiceDefinition, configuration: Configuration) -> Dict[str, Any]:
        """Template variables for one service."""
        health_check = definition.health_check.to_compose() if definition.health_check else None
        return {
            "name": service.name,
            "project": configuration.project_name,
            "config": dict(service.config),
            "environment": dict(service.environment),
            "ports": list(service.ports),
            "internal_ports": list(definition.internal_ports),
            "port_mappings": [f"{h}:{c}" for h, c in zip(service.ports, definition.internal_ports)],
            "health_check": health_check,
            "proxy": configuration.proxy,
            "network": COMPOSE_NETWORK,
        }

    def build(self, configuration: Configuration) -> Dict[str, Any]:
        """Compose document as plain data.

        Raises:
            UnknownServiceError: a configured service is not in the catalog
            TemplateRenderError: a template failed or rendered invalid YAML
        """
        services: Dict[str, Any] = {}
        volumes: List[str] = []

        for service in configuration.services:
            definition = self.catalog.services.get(service.name)
            if definition is None:
                raise UnknownServiceError(service.name, self.catalog.services)

            body = self._render_service(service, definition, configuration)
            if body is None:
                logger.debug(f"Service {service.name} has no container, skipped")
                continue

            for entry in body.get("volumes") or ():
                volume = _named_volume(entry)
                if volume and volume not in volumes:
                    volumes.append(volume)
            services[service.name] = body

        document: Dict[str, Any] = {"services": services}
        if volumes:
            document["volumes"] = {name: {} for name in volumes}
        document["networks"] = {COMPOSE_NETWORK: {"driver": "bridge"}}
        return document

    def generate(self, configuration: Configuration) -> str:
        """Compose YAML text for a configuration."""
        text = yaml.safe_dump(
            self.build(configuration),
            sort_keys=False,
            default_flow_style=False,
            allow_unicode=True,
        )
        logger.info(f"Generated compose manifest for {configuration.project_name} ({len(configuration)} service(s))")
        return text

    def _render_service(
        self,
        service: ServiceConfig,
        definition: ServiceDefinition,
        configuration: Configuration,
    ) -> Optional[Dict[str, Any]]:
        context = self.build_context(service, definition, configuration)
        fragment = self.renderer.render(definition.template, context)
        if not fragment.strip():
            return None

        try:
            body = yaml.safe_load(fragment)
        except yaml.YAMLError as e:
            raise TemplateRenderError(definition.template, f"rendered invalid YAML: {e}") from e
        if body is None:
            return None
        if not isinstance(body, dict):
            raise TemplateRenderError(definition.template, "rendered fragment is not a mapping")

        if context["port_mappings"]:
            body.setdefault("ports", context["port_mappings"])
        environment = body.get("environment")
        if isinstance(environment, dict):
            # resolved variables (plugin defaults, then user values) win over the template
            body["environment"] = {**environment, **context["environment"]}
        elif environment is None and context["environment"]:
            body["environment"] = context["environment"]
        if context["health_check"]:
            body.setdefault("healthcheck", context["health_check"])
        body.setdefault("networks", [COMPOSE_NETWORK])

        depends_on = [name for name in definition.dependencies if name in configuration]
        for name in definition.dependencies:
            if name not in configuration:
                logger.warning(f"Service {service.name} depends on {name}, which is not selected")
        if depends_on:
            body.setdefault("depends_on", depends_on)

        labels = self.label_generator.generate(service, definition, configuration.proxy, configuration.project_name)
        if labels:
            existing = body.get("labels")
            if isinstance(existing, dict):
                for label in labels:
                    key, _, value = label.partition("=")
                    existing[key] = value
            else:
                body["labels"] = list(existing or []) + labels

        return body
