"""Traefik label generator - reverse-proxy routing labels for compose services."""

import logging
from typing import List, Optional

from dockyard.constants import PROXY_SERVICE_NAME
from dockyard.plugins.definitions import ServiceDefinition
from dockyard.services.configuration import ProxyConfig, ServiceConfig

logger = logging.getLogger(__name__)


class TraefikLabelGenerator:
    """Derives Traefik labels for one service.

    HTTP services (``http_port`` set) get a router with a host rule
    ``<service>.<prefix>.<suffix>``, the prefix falling back to the project
    name; everything else is excluded from the proxy explicitly. The proxy's own router points at its dashboard.
    """

    DASHBOARD_SERVICE = "api@internal"

    def generate(
        self,
        service: ServiceConfig,
        definition: ServiceDefinition,
        proxy: ProxyConfig,
        project_name: Optional[str] = None,
    ) -> List[str]:
        if not proxy.enabled:
            return []

        is_proxy = definition.name == PROXY_SERVICE_NAME
        if not definition.http_exposed or (is_proxy and not proxy.dashboard):
            return ["traefik.enable=false"]

        router = service.name.replace(".", "-")
        prefix = f"traefik.http.routers.{router}"
        labels = [
            "traefik.enable=true",
            f"{prefix}.rule=Host(`{proxy.domain(service.name, project_name)}`)",
            f"{prefix}.entrypoints={'websecure' if proxy.tls else 'web'}",
            f"{prefix}.tls={'true' if proxy.tls else 'false'}",
        ]
        if proxy.tls and proxy.cert_resolver:
            labels.append(f"{prefix}.tls.certresolver={proxy.cert_resolver}")

        if is_proxy:
            labels.append(f"{prefix}.service={self.DASHBOARD_SERVICE}")
        else:
            labels.append(f"{prefix}.service={router}")
            labels.append(f"traefik.http.services.{router}.loadbalancer.server.port={definition.http_port}")

        logger.debug(f"Generated {len(labels)} Traefik label(s) for {service.name}")
        return labels
