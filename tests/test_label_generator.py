"""Tests for Traefik label generation."""

from dockyard.plugins.definitions import ServiceCategory, ServiceDefinition
from dockyard.services.configuration import ProxyConfig, ServiceConfig
from dockyard.services.label_generator import TraefikLabelGenerator

MAILPIT = ServiceDefinition(
    name="mailpit",
    template="mailpit.yaml.j2",
    category=ServiceCategory.UTILITY,
    ports=(8025, 1025),
    internal_ports=(8025, 1025),
    http_port=8025,
)
REDIS = ServiceDefinition(name="redis", template="redis.yaml.j2", ports=(6379,), internal_ports=(6379,))
TRAEFIK = ServiceDefinition(
    name="traefik",
    template="traefik.yaml.j2",
    ports=(80, 443, 8080),
    internal_ports=(80, 443, 8080),
    http_port=8080,
)


def service_for(definition, name=None):
    return ServiceConfig(name=name or definition.name, type=definition.category, ports=definition.ports)


class TestTraefikLabelGenerator:
    """Tests for TraefikLabelGenerator.generate."""

    def setup_method(self):
        self.generator = TraefikLabelGenerator()
        self.proxy = ProxyConfig(domain_prefix="shop", domain_suffix="local")

    def test_http_service_with_tls(self):
        labels = self.generator.generate(service_for(MAILPIT), MAILPIT, self.proxy)
        assert labels == [
            "traefik.enable=true",
            "traefik.http.routers.mailpit.rule=Host(`mailpit.shop.local`)",
            "traefik.http.routers.mailpit.entrypoints=websecure",
            "traefik.http.routers.mailpit.tls=true",
            "traefik.http.routers.mailpit.service=mailpit",
            "traefik.http.services.mailpit.loadbalancer.server.port=8025",
        ]

    def test_http_service_without_tls(self):
        proxy = ProxyConfig(domain_prefix="shop", tls=False, cert_resolver="letsencrypt")
        labels = self.generator.generate(service_for(MAILPIT), MAILPIT, proxy)
        assert "traefik.http.routers.mailpit.entrypoints=web" in labels
        assert "traefik.http.routers.mailpit.tls=false" in labels
        assert not any("certresolver" in label for label in labels)

    def test_cert_resolver(self):
        proxy = ProxyConfig(domain_prefix="shop", cert_resolver="letsencrypt")
        labels = self.generator.generate(service_for(MAILPIT), MAILPIT, proxy)
        assert "traefik.http.routers.mailpit.tls.certresolver=letsencrypt" in labels

    def test_non_http_service_excluded(self):
        assert self.generator.generate(service_for(REDIS), REDIS, self.proxy) == ["traefik.enable=false"]

    def test_proxy_disabled(self):
        proxy = ProxyConfig(enabled=False, domain_prefix="shop")
        assert self.generator.generate(service_for(MAILPIT), MAILPIT, proxy) == []
        assert self.generator.generate(service_for(REDIS), REDIS, proxy) == []

    def test_proxy_dashboard(self):
        labels = self.generator.generate(service_for(TRAEFIK), TRAEFIK, self.proxy)
        assert "traefik.http.routers.traefik.rule=Host(`traefik.shop.local`)" in labels
        assert "traefik.http.routers.traefik.service=api@internal" in labels
        assert not any("loadbalancer" in label for label in labels)

    def test_proxy_dashboard_disabled(self):
        proxy = ProxyConfig(domain_prefix="shop", dashboard=False)
        assert self.generator.generate(service_for(TRAEFIK), TRAEFIK, proxy) == ["traefik.enable=false"]

    def test_router_name_sanitised(self):
        labels = self.generator.generate(service_for(MAILPIT, name="mail.pit"), MAILPIT, self.proxy)
        assert "traefik.http.routers.mail-pit.rule=Host(`mail.pit.shop.local`)" in labels
        assert "traefik.http.services.mail-pit.loadbalancer.server.port=8025" in labels

    def test_prefix_defaults_to_project_name(self):
        labels = self.generator.generate(service_for(MAILPIT), MAILPIT, ProxyConfig(), project_name="shop")
        assert "traefik.http.routers.mailpit.rule=Host(`mailpit.shop.local`)" in labels

    def test_explicit_prefix_wins_over_project_name(self):
        labels = self.generator.generate(service_for(MAILPIT), MAILPIT, self.proxy, project_name="other")
        assert "traefik.http.routers.mailpit.rule=Host(`mailpit.shop.local`)" in labels
