"""Project configuration service - manages the project's dockyard.yaml.

File format:

    project: shop
    proxy:
      enabled: true
      domain_prefix: shop
      tls: true
    plugins:
      dockyard/postgresql:
        version: "16"
    local_plugins: [clickhouse]
    services:
      postgresql: {}
      redis:
        environment:
          REDIS_ARGS: "--save 60 1"
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from dockyard.constants import LOCAL_DOMAIN_SUFFIX, PROJECT_FILE_NAME
from dockyard.errors import ProjectConfigError

logger = logging.getLogger(__name__)

_NAME_PATTERN = r"^[a-z0-9][a-z0-9_.-]*$"


def _env_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ProxySettings(BaseModel):
    """Reverse proxy settings."""

    enabled: bool = Field(True, description="Route HTTP services through Traefik")
    domain_prefix: Optional[str] = Field(None, description="Middle label of service hostnames, defaults to the project name")
    domain_suffix: str = Field(LOCAL_DOMAIN_SUFFIX, min_length=1, description="Top-level domain of service hostnames")
    tls: bool = Field(True, description="Serve routed services over HTTPS")
    cert_resolver: Optional[str] = Field(None, description="Traefik certificate resolver")
    dashboard: bool = Field(True, description="Expose the Traefik dashboard")


class ServiceSelection(BaseModel):
    """A selected service and its user overrides."""

    environment: Dict[str, str] = Field(default_factory=dict)

    @field_validator("environment", mode="before")
    @classmethod
    def stringify_environment(cls, v: Any) -> Any:
        if v is None:
            return {}
        if isinstance(v, dict):
            return {str(key): _env_value(value) for key, value in v.items()}
        return v


class ProjectFile(BaseModel):
    """Parsed dockyard.yaml."""

    project: str = Field(..., pattern=_NAME_PATTERN, description="Project name, also the compose project name")
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    plugins: Dict[str, Dict[str, Any]] = Field(default_factory=dict, description="Plugin name -> plugin config")
    local_plugins: Optional[List[str]] = Field(None, description="Local plugin directories, in load order")
    services: Dict[str, ServiceSelection] = Field(default_factory=dict, description="Selected services, in manifest order")

    @model_validator(mode="before")
    @classmethod
    def fill_empty_sections(cls, data: Any) -> Any:
        # YAML gives None for "key:" with nothing after it
        if isinstance(data, dict):
            data = dict(data)
            for key in ("proxy", "plugins", "services"):
                if key in data and data[key] is None:
                    data.pop(key)
            services = data.get("services")
            if isinstance(services, dict):
                data["services"] = {name: sel if sel is not None else {} for name, sel in services.items()}
            plugins = data.get("plugins")
            if isinstance(plugins, dict):
                data["plugins"] = {name: cfg if cfg is not None else {} for name, cfg in plugins.items()}
        return data

    @property
    def domain_prefix(self) -> str:
        return self.proxy.domain_prefix or self.project


def default_project_name(project_root: Path) -> str:
    """Project name derived from the directory name."""
    name = re.sub(r"[^a-z0-9_.-]+", "-", project_root.resolve().name.lower()).strip("-._")
    return name or "project"


class ProjectConfigService:
    """Loads, validates and saves the project file."""

    def __init__(self, project_root: Path, file_name: str = PROJECT_FILE_NAME):
        self.project_root = project_root
        self.config_file = project_root / file_name

    def exists(self) -> bool:
        return self.config_file.exists()

    def load(self) -> ProjectFile:
        """Load the project file, or a default project when none exists.

        Raises:
            ProjectConfigError: the file is not valid YAML or not a valid project
        """
        if not self.config_file.exists():
            logger.debug(f"No project file at {self.config_file}, using defaults")
            return ProjectFile(project=default_project_name(self.project_root))

        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ProjectConfigError(self.config_file, f"invalid YAML: {e}") from e
        except OSError as e:
            raise ProjectConfigError(self.config_file, f"cannot read: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ProjectConfigError(self.config_file, "top level must be a mapping")
        data.setdefault("project", default_project_name(self.project_root))

        try:
            project = ProjectFile(**data)
        except ValidationError as e:
            raise ProjectConfigError(self.config_file, str(e)) from e

        logger.debug(f"Loaded project '{project.project}' from {self.config_file}")
        return project

    def save(self, project: ProjectFile) -> None:
        """Save the project file."""
        data = project.model_dump(mode="json", exclude_none=True)
        with open(self.config_file, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, sort_keys=False, default_flow_style=False, allow_unicode=True)
        logger.debug(f"Saved project file to {self.config_file}")

    def add_service(self, name: str, environment: Optional[Dict[str, str]] = None) -> ProjectFile:
        """Select a service, keeping the selection order. Returns the saved project."""
        project = self.load()
        if name in project.services and environment is None:
            logger.info(f"Service '{name}' already selected")
            return project
        selection = ServiceSelection(environment=environment or {})
        services = dict(project.services)
        services[name] = selection
        project = project.model_copy(update={"services": services})
        self.save(project)
        logger.info(f"Selected service: {name}")
        return project

    def remove_service(self, name: str) -> ProjectFile:
        """Deselect a service. Returns the saved project."""
        project = self.load()
        if name not in project.services:
            logger.info(f"Service '{name}' is not selected")
            return project
        services = {key: value for key, value in project.services.items() if key != name}
        project = project.model_copy(update={"services": services})
        self.save(project)
        logger.info(f"Deselected service: {name}")
        return project

    def get_plugin_config(self, plugin_name: str) -> Optional[Dict[str, Any]]:
        """Configuration for a plugin, None when the project does not configure it."""
        config = self.load().plugins.get(plugin_name)
        return dict(config) if config is not None else None
