"""Global constants for dockyard."""

import os
from pathlib import Path

# Package paths
PACKAGE_ROOT = Path(__file__).resolve().parent
CORE_TEMPLATES_DIR = PACKAGE_ROOT / "templates"

# Project layout (relative to the project root)
PROJECT_FILE_NAME = os.getenv("DOCKYARD_PROJECT_FILE", "dockyard.yaml")
STATE_DIR_NAME = os.getenv("DOCKYARD_STATE_DIR", ".dockyard")
LOCAL_PLUGINS_DIR_NAME = "plugins"
COMPOSE_FILE_NAME = os.getenv("DOCKYARD_COMPOSE_FILE", "docker-compose.yml")
# Resolved configuration of the last init, under the state directory
CONFIGURATION_FILE_NAME = "configuration.yaml"

# Number of ports probed after a requested port that is already taken
PORT_PROBE_WINDOW = int(os.getenv("DOCKYARD_PORT_WINDOW", "10"))
MIN_PORT = 1
MAX_PORT = 65535

# Reverse proxy
LOCAL_DOMAIN_SUFFIX = os.getenv("DOCKYARD_DOMAIN_SUFFIX", "local")
PROXY_SERVICE_NAME = "traefik"

# Compose network shared by every generated service
COMPOSE_NETWORK = os.getenv("DOCKYARD_NETWORK", "dockyard")
