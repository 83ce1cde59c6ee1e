"""Shared constants for gantry."""

# Name of the single managed container. Also used as the image tag.
CONTAINER_NAME = "gantry"

# In-container path the project root is bind-mounted to.
CONTAINER_WORKDIR = "/opt"

# Keeps the container alive between exec sessions.
KEEPALIVE_COMMAND = ["sleep", "10000000"]

CONFIG_FILENAME = "gantry.yml"
STATE_DIRNAME = ".gantry"

BOLD = "\033[1m"
RED = "\033[31m"
RESET = "\033[0m"
