"""Fixed names, ports and paths of the n8n stack."""

NETWORK = "n8n-net"

# Container (and compose service) names; also the hostnames on NETWORK
CADDY = "caddy"
POSTGRES = "postgres"
REDIS = "redis"
N8N = "n8n"
RUNNER = "n8n-runner"

# Named volumes and their in-container mount paths
N8N_VOLUME = "n8n_data"
POSTGRES_VOLUME = "postgres_data"
CADDY_VOLUME = "caddy_data"

N8N_DATA_PATH = "/home/node/.n8n"
POSTGRES_DATA_PATH = "/var/lib/postgresql/data"
CADDY_DATA_PATH = "/data"

VOLUMES = (N8N_VOLUME, POSTGRES_VOLUME, CADDY_VOLUME)

N8N_PORT = 5678
N8N_BROKER_PORT = 5679
POSTGRES_PORT = 5432
REDIS_PORT = 6379
PUBLIC_PORTS = (80, 443)

# n8n image runs as the "node" user
N8N_UID = 1000
N8N_GID = 1000

CADDYFILE = "Caddyfile"
COMPOSE_FILE = "docker-compose.yaml"


def n8n_backend_url():
    """Internal address the edge proxy forwards to."""
    return f"http://{N8N}:{N8N_PORT}"


def broker_url():
    """Task broker address the runner sidecar connects to."""
    return f"http://{N8N}:{N8N_BROKER_PORT}"
