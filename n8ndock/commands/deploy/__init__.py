"""Deploy targets: local docker compose and SSH."""
