"""Topology declaration: build the five-container n8n stack from config."""

import logging

from n8ndock.stack.types import Secrets, StackConfig
from n8ndock.topology import services as svc
from n8ndock.topology.routing import validate_domain
from n8ndock.topology.secrets import check_secret_consistency, secret_env
from n8ndock.topology.types import (
    ContainerDecl,
    HealthCheck,
    Mount,
    Network,
    PortBinding,
    Topology,
    Volume,
)
from n8ndock.topology.validate import validate_topology

logger = logging.getLogger(__name__)


def _postgres(config: StackConfig, secrets: Secrets) -> ContainerDecl:
    db = config.database
    return ContainerDecl(
        name=svc.POSTGRES,
        image=config.images.postgres,
        mounts=(Mount(svc.POSTGRES_VOLUME, svc.POSTGRES_DATA_PATH),),
        environment=(
            ("POSTGRES_USER", db.user),
            ("POSTGRES_DB", db.name),
            *secret_env(secrets, svc.POSTGRES),
        ),
        networks=(svc.NETWORK,),
        healthcheck=HealthCheck(test=("CMD-SHELL", f"pg_isready -h localhost -U {db.user} -d {db.name}")),
    )


def _redis(config: StackConfig) -> ContainerDecl:
    return ContainerDecl(
        name=svc.REDIS,
        image=config.images.redis,
        command="redis-server --appendonly yes",
        networks=(svc.NETWORK,),
        healthcheck=HealthCheck(test=("CMD", "redis-cli", "ping")),
    )


def _n8n(config: StackConfig, secrets: Secrets, domain: str) -> ContainerDecl:
    db = config.database
    return ContainerDecl(
        name=svc.N8N,
        image=config.images.n8n,
        user=f"{svc.N8N_UID}:{svc.N8N_GID}",
        mounts=(Mount(svc.N8N_VOLUME, svc.N8N_DATA_PATH),),
        environment=(
            ("DB_TYPE", "postgresdb"),
            ("DB_POSTGRESDB_HOST", svc.POSTGRES),
            ("DB_POSTGRESDB_PORT", str(svc.POSTGRES_PORT)),
            ("DB_POSTGRESDB_DATABASE", db.name),
            ("DB_POSTGRESDB_USER", db.user),
            ("EXECUTIONS_MODE", config.executions_mode),
            ("QUEUE_BULL_REDIS_HOST", svc.REDIS),
            ("QUEUE_BULL_REDIS_PORT", str(svc.REDIS_PORT)),
            ("N8N_HOST", domain),
            ("N8N_PORT", str(svc.N8N_PORT)),
            ("N8N_PROTOCOL", "https"),
            ("N8N_PROXY_HOPS", "1"),
            ("WEBHOOK_URL", f"https://{domain}/"),
            ("N8N_RUNNERS_ENABLED", "true"),
            ("N8N_RUNNERS_MODE", "external"),
            ("N8N_RUNNERS_BROKER_LISTEN_ADDRESS", "0.0.0.0"),
            ("GENERIC_TIMEZONE", config.timezone),
            ("TZ", config.timezone),
            *secret_env(secrets, svc.N8N),
        ),
        depends_on=(svc.POSTGRES, svc.REDIS),
        networks=(svc.NETWORK,),
        healthcheck=HealthCheck(
            test=("CMD-SHELL", f"wget -q --spider http://localhost:{svc.N8N_PORT}/healthz || exit 1"),
            retries=30,
            start_period="30s",
        ),
    )


def _runner(config: StackConfig, secrets: Secrets) -> ContainerDecl:
    return ContainerDecl(
        name=svc.RUNNER,
        image=config.images.runners,
        environment=(
            ("N8N_RUNNERS_TASK_BROKER_URI", svc.broker_url()),
            *secret_env(secrets, svc.RUNNER),
        ),
        depends_on=(svc.N8N,),
        networks=(svc.NETWORK,),
    )


def _caddy(config: StackConfig) -> ContainerDecl:
    return ContainerDecl(
        name=svc.CADDY,
        image=config.images.caddy,
        ports=tuple(PortBinding(p, p) for p in svc.PUBLIC_PORTS),
        mounts=(
            Mount(svc.CADDY_VOLUME, svc.CADDY_DATA_PATH),
            Mount(f"./{svc.CADDYFILE}", "/etc/caddy/Caddyfile", read_only=True, bind=True),
        ),
        networks=(svc.NETWORK,),
    )


def build_topology(config: StackConfig, secrets: Secrets) -> Topology:
    """Declare every resource of the stack and check its invariants.

    Raises:
        ConfigError: domain invalid or a secret is missing.
        TopologyError: the declaration breaks a structural invariant.
    """
    secrets.require_complete()
    domain = validate_domain(config.domain)

    topology = Topology(
        volumes=tuple(Volume(name) for name in svc.VOLUMES),
        networks=(Network(svc.NETWORK),),
        containers=(
            _caddy(config),
            _postgres(config, secrets),
            _redis(config),
            _n8n(config, secrets, domain),
            _runner(config, secrets),
        ),
    )

    validate_topology(topology)
    check_secret_consistency(topology, secrets)
    logger.debug(f"Declared {len(topology.containers)} containers for {domain}")
    return topology
