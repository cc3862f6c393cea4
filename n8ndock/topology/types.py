"""Topology dataclass types."""

from dataclasses import dataclass, field


class TopologyError(ValueError):
    """A topology declaration violates one of its structural invariants."""


@dataclass(frozen=True)
class Volume:
    """Named Docker volume. Identity is the name; survives redeploys."""

    name: str


@dataclass(frozen=True)
class Network:
    """Private bridge network; containers address each other by name."""

    name: str


@dataclass(frozen=True)
class PortBinding:
    host_port: int
    container_port: int

    def __str__(self) -> str:
        return f"{self.host_port}:{self.container_port}"


@dataclass(frozen=True)
class Mount:
    """A named volume (or bind-mounted host path) attached at a container path."""

    source: str
    target: str
    read_only: bool = False
    bind: bool = False

    def __str__(self) -> str:
        suffix = ":ro" if self.read_only else ""
        return f"{self.source}:{self.target}{suffix}"


@dataclass(frozen=True)
class HealthCheck:
    test: tuple[str, ...]
    interval: str = "10s"
    timeout: str = "5s"
    retries: int = 10
    start_period: str = "10s"


@dataclass(frozen=True)
class ContainerDecl:
    """Declaration of one container: image, wiring, and ordering edges."""

    name: str
    image: str
    restart: str = "unless-stopped"
    mounts: tuple[Mount, ...] = ()
    environment: tuple[tuple[str, str], ...] = field(default=(), repr=False)
    ports: tuple[PortBinding, ...] = ()
    depends_on: tuple[str, ...] = ()
    networks: tuple[str, ...] = ()
    healthcheck: HealthCheck | None = None
    command: str | None = None
    user: str | None = None

    @property
    def env(self) -> dict[str, str]:
        """Environment as a dict (later duplicates win)."""
        return dict(self.environment)

    @property
    def volume_names(self) -> tuple[str, ...]:
        return tuple(m.source for m in self.mounts if not m.bind)

    @property
    def is_public(self) -> bool:
        return bool(self.ports)


@dataclass(frozen=True)
class Topology:
    """Complete declaration: every volume, network and container of a deployment."""

    volumes: tuple[Volume, ...] = ()
    networks: tuple[Network, ...] = ()
    containers: tuple[ContainerDecl, ...] = ()

    def container(self, name: str) -> ContainerDecl:
        for decl in self.containers:
            if decl.name == name:
                return decl
        raise KeyError(f"No container named '{name}' in topology")

    def public_containers(self) -> list[ContainerDecl]:
        return [c for c in self.containers if c.is_public]

    @property
    def container_names(self) -> list[str]:
        return [c.name for c in self.containers]

    @property
    def volume_names(self) -> list[str]:
        return [v.name for v in self.volumes]

    @property
    def network_names(self) -> list[str]:
        return [n.name for n in self.networks]
