"""Stack configuration dataclass types."""

from dataclasses import dataclass, field, replace

SECRET_NAMES = ("db_password", "encryption_key", "runners_auth_token")

READINESS_MODES = ("healthy", "created")

# "queue" hands executions to Redis-backed workers, which this stack does not run
EXECUTION_MODES = ("regular", "queue")


class ConfigError(ValueError):
    """Stack configuration or secrets are missing or malformed."""


@dataclass(frozen=True)
class ImagesConfig:
    """Container images for each service."""

    caddy: str = "caddy:2"
    postgres: str = "postgres:16"
    redis: str = "redis:7-alpine"
    n8n: str = "n8nio/n8n:latest"
    runners: str = "n8nio/runners:latest"


@dataclass(frozen=True)
class DatabaseConfig:
    name: str = "n8n"
    user: str = "n8n"


@dataclass(frozen=True)
class RemoteConfig:
    """Deployment target reached over SSH."""

    server: str | None = None  # user@host or IP
    ssh_key: str = "~/.ssh/id_ed25519"
    ssh_port: int = 22

    @property
    def host(self) -> str | None:
        if self.server is None:
            return None
        return self.server.split("@")[-1]


@dataclass(frozen=True)
class StackConfig:
    """Complete, immutable stack configuration (secrets excluded)."""

    domain: str = ""
    acme_email: str | None = None
    timezone: str = "UTC"
    readiness: str = "healthy"
    executions_mode: str = "regular"
    images: ImagesConfig = field(default_factory=ImagesConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    stack: str | None = None

    @classmethod
    def from_dict(cls, d: dict, stack: str | None = None) -> "StackConfig":
        """Build a StackConfig from a (post-merge) config dict."""
        images_dict = d.get("images") or {}
        unknown = set(images_dict) - set(ImagesConfig.__dataclass_fields__)
        if unknown:
            raise ConfigError(f"Unknown image keys: {', '.join(sorted(unknown))}")

        db_dict = d.get("database") or {}
        remote_dict = d.get("remote") or {}

        readiness = d.get("readiness", "healthy")
        if readiness not in READINESS_MODES:
            raise ConfigError(f"readiness must be one of {', '.join(READINESS_MODES)}, got '{readiness}'")

        executions_mode = d.get("executions_mode", "regular")
        if executions_mode not in EXECUTION_MODES:
            raise ConfigError(
                f"executions_mode must be one of {', '.join(EXECUTION_MODES)}, got '{executions_mode}'"
            )

        return cls(
            domain=str(d.get("domain") or ""),
            acme_email=d.get("acme_email"),
            timezone=d.get("timezone", "UTC"),
            readiness=readiness,
            executions_mode=executions_mode,
            images=ImagesConfig(**images_dict),
            database=DatabaseConfig(
                name=db_dict.get("name", "n8n"),
                user=db_dict.get("user", "n8n"),
            ),
            remote=RemoteConfig(
                server=remote_dict.get("server"),
                ssh_key=remote_dict.get("ssh_key", "~/.ssh/id_ed25519"),
                ssh_port=int(remote_dict.get("ssh_port", 22)),
            ),
            stack=stack,
        )

    @property
    def public_url(self) -> str:
        return f"https://{self.domain}/"


@dataclass(frozen=True)
class Secrets:
    """The three shared secrets. Values never show up in repr()."""

    db_password: str = field(default="", repr=False)
    encryption_key: str = field(default="", repr=False)
    runners_auth_token: str = field(default="", repr=False)

    def get(self, name: str) -> str:
        if name not in SECRET_NAMES:
            raise KeyError(f"Unknown secret '{name}'")
        return getattr(self, name)

    def missing(self) -> list[str]:
        return [name for name in SECRET_NAMES if not getattr(self, name)]

    def require_complete(self):
        """Raise ConfigError if any secret is unset."""
        missing = self.missing()
        if missing:
            raise ConfigError(
                f"Missing secret(s): {', '.join(missing)}. "
                f"Set them with 'n8ndock config set <name> <value> --secret' or the N8NDOCK_* env vars."
            )

    def rotate(self, name: str, value: str) -> "Secrets":
        """Return a copy with one secret replaced."""
        if name not in SECRET_NAMES:
            raise KeyError(f"Unknown secret '{name}'")
        return replace(self, **{name: value})
