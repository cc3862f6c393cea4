"""Deploy parameters dataclass."""

from dataclasses import dataclass, field

from n8ndock.stack.types import Secrets, StackConfig


@dataclass
class DeployParams:
    """All parameters needed for a single deployment over SSH."""

    server: str  # user@host or IP
    ssh_key: str  # path to SSH private key
    ssh_port: int = 22
    config: StackConfig = field(default_factory=StackConfig)
    secrets: Secrets = field(default_factory=Secrets)
    dry_run: bool = False
    delete_volumes: bool = False
    check_endpoint: bool = False

    @property
    def host(self) -> str:
        return self.server.split("@")[-1] if "@" in self.server else self.server
