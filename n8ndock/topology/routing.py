"""Edge proxy routing: the domain -> backend rule and Caddyfile rendering."""

import re
from dataclasses import dataclass

from n8ndock.stack.types import ConfigError, StackConfig
from n8ndock.topology.services import n8n_backend_url

_LABEL = r"(?!-)[A-Za-z0-9-]{1,63}(?<!-)"
_HOSTNAME_RE = re.compile(rf"^{_LABEL}(\.{_LABEL})+$")


@dataclass(frozen=True)
class RouteRule:
    domain: str
    backend: str


def validate_domain(domain: str) -> str:
    """Check the domain is a syntactically valid FQDN.

    DNS is not consulted: pointing the name at the host is the operator's job.
    """
    if not domain:
        raise ConfigError("domain is not set. Run 'n8ndock config set domain <name>'.")
    if len(domain) > 253 or not _HOSTNAME_RE.match(domain):
        raise ConfigError(f"Invalid domain name: '{domain}'")
    return domain.lower()


def route_rules(config: StackConfig) -> list[RouteRule]:
    """The edge proxy's routing table: exactly one rule."""
    return [RouteRule(domain=validate_domain(config.domain), backend=n8n_backend_url())]


def generate_caddyfile(rules: list[RouteRule], email: str | None = None) -> str:
    """Render a Caddyfile with one site block per rule.

    Caddy obtains certificates for each site address automatically once the
    name resolves to the host and ports 80/443 are reachable.
    """
    parts = []
    if email:
        parts.append(f"{{\n\temail {email}\n}}\n")

    for rule in rules:
        parts.append(
            f"""{rule.domain} {{
\treverse_proxy {rule.backend} {{
\t\tflush_interval -1
\t}}
}}
"""
        )

    return "\n".join(parts)
