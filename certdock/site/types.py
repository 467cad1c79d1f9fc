"""Site configuration dataclass types."""

import ipaddress
import re
from dataclasses import dataclass, field

_HOSTNAME_RE = re.compile(r"^(?=.{1,253}$)([A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?\.)*[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?$")


@dataclass(frozen=True)
class DomainRecord:
    """Operator-supplied domain inputs. Immutable for the duration of a run."""

    domain: str
    email: str
    public_ip: str = ""
    include_www: bool = True

    @property
    def alias(self) -> str | None:
        """The www variant, or None when only the bare domain is served."""
        return f"www.{self.domain}" if self.include_www else None

    @property
    def names(self) -> list[str]:
        """Domain names in certificate order: primary first."""
        return [self.domain, self.alias] if self.alias else [self.domain]

    def validate(self, require_ip=False):
        """Raise ValueError when a required field is missing or malformed."""
        missing = [name for name, value in (("domain", self.domain), ("email", self.email)) if not value]
        if require_ip and not self.public_ip:
            missing.append("public_ip")
        if missing:
            raise ValueError(f"All fields are required! Missing: {', '.join(missing)}")

        if "://" in self.domain or "/" in self.domain or not _HOSTNAME_RE.match(self.domain):
            raise ValueError(f"Invalid domain name: '{self.domain}'")
        if self.email.count("@") != 1 or self.email.startswith("@") or self.email.endswith("@"):
            raise ValueError(f"Invalid email address: '{self.email}'")
        if self.public_ip:
            try:
                ipaddress.ip_address(self.public_ip)
            except ValueError:
                raise ValueError(f"Invalid public IP: '{self.public_ip}'") from None


@dataclass
class AppConfig:
    """Django web application service."""

    service: str = "web"
    port: int = 8000
    upstream: str = "sbm_backend"
    build_context: str = "./sbm_backend"
    dockerfile: str = "Dockerfile.prod"
    command: str = (
        "uv run python manage.py migrate"
        " && uv run python manage.py collectstatic --noinput"
        " && uv run gunicorn sbm_backend.wsgi:application -c gunicorn.conf.py"
    )
    static_root: str = "/usr/src/sbm_backend/staticfiles"
    media_root: str = "/usr/src/sbm_backend/media"


@dataclass
class DatabaseConfig:
    """Postgres service used by the HTTP-only bootstrap stack."""

    image: str = "postgres:15.5-alpine"
    user: str = "postgresuser"
    password: str = "postgrespassword"
    name: str = "sbmdb"


@dataclass
class ProxyConfig:
    """nginx reverse proxy."""

    image: str = "nginx:1.25-alpine"
    client_max_body_size: str = "100M"


@dataclass
class CertbotConfig:
    """ACME client and renewal agent."""

    image: str = "certbot/certbot"
    renew_interval: str = "12h"
    reload_interval: str = "6h"
    staging: bool = False


@dataclass
class ComposeConfig:
    """Container orchestration tool invocation."""

    command: str = "docker compose"
    base_file: str = "docker-compose.prod.yml"


@dataclass
class HealthConfig:
    """Reachability polling parameters."""

    attempts: int = 5
    delay: float = 15
    settle: float = 30


@dataclass
class SiteConfig:
    """Complete site configuration."""

    domain: DomainRecord | None = None
    app: AppConfig = field(default_factory=AppConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    proxy: ProxyConfig = field(default_factory=ProxyConfig)
    certbot: CertbotConfig = field(default_factory=CertbotConfig)
    compose: ComposeConfig = field(default_factory=ComposeConfig)
    health: HealthConfig = field(default_factory=HealthConfig)

    @classmethod
    def from_dict(cls, d: dict) -> "SiteConfig":
        """Build a SiteConfig from a (post-merge) config dict."""
        domain = None
        if d.get("domain") or d.get("email"):
            domain = DomainRecord(
                domain=str(d.get("domain") or "").strip().lower(),
                email=str(d.get("email") or "").strip(),
                public_ip=str(d.get("public_ip") or "").strip(),
                include_www=bool(d.get("include_www", True)),
            )

        return cls(
            domain=domain,
            app=AppConfig(**d.get("app", {})),
            database=DatabaseConfig(**d.get("database", {})),
            proxy=ProxyConfig(**d.get("proxy", {})),
            certbot=CertbotConfig(**d.get("certbot", {})),
            compose=ComposeConfig(**d.get("compose", {})),
            health=HealthConfig(**d.get("health", {})),
        )
