"""Site configuration: domain record, service settings, certdock.yaml loading."""

from certdock.site.site import SITE_FILE, deep_merge, load_site
from certdock.site.types import (
    AppConfig,
    CertbotConfig,
    ComposeConfig,
    DatabaseConfig,
    DomainRecord,
    HealthConfig,
    ProxyConfig,
    SiteConfig,
)

__all__ = [
    "SITE_FILE",
    "deep_merge",
    "load_site",
    "AppConfig",
    "CertbotConfig",
    "ComposeConfig",
    "DatabaseConfig",
    "DomainRecord",
    "HealthConfig",
    "ProxyConfig",
    "SiteConfig",
]
