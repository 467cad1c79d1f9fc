"""Unit tests for site config loading and the domain record."""

import pytest
import yaml

from certdock.site import DomainRecord, SiteConfig, deep_merge, load_site

# ── DomainRecord ────────────────────────────────────────────────────


def test_names_with_www_alias():
    record = DomainRecord(domain="example.org", email="a@example.org")
    assert record.alias == "www.example.org"
    assert record.names == ["example.org", "www.example.org"]


def test_names_without_alias():
    record = DomainRecord(domain="example.org", email="a@example.org", include_www=False)
    assert record.alias is None
    assert record.names == ["example.org"]


def test_record_is_immutable():
    record = DomainRecord(domain="example.org", email="a@example.org")
    with pytest.raises(AttributeError):
        record.domain = "other.org"


def test_validate_accepts_complete_record():
    DomainRecord(domain="example.org", email="a@example.org", public_ip="203.0.113.10").validate(require_ip=True)


def test_validate_missing_fields():
    with pytest.raises(ValueError, match="All fields are required"):
        DomainRecord(domain="", email="").validate()


def test_validate_ip_required_only_for_bootstrap():
    record = DomainRecord(domain="example.org", email="a@example.org")
    record.validate()
    with pytest.raises(ValueError, match="public_ip"):
        record.validate(require_ip=True)


@pytest.mark.parametrize("domain", ["https://example.org", "example.org/path", "-bad.org", "exa mple.org"])
def test_validate_rejects_bad_domain(domain):
    with pytest.raises(ValueError, match="Invalid domain"):
        DomainRecord(domain=domain, email="a@example.org").validate()


def test_validate_rejects_bad_email():
    with pytest.raises(ValueError, match="Invalid email"):
        DomainRecord(domain="example.org", email="not-an-email").validate()


def test_validate_rejects_bad_ip():
    with pytest.raises(ValueError, match="Invalid public IP"):
        DomainRecord(domain="example.org", email="a@example.org", public_ip="300.1.1.1").validate(require_ip=True)


# ── SiteConfig / load_site ──────────────────────────────────────────


def test_defaults_match_django_layout():
    site = SiteConfig()
    assert site.domain is None
    assert site.app.upstream == "sbm_backend"
    assert site.app.service == "web"
    assert site.app.port == 8000
    assert site.compose.base_file == "docker-compose.prod.yml"
    assert site.health.attempts == 5
    assert site.health.delay == 15


def test_load_site_without_file(tmp_path):
    site = load_site(str(tmp_path))
    assert site == SiteConfig()


def test_load_site_reads_yaml(tmp_path):
    config = {
        "domain": "Example.ORG",
        "email": "ops@example.org",
        "include_www": False,
        "app": {"upstream": "shop", "port": 9000},
        "health": {"attempts": 3},
    }
    (tmp_path / "certdock.yaml").write_text(yaml.dump(config))

    site = load_site(str(tmp_path))
    assert site.domain.domain == "example.org"
    assert site.domain.include_www is False
    assert site.app.upstream == "shop"
    assert site.app.port == 9000
    assert site.app.service == "web"
    assert site.health.attempts == 3
    assert site.health.delay == 15


def test_load_site_overrides_win_and_none_is_ignored(tmp_path):
    (tmp_path / "certdock.yaml").write_text(yaml.dump({"compose": {"command": "docker-compose"}}))

    site = load_site(str(tmp_path), {"compose": {"command": None}, "certbot": {"staging": True}})
    assert site.compose.command == "docker-compose"
    assert site.certbot.staging is True

    site = load_site(str(tmp_path), {"compose": {"command": "podman compose"}})
    assert site.compose.command == "podman compose"


def test_load_site_unknown_top_level_key(tmp_path):
    (tmp_path / "certdock.yaml").write_text(yaml.dump({"domian": "typo.org"}))
    with pytest.raises(ValueError, match="Unknown keys"):
        load_site(str(tmp_path))


def test_load_site_unknown_section_field(tmp_path):
    (tmp_path / "certdock.yaml").write_text(yaml.dump({"app": {"bogus": 1}}))
    with pytest.raises(ValueError, match="Invalid site config"):
        load_site(str(tmp_path))


def test_load_site_section_must_be_mapping(tmp_path):
    (tmp_path / "certdock.yaml").write_text(yaml.dump({"proxy": "nginx"}))
    with pytest.raises(ValueError, match="must be a mapping"):
        load_site(str(tmp_path))


def test_deep_merge_nested():
    base = {"app": {"port": 8000, "service": "web"}, "domain": "a.org"}
    result = deep_merge(base, {"app": {"port": 9000}})
    assert result == {"app": {"port": 9000, "service": "web"}, "domain": "a.org"}
    assert base["app"]["port"] == 8000


@pytest.mark.parametrize("attempts", [0, -1, "5", 2.5, True])
def test_load_site_rejects_bad_attempts(tmp_path, attempts):
    (tmp_path / "certdock.yaml").write_text(yaml.dump({"health": {"attempts": attempts}}))
    with pytest.raises(ValueError, match="health.attempts must be an integer >= 1"):
        load_site(str(tmp_path))


@pytest.mark.parametrize("field", ["delay", "settle"])
def test_load_site_rejects_bad_timings(tmp_path, field):
    (tmp_path / "certdock.yaml").write_text(yaml.dump({"health": {field: -1}}))
    with pytest.raises(ValueError, match=f"health.{field} must be a number >= 0"):
        load_site(str(tmp_path))

    (tmp_path / "certdock.yaml").write_text(yaml.dump({"health": {field: "15s"}}))
    with pytest.raises(ValueError, match=f"health.{field}"):
        load_site(str(tmp_path))


def test_load_site_accepts_zero_delay(tmp_path):
    (tmp_path / "certdock.yaml").write_text(yaml.dump({"health": {"attempts": 1, "delay": 0, "settle": 0}}))
    site = load_site(str(tmp_path))
    assert site.health.attempts == 1
    assert site.health.delay == 0
