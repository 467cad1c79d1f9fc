"""Fixtures for workflow tests: HTTP polling and probes replaced by switchable fakes."""

import pytest


@pytest.fixture
def network(monkeypatch):
    """Replace HTTP polling and probes; returns a dict of outcomes the test can change."""
    outcome = {"reachable": True, "redirect": True, "https": True, "polled": []}

    async def fake_wait(url, attempts=5, delay=15, **kwargs):
        outcome["polled"].append((url, attempts, delay))
        return outcome["reachable"]

    async def fake_redirect(url, **kwargs):
        return outcome["redirect"]

    async def fake_https(url, **kwargs):
        return outcome["https"]

    monkeypatch.setattr("certdock.orchestrate.steps.wait_until_reachable", fake_wait)
    monkeypatch.setattr("certdock.orchestrate.steps.probe_redirect", fake_redirect)
    monkeypatch.setattr("certdock.orchestrate.steps.probe_https", fake_https)
    monkeypatch.setattr("certdock.orchestrate.bootstrap.HTTPS_SETTLE", 0)
    monkeypatch.setattr("certdock.orchestrate.single_domain.HTTPS_SETTLE", 0)
    monkeypatch.setattr("certdock.orchestrate.ssl_setup.RELOAD_SETTLE", 0)
    return outcome
