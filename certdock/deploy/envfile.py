"""Env override file and .gitignore rendering."""

import re

ENV_PROD_FILE = ".env.prod"
ENV_LOCAL_FILE = ".env.prod.local"
GITIGNORE_FILE = ".gitignore"

_ALLOWED_HOSTS_RE = re.compile(r"^ALLOWED_HOSTS=.*$", re.MULTILINE)


def allowed_hosts(record, include_ip=True):
    """ALLOWED_HOSTS entries for a domain record: names, public IP, localhost."""
    hosts = list(record.names)
    if include_ip and record.public_ip:
        hosts.append(record.public_ip)
    hosts.append("localhost")
    return hosts


def generate_env_local(record):
    """Render .env.prod.local: local production overrides, never committed."""
    return f"""# Local production overrides - DO NOT COMMIT THIS FILE
# Generated by certdock; listed in .gitignore

# Domain configuration
ALLOWED_HOSTS={",".join(allowed_hosts(record))}

# Your other production settings go here
# DEBUG=False
# SECRET_KEY=your-production-secret-key
"""


def update_allowed_hosts(content, hosts):
    """Rewrite the ALLOWED_HOSTS line of an env file, appending it if absent."""
    line = f"ALLOWED_HOSTS={','.join(hosts)}"
    if _ALLOWED_HOSTS_RE.search(content):
        return _ALLOWED_HOSTS_RE.sub(lambda _: line, content, count=1)
    if content and not content.endswith("\n"):
        content += "\n"
    return content + line + "\n"


def merge_gitignore(content, entries):
    """Append entries missing from a .gitignore body (exact line match).

    Returns (new_content, added_entries).
    """
    content = content or ""
    existing = {line.strip() for line in content.splitlines()}
    added = [entry for entry in entries if entry not in existing]
    if not added:
        return content, []
    if content and not content.endswith("\n"):
        content += "\n"
    return content + "".join(f"{entry}\n" for entry in added), added
