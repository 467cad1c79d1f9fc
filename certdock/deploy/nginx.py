"""nginx reverse-proxy config generation: HTTP-only bootstrap and full HTTPS."""

import re

WEBROOT = "/var/www/certbot"
LETSENCRYPT_DIR = "/etc/letsencrypt"
PLACEHOLDER_DOMAIN = "yourdomain.com"


def certificate_paths(domain):
    """(fullchain, privkey) paths of a certificate bundle inside the proxy container."""
    live = f"{LETSENCRYPT_DIR}/live/{domain}"
    return f"{live}/fullchain.pem", f"{live}/privkey.pem"


def _upstream_block(app):
    return f"""upstream {app.upstream} {{
    server {app.service}:{app.port};
}}
"""


def _acme_location():
    return f"""    location /.well-known/acme-challenge/ {{
        root {WEBROOT};
    }}
"""


def _static_locations(app, cache=False):
    static_root = app.static_root.rstrip("/") + "/"
    media_root = app.media_root.rstrip("/") + "/"
    if cache:
        extra = """        expires 1M;
        access_log off;
        add_header Cache-Control "public, immutable";
"""
    else:
        extra = ""
    return f"""    location /static/ {{
        alias {static_root};
{extra}    }}

    location /media/ {{
        alias {media_root};
{extra}    }}
"""


def _proxy_location(app):
    return f"""    location / {{
        proxy_pass http://{app.upstream};
        proxy_set_header Host $host;
        proxy_set_header X-Real-IP $remote_addr;
        proxy_set_header X-Forwarded-For $proxy_add_x_forwarded_for;
        proxy_set_header X-Forwarded-Proto $scheme;
        proxy_redirect off;

        proxy_connect_timeout 60s;
        proxy_send_timeout 60s;
        proxy_read_timeout 60s;
    }}
"""


def generate_nginx_http_conf(site, record):
    """HTTP-only bootstrap config.

    Serves the ACME challenge path from the webroot and proxies everything
    else to the app, so the site is reachable before any certificate exists.
    """
    server_names = " ".join(record.names)
    return f"""{_upstream_block(site.app)}
server {{
    listen 80;
    server_name {server_names};

    client_max_body_size {site.proxy.client_max_body_size};

{_acme_location()}
{_proxy_location(site.app)}
{_static_locations(site.app)}}}
"""


def generate_nginx_https_conf(site, record):
    """Full HTTPS config referencing the certificate bundle of record.domain.

    Port 80 keeps answering ACME challenges (renewals) and redirects
    everything else to HTTPS.
    """
    server_names = " ".join(record.names)
    fullchain, privkey = certificate_paths(record.domain)
    return f"""{_upstream_block(site.app)}
# Redirect HTTP -> HTTPS
server {{
    listen 80;
    server_name {server_names};

{_acme_location()}
    location / {{
        return 301 https://$host$request_uri;
    }}
}}

# HTTPS server
server {{
    listen 443 ssl http2;
    server_name {server_names};

    ssl_certificate {fullchain};
    ssl_certificate_key {privkey};

    ssl_protocols TLSv1.2 TLSv1.3;
    ssl_ciphers ECDHE-RSA-AES128-GCM-SHA256:ECDHE-RSA-AES256-GCM-SHA384;
    ssl_prefer_server_ciphers off;
    ssl_session_cache shared:SSL:10m;
    ssl_session_timeout 10m;

    # Security headers
    add_header X-Frame-Options "SAMEORIGIN" always;
    add_header X-XSS-Protection "1; mode=block" always;
    add_header X-Content-Type-Options "nosniff" always;
    add_header Referrer-Policy "no-referrer-when-downgrade" always;
    add_header Content-Security-Policy "default-src 'self' http: https: data: blob: 'unsafe-inline'" always;

    # Gzip compression
    gzip on;
    gzip_vary on;
    gzip_min_length 1024;
    gzip_types text/plain text/css text/xml text/javascript application/javascript application/xml+rss application/json;

    client_max_body_size {site.proxy.client_max_body_size};

{_proxy_location(site.app)}
{_static_locations(site.app, cache=True)}
{_acme_location()}}}
"""


def generate_nginx_dockerfile(site):
    """Dockerfile that bakes nginx.conf into the proxy image."""
    return f"""FROM {site.proxy.image}
RUN rm /etc/nginx/conf.d/default.conf
COPY nginx.conf /etc/nginx/conf.d/
"""


def substitute_domain(content, domain, placeholder=PLACEHOLDER_DOMAIN):
    """Replace every occurrence of the placeholder domain in a tracked config."""
    return re.sub(re.escape(placeholder), lambda _: domain, content)
