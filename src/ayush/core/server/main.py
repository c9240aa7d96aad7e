"""Command-line entry point for the AYUSH server.

Installed as the ``ayush-health`` script; ``python -m ayush.core.server.main``
does the same. Host, port and log level come from ``AYUSH_*`` settings.
Access tokens travel in tool arguments, so the server only listens on a
loopback address unless ``AYUSH_ALLOW_INSECURE_BIND`` is set.
"""

from __future__ import annotations

import logging
from ipaddress import ip_address

from ayush.core.config.settings import Settings, get_settings
from ayush.core.server.app import create_app

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level_name: str) -> None:
    level = logging.getLevelName(level_name.upper())
    logging.basicConfig(level=level if isinstance(level, int) else logging.INFO, format=LOG_FORMAT)


def ensure_safe_bind(settings: Settings) -> None:
    """Raise RuntimeError for a non-loopback host unless explicitly allowed."""
    if settings.ayush_allow_insecure_bind:
        return
    host = settings.ayush_host
    if host == "localhost":
        return
    try:
        if ip_address(host).is_loopback:
            return
    except ValueError:
        pass
    raise RuntimeError(
        f"Refusing to listen on {host}: access tokens would travel unencrypted. "
        "Put the server behind a TLS proxy and set AYUSH_ALLOW_INSECURE_BIND=true."
    )


def run() -> None:
    settings = get_settings()
    configure_logging(settings.ayush_log_level)
    ensure_safe_bind(settings)

    logger.info("AYUSH Personal Health listening on %s:%d", settings.ayush_host, settings.ayush_port)
    create_app().run(
        transport="streamable-http",
        host=settings.ayush_host,
        port=settings.ayush_port,
    )


if __name__ == "__main__":
    run()
