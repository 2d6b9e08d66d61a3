"""Mock backend reachability checks.

The lab runs against LocalStack; its health endpoint reports the state of
every emulated service.
"""

import logging
from typing import Dict, Optional

import click
import requests

from modules.config_loader import load_config
from modules.exceptions import BackendUnavailableError

logger = logging.getLogger(__name__)

READY_STATES = ("available", "running")


def check_backend(url: Optional[str] = None, timeout: Optional[int] = None) -> Dict[str, str]:
    """Check that the mock backend answers its health endpoint.

    Args:
        url: Backend base URL; defaults to the configured mock backend
        timeout: Request timeout in seconds

    Returns:
        Mapping of service name to reported state

    Raises:
        BackendUnavailableError: If the backend is unreachable or unhealthy
    """
    config = load_config("aws")
    url = (url or config.MOCK_BACKEND_URL).rstrip("/")
    health_url = url + config.MOCK_HEALTH_PATH
    click.echo(f"  checking mock backend at {url}..")
    try:
        response = requests.get(health_url, timeout=timeout or config.MOCK_HEALTH_TIMEOUT)
    except requests.exceptions.RequestException as e:
        raise BackendUnavailableError(
            f"Cannot reach mock backend at {url}", context={"error": str(e)}
        ) from e
    if response.status_code != 200:
        raise BackendUnavailableError(
            f"Mock backend returned status {response.status_code}",
            context={"url": health_url},
        )
    try:
        services = response.json().get("services", {})
    except ValueError as e:
        raise BackendUnavailableError(
            "Mock backend health response is not JSON", context={"url": health_url}
        ) from e
    logger.debug(f"Mock backend services: {services}")
    click.echo(f"  Mock backend reachable at: {url}")
    return services


def service_ready(services: Dict[str, str], service: str) -> bool:
    """Return True if the backend reports ``service`` as usable."""
    return services.get(service.lower()) in READY_STATES
