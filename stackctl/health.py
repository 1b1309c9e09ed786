"""HTTP health probes for the gateway and backend."""

import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import List, Optional

from stackctl.config import StackSettings
from stackctl.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ProbeResult:
    """Outcome of one probe."""
    name: str
    url: str
    healthy: bool
    status: Optional[int] = None
    error: Optional[str] = None


def probe(name: str, url: str, timeout: float) -> ProbeResult:
    """GET ``url``. Any connection error or HTTP status >= 400 is unhealthy."""
    req = urllib.request.Request(url, headers={"Accept": "application/json"})
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            return ProbeResult(name, url, healthy=resp.status < 400, status=resp.status)
    except urllib.error.HTTPError as e:
        return ProbeResult(name, url, healthy=False, status=e.code, error=f"HTTP {e.code}")
    except urllib.error.URLError as e:
        return ProbeResult(name, url, healthy=False, error=str(e.reason))
    except (TimeoutError, OSError) as e:
        return ProbeResult(name, url, healthy=False, error=str(e) or type(e).__name__)


def health_targets(settings: StackSettings) -> List[tuple]:
    base = f"http://{settings.health_host}:{settings.health_port}"
    return [
        ("gateway", base + settings.gateway_health_path),
        ("backend", base + settings.backend_health_path),
    ]


def check_health(settings: StackSettings) -> List[ProbeResult]:
    """Run every probe and report each one; a failure never stops the rest."""
    print("Checking service health...")
    results = []
    for name, url in health_targets(settings):
        result = probe(name, url, settings.health_timeout)
        if result.healthy:
            print(f"{name:<10} [OK] {url} (HTTP {result.status})")
        else:
            print(f"{name:<10} [!!] {url} ({result.error})")
            logger.warning(f"{name.capitalize()} health check failed", url=url, error=result.error)
        results.append(result)
    return results
