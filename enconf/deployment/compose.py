# /enconf/deployment/compose.py
# Renders a DeploymentProfile as a docker-compose document.
from typing import Any, Dict
import yaml

from enconf.deployment.profile import DeploymentProfile, Service

COMPOSE_VERSION = "3.2"


def _service_entry(svc: Service) -> Dict[str, Any]:
    entry: Dict[str, Any] = {"image": svc.image}
    if svc.command:
        entry["command"] = list(svc.command)
    published = [p for p in svc.ports if p.published]
    exposed = [p.port for p in svc.ports if not p.published]
    if published:
        entry["ports"] = [
            f"{p.host_ip}:{p.port}:{p.port}" if p.host_ip else f"{p.port}:{p.port}"
            for p in published
        ]
    if svc.depends_on is not None:
        entry["depends_on"] = {svc.depends_on.service: {"condition": svc.depends_on.condition}}
    if svc.volumes:
        entry["volumes"] = [
            {"type": "bind", "source": v.source, "target": v.target} for v in svc.volumes
        ]
    if exposed:
        entry["expose"] = exposed
    if svc.healthcheck is not None:
        entry["healthcheck"] = {
            "interval": svc.healthcheck.interval,
            "timeout": svc.healthcheck.timeout,
            "test": svc.healthcheck.test,
        }
    if svc.environment:
        entry["environment"] = dict(svc.environment)
    return entry


def to_compose(profile: DeploymentProfile) -> Dict[str, Any]:
    return {
        "version": COMPOSE_VERSION,
        "services": {svc.name: _service_entry(svc) for svc in profile.services},
    }


def render_compose(profile: DeploymentProfile) -> str:
    return yaml.safe_dump(to_compose(profile), sort_keys=False, default_flow_style=False)
