# /enconf/deployment/profile.py
# Static description of the services that make up a deployment. Nothing here
# starts processes or polls health checks; an external orchestrator does that.
import posixpath
from typing import List, Optional, Tuple
from pydantic import BaseModel, Field, model_validator

from enconf.core.errors import (
    ConfigError,
    DependencyCycle,
    DuplicateService,
    PortConflict,
    UnknownDependency,
    VolumeConflict,
    raise_collected,
)


class _Frozen(BaseModel):
    class Config:
        frozen = True
        extra = "forbid"


class PortMapping(_Frozen):
    """A port exposed by a service. Published ports are also bound on the host."""
    port: int = Field(ge=1, le=65535)
    host_ip: Optional[str] = None
    published: bool = False


class VolumeBind(_Frozen):
    source: str
    target: str

    @property
    def host_path(self) -> str:
        return posixpath.normpath(self.source)


class HealthCheck(_Frozen):
    test: str
    interval: str = "1s"
    timeout: str = "3s"


class HealthDependency(_Frozen):
    service: str
    condition: str = "service_healthy"


class Service(_Frozen):
    name: str
    image: str
    command: Tuple[str, ...] = ()
    ports: Tuple[PortMapping, ...] = ()
    volumes: Tuple[VolumeBind, ...] = ()
    environment: Tuple[Tuple[str, str], ...] = ()
    depends_on: Optional[HealthDependency] = None
    healthcheck: Optional[HealthCheck] = None


class DeploymentProfile(_Frozen):
    services: Tuple[Service, ...]

    @model_validator(mode="after")
    def check_consistency(self) -> "DeploymentProfile":
        errors: List[ConfigError] = []
        names = set()
        ports = set()
        paths = set()
        for svc in self.services:
            if svc.name in names:
                errors.append(DuplicateService(svc.name))
            names.add(svc.name)
            for mapping in svc.ports:
                if mapping.port in ports:
                    errors.append(PortConflict(mapping.port))
                ports.add(mapping.port)
            for bind in svc.volumes:
                if bind.host_path in paths:
                    errors.append(VolumeConflict(bind.host_path))
                paths.add(bind.host_path)

        for svc in self.services:
            dep = svc.depends_on
            if dep is not None and (dep.service not in names or dep.service == svc.name):
                errors.append(UnknownDependency(svc.name, dep.service))

        if not errors:
            errors.extend(self._cycles())
        raise_collected(errors)
        return self

    def _cycles(self) -> List[ConfigError]:
        deps = {s.name: s.depends_on.service for s in self.services if s.depends_on}
        found = []
        for start in deps:
            seen = {start}
            node = deps.get(start)
            while node is not None:
                if node == start:
                    found.append(DependencyCycle(start))
                    break
                if node in seen:
                    break
                seen.add(node)
                node = deps.get(node)
        return found

    def service(self, name: str) -> Service:
        for svc in self.services:
            if svc.name == name:
                return svc
        raise KeyError(name)

    def startup_order(self) -> List[str]:
        """Service names with every health dependency ahead of its dependent."""
        order: List[str] = []

        def visit(svc: Service):
            if svc.name in order:
                return
            if svc.depends_on is not None:
                visit(self.service(svc.depends_on.service))
            order.append(svc.name)

        for svc in self.services:
            visit(svc)
        return order
