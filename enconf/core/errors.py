# /enconf/core/errors.py
# Error taxonomy for configuration loading. Every error here is fatal to startup.
from typing import Iterable


class ConfigError(Exception):
    """Base class for every configuration defect."""

    def _key(self) -> tuple:
        return self.args

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash((type(self).__name__, self._key()))


class MissingRequiredField(ConfigError):
    def __init__(self, name: str):
        super().__init__(f"Missing required field: {name}")
        self.name = name

    def _key(self) -> tuple:
        return (self.name,)


class InvalidAddressFormat(ConfigError):
    def __init__(self, value):
        super().__init__(f"Invalid H160 address: {value!r}")
        self.value = value

    def _key(self) -> tuple:
        return (self.value,)


class InvalidSection(ConfigError):
    def __init__(self, path: str):
        super().__init__(f"Section is not a mapping: {path}")
        self.path = path

    def _key(self) -> tuple:
        return (self.path,)


class UnsupportedConfigFormat(ConfigError):
    def __init__(self, path: str):
        super().__init__(f"Unsupported configuration format: {path}")
        self.path = path

    def _key(self) -> tuple:
        return (self.path,)


class EnvParseError(ConfigError):
    def __init__(self, key: str, reason: str):
        super().__init__(f"Cannot parse {key}: {reason}")
        self.key = key
        self.reason = reason

    def _key(self) -> tuple:
        return (self.key, self.reason)


class PortConflict(ConfigError):
    def __init__(self, port: int):
        super().__init__(f"Port {port} is exposed by more than one service")
        self.port = port

    def _key(self) -> tuple:
        return (self.port,)


class VolumeConflict(ConfigError):
    def __init__(self, path: str):
        super().__init__(f"Host path {path} is bound by more than one service")
        self.path = path

    def _key(self) -> tuple:
        return (self.path,)


class DuplicateService(ConfigError):
    def __init__(self, name: str):
        super().__init__(f"Service {name} is declared more than once")
        self.name = name

    def _key(self) -> tuple:
        return (self.name,)


class UnknownDependency(ConfigError):
    def __init__(self, service: str, dependency: str):
        super().__init__(f"Service {service} depends on unknown service {dependency}")
        self.service = service
        self.dependency = dependency

    def _key(self) -> tuple:
        return (self.service, self.dependency)


class UnknownNetwork(ConfigError):
    def __init__(self, name: str):
        super().__init__(f"Unknown network preset: {name}")
        self.name = name

    def _key(self) -> tuple:
        return (self.name,)


class ConfigValidationError(ConfigError):
    """Every defect found in a single validation pass."""

    def __init__(self, errors: Iterable[ConfigError]):
        self.errors = tuple(errors)
        lines = "\n".join(f"  - {e}" for e in self.errors)
        super().__init__(f"{len(self.errors)} configuration error(s):\n{lines}")

    def _key(self) -> tuple:
        return self.errors


def raise_collected(errors: list) -> None:
    if errors:
        raise ConfigValidationError(errors)


class DependencyCycle(ConfigError):
    def __init__(self, service: str):
        super().__init__(f"Service {service} is part of a startup dependency cycle")
        self.service = service

    def _key(self) -> tuple:
        return (self.service,)
