# /enconf/deployment/builder.py
# Assembles the database + external node profile from a loaded node config.
import re
from typing import Optional
from urllib.parse import urlsplit

from enconf.core.errors import EnvParseError
from enconf.core.logger import get_logger
from enconf.deployment.presets import DEFAULT_POSTGRES_PASSWORD, get_preset
from enconf.deployment.profile import (
    DeploymentProfile,
    HealthCheck,
    HealthDependency,
    PortMapping,
    Service,
    VolumeBind,
)
from enconf.env.mapper import ExternalNodeConfig, export_env

log = get_logger(__name__)

POSTGRES_SERVICE = "postgres"
NODE_SERVICE = "external-node"
POSTGRES_IMAGE = "postgres:14"
POSTGRES_PORT = 5432
POSTGRES_DATA_DIR = "/var/lib/postgresql/data"
SNAPSHOTS_RECOVERY_FLAG = "--enable-snapshots-recovery"
_DATABASE_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def _database_name(database_url: str) -> str:
    # The name is spliced into SQL inside a shell command, so only identifiers pass.
    name = urlsplit(database_url).path.lstrip("/") or "postgres"
    if not _DATABASE_NAME.fullmatch(name):
        raise EnvParseError("DATABASE_URL", f"database name {name!r} is not a plain identifier")
    return name


def _restore_finished_check(database: str) -> HealthCheck:
    # Healthy once no pg_restore session is running against the node database.
    query = (
        "select exists (select * from pg_stat_activity "
        f"where datname = '{database}' and application_name = 'pg_restore')"
    )
    return HealthCheck(test=f'psql -U postgres -c "{query}" | grep -e ".f$"')


def build_external_node_profile(
    config: ExternalNodeConfig,
    *,
    network: str = "mainnet",
    volumes_root: str = "volumes",
    postgres_image: str = POSTGRES_IMAGE,
    node_image: Optional[str] = None,
    snapshots_recovery: bool = True,
    postgres_password: str = DEFAULT_POSTGRES_PASSWORD,
) -> DeploymentProfile:
    preset = get_preset(network)
    runtime = config.runtime
    prefix = f"{volumes_root.rstrip('/')}/{network}-external-node"

    postgres = Service(
        name=POSTGRES_SERVICE,
        image=postgres_image,
        command=("postgres", "-c", "max_connections=200"),
        ports=(PortMapping(port=POSTGRES_PORT, host_ip="127.0.0.1", published=True),),
        volumes=(VolumeBind(source=f"{prefix}-postgres", target=POSTGRES_DATA_DIR),),
        environment=(("POSTGRES_PASSWORD", postgres_password),),
        healthcheck=_restore_finished_check(_database_name(runtime.database_url)),
    )
    node = Service(
        name=NODE_SERVICE,
        image=node_image or preset.node_image,
        command=(SNAPSHOTS_RECOVERY_FLAG,) if snapshots_recovery else (),
        ports=tuple(PortMapping(port=p) for p in runtime.exposed_ports),
        volumes=(
            VolumeBind(source=f"{prefix}-state-keeper", target=runtime.state_cache_path),
            VolumeBind(source=f"{prefix}-merkle-tree", target=runtime.merkle_tree_path),
        ),
        environment=tuple(export_env(config.contracts, runtime)),
        depends_on=HealthDependency(service=POSTGRES_SERVICE),
    )
    profile = DeploymentProfile(services=(postgres, node))
    log.info(
        "DEPLOYMENT_PROFILE_BUILT",
        network=network,
        services=profile.startup_order(),
        snapshots_recovery=snapshots_recovery,
    )
    return profile
