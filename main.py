# /main.py
# Entrypoint: validates node configuration and emits the env surface or the
# docker-compose deployment. Any configuration error halts with exit code 1.
import argparse
import sys
from pydantic import ValidationError

from enconf.contracts.parser import load_contracts_file
from enconf.core.config import LOG_LEVELS, get_settings
from enconf.core.errors import ConfigError, ConfigValidationError
from enconf.core.logger import bind_source, configure_logging, get_logger
from enconf.deployment.builder import build_external_node_profile
from enconf.deployment.compose import render_compose
from enconf.deployment.presets import default_runtime
from enconf.env.mapper import ExternalNodeConfig, export_env, load_from_env

log = get_logger("enconf.main")


def _node_config(args) -> ExternalNodeConfig:
    bind_source(args.contracts)
    contracts = load_contracts_file(args.contracts)
    runtime = default_runtime(args.network, database_url=args.database_url)
    return ExternalNodeConfig(contracts=contracts, runtime=runtime)


def cmd_validate(args) -> None:
    bind_source(args.contracts)
    load_contracts_file(args.contracts)
    log.info("CONFIG_VALIDATION_PASSED", path=args.contracts)


def cmd_env(args) -> None:
    config = _node_config(args)
    for key, value in export_env(config.contracts, config.runtime):
        print(f"{key}={value}")


def cmd_compose(args) -> None:
    config = _node_config(args)
    profile = build_external_node_profile(
        config,
        network=args.network,
        volumes_root=args.volumes_root,
        snapshots_recovery=not args.no_snapshots_recovery,
    )
    sys.stdout.write(render_compose(profile))


def cmd_check_env(args) -> None:
    bind_source("environment")
    load_from_env()
    log.info("CONFIG_VALIDATION_PASSED", path="environment")


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(prog="enconf", description="External node configuration tool")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL, type=str.upper, choices=LOG_LEVELS)
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("validate", help="Validate a contracts document")
    p.add_argument("--contracts", required=True)
    p.set_defaults(func=cmd_validate)

    for name, func, help_text in (
        ("env", cmd_env, "Print the node environment"),
        ("compose", cmd_compose, "Print the docker-compose deployment"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--contracts", required=True)
        p.add_argument("--network", default=settings.DEFAULT_NETWORK)
        p.add_argument("--database-url", default=None)
        p.set_defaults(func=func)
        if name == "compose":
            p.add_argument("--volumes-root", default=settings.VOLUMES_ROOT)
            p.add_argument("--no-snapshots-recovery", action="store_true")

    p = sub.add_parser("check-env", help="Validate the current process environment")
    p.set_defaults(func=cmd_check_env)
    return parser


def main(argv=None) -> int:
    try:
        parser = build_parser()
    except ValidationError as e:
        configure_logging("INFO")
        log.critical("FAILED_TO_LOAD_SETTINGS", error=str(e))
        return 1
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    try:
        args.func(args)
    except ConfigValidationError as e:
        for error in e.errors:
            log.critical("CONFIG_ERROR", kind=type(error).__name__, error=str(error))
        return 1
    except ConfigError as e:
        log.critical("CONFIG_ERROR", kind=type(e).__name__, error=str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
