"""``kairos`` entry point.

No arguments opens the terminal UI, ``kairos shell`` the line shell, and
anything else runs once through the dispatcher.
"""

from __future__ import annotations

import dataclasses
import importlib
import logging
import sys
from typing import Callable, Optional, Sequence

from kairos import __version__
from kairos.cli import render
from kairos.cli.commands import build_command_spec
from kairos.cli.dispatch import CommandDispatcher
from kairos.cli.shell import Shell
from kairos.config import KairosConfig, get_config
from kairos.core.errors import KairosError, ServiceError
from kairos.core.ports import Services
from kairos.logging_config import setup_logging

logger = logging.getLogger(__name__)

ServicesFactory = Callable[[KairosConfig], Services]


def load_services(config: KairosConfig) -> Services:
    """Build the collaborator bundle from ``backend.factory``.

    Intelligence services are dropped unless ``llm.enabled`` is set.
    """
    factory_path = config.backend.factory
    if not factory_path:
        raise ServiceError(
            "no backend configured: set backend.factory in ~/.kairos/config.yml "
            "or KAIROS_BACKEND=package.module:callable"
        )
    module_name, _, attr = factory_path.partition(":")
    try:
        factory: ServicesFactory = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as exc:
        raise ServiceError(f"cannot load backend factory {factory_path}: {exc}") from exc

    services = factory(config)
    if not config.llm.enabled:
        services = dataclasses.replace(services, intent=None, explain=None, help=None, draft=None)
    logger.info("backend loaded from %s (llm %s)", factory_path, "on" if config.llm.enabled else "off")
    return services


def _run_tui(services: Services, config: KairosConfig) -> int:
    from kairos.cli.tui.app import KairosApp

    KairosApp(services, config).run()
    return 0


def _run_once(services: Services, config: KairosConfig, argv: list[str]) -> int:
    dispatcher = CommandDispatcher(services, config=config)
    result = dispatcher.run_tokens(argv)
    if result.is_error:
        sys.stderr.write(f"kairos: {result.output}\n")
        if result.usage:
            sys.stderr.write(f"{result.usage}\n")
            return 2
        return 1
    shell = Shell(dispatcher)
    shell.handle(result)
    return 1 if shell.failed else 0


def _main_impl(argv: Sequence[str]) -> int:
    args = list(argv)
    if args and args[0] in ("-h", "--help"):
        print(render.format_command_list(build_command_spec().help_infos()), end="")
        return 0
    if args and args[0] == "--version":
        print(f"kairos {__version__}")
        return 0

    config = get_config()
    setup_logging()
    try:
        services = load_services(config)
    except KairosError as exc:
        sys.stderr.write(f"kairos: {exc}\n")
        return 1

    if not args:
        return _run_tui(services, config)
    if args[0] == "shell":
        return Shell.from_config(CommandDispatcher(services, config=config)).run()
    return _run_once(services, config, args)


def main(argv: Optional[Sequence[str]] = None) -> None:
    try:
        sys.exit(_main_impl(sys.argv[1:] if argv is None else argv))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
