"""CLI entrypoints for breadcrumbs commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List

from . import __version__
from .config import PluginConfig, decode_config, load_config
from .errors import BreadcrumbsError
from .logging import configure_logging
from .provisioner import Provisioner
from .remote.ssh import SSHCommunicator

_NO_DEBUG = {"debug_config": False, "debug_manifest": False, "debug_breadcrumbs": False}


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_template_options(parser: argparse.ArgumentParser) -> None:
    _add_verbose_option(parser, suppress_default=True)
    parser.add_argument(
        "template",
        nargs="?",
        help="Path to the build template (overrides packer_template_path from --config).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML file holding breadcrumbs settings.",
    )
    parser.add_argument(
        "--suffix",
        action="append",
        default=[],
        help="File suffix to look for; repeat for several suffixes.",
    )
    parser.add_argument(
        "--var",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Template user variable; repeat for several variables.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="breadcrumbs",
        description="Collect files referenced by a build template into breadcrumbs.",
    )
    _add_verbose_option(parser)
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    config_parser = subparsers.add_parser(
        "config",
        help="Print the effective configuration.",
    )
    _add_template_options(config_parser)

    manifest_parser = subparsers.add_parser(
        "manifest",
        help="Print the breadcrumbs manifest for a template.",
    )
    _add_template_options(manifest_parser)

    collect_parser = subparsers.add_parser(
        "collect",
        help="Write the manifest and every referenced file to a directory.",
    )
    _add_template_options(collect_parser)
    collect_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Destination directory (defaults to artifacts_dir_path or a temporary directory).",
    )

    provision_parser = subparsers.add_parser(
        "provision",
        help="Collect breadcrumbs and upload them to a running target over SSH.",
    )
    _add_template_options(provision_parser)
    provision_parser.add_argument(
        "--host",
        required=True,
        help="SSH destination of the build target, e.g. root@10.0.0.5.",
    )
    provision_parser.add_argument(
        "--upload-dir",
        help="Directory on the target receiving the breadcrumbs.",
    )

    return parser


def _parse_variables(pairs: List[str]) -> Dict[str, str]:
    variables: Dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name.strip():
            raise BreadcrumbsError(f"invalid variable '{pair}', expected NAME=VALUE")
        variables[name.strip()] = value
    return variables


def _overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if args.template:
        overrides["packer_template_path"] = args.template
    if args.suffix:
        overrides["include_suffixes"] = list(args.suffix)
    if args.var:
        overrides["packer_user_variables"] = _parse_variables(args.var)
    upload_dir = getattr(args, "upload_dir", None)
    if upload_dir:
        overrides["upload_dir_path"] = upload_dir
    return overrides


def _resolve_config(args: argparse.Namespace) -> PluginConfig:
    overrides = _overrides_from_args(args)
    if args.config is not None:
        base = load_config(args.config)
        if "packer_user_variables" in overrides:
            merged = dict(base.user_variables)
            merged.update(overrides["packer_user_variables"])
            overrides["packer_user_variables"] = merged
        return decode_config(base.to_dict(), overrides)
    return decode_config(overrides)


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for breadcrumbs commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    try:
        config = _resolve_config(args)
        provisioner = Provisioner(version=__version__)
        # Each subcommand selects its own output, so debug flags from the file are ignored.
        provisioner.prepare(config.to_dict(), _NO_DEBUG)

        if args.command == "config":
            print(provisioner.config.to_json())
        elif args.command == "manifest":
            sys.stdout.write(provisioner.render_manifest())
        elif args.command == "collect":
            location = provisioner.collect(args.output)
            print(f"Created breadcrumbs at {location}")
        elif args.command == "provision":
            provisioner.provision(SSHCommunicator(args.host))
            print(f"Uploaded breadcrumbs to {args.host}:{provisioner.config.upload_dir_path}")
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except (BreadcrumbsError, OSError) as exc:
        parser.exit(1, f"breadcrumbs {args.command} failed: {exc}\nRun with --verbose for more details.\n")


if __name__ == "__main__":
    main(sys.argv[1:])
