# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Command line entry point.

Dispatches to PackageManagerService and maps exceptions to exit codes.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .config import load_config
from .errors import NothingToDo, SatchelError, TransactionAborted
from .logging import configure_logging
from .prompts import ConsoleUI
from .service import PackageManagerService
from .transfer import format_size


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="satchel", description="User-level package manager")
    parser.add_argument("-y", "--yes", action="store_true", help="Answer yes to every confirmation")
    parser.add_argument("--config", type=Path, help="Path to config.yaml")
    commands = parser.add_subparsers(dest="command", required=True)

    get = commands.add_parser("get", help="Download and install packages")
    get.add_argument("packages", nargs="+", help="[repo/]name[-version]")

    install = commands.add_parser("install", help="Install local .tar.lz4 archives")
    install.add_argument("files", nargs="+", type=Path)

    upgrade = commands.add_parser("upgrade", help="Upgrade one package or all of them")
    upgrade.add_argument("package", nargs="?")

    remove = commands.add_parser("remove", help="Remove installed packages")
    remove.add_argument("packages", nargs="*")
    remove.add_argument("--all", action="store_true", dest="all_packages")

    listing = commands.add_parser("list", help="List packages")
    listing.add_argument("which", nargs="?", choices=["installed", "available"], default="installed")

    info = commands.add_parser("info", help="Show package details")
    info.add_argument("package")

    commands.add_parser("sync", help="Re-fetch every repository index")

    package = commands.add_parser("package", help="Pack a name-version directory into an archive")
    package.add_argument("directory", type=Path)
    package.add_argument("-o", "--output", type=Path)

    history = commands.add_parser("history", help="Show recent transactions")
    history.add_argument("-n", "--limit", type=int, default=20)

    repo = commands.add_parser("repo", help="Manage repositories")
    repo_commands = repo.add_subparsers(dest="repo_command", required=True)
    repo_add = repo_commands.add_parser("add")
    repo_add.add_argument("url")
    repo_remove = repo_commands.add_parser("remove")
    repo_remove.add_argument("name")
    repo_commands.add_parser("list")
    repo_info = repo_commands.add_parser("info")
    repo_info.add_argument("name")
    repo_init = repo_commands.add_parser("init", help="Scaffold a new repository directory")
    repo_init.add_argument("name")
    repo_init.add_argument("--maintainer", default="")
    repo_init.add_argument("--description", default="")
    repo_init.add_argument("-d", "--directory", type=Path, default=Path("satchel_repo"))

    return parser


def _list(service: PackageManagerService, which: str):
    if which == "available":
        for repository, entry in service.list_available():
            print(f"{repository}/{entry.name}-{entry.current_version} ({entry.target})")
        return
    for record in service.list_installed():
        print(f"{record.name}-{record.version} ({record.source})")


def _info(service: PackageManagerService, name: str):
    info = service.package_info(name)
    installed = info["installed"]
    if installed:
        print(f"{installed.name}-{installed.version} installed from {installed.source} ({installed.target})")
    for repository, entry in info["available"]:
        print(f"{repository}/{entry.name}")
        print(f"  current:     {entry.current_version}")
        print(f"  target:      {entry.target}")
        print(f"  versions:    {', '.join(v.tag for v in entry.newest_first())}")
        print(f"  author:      {entry.author}")
        print(f"  description: {entry.description}")
        print(f"  url:         {entry.url}")
    if not installed and not info["available"]:
        print(f"no package named {name}")


def _repo(service: PackageManagerService, args):
    if args.repo_command == "add":
        index = service.add_repository(args.url)
        print(f"added repository {index.repo.name} ({len(index.packages)} packages)")
    elif args.repo_command == "remove":
        service.remove_repository(args.name)
    elif args.repo_command == "list":
        for source in service.list_repositories():
            print(f"{source.name}: {source.url}")
    elif args.repo_command == "info":
        source, index = service.repository_info(args.name)
        print(f"name:        {index.repo.name}")
        print(f"url:         {source.url}")
        print(f"maintainer:  {index.repo.maintainer}")
        print(f"description: {index.repo.description}")
        print(f"packages:    {len(index.packages)}")
    elif args.repo_command == "init":
        service.init_repository(args.directory, args.name, args.maintainer, args.description)
        print(f"initialised repository {args.name} in {args.directory}")


def run(service: PackageManagerService, args) -> int:
    if args.command == "get":
        for text in args.packages:
            service.get(text)
    elif args.command == "install":
        for path in args.files:
            service.install(path)
    elif args.command == "upgrade":
        service.upgrade(args.package)
    elif args.command == "remove":
        if args.all_packages:
            service.remove(all_packages=True)
        elif not args.packages:
            print("nothing to remove, name a package or pass --all", file=sys.stderr)
            return 2
        for name in args.packages:
            service.remove(name)
    elif args.command == "list":
        _list(service, args.which)
    elif args.command == "info":
        _info(service, args.package)
    elif args.command == "sync":
        for name in service.sync():
            print(f"synced {name}")
    elif args.command == "package":
        archive, checksum = service.pack(args.directory, args.output)
        print(f"{archive} ({format_size(archive.stat().st_size)})")
        print(f"sha256: {checksum}")
    elif args.command == "history":
        for txn in service.history(args.limit):
            print(f"{txn['started_at']} {txn['operation']:<8} {txn['package_name']}-{txn['version']} {txn['status']}")
    elif args.command == "repo":
        _repo(service, args)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
        configure_logging(config)
        service = PackageManagerService(config, ui=ConsoleUI(assume_yes=args.yes))
    except SatchelError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return e.exit_code

    try:
        return run(service, args)
    except NothingToDo as e:
        print(e.message)
        return e.exit_code
    except TransactionAborted as e:
        print(e.message, file=sys.stderr)
        return e.exit_code
    except SatchelError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return e.exit_code
    except OSError as e:
        print(f"error: I/O failure: {e}", file=sys.stderr)
        return 1
    finally:
        service.close()


if __name__ == "__main__":
    sys.exit(main())
