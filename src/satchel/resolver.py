# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Spec Resolver

Single responsibility: Turn `[repo/]name[-version]` into exactly one
PackageSpec, asking the user when several repositories match
"""

import logging
from typing import List, NamedTuple, Optional

from .errors import InternalError, InvalidChoiceError, RepositoryNotFoundError
from .index import RepositoryIndexStore
from .models import PackageSpec, RepositoryIndex
from .prompts import ConsoleUI
from .targets import is_supported

logger = logging.getLogger(__name__)


class ParsedSpec(NamedTuple):
    repository: Optional[str]
    name: str
    version: Optional[str]


def parse_spec(text: str) -> ParsedSpec:
    """
    Split user input into (repository, name, version).

    The version is whatever follows the last hyphen, but only when it
    starts with a digit; otherwise the hyphen belongs to the name. A
    package named like `foo-2` therefore cannot be requested without a
    version.

    Raises:
        InternalError: both name and version come out empty
    """
    text = text.strip()
    repository = None
    if "/" in text:
        repository, text = text.split("/", 1)
        repository = repository or None

    name, sep, version = text.rpartition("-")
    if not sep:
        name, version = text, ""

    if not name and not version:
        raise InternalError(f"cannot parse package spec {text!r}")

    if not version or not version[0].isdigit():
        return ParsedSpec(repository, text, None)
    return ParsedSpec(repository, name, version)


class SpecResolver:
    """Resolves package specs against every loaded repository index"""

    def __init__(self, index_store: RepositoryIndexStore, ui: ConsoleUI):
        """
        Initialize spec resolver.

        Args:
            index_store: Source of repository indexes
            ui: Prompter for the disambiguation choice
        """
        self.index_store = index_store
        self.ui = ui

    def _candidates(
        self,
        indexes: List[RepositoryIndex],
        name: str,
        version: Optional[str]
    ) -> List[PackageSpec]:
        candidates = []
        for index in indexes:
            for entry in index.packages:
                if entry.name != name or not is_supported(entry.target):
                    continue
                if version is None:
                    tag = entry.current_version
                elif entry.find_version(version):
                    tag = version
                else:
                    tag = None
                if tag:
                    candidates.append(PackageSpec(
                        repository=index.repo.name,
                        name=entry.name,
                        version=tag,
                        target=entry.target
                    ))
        return candidates

    def _choose(self, candidates: List[PackageSpec]) -> PackageSpec:
        options = [f"{c.repository}/{c.stem}-{c.target}" for c in candidates]
        answer = self.ui.choose("multiple packages found, choose one:", options)
        try:
            choice = int(answer)
        except ValueError:
            raise InvalidChoiceError(answer)
        if choice < 1 or choice > len(candidates):
            raise InvalidChoiceError(answer)
        return candidates[choice - 1]

    def resolve(self, text: str) -> Optional[PackageSpec]:
        """
        Resolve a package spec.

        Args:
            text: `[repo/]name[-version]`

        Returns:
            The resolved spec, or None when no repository offers it

        Raises:
            RepositoryNotFoundError: matches exist but none in the pinned repository
            InvalidChoiceError: disambiguation answer out of range or not a number
        """
        parsed = parse_spec(text)
        candidates = self._candidates(self.index_store.load_all(), parsed.name, parsed.version)
        logger.debug(f"Resolving {text!r}: {len(candidates)} candidate(s)")

        if not candidates:
            return None

        if parsed.repository:
            pinned = [c for c in candidates if c.repository == parsed.repository]
            if not pinned:
                raise RepositoryNotFoundError(parsed.repository)
            return pinned[0]

        if len(candidates) == 1:
            return candidates[0]
        return self._choose(candidates)
