"""Package fetcher: resolve a package and its dependency closure into an install tree."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Set, Union

from constants import Constants
from common.errors import DependencyCycleError, PrereleaseDependencyError
from common.logging_utils import extra_context, is_debug_enabled
from registry.base import Repository
from versioning.models import (
    DependencySpec,
    FetchReport,
    NuGetVersion,
    PackageIdentity,
    ResolutionMode,
    ResolvedPackage,
)
from versioning.parser import parse_version
from versioning.selector import select_in_range, select_version
from .install_tree import LocalInstallTree

logger = logging.getLogger(__name__)

VersionArg = Union[NuGetVersion, str, None]


@dataclass
class _Frame:
    """A package on the current dependency path and its unvisited dependencies."""
    package: ResolvedPackage
    pending: Iterator[DependencySpec]


class _FetchRun:
    """State of one top-level fetch call."""

    def __init__(self) -> None:
        self.visited: Set[PackageIdentity] = set()
        self.chosen: Dict[str, PackageIdentity] = {}
        self.packages: List[ResolvedPackage] = []
        self.already_installed: List[PackageIdentity] = []


class PackageFetcher:
    """Fetch packages from a repository into a local install tree.

    Each call walks the dependency closure depth-first with an explicit
    stack. Identities resolved earlier in the same call are not walked
    again; identities installed by earlier calls are not downloaded again.
    """

    def __init__(
        self,
        repository: Repository,
        install_tree: LocalInstallTree,
        *,
        strict_prerelease: Optional[bool] = None,
        honor_dependency_ranges: Optional[bool] = None,
    ):
        self.repository = repository
        self.install_tree = install_tree
        self.strict_prerelease = (
            Constants.STRICT_PRERELEASE if strict_prerelease is None else strict_prerelease
        )
        self.honor_dependency_ranges = (
            Constants.HONOR_DEPENDENCY_RANGES if honor_dependency_ranges is None else honor_dependency_ranges
        )

    def fetch_package(self, package_id: str, explicit_version: VersionArg = None) -> Optional[ResolvedPackage]:
        """Fetch ``package_id`` and its dependencies; None when anything is not found.

        Raises:
            FetchError: on repository, package, manifest or structural failures.
        """
        report = self.fetch(package_id, explicit_version)
        return report.root if report is not None else None

    def fetch(self, package_id: str, explicit_version: VersionArg = None) -> Optional[FetchReport]:
        """Like fetch_package but return everything materialized by the call."""
        if isinstance(explicit_version, str):
            explicit_version = parse_version(explicit_version)

        logger.info(
            "Fetching %s%s", package_id, f" {explicit_version}" if explicit_version else "",
            extra=extra_context(event="fetch", component="fetcher", source=self.repository.source),
        )
        run = _FetchRun()

        root_identity = self._select(package_id, explicit_version, None)
        if root_identity is None:
            logger.info("Package %s not found", package_id, extra=extra_context(
                event="fetch", component="fetcher", outcome="not_found", target=package_id
            ))
            return None
        root = self._visit(run, root_identity)

        stack = [_Frame(root, iter(root.dependencies))]
        while stack:
            frame = stack[-1]
            dependency = next(frame.pending, None)
            if dependency is None:
                stack.pop()
                continue

            self._check_cycle(stack, dependency)
            identity = self._select_dependency(dependency)
            if identity is None:
                logger.warning(
                    "Dependency %s of %s not found; aborting fetch of %s",
                    dependency.id, frame.package.identity, package_id,
                    extra=extra_context(event="fetch", component="fetcher", outcome="not_found",
                                        target=dependency.id,
                                        constraint=dependency.constraint.raw if dependency.constraint else None),
                )
                return None

            self._check_prerelease(frame.package.identity, identity)
            if identity in run.visited:
                continue
            node = self._visit(run, identity)
            stack.append(_Frame(node, iter(node.dependencies)))

        logger.info("Resolved %s with %d package(s)", root.identity, len(run.packages), extra=extra_context(
            event="fetch", component="fetcher", outcome="success", target=str(root.identity)
        ))
        return FetchReport(root=root, packages=run.packages, already_installed=run.already_installed)

    def _select(
        self,
        package_id: str,
        explicit_version: Optional[NuGetVersion],
        version_range,
    ) -> Optional[PackageIdentity]:
        candidates = self.repository.list_versions(package_id)
        if not candidates:
            return None
        if version_range is not None:
            version = select_in_range(candidates, version_range)
        else:
            version = select_version(candidates, explicit_version)
        if version is None:
            return None
        return PackageIdentity(package_id, version)

    def _select_dependency(self, dependency: DependencySpec) -> Optional[PackageIdentity]:
        constraint = dependency.constraint
        if dependency.mode == ResolutionMode.RANGE:
            if self.honor_dependency_ranges:
                return self._select(dependency.id, None, constraint.range)
            if is_debug_enabled(logger):
                logger.debug("Range constraint not enforced", extra=extra_context(
                    event="decision", component="fetcher", target=dependency.id, constraint=constraint.raw
                ))
        return self._select(dependency.id, dependency.exact_version, None)

    def _visit(self, run: _FetchRun, selected: PackageIdentity) -> ResolvedPackage:
        """Install ``selected`` if needed and read its dependencies.

        The resolved identity is the one the package's nuspec declares, so
        ids and labels keep the package's own casing.
        """
        if self.install_tree.exists(selected):
            already_installed = True
            path = self.install_tree.path_for(selected)
            if is_debug_enabled(logger):
                logger.debug("Already installed", extra=extra_context(
                    event="install", component="fetcher", outcome="skipped", target=str(selected)
                ))
        else:
            already_installed = False
            path = self.install_tree.install(selected, self.repository.fetch_content(selected))

        manifest = self.install_tree.read_manifest(selected)
        identity = manifest.identity
        run.visited.add(identity)
        if already_installed:
            run.already_installed.append(identity)
        previous = run.chosen.get(identity.key)
        if previous is None:
            run.chosen[identity.key] = identity
        elif previous != identity:
            logger.warning(
                "Both %s and %s were requested; installing both, %s is reported for %s",
                previous, identity, previous.version, identity.id,
            )

        package = ResolvedPackage(identity=identity, dependencies=list(manifest.dependencies), path=path)
        run.packages.append(package)
        return package

    @staticmethod
    def _check_cycle(stack: List[_Frame], dependency: DependencySpec) -> None:
        path_ids = [frame.package.identity.key for frame in stack]
        if dependency.id.lower() in path_ids:
            start = path_ids.index(dependency.id.lower())
            cycle = [str(frame.package.identity) for frame in stack[start:]] + [dependency.id]
            raise DependencyCycleError(cycle)

    def _check_prerelease(self, parent: PackageIdentity, dependency: PackageIdentity) -> None:
        if parent.is_prerelease or not dependency.is_prerelease:
            return
        if self.strict_prerelease:
            raise PrereleaseDependencyError(parent, dependency)
        logger.warning("Released package %s depends on pre-release package %s", parent, dependency)
