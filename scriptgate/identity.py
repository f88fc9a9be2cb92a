"""Qualified name derivation for dependency graph nodes."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .models import DependencyNode

__all__ = ["QualifiedNameData", "qualified_name", "qualified_name_data"]

_REGISTRY_NAMESPACE = "npm"
_GIT_PREFIXES = ("git+", "git:", "git://", "github:", "gitlab:", "bitbucket:", "gist:")
_FILE_PREFIXES = ("file:",)
_HOSTED_SHORTHAND = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+(#.*)?$")


@dataclass(frozen=True, slots=True)
class QualifiedNameData:
    """Namespace and name a node is identified by in policy."""

    namespace: str
    name: str
    qualified_name: str


def _source_namespace(resolved: str | None) -> str:
    if not resolved:
        return _REGISTRY_NAMESPACE
    lowered = resolved.strip().lower()
    if lowered.startswith(_GIT_PREFIXES):
        return "git"
    if lowered.startswith(_FILE_PREFIXES):
        return "file"
    if lowered.startswith(("http://", "https://")):
        # Tarballs from a registry and github codeload URLs both land here.
        return "git" if "codeload.github.com" in lowered else _REGISTRY_NAMESPACE
    if _HOSTED_SHORTHAND.match(resolved.strip()):
        return "git"
    return _REGISTRY_NAMESPACE


def qualified_name_data(node: DependencyNode) -> QualifiedNameData:
    """Return the namespace, name and policy key for ``node``.

    Registry packages are keyed by their package name alone so every install
    of ``left-pad`` shares one key. Packages from git or the local filesystem
    are prefixed with their namespace (``git:name``, ``file:name``) so they
    never match policy written for the registry package of the same name.
    """

    namespace = _source_namespace(node.resolved)
    if namespace == _REGISTRY_NAMESPACE:
        return QualifiedNameData(namespace=namespace, name=node.name, qualified_name=node.name)
    return QualifiedNameData(
        namespace=namespace,
        name=node.name,
        qualified_name=f"{namespace}:{node.name}",
    )


def qualified_name(node: DependencyNode) -> str:
    return qualified_name_data(node).qualified_name
