"""Package exports for the lifecycle script policy engine."""

from .errors import (  # noqa: F401
    ConfigError,
    ManifestCorruptionError,
    ManifestError,
    ManifestNotFoundError,
    PolicyValueError,
    ScriptExecutionError,
    ScriptGateError,
    TreeLoadError,
    UnconfiguredDependencyError,
)
from .executor import GatedExecutor  # noqa: F401
from .identity import QualifiedNameData, qualified_name, qualified_name_data  # noqa: F401
from .models import (  # noqa: F401
    DEPENDENCY_EVENTS,
    PROJECT_EVENTS,
    DependencyNode,
    LifecycleScriptGroups,
    Location,
    NodeVisit,
    ReconciliationResult,
    ScriptResult,
    SyncResult,
)
from .policy import (  # noqa: F401
    apply_sync,
    ensure_configured,
    extract_policy,
    reconcile,
    write_policy,
)
from .runner import ScriptRunner, SubprocessScriptRunner  # noqa: F401
from .scanner import scan  # noqa: F401
from .trace import TraceEvent, TraceEventEmitter  # noqa: F401
from .tree import DependencyTree, each_node_in_tree, load_tree  # noqa: F401

__all__ = [
    "ConfigError",
    "ManifestCorruptionError",
    "ManifestError",
    "ManifestNotFoundError",
    "PolicyValueError",
    "ScriptExecutionError",
    "ScriptGateError",
    "TreeLoadError",
    "UnconfiguredDependencyError",
    "GatedExecutor",
    "QualifiedNameData",
    "qualified_name",
    "qualified_name_data",
    "DEPENDENCY_EVENTS",
    "PROJECT_EVENTS",
    "DependencyNode",
    "LifecycleScriptGroups",
    "Location",
    "NodeVisit",
    "ReconciliationResult",
    "ScriptResult",
    "SyncResult",
    "apply_sync",
    "ensure_configured",
    "extract_policy",
    "reconcile",
    "write_policy",
    "ScriptRunner",
    "SubprocessScriptRunner",
    "scan",
    "TraceEvent",
    "TraceEventEmitter",
    "DependencyTree",
    "each_node_in_tree",
    "load_tree",
]
