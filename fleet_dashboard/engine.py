from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from fleet_dashboard.loader import load_version_rules
from fleet_dashboard.rules.base_rule import (
    MISSING,
    UNRECOGNIZED,
    VersionCategory,
    VersionRule,
)
from fleet_dashboard.snapshot import Cluster, Deployment, FleetSnapshot, PodStatus

_DEFAULT_RULES = None

SUMMARY_COUNTERS = (
    "totalDeployments",
    "runningClusters",
    "stoppedClusters",
    "totalClusters",
)


class HealthCategory(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    CRITICAL = "critical"
    UNKNOWN = "unknown"

    @property
    def color(self) -> str:
        return _HEALTH_COLORS[self]

    @property
    def highlighted(self) -> bool:
        """
        True when the row gets a failed/pending status highlight.
        """
        return self in (HealthCategory.CRITICAL, HealthCategory.DEGRADED)


_HEALTH_COLORS = {
    HealthCategory.HEALTHY: "green",
    HealthCategory.DEGRADED: "yellow",
    HealthCategory.CRITICAL: "red",
    HealthCategory.UNKNOWN: "gray",
}


def get_default_rules() -> list[VersionRule]:
    global _DEFAULT_RULES
    if _DEFAULT_RULES is None:
        _DEFAULT_RULES = load_version_rules()
    return _DEFAULT_RULES


# ----------------------------
# Per-item classification
# ----------------------------


def version_category(
    version: str | None, rules: list[VersionRule] | None = None
) -> VersionCategory:
    """
    First rule (in priority order) whose tag is contained in the label wins,
    so "v2504-hotfix-2503" is a 2504 even though it mentions 2503.
    """
    if version is None:
        return MISSING
    if rules is None:
        rules = get_default_rules()
    for rule in rules:
        if rule.matches(version):
            return rule.category()
    return UNRECOGNIZED


def health_category(pod_status: PodStatus | None) -> HealthCategory:
    # failed dominates pending
    if pod_status is None:
        return HealthCategory.UNKNOWN
    if pod_status.failed > 0:
        return HealthCategory.CRITICAL
    if pod_status.pending > 0:
        return HealthCategory.DEGRADED
    return HealthCategory.HEALTHY


def is_running(cluster: Cluster) -> bool:
    return cluster.running


def deployment_links(deployment: Deployment) -> list[tuple[str, str]]:
    links = [
        ("Admin", deployment.admin_ui_url),
        ("WebPOS", deployment.web_pos_url),
        ("Config", deployment.configurations_url),
    ]
    return [(label, url) for label, url in links if url]


# ----------------------------
# Filtering
# ----------------------------


def matches(deployment: Deployment, query: str | None) -> bool:
    if not query:
        return True
    needle = query.lower()
    if needle in deployment.cluster.lower():
        return True
    if needle in deployment.namespace.lower():
        return True
    # absent version only fails this field
    return deployment.version is not None and needle in deployment.version.lower()


def filtered_deployments(
    snapshot: FleetSnapshot | None, query: str | None
) -> list[Deployment]:
    if snapshot is None:
        return []
    return [d for d in snapshot.deployments if matches(d, query)]


def quick_access_deployments(
    snapshot: FleetSnapshot | None, query: str | None
) -> list[Deployment]:
    """
    Filtered deployments that expose an admin UI, order preserved.
    """
    return [d for d in filtered_deployments(snapshot, query) if d.admin_ui_url]


# ----------------------------
# Aggregate views
# ----------------------------


def sorted_version_distribution(
    distribution: Mapping[str, int] | Iterable[tuple[str, int]] | None,
) -> list[tuple[str, int]]:
    """
    Entries ordered by descending plain string comparison of the label.
    This is not a semantic version sort: "v9" sorts above "v10".
    """
    if not distribution:
        return []
    items = distribution.items() if isinstance(distribution, Mapping) else distribution
    return sorted(items, key=lambda item: item[0], reverse=True)


def summary_counters(snapshot: FleetSnapshot | None) -> dict[str, int]:
    if snapshot is None:
        return {name: 0 for name in SUMMARY_COUNTERS}
    return {name: snapshot.counter(name) for name in SUMMARY_COUNTERS}


def build_view(
    snapshot: FleetSnapshot | None,
    query: str | None,
    rules: list[VersionRule] | None = None,
) -> dict[str, Any]:
    """
    Plain-data view model of everything a presentation layer renders.
    """
    if rules is None:
        rules = get_default_rules()

    deployments = filtered_deployments(snapshot, query)
    view: dict[str, Any] = {
        "has_data": snapshot is not None,
        "generated_at": snapshot.generated_at if snapshot else None,
        "subscription": snapshot.subscription_name if snapshot else None,
        "query": query or "",
        "summary": summary_counters(snapshot),
        "version_distribution": [],
        "quick_access": [
            {
                "namespace": d.namespace,
                "cluster": d.cluster,
                "version": d.version,
                "url": d.admin_ui_url,
            }
            for d in quick_access_deployments(snapshot, query)
        ],
        "deployments": [],
        "clusters": [],
    }

    distribution = snapshot.version_distribution if snapshot else None
    for label, count in sorted_version_distribution(distribution):
        category = version_category(label, rules)
        view["version_distribution"].append(
            {
                "version": label,
                "count": count,
                "category": category.key,
                "color": category.color,
            }
        )

    for d in deployments:
        health = health_category(d.pod_status)
        view["deployments"].append(
            {
                "cluster": d.cluster,
                "namespace": d.namespace,
                "resource_group": d.resource_group,
                "version": d.version,
                "version_category": version_category(d.version, rules).key,
                "health": health.value,
                "pods": (
                    {
                        "running": d.pod_status.running,
                        "pending": d.pod_status.pending,
                        "failed": d.pod_status.failed,
                    }
                    if d.pod_status
                    else None
                ),
                "links": dict(deployment_links(d)),
            }
        )

    for c in snapshot.clusters if snapshot else ():
        view["clusters"].append(
            {
                "name": c.name,
                "resource_group": c.resource_group,
                "location": c.location,
                "kubernetes_version": c.kubernetes_version,
                "power_state": c.power_state,
                "running": is_running(c),
                "node_count": c.node_count,
            }
        )

    return view
