from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from fleet_dashboard.model import as_count, as_mapping, as_records, as_text

RUNNING_POWER_STATE = "Running"


@dataclass(frozen=True)
class PodStatus:
    running: int = 0
    pending: int = 0
    failed: int = 0

    @classmethod
    def from_dict(cls, raw: Any) -> "PodStatus | None":
        if not isinstance(raw, dict):
            return None
        return cls(
            running=as_count(raw.get("running")),
            pending=as_count(raw.get("pending")),
            failed=as_count(raw.get("failed")),
        )


@dataclass(frozen=True)
class Deployment:
    """
    One namespaced instance running on one cluster.

    `cluster` is a free-text label, it is not checked against the
    snapshot's cluster list.
    """

    cluster: str
    namespace: str
    version: str | None = None
    resource_group: str | None = None
    pod_status: PodStatus | None = None
    admin_ui_url: str | None = None
    web_pos_url: str | None = None
    configurations_url: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Deployment":
        return cls(
            cluster=as_text(raw.get("cluster")) or "",
            namespace=as_text(raw.get("namespace")) or "",
            version=as_text(raw.get("version")),
            resource_group=as_text(raw.get("resourceGroup")),
            pod_status=PodStatus.from_dict(raw.get("podStatus")),
            admin_ui_url=as_text(raw.get("adminUiUrl")) or None,
            web_pos_url=as_text(raw.get("webPosUrl")) or None,
            configurations_url=as_text(raw.get("configurationsUrl")) or None,
            raw=raw,
        )


@dataclass(frozen=True)
class Cluster:
    name: str
    resource_group: str | None = None
    location: str | None = None
    kubernetes_version: str | None = None
    power_state: str | None = None
    node_count: int = 0
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Cluster":
        return cls(
            name=as_text(raw.get("name")) or "<unknown>",
            resource_group=as_text(raw.get("resourceGroup")),
            location=as_text(raw.get("location")),
            kubernetes_version=as_text(raw.get("kubernetesVersion")),
            power_state=as_text(raw.get("powerState")),
            node_count=as_count(raw.get("nodeCount")),
            raw=raw,
        )

    @property
    def running(self) -> bool:
        return self.power_state == RUNNING_POWER_STATE


class FleetSnapshot:
    """
    Normalized, read-only view of one fetched fleet document.

    Built once from the parsed JSON and never mutated. The original
    mapping stays available as `raw`.
    """

    def __init__(self, raw: dict[str, Any]):
        self.raw = raw

        summary = as_mapping(raw.get("summary"))
        self.summary: dict[str, Any] = summary
        self.version_distribution: dict[str, int] = {
            str(label): as_count(count)
            for label, count in as_mapping(summary.get("versionDistribution")).items()
        }

        self.deployments: tuple[Deployment, ...] = tuple(
            Deployment.from_dict(d) for d in as_records(raw.get("deployments"))
        )
        self.clusters: tuple[Cluster, ...] = tuple(
            Cluster.from_dict(c) for c in as_records(raw.get("clusters"))
        )

    @property
    def generated_at(self) -> str | None:
        return as_text(self.raw.get("generatedAt"))

    @property
    def subscription_name(self) -> str | None:
        return as_text(as_mapping(self.raw.get("subscription")).get("name"))

    def counter(self, name: str) -> int:
        return as_count(self.summary.get(name))

    def generated_at_datetime(self) -> datetime | None:
        ts = self.generated_at
        if not ts:
            return None
        try:
            dt = datetime.fromisoformat(ts.replace("Z", "+00:00"))
        except ValueError:
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt

    def __repr__(self) -> str:
        return (
            f"FleetSnapshot(generated_at={self.generated_at!r}, "
            f"deployments={len(self.deployments)}, clusters={len(self.clusters)})"
        )
