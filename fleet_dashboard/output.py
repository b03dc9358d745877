import json
from datetime import datetime
from typing import Any

import yaml

# ----------------------------
# Output formatting
# ----------------------------


def _last_updated(generated_at: str | None) -> str:
    if not generated_at:
        return "Unknown"
    try:
        return datetime.fromisoformat(generated_at.replace("Z", "+00:00")).strftime(
            "%Y-%m-%d %H:%M:%S %Z"
        ).strip()
    except ValueError:
        return generated_at


def _pods(pods: dict[str, int] | None) -> str:
    if not pods:
        return "-"
    text = f"ok {pods['running']}"
    if pods["pending"] > 0:
        text += f" pending {pods['pending']}"
    if pods["failed"] > 0:
        text += f" failed {pods['failed']}"
    return text


def render_text(view: dict[str, Any]) -> str:
    """
    Plain-text rendering of a dashboard view.
    - Error banner is shown above any data that is still available
    - Nothing but the error is shown when no snapshot was ever loaded
    """
    lines = ["Fleet Dashboard"]
    lines.append(f"Last updated: {_last_updated(view.get('generated_at'))}")

    if view.get("error"):
        lines.append(f"Error: {view['error']}")

    if not view.get("has_data"):
        if view.get("loading"):
            lines.append("Loading...")
        return "\n".join(lines)

    summary = view["summary"]
    lines.append("")
    lines.append(f"  Deployments:      {summary['totalDeployments']}")
    lines.append(f"  Running clusters: {summary['runningClusters']}")
    lines.append(f"  Stopped clusters: {summary['stoppedClusters']}")
    lines.append(f"  Total clusters:   {summary['totalClusters']}")

    if view["version_distribution"]:
        lines.append("\nVersion Distribution:")
        for item in view["version_distribution"]:
            lines.append(f"  {item['version']}: {item['count']} ({item['category']})")

    if view["quick_access"]:
        lines.append("\nQuick Access - Admin UI:")
        for item in view["quick_access"]:
            lines.append(
                f"  {item['namespace']} [{item['cluster']}] "
                f"{item['version'] or '-'} -> {item['url']}"
            )

    if view.get("query"):
        lines.append(f"\nFilter: {view['query']}")
    lines.append(f"\nAll Deployments ({len(view['deployments'])}):")
    for d in view["deployments"]:
        marker = {"critical": "!!", "degraded": "! "}.get(d["health"], "  ")
        links = ", ".join(f"{label}={url}" for label, url in d["links"].items())
        lines.append(
            f"{marker}{d['cluster']}/{d['namespace']}  "
            f"{d['version'] or '-'}  {_pods(d['pods'])}"
            + (f"  {links}" if links else "")
        )

    if view["clusters"]:
        lines.append("\nCluster Overview:")
        for c in view["clusters"]:
            lines.append(
                f"  {c['name']}  {c['resource_group'] or '-'}  {c['location'] or '-'}  "
                f"k8s {c['kubernetes_version'] or '-'}  {c['power_state'] or '-'}  "
                f"nodes {c['node_count']}"
            )

    if view.get("subscription"):
        lines.append(f"\nSubscription: {view['subscription']}")

    return "\n".join(lines)


def output_view(view: dict[str, Any], fmt: str = "text") -> None:
    if fmt == "json":
        print(json.dumps(view, indent=2))
        return

    if fmt == "yaml":
        print(yaml.safe_dump(view, sort_keys=False))
        return

    print(render_text(view))
