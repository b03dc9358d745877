import glob
import logging
import os
from typing import Any

import yaml

from fleet_dashboard.rules.base_rule import ReleaseTagRule, VersionRule

logger = logging.getLogger(__name__)

DEFAULT_RULES_FOLDER = os.path.join(os.path.dirname(__file__), "rules")

# ----------------------------
# Version tag rule loader
# ----------------------------


def build_tag_rules(data: Any) -> list[VersionRule]:
    """
    Accepts either a single dict or a list of dicts from a YAML file.
    Returns a list of ReleaseTagRule instances.
    """
    rules: list[VersionRule] = []
    if not data:
        return rules
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise ValueError("YAML content must be a dict or a list of dicts")

    for item in data:
        if not isinstance(item, dict):
            raise ValueError("Each YAML rule must be a dict")
        if "tag" not in item:
            raise ValueError(f"Version rule {item!r} is missing 'tag'")
        rules.append(
            ReleaseTagRule(
                tag=str(item["tag"]),
                priority=item.get("priority", 100),
                color=item.get("color", "gray"),
                name=item.get("name"),
            )
        )
    return rules


def validate_rule(rule: VersionRule):
    for field in ("name", "priority", "color"):
        if not hasattr(rule, field):
            raise ValueError(f"Rule {rule} missing required field '{field}'")

    if not isinstance(rule.name, str) or not rule.name:
        raise ValueError("Rule.name must be a non-empty string")
    if not isinstance(rule.priority, int) or isinstance(rule.priority, bool):
        raise ValueError(f"Rule {rule.name}.priority must be an integer")
    if not (0 <= rule.priority <= 1000):
        raise ValueError(f"Rule {rule.name}.priority must be between 0 and 1000")
    if not isinstance(rule.color, str) or not rule.color:
        raise ValueError(f"Rule {rule.name}.color must be a non-empty string")
    if isinstance(rule, ReleaseTagRule) and not rule.tag:
        raise ValueError(f"Rule {rule.name}.tag must be a non-empty string")


def load_version_rules(rule_folder=None) -> list[VersionRule]:
    """
    Load every *.yaml file in the folder, validate each rule and return
    them in evaluation order (ascending priority, file order on ties).
    """
    if rule_folder is None:
        rule_folder = DEFAULT_RULES_FOLDER

    rules: list[VersionRule] = []
    for yfile in sorted(glob.glob(os.path.join(rule_folder, "*.yaml"))):
        with open(yfile, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if data:  # skip empty YAML files
            rules.extend(build_tag_rules(data))

    names = set()
    for rule in rules:
        validate_rule(rule)
        if rule.name in names:
            raise ValueError(f"Duplicate version rule name '{rule.name}'")
        names.add(rule.name)

    logger.debug("Loaded %d version rules from %s", len(rules), rule_folder)
    return sorted(rules, key=lambda r: r.priority)
