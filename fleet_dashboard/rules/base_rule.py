from dataclasses import dataclass


@dataclass(frozen=True)
class VersionCategory:
    """
    Bucket a deployment's version label falls into.
    """

    key: str
    color: str = "gray"
    tag: str | None = None

    def __str__(self) -> str:
        return self.key


MISSING = VersionCategory(key="missing")
UNRECOGNIZED = VersionCategory(key="unrecognized")


class VersionRule:
    """
    Base class for version classification rules.

    Rules are evaluated in ascending priority; the first match wins.
    """

    # ---- Metadata (mandatory) ----
    name: str = "BaseVersionRule"
    priority: int = 100
    color: str = "gray"

    def matches(self, version: str) -> bool:
        raise NotImplementedError

    def category(self) -> VersionCategory:
        raise NotImplementedError


class ReleaseTagRule(VersionRule):
    """
    Matches any label containing a release tag, e.g. "2504" in "v2504.1".
    """

    def __init__(self, tag: str, priority: int = 100, color: str = "gray", name=None):
        self.tag = tag
        self.priority = priority
        self.color = color
        self.name = name or tag

    def matches(self, version: str) -> bool:
        return self.tag in version

    def category(self) -> VersionCategory:
        return VersionCategory(key=self.name, color=self.color, tag=self.tag)

    def __repr__(self) -> str:
        return f"ReleaseTagRule(tag={self.tag!r}, priority={self.priority})"
