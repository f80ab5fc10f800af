"""
Installation targets: a user/organization ("ropensci") or a repository ("ropensci/magick").
parse_target runs once at the boundary; operations then work with Owner or RepoPath only.
"""
from dataclasses import dataclass
from urllib.parse import quote


def _segment(value: str) -> str:
    return quote(value, safe="")


def _check_segment(value: str, what: str) -> None:
    # "." and ".." would be collapsed by the HTTP client and reroute the request
    if not value or value in (".", ".."):
        raise ValueError(f"invalid {what} {value!r} in installation target")


@dataclass(frozen=True)
class Owner:
    name: str

    def __post_init__(self):
        _check_segment(self.name, "owner")

    @property
    def installation_path(self) -> str:
        return f"/users/{_segment(self.name)}/installation"

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class RepoPath:
    owner: str
    repo: str

    def __post_init__(self):
        _check_segment(self.owner, "owner")
        _check_segment(self.repo, "repo")

    @property
    def installation_path(self) -> str:
        return f"/repos/{_segment(self.owner)}/{_segment(self.repo)}/installation"

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}"


InstallationTarget = Owner | RepoPath


def parse_target(value: "str | InstallationTarget") -> InstallationTarget:
    """
    "owner" -> Owner, "owner/repo" -> RepoPath. Raises ValueError for empty or ambiguous
    strings (blank halves, leading/trailing "/", more than one "/").
    """
    if isinstance(value, (Owner, RepoPath)):
        return value
    if not isinstance(value, str):
        raise ValueError(f"installation target must be a string, got {type(value).__name__}")
    text = value.strip()
    if not text:
        raise ValueError("installation target is empty")
    if "/" not in text:
        return Owner(text)
    owner, _, repo = text.partition("/")
    if not owner or not repo or "/" in repo:
        raise ValueError(f"ambiguous installation target {value!r}: expected 'owner' or 'owner/repo'")
    return RepoPath(owner=owner, repo=repo)
