"""
Tool model — the static description of one installable CLI.

A ToolSpec is pure configuration: where releases come from, which
asset is the binary, how it is verified, and where the executable
ends up inside the version directory.  Every vendor quirk is
expressed as data here; the installer has no per-vendor branches.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

FEDORA_SIGNING_KEY_URL = "https://fedoraproject.org/fedora.gpg"

MismatchPolicy = Literal["fail", "warn"]


# ── Asset selection ─────────────────────────────────────────────


class AssetSelector(BaseModel):
    """Predicates that must narrow a release's assets to exactly one.

    Applied in order: platform match (OS + arch, with aliases),
    ``include`` (all terms present), ``exclude`` (no term present),
    then ``pattern`` (regex, full-name search).
    """

    model_config = ConfigDict(frozen=True)

    match_platform: bool = True
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    pattern: str | None = None


# ── Sources ─────────────────────────────────────────────────────


class GithubSourceSpec(BaseModel):
    """Releases of a GitHub repository."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["github"] = "github"
    owner: str
    repo: str
    # Some projects tag without publishing GitHub releases
    version_from_tag: bool = False

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"


class MirrorSourceSpec(BaseModel):
    """A plain HTTP mirror directory with a ``Version:`` manifest.

    ``base_path`` and ``files`` are templates; ``{arch}``, ``{os}`` and
    ``{version}`` are substituted at query time.  ``os_names`` renames
    the runtime OS for this mirror (e.g. darwin → mac).
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["mirror"] = "mirror"
    base_path: str
    manifest: str = "release.txt"
    files: tuple[str, ...] = ()
    os_names: dict[str, str] = Field(default_factory=dict)


class BucketSourceSpec(BaseModel):
    """Objects in a public cloud-storage bucket.

    The latest version is the lexicographically greatest platform-
    matching object name, minus ``suffix``.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["bucket"] = "bucket"
    bucket: str
    prefix: str
    suffix: str = ".tar.gz"


class UrlDownload(BaseModel):
    """A direct download for one OS."""

    model_config = ConfigDict(frozen=True)

    url: str                        # template: {version}, {arch}
    file_name: str                  # local name in the version dir, same template
    arch_names: dict[str, str] = Field(default_factory=dict)


class UrlSourceSpec(BaseModel):
    """Direct vendor URLs; the version comes from a GitHub repo's tags."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["url"] = "url"
    version_repo: GithubSourceSpec
    downloads: dict[str, UrlDownload]   # keyed by runtime OS


SourceSpec = Annotated[
    GithubSourceSpec | MirrorSourceSpec | BucketSourceSpec | UrlSourceSpec,
    Field(discriminator="kind"),
]


# ── Verification strategies ─────────────────────────────────────


class InlineChecksum(BaseModel):
    """One checksum file per asset (e.g. ``tool-linux-amd64.sha256``)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["inline"] = "inline"
    selector: AssetSelector = AssetSelector(include=("sha256",))


class SharedChecksums(BaseModel):
    """One manifest listing digests for every asset of the release.

    ``multi_format`` accepts the digest in any column of the matching
    line, for manifests that publish several hash formats per asset.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["shared"] = "shared"
    selector: AssetSelector
    multi_format: bool = False


class GpgSignature(BaseModel):
    """Detached armored signature checked against a well-known key."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["gpg"] = "gpg"
    selector: AssetSelector = AssetSelector(include=(".asc",))
    key_url: str = FEDORA_SIGNING_KEY_URL


class NoVerification(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["none"] = "none"


Verification = Annotated[
    InlineChecksum | SharedChecksums | GpgSignature | NoVerification,
    Field(discriminator="kind"),
]


# ── Launcher wrapper ────────────────────────────────────────────


class ProxyWrapper(BaseModel):
    """A bash launcher that routes the tool's traffic through a proxy."""

    model_config = ConfigDict(frozen=True)

    proxy: str
    preflight: bool = True


# ── Tool ────────────────────────────────────────────────────────


class ToolSpec(BaseModel):
    """A registered tool.  Immutable for the process lifetime."""

    model_config = ConfigDict(frozen=True)

    name: str
    executable_name: str = ""       # defaults to name
    description: str = ""
    source: SourceSpec
    primary: AssetSelector = AssetSelector()
    verification: Verification = NoVerification()

    # Path of the executable inside the version dir.  Template fields:
    # {asset}, {stem}, {version}, {os}, {arch}, plus the running OS's
    # entry in os_vars
    executable_path: str = "{asset}"
    os_vars: dict[str, dict[str, str]] = Field(default_factory=dict)
    renames: dict[str, str] = Field(default_factory=dict)       # after unpack
    extra_links: dict[str, str] = Field(default_factory=dict)   # link name → path template
    wrapper: ProxyWrapper | None = None

    on_checksum_mismatch: MismatchPolicy = "fail"

    @property
    def executable(self) -> str:
        """Name of the symlink in the latest directory."""
        return self.executable_name or self.name

    @property
    def link_names(self) -> list[str]:
        """Every name this tool owns in the latest directory."""
        return [self.executable, *self.extra_links.keys()]
