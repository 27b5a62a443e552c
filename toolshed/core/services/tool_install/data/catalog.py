"""
L0 Data — Built-in tool catalog.

One ToolSpec per supported CLI.  Vendor naming quirks live here as
selector terms, templates and flags; the installer itself has no
per-tool code.
"""

from __future__ import annotations

from toolshed.core.models.tool import (
    AssetSelector,
    BucketSourceSpec,
    GithubSourceSpec,
    GpgSignature,
    InlineChecksum,
    MirrorSourceSpec,
    ProxyWrapper,
    SharedChecksums,
    ToolSpec,
    UrlDownload,
    UrlSourceSpec,
)

RED_HAT_PROXY = "squid.corp.redhat.com:3128"

_PLATFORM_SHA256 = AssetSelector(include=("sha256",))


def _shared(pattern: str, *, multi_format: bool = False) -> SharedChecksums:
    return SharedChecksums(
        selector=AssetSelector(match_platform=False, pattern=pattern),
        multi_format=multi_format,
    )


TOOL_CATALOG: tuple[ToolSpec, ...] = (
    ToolSpec(
        name="aws",
        description="Amazon Web Services CLI v2",
        source=UrlSourceSpec(
            version_repo=GithubSourceSpec(owner="aws", repo="aws-cli", version_from_tag=True),
            downloads={
                "linux": UrlDownload(
                    url="https://awscli.amazonaws.com/awscli-exe-linux-{arch}-{version}.zip",
                    file_name="aws-cli.zip",
                    arch_names={"amd64": "x86_64", "arm64": "aarch64"},
                ),
                "darwin": UrlDownload(
                    url="https://awscli.amazonaws.com/AWSCLIV2.pkg",
                    file_name="aws-cli.pkg",
                ),
            },
        ),
        primary=AssetSelector(match_platform=False),
        os_vars={
            "linux": {"bindir": "aws-cli/dist"},
            "darwin": {"bindir": "aws-cli/aws-cli.pkg/Payload/aws-cli"},
        },
        executable_path="{bindir}/aws",
        # The zip unpacks to aws/; move it so the wrapper can take that name
        renames={"aws": "aws-cli"},
        extra_links={"aws_completer": "{bindir}/aws_completer"},
        wrapper=ProxyWrapper(proxy=RED_HAT_PROXY),
    ),
    ToolSpec(
        name="backplane-cli",
        executable_name="ocm-backplane",
        description="OpenShift backplane access plugin for ocm",
        source=GithubSourceSpec(owner="openshift", repo="backplane-cli"),
        verification=_shared(r"^checksums\.txt$"),
        executable_path="ocm-backplane",
    ),
    ToolSpec(
        name="butane",
        description="Butane config transpiler for Ignition",
        source=GithubSourceSpec(owner="coreos", repo="butane"),
        primary=AssetSelector(exclude=(".asc",)),
        verification=GpgSignature(),
    ),
    ToolSpec(
        name="gcloud",
        description="Google Cloud CLI",
        source=BucketSourceSpec(bucket="cloud-sdk-release", prefix="google-cloud-cli"),
        executable_path="google-cloud-sdk/bin/gcloud",
    ),
    ToolSpec(
        name="golangci-lint",
        description="Go linters aggregator",
        source=GithubSourceSpec(owner="golangci", repo="golangci-lint"),
        primary=AssetSelector(include=(".tar.gz",)),
        verification=_shared(r"checksums\.txt$"),
        executable_path="{stem}/golangci-lint",
    ),
    ToolSpec(
        name="oc",
        description="OpenShift client",
        source=MirrorSourceSpec(
            base_path="/pub/openshift-v4/{arch}/clients/ocp/stable/",
            files=("openshift-client-{os}-{version}.tar.gz", "sha256sum.txt"),
            os_names={"darwin": "mac"},
        ),
        primary=AssetSelector(match_platform=False, pattern=r"^openshift-client-.*\.tar\.gz$"),
        verification=_shared(r"^sha256sum\.txt$"),
        executable_path="oc",
    ),
    ToolSpec(
        name="ocm",
        description="OpenShift Cluster Manager CLI",
        source=GithubSourceSpec(owner="openshift-online", repo="ocm-cli"),
        primary=AssetSelector(exclude=("sha256",)),
        verification=InlineChecksum(selector=_PLATFORM_SHA256),
        on_checksum_mismatch="warn",
    ),
    ToolSpec(
        name="ocm-addons",
        description="ocm plugin for managing addons",
        source=GithubSourceSpec(owner="mt-sre", repo="ocm-addons"),
        verification=_shared(r"^checksums\.txt$"),
        executable_path="ocm-addons",
    ),
    ToolSpec(
        name="osdctl",
        description="OpenShift Dedicated SRE toolbox",
        source=GithubSourceSpec(owner="openshift", repo="osdctl"),
        primary=AssetSelector(exclude=("sha256sum.txt",)),
        verification=_shared(r"^sha256sum\.txt$"),
        executable_path="osdctl",
    ),
    ToolSpec(
        name="rosa",
        description="Red Hat OpenShift Service on AWS CLI",
        source=GithubSourceSpec(owner="openshift", repo="rosa"),
        primary=AssetSelector(exclude=("sha256",)),
        verification=InlineChecksum(selector=_PLATFORM_SHA256),
    ),
    ToolSpec(
        name="yq",
        description="YAML processor",
        source=GithubSourceSpec(owner="mikefarah", repo="yq"),
        primary=AssetSelector(exclude=(".tar.gz",)),
        # checksums lists several hash formats per asset, one per column
        verification=_shared(r"^checksums$", multi_format=True),
    ),
)


def catalog_by_name() -> dict[str, ToolSpec]:
    return {t.name: t for t in TOOL_CATALOG}
