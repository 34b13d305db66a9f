"""
Catalogue of installable developer tools.

Each function takes a version and returns either a single Installable (for
platform-independent distributions) or a MultiPlatform mapping of
installables keyed by platform. PACKAGES maps the names usable in a tool
list file to these factories.

Example:
    >>> from localsetup.core.platform import for_platform, get_host_platform
    >>> node = for_platform(nodejs("16.13.0"), get_host_platform())
"""

from pathlib import Path
from typing import Callable, Dict, Union

from localsetup.core.download import DownloadFile
from localsetup.core.platform import MultiPlatform, PlatformKey, map_platform
from localsetup.installable import (
    Installable,
    add_to_path,
    set_variable,
    with_env,
    with_symlink,
)
from localsetup.installers import (
    deno_script,
    macos_package,
    shell_installer,
    tar_package,
    zipped_binary,
    zipped_package,
)

LINUX_X86_64 = PlatformKey.LINUX_X86_64
DARWIN_X86_64 = PlatformKey.DARWIN_X86_64
DARWIN_AARCH64 = PlatformKey.DARWIN_AARCH64

ToolDefinition = Union[Installable, MultiPlatform[Installable]]


def deno(version: str) -> MultiPlatform[Installable]:
    base = f"https://github.com/denoland/deno/releases/download/v{version}"
    urls = {
        LINUX_X86_64: DownloadFile(
            url=f"{base}/deno-x86_64-unknown-linux-gnu.zip",
            cached_name=f"deno-v{version}-x86_64-unknown-linux-gnu.zip",
        ),
        DARWIN_X86_64: DownloadFile(
            url=f"{base}/deno-x86_64-apple-darwin.zip",
            cached_name=f"deno-v{version}-x86_64-apple-darwin.zip",
        ),
        DARWIN_AARCH64: DownloadFile(
            url=f"{base}/deno-aarch64-apple-darwin.zip",
            cached_name=f"deno-v{version}-aarch64-apple-darwin.zip",
        ),
    }

    def env(localdir: Path):
        return [
            set_variable("DENO_INSTALL", localdir),
            set_variable("DENO_INSTALL_ROOT", localdir),
        ]

    return map_platform(urls, lambda url: with_env(zipped_binary(url), env))


def nodejs(version: str) -> MultiPlatform[Installable]:
    base = f"https://nodejs.org/dist/v{version}"
    linux = f"node-v{version}-linux-x64"
    darwin = f"node-v{version}-darwin-x64"

    return {
        LINUX_X86_64: with_env(
            tar_package(
                DownloadFile(f"{base}/{linux}.tar.xz", f"{linux}.tar.xz"), "xz"
            ),
            lambda localdir: [add_to_path(localdir / linux / "bin")],
        ),
        DARWIN_X86_64: with_env(
            tar_package(
                DownloadFile(f"{base}/{darwin}.tar.gz", f"{darwin}.tar.gz"), "gzip"
            ),
            lambda localdir: [add_to_path(localdir / darwin / "bin")],
        ),
    }


def adoptopenjdk(version: str) -> MultiPlatform[Installable]:
    """Temurin 11 JDK, e.g. version '11.0.12+7'."""
    uversion = version.replace("+", "_")
    base = (
        "https://github.com/adoptium/temurin11-binaries/releases/download/"
        f"jdk-{version}"
    )
    linux = f"OpenJDK11U-jdk_x64_linux_hotspot_{uversion}.tar.gz"
    darwin = f"OpenJDK11U-jdk_x64_mac_hotspot_{uversion}.tar.gz"

    def env_at(home: str):
        def env(localdir: Path):
            return [
                set_variable("JAVA_HOME", localdir / home),
                add_to_path(localdir / home / "bin"),
            ]

        return env

    return {
        LINUX_X86_64: with_env(
            tar_package(DownloadFile(f"{base}/{linux}", linux), "gzip"),
            env_at(f"jdk-{version}"),
        ),
        # The macOS tarball nests the JDK under Contents/Home
        DARWIN_X86_64: with_env(
            tar_package(DownloadFile(f"{base}/{darwin}", darwin), "gzip"),
            env_at(f"jdk-{version}/Contents/Home"),
        ),
    }


def bazel(version: str) -> MultiPlatform[Installable]:
    base = f"https://github.com/bazelbuild/bazel/releases/download/{version}"
    urls = {
        LINUX_X86_64: DownloadFile(
            url=f"{base}/bazel-{version}-installer-linux-x86_64.sh",
            cached_name=f"bazel-{version}-installer-linux-x86_64.sh",
        ),
        DARWIN_X86_64: DownloadFile(
            url=f"{base}/bazel-{version}-installer-darwin-x86_64.sh",
            cached_name=f"bazel-{version}-installer-darwin-x86_64.sh",
        ),
    }
    prefix = f"bazel-{version}"

    return map_platform(
        urls,
        lambda url: with_symlink(
            shell_installer(url, prefix), f"{prefix}/bin/bazel", "bin/bazel"
        ),
    )


def pulumi(version: str) -> MultiPlatform[Installable]:
    base = "https://get.pulumi.com/releases/sdk"
    urls = {
        DARWIN_AARCH64: DownloadFile(
            url=f"{base}/pulumi-v{version}-darwin-arm64.tar.gz",
            cached_name=f"pulumi-v{version}-darwin-arm64.tar.gz",
        ),
        DARWIN_X86_64: DownloadFile(
            url=f"{base}/pulumi-v{version}-darwin-x64.tar.gz",
            cached_name=f"pulumi-v{version}-darwin-x64.tar.gz",
        ),
        LINUX_X86_64: DownloadFile(
            url=f"{base}/pulumi-v{version}-linux-x64.tar.gz",
            cached_name=f"pulumi-v{version}-linux-x64.tar.gz",
        ),
    }

    return map_platform(
        urls,
        lambda url: with_env(
            tar_package(url, "gzip"),
            lambda localdir: [add_to_path(localdir / "pulumi")],
        ),
    )


def gradle(version: str) -> Installable:
    url = DownloadFile(
        url=f"https://downloads.gradle-dn.com/distributions/gradle-{version}-bin.zip",
        cached_name=f"gradle-{version}-bin.zip",
    )
    return with_env(
        zipped_package(url),
        lambda localdir: [add_to_path(localdir / f"gradle-{version}" / "bin")],
    )


def yarn(version: str) -> Installable:
    url = DownloadFile(
        url=(
            f"https://github.com/yarnpkg/yarn/releases/download/v{version}/"
            f"yarn-v{version}.tar.gz"
        ),
        cached_name=f"yarn-v{version}.tar.gz",
    )
    return with_env(
        tar_package(url, "gzip"),
        lambda localdir: [add_to_path(localdir / f"yarn-v{version}" / "bin")],
    )


def terraform(version: str) -> MultiPlatform[Installable]:
    base = f"https://releases.hashicorp.com/terraform/{version}"
    urls = {
        LINUX_X86_64: DownloadFile(
            url=f"{base}/terraform_{version}_linux_amd64.zip",
            cached_name=f"terraform_{version}_linux_amd64.zip",
        ),
        DARWIN_X86_64: DownloadFile(
            url=f"{base}/terraform_{version}_darwin_amd64.zip",
            cached_name=f"terraform_{version}_darwin_amd64.zip",
        ),
        DARWIN_AARCH64: DownloadFile(
            url=f"{base}/terraform_{version}_darwin_arm64.zip",
            cached_name=f"terraform_{version}_darwin_arm64.zip",
        ),
    }
    return map_platform(urls, zipped_binary)


def _adl_bindist(
    repo: str, cache_prefix: str, version: str
) -> MultiPlatform[Installable]:
    base = f"https://github.com/{repo}/releases/download/v{version}"
    urls = {
        LINUX_X86_64: DownloadFile(
            url=f"{base}/adl-bindist-{version}-linux.zip",
            cached_name=f"{cache_prefix}-bindist-{version}-linux.zip",
        ),
        DARWIN_X86_64: DownloadFile(
            url=f"{base}/adl-bindist-{version}-osx.zip",
            cached_name=f"{cache_prefix}-bindist-{version}-osx.zip",
        ),
    }
    return map_platform(urls, zipped_package)


def adl(version: str) -> MultiPlatform[Installable]:
    """Standard ADL tooling."""
    return _adl_bindist("timbod7/adl", "adl", version)


def helixadl(version: str) -> MultiPlatform[Installable]:
    """Helix fork of the ADL tooling."""
    return _adl_bindist("helix-collective/adl", "helixadl", version)


def awscli(version: str) -> MultiPlatform[Installable]:
    """AWS CLI v2; packaged as a zip on Linux and a .pkg on macOS."""
    linux = DownloadFile(
        url=f"https://awscli.amazonaws.com/awscli-exe-linux-x86_64-{version}.zip",
        cached_name=f"awscli-exe-linux-x86_64-{version}.zip",
    )
    darwin = DownloadFile(
        url=f"https://awscli.amazonaws.com/AWSCLIV2-{version}.pkg",
        cached_name=f"AWSCLIV2-{version}.pkg",
    )

    return {
        LINUX_X86_64: with_symlink(
            zipped_package(linux, "lib"), "lib/aws/dist/aws", "bin/aws"
        ),
        DARWIN_X86_64: with_symlink(
            macos_package(darwin, "lib"), "lib/aws-cli/aws", "bin/aws"
        ),
    }


def awssessionmanager(version: str) -> MultiPlatform[Installable]:
    """
    AWS session manager plugin.

    Repackaged into the hx-localdevtools repo, as AWS itself only publishes
    the most recent releases, in package formats that are hard to unpack.
    """
    base = "https://raw.githubusercontent.com/helix-collective/hx-localdevtools/main"
    urls = {
        LINUX_X86_64: DownloadFile(
            url=f"{base}/sessionmanagerplugin_{version}_linux_amd64.zip",
            cached_name=f"sessionmanagerplugin_{version}_linux_amd64.zip",
        ),
        DARWIN_X86_64: DownloadFile(
            url=f"{base}/sessionmanagerplugin_{version}_darwin_amd64.zip",
            cached_name=f"sessionmanagerplugin_{version}_darwin_amd64.zip",
        ),
    }
    return map_platform(urls, zipped_binary)


def dnit(version: str) -> Installable:
    """dnit task runner; needs deno earlier in the install list."""
    return deno_script("dnit", f"https://deno.land/x/dnit@dnit-v{version}/main.ts")


PACKAGES: Dict[str, Callable[[str], ToolDefinition]] = {
    "deno": deno,
    "nodejs": nodejs,
    "adoptopenjdk": adoptopenjdk,
    "bazel": bazel,
    "pulumi": pulumi,
    "gradle": gradle,
    "yarn": yarn,
    "terraform": terraform,
    "adl": adl,
    "helixadl": helixadl,
    "awscli": awscli,
    "awssessionmanager": awssessionmanager,
    "dnit": dnit,
}


__all__ = ["ToolDefinition", "PACKAGES"] + list(PACKAGES)
