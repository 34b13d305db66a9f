"""
Tests for install strategies.

Artifacts are placed in the download cache up front, so no test needs
network access.
"""

import os
import shutil
from pathlib import Path
from unittest.mock import patch

import pytest

from localsetup.core.download import DownloadFile
from localsetup.core.exceptions import InstallExecutionError
from localsetup.installers import (
    deno_script,
    macos_package,
    raw_binary,
    run_command,
    shell_installer,
    tar_package,
    zipped_binary,
    zipped_package,
)


def cache_artifact(cache_dir: Path, cached_name: str, content: bytes) -> DownloadFile:
    cache_dir.mkdir(parents=True, exist_ok=True)
    (cache_dir / cached_name).write_bytes(content)
    return DownloadFile(f"https://example.com/{cached_name}", cached_name)


class TestRunCommand:
    """Test run_command()."""

    def test_returns_stdout(self):
        assert run_command(["sh", "-c", "echo hello"]) == "hello\n"

    def test_failure_carries_status_and_stderr(self):
        with pytest.raises(InstallExecutionError) as exc_info:
            run_command(["sh", "-c", "echo oops >&2; exit 3"])

        assert exc_info.value.returncode == 3
        assert "oops" in exc_info.value.stderr
        assert "exit status 3" in str(exc_info.value)

    def test_missing_program(self):
        with pytest.raises(InstallExecutionError) as exc_info:
            run_command(["localsetup-no-such-program"])

        assert exc_info.value.returncode == 127

    def test_stringifies_paths(self, tmp_path):
        with patch("subprocess.run") as mock_run:
            mock_run.return_value.returncode = 0
            mock_run.return_value.stdout = ""

            run_command([tmp_path / "tool", "arg"], cwd=tmp_path)

        args, kwargs = mock_run.call_args
        assert args[0] == [str(tmp_path / "tool"), "arg"]
        assert kwargs["cwd"] == tmp_path


class TestRawBinary:
    """Test raw_binary()."""

    def test_installs_executable(self, cache_dir, localdir):
        file = cache_artifact(cache_dir, "jq-1.6-linux64", b"\x7fELF")

        installable = raw_binary(file, "jq")
        installable.install(localdir)

        binary = localdir / "bin" / "jq"
        assert binary.read_bytes() == b"\x7fELF"
        assert os.access(binary, os.X_OK)
        assert installable.manifest_name == "jq-1.6-linux64"


class TestZippedBinary:
    """Test zipped_binary()."""

    def test_unpacks_into_bin(self, cache_dir, localdir, zip_bytes):
        file = cache_artifact(
            cache_dir, "terraform_1.0.0_linux_amd64.zip", zip_bytes({"terraform": b"bin"})
        )

        zipped_binary(file).install(localdir)

        binary = localdir / "bin" / "terraform"
        assert binary.read_bytes() == b"bin"
        assert os.access(binary, os.X_OK)


class TestZippedPackage:
    """Test zipped_package()."""

    def test_unpacks_into_localdir(self, cache_dir, localdir, zip_bytes):
        file = cache_artifact(
            cache_dir,
            "gradle-7.4-bin.zip",
            zip_bytes(
                {"gradle-7.4/bin/gradle": b"#!/bin/sh\n"},
                modes={"gradle-7.4/bin/gradle": 0o755},
            ),
        )

        zipped_package(file).install(localdir)

        assert os.access(localdir / "gradle-7.4" / "bin" / "gradle", os.X_OK)

    def test_subdir(self, cache_dir, localdir, zip_bytes):
        file = cache_artifact(
            cache_dir, "awscli.zip", zip_bytes({"aws/dist/aws": b"x"})
        )

        zipped_package(file, "lib").install(localdir)

        assert (localdir / "lib" / "aws" / "dist" / "aws").exists()


class TestTarPackage:
    """Test tar_package()."""

    @pytest.mark.parametrize(
        "compression,mode",
        [("gzip", "gz"), ("xz", "xz"), ("--gzip", "gz"), ("--xz", "xz")],
    )
    def test_unpacks(self, cache_dir, localdir, tar_bytes, compression, mode):
        file = cache_artifact(
            cache_dir,
            f"yarn-v1.22.15.tar.{mode}",
            tar_bytes({"yarn-v1.22.15/bin/yarn": b"js"}, compression=mode),
        )

        tar_package(file, compression).install(localdir)

        assert (localdir / "yarn-v1.22.15" / "bin" / "yarn").read_bytes() == b"js"

    @pytest.mark.parametrize("compression", ["bzip2", "---gzip", "-xz", "GZIP"])
    def test_rejects_unknown_compression(self, compression):
        file = DownloadFile("https://example.com/a.tar.bz2", "a.tar.bz2")

        with pytest.raises(ValueError, match="Unsupported tar compression"):
            tar_package(file, compression)

    def test_manifest_name_is_cached_name(self):
        file = DownloadFile("https://example.com/a.tgz", "a-1.0-linux.tar.gz")

        assert tar_package(file, "gzip").manifest_name == "a-1.0-linux.tar.gz"


class TestMacosPackage:
    """Test macos_package() with pkgutil mocked."""

    def test_moves_payload_into_prefix(self, cache_dir, localdir):
        file = cache_artifact(cache_dir, "AWSCLIV2-2.2.18.pkg", b"xar!")
        localdir.mkdir()

        def fake_pkgutil(cmd):
            staging = Path(cmd[3])
            payload = staging / "aws-cli.pkg" / "Payload" / "aws-cli"
            payload.mkdir(parents=True)
            (payload / "aws").write_text("#!/bin/sh\n")
            return ""

        with patch(
            "localsetup.installers.run_command", side_effect=fake_pkgutil
        ) as mock_run:
            macos_package(file, "lib").install(localdir)

        cmd = mock_run.call_args[0][0]
        assert cmd[:2] == ["pkgutil", "--expand-full"]
        assert cmd[2] == cache_dir / "AWSCLIV2-2.2.18.pkg"
        assert (localdir / "lib" / "aws-cli" / "aws").exists()
        assert [p.name for p in localdir.iterdir()] == ["lib"]

    def test_staging_removed_on_failure(self, cache_dir, localdir):
        file = cache_artifact(cache_dir, "AWSCLIV2-2.2.18.pkg", b"xar!")
        localdir.mkdir()

        def failing_pkgutil(cmd):
            Path(cmd[3]).mkdir()
            raise InstallExecutionError(cmd, 1, "bad package")

        with patch("localsetup.installers.run_command", side_effect=failing_pkgutil):
            with pytest.raises(InstallExecutionError):
                macos_package(file, "lib").install(localdir)

        assert list(localdir.iterdir()) == []


@pytest.mark.skipif(shutil.which("bash") is None, reason="bash not available")
class TestShellInstaller:
    """Test shell_installer() with a real script."""

    def test_runs_with_prefix(self, cache_dir, localdir):
        script = (
            b'prefix="${1#--prefix=}"\n'
            b'mkdir -p "$prefix/bin"\n'
            b'echo installed > "$prefix/bin/tool"\n'
        )
        file = cache_artifact(cache_dir, "tool-1.0-installer.sh", script)

        shell_installer(file, "tool-1.0").install(localdir)

        assert (localdir / "tool-1.0" / "bin" / "tool").read_text() == "installed\n"

    def test_failure_raises(self, cache_dir, localdir):
        file = cache_artifact(
            cache_dir, "broken-installer.sh", b"echo 'disk full' >&2\nexit 2\n"
        )

        with pytest.raises(InstallExecutionError) as exc_info:
            shell_installer(file, "broken").install(localdir)

        assert exc_info.value.returncode == 2
        assert "disk full" in exc_info.value.stderr


class TestDenoScript:
    """Test deno_script()."""

    def test_manifest_name_includes_url(self):
        installable = deno_script("dnit", "https://deno.land/x/dnit@dnit-v1.12.9/main.ts")

        assert installable.manifest_name == (
            "dnit-https://deno.land/x/dnit@dnit-v1.12.9/main.ts"
        )

    def test_invokes_local_deno(self, localdir):
        url = "https://deno.land/x/dnit@dnit-v1.12.9/main.ts"

        with patch("localsetup.installers.run_command") as mock_run:
            deno_script("dnit", url).install(localdir)

        cmd = mock_run.call_args[0][0]
        assert cmd[0] == localdir / "bin" / "deno"
        assert cmd[1] == "install"
        assert "--root" in cmd and cmd[cmd.index("--root") + 1] == localdir
        assert cmd[-3:] == ["--name", "dnit", url]
