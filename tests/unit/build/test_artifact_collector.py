"""Unit tests for artifact publishing."""

import pytest

from capibuild.build.artifact_collector import ArtifactCollector
from capibuild.errors import ArtifactNotFoundWarning
from capibuild.source.resolver import SourceTree


def write_file(path, size):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\0" * size)
    return path


class TestArtifactCollector:
    """Test cases for ArtifactCollector."""

    def test_publishes_primary_library(self, source_root, linux_profile, tmp_path):
        """Test the built library is copied under its canonical name."""
        tree = SourceTree(source_root)
        write_file(tree.bazel_output_dir / "liblitert_lm_capi.so", 2048)

        artifacts = ArtifactCollector(linux_profile, show_progress=False).collect(
            source_root, tmp_path / "out"
        )

        dest = tmp_path / "out" / "linux_x86_64" / "liblitert_lm_capi.so"
        assert dest.is_file()
        assert artifacts[0].dest_path == dest
        assert artifacts[0].size_bytes == 2048

    def test_alternate_name_published_under_canonical_name(self, source_root, windows_profile, tmp_path):
        """Test a library built under an alternate name is renamed on publish."""
        tree = SourceTree(source_root)
        write_file(tree.bazel_output_dir / "liblitert_lm_capi.dll", 10)

        artifacts = ArtifactCollector(windows_profile, show_progress=False).collect(
            source_root, tmp_path / "out"
        )

        assert artifacts[0].dest_path == tmp_path / "out" / "windows_x86_64" / "litert_lm_capi.dll"

    def test_primary_name_preferred(self, source_root, linux_profile):
        """Test the primary name wins when both names exist."""
        tree = SourceTree(source_root)
        primary = write_file(tree.bazel_output_dir / "liblitert_lm_capi.so", 1)
        write_file(tree.bazel_output_dir / "litert_lm_capi.so", 1)

        assert ArtifactCollector(linux_profile).find_primary(tree) == primary

    def test_copies_prebuilt_siblings(self, source_root, linux_profile, tmp_path):
        """Test runtime libraries with the platform extension are copied in sorted order."""
        tree = SourceTree(source_root)
        write_file(tree.bazel_output_dir / "liblitert_lm_capi.so", 1)
        prebuilt = tree.prebuilt_dir("linux_x86_64")
        write_file(prebuilt / "libGemmaModelConstraintProvider.so", 5)
        write_file(prebuilt / "libLiteRtGpuAccelerator.so", 6)
        write_file(prebuilt / "README.md", 3)

        artifacts = ArtifactCollector(linux_profile, show_progress=False).collect(
            source_root, tmp_path / "out"
        )

        names = [a.dest_path.name for a in artifacts]
        assert names == [
            "liblitert_lm_capi.so",
            "libGemmaModelConstraintProvider.so",
            "libLiteRtGpuAccelerator.so",
        ]

    def test_other_platforms_ignored(self, source_root, linux_profile, tmp_path):
        """Test prebuilt libraries for other platforms are not published."""
        tree = SourceTree(source_root)
        write_file(tree.prebuilt_dir("windows_x86_64") / "accelerator.dll", 1)

        with pytest.warns(ArtifactNotFoundWarning):
            artifacts = ArtifactCollector(linux_profile, show_progress=False).collect(
                source_root, tmp_path / "out"
            )

        assert artifacts == []

    def test_missing_primary_warns(self, source_root, linux_profile, tmp_path, caplog):
        """Test a missing library warns with the expected path and still publishes siblings."""
        tree = SourceTree(source_root)
        write_file(tree.prebuilt_dir("linux_x86_64") / "libaccel.so", 4)

        with pytest.warns(ArtifactNotFoundWarning, match="liblitert_lm_capi.so"):
            artifacts = ArtifactCollector(linux_profile, show_progress=False).collect(
                source_root, tmp_path / "out"
            )

        assert [a.dest_path.name for a in artifacts] == ["libaccel.so"]
        assert str(tree.bazel_output_dir / "liblitert_lm_capi.so") in caplog.text

    def test_progress_output(self, source_root, linux_profile, tmp_path, capsys):
        """Test each copied file is reported with its size."""
        tree = SourceTree(source_root)
        write_file(tree.bazel_output_dir / "liblitert_lm_capi.so", 12 * 1024 * 1024)

        ArtifactCollector(linux_profile).collect(source_root, tmp_path / "out")

        assert "12.00 MB" in capsys.readouterr().out
