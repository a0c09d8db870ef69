"""Unit tests for source tree resolution."""

import pytest

from capibuild.errors import NotFoundError
from capibuild.source.resolver import SourceTree, SourceTreeResolver, is_source_root


class TestSourceTree:
    """Test cases for SourceTree paths."""

    def test_paths(self, source_root):
        """Test paths inside the checkout."""
        tree = SourceTree(source_root)
        assert tree.header == source_root / "c" / "engine.h"
        assert tree.impl == source_root / "c" / "engine.cc"
        assert tree.manifest == source_root / "c" / "BUILD"
        assert tree.stub == source_root / "c" / "capi_dllmain.cc"
        assert tree.bazel_output_dir == source_root / "bazel-bin" / "c"
        assert tree.prebuilt_dir("linux_x86_64") == source_root / "prebuilt" / "linux_x86_64"

    def test_patched_files_order(self, source_root):
        """Test the manifest is patched before the header and implementation."""
        tree = SourceTree(source_root)
        assert tree.patched_files() == [tree.manifest, tree.header, tree.impl]


class TestSourceTreeResolver:
    """Test cases for SourceTreeResolver."""

    def test_explicit_path(self, source_root, tmp_path):
        """Test an explicit path with the marker file is accepted."""
        resolver = SourceTreeResolver(tmp_path / "project", home_dir=tmp_path / "home")
        assert resolver.resolve(source_root) == source_root.resolve()

    def test_explicit_path_without_marker(self, tmp_path):
        """Test an explicit path missing the marker fails with the expected path."""
        empty = tmp_path / "empty"
        (empty / "c").mkdir(parents=True)
        resolver = SourceTreeResolver(tmp_path / "project", home_dir=tmp_path / "home")

        with pytest.raises(NotFoundError) as exc_info:
            resolver.resolve(empty)

        assert "engine.h" in exc_info.value.hint

    def test_explicit_path_does_not_fall_back(self, make_tree, tmp_path):
        """Test a bad explicit path is an error even if a candidate exists."""
        project = tmp_path / "project"
        project.mkdir()
        make_tree(tmp_path / "LiteRT-LM")
        resolver = SourceTreeResolver(project, home_dir=tmp_path / "home")

        with pytest.raises(NotFoundError):
            resolver.resolve(tmp_path / "missing")

    def test_sibling_directory(self, make_tree, tmp_path):
        """Test a sibling checkout next to the project is found."""
        project = tmp_path / "project"
        project.mkdir()
        sibling = make_tree(tmp_path / "litert-lm")
        resolver = SourceTreeResolver(project, home_dir=tmp_path / "home")

        assert resolver.resolve() == sibling.resolve()

    def test_candidate_order(self, make_tree, tmp_path):
        """Test the first matching candidate wins."""
        project = tmp_path / "project"
        project.mkdir()
        nested = make_tree(project / "LiteRT-LM")
        sibling = make_tree(tmp_path / "LiteRT-LM-main")
        resolver = SourceTreeResolver(project, home_dir=tmp_path / "home")

        assert resolver.resolve() == sibling.resolve()
        assert resolver.resolve() != nested.resolve()

    def test_home_directory_fallback(self, make_tree, tmp_path):
        """Test the home directory is probed last."""
        project = tmp_path / "work" / "project"
        project.mkdir(parents=True)
        home_tree = make_tree(tmp_path / "home" / "LiteRT-LM")
        resolver = SourceTreeResolver(project, home_dir=tmp_path / "home")

        assert resolver.resolve() == home_tree.resolve()
        assert resolver.candidates()[-1] == tmp_path / "home" / "LiteRT-LM"

    def test_nothing_found_lists_candidates(self, tmp_path):
        """Test the error lists every probed location."""
        project = tmp_path / "project"
        project.mkdir()
        resolver = SourceTreeResolver(project, home_dir=tmp_path / "home")

        with pytest.raises(NotFoundError) as exc_info:
            resolver.resolve()

        for candidate in resolver.candidates():
            assert str(candidate) in exc_info.value.hint

    def test_is_source_root(self, source_root, tmp_path):
        """Test the marker check."""
        assert is_source_root(source_root)
        assert not is_source_root(tmp_path)
