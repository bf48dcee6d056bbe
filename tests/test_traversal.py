"""Tests for file system traversal functionality."""

import os
from pathlib import Path

import pytest

from queryleak.traversal import (
    DEFAULT_IGNORE_DIRS,
    find_java_files,
    find_source_files,
    is_java_file,
    should_ignore_directory,
)


class TestFileTypeChecks:
    """Test file type checking functions."""

    def test_is_java_file_recognizes_java_extension(self):
        """.java files are recognized."""
        assert is_java_file(Path("Main.java"))
        assert is_java_file(Path("src/main/java/com/example/Repo.java"))

    def test_is_java_file_case_insensitive(self):
        """The extension check ignores case."""
        assert is_java_file(Path("MAIN.JAVA"))

    def test_is_java_file_rejects_other_files(self):
        """Class files and other extensions are rejected."""
        assert not is_java_file(Path("Main.class"))
        assert not is_java_file(Path("Main.kt"))
        assert not is_java_file(Path("build.gradle"))
        assert not is_java_file(Path("README.md"))


class TestDirectoryFiltering:
    """Test directory ignore logic."""

    def test_should_ignore_directory_recognizes_ignored_dirs(self):
        """Directories in the ignore set are skipped."""
        ignore_set = {"build", "target"}
        assert should_ignore_directory(Path("build"), ignore_set)
        assert should_ignore_directory(Path("target"), ignore_set)

    def test_should_ignore_directory_allows_non_ignored_dirs(self):
        """Other directories are traversed."""
        assert not should_ignore_directory(Path("src"), {"build"})

    def test_should_ignore_directory_case_sensitive(self):
        """Ignore matching is case sensitive."""
        assert not should_ignore_directory(Path("Build"), {"build"})

    def test_default_ignore_dirs_includes_common_patterns(self):
        """Build, VCS and test folders are ignored by default."""
        for name in ("build", "target", ".gradle", ".git", "test"):
            assert name in DEFAULT_IGNORE_DIRS


class TestTraversal:
    """Test file traversal functions."""

    @pytest.fixture
    def temp_project(self, tmp_path):
        # tmp_path/
        #   src/main/java/com/example/Repo.java
        #   src/main/java/com/example/Util.java
        #   src/main/java/module-info.java (skipped)
        #   src/test/java/com/example/RepoTest.java (ignored: test/)
        #   target/generated/Gen.java (ignored: target/)
        #   README.md
        pkg = tmp_path / "src" / "main" / "java" / "com" / "example"
        pkg.mkdir(parents=True)
        (pkg / "Repo.java").write_text("class Repo {}")
        (pkg / "Util.java").write_text("class Util {}")
        (tmp_path / "src" / "main" / "java" / "module-info.java").write_text("module x {}")

        test_pkg = tmp_path / "src" / "test" / "java" / "com" / "example"
        test_pkg.mkdir(parents=True)
        (test_pkg / "RepoTest.java").write_text("class RepoTest {}")

        gen = tmp_path / "target" / "generated"
        gen.mkdir(parents=True)
        (gen / "Gen.java").write_text("class Gen {}")

        (tmp_path / "README.md").write_text("# Project")
        return tmp_path

    def test_find_java_files_skips_ignored_dirs(self, temp_project):
        """find_java_files skips ignored dirs and module/package info files."""
        files = find_java_files(temp_project)
        assert {f.name for f in files} == {"Repo.java", "Util.java"}
        assert all("target" not in f.parts for f in files)
        assert all("test" not in f.parts for f in files)

    def test_find_source_files_keeps_module_info(self, temp_project):
        """find_source_files does not drop module-info.java."""
        names = {f.name for f in find_source_files(temp_project)}
        assert "module-info.java" in names

    def test_custom_ignore_dirs(self, temp_project):
        """A custom ignore set replaces the default one."""
        files = find_java_files(temp_project, ignore_dirs={"main"})
        assert {f.name for f in files} == {"RepoTest.java", "Gen.java"}

    def test_filter_fn(self, temp_project):
        """filter_fn selects which files are returned."""
        files = find_source_files(temp_project, filter_fn=lambda p: p.name.startswith("Repo"))
        assert [f.name for f in files] == ["Repo.java"]

    def test_results_are_sorted(self, temp_project):
        """Results come back sorted."""
        files = find_java_files(temp_project)
        assert files == sorted(files)

    def test_missing_root_raises(self, tmp_path):
        """A missing root raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            find_java_files(tmp_path / "missing")

    def test_file_root_raises(self, tmp_path):
        """A file root raises NotADirectoryError."""
        f = tmp_path / "A.java"
        f.write_text("class A {}")
        with pytest.raises(NotADirectoryError):
            find_java_files(f)

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_symlinks_skipped_by_default(self, temp_project, tmp_path_factory):
        """Symlinked directories are not followed by default."""
        outside = tmp_path_factory.mktemp("outside")
        (outside / "Linked.java").write_text("class Linked {}")
        (temp_project / "linked").symlink_to(outside, target_is_directory=True)

        assert "Linked.java" not in {f.name for f in find_java_files(temp_project)}
        followed = find_java_files(temp_project, follow_symlinks=True)
        assert "Linked.java" in {f.name for f in followed}
