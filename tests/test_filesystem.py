"""Tests for LocalFilesystem."""

import pytest

from shipyard.remote.filesystem import LocalFilesystem


@pytest.fixture
def fs(tmp_path):
    return LocalFilesystem(tmp_path)


class TestLocalFilesystem:

    def test_write_read_roundtrip_creates_parents(self, fs, tmp_path):
        fs.write("shared/config/app.ini", "[app]\n")
        assert (tmp_path / "shared" / "config" / "app.ini").read_text() == "[app]\n"
        assert fs.read("shared/config/app.ini") == "[app]\n"

    def test_absolute_paths_reanchored_under_root(self, fs, tmp_path):
        fs.write("/etc/app.conf", "x")
        assert (tmp_path / "etc" / "app.conf").exists()
        assert fs.exists("/etc/app.conf")

    def test_escape_refused(self, fs):
        with pytest.raises(ValueError, match="escapes"):
            fs.read("../../etc/passwd")

    def test_exists(self, fs):
        assert fs.exists("nope") is False
        fs.create_dir("releases")
        assert fs.exists("releases") is True

    def test_list_contents(self, fs):
        fs.write("releases/2/app.txt", "b")
        fs.write("releases/1/app.txt", "a")
        top = fs.list_contents("releases")
        assert [m.path for m in top] == ["releases/1", "releases/2"]
        assert all(m.type == "dir" for m in top)

        deep = fs.list_contents("releases", recursive=True)
        assert [m.path for m in deep] == [
            "releases/1", "releases/1/app.txt", "releases/2", "releases/2/app.txt",
        ]

    def test_list_missing_dir_is_empty(self, fs):
        assert fs.list_contents("missing") == []

    def test_metadata(self, fs):
        fs.write("REVISION", "abc123")
        meta = fs.get_metadata("REVISION")
        assert meta.path == "REVISION"
        assert meta.type == "file"
        assert meta.size == 6
        assert meta.timestamp > 0
        assert meta.to_dict()["size"] == 6

    def test_metadata_missing_raises(self, fs):
        with pytest.raises(FileNotFoundError):
            fs.get_metadata("missing")

    def test_delete_file_and_tree(self, fs):
        fs.write("a.txt", "a")
        fs.write("tree/b/c.txt", "c")
        assert fs.delete("a.txt") is True
        assert fs.delete("tree") is True
        assert not fs.exists("a.txt")
        assert not fs.exists("tree")

    def test_delete_missing_raises(self, fs):
        with pytest.raises(FileNotFoundError):
            fs.delete("missing")
