import os
import re

import pytest

from slorules.discovery import discover_slo_manifests, split_yaml


def test_split_yaml_single_document():
    assert split_yaml("a: 1\nb: 2\n") == ["a: 1\nb: 2"]


def test_split_yaml_multiple_documents_and_empty_parts():
    data = "---\na: 1\n---\n\n---\nb: 2\n---\n"
    assert split_yaml(data) == ["a: 1", "b: 2"]


def test_split_yaml_removes_comment_lines():
    data = b"# header\n---\na: 1 # inline stays\n# full line\n---\nb: 2\n"
    docs = split_yaml(data)
    assert docs == ["a: 1 # inline stays", "b: 2"]


def test_split_yaml_only_comments_is_empty():
    assert split_yaml("# one\n# two\n---\n") == []


def test_split_yaml_accepts_bytes_and_str_equally():
    text = "x: 1\n---\ny: 2"
    assert split_yaml(text) == split_yaml(text.encode())


def _make_tree(root):
    (root / "b").mkdir()
    (root / "a").mkdir()
    (root / "a" / "slo1.yaml").write_text("a: 1")
    (root / "a" / "notes.txt").write_text("x")
    (root / "b" / "slo2.YML").write_text("b: 2")
    (root / "b" / "skip-me.yaml").write_text("c: 3")
    (root / "top.yml").write_text("d: 4")


def test_discover_finds_yaml_files_in_lexical_order(tmp_path):
    _make_tree(tmp_path)
    got = discover_slo_manifests(tmp_path)
    expected = [
        os.path.join(str(tmp_path), "a", "slo1.yaml"),
        os.path.join(str(tmp_path), "b", "skip-me.yaml"),
        os.path.join(str(tmp_path), "b", "slo2.YML"),
        os.path.join(str(tmp_path), "top.yml"),
    ]
    assert got == expected


def test_discover_exclude_filter(tmp_path):
    _make_tree(tmp_path)
    got = discover_slo_manifests(tmp_path, exclude="skip")
    assert all("skip" not in p for p in got)
    assert len(got) == 3


def test_discover_include_filter(tmp_path):
    _make_tree(tmp_path)
    got = discover_slo_manifests(tmp_path, include=re.compile(r"slo\d"))
    assert [os.path.basename(p) for p in got] == ["slo1.yaml", "slo2.YML"]


def test_discover_exclude_has_preference(tmp_path):
    _make_tree(tmp_path)
    got = discover_slo_manifests(tmp_path, exclude="slo1", include="slo")
    assert [os.path.basename(p) for p in got] == ["slo2.YML"]


def test_discover_single_file_path(tmp_path):
    target = tmp_path / "one.yaml"
    target.write_text("a: 1")
    assert discover_slo_manifests(target) == [str(target)]


def test_discover_empty_directory(tmp_path):
    assert discover_slo_manifests(tmp_path) == []


def test_discover_missing_path_raises(tmp_path):
    with pytest.raises(OSError):
        discover_slo_manifests(tmp_path / "missing")