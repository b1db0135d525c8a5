import pytest

from faims2mzml.files import find_input_files, split_input_path


@pytest.fixture
def tree(tmp_path):
    for relative in [
        "a.raw",
        "b.raw",
        "notes.txt",
        "sub/c.raw",
        "sub/deeper/d.raw",
    ]:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"")
    return tmp_path


def names(paths):
    return [p.name for p in paths]


def test_single_file(tree):
    assert names(find_input_files(str(tree / "a.raw"))) == ["a.raw"]


def test_missing_file(tree):
    assert find_input_files(str(tree / "missing.raw")) == []
    assert find_input_files(str(tree / "nowhere" / "*.raw")) == []


def test_directory_defaults_to_raw_files(tree):
    assert split_input_path(str(tree))[1] == "*.raw"
    assert names(find_input_files(str(tree))) == ["a.raw", "b.raw"]


def test_wildcard(tree):
    assert names(find_input_files(str(tree / "*.raw"))) == ["a.raw", "b.raw"]
    assert names(find_input_files(str(tree / "*.txt"))) == ["notes.txt"]


def test_recursion_levels(tree):
    pattern = str(tree / "*.raw")

    assert names(find_input_files(pattern, recurse=False, max_levels=0)) == ["a.raw", "b.raw"]
    assert names(find_input_files(pattern, recurse=True, max_levels=1)) == ["a.raw", "b.raw"]
    assert names(find_input_files(pattern, recurse=True, max_levels=2)) == ["a.raw", "b.raw", "c.raw"]
    assert names(find_input_files(pattern, recurse=True, max_levels=0)) == ["a.raw", "b.raw", "c.raw", "d.raw"]


def test_file_name_with_brackets(tmp_path):
    (tmp_path / "QC[1].raw").write_bytes(b"")
    (tmp_path / "QC1.raw").write_bytes(b"")

    assert names(find_input_files(str(tmp_path / "QC[1].raw"))) == ["QC[1].raw"]
    assert names(find_input_files(str(tmp_path / "QC[1].raw"), recurse=True, max_levels=0)) == ["QC[1].raw"]
    assert names(find_input_files(str(tmp_path / "QC[*.raw"))) == ["QC[1].raw"]
