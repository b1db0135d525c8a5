from pathlib import Path

import pytest

from faims2mzml import msconvert
from faims2mzml.msconvert import (
    MSConvert,
    ScanWindow,
    find_msconvert,
    output_file_name,
    renumbered_file_path,
)


@pytest.mark.parametrize("start, end, expected", [
    (0, 0, None),
    (100, 500, "scanNumber [100,500]"),
    (100, 0, "scanNumber [100-]"),
    (0, 500, "scanNumber [1,500]"),
])
def test_scan_window_filter(start, end, expected):
    assert ScanWindow(start, end).to_filter() == expected


def test_output_names():
    assert output_file_name("QC_Mam_19", -45.0) == "QC_Mam_19_-45.mzML"
    assert output_file_name("QC_Mam_19", -65.4) == "QC_Mam_19_-65.mzML"

    path = Path("/data/QC_Mam_19_-45.mzML")
    assert renumbered_file_path(path) == Path("/data/QC_Mam_19_-45_renumbered.mzML")


def test_conversion_command_same_directory(tmp_path):
    tool = MSConvert(Path("/opt/pwiz/msconvert"))

    cmd = tool.conversion_command(tmp_path / "QC.raw", tmp_path / "QC_-45.mzML", "cv=-45.00")

    assert cmd == [
        "/opt/pwiz/msconvert", "--32", "--mzML", "--zlib",
        "--filter", "thermoScanFilter contains include cv=-45.00",
        "--outfile", "QC_-45.mzML", "QC.raw",
    ]


def test_conversion_command_other_directory_with_scan_window(tmp_path):
    tool = MSConvert(Path("msconvert.exe"), launcher=["wine"])
    input_file = tmp_path / "raw" / "QC.raw"
    output_file = tmp_path / "out" / "QC_-45.mzML"

    cmd = tool.conversion_command(input_file, output_file, "cv=-45.00", ScanWindow(10, 0))

    assert cmd[:2] == ["wine", "msconvert.exe"]
    assert cmd[-5:] == [
        "--filter", "scanNumber [10-]",
        "--outfile", str(output_file.resolve()), str(input_file.resolve()),
    ]


def test_reindex_command(tmp_path):
    tool = MSConvert(Path("msconvert"))

    cmd = tool.reindex_command(tmp_path / "QC_-45_renumbered.mzML", tmp_path / "QC_-45.mzML")

    assert cmd == ["msconvert", "--32", "--mzML", "--zlib", "--outfile", "QC_-45.mzML", "QC_-45_renumbered.mzML"]
    assert "--filter" not in cmd


def test_find_msconvert_explicit(tmp_path):
    exe = tmp_path / "msconvert.exe"
    exe.write_text("")

    assert find_msconvert(exe) == exe
    assert find_msconvert(tmp_path) == exe
    assert find_msconvert(tmp_path / "missing.exe") is None


def test_find_msconvert_in_versioned_install_dir(tmp_path, monkeypatch):
    install = tmp_path / "ProteoWizard"
    versioned = install / "ProteoWizard 3.0.21"
    versioned.mkdir(parents=True)
    (versioned / "msconvert.exe").write_text("")

    monkeypatch.setattr(msconvert.shutil, "which", lambda name: None)
    monkeypatch.setattr(msconvert, "TYPICAL_INSTALL_DIRS", [tmp_path / "nowhere", install])

    assert find_msconvert() == versioned / "msconvert.exe"


def test_find_msconvert_not_found(tmp_path, monkeypatch):
    monkeypatch.setattr(msconvert.shutil, "which", lambda name: None)
    monkeypatch.setattr(msconvert, "TYPICAL_INSTALL_DIRS", [tmp_path / "nowhere"])

    assert find_msconvert() is None
