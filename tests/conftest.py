import shlex
import sys
import textwrap
from pathlib import Path
from typing import Dict, Optional

import pytest

from faims2mzml.config import Config
from faims2mzml.readers import ScanReader


class FakeScanReader(ScanReader):
    """In-memory scan reader; records every lookup."""

    def __init__(self, file_path: Path, filters: Dict[int, str], scan_start: int = 1, scan_end: Optional[int] = None):
        super().__init__(file_path)
        self.filters = filters
        self._scan_start = scan_start
        self._scan_end = scan_end if scan_end is not None else max(filters, default=0)
        self.lookups = []
        self.closed = False

    @property
    def scan_start(self) -> int:
        return self._scan_start

    @property
    def scan_end(self) -> int:
        return self._scan_end

    def get_filter_text(self, scan_number: int) -> Optional[str]:
        self.lookups.append(scan_number)
        return self.filters.get(scan_number)

    def close(self) -> None:
        self.closed = True


def alternating_filters(cv_texts, scans_per_cv: int) -> Dict[int, str]:
    """Filters cycling through cv_texts, scans_per_cv scans for each."""
    filters = {}
    scan_number = 1
    for _ in range(scans_per_cv):
        for cv_text in cv_texts:
            filters[scan_number] = f"FTMS + p NSI {cv_text} Full ms"
            scan_number += 1
    return filters


MZML_TEMPLATE = """\
<?xml version="1.0" encoding="utf-8"?>
<indexedmzML xmlns="http://psi.hupo.org/ms/mzml">
  <mzML xmlns="http://psi.hupo.org/ms/mzml" id="sample" version="1.1.0">
    <run id="sample">
      <spectrumList count="3" defaultDataProcessingRef="pwiz_Reader_Thermo_conversion">
        <spectrum index="5" id="controllerType=0 controllerNumber=1 scan=6" defaultArrayLength="10">
          <cvParam cvRef="MS" accession="MS:1000511" name="ms level" value="1"/>
        </spectrum>
        <spectrum index="9" id="controllerType=0 controllerNumber=1 scan=10" defaultArrayLength="12">
          <cvParam cvRef="MS" accession="MS:1000511" name="ms level" value="2"/>
        </spectrum>
        <spectrum index="20" id="controllerType=0 controllerNumber=1 scan=21" defaultArrayLength="8">
          <cvParam cvRef="MS" accession="MS:1000511" name="ms level" value="2"/>
        </spectrum>
      </spectrumList>
    </run>
  </mzML>
  <indexList count="2">
    <index name="spectrum">
      <offset idRef="controllerType=0 controllerNumber=1 scan=6">1024</offset>
    </index>
  </indexList>
  <indexListOffset>4096</indexListOffset>
  <fileChecksum>0123456789abcdef</fileChecksum>
</indexedmzML>
"""

FAKE_MSCONVERT = textwrap.dedent('''\
    """Stand-in for msconvert used by the tests."""
    import json
    import os
    import sys

    MZML = {mzml!r}

    args = sys.argv[1:]
    log_path = os.environ.get("FAKE_MSCONVERT_LOG")
    if log_path:
        with open(log_path, "a") as log:
            log.write(json.dumps({{"args": args, "cwd": os.getcwd()}}) + "\\n")

    output_path = args[args.index("--outfile") + 1]
    input_path = args[-1]
    filters = [args[i + 1] for i, arg in enumerate(args) if arg == "--filter"]

    fail_text = os.environ.get("FAKE_MSCONVERT_FAIL")
    if fail_text and any(fail_text in f for f in filters):
        sys.exit(1)

    if input_path.endswith(".mzML"):
        with open(input_path) as source:
            content = source.read()
        with open(output_path, "w") as target:
            target.write("<indexedmzML>\\n" + content + "<indexList count=\\"0\\"/>\\n</indexedmzML>\\n")
    else:
        with open(output_path, "w") as target:
            target.write(MZML)
''').format(mzml=MZML_TEMPLATE)


@pytest.fixture
def fake_msconvert(tmp_path) -> Path:
    script = tmp_path / "tools" / "fake_msconvert.py"
    script.parent.mkdir()
    script.write_text(FAKE_MSCONVERT)
    return script


@pytest.fixture
def msconvert_log(tmp_path, monkeypatch) -> Path:
    log_path = tmp_path / "msconvert_calls.jsonl"
    monkeypatch.setenv("FAKE_MSCONVERT_LOG", str(log_path))
    return log_path


@pytest.fixture
def config(fake_msconvert) -> Config:
    return Config(
        input_path="",
        msconvert_path=fake_msconvert,
        msconvert_launcher=shlex.quote(sys.executable),
        timeout_minutes=1,
    )
