"""
Shared pytest fixtures for chimviz tests

Supports both development mode (python -m chimviz) and installed mode (pip install -e .)
"""
import pytest
from pathlib import Path
import sys

import matplotlib

matplotlib.use('Agg')


DENSITY = """\
chr1\t0\t100000\t0.1
chr1\t100000\t200000\t0.5
chr1\t200000\t300000\t0.9
chr2\t0\t100000\t0.3
"""

FAI = """\
chr1\t300000\t6\t60\t61
chr2\t100000\t305013\t60\t61
"""

FASTA = """\
>chr1 test sequence
ACGTACGTAC
GTACGTACGT
>chr2
ACGTA
"""

# host seqid, pathogen seqid, host pos, pathogen pos, count, host gene, pathogen gene
INTEGRATIONS = """\
chr1\tHIV\t150000\t1000\t500\tgag\tgeneA
chr1\tHIV\t150050\t4500\t20\tgag\tgeneA
chr1\tHIV\t250000\t8000\t5\tenv\t-
chr2\tHIV\t50000\t500\t350\tnef\tgeneB
chrUn\tHIV\t100\t500\t10\tnef\tgeneC
"""

GTF = """\
# pathogen annotation
HIV\ttest\tlong_terminal_repeat\t1\t300\t.\t+\t.\tnote "5LTR";
HIV\ttest\ttranscript\t1\t2000\t.\t+\t.\tgene_id "g1"; transcript_id "t1"; gene_name "gag";
HIV\ttest\texon\t1\t500\t.\t+\t.\tgene_id "g1"; transcript_id "t1";
HIV\ttest\texon\t1000\t2000\t.\t+\t.\tgene_id "g1"; transcript_id "t1";
HIV\ttest\tCDS\t300\t500\t.\t+\t0\tgene_id "g1"; transcript_id "t1";
HIV\ttest\tCDS\t1000\t1500\t.\t+\t0\tgene_id "g1"; transcript_id "t1";
HIV\ttest\ttranscript\t1\t9000\t.\t+\t.\tgene_id "g2"; transcript_id "t2"; gene_name "env";
HIV\ttest\texon\t1\t500\t.\t+\t.\tgene_id "g2"; transcript_id "t2";
HIV\ttest\texon\t5000\t9000\t.\t+\t.\tgene_id "g2"; transcript_id "t2";
HIV\ttest\tCDS\t5500\t8000\t.\t+\t0\tgene_id "g2"; transcript_id "t2";
"""

EXPRESSION = """\
seqid\tpos\tcov\tsample\tdp\tdm\tdn\tap\tam\tan
HIV\t500\t100\ts1\t0.6\t0\t0\t0\t0\t0
HIV\t500\t50\ts2\t0.4\t0\t0\t0\t0\t0
HIV\t1000\t80\ts1\t0\t0\t0\t0.25\t0\t0
"""


@pytest.fixture(scope="session", autouse=True)
def setup_chimviz_path():
    """
    Add repository root to Python path for development mode

    Structure:
      package/                      <- repo root (need to add this to sys.path)
      └── chimviz/                  <- package
          └── tests/
              └── conftest.py       <- we are here
    """
    repo_root = Path(__file__).parent.parent.parent
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))


@pytest.fixture(scope="session")
def inputs_dir(tmp_path_factory) -> Path:
    """Directory holding one small copy of every input format"""
    directory = tmp_path_factory.mktemp("inputs")
    for name, content in (
        ("host.density.tsv", DENSITY),
        ("host.fa.fai", FAI),
        ("host.fa", FASTA),
        ("sample.integrations.tsv", INTEGRATIONS),
        ("pathogen.gtf", GTF),
        ("sample.expression.tsv", EXPRESSION),
    ):
        (directory / name).write_text(content)
    return directory


@pytest.fixture(scope="session")
def density_file(inputs_dir) -> Path:
    return inputs_dir / "host.density.tsv"


@pytest.fixture(scope="session")
def fai_file(inputs_dir) -> Path:
    return inputs_dir / "host.fa.fai"


@pytest.fixture(scope="session")
def fasta_file(inputs_dir) -> Path:
    return inputs_dir / "host.fa"


@pytest.fixture(scope="session")
def integrations_file(inputs_dir) -> Path:
    return inputs_dir / "sample.integrations.tsv"


@pytest.fixture(scope="session")
def gtf_file(inputs_dir) -> Path:
    return inputs_dir / "pathogen.gtf"


@pytest.fixture(scope="session")
def expression_file(inputs_dir) -> Path:
    return inputs_dir / "sample.expression.tsv"


@pytest.fixture
def pathogen_model():
    """
    Pathogen annotation as read from a GTF file

    t3 repeats the CDS chain of t1, t4 overlaps the end of t1's chain.
    """
    return {
        'transcripts': {
            't1': {'exons': [(1, 500), (1000, 2000)], 'cds': [(300, 500), (1000, 1500)], 'gene_name': 'gag'},
            't2': {'exons': [(1, 500), (5000, 9000)], 'cds': [(5500, 8000)], 'gene_name': 'env'},
            't3': {'exons': [(1, 500), (1000, 2000)], 'cds': [(300, 500), (1000, 1500)], 'gene_name': 'gag'},
            't4': {'exons': [(1, 500), (1400, 2000)], 'cds': [(1400, 2000)], 'gene_name': 'nef'},
        },
        'genome_end': 9000,
        'genome_components': [
            {'type': 'ltr', 'position': (1, 300), 'name': '5LTR'},
            {'type': 'da', 'position': 500, 'name': 'SD0'},
            {'type': 'da', 'position': 1000, 'name': 'SA0'},
            {'type': 'da', 'position': 1400, 'name': 'SA1'},
            {'type': 'da', 'position': 5000, 'name': 'SA2'},
        ],
        'genes': {'gag': ['t1', 't3'], 'env': ['t2'], 'nef': ['t4']},
    }


# Pytest configuration
def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests for individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests running readers, layout and rendering together"
    )
