"""Shared fixtures: a small synthetic cohort written as input tables.

Regulators 1001-1004 (ranked in that order) over samples S1-S3:

- S1: active 1001, 1004; events mut 7157/672, amp 17q12, del 9p21.3, fus 238
- S2: active 1002; events mut 1956, del 9p21.3
- S3: active 1001, 1002; events mut 7157/1956, amp 17q12
- S4 has activity and copy number but no mutation data, so it is excluded

Expected mean fraction: k=1 0.3556, k=2 0.8, k=3 0.8, k=4 0.9333.
"""

import pytest

TABLES = {
    "ranking.tsv": """regulator
1001
1002
1003
1004
""",
    "activity.tsv": """regulator\tS1\tS2\tS3\tS4
1001\t3.0\t0.1\t2.5\t3.0
1002\t0.0\t2.8\t2.5\t0.0
1003\t0.0\t0.0\t0.0\t0.0
1004\t2.2\t0.0\t0.0\t0.0
""",
    "mutations.tsv": """gene\tS1\tS2\tS3
7157\t1\t0\t1
1956\t0\t1\t1
672\t1\t0\t0
""",
    "copy_number.tsv": """gene\tS1\tS2\tS3\tS4
2064\t1.2\t0.0\t0.9\t0.0
1029\t-1.0\t-0.8\t0.0\t0.0
""",
    "fusions.tsv": """gene\tS1
238\t1
""",
    "interactions.tsv": """event_type\tregulator\tevent\tscore
mut\t1001\t7157\t1.0
mut\t1002\t1956\t1.0
mut\t1004\t672\t1.0
mut\t1003\t672\t-1.0
amp\t1001\t2064\t1.0
del\t1002\t1029\t1.0
fus\t1004\t238\t1.0
""",
    "gene_locations.tsv": """gene_id\tcytoband
2064\t17q12
1029\t9p21.3
7157\t17p13.1
1956\t7p11.2
""",
    "hypotheses.tsv": """event_type\tgene_id
mut\t7157
mut\t1956
mut\t672
amp\t2064
del\t1029
fus\t238
""",
}

CONFIG_TEMPLATE = """
data_dir: {data_dir}
output_dir: {output_dir}
duckdb_path: {duckdb_path}
inputs:
  ranking: ranking.tsv
  activity: activity.tsv
  mutations: mutations.tsv
  copy_number: copy_number.tsv
  fusions: fusions.tsv
  interactions: interactions.tsv
  gene_locations: gene_locations.tsv
  hypotheses: hypotheses.tsv
thresholds:
  activity_pvalue: 0.05
  activity_tail: two_sided
  cnv_threshold: 0.5
coverage:
  memoization: approximate
  max_workers: 2
  saturation_fraction: 0.85
"""


@pytest.fixture
def cohort_dir(tmp_path):
    """Directory holding the synthetic cohort tables."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    for name, content in TABLES.items():
        (data_dir / name).write_text(content)
    return data_dir


@pytest.fixture
def cohort_config_path(tmp_path, cohort_dir):
    """Config YAML pointing at the synthetic cohort."""
    config_path = tmp_path / "config.yaml"
    config_path.write_text(CONFIG_TEMPLATE.format(
        data_dir=str(cohort_dir),
        output_dir=str(tmp_path / "results"),
        duckdb_path=str(tmp_path / "saturation.duckdb"),
    ))
    return config_path
