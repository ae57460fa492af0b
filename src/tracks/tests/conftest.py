import json

import pandas as pd
import pytest

HETSNPS_COLUMNS = ["seqnames", "start", "end", "ref.count.t", "alt.count.t", "alt.frac.n", "alt.frac.t"]


@pytest.fixture
def settings_json(tmp_path):
    settings = {
        "coordinates": {
            "default": "toy",
            "sets": {
                "toy": [
                    {"chromosome": "chr1", "length": 1000, "color": "#FF0000"},
                    {"chromosome": "chr2", "length": 500, "color": "#00FF00"},
                ],
                "toy_big": [
                    {"chromosome": "1", "length": 1000000, "color": "#FF0000"},
                    {"chromosome": "2", "length": 500000, "color": "#00FF00"},
                ],
                "toy_hg19_chr1": [
                    {"chromosome": "1", "length": 249250621, "color": "#FF0000"},
                ],
            },
        }
    }
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(settings))
    return str(path)


@pytest.fixture
def empty_mask(tmp_path):
    path = tmp_path / "empty_mask.bed"
    path.write_text("chrUn\t0\t1\n")
    return str(path)


@pytest.fixture
def het_pileups(tmp_path):
    """Four sites: alt major, tie, normal frequency too high, normal frequency on the lower bound"""
    sites = pd.DataFrame(
        [
            ["1", 100, 100, 10, 30, 0.5, 0.75],
            ["1", 200, 200, 20, 20, 0.4, 0.5],
            ["1", 300, 300, 25, 5, 0.9, 0.16],
            ["2", 400, 400, 7, 3, 0.2, 0.3],
        ],
        columns=HETSNPS_COLUMNS,
    )
    path = tmp_path / "sites.txt"
    sites.to_csv(path, sep="\t", index=False)
    return str(path)


@pytest.fixture
def many_het_pileups(tmp_path):
    """Factory writing n heterozygous sites evenly spaced on one chromosome"""

    def _write(n_sites, chrom="1", spacing=1000):
        path = tmp_path / f"sites_{n_sites}.txt"
        sites = pd.DataFrame(
            {
                "seqnames": [chrom] * n_sites,
                "start": [(i + 1) * spacing for i in range(n_sites)],
                "end": [(i + 1) * spacing for i in range(n_sites)],
                "ref.count.t": [10 + i % 7 for i in range(n_sites)],
                "alt.count.t": [12 + i % 5 for i in range(n_sites)],
                "alt.frac.n": [0.5] * n_sites,
                "alt.frac.t": [0.5] * n_sites,
            }
        )
        sites.to_csv(path, sep="\t", index=False)
        return str(path)

    return _write
