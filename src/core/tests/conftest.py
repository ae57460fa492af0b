import json

import pytest


@pytest.fixture
def settings_json(tmp_path):
    """Two references: "toy" (default, 1-style names) and "toy_chr" (chr-style names)"""
    settings = {
        "coordinates": {
            "default": "toy",
            "sets": {
                "toy": [
                    {"chromosome": "1", "length": 1000, "color": "#FF0000"},
                    {"chromosome": "2", "length": 500, "color": "#00FF00"},
                ],
                "toy_chr": [
                    {"chromosome": "chr2", "length": 500, "color": "#0000FF"},
                    {"chromosome": "chr1", "length": 1000, "color": "#FF0000"},
                    {"chromosome": "chrX", "length": 200, "color": "#000000"},
                ],
            },
        }
    }
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(settings))
    return str(path)
