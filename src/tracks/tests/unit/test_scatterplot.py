import numpy as np
import pandas as pd
import pyarrow as pa
import pytest
from pgvlift_core.errors import InputError
from pgvlift_core.reference_metadata import load_reference
from pgvlift_tracks.scatterplot import (
    SCATTERPLOT_SCHEMA,
    granges_to_arrow_scatterplot,
    normalize_coverage,
    read_scatterplot_arrow,
    rebin_to_global_coordinates,
    scatterplot_table,
    write_scatterplot_arrow,
)


@pytest.fixture
def reference(settings_json):
    return load_reference(settings_json, "toy")


class TestRebinToGlobalCoordinates:
    def test_no_binning_adds_chromosome_offset(self, reference):
        intervals = pd.DataFrame({"seqnames": ["chr2", "chr1"], "start": [10, 5], "end": [20, 6], "value": [5.0, 1.0]})
        dat = rebin_to_global_coordinates(intervals, "value", reference, bin_width=1)
        assert list(dat["new_start"]) == [1010, 5]
        assert list(dat["value"]) == [5.0, 1.0]

    def test_one_style_names_are_harmonized(self, reference):
        intervals = pd.DataFrame({"seqnames": ["2"], "start": [10], "end": [20], "value": [5.0]})
        dat = rebin_to_global_coordinates(intervals, "value", reference, bin_width=None)
        assert list(dat["new_start"]) == [1010]
        assert list(dat["seqnames"]) == ["chr2"]

    def test_width_weighted_mean_per_bin(self, reference):
        intervals = pd.DataFrame(
            {
                "seqnames": ["chr1", "chr1", "chr1", "chr2"],
                "start": [1, 101, 401, 1],
                "end": [100, 300, 500, 100],
                "value": [1.0, 4.0, np.nan, 2.0],
            }
        )
        dat = rebin_to_global_coordinates(intervals, "value", reference, bin_width=400)
        assert list(dat["new_start"]) == [1, 401, 1001]
        assert dat["value"].iloc[0] == pytest.approx(3.0)
        assert np.isnan(dat["value"].iloc[1])
        assert dat["value"].iloc[2] == pytest.approx(2.0)

    def test_color_field_separates_series(self, reference):
        intervals = pd.DataFrame(
            {
                "seqnames": ["chr1"] * 4,
                "start": [10, 10, 20, 20],
                "end": [10, 10, 20, 20],
                "count": [30, 10, 20, 20],
                "col": ["#FF0000", "#0000FF", "#FF0000", "#0000FF"],
            }
        )
        dat = rebin_to_global_coordinates(intervals, "count", reference, bin_width=100, color_field="col")
        assert len(dat) == 2
        red = dat[dat["col"] == "#FF0000"]
        blue = dat[dat["col"] == "#0000FF"]
        assert red["count"].iloc[0] == pytest.approx(25.0)
        assert blue["count"].iloc[0] == pytest.approx(15.0)

    def test_unknown_chromosomes_dropped(self, reference):
        intervals = pd.DataFrame({"seqnames": ["chr1", "chr7"], "start": [1, 1], "end": [2, 2], "value": [1.0, 2.0]})
        dat = rebin_to_global_coordinates(intervals, "value", reference, bin_width=1)
        assert list(dat["value"]) == [1.0]

    def test_missing_field(self, reference):
        intervals = pd.DataFrame({"seqnames": ["chr1"], "start": [1], "end": [2]})
        with pytest.raises(InputError, match="value"):
            rebin_to_global_coordinates(intervals, "value", reference)


class TestNormalizeCoverage:
    def test_normalize_coverage(self):
        intervals = pd.DataFrame({"seqnames": ["chr1", "chr1"], "start": [1, 1001], "end": [1000, 1151], "cov": [1, 2]})
        normalized = normalize_coverage(intervals, "cov")
        assert normalized["cov"].tolist() == pytest.approx([0.302, 4.0])
        assert intervals["cov"].tolist() == [1, 2]


class TestScatterplotTable:
    def test_sorted_no_missing_y_black_default(self):
        points = pd.DataFrame({"x": [30.0, 10.0, 20.0, 5.0], "y": [1.0, 2.0, np.nan, 4.0], "color": [1.0, np.nan, 3.0, 4.0]})
        table = scatterplot_table(points)
        assert table.schema.equals(SCATTERPLOT_SCHEMA)
        assert table.column("x").to_pylist() == [5.0, 10.0, 30.0]
        assert table.column("y").to_pylist() == [4.0, 2.0, 1.0]
        assert table.column("color").to_pylist() == [4.0, 0.0, 1.0]


class TestGrangesToArrowScatterplot:
    def test_reference_colors(self, settings_json):
        intervals = pd.DataFrame({"seqnames": ["chr2"], "start": [10], "end": [20], "value": [5.0]})
        table = granges_to_arrow_scatterplot(
            intervals, field="value", ref="toy", ref_seqinfo_json=settings_json, bin_width=1, mask=False
        )
        assert table.to_pydict() == {"x": [1010.0], "y": [5.0], "color": [65280.0]}

    def test_binned_x(self, settings_json):
        intervals = pd.DataFrame({"seqnames": ["chr2"], "start": [10], "end": [20], "value": [5.0]})
        table = granges_to_arrow_scatterplot(
            intervals, field="value", ref="toy", ref_seqinfo_json=settings_json, bin_width=10000, mask=False
        )
        assert table.column("x").to_pylist() == [1001.0]

    def test_color_field(self, settings_json):
        intervals = pd.DataFrame(
            {"seqnames": ["chr1", "chr1"], "start": [10, 5], "end": [10, 5], "value": [1.0, 2.0], "col": ["#0000FF", None]}
        )
        table = granges_to_arrow_scatterplot(
            intervals,
            field="value",
            ref="toy",
            cov_color_field="col",
            ref_seqinfo_json=settings_json,
            bin_width=1,
            mask=False,
        )
        assert table.to_pydict() == {"x": [5.0, 10.0], "y": [2.0, 1.0], "color": [0.0, 255.0]}

    def test_no_reference_metadata_black(self, settings_json):
        reference = load_reference(settings_json, "toy")
        intervals = pd.DataFrame({"seqnames": ["chr1"], "start": [10], "end": [10], "value": [1.0]})
        table = granges_to_arrow_scatterplot(
            intervals, field="value", ref_seqinfo_json=None, bin_width=1, mask=False, reference=reference
        )
        assert table.column("color").to_pylist() == [0.0]

    def test_mask(self, settings_json, tmp_path):
        mask_path = tmp_path / "mask.bed"
        mask_path.write_text("chr1\t99\t200\n")
        intervals = pd.DataFrame(
            {"seqnames": ["chr1", "chr1"], "start": [50, 150], "end": [60, 160], "value": [1.0, 2.0]}
        )
        table = granges_to_arrow_scatterplot(
            intervals, field="value", ref="toy", ref_seqinfo_json=settings_json, bin_width=1, mask_path=str(mask_path)
        )
        assert table.column("y").to_pylist() == [1.0]

    def test_from_file(self, settings_json, tmp_path):
        path = tmp_path / "cov.parquet"
        pd.DataFrame({"seqnames": ["chr1"], "start": [1], "end": [10], "foreground": [1.5]}).to_parquet(path)
        table = granges_to_arrow_scatterplot(str(path), ref="toy", ref_seqinfo_json=settings_json, mask=False)
        assert table.column("y").to_pylist() == [1.5]

    def test_invalid_input(self, settings_json, tmp_path):
        with pytest.raises(InputError):
            granges_to_arrow_scatterplot(str(tmp_path / "missing.parquet"), ref_seqinfo_json=settings_json)
        with pytest.raises(InputError):
            granges_to_arrow_scatterplot([1, 2, 3], ref_seqinfo_json=settings_json)


class TestWriteScatterplotArrow:
    def test_write_and_overwrite(self, tmp_path):
        out_file = tmp_path / "coverage.arrow"
        write_scatterplot_arrow(pd.DataFrame({"x": [2.0, 1.0], "y": [1.0, 1.0], "color": [0.0, 0.0]}), out_file)
        write_scatterplot_arrow(pd.DataFrame({"x": [3.0], "y": [7.0], "color": [np.nan]}), out_file)
        table = read_scatterplot_arrow(out_file)
        assert table.schema.equals(SCATTERPLOT_SCHEMA)
        assert table.to_pydict() == {"x": [3.0], "y": [7.0], "color": [0.0]}
        assert isinstance(table, pa.Table)
