from enum import Enum


class FileExtension(Enum):
    """File Extension enum"""

    PARQUET = ".parquet"
    FEATHER = ".feather"
    ARROW = ".arrow"
    CSV = ".csv"
    TSV = ".tsv"
    TXT = ".txt"
    BED = ".bed"
    PKL = ".pkl"
    GZ = ".gz"


# interval table columns (GRanges convention: 1-based, closed)
SEQNAMES = "seqnames"
START = "start"
END = "end"
INTERVAL_COLUMNS = [SEQNAMES, START, END]
COLUMN_ALIASES = {
    "chrom": SEQNAMES,
    "chr": SEQNAMES,
    "chromosome": SEQNAMES,
    "Chromosome": SEQNAMES,
    "Chrom": SEQNAMES,
    "Start": START,
    "End": END,
}
MASK_ANNOTATION = "mask"

# reference metadata
DEFAULT_REFERENCE = "hg19"
CHROMOSOME = "chromosome"
LENGTH = "length"
COLOR = "color"
UCSC_PREFIX = "chr"

# scatterplot output
X = "x"
Y = "y"
NEW_START = "new_start"
DEFAULT_COLOR_NUMERIC = 0.0
COVERAGE_ARROW = "coverage.arrow"
HETSNPS_ARROW = "hetsnps.arrow"

# coverage
DEFAULT_COVERAGE_FIELD = "foreground"
DEFAULT_COVERAGE_BIN_WIDTH = 10000
READ_LENGTH = 151
PLOIDY = 2

# hetsnps
REF_COUNT_TUMOR = "ref.count.t"
ALT_COUNT_TUMOR = "alt.count.t"
ALT_FRAC_NORMAL = "alt.frac.n"
ALT_FRAC_TUMOR = "alt.frac.t"
WHICH_MAJOR = "which.major"
MAJOR_COUNT = "major.count"
MINOR_COUNT = "minor.count"
COUNT = "count"
ALLELE = "allele"
MAJOR = "major"
MINOR = "minor"
ALLELE_COLOR_FIELD = "col"
ALLELE_COLORS = {MAJOR: "red", MINOR: "blue"}
DEFAULT_MIN_NORMAL_FREQ = 0.2
DEFAULT_MAX_NORMAL_FREQ = 0.8
DEFAULT_SUBSAMPLE_SIZE = 100000
DEFAULT_HETSNPS_BIN_WIDTH = 1
SUBSAMPLE_SEED = 42
