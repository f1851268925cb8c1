"""Constants used throughout the tree export processor."""

# Node fields carrying flat per-sample metadata
NAMED_META_FIELDS = (
    "meta_genbank_accession",
    "meta_date",
    "meta_country",
    "meta_pangolin_lineage",
)

# Vertical layout scaling (viewer canvas height / node count)
Y_SCALE_NUMERATOR = 24e2
Y_SCALE_LARGE_TREE_THRESHOLD = 10_000
Y_SCALE_SMALL_TREE_FACTOR = 0.6666
Y_ROUND_DECIMALS = 6

# Viewer defaults
DEFAULT_INITIAL_ZOOM = -2.0
DEFAULT_KEYS_TO_DISPLAY = ["name", "num_tips"]

# Marker for a meta key missing on a node
MISSING_META_CODE = -1

# Integer field ranges: signed ids and counts are 32-bit, sizes and
# positions are unsigned 64-bit
INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
UINT64_MAX = 2**64 - 1
