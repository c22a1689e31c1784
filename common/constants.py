"""Project-wide constants (listing defaults, HTTP settings, output file names)."""

DEFAULT_PAGE_SIZE: int = 1000
DEFAULT_OBJECT_SUFFIX: str = ".ccf"
DEFAULT_OUTPUT_DIR: str = "./output"

DEFAULT_TIMEOUT_SECONDS: float = 30.0
DEFAULT_RETRIES: int = 2
DEFAULT_RETRY_DELAY_SECONDS: float = 1.0
DEFAULT_WORKERS: int = 4
DEFAULT_LISTING_WORKERS: int = 4

AUTH_SCHEME: str = "HCP"
REST_PREFIX: str = "rest"
OBJECT_CONTENT_TYPE: str = "application/octet-stream"
DOWNLOAD_PIECE_SIZE_BYTES: int = 64 * 1024

NO_HTTP_STATUS: str = "000"

# Listing run artifacts
SCAN_LOG_NAME: str = "scan.log"
RESULTS_FOUND_NAME: str = "results_found.tsv"
MULTI_LOCATION_NAME: str = "multi_location.txt"
RESULTS_CODES_NAME: str = "results_codes.tsv"
RAW_DIR_NAME: str = "raw"

# Replication run artifacts
COPY_LOG_NAME: str = "copy.log"
COPY_SUMMARY_NAME: str = "copy_summary.tsv"
SCRATCH_DIR_NAME: str = "tmp"

INVENTORY_HEADER: str = "path\tnodes"
SUMMARY_COLUMNS: tuple[str, ...] = (
    "path",
    "source_nodes",
    "target_node",
    "target_probe_status",
    "decision",
    "info",
)
