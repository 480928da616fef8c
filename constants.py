"""
nhmmer tblout Constants

Column positions, defaults and summary table names.
All scripts should import from this module to ensure consistency.
"""

# =============================================================================
# TBLOUT COLUMNS - 0-based positions in an nhmmer --tblout data line
# =============================================================================

# target name  accession  query name  accession  hmmfrom  hmm to  alifrom  ali to
#      0           1          2           3         4        5       6        7
# envfrom  env to  sq len  strand  E-value  score  bias  description of target
#    8        9      10      11      12      13     14      15...
TBL_TARGET_NAME = 0
TBL_TARGET_ACCESSION = 1
TBL_QUERY_NAME = 2
TBL_QUERY_ACCESSION = 3
TBL_HMM_FROM = 4
TBL_HMM_TO = 5
TBL_ALI_FROM = 6
TBL_ALI_TO = 7
TBL_ENV_FROM = 8
TBL_ENV_TO = 9
TBL_SQ_LEN = 10
TBL_STRAND = 11
TBL_EVALUE = 12
TBL_SCORE = 13
TBL_BIAS = 14
TBL_DESCRIPTION = 15

# Description may be absent, everything up to bias is required
TBL_MIN_COLUMNS = TBL_BIAS + 1

# Metadata block nhmmer appends after the hits
TBL_COMMENT = "#"
TBL_TARGET_FILE_PREFIX = "# Target file:"

# Strand symbols as written by nhmmer
STRAND_PLUS = "+"
STRAND_MINUS = "-"


# =============================================================================
# THRESHOLDS
# =============================================================================

DEFAULT_EVALUE_THRESHOLD = 1e-5


# =============================================================================
# EXTERNAL TOOLS
# =============================================================================

SSI_SUFFIX = ".ssi"          # esl-sfetch --index output


# =============================================================================
# HITS TABLE - columns of the optional --hits-table summary
# =============================================================================

COL_TARGET_NAME = "target_name"
COL_QUERY_NAME = "query_name"
COL_START = "start"
COL_END = "end"
COL_STRAND = "strand"
COL_EVALUE = "e_value"
COL_SCORE = "score"
COL_STATUS = "status"
COL_RETURNCODE = "returncode"
COL_N_RECORDS = "n_records"
COL_STDERR = "stderr"

HITS_TABLE_COLUMNS = [
    COL_TARGET_NAME, COL_QUERY_NAME, COL_START, COL_END, COL_STRAND,
    COL_EVALUE, COL_SCORE, COL_STATUS, COL_RETURNCODE, COL_N_RECORDS, COL_STDERR,
]

STATUS_FETCHED = "fetched"
STATUS_FAILED = "failed"


# =============================================================================
# EXIT CODES
# =============================================================================

EXIT_OK = 0
EXIT_FETCH_FAILED = 1
EXIT_SETUP_ERROR = 2
