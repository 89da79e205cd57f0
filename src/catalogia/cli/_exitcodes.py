"""Process exit codes for the catalogia CLI."""

OK = 0
GENERAL_ERROR = 1
USAGE_ERROR = 2
NOT_FOUND = 3
EXECUTION_FAILURE = 4
