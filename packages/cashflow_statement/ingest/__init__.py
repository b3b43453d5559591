"""CSV ingest for balance-sheet and income-statement exports."""

from .csv_rows import clean_amount, parse_rows, read_records
from .utils import empty_upload_warning, load_rows_from_csv, read_csv_text

__all__ = [
    "clean_amount",
    "empty_upload_warning",
    "load_rows_from_csv",
    "parse_rows",
    "read_csv_text",
    "read_records",
]
