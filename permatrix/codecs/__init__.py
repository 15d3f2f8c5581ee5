"""Text (CSV) and structured (JSON) codecs for the permission model."""

from permatrix.codecs.csv_codec import CSV_EXPORT_FILENAME, decode_csv, encode_csv
from permatrix.codecs.json_codec import decode_json, encode_json, from_document, to_document

__all__ = [
    "CSV_EXPORT_FILENAME",
    "decode_csv",
    "decode_json",
    "encode_csv",
    "encode_json",
    "from_document",
    "to_document",
]
