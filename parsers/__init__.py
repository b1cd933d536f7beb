"""
Upload parsers module.
"""

from parsers.dataset_parser import (
    parse_dataset,
    parse_delimited_text,
    parse_json_text,
    build_dataset,
    ParsedDataset,
)

__all__ = [
    "parse_dataset",
    "parse_delimited_text",
    "parse_json_text",
    "build_dataset",
    "ParsedDataset",
]
