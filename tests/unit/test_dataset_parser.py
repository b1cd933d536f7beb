"""
Unit tests for the upload parser.

Tests delimited text and JSON decoding into ParsedDataset.
"""

import json

import pytest

from exceptions import DatasetParseError
from parsers.dataset_parser import (
    ParsedDataset,
    build_dataset,
    parse_dataset,
    parse_delimited_text,
    parse_json_text,
)


# ===================
# DELIMITED TEXT TESTS
# ===================

class TestParseDelimitedText:
    """Tests for parse_delimited_text."""

    def test_comma(self):
        headers, rows = parse_delimited_text("Name,Email\nJane,jane@x.com\nTom,tom@x.com\n")
        assert headers == ["Name", "Email"]
        assert rows == [
            {"Name": "Jane", "Email": "jane@x.com"},
            {"Name": "Tom", "Email": "tom@x.com"},
        ]

    def test_values_stay_strings(self):
        """No numeric or NA conversion: leading zeros and "NA" survive."""
        _, rows = parse_delimited_text("Zip,Notes,Count\n00501,NA,3\n")
        assert rows == [{"Zip": "00501", "Notes": "NA", "Count": "3"}]

    def test_empty_cells(self):
        _, rows = parse_delimited_text("Name,Email\nJane,\n")
        assert rows == [{"Name": "Jane", "Email": ""}]

    def test_trims_headers_and_cells(self):
        headers, rows = parse_delimited_text(" Name , Email \n Jane , jane@x.com \n")
        assert headers == ["Name", "Email"]
        assert rows == [{"Name": "Jane", "Email": "jane@x.com"}]

    def test_quoted_commas(self):
        _, rows = parse_delimited_text('Name,Address\nJane,"1 Main St, Springfield"\n')
        assert rows[0]["Address"] == "1 Main St, Springfield"

    def test_tab(self):
        headers, rows = parse_delimited_text("Name\tEmail\nJane\tjane@x.com\n", sep="\t")
        assert headers == ["Name", "Email"]
        assert rows[0]["Email"] == "jane@x.com"

    def test_sniffed_semicolon(self):
        headers, rows = parse_delimited_text("Name;Email\nJane;jane@x.com\n", sep=None)
        assert headers == ["Name", "Email"]
        assert rows[0]["Name"] == "Jane"

    def test_blank_text(self):
        assert parse_delimited_text("   \n") == ([], [])


# ===================
# JSON TESTS
# ===================

class TestParseJsonText:
    """Tests for parse_json_text."""

    def test_array(self):
        headers, rows = parse_json_text(json.dumps([
            {"name": "Rex", "weight": 12.5},
            {"name": "Luna", "neutered": True},
        ]))
        assert headers == ["name", "weight", "neutered"]
        assert rows == [
            {"name": "Rex", "weight": "12.5", "neutered": ""},
            {"name": "Luna", "weight": "", "neutered": "true"},
        ]

    def test_data_wrapper(self):
        headers, rows = parse_json_text(json.dumps({"data": [{"name": "Rex"}]}))
        assert headers == ["name"]
        assert rows == [{"name": "Rex"}]

    def test_single_object(self):
        _, rows = parse_json_text(json.dumps({"name": "Rex", "tags": ["a", "b"]}))
        assert rows == [{"name": "Rex", "tags": '["a", "b"]'}]

    def test_invalid_json(self):
        with pytest.raises(DatasetParseError):
            parse_json_text("{not json")

    def test_non_object_rows(self):
        with pytest.raises(DatasetParseError):
            parse_json_text("[1, 2, 3]")


# ===================
# PARSE DATASET TESTS
# ===================

class TestParseDataset:
    """Tests for parse_dataset."""

    def test_csv_bytes_with_bom(self):
        content = "\ufeffName,Email\nJane,jane@x.com\n".encode("utf-8")
        dataset = parse_dataset(content, "owners.csv")
        assert dataset.headers == ["Name", "Email"]
        assert dataset.row_count == 1

    def test_string_with_bom(self):
        dataset = parse_dataset("\ufeffName\nRex\n", "pets.csv")
        assert dataset.headers == ["Name"]

    def test_sample_rows(self):
        text = "Name\n" + "\n".join(f"Pet {i}" for i in range(10)) + "\n"
        dataset = parse_dataset(text, "pets.csv", sample_row_count=3)
        assert dataset.row_count == 10
        assert [r["Name"] for r in dataset.sample_rows] == ["Pet 0", "Pet 1", "Pet 2"]

    def test_extension_case_insensitive(self):
        dataset = parse_dataset("Name\tEmail\nJane\tj@x.com\n", "OWNERS.TSV")
        assert dataset.headers == ["Name", "Email"]

    def test_json_file(self):
        dataset = parse_dataset(b'[{"name": "Rex"}]', "pets.json")
        assert dataset.all_data == [{"name": "Rex"}]

    def test_excel_rejected(self):
        with pytest.raises(DatasetParseError) as exc:
            parse_dataset(b"PK\x03\x04", "owners.xlsx")
        assert "convert to CSV" in exc.value.message

    def test_unknown_extension(self):
        with pytest.raises(DatasetParseError):
            parse_dataset("Name\nRex\n", "pets.pdf")

    def test_header_only_file(self):
        with pytest.raises(DatasetParseError) as exc:
            parse_dataset("Name,Email\n", "owners.csv")
        assert exc.value.message == "File appears to be empty or could not be parsed."

    def test_empty_file(self):
        with pytest.raises(DatasetParseError):
            parse_dataset(b"", "owners.csv")

    def test_invalid_utf8(self):
        with pytest.raises(DatasetParseError):
            parse_dataset(b"\xff\xfe\x00N", "owners.csv")


class TestParsedDataset:
    """Tests for ParsedDataset helpers."""

    def test_to_dict_omits_all_data(self):
        dataset = build_dataset(["Name"], [{"Name": "Rex"}, {"Name": "Luna"}], sample_row_count=1)
        assert dataset.to_dict() == {
            "headers": ["Name"],
            "row_count": 2,
            "sample_rows": [{"Name": "Rex"}],
        }

    def test_defaults(self):
        dataset = ParsedDataset(headers=["Name"], all_data=[])
        assert dataset.sample_rows == []
        assert dataset.row_count == 0
