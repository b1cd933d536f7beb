"""
Preview how an upload would be imported.

Parses a CSV/TSV/TXT/JSON file, auto-maps its columns for the selected
entity types, then prints the mapping, stats, validation result and a
summary of values that failed to parse.

Usage:
    python scripts/preview_import.py data/pets.csv --types pets,owners

    # Custom catalog, write the import payload when the mapping is valid
    python scripts/preview_import.py data/pets.csv --types pets \
        --catalog catalog.json --payload out/payload.json
"""

import argparse
import os
import sys

# Allow imports from the repo root when running as a script
_root_dir = os.path.join(os.path.dirname(__file__), "..")
sys.path.insert(0, _root_dir)

from dotenv import load_dotenv
load_dotenv(os.path.join(_root_dir, ".env"))

from config import configure_logging, get_settings
from exceptions import AppError
from services import ImportSession, get_default_catalog, load_catalog


def describe_mapping(mapping) -> str:
    if mapping.kind == "skip":
        return "(skip)"
    if mapping.kind == "property":
        return f"{mapping.entity_type}.{mapping.field or '?'}"
    return f"-> {mapping.target_entity_type or '?'} by {mapping.field or '?'}"


def print_preview(session: ImportSession, batch_size: int) -> bool:
    """Print the preview. Returns True if the mapping is valid."""
    separator = "=" * 60
    dataset = session.dataset

    print(separator)
    print(f"  IMPORT PREVIEW -- {session.filename}")
    print(separator)
    print(f"Types:   {', '.join(session.selected_types)} (primary: {session.primary_type})")
    print(f"Rows:    {dataset.row_count}")
    print(f"Columns: {len(dataset.headers)}")
    print()

    width = max(len(h) for h in dataset.headers) + 2
    print("Column mapping:")
    for header, mapping in session.mappings.items():
        samples = ", ".join(session.sample_values(header))
        print(f"  {header:<{width}} {describe_mapping(mapping):<35} {samples}")
    print()

    stats = session.stats()
    print(
        f"Mapped: {stats.property_count} properties, "
        f"{stats.association_count} associations, "
        f"{stats.skipped_count} skipped"
    )
    if stats.inert_property_count:
        print(f"  ({stats.inert_property_count} mapped to {session.selected_types[1]} properties, not imported)")

    validation = session.validate()
    for message in validation.messages:
        print(f"  X {message}")
    print()

    if not validation.is_valid:
        print("MAPPING INCOMPLETE")
        print(separator)
        return False

    result = session.stream(batch_size).run()
    summaries = session.warning_summary(result)
    print(f"Transformed {result.processed_count} rows")
    for summary in summaries:
        print(f"  ! {summary.message} (e.g. {summary.example_value!r})")
    print(separator)
    return True


def main():
    parser = argparse.ArgumentParser(
        description="Preview column mapping and row transformation for an import file."
    )
    parser.add_argument(
        "file",
        help="Path to a .csv, .tsv, .txt or .json file",
    )
    parser.add_argument(
        "--types",
        required=True,
        help="Comma-separated entity type ids, primary first (e.g., pets,owners)",
    )
    parser.add_argument(
        "--catalog",
        default="",
        help="JSON catalog file (default: built-in catalog or CATALOG_PATH)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=0,
        help="Rows per transform batch (default: TRANSFORM_BATCH_SIZE)",
    )
    parser.add_argument(
        "--payload",
        default="",
        help="Write the import payload JSON here when the mapping is valid",
    )

    args = parser.parse_args()
    settings = get_settings()
    configure_logging(settings)

    if not os.path.isfile(args.file):
        print(f"ERROR: File not found: {args.file}")
        sys.exit(1)

    types = [t.strip() for t in args.types.split(",") if t.strip()]

    try:
        catalog = load_catalog(args.catalog) if args.catalog else get_default_catalog()
        session = ImportSession(catalog, settings)
        session.set_types(types)

        with open(args.file, "rb") as f:
            session.load_file(f.read(), os.path.basename(args.file))

        valid = print_preview(session, args.batch_size or settings.transform_batch_size)

        if valid and args.payload:
            payload = session.build_payload()
            with open(args.payload, "w", encoding="utf-8") as f:
                f.write(payload.model_dump_json(indent=2))
            print(f"Payload written to {args.payload}")
    except AppError as e:
        print(f"ERROR: {e.message}")
        if e.details:
            print(f"  {e.details}")
        sys.exit(1)

    sys.exit(0 if valid else 1)


if __name__ == "__main__":
    main()
