"""
Test suite for the import mapping engine.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_auto_mapper.py -v
"""
