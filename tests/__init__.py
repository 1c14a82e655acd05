"""
Test suite for the supplier sync backend.

Run all tests: pytest
Run one area: pytest tests/unit/test_import_runner.py -v
"""
