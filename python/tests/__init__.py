"""
Test suite for the tar step.

Test Categories:
- Unit tests: path matching, self-exclusion, overwrite policy, the writer
- Integration tests: full tar step runs and the command line tool
"""
