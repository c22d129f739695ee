"""Job-Tags Test Suite.

This package contains unit and integration tests for the Job-Tags project.

Test Structure:
- unit/: Unit tests for individual functions and classes
- integration/: End-to-end runs of the tagger against Parquet files
"""

__version__ = "0.1.0"
