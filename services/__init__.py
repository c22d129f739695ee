"""Job-Tags Services Package.

This package contains the services of the Job-Tags project:
- tagger: Extracts known skill/technology tags from job descriptions
"""

__version__ = "0.1.0"
