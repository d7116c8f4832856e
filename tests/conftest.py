"""
Test configuration and shared fixtures for banner generation tests.

This module makes the project root and the tests folder importable and
provides common test constants.
"""

import os
import sys

# Ensure parent directory is in path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))


# Constants for test data
TEST_EVENT_ID = 1
TEST_CATEGORY_ID = 2
TEST_BUCKET = "candidates"
TEST_BASE_URL = "https://storage.test"
