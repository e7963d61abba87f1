"""
Unit Test Layer Configuration (Layer 4)

Structure:
    tests/unit/
    └── tdd/
        ├── weekend_service/   Weekend math, validation, preferences
        └── cloud_service/     Record schema and wire codecs

Usage:
    pytest tests/unit -v
"""
import os
import sys

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))
