"""
Pytest configuration and shared fixtures for AgriSense tests.
"""

import os
import sys
import tempfile

import pytest

# Add backend/ to path (modules are imported top-level, as uvicorn runs them)
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "backend"))

# Set test environment variables before importing app modules
os.environ["OPENWEATHER_API_KEY"] = ""
os.environ["ANTHROPIC_API_KEY"] = ""
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "agrisense-test-logs"))
os.environ.setdefault("LOG_LEVEL", "DEBUG")


@pytest.fixture
def sample_crop():
    return {
        "name": "Test Paddy",
        "category": "Cereal",
        "season": "Kharif",
        "soil": ["loamy"],
        "climate_requirements": {
            "temperature": {"min": 20, "max": 35, "optimal": 28},
            "humidity": {"min": 60, "max": 85},
            "rainfall": {"min": 100, "max": 200},
        },
        "description": "Fixture crop",
    }


@pytest.fixture
def sample_catalog(sample_crop):
    return [
        sample_crop,
        {
            "name": "Cool Wheat",
            "season": "Rabi",
            "soil": ["Loamy", "Clay"],
            "climate_requirements": {
                "temperature": {"min": 10, "max": 30, "optimal": 18},
                "humidity": {"min": 30, "max": 80},
                "rainfall": {"min": 50, "max": 300},
            },
        },
        {
            "name": "Summer Melon",
            "season": "Zaid/Kharif",
            "soil": ["Sandy"],
            "climate_requirements": {
                "temperature": {"min": 25, "max": 40, "optimal": 32},
                "humidity": {"min": 40, "max": 90},
                "rainfall": {"min": 100, "max": 400},
            },
        },
    ]
