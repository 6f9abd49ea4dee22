"""
Unit tests for configuration module
"""

import importlib
from pathlib import Path
from unittest.mock import patch

import pytest

# Test marker
pytestmark = pytest.mark.unit


class TestConfig:
    """Test configuration loading and validation"""

    def test_default_config_values(self):
        """Test that default configuration values are set correctly"""
        from legacy_import.config import CONFLICT_MODE, DRY_RUN, LOG_LEVEL, MAX_FIELD_LENGTH

        assert CONFLICT_MODE in ["FailOnConflict", "SkipExisting", "Update"]
        assert isinstance(DRY_RUN, bool)
        assert LOG_LEVEL in ["DEBUG", "INFO", "WARNING", "ERROR"]
        assert MAX_FIELD_LENGTH == 255

    def test_path_configuration(self):
        """Test that paths are configured correctly"""
        from legacy_import.config import BASE_DIR, INPUT_DIR, OUTPUT_DIR

        assert isinstance(BASE_DIR, Path)
        assert isinstance(INPUT_DIR, Path)
        assert isinstance(OUTPUT_DIR, Path)

    def test_environment_override(self):
        """Test that environment variables override default config"""
        from legacy_import import config

        with patch.dict('os.environ', {
            'IMPORT_DB_HOST': 'test_host',
            'IMPORT_DB_PORT': '5433',
            'IMPORT_CONFLICT_MODE': 'Update',
            'IMPORT_ENFORCE_FOREIGN_KEYS': 'false',
        }):
            importlib.reload(config)
            assert config.IMPORT_DB_CONFIG['host'] == 'test_host'
            assert config.IMPORT_DB_CONFIG['port'] == 5433
            assert config.CONFLICT_MODE == 'Update'
            assert config.ENFORCE_FOREIGN_KEYS is False

        importlib.reload(config)

    def test_database_config_structure(self):
        """Test that database configuration has required fields"""
        from legacy_import.config import IMPORT_DB_CONFIG

        for field in ['host', 'port', 'database', 'user', 'password']:
            assert field in IMPORT_DB_CONFIG

    def test_import_order_covers_every_family(self):
        """Test that every imported family has a file layout, schools first"""
        from legacy_import.config import ENTITY_FILES, IMPORT_ORDER

        assert IMPORT_ORDER[0] == "schools"
        assert IMPORT_ORDER[-1] == "students"
        assert set(IMPORT_ORDER) == set(ENTITY_FILES)
        assert ENTITY_FILES["class_groups"] == ("2_Class_Group", "Class Group.xml", "Class Group.xsd")
