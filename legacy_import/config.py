"""
Configuration settings for importing legacy Access XML exports into the new schema
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Base paths
BASE_DIR = Path(__file__).parent
INPUT_DIR = Path(os.getenv("IMPORT_INPUT_DIR", "docs/legacy"))
OUTPUT_DIR = Path(os.getenv("IMPORT_OUTPUT_DIR", "."))

# Database configuration - destination store
IMPORT_DB_CONFIG = {
    "host": os.getenv("IMPORT_DB_HOST", "localhost"),
    "port": int(os.getenv("IMPORT_DB_PORT", "5432")),
    "database": os.getenv("IMPORT_DB_NAME", "kcow"),
    "user": os.getenv("IMPORT_DB_USER", "postgres"),
    "password": os.getenv("IMPORT_DB_PASSWORD", ""),
}

# Full SQLAlchemy URL, overrides IMPORT_DB_CONFIG when set (e.g. sqlite+aiosqlite:///import.db)
DATABASE_URL = os.getenv("IMPORT_DATABASE_URL", "")

# Import settings
CONFLICT_MODE = os.getenv("IMPORT_CONFLICT_MODE", "FailOnConflict")
ENFORCE_FOREIGN_KEYS = os.getenv("IMPORT_ENFORCE_FOREIGN_KEYS", "True").lower() == "true"
DRY_RUN = os.getenv("DRY_RUN", "False").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Column width of every string field in the destination schema
MAX_FIELD_LENGTH = 255

# Number of leading bytes searched for an embedded image signature
ICON_SCAN_LIMIT = 512

# Import order - each family may reference the ones before it
IMPORT_ORDER = [
    "schools",
    "class_groups",
    "activities",
    "students",
]

# Legacy export layout: family -> (folder, xml file, xsd file)
ENTITY_FILES = {
    "schools": ("1_School", "School.xml", "School.xsd"),
    "class_groups": ("2_Class_Group", "Class Group.xml", "Class Group.xsd"),
    "activities": ("3_Activity", "Activity.xml", "Activity.xsd"),
    "students": ("4_Children", "Children.xml", "Children.xsd"),
}

# Default values for missing data
DEFAULT_VALUES = {
    "class_group_start_time": "08:00",
    "class_group_end_time": "09:00",
    "class_group_sequence": 1,
    "family_relationship": "Parent",
}
