"""
Legacy import
Imports legacy Access XML exports (schools, class groups, activities, children) into the new schema
"""

__version__ = "1.0.0"
