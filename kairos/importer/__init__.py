from kairos.importer.schema import ImportSchema, load_import_file
from kairos.importer.validate import validate_import_schema

__all__ = ["ImportSchema", "load_import_file", "validate_import_schema"]
