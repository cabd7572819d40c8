"""Convert between per-language .properties files and a translation workbook."""
from propsxls.exporter import export_to_workbook
from propsxls.importer import import_from_workbook

__all__ = ["export_to_workbook", "import_from_workbook"]

__version__ = "1.0.0"
