"""Import a translation workbook back into per-language .properties files."""
import logging
import os
import posixpath
import zipfile
from typing import Any, List, Optional

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from tqdm import tqdm

from propsxls.app_config import AppConfig
from propsxls.errors import WorkbookFormatError
from propsxls.model import TranslationTable
from propsxls.properties_parser import write_properties_file
from propsxls.translation_validator import log_table_report

logger = logging.getLogger(__name__)

PROPERTIES_EXTENSION = '.properties'


def is_safe_language_code(language: str) -> bool:
    """A language header may only name a file suffix, never a path."""
    return bool(language) and not (
        '/' in language or '\\' in language or os.sep in language
        or '..' in language or os.path.isabs(language)
    )


def cell_to_text(value: Any) -> str:
    """Convert a workbook cell value to the text stored in a properties file."""
    if value is None:
        return ''
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _read_language_columns(header: tuple) -> List[tuple]:
    """
    Find the language columns of the header row.

    Returns:
        A list of (column_index, language_code) tuples.

    Raises:
        WorkbookFormatError: If the header holds no language column.
    """
    header = list(header)
    while header and not cell_to_text(header[-1]).strip():
        header.pop()
    if len(header) < 3:
        raise WorkbookFormatError(
            f"The header row must hold a base name, a key and at least one language column, got {list(header)}"
        )
    columns = []
    seen = set()
    for index, cell_value in enumerate(header[2:], start=2):
        language = cell_to_text(cell_value).strip()
        if not language:
            logger.warning("Ignoring column %d: its header cell is empty.", index + 1)
            continue
        if language in seen:
            logger.warning("Ignoring column %d: language '%s' already has a column.", index + 1, language)
            continue
        if not is_safe_language_code(language):
            logger.warning("Ignoring column %d: '%s' is not a usable language code.", index + 1, language)
            continue
        seen.add(language)
        columns.append((index, language))
    if not columns:
        raise WorkbookFormatError("The header row holds no language column.")
    return columns


def read_workbook(workbook_path: str, config: Optional[AppConfig] = None) -> TranslationTable:
    """
    Read a translation workbook into a TranslationTable.

    Args:
        workbook_path (str): The .xlsx file to read.
        config (Optional[AppConfig]): Converter settings; defaults when omitted.

    Returns:
        TranslationTable: Rows in workbook order, one column per language header.

    Raises:
        FileNotFoundError: If the workbook does not exist.
        WorkbookFormatError: If the workbook cannot be parsed or has no usable header.
    """
    config = config or AppConfig()
    if not os.path.isfile(workbook_path):
        raise FileNotFoundError(f"Workbook '{workbook_path}' not found.")

    # A stream is not checked against openpyxl's list of file extensions, so a
    # workbook exported as translation.xls reads back like any .xlsx.
    with open(workbook_path, 'rb') as stream:
        try:
            workbook = load_workbook(stream, read_only=True, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError) as load_exc:
            raise WorkbookFormatError(f"Could not open workbook '{workbook_path}': {load_exc}") from load_exc
        try:
            table = _read_sheet(workbook, config)
        finally:
            workbook.close()

    logger.info("Read %d row(s) in %d language(s) from '%s'.", len(table), len(table.languages), workbook_path)
    return table


def _read_sheet(workbook, config: AppConfig) -> TranslationTable:
    """Read the header and data rows of the configured (or active) sheet."""
    if config.sheet_name in workbook.sheetnames:
        sheet = workbook[config.sheet_name]
    else:
        sheet = workbook.active
    rows = sheet.iter_rows(values_only=True)
    header = next(rows, None)
    if header is None:
        raise WorkbookFormatError(f"Sheet '{sheet.title}' is empty.")
    language_columns = _read_language_columns(header)
    table = TranslationTable([language for _, language in language_columns])

    for row_number, row in enumerate(rows, start=2):
        cells = [cell_to_text(value) for value in row]
        if not any(cell.strip() for cell in cells):
            continue
        cells += [''] * (len(header) - len(cells))
        base_name, key = cells[0].strip(), cells[1]
        if not base_name or not key:
            logger.warning("Skipping row %d: base name and key are both required.", row_number)
            continue
        if table.row(base_name, key) is not None:
            logger.warning("Row %d repeats key '%s' of '%s'; merging its values.", row_number, key, base_name)
        table.ensure_row(base_name, key)
        for index, language in language_columns:
            if cells[index]:
                table.set_value(base_name, key, language, cells[index])
    return table


def target_path(root_directory: str, base_name: str, language: str) -> Optional[str]:
    """
    Build `<root>/<base>_<lang>.properties`, or None if the result would leave the root.
    """
    if not is_safe_language_code(language):
        return None
    normalized = posixpath.normpath(base_name)
    if posixpath.isabs(normalized) or os.path.isabs(base_name) or normalized.split('/')[0] == '..':
        return None
    relative = f"{normalized}_{language}{PROPERTIES_EXTENSION}"
    file_path = os.path.join(root_directory, *relative.split('/'))

    real_root = os.path.realpath(root_directory)
    if os.path.commonpath([real_root, os.path.realpath(file_path)]) != real_root:
        return None
    return file_path


def write_property_files(table: TranslationTable, root_directory: str,
                         config: Optional[AppConfig] = None) -> List[str]:
    """
    Write one .properties file per (base name, language) pair with content.

    Pairs whose cells are all empty produce no file, and empty cells produce
    no entry.

    Returns:
        List[str]: The written file paths.

    Raises:
        OSError: If a file cannot be written.
    """
    config = config or AppConfig()
    written_files = []
    for base_name in tqdm(table.base_names(), desc="Writing properties files", unit="base",
                          disable=not config.show_progress):
        for language in table.languages:
            entries = table.entries_for(base_name, language)
            if not entries:
                logger.debug("No '%s' values for '%s'; not writing a file.", language, base_name)
                continue
            file_path = target_path(root_directory, base_name, language)
            if file_path is None:
                logger.warning("Skipping '%s' file of base name '%s': it would be written outside the "
                               "working directory.", language, base_name)
                continue
            write_properties_file(file_path, entries, config.file_encoding, config.escape_unicode)
            written_files.append(file_path)
            logger.debug("Wrote %d key(s) to '%s'.", len(entries), file_path)
    return written_files


def import_from_workbook(workbook_path: str, root_directory: str,
                         config: Optional[AppConfig] = None) -> List[str]:
    """
    Import a workbook into .properties files beneath root_directory.

    Args:
        workbook_path (str): The .xlsx file to read.
        root_directory (str): The directory the files are written under.
        config (Optional[AppConfig]): Converter settings; defaults when omitted.

    Returns:
        List[str]: The written file paths.
    """
    config = config or AppConfig()
    table = read_workbook(workbook_path, config)
    log_table_report(table, logger)
    written_files = write_property_files(table, root_directory, config)
    logger.info("Imported '%s' into %d file(s) under '%s'.", workbook_path, len(written_files), root_directory)
    return written_files
