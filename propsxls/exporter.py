"""Export a tree of per-language .properties files into one workbook."""
import logging
import os
import re
from typing import List, Optional, Tuple

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from tqdm import tqdm

from propsxls.app_config import AppConfig
from propsxls.errors import ConfigurationError, PropertiesFormatError
from propsxls.model import SourceFile, TranslationTable
from propsxls.properties_parser import parse_properties_file
from propsxls.translation_validator import log_table_report

logger = logging.getLogger(__name__)


def normalize_languages(languages: List[str]) -> List[str]:
    """
    Strip language codes, drop blanks and duplicates while keeping their order.

    Raises:
        ConfigurationError: If no language code is left.
    """
    result: List[str] = []
    for language in languages:
        language = language.strip()
        if not language:
            continue
        if language in result:
            logger.warning("Language '%s' was requested more than once; using a single column.", language)
            continue
        result.append(language)
    if not result:
        raise ConfigurationError("At least one language code is required for the export.")
    return result


def find_property_files(root_directory: str, file_pattern: str) -> List[str]:
    """
    Recursively list the files whose name fully matches a regular expression.

    Args:
        root_directory (str): The directory to walk.
        file_pattern (str): Regular expression applied to the file name only.

    Returns:
        List[str]: Matching paths relative to root_directory, in sorted walk order.

    Raises:
        ConfigurationError: If file_pattern is not a valid regular expression.
        FileNotFoundError: If root_directory does not exist.
    """
    try:
        pattern = re.compile(file_pattern)
    except re.error as regex_exc:
        raise ConfigurationError(f"Invalid file regular expression '{file_pattern}': {regex_exc}") from regex_exc

    if not os.path.isdir(root_directory):
        raise FileNotFoundError(f"Working directory '{root_directory}' does not exist or is not a directory.")

    matches = []
    for dir_path, dir_names, file_names in os.walk(root_directory):
        dir_names.sort()
        for file_name in sorted(file_names):
            if pattern.fullmatch(file_name):
                matches.append(os.path.relpath(os.path.join(dir_path, file_name), root_directory))
    return matches


def split_base_name(relative_path: str, languages: List[str]) -> Optional[Tuple[str, str]]:
    """
    Derive the base name and language of a file from the `<base>_<lang>.<ext>` convention.

    Args:
        relative_path (str): Path of the file relative to the working directory.
        languages (List[str]): The requested language codes.

    Returns:
        Optional[Tuple[str, str]]: (base_name, language) with the base name in
        POSIX form, or None if the stem does not end in a requested language.
    """
    posix_path = relative_path.replace(os.sep, '/')
    directory, file_name = posix_path.rpartition('/')[::2]
    stem = os.path.splitext(file_name)[0]

    # Longest code first so that 'pt_BR' wins over 'BR'
    for language in sorted(languages, key=len, reverse=True):
        suffix = f'_{language}'
        if stem.endswith(suffix) and len(stem) > len(suffix):
            base_file_name = stem[:-len(suffix)]
            base_name = f'{directory}/{base_file_name}' if directory else base_file_name
            return base_name, language
    return None


def read_source_file(root_directory: str, relative_path: str, base_name: str, language: str,
                     encoding: str = 'utf-8') -> SourceFile:
    """Parse one discovered file into a SourceFile."""
    entries = parse_properties_file(os.path.join(root_directory, relative_path), encoding)
    return SourceFile(path=relative_path, base_name=base_name, language=language, entries=entries)


def build_translation_table(root_directory: str, file_pattern: str, languages: List[str],
                            config: Optional[AppConfig] = None) -> TranslationTable:
    """
    Merge all matching files under root_directory into a TranslationTable.

    Malformed files are skipped with a warning. Files whose language is not
    requested are ignored.

    Raises:
        ConfigurationError: On an invalid pattern or an empty language list.
        OSError: If the directory or a matching file cannot be read.
    """
    config = config or AppConfig()
    languages = normalize_languages(languages)
    table = TranslationTable(languages)

    relative_paths = find_property_files(root_directory, file_pattern)
    logger.info("Found %d file(s) matching '%s' under '%s'.", len(relative_paths), file_pattern, root_directory)

    for relative_path in tqdm(relative_paths, desc="Reading properties files", unit="file",
                              disable=not config.show_progress):
        split = split_base_name(relative_path, languages)
        if split is None:
            logger.debug("Skipping '%s': no requested language suffix.", relative_path)
            continue
        base_name, language = split
        try:
            source_file = read_source_file(root_directory, relative_path, base_name, language,
                                           config.file_encoding)
        except PropertiesFormatError as format_exc:
            logger.warning("Skipping malformed properties file: %s", format_exc)
            continue
        table.add_source_file(source_file)
        logger.debug("Read %d key(s) from '%s' (base '%s', language '%s').",
                     len(source_file.entries), relative_path, base_name, language)
    return table


def _cell_text(value: str) -> str:
    if ILLEGAL_CHARACTERS_RE.search(value):
        logger.warning("Removing characters that cannot be stored in a workbook from value %r.", value)
        value = ILLEGAL_CHARACTERS_RE.sub('', value)
    return value


def write_workbook(table: TranslationTable, workbook_path: str, config: Optional[AppConfig] = None) -> None:
    """
    Write a TranslationTable to a single-sheet .xlsx workbook.

    The header row is the base name label, the key label and then one
    language code per column. Missing translations are written as empty
    strings.

    Raises:
        OSError: If the workbook cannot be written.
    """
    config = config or AppConfig()
    workbook = Workbook()
    try:
        sheet = workbook.active
        sheet.title = config.sheet_name
        sheet.append([config.base_name_header, config.key_header] + list(table.languages))
        for row in table:
            sheet.append([_cell_text(row.base_name), _cell_text(row.key)]
                         + [_cell_text(row.value(language)) for language in table.languages])

        # Values such as "=foo" must stay text rather than become formulas
        for cells in sheet.iter_rows(min_row=2):
            for cell in cells:
                if cell.data_type == 'f':
                    cell.data_type = 's'
        sheet.freeze_panes = 'C2'
        workbook.save(workbook_path)
    finally:
        workbook.close()


def export_to_workbook(workbook_path: str, root_directory: str, file_pattern: str, languages: List[str],
                       config: Optional[AppConfig] = None) -> TranslationTable:
    """
    Export the .properties files under root_directory into a workbook.

    Args:
        workbook_path (str): The .xlsx file to create or overwrite.
        root_directory (str): The directory searched recursively.
        file_pattern (str): Regular expression matched against file names.
        languages (List[str]): Language codes, one workbook column each, in this order.
        config (Optional[AppConfig]): Converter settings; defaults when omitted.

    Returns:
        TranslationTable: The exported table.
    """
    config = config or AppConfig()
    table = build_translation_table(root_directory, file_pattern, languages, config)
    log_table_report(table, logger)
    write_workbook(table, workbook_path, config)
    logger.info("Exported %d key(s) in %d language(s) to '%s'.", len(table), len(table.languages), workbook_path)
    return table
