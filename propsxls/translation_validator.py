import logging
import re
from collections import Counter
from typing import Dict, List, Set, Tuple

from propsxls.model import ResourceKey, TranslationTable

# Regex to find MessageFormat placeholders like {0}, {1}, {name}, etc.
PLACEHOLDER_REGEX = re.compile(r'\{([^{}]+)\}')


def check_key_coverage(base_keys: Set[str], target_keys: Set[str]) -> Tuple[Set[str], Set[str]]:
    """
    Compares the keys of a target language against a base language.

    Args:
        base_keys: The keys that have a value in the base language.
        target_keys: The keys that have a value in the target language.

    Returns:
        A tuple containing two sets:
        - missing_keys: Keys present in the base language but missing from the target.
        - extra_keys: Keys present in the target but absent from the base language.
    """
    missing_keys = base_keys - target_keys
    extra_keys = target_keys - base_keys
    return missing_keys, extra_keys


def check_placeholder_parity(base_string: str, target_string: str) -> bool:
    """
    Checks if the set of placeholders is identical between a base and a target string.
    Placeholders may be reordered, but each must occur the same number of times.

    Args:
        base_string: The base language string.
        target_string: The translated string.

    Returns:
        True if the set of placeholders in both strings is identical, False otherwise.
    """
    base_placeholders = Counter(PLACEHOLDER_REGEX.findall(base_string))
    target_placeholders = Counter(PLACEHOLDER_REGEX.findall(target_string))

    return base_placeholders == target_placeholders


def find_missing_translations(table: TranslationTable) -> Dict[str, List[ResourceKey]]:
    """Resource keys without a value, per language column."""
    all_keys = {row.resource_key for row in table}
    missing: Dict[str, List[ResourceKey]] = {}
    for language in table.languages:
        translated = {row.resource_key for row in table if row.value(language)}
        missing_keys, _ = check_key_coverage(all_keys, translated)
        # Keep table order rather than set order
        missing[language] = [row.resource_key for row in table if row.resource_key in missing_keys]
    return missing


def find_placeholder_mismatches(table: TranslationTable) -> List[Tuple[ResourceKey, str]]:
    """
    Finds translations whose placeholders differ from the first language column.

    Rows without a value in the first language are not compared.
    """
    if not table.languages:
        return []
    base_language = table.languages[0]
    mismatches = []
    for row in table:
        base_value = row.value(base_language)
        if not base_value:
            continue
        for language in table.languages[1:]:
            value = row.value(language)
            if value and not check_placeholder_parity(base_value, value):
                mismatches.append((row.resource_key, language))
    return mismatches


def log_table_report(table: TranslationTable, logger: logging.Logger) -> None:
    """Log the coverage summary and placeholder mismatches of a table."""
    logger.info("Table holds %d key(s) across %d base name(s).", len(table), len(table.base_names()))
    for language, missing_keys in find_missing_translations(table).items():
        if missing_keys:
            logger.info("Language '%s': %d of %d key(s) untranslated.", language, len(missing_keys), len(table))
            for resource_key in missing_keys:
                logger.debug("Missing '%s' translation for %s/%s", language, resource_key.base_name,
                             resource_key.key)
        else:
            logger.info("Language '%s': all %d key(s) translated.", language, len(table))

    for resource_key, language in find_placeholder_mismatches(table):
        logger.warning(
            "Placeholder mismatch in '%s' translation of %s/%s compared to '%s'.",
            language, resource_key.base_name, resource_key.key, table.languages[0]
        )
