"""In-memory model shared by the exporter and the importer."""
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, NamedTuple, Optional


class ResourceKey(NamedTuple):
    """Identifies one translatable string."""
    base_name: str
    key: str


@dataclass
class TranslationRow:
    """One resource key and its value per language."""
    resource_key: ResourceKey
    values: Dict[str, str] = field(default_factory=dict)

    @property
    def base_name(self) -> str:
        return self.resource_key.base_name

    @property
    def key(self) -> str:
        return self.resource_key.key

    def value(self, language: str) -> str:
        return self.values.get(language) or ''


@dataclass
class SourceFile:
    """A discovered .properties file with its parsed entries."""
    path: str
    base_name: str
    language: str
    entries: Dict[str, str] = field(default_factory=dict)


class TranslationTable:
    """
    Ordered rows keyed by ResourceKey, one column per language.

    Rows keep the order in which their keys were first seen. A missing or
    empty cell means that no translation was provided.
    """

    def __init__(self, languages: List[str]):
        self.languages: List[str] = list(languages)
        self._rows: Dict[ResourceKey, TranslationRow] = {}
        # Rows per base name, in first-seen order
        self._by_base_name: Dict[str, List[TranslationRow]] = {}

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[TranslationRow]:
        return iter(self._rows.values())

    def __contains__(self, resource_key) -> bool:
        return resource_key in self._rows

    @property
    def rows(self) -> List[TranslationRow]:
        return list(self._rows.values())

    def row(self, base_name: str, key: str) -> Optional[TranslationRow]:
        return self._rows.get(ResourceKey(base_name, key))

    def ensure_row(self, base_name: str, key: str) -> TranslationRow:
        """Return the row for (base_name, key), creating it with empty cells if new."""
        resource_key = ResourceKey(base_name, key)
        row = self._rows.get(resource_key)
        if row is None:
            row = TranslationRow(resource_key, {language: '' for language in self.languages})
            self._rows[resource_key] = row
            self._by_base_name.setdefault(base_name, []).append(row)
        return row

    def set_value(self, base_name: str, key: str, language: str, value: Optional[str]) -> TranslationRow:
        """
        Set one cell of the table.

        Args:
            base_name: The base resource name of the row.
            key: The property key of the row.
            language: A language code from the table's columns.
            value: The translation; None is stored as an empty cell.

        Returns:
            The affected row.

        Raises:
            ValueError: If the language is not one of the table's columns.
        """
        if language not in self.languages:
            raise ValueError(f"Language '{language}' is not a column of this table: {self.languages}")
        row = self.ensure_row(base_name, key)
        row.values[language] = value or ''
        return row

    def add_source_file(self, source_file: SourceFile) -> None:
        """Merge all entries of a parsed file into the table."""
        for key, value in source_file.entries.items():
            self.set_value(source_file.base_name, key, source_file.language, value)

    def base_names(self) -> List[str]:
        """Distinct base names in first-seen order."""
        return list(self._by_base_name)

    def rows_for(self, base_name: str) -> List[TranslationRow]:
        return list(self._by_base_name.get(base_name, []))

    def entries_for(self, base_name: str, language: str) -> Dict[str, str]:
        """Ordered key to value mapping of the non-empty cells of one (base name, language) pair."""
        return {
            row.key: row.value(language)
            for row in self.rows_for(base_name)
            if row.value(language)
        }
