"""
Command-line interface for the propsxls converter.
Usage:
  propsxls -f export -xls example.xlsx -wd /tmp/ -langs hu,de -r '.*\\.properties'
  propsxls -f import -xls example.xlsx -wd /tmp/
"""
import argparse
import logging
import sys
from typing import List, Optional

from propsxls.app_config import load_app_config
from propsxls.errors import ConfigurationError, ConverterError
from propsxls.exporter import export_to_workbook
from propsxls.importer import import_from_workbook
from propsxls.logging_config import attach_warning_counter, setup_logger

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='propsxls',
        description='Convert between per-language .properties files and a translation workbook.',
        epilog="Example: propsxls -f export -xls example.xlsx -wd /tmp/ -langs hu,de -r '.*\\.properties'",
        allow_abbrev=False,
    )
    parser.add_argument('-f', '--function', dest='function',
                        help='The function: import or export. Import processes the given workbook and creates '
                             'the properties files from it. Export writes the properties files to a human readable '
                             'and editable workbook. Mandatory.')
    parser.add_argument('-xls', '--xlsFileName', dest='xls_file_name',
                        help='The workbook used for the import or export function, for example translation.xlsx. '
                             'Mandatory.')
    parser.add_argument('-wd', '--workingDirectory', dest='working_directory',
                        help='The base directory searched recursively for properties files, '
                             'for example /home/foo. Mandatory.')
    parser.add_argument('-r', '--fileRegularExpression', dest='file_regular_expression',
                        help='Regular expression matched against file names when searching for properties files, '
                             'for example .*\\.properties. Mandatory for the export function.')
    parser.add_argument('-langs', '--languages', dest='languages',
                        help='Comma separated list of the languages to be processed, for example hu,de. '
                             'Mandatory for the export function.')
    parser.add_argument('-c', '--config', dest='config',
                        help='Optional YAML configuration file (default: propsxls.yaml in the current directory).')
    return parser


def _missing_arguments(args: argparse.Namespace, names: List[str]) -> List[str]:
    """Return the long option names of the mandatory arguments that were not given."""
    option_names = {
        'function': 'function',
        'xls_file_name': 'xlsFileName',
        'working_directory': 'workingDirectory',
        'file_regular_expression': 'fileRegularExpression',
        'languages': 'languages',
    }
    return [option_names[name] for name in names if not getattr(args, name)]


def parse_languages(value: str) -> List[str]:
    return [language.strip() for language in value.split(',') if language.strip()]


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the converter.

    Returns:
        int: The process exit code.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = load_app_config(args.config)
    except ConfigurationError as config_exc:
        print(f"Error: {config_exc}", file=sys.stderr)
        return EXIT_USAGE
    warnings = attach_warning_counter(setup_logger(config))

    missing = _missing_arguments(args, ['function', 'xls_file_name', 'working_directory'])
    if not missing and args.function == 'export':
        missing = _missing_arguments(args, ['file_regular_expression', 'languages'])
    if missing:
        parser.print_help()
        message = f"Missing mandatory argument: {', '.join(missing)}"
        print(f"Error: {message}", file=sys.stderr)
        logger.debug(message)
        return EXIT_USAGE

    try:
        if args.function == 'import':
            import_from_workbook(args.xls_file_name, args.working_directory, config)
        elif args.function == 'export':
            export_to_workbook(args.xls_file_name, args.working_directory, args.file_regular_expression,
                               parse_languages(args.languages), config)
        else:
            parser.print_help()
            return EXIT_OK
    except ConfigurationError as config_exc:
        logger.error("Invalid argument: %s", config_exc)
        return EXIT_USAGE
    except (ConverterError, OSError) as run_exc:
        logger.error("Conversion failed: %s", run_exc)
        return EXIT_FAILURE

    if warnings.count:
        logger.warning("Finished with %d warning(s); see the messages above.", warnings.count)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
