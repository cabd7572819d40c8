"""Integration tests for the propsxls command line."""
import os

import pytest
import yaml

from propsxls.cli import EXIT_FAILURE, EXIT_OK, EXIT_USAGE, create_parser, main, parse_languages


@pytest.fixture
def quiet_config_file(tmp_path):
    config_file = tmp_path / 'propsxls-test.yaml'
    config_file.write_text(yaml.safe_dump({'show_progress': False}), encoding='utf-8')
    return str(config_file)


class TestArguments:

    def test_short_and_long_options(self):
        parser = create_parser()
        short = parser.parse_args(['-f', 'export', '-xls', 'a.xlsx', '-wd', '/tmp', '-r', '.*', '-langs', 'en,de'])
        long = parser.parse_args(['--function', 'export', '--xlsFileName', 'a.xlsx', '--workingDirectory', '/tmp',
                                  '--fileRegularExpression', '.*', '--languages', 'en,de'])
        assert vars(short) == vars(long)
        assert short.xls_file_name == 'a.xlsx'
        assert short.working_directory == '/tmp'

    def test_parse_languages(self):
        assert parse_languages(' en, de,,hu ') == ['en', 'de', 'hu']


class TestMain:

    def test_missing_mandatory_argument_prints_help(self, tmp_path, capsys):
        exit_code = main(['-f', 'import', '-wd', str(tmp_path)])
        captured = capsys.readouterr()
        assert exit_code == EXIT_USAGE
        assert 'usage: propsxls' in captured.out
        assert 'Missing mandatory argument: xlsFileName' in captured.err

    def test_export_requires_pattern_and_languages(self, tmp_path, capsys):
        exit_code = main(['-f', 'export', '-xls', str(tmp_path / 'a.xlsx'), '-wd', str(tmp_path)])
        assert exit_code == EXIT_USAGE
        assert 'Missing mandatory argument: fileRegularExpression, languages' in capsys.readouterr().err

    def test_unknown_function_prints_help_and_succeeds(self, tmp_path, capsys):
        exit_code = main(['-f', 'convert', '-xls', str(tmp_path / 'a.xlsx'), '-wd', str(tmp_path)])
        assert exit_code == EXIT_OK
        assert 'usage: propsxls' in capsys.readouterr().out

    def test_export_and_import(self, tmp_path, write_properties, quiet_config_file):
        source = tmp_path / 'source'
        write_properties(source, 'app/labels_en.properties', 'save=Save\ncancel=Cancel\n')
        write_properties(source, 'app/labels_hu.properties', 'save=Mentés\n')
        workbook_path = str(tmp_path / 'labels.xlsx')
        target = tmp_path / 'target'

        assert main(['-f', 'export', '-xls', workbook_path, '-wd', str(source), '-r', r'.*\.properties',
                     '-langs', 'en,hu', '-c', quiet_config_file]) == EXIT_OK
        assert os.path.isfile(workbook_path)

        assert main(['--function', 'import', '--xlsFileName', workbook_path, '--workingDirectory', str(target),
                     '--config', quiet_config_file]) == EXIT_OK
        assert (target / 'app' / 'labels_en.properties').read_text(encoding='utf-8') == 'save=Save\ncancel=Cancel\n'
        assert (target / 'app' / 'labels_hu.properties').read_text(encoding='utf-8') == 'save=Ment\\u00E9s\n'

    def test_invalid_regular_expression(self, tmp_path, quiet_config_file, capsys):
        exit_code = main(['-f', 'export', '-xls', str(tmp_path / 'a.xlsx'), '-wd', str(tmp_path), '-r', '(',
                          '-langs', 'en', '-c', quiet_config_file])
        assert exit_code == EXIT_USAGE
        assert 'Invalid file regular expression' in capsys.readouterr().err

    def test_missing_working_directory_fails(self, tmp_path, quiet_config_file, capsys):
        exit_code = main(['-f', 'export', '-xls', str(tmp_path / 'a.xlsx'), '-wd', str(tmp_path / 'missing'),
                          '-r', '.*', '-langs', 'en', '-c', quiet_config_file])
        assert exit_code == EXIT_FAILURE
        assert 'Conversion failed' in capsys.readouterr().err

    def test_corrupt_workbook_fails(self, tmp_path, quiet_config_file, capsys):
        workbook_path = tmp_path / 'broken.xlsx'
        workbook_path.write_text('garbage', encoding='utf-8')
        exit_code = main(['-f', 'import', '-xls', str(workbook_path), '-wd', str(tmp_path), '-c', quiet_config_file])
        assert exit_code == EXIT_FAILURE
        assert 'Could not open workbook' in capsys.readouterr().err

    def test_invalid_configuration(self, tmp_path, capsys):
        config_file = tmp_path / 'bad.yaml'
        config_file.write_text(yaml.safe_dump({'show_progress': 'sometimes'}), encoding='utf-8')
        exit_code = main(['-f', 'import', '-xls', 'a.xlsx', '-wd', str(tmp_path), '-c', str(config_file)])
        assert exit_code == EXIT_USAGE
        assert "show_progress" in capsys.readouterr().err

    def test_round_trip_with_xls_file_name(self, tmp_path, write_properties, quiet_config_file):
        source = tmp_path / 'source'
        write_properties(source, 'greeting_en.properties', 'hello=Hello\n')
        write_properties(source, 'greeting_de.properties', 'hello=Hallo\n')
        workbook_path = str(tmp_path / 'translation.xls')
        target = tmp_path / 'target'

        assert main(['-f', 'export', '-xls', workbook_path, '-wd', str(source), '-r', r'.*\.properties$',
                     '-langs', 'en,de', '-c', quiet_config_file]) == EXIT_OK
        assert main(['-f', 'import', '-xls', workbook_path, '-wd', str(target), '-c', quiet_config_file]) == EXIT_OK

        assert (target / 'greeting_en.properties').read_text(encoding='utf-8') == 'hello=Hello\n'
        assert (target / 'greeting_de.properties').read_text(encoding='utf-8') == 'hello=Hallo\n'

    def test_missing_argument_is_reported_without_console_logging(self, tmp_path, capsys):
        config_file = tmp_path / 'silent.yaml'
        config_file.write_text(yaml.safe_dump({'logging': {'log_to_console': False}}), encoding='utf-8')

        exit_code = main(['-f', 'import', '-wd', str(tmp_path), '-c', str(config_file)])

        assert exit_code == EXIT_USAGE
        assert 'Missing mandatory argument: xlsFileName' in capsys.readouterr().err

    def test_skipped_input_is_summarized(self, tmp_path, write_properties, quiet_config_file, capsys):
        source = tmp_path / 'source'
        write_properties(source, 'app_en.properties', 'ok=Fine\n')
        write_properties(source, 'app_de.properties', 'broken=\\uZZZZ\n')

        exit_code = main(['-f', 'export', '-xls', str(tmp_path / 'out.xlsx'), '-wd', str(source),
                          '-r', r'.*\.properties', '-langs', 'en,de', '-c', quiet_config_file])

        assert exit_code == EXIT_OK
        assert 'Finished with 1 warning(s)' in capsys.readouterr().err
