"""
Tests for the command line entry point.
"""

import json

from main import main, load_config, build_parser


class TestCommands:

    def test_classify(self, capsys):
        assert main(['classify', 'root', 'canal', 'file']) == 0
        output = json.loads(capsys.readouterr().out)
        assert output['category'] == 'endo'
        assert output['scores'] == {'endo': 2}

    def test_reseed_memory_backend(self, capsys, write_source, records_factory):
        path = write_source("denta.json", records_factory('DC', 5, name='Dental mirror'))
        code = main(['--backend', 'memory', '--source', f'{path}=Denta Carts', 'reseed'])
        assert code == 0
        assert "CATALOG RESEED SUMMARY" in capsys.readouterr().out

    def test_reseed_aborted_exit_code(self, write_source):
        path = write_source("broken.json", "[{")
        assert main(['--backend', 'memory', '--source', f'{path}=Denta Carts', 'reseed']) == 2

    def test_report_file(self, tmp_path, write_source, records_factory):
        path = write_source("denta.json", records_factory('DC', 3))
        report_path = tmp_path / "out" / "report.json"
        main(['--backend', 'memory', '--source', f'{path}=Unknown Vendor',
              'reseed', '--report', str(report_path)])
        report = json.loads(report_path.read_text())
        assert report['status'] == 'completed_with_errors'
        assert report['files'][0]['status'] == 'excluded'

    def test_verify_empty_sqlite(self, tmp_path):
        assert main(['--db', str(tmp_path / 'empty.db'), 'verify']) == 0


class TestLoadConfig:

    def test_cli_overrides(self, tmp_path):
        args = build_parser().parse_args([
            '--backend', 'memory', '--chunk-size', '20',
            '--source', 'a.json=Kandil Medical', 'reseed', '--admin-password', 'pw',
        ])
        config = load_config(args)
        assert config.store.backend == 'memory'
        assert config.chunk_size == 20
        assert config.sources[0].vendor_name == 'Kandil Medical'
        assert config.admin.enabled
