"""Tests for the command-line interface."""

import pytest
from allegheny_extractor import __main__ as cli


class TestParseArgs:
    """Test argument parsing."""

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.parse_args([])

    def test_options(self):
        args = cli.parse_args(['real-estate', '--test', '--ids', '1', '2', '--policy', 'skip-as-of', '--delay', '0'])
        assert args.command == 'real-estate'
        assert args.test
        assert args.ids == [1, 2]
        assert args.policy == 'skip-as-of'
        assert args.delay == 0.0

    def test_unknown_policy(self):
        with pytest.raises(SystemExit):
            cli.parse_args(['real-estate', '--policy', 'append'])


class TestBuildConfig:
    """Test command-line overrides."""

    def test_overrides(self, temp_dir, monkeypatch):
        monkeypatch.delenv('ALLEGHENY_OUTPUT_DIR', raising=False)
        args = cli.parse_args([
            'millage', '--output-dir', str(temp_dir), '--years', '2024', '--delay', '0',
        ])
        config = cli.build_config(args)
        assert config.output_dir == temp_dir
        assert config.millage_years == [2024]
        assert config.politeness_delay == 0.0

    def test_yaml_source(self, temp_dir):
        path = temp_dir / 'config.yaml'
        path.write_text(f"output_dir: {temp_dir / 'yaml'}\npoliteness_delay: 3\n")
        config = cli.build_config(cli.parse_args(['profiles', '--config', str(path)]))
        assert config.politeness_delay == 3
        assert config.output_dir == temp_dir / 'yaml'


class TestMain:
    """Test exit codes."""

    def test_interrupt_exits_130(self, temp_dir, monkeypatch):
        def interrupted(args, config):
            raise KeyboardInterrupt

        monkeypatch.setattr(cli, 'run_command', interrupted)
        with pytest.raises(SystemExit) as exc:
            cli.main(['profiles', '--output-dir', str(temp_dir)])
        assert exc.value.code == 130

    def test_failed_run_exits_1(self, temp_dir, monkeypatch):
        monkeypatch.setattr(cli, 'run_command', lambda args, config: {'success': False, 'error': 'disk full'})
        with pytest.raises(SystemExit) as exc:
            cli.main(['millage', '--output-dir', str(temp_dir)])
        assert exc.value.code == 1

    def test_invalid_config_exits_1(self, temp_dir):
        path = temp_dir / 'config.yaml'
        path.write_text(f"output_dir: {temp_dir}\ntime_series_policy: nonsense\n")
        with pytest.raises(SystemExit) as exc:
            cli.main(['real-estate', '--config', str(path)])
        assert exc.value.code == 1

    def test_success_exits_0(self, temp_dir, monkeypatch, capsys):
        monkeypatch.setattr(
            cli, 'run_command',
            lambda args, config: {'success': True, 'collected': 2, 'requested': 3, 'rows': 2, 'outcome': 'created'},
        )
        with pytest.raises(SystemExit) as exc:
            cli.main(['profiles', '--output-dir', str(temp_dir)])
        assert exc.value.code == 0
        assert 'Collected: 2 of 3' in capsys.readouterr().out

    def test_summary_reports_failed_pages(self, temp_dir, monkeypatch, capsys):
        monkeypatch.setattr(
            cli, 'run_command',
            lambda args, config: {'success': True, 'collected': 2, 'requested': 3, 'pages_fetched': 2, 'pages_failed': 1},
        )
        with pytest.raises(SystemExit):
            cli.main(['profiles', '--output-dir', str(temp_dir)])
        assert 'Pages failed: 1 of 3' in capsys.readouterr().out
