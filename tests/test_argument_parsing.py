"""
Tests for CLI argument parsing and validation.
"""
import sys
from unittest import mock

import pytest

from ducky.cli import CLIApplication
from ducky.core.models import ActionPolicy


class TestArgumentParsing:
    """Test CLI argument parsing with argparse."""

    def test_paths_are_positional(self):
        app = CLIApplication()
        with mock.patch.object(sys, 'argv', ['ducky', '/tmp/a', '/tmp/b']):
            args = app.parse_args()
        assert args.paths == ["/tmp/a", "/tmp/b"]

    def test_paths_required(self):
        with pytest.raises(SystemExit):
            CLIApplication.parse_args([])

    def test_defaults(self):
        args = CLIApplication.parse_args(['/tmp'])
        assert args.min_size == "1KB"
        assert args.quick_bytes == "64KB"
        assert args.ext == ""
        assert args.action == "none"
        assert not args.yes and not args.trash and not args.hidden and not args.follow_symlinks
        assert not args.json and not args.summary_json and not args.timings and not args.list
        assert args.verbose == 0
        assert args.workers is None

    def test_short_flag_variants(self):
        args = CLIApplication.parse_args(['/tmp', '-l', '-q', '-y', '-vv', '-m', '10KB'])
        assert args.list and args.quiet and args.yes
        assert args.verbose == 2
        assert args.min_size == "10KB"

    def test_delete_and_hardlink_are_exclusive(self):
        assert CLIApplication.parse_args(['/tmp', '--delete']).action == "delete"
        assert CLIApplication.parse_args(['/tmp', '--hardlink']).action == "hardlink"
        with pytest.raises(SystemExit):
            CLIApplication.parse_args(['/tmp', '--delete', '--hardlink'])

    def test_excluded_dirs_after_paths(self):
        args = CLIApplication.parse_args(['/data', '-e', '/data/cache', '/data/tmp'])
        assert args.paths == ["/data"]
        assert args.excluded_dirs == ["/data/cache", "/data/tmp"]


class TestValidation:
    """validate_args / create_params exit with code 1 on bad input."""

    def test_trash_requires_delete(self):
        app = CLIApplication()
        with pytest.raises(SystemExit) as exc_info:
            app.validate_args(app.parse_args(['/tmp', '--trash']))
        assert exc_info.value.code == 1

    def test_json_modes_are_exclusive(self):
        app = CLIApplication()
        with pytest.raises(SystemExit):
            app.validate_args(app.parse_args(['/tmp', '--json', '--summary-json']))

    def test_invalid_size(self, capsys):
        app = CLIApplication()
        with pytest.raises(SystemExit):
            app.validate_args(app.parse_args(['/tmp', '--min-size', 'huge']))
        assert "Invalid size format" in capsys.readouterr().err

    def test_workers_must_be_positive(self):
        app = CLIApplication()
        with pytest.raises(SystemExit):
            app.validate_args(app.parse_args(['/tmp', '--workers', '0']))

    def test_missing_excluded_dir_only_warns(self, tmp_path, capsys):
        app = CLIApplication()
        app.validate_args(app.parse_args([str(tmp_path), '-e', str(tmp_path / 'nope')]))
        assert "Excluded directory not found" in capsys.readouterr().err


class TestCreateParams:

    def test_maps_flags_to_params(self, tmp_path):
        app = CLIApplication()
        args = app.parse_args([str(tmp_path), '--ext', 'JPG,png', '--min-size', '2KB', '--hardlink',
                               '--yes', '--hidden', '--follow-symlinks', '--workers', '3'])
        params = app.create_params(args)
        assert params.roots == [str(tmp_path)]
        assert params.extensions == [".jpg", ".png"]
        assert params.min_size_bytes == 2048
        assert params.policy is ActionPolicy.HARDLINK
        assert params.confirm
        assert params.include_hidden and params.follow_symlinks
        assert params.workers == 3

    def test_relative_roots_made_absolute(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        app = CLIApplication()
        params = app.create_params(app.parse_args(['.']))
        assert params.roots == [str(tmp_path)]

    def test_quick_bytes_clamped(self, capsys):
        app = CLIApplication()
        low = app.create_params(app.parse_args(['/tmp', '--quick-bytes', '10']))
        assert low.quick_bytes == 1024
        high = app.create_params(app.parse_args(['/tmp', '--quick-bytes', '2GB']))
        assert high.quick_bytes == 1024 ** 3
        assert "out of range" in capsys.readouterr().err

    def test_quick_bytes_in_range_untouched(self, capsys):
        app = CLIApplication()
        params = app.create_params(app.parse_args(['/tmp', '--quick-bytes', '128KiB']))
        assert params.quick_bytes == 128 * 1024
        assert capsys.readouterr().err == ""
