"""
Tests for the command line pipeline stages.

Each stage is driven through ``main(argv)``; stdin is replaced with the
output of the previous stage.
"""

import io
import json
import logging

import numpy as np
import pytest
from PIL import Image
from vlattice.cli import main
from vlattice.core.lattice import body_centered_cubic, simple_cubic
from vlattice.io.interchange import dumps, loads


def run(argv, capsys, monkeypatch, stdin=''):
    """Run a stage and return (status, stdout, stderr)."""
    monkeypatch.setattr('sys.stdin', io.StringIO(stdin))
    status = main(argv)
    captured = capsys.readouterr()
    return status, captured.out, captured.err


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for key in ('VLATTICE_SEED', 'VLATTICE_LOG_LEVEL', 'VLATTICE_INDENT',
                'VLATTICE_TOLERANCE', 'VLATTICE_LATTICE_PARAMETER'):
        monkeypatch.delenv(key, raising=False)
    before = list(logging.getLogger().handlers)
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        if handler not in before:
            root.removeHandler(handler)
    root.setLevel(logging.WARNING)


class TestPatternCommands:
    """Test lattice construction stages."""

    def test_pattern(self, capsys, monkeypatch):
        """Test building a preset with a lattice parameter."""
        status, out, err = run(['pattern', 'bcc', '-a', '2.87'], capsys, monkeypatch)

        assert status == 0
        assert loads(out) == body_centered_cubic(2.87)

    @pytest.mark.parametrize("name", ['sc', 'bcc', 'fcc'])
    def test_shortcuts(self, name, capsys, monkeypatch):
        """Test the sc, bcc and fcc shortcuts."""
        status, out, _ = run([name], capsys, monkeypatch)

        assert status == 0
        assert out.endswith('\n')
        assert loads(out).num_sites == {'sc': 1, 'bcc': 2, 'fcc': 4}[name]

    def test_unknown_pattern_is_usage_error(self, capsys, monkeypatch):
        """Test unknown patterns are rejected by argparse."""
        with pytest.raises(SystemExit) as excinfo:
            run(['pattern', 'hcp'], capsys, monkeypatch)
        assert excinfo.value.code == 2

    def test_bad_parameter(self, capsys, monkeypatch):
        """Test a negative lattice parameter is reported."""
        status, out, err = run(['sc', '-a', '-1'], capsys, monkeypatch)

        assert status == 1
        assert out == ''
        assert err.startswith('Error: Lattice constant must be positive')


class TestTransformCommands:
    """Test stages that read a lattice from stdin."""

    def test_check_round_trip(self, capsys, monkeypatch):
        """Test check rewrites a pretty document compactly."""
        document = dumps(simple_cubic(), pretty=True)
        status, out, _ = run(['check'], capsys, monkeypatch, stdin=document)

        assert status == 0
        assert out == dumps(simple_cubic()) + '\n'

    def test_pretty(self, capsys, monkeypatch):
        """Test pretty printing from stdin."""
        status, out, _ = run(['pretty'], capsys, monkeypatch, stdin=dumps(simple_cubic()))

        assert status == 0
        assert out == dumps(simple_cubic(), pretty=True) + '\n'

    def test_expand(self, capsys, monkeypatch):
        """Test expanding along every axis."""
        status, out, _ = run(['expand', '-x', '2', '-y', '2', '-z', '2'],
                             capsys, monkeypatch, stdin=dumps(simple_cubic()))
        lattice = loads(out)

        assert status == 0
        assert (lattice.num_sites, lattice.num_bonds) == (8, 24)

    def test_expand_from_file(self, tmp_path, capsys, monkeypatch):
        """Test reading the input lattice from a file."""
        path = tmp_path / 'bcc.json'
        path.write_text(dumps(body_centered_cubic()))
        status, out, _ = run(['expand', str(path), '-x', '3'], capsys, monkeypatch)

        assert status == 0
        assert loads(out).num_sites == 6

    def test_drop(self, capsys, monkeypatch):
        """Test dropping two axes at once."""
        status, out, _ = run(['drop', '-x', '-z'], capsys, monkeypatch, stdin=dumps(simple_cubic()))

        assert status == 0
        assert loads(out).periodic == (False, True, False)

    def test_alloy_is_reproducible(self, capsys, monkeypatch):
        """Test a fixed seed gives identical output."""
        cell = dumps(simple_cubic(kind='Fe'))
        _, supercell, _ = run(['expand', '-x', '10', '-y', '10'], capsys, monkeypatch, stdin=cell)

        argv = ['alloy', 'Fe', '-t', 'Fe+', '50', '--seed', '42']
        status, first, _ = run(argv, capsys, monkeypatch, stdin=supercell)
        _, second, _ = run(argv, capsys, monkeypatch, stdin=supercell)

        assert status == 0
        assert first == second
        assert loads(first).kinds() == {'Fe': 50, 'Fe+': 50}

    def test_alloy_mixture(self, capsys, monkeypatch):
        """Test several targets in one stage."""
        cell = dumps(simple_cubic(kind='Fe'))
        _, supercell, _ = run(['expand', '-x', '10', '-y', '10'], capsys, monkeypatch, stdin=cell)
        status, out, _ = run(['alloy', 'Fe', '-t', 'Ni', '20', '-t', 'Co', '30', '--seed', '1'],
                             capsys, monkeypatch, stdin=supercell)

        assert status == 0
        assert loads(out).kinds() == {'Fe': 50, 'Ni': 20, 'Co': 30}

    def test_alloy_seed_from_environment(self, capsys, monkeypatch):
        """Test the seed read from the environment."""
        monkeypatch.setenv('VLATTICE_SEED', '7')
        cell = dumps(simple_cubic(kind='Fe'))
        _, supercell, _ = run(['expand', '-x', '20'], capsys, monkeypatch, stdin=cell)

        _, first, _ = run(['alloy', 'Fe', '-t', 'Ni', '50'], capsys, monkeypatch, stdin=supercell)
        _, second, _ = run(['alloy', 'Fe', '-t', 'Ni', '50', '--seed', '7'],
                           capsys, monkeypatch, stdin=supercell)
        assert first == second

    def test_alloy_missing_source(self, capsys, monkeypatch):
        """Test a missing source species is reported."""
        status, out, err = run(['alloy', 'Co', '-t', 'Ni', '50', '--seed', '1'],
                               capsys, monkeypatch, stdin=dumps(simple_cubic()))

        assert status == 1
        assert out == ''
        assert "No sites of kind 'Co'" in err

    def test_alloy_lenient(self, capsys, monkeypatch):
        """Test lenient mode passes the lattice through."""
        status, out, _ = run(['alloy', 'Co', '-t', 'Ni', '50', '--seed', '1', '--lenient'],
                             capsys, monkeypatch, stdin=dumps(simple_cubic()))

        assert status == 0
        assert loads(out) == simple_cubic()

    def test_alloy_bad_percentage(self, capsys, monkeypatch):
        """Test a non-numeric percentage is reported."""
        status, out, err = run(['alloy', 'A', '-t', 'Ni', 'lots', '--seed', '1'],
                               capsys, monkeypatch, stdin=dumps(simple_cubic()))

        assert status == 1
        assert out == ''
        assert 'must be a number' in err

    def test_merge(self, tmp_path, capsys, monkeypatch):
        """Test merging a file with stdin."""
        first = tmp_path / 'a.json'
        first.write_text(dumps(simple_cubic(kind='Fe')))
        status, out, _ = run(['merge', str(first), '-'], capsys, monkeypatch,
                             stdin=dumps(simple_cubic(kind='Ni')))

        assert status == 0
        assert [site.kind for site in loads(out).sites] == ['Fe', 'Ni']

    def test_merge_incompatible(self, tmp_path, capsys, monkeypatch):
        """Test merging different cells is reported."""
        first = tmp_path / 'a.json'
        first.write_text(dumps(simple_cubic(1.0)))
        status, out, err = run(['merge', str(first), '-'], capsys, monkeypatch,
                               stdin=dumps(simple_cubic(2.0)))

        assert status == 1
        assert out == ''
        assert err.startswith('Error: Cannot merge')

    def test_mask(self, tmp_path, capsys, monkeypatch):
        """Test a transparent image removes every site."""
        path = tmp_path / 'clear.png'
        Image.new('RGBA', (2, 2), (0, 0, 0, 0)).save(path)
        cell = dumps(body_centered_cubic())
        status, out, _ = run(['mask', str(path), '--seed', '3'], capsys, monkeypatch, stdin=cell)

        assert status == 0
        assert loads(out).num_sites == 0

    def test_into_xyz(self, capsys, monkeypatch):
        """Test exporting to xyz."""
        status, out, _ = run(['into', 'xyz'], capsys, monkeypatch,
                             stdin=dumps(body_centered_cubic()))

        assert status == 0
        assert out.splitlines()[0] == '2'

    def test_plot(self, tmp_path, capsys, monkeypatch):
        """Test the plot is written to a file, not stdout."""
        target = tmp_path / 'bcc.png'
        status, out, _ = run(['plot', '-o', str(target), '--plane', 'xz'], capsys, monkeypatch,
                             stdin=dumps(body_centered_cubic()))

        assert status == 0
        assert out == ''
        assert target.stat().st_size > 0


class TestFailures:
    """Test diagnostics and exit status."""

    def test_invalid_json(self, capsys, monkeypatch):
        """Test malformed JSON on stdin."""
        status, out, err = run(['check'], capsys, monkeypatch, stdin='{not json')

        assert status == 1
        assert out == ''
        assert err.startswith('Error: There was a problem parsing json')

    def test_invalid_lattice(self, capsys, monkeypatch):
        """Test a document with a dangling bond."""
        document = json.loads(dumps(simple_cubic()))
        document['bonds'].append({'source': 0, 'target': 3, 'delta': [0, 0, 0]})
        status, out, err = run(['check'], capsys, monkeypatch, stdin=json.dumps(document))

        assert status == 1
        assert out == ''
        assert 'missing site' in err

    def test_undecodable_stdin(self, capsys, monkeypatch):
        """Non UTF-8 bytes on stdin are reported, not raised."""
        stdin = io.TextIOWrapper(io.BytesIO(b'\xff\xfe{'), encoding='utf-8')
        monkeypatch.setattr('sys.stdin', stdin)
        status = main(['check'])
        captured = capsys.readouterr()

        assert status == 1
        assert captured.out == ''
        assert captured.err.startswith('Error: Input from stdin is not valid UTF-8 text')

    def test_undecodable_file(self, tmp_path, capsys, monkeypatch):
        """Non UTF-8 bytes in an input file are reported, not raised."""
        path = tmp_path / 'binary.json'
        path.write_bytes(b'\xff\xfe{')
        status, out, err = run(['check', str(path)], capsys, monkeypatch)

        assert status == 1
        assert out == ''
        assert 'not valid UTF-8' in err

    def test_missing_input_file(self, tmp_path, capsys, monkeypatch):
        """Test a missing input file."""
        status, out, err = run(['check', str(tmp_path / 'nope.json')], capsys, monkeypatch)

        assert status == 1
        assert out == ''
        assert err.startswith('Error:')

    def test_missing_config(self, tmp_path, capsys, monkeypatch):
        """Test a missing settings file."""
        status, out, err = run(['--config', str(tmp_path / 'nope.json'), 'sc'], capsys, monkeypatch)

        assert status == 1
        assert out == ''
        assert 'Config file not found' in err


class TestSettings:
    """Test settings flowing into stages."""

    def test_config_lattice_parameter(self, tmp_path, capsys, monkeypatch):
        """Test the lattice parameter from a settings file."""
        config = tmp_path / 'settings.json'
        config.write_text(json.dumps({'lattice_parameter': 3.0}))
        status, out, _ = run(['--config', str(config), 'sc'], capsys, monkeypatch)

        assert status == 0
        assert np.allclose(loads(out).basis, 3.0 * np.eye(3))

    def test_indent_from_environment(self, capsys, monkeypatch):
        """Test the pretty indent from the environment."""
        monkeypatch.setenv('VLATTICE_INDENT', '4')
        status, out, _ = run(['pretty'], capsys, monkeypatch, stdin=dumps(simple_cubic()))

        assert status == 0
        assert out.splitlines()[1].startswith('    "basis"')

    def test_verbose_logs_to_stderr(self, capsys, monkeypatch):
        """Test -v logs to stderr only."""
        status, out, err = run(['-v', 'expand', '-x', '2'], capsys, monkeypatch,
                               stdin=dumps(simple_cubic()))

        assert status == 0
        assert 'Expanded' in err
        assert 'Expanded' not in out
