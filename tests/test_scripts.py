from pathlib import Path

import pytest

from mpsl.interpreter import run_file

SCRIPTS_DIR = Path(__file__).parent / 'scripts'
SCRIPTS = sorted(SCRIPTS_DIR.glob('*.mpsl'))


def read_expectation(path: Path):
    """Return ('RUN' | 'ERROR', expected output lines) from a script's trailing comments."""
    lines = path.read_text(encoding='utf-8').splitlines()
    for i, line in enumerate(lines):
        if line.startswith('# @EXPECT '):
            kind = line[len('# @EXPECT '):].strip()
            expected = [l[2:] if l.startswith('# ') else '' for l in lines[i + 1:] if l.startswith('#')]
            return kind, expected
    raise ValueError(f'{path.name} has no @EXPECT block')


@pytest.mark.parametrize('script', SCRIPTS, ids=lambda p: p.stem)
def test_script(script, capsys, monkeypatch):
    kind, expected = read_expectation(script)
    # run_file changes the working directory; monkeypatch restores it
    monkeypatch.chdir(script.parent)
    result = run_file(str(script))
    out = capsys.readouterr().out.splitlines()
    assert out == expected
    assert result.success == (kind == 'RUN')
