import json

import pytest

from mpsl.__main__ import main


def write_program(tmp_path, source, name='prog.mpsl'):
    path = tmp_path / name
    path.write_text(source, encoding='utf-8')
    return path


def test_runs_program(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    path = write_program(tmp_path, '@print "hi"\n')
    main([str(path)])
    assert capsys.readouterr().out == 'hi\n'


def test_missing_file(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        main([str(tmp_path / 'nope.mpsl')])
    assert exc.value.code == 1
    assert 'not found' in capsys.readouterr().err


def test_failing_program_exits_nonzero(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    path = write_program(tmp_path, 'break\n')
    with pytest.raises(SystemExit) as exc:
        main([str(path)])
    assert exc.value.code == 1
    assert 'Runtime Error' in capsys.readouterr().out


def test_check_reports_errors(tmp_path, capsys):
    path = write_program(tmp_path, '1 -> var\n')
    with pytest.raises(SystemExit):
        main(['--check', str(path)])
    assert capsys.readouterr().out == '[L1, C9] Expected variable name.\n'


def test_check_does_not_run(tmp_path, capsys):
    path = write_program(tmp_path, '@print "hi"\n')
    main(['--check', str(path)])
    assert capsys.readouterr().out == ''


def test_tokens(tmp_path, capsys):
    path = write_program(tmp_path, '1 -> var x')
    main(['--tokens', str(path)])
    assert capsys.readouterr().out.splitlines() == [
        "1:1 (NUMBER, '1')",
        "1:3 (->, '->')",
        "1:6 (var, 'var')",
        "1:10 (IDENTIFIER, 'x')",
        "1:11 (EOF, '')",
    ]


def test_emit_ast(tmp_path, capsys):
    path = write_program(tmp_path, '5 -> var x\n')
    main(['--emit-ast', str(path)])
    out_path = tmp_path / 'prog.mpsl.ast.json'
    assert capsys.readouterr().out.strip() == str(out_path)
    tree = json.loads(out_path.read_text(encoding='utf-8'))
    assert tree['type'] == 'Program'
    stmt = tree['body'][0]
    assert stmt['type'] == 'ExpressionStmt'
    assert stmt['expression']['type'] == 'DeclarationAssign'
    assert stmt['expression']['value']['value'] == 5.0


def test_debug_flag_writes_trace(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = write_program(tmp_path, '1 -> var x\n')
    main(['-vv', str(path)])
    assert 'declare x' in (tmp_path / 'debug.txt').read_text()
