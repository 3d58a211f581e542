import builtins

import pytest

from ubcalc.__main__ import main


def feed(monkeypatch, lines):
    it = iter(lines)

    def fake_input(prompt=""):
        try:
            return next(it)
        except StopIteration:
            raise EOFError

    monkeypatch.setattr(builtins, "input", fake_input)


def test_single_expression_argument(capsys):
    assert main(["4.5±0.3+2±0.1"]) == 0
    assert capsys.readouterr().out.strip() == "6.5 ± 0.4"


def test_actual_flag(capsys):
    main(["--actual", "10±1 - 2±0.5"])
    assert capsys.readouterr().out.strip() == "8 ± 2  (range 7 to 10)"


def test_repl_switches_mode(monkeypatch, capsys):
    feed(monkeypatch, ["2±0.1*3±0.2", ":mode actual", "10±1-2±0.5", "exit"])
    assert main([]) == 0
    out = capsys.readouterr().out
    assert "Out [1]: 6.0 ± 0.7" in out
    assert "mode: actual" in out
    assert "Out [2]: 8 ± 2" in out


def test_repl_steps_toggle_and_eof(monkeypatch, capsys):
    feed(monkeypatch, [":steps", "1±0.1+1±0.1"])
    assert main([]) == 0
    out = capsys.readouterr().out
    assert "steps: on" in out
    assert "Step 1: Expression" in out


def test_help_flag(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--help"])
    assert exc.value.code == 0
    assert "--actual" in capsys.readouterr().out


def test_unknown_flag_is_rejected(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--quadrature", "1±0.1+1±0.1"])
    assert exc.value.code == 2


def test_steps_flag(capsys):
    main(["--steps", "1±0.1+1±0.1"])
    assert "Step 1: Expression" in capsys.readouterr().out
