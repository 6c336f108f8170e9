from pathlib import Path

from treelox.interpreter import run_program

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_13_division_by_zero(capsys):
    with open(EXAMPLES / 'program_13.lox', 'r', encoding='utf-8') as f:
        source = f.read()
    run_program(source)
    captured = capsys.readouterr()
    assert captured.out.strip() == '0.5'
    assert captured.err.strip().split('\n') == ['Division by zero.', '[line 2]']
