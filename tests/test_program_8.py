from pathlib import Path

from treelox.interpreter import run_program

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_8_break_leaves_inner_loop_only(capsys):
    with open(EXAMPLES / 'program_8.lox', 'r', encoding='utf-8') as f:
        source = f.read()
    run_program(source)
    out_lines = capsys.readouterr().out.strip().split('\n')
    assert out_lines == ['0', '1', '10', '11', '20', '21', 'done']
