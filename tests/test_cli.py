import json
from pathlib import Path

import pytest

from gen_ring import build_argument_parser, default_output, main

SOURCE = '''
ring_extension! {
    prefix: "calc";

    #[derive(Clone, Default)]
    pub struct Acc {
        pub total: f64,
    }

    pub fn add(a: f64, b: f64) -> f64 {
        a + b
    }

    pub fn sub(a: f64, b: f64) -> f64 {
        a - b
    }
}
'''


@pytest.fixture
def source(tmp_path: Path) -> Path:
    path = tmp_path / 'calc.rs'
    path.write_text(SOURCE)
    return path


@pytest.mark.parametrize(
    'input_path, expected',
    [
        ('src/lib.rs', 'src/lib_ring.rs'),
        ('api.json', 'api_ring.rs'),
    ],
)
def test_default_output(input_path: str, expected: str) -> None:
    assert default_output(input_path) == expected


def test_argument_defaults() -> None:
    args = build_argument_parser().parse_args(['lib.rs'])
    assert args.output is None
    assert args.prefix is None
    assert args.ignore == []
    assert args.docs is None
    assert args.dump_ir is None


def test_main_writes_default_output(source: Path) -> None:
    main([str(source)])
    code = (source.parent / 'calc_ring.rs').read_text()
    assert '"calc_add" => ring_calc_add,' in code
    assert '"calc_acc_get_total" => ring_calc_acc_get_total,' in code


def test_main_prefix_and_ignore(source: Path, tmp_path: Path) -> None:
    output = tmp_path / 'out.rs'
    main([str(source), '-o', str(output), '--prefix', 'm', '--ignore', 'sub', 'Acc'])
    code = output.read_text()
    assert '"m_add" => ring_m_add,' in code
    assert 'm_sub' not in code
    assert 'ACC_TYPE' not in code


def test_main_dump_ir_and_docs(source: Path, tmp_path: Path) -> None:
    ir_path = tmp_path / 'calc.json'
    docs = tmp_path / 'calc.md'
    main([str(source), '--prefix', 'm', '--dump-ir', str(ir_path), '--docs', str(docs)])

    dumped = json.loads(ir_path.read_text())
    assert dumped['prefix'] == 'm'
    assert [d['name'] for d in dumped['decls']] == ['Acc', 'add', 'sub']
    assert '### `m_add(a, b)`' in docs.read_text()

    # The dumped IR generates the same bindings as the source
    main([str(ir_path), '-o', str(tmp_path / 'from_ir.rs')])
    from_ir = (tmp_path / 'from_ir.rs').read_text()
    from_source = (tmp_path / 'calc_ring.rs').read_text()
    assert from_ir.split('\n')[1:] == from_source.split('\n')[1:]


def test_main_reports_errors(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    broken = tmp_path / 'broken.rs'
    broken.write_text('pub fn f(\n}\n')
    with pytest.raises(SystemExit) as excinfo:
        main([str(broken)])
    assert excinfo.value.code == 1
    assert "Error: line 2: '(' opened on line 1 closed by '}'" in capsys.readouterr().out


def test_main_reports_incomplete_ir(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    document = tmp_path / 'broken.json'
    document.write_text(json.dumps({'decls': [{'kind': 'struct', 'name': 'A', 'fields': [{'name': 'x'}]}]}))
    with pytest.raises(SystemExit) as excinfo:
        main([str(document)])
    assert excinfo.value.code == 1
    assert 'Error: field of struct A without a type' in capsys.readouterr().out


def test_main_missing_input(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit):
        main([str(tmp_path / 'nope.rs')])
    assert 'no such file' in capsys.readouterr().out
