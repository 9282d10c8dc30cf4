import json
from pathlib import Path

import pytest

from ring_bindgen.errors import SourceError
from ring_bindgen.ir import IR, FuncInfo, ImplInfo, Receiver, StructInfo

DOCUMENT = {
    'module': 'demo',
    'prefix': 'demo',
    'decls': [
        {
            'kind': 'struct',
            'name': 'Person',
            'comment': 'Somebody',
            'fields': [
                {'name': 'name', 'type': 'String'},
                {'name': 'secret', 'type': 'u64', 'public': False},
            ],
        },
        {
            'kind': 'impl',
            'name': 'Person',
            'methods': [
                {'name': 'greet', 'params': [], 'result': 'String', 'receiver': 'ref'},
                {'name': 'rename', 'params': [{'name': 'to', 'type': '&str'}], 'receiver': 'mut'},
            ],
        },
        {'kind': 'func', 'name': 'add', 'params': [{'name': 'a', 'type': 'i32'}, {'name': 'b', 'type': 'i32'}],
         'result': 'i32'},
        {'kind': 'enum', 'name': 'Ignored'},
    ],
}


def test_from_dict_keeps_declaration_order() -> None:
    ir = IR.from_dict(DOCUMENT)
    assert [type(d) for d in ir.decls] == [StructInfo, ImplInfo, FuncInfo]
    assert ir.module == 'demo'
    assert ir.prefix == 'demo'


def test_from_dict_defaults() -> None:
    ir = IR.from_dict(DOCUMENT)
    person = ir.get_struct('Person')
    assert person.comment == 'Somebody'
    assert [f.name for f in person.public_fields()] == ['name']

    add = ir.funcs()[0]
    assert add.public
    assert add.receiver is Receiver.NONE
    assert not add.has_receiver

    greet, rename = ir.impls()[0].methods
    assert greet.receiver is Receiver.REF
    assert rename.receiver is Receiver.MUT
    assert rename.result is None


def test_struct_lookup() -> None:
    ir = IR.from_dict(DOCUMENT)
    assert ir.is_struct_type('Person')
    assert not ir.is_struct_type('Robot')
    assert ir.get_struct('Robot') is None


def test_to_dict_reloads_to_the_same_ir() -> None:
    ir = IR.from_dict(DOCUMENT)
    assert IR.from_dict(ir.to_dict()) == ir


def test_not_an_object() -> None:
    with pytest.raises(SourceError, match='must be a JSON object'):
        IR.from_dict(['struct'])


def test_declaration_not_an_object() -> None:
    with pytest.raises(SourceError, match='declaration must be an object'):
        IR.from_dict({'decls': ['Person']})


def test_declaration_without_name() -> None:
    with pytest.raises(SourceError, match='struct declaration without a name'):
        IR.from_dict({'decls': [{'kind': 'struct', 'fields': []}]})


@pytest.mark.parametrize(
    'decl, message',
    [
        ({'kind': 'struct', 'name': 'A', 'fields': [{'name': 'x'}]},
         'field of struct A without a type'),
        ({'kind': 'struct', 'name': 'A', 'fields': [{'type': 'i32'}]},
         'field of struct A without a name'),
        ({'kind': 'struct', 'name': 'A', 'fields': ['x']},
         "field of struct A must be an object, got 'x'"),
        ({'kind': 'func', 'name': 'f', 'params': [{'name': 'a'}]},
         'parameter of f without a type'),
        ({'kind': 'func', 'name': 'f', 'params': [{'type': 'i32'}]},
         'parameter of f without a name'),
        ({'kind': 'impl', 'name': 'A', 'methods': [{'name': 'm', 'params': [{'name': 'a', 'type': ''}]}]},
         'parameter of m without a type'),
    ],
)
def test_incomplete_field_or_parameter(decl: dict, message: str) -> None:
    with pytest.raises(SourceError) as excinfo:
        IR.from_dict({'decls': [decl]})
    assert excinfo.value.message == message


def test_unknown_receiver() -> None:
    with pytest.raises(SourceError, match="unknown receiver 'box'"):
        IR.from_dict({'decls': [{'kind': 'func', 'name': 'f', 'receiver': 'box'}]})


def test_load_file(tmp_path: Path) -> None:
    path = tmp_path / 'demo.json'
    path.write_text(json.dumps(DOCUMENT))
    assert IR.load(str(path)) == IR.from_dict(DOCUMENT)


def test_load_malformed_json_reports_line(tmp_path: Path) -> None:
    path = tmp_path / 'broken.json'
    path.write_text('{\n  "module": "demo",\n  oops\n}\n')
    with pytest.raises(SourceError) as excinfo:
        IR.load(str(path))
    assert excinfo.value.line == 3
    assert str(excinfo.value).startswith('line 3: ')
