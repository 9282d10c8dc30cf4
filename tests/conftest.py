import sys
from collections.abc import Callable
from pathlib import Path

import pytest

SCRIPTS_DIR = Path(__file__).resolve().parent.parent / 'scripts'
if str(SCRIPTS_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPTS_DIR))

from ring_bindgen import IR, BindingModule, Generator  # noqa: E402


@pytest.fixture
def make_ir() -> Callable[..., IR]:
    def _make_ir(*decls: dict, prefix: str = 'demo', module: str = 'demo') -> IR:
        return IR.from_dict({'module': module, 'prefix': prefix, 'decls': list(decls)})

    return _make_ir


@pytest.fixture
def generate(make_ir: Callable[..., IR]) -> Callable[..., BindingModule]:
    def _generate(*decls: dict, prefix: str = 'demo') -> BindingModule:
        return Generator().generate(make_ir(*decls, prefix=prefix))

    return _generate


@pytest.fixture
def wrapper_body() -> Callable[[str, str], list[str]]:
    """Stripped body lines of the wrapper with the given identifier"""
    def _wrapper_body(code: str, ident: str) -> list[str]:
        lines = code.split('\n')
        start = lines.index(f'ring_func!({ident}, |p| {{')
        end = lines.index('});', start)
        return [line.strip() for line in lines[start + 1:end]]

    return _wrapper_body


@pytest.fixture
def counter_decls() -> tuple[dict, dict]:
    """A struct with one field and an impl block shadowing its getter"""
    struct = {
        'kind': 'struct',
        'name': 'Counter',
        'fields': [{'name': 'value', 'type': 'i32'}],
    }
    impl = {
        'kind': 'impl',
        'name': 'Counter',
        'methods': [
            {'name': 'new', 'params': [{'name': 'start', 'type': 'i32'}], 'result': 'Self'},
            {'name': 'get_value', 'params': [], 'result': 'i32', 'receiver': 'ref'},
            {'name': 'increment', 'params': [{'name': 'by', 'type': 'i32'}], 'receiver': 'mut'},
        ],
    }
    return struct, impl
