from collections.abc import Callable

from ring_bindgen import BindingModule, ReferenceGenerator


def test_reference_lists_functions_then_structs(generate: Callable[..., BindingModule],
                                                counter_decls: tuple[dict, dict]) -> None:
    add = {
        'kind': 'func',
        'name': 'add',
        'comment': 'Add two numbers',
        'params': [{'name': 'a', 'type': 'i32'}, {'name': 'b', 'type': 'i32'}],
        'result': 'i32',
    }
    doc = ReferenceGenerator(generate(*counter_decls, add)).generate()
    lines = doc.split('\n')

    assert lines[:4] == ['# demo API reference', '', 'Auto-generated, do not edit.', '']
    assert lines.index('## Functions') < lines.index('## Counter')

    start = lines.index('### `demo_add(a, b)`')
    assert lines[start:start + 7] == [
        '### `demo_add(a, b)`',
        '',
        'Add two numbers',
        '',
        '- `a`: number',
        '- `b`: number',
        '- returns: number',
    ]


def test_reference_method_entries(generate: Callable[..., BindingModule],
                                  counter_decls: tuple[dict, dict]) -> None:
    doc = ReferenceGenerator(generate(*counter_decls)).generate()
    assert '## Functions' not in doc
    assert ('### `demo_counter_increment(self, by)`\n'
            '\n'
            '- `self`: Counter pointer\n'
            '- `by`: number\n'
            '- returns: nothing\n') in doc
    assert '### `demo_counter_new(start)`\n\n- `start`: number\n- returns: Counter pointer\n' in doc
