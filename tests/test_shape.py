import pytest

from ring_bindgen.shape import (
    Boolean, Indirection, Mapping, Number, Opaque, OptionOf, Reference, ResultOf,
    Shape, Slice, Text, TupleOf, Unit, Unknown, Vector, classify, opaque_name, resolve_self,
)


@pytest.mark.parametrize(
    'spelling, expected',
    [
        ('i32', Number('i32', spelling='i32')),
        ('usize', Number('usize', spelling='usize')),
        ('f64', Number('f64', spelling='f64')),
        ('String', Text('String')),
        ('&str', Text('&str')),
        ("&'static str", Text("&'static str")),
        ('&String', Text('&String')),
        ('bool', Boolean()),
        ('()', Unit()),
    ],
)
def test_classify_leaf_spellings(spelling: str, expected: Shape) -> None:
    assert classify(spelling) == expected


def test_classify_missing_type_is_none() -> None:
    assert classify(None) is None


def test_classify_nested_generics() -> None:
    shape = classify('Vec<Option<String>>')
    assert isinstance(shape, Vector)
    assert isinstance(shape.inner, OptionOf)
    assert isinstance(shape.inner.inner, Text)

    shape = classify('Result<Vec<Point>, String>')
    assert isinstance(shape, ResultOf)
    assert isinstance(shape.ok, Vector)
    assert shape.ok.inner == Opaque('Point', spelling='Point')


def test_classify_tuple_splits_only_top_level_commas() -> None:
    shape = classify('(i32, HashMap<String, (u8, u8)>, Point)')
    assert isinstance(shape, TupleOf)
    assert len(shape.elements) == 3
    assert isinstance(shape.elements[1], Mapping)
    assert isinstance(shape.elements[1].value, TupleOf)
    assert isinstance(shape.elements[2], Opaque)


def test_classify_parenthesized_type_is_not_a_tuple() -> None:
    assert classify('(i32)') == Number('i32', spelling='i32')
    one = classify('(i32,)')
    assert isinstance(one, TupleOf)
    assert len(one.elements) == 1


def test_classify_mapping_with_tuple_value() -> None:
    shape = classify('std::collections::HashMap<String, (i32, Vec<u8>)>')
    assert isinstance(shape, Mapping)
    assert isinstance(shape.key, Text)
    assert isinstance(shape.value, TupleOf)
    assert isinstance(shape.value.elements[1], Vector)


def test_classify_box_and_references() -> None:
    boxed = classify('Box<Point>')
    assert isinstance(boxed, Indirection)
    assert boxed.inner == Opaque('Point', spelling='Point')

    ref = classify('&mut Counter')
    assert isinstance(ref, Reference)
    assert ref.mutable
    assert ref.target == Opaque('Counter', spelling='Counter')

    shared = classify("&'a Vec<i32>")
    assert isinstance(shared, Reference)
    assert not shared.mutable
    assert isinstance(shared.target, Vector)


def test_classify_slices() -> None:
    shape = classify('&[f32]')
    assert isinstance(shape, Slice)
    assert shape.inner == Number('f32', spelling='f32')
    assert not shape.mutable

    words = classify('&[&str]')
    assert isinstance(words, Slice)
    assert words.inner == Text('&str')

    assert classify('&mut [u8]').mutable


def test_classify_str_must_be_the_whole_referent() -> None:
    assert isinstance(classify('Registry'), Opaque)
    assert isinstance(classify('Strings'), Opaque)
    assert isinstance(classify('&mut str'), Text)


def test_classify_path_qualified_struct() -> None:
    assert classify('crate::geo::Point') == Opaque('Point', spelling='crate::geo::Point')


@pytest.mark.parametrize('spelling', ['*const u8', 'impl Fn()', 'dyn Any', 'fn(i32)->i32'])
def test_classify_lowercase_or_pointer_spellings_are_unknown(spelling: str) -> None:
    assert isinstance(classify(spelling), Unknown)


@pytest.mark.parametrize(
    'spaced, compact',
    [
        ('Vec < i32 >', 'Vec<i32>'),
        ('HashMap < String , Vec < u8 > >', 'HashMap<String,Vec<u8>>'),
        ("& 'a str", "&'a str"),
        ('& mut Counter', '&mut Counter'),
        ('Option < ( i32 , String ) >', 'Option<(i32, String)>'),
        ('Result < () , String >', 'Result<(), String>'),
    ],
)
def test_classify_ignores_separator_whitespace(spaced: str, compact: str) -> None:
    assert classify(spaced) == classify(compact)


@pytest.mark.parametrize('spelling', ['', '<<<', 'Vec<', '(((', '&', ')(', '(,)', 'Vec<>', 'Option<'])
def test_classify_is_total(spelling: str) -> None:
    assert isinstance(classify(spelling), Shape)


def test_resolve_self_inside_struct() -> None:
    shape = resolve_self(classify('Result<Option<Self>, String>'), 'Counter')
    assert isinstance(shape, ResultOf)
    assert shape.ok.inner == Opaque('Counter', spelling='Counter')


def test_resolve_self_outside_struct_is_unknown() -> None:
    assert resolve_self(classify('Self'), None) == Unknown('Self')
    assert resolve_self(None, 'Counter') is None


def test_opaque_name() -> None:
    assert opaque_name(classify('Point')) == 'Point'
    assert opaque_name(classify('&mut Point')) == 'Point'
    assert opaque_name(classify('Vec<Point>')) is None
