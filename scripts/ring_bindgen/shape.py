"""
Type classification module

Turns the textual spelling of a Rust type into a Shape: the structural
category that decides how a value crosses the Ring boundary. This is purely
syntactic; nothing is resolved against real type definitions.
"""

import re
from dataclasses import dataclass
from typing import Optional

from .codegen import (
    normalize_type, split_top_level, generic_args, strip_path,
    is_number_type, is_bool_type, is_string_type,
)

VEC_NAMES = ('Vec',)
OPTION_NAMES = ('Option',)
RESULT_NAMES = ('Result',)
BOX_NAMES = ('Box',)
MAP_NAMES = ('HashMap', 'BTreeMap')

_REF_RE = re.compile(r"^&(?:'\w+\s?)?(mut\b\s?)?(.*)$")
_NAMED_RE = re.compile(r"^[A-Z]\w*(?:<.*>)?$")


class Shape:
    """Base class for classified type shapes"""

    spelling: str = ''


@dataclass(frozen=True)
class Number(Shape):
    width: str
    spelling: str = ''


@dataclass(frozen=True)
class Text(Shape):
    spelling: str = 'String'

    @property
    def owned(self) -> bool:
        return self.spelling == 'String'

    @property
    def borrowed_owned(self) -> bool:
        """`&String`: the callee wants a reference to an owned string"""
        return self.spelling in ('&String', '&mut String')


@dataclass(frozen=True)
class Boolean(Shape):
    spelling: str = 'bool'


@dataclass(frozen=True)
class Unit(Shape):
    spelling: str = '()'


@dataclass(frozen=True)
class Vector(Shape):
    inner: Shape
    spelling: str = ''


@dataclass(frozen=True)
class Slice(Shape):
    inner: Shape
    mutable: bool = False
    spelling: str = ''


@dataclass(frozen=True)
class OptionOf(Shape):
    inner: Shape
    spelling: str = ''


@dataclass(frozen=True)
class ResultOf(Shape):
    ok: Shape
    spelling: str = ''


@dataclass(frozen=True)
class TupleOf(Shape):
    elements: tuple[Shape, ...]
    spelling: str = ''


@dataclass(frozen=True)
class Indirection(Shape):
    inner: Shape
    spelling: str = ''


@dataclass(frozen=True)
class Mapping(Shape):
    key: Shape
    value: Shape
    spelling: str = ''


@dataclass(frozen=True)
class Reference(Shape):
    target: Shape
    mutable: bool = False
    spelling: str = ''


@dataclass(frozen=True)
class Opaque(Shape):
    name: str
    spelling: str = ''


@dataclass(frozen=True)
class Unknown(Shape):
    spelling: str = ''


def classify(spelling: Optional[str]) -> Optional[Shape]:
    """Classify a type spelling; None for a missing return type"""
    if spelling is None:
        return None
    return _classify(normalize_type(spelling))


def _classify(ty: str) -> Shape:
    args = generic_args(ty, VEC_NAMES)
    if args:
        return Vector(_classify(args[0]), spelling=ty)

    args = generic_args(ty, OPTION_NAMES)
    if args:
        return OptionOf(_classify(args[0]), spelling=ty)

    args = generic_args(ty, RESULT_NAMES)
    if args:
        # Aliases like io::Result<T> carry only the ok type
        return ResultOf(_classify(args[0]), spelling=ty)

    if ty.startswith('(') and ty.endswith(')'):
        return _classify_parens(ty)

    args = generic_args(ty, BOX_NAMES)
    if args:
        return Indirection(_classify(args[0]), spelling=ty)

    args = generic_args(ty, MAP_NAMES)
    if args and len(args) >= 2:
        return Mapping(_classify(args[0]), _classify(args[1]), spelling=ty)

    if is_number_type(ty):
        return Number(ty, spelling=ty)
    if is_string_type(ty):
        return Text(ty)
    if is_bool_type(ty):
        return Boolean()

    match = _REF_RE.match(ty)
    if match:
        mutable = match.group(1) is not None
        target = match.group(2).strip()
        if target.startswith('[') and target.endswith(']') and ';' not in target:
            return Slice(_classify(target[1:-1]), mutable=mutable, spelling=ty)
        return Reference(_classify(target), mutable=mutable, spelling=ty)

    named = strip_path(ty)
    if _NAMED_RE.match(named):
        return Opaque(named, spelling=ty)
    return Unknown(ty)


def _classify_parens(ty: str) -> Shape:
    inner = ty[1:-1].strip()
    elements = split_top_level(inner)
    if not elements:
        return Unit()
    if len(elements) == 1 and not inner.endswith(','):
        # Parenthesized type, not a tuple
        return _classify(elements[0])
    return TupleOf(tuple(_classify(e) for e in elements), spelling=ty)


def resolve_self(shape: Optional[Shape], struct_name: Optional[str]) -> Optional[Shape]:
    """Replace `Self` with the owning struct, recursively"""
    if shape is None:
        return None
    if isinstance(shape, Opaque) and shape.name == 'Self':
        if struct_name is None:
            return Unknown('Self')
        return Opaque(struct_name, spelling=struct_name)
    if isinstance(shape, (Vector, OptionOf, Indirection)):
        return type(shape)(resolve_self(shape.inner, struct_name), spelling=shape.spelling)
    if isinstance(shape, Slice):
        return Slice(resolve_self(shape.inner, struct_name), mutable=shape.mutable,
                     spelling=shape.spelling)
    if isinstance(shape, ResultOf):
        return ResultOf(resolve_self(shape.ok, struct_name), spelling=shape.spelling)
    if isinstance(shape, TupleOf):
        return TupleOf(tuple(resolve_self(e, struct_name) for e in shape.elements),
                       spelling=shape.spelling)
    if isinstance(shape, Mapping):
        return Mapping(resolve_self(shape.key, struct_name),
                       resolve_self(shape.value, struct_name), spelling=shape.spelling)
    if isinstance(shape, Reference):
        return Reference(resolve_self(shape.target, struct_name), mutable=shape.mutable,
                         spelling=shape.spelling)
    return shape


def opaque_name(shape: Shape) -> Optional[str]:
    """Struct name behind an Opaque or a reference to one"""
    if isinstance(shape, Opaque):
        return shape.name
    if isinstance(shape, Reference) and isinstance(shape.target, Opaque):
        return shape.target.name
    return None
