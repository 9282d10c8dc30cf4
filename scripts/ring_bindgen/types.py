"""
Type conversion module

Provides Ring <-> Rust conversion code generation, with per-type overrides.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from .codegen import CodeGen, NameScope, normalize_type
from .handle import HandleRegistry
from .params import ParamBinder, ParamBinding
from .returns import ReturnSynthesizer
from .shape import (
    Shape, Number, Text, Boolean, Unit, Vector, Slice, OptionOf, ResultOf,
    TupleOf, Indirection, Mapping, Reference, Opaque, classify,
)


@dataclass
class ConversionContext:
    """Context for type conversion code generation"""
    idx: int                # Ring argument position (0 for return values)
    var: str                # Rust variable or expression
    type: str               # Rust type spelling
    prefix: str             # Module prefix (e.g., 'mylib_')
    handles: Optional[HandleRegistry] = None


class TypeHandler(ABC):
    """Base class for custom type handlers"""

    @abstractmethod
    def bind(self, ctx: ConversionContext) -> ParamBinding:
        """Generate code to read a Rust value from a Ring argument"""
        pass

    @abstractmethod
    def ret(self, ctx: ConversionContext) -> str:
        """Generate code to return a Rust value to Ring"""
        pass

    @abstractmethod
    def describe(self) -> str:
        """Return the Ring-side type name used in the API reference"""
        pass


class TypeConverter:
    """Manages type conversion between Ring and Rust"""

    def __init__(self, prefix: str = '', handles: Optional[HandleRegistry] = None):
        self.prefix = prefix
        self.handles = handles or HandleRegistry()
        self.binder = ParamBinder(self.handles)
        self.returns = ReturnSynthesizer(self.handles)
        self._handlers: dict[str, TypeHandler] = {}

    def register(self, type_name: str, handler: TypeHandler):
        """Register a custom type handler"""
        self._handlers[normalize_type(type_name)] = handler

    def has_handler(self, type_name: str) -> bool:
        """Check if a custom handler exists for this type"""
        return normalize_type(type_name) in self._handlers

    def get_handler(self, type_name: str) -> Optional[TypeHandler]:
        """Get custom handler for type"""
        return self._handlers.get(normalize_type(type_name))

    def bind(self, type_str: str, name: str, idx: int,
             shape: Optional[Shape] = None) -> ParamBinding:
        """Bind the Ring argument at idx to a Rust parameter"""
        handler = self.get_handler(type_str)
        if handler:
            ctx = ConversionContext(idx=idx, var=name, type=type_str, prefix=self.prefix,
                                    handles=self.handles)
            return handler.bind(ctx)
        return self.binder.bind(name, shape or classify(type_str), idx)

    def ret(self, type_str: Optional[str], call: str, gen: CodeGen,
            names: Optional[NameScope] = None, shape: Optional[Shape] = None):
        """Evaluate call and return its value to Ring"""
        names = names or NameScope()
        handler = self.get_handler(type_str) if type_str else None
        if handler:
            result = names.fresh('result')
            gen.line(f'let {result} = {call};')
            ctx = ConversionContext(idx=0, var=result, type=type_str, prefix=self.prefix,
                                    handles=self.handles)
            gen.splice(handler.ret(ctx))
            return
        if shape is None and type_str is not None:
            shape = classify(type_str)
        self.returns.synthesize(shape, call, gen, names)

    def describe(self, type_str: Optional[str], shape: Optional[Shape] = None) -> str:
        """Get the Ring-side type name for a Rust type"""
        handler = self.get_handler(type_str) if type_str else None
        if handler:
            return handler.describe()
        if shape is None and type_str is not None:
            shape = classify(type_str)
        return describe_shape(shape)


def describe_shape(shape: Optional[Shape]) -> str:
    """Ring-side type name for a shape

    Examples:
        Vec<i32> -> list of number
        Option<String> -> string or nothing
    """
    if shape is None or isinstance(shape, Unit):
        return 'nothing'
    if isinstance(shape, (Number, Boolean)):
        return 'number'
    if isinstance(shape, Text):
        return 'string'
    if isinstance(shape, (Vector, Slice)):
        return f'list of {describe_shape(shape.inner)}'
    if isinstance(shape, OptionOf):
        return f'{describe_shape(shape.inner)} or nothing'
    if isinstance(shape, ResultOf):
        return f'{describe_shape(shape.ok)} (raises on error)'
    if isinstance(shape, TupleOf):
        return f'list [{", ".join(describe_shape(e) for e in shape.elements)}]'
    if isinstance(shape, Indirection):
        return describe_shape(shape.inner)
    if isinstance(shape, Mapping):
        # Keys without a Ring encoding are sent as their Debug text
        key = describe_shape(shape.key) if isinstance(shape.key, (Number, Text, Boolean)) else 'string'
        return f'list of [{key}, {describe_shape(shape.value)}] pairs'
    if isinstance(shape, Reference):
        return describe_shape(shape.target)
    if isinstance(shape, Opaque):
        return f'{shape.name} pointer'
    return 'number'
