"""
ring_bindgen - Ring binding generation framework for Rust code

This framework generates ring_lang_rs glue from Rust struct, impl and fn
declarations (read from Rust source or from a JSON IR). It is designed to be
extended with custom type handlers for types the default marshalling does
not cover.
"""

from .ir import IR, StructInfo, FieldInfo, FuncInfo, ParamInfo, ImplInfo, Receiver
from .types import TypeConverter, TypeHandler, ConversionContext
from .codegen import CodeGen, NameScope
from .errors import BindgenError, SourceError
from .shape import classify
from .handle import HandleRegistry
from .params import ParamBinder, ParamBinding
from .returns import ReturnSynthesizer
from .struct import StructGenerator
from .func import FuncGenerator, Registration
from .impl import ImplGenerator
from .source import read_source
from .reference import ReferenceGenerator
from .generator import Generator, BindingModule, MethodIndex, ModuleConfig

__all__ = [
    'IR', 'StructInfo', 'FieldInfo', 'FuncInfo', 'ParamInfo', 'ImplInfo', 'Receiver',
    'TypeConverter', 'TypeHandler', 'ConversionContext',
    'CodeGen', 'NameScope',
    'BindgenError', 'SourceError',
    'classify',
    'HandleRegistry',
    'ParamBinder', 'ParamBinding',
    'ReturnSynthesizer',
    'StructGenerator',
    'FuncGenerator', 'Registration',
    'ImplGenerator',
    'read_source',
    'ReferenceGenerator',
    'Generator', 'BindingModule', 'MethodIndex', 'ModuleConfig',
]
