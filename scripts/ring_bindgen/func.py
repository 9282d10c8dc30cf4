"""
Function binding generation module

Generates wrapper functions for free Rust functions, and the wrapper body
shared by every other kind of binding.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Optional, TYPE_CHECKING

from .codegen import CodeGen, NameScope, export_name, wrapper_name
from .shape import Shape, classify

if TYPE_CHECKING:
    from .ir import FuncInfo, ParamInfo
    from .types import TypeConverter

# Locals a wrapper body already uses
RESERVED_LOCALS = {'p', 'obj', 'ptr'}

_IDENT_RE = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


@dataclass
class Registration:
    """One entry of the registration table"""
    name: str                 # Name exported to Ring
    wrapper: str              # Rust identifier of the wrapper
    params: list[tuple[str, str]] = field(default_factory=list)  # (name, Ring kind)
    result: str = 'nothing'   # Ring kind returned
    owner: Optional[str] = None  # Struct the operation belongs to
    comment: str = ""


def local_name(name: str, idx: int) -> str:
    """Rust local for a parameter, avoiding names the wrapper body uses

    Examples:
        count -> count
        p -> __arg1
        _ -> __arg2
    """
    if name in RESERVED_LOCALS or name == '_' or name.startswith('__') or not _IDENT_RE.match(name):
        return f'__arg{idx}'
    return name


class FuncGenerator:
    """Generates function wrapper bindings"""

    def __init__(self, type_conv: 'TypeConverter', prefix: str):
        self.type_conv = type_conv
        self.prefix = prefix

    @property
    def handles(self):
        return self.type_conv.handles

    def generate(self, func: 'FuncInfo', gen: CodeGen) -> Registration:
        """Generate wrapper for a free function"""
        exported = export_name(self.prefix, func.name)
        return self.emit(
            gen, exported, func.params,
            call=lambda args: f'{func.name}({", ".join(args)})',
            result=func.result,
            comment=func.comment,
        )

    def wrapper(self, gen: CodeGen, ident: str):
        """Context manager for a `ring_func!` wrapper body"""
        return gen.block(f'ring_func!({ident}, |p| {{', '});')

    def emit(self, gen: CodeGen, exported: str, params: list['ParamInfo'],
             call: Callable[[list[str]], str], result: Optional[str] = None,
             receiver: Optional[str] = None, owner: Optional[str] = None,
             shapes: Optional[list[Shape]] = None, result_shape: Optional[Shape] = None,
             comment: str = "") -> Registration:
        """Generate one wrapper

        Argument 1 is the receiver handle when `receiver` names a struct, and
        the declared parameters follow it. All kind checks run before any
        value is extracted.
        """
        ident = wrapper_name(exported)
        offset = 1 if receiver else 0
        shapes = shapes or [classify(param.type) for param in params]
        if result_shape is None and result is not None:
            result_shape = classify(result)

        bindings = []
        for i, (param, shape) in enumerate(zip(params, shapes)):
            idx = i + 1 + offset
            bindings.append(self.type_conv.bind(param.type, local_name(param.name, idx), idx, shape))

        with self.wrapper(gen, ident):
            gen.line(f'ring_check_paracount!(p, {len(params) + offset});')
            if receiver:
                gen.line('ring_check_cpointer!(p, 1);')
            for binding in bindings:
                gen.lines(*binding.check)
            if receiver:
                self.handles.receiver(gen, receiver)
            for binding in bindings:
                for stmt in binding.get:
                    gen.splice(stmt)
            self.type_conv.ret(result, call([b.arg for b in bindings]), gen, NameScope(),
                               shape=result_shape)
        gen.line()

        described = [(param.name, self.type_conv.describe(param.type, shape))
                     for param, shape in zip(params, shapes)]
        if receiver:
            described.insert(0, ('self', f'{receiver} pointer'))
        return Registration(
            name=exported,
            wrapper=ident,
            params=described,
            result=self.type_conv.describe(result, result_shape),
            owner=owner,
            comment=comment,
        )
