"""
Impl block binding generation module

Generates wrappers for the public methods of an inherent impl block.
"""

from typing import Callable, TYPE_CHECKING

from .codegen import CodeGen, base_identifier, export_name
from .func import Registration
from .ir import Receiver
from .shape import Opaque, classify, resolve_self

if TYPE_CHECKING:
    from .func import FuncGenerator
    from .ir import ImplInfo, FuncInfo


class ImplGenerator:
    """Generates method bindings"""

    def __init__(self, func_gen: 'FuncGenerator', prefix: str,
                 skip: Callable[[str], bool] = lambda name: False):
        self.func_gen = func_gen
        self.prefix = prefix
        self.skip = skip

    def generate(self, impl: 'ImplInfo', gen: CodeGen) -> list[Registration]:
        """Generate wrappers for every public method, in declaration order"""
        struct = base_identifier(impl.name)
        regs = []
        for method in impl.methods:
            if not method.public or self.skip(f'{struct}::{method.name}'):
                continue
            regs.append(self.generate_method(struct, method, gen))
        return regs

    def generate_method(self, struct: str, method: 'FuncInfo', gen: CodeGen) -> Registration:
        """Generate wrapper for one method"""
        exported = export_name(self.prefix, struct.lower(), method.name)
        shapes = [resolve_self(classify(param.type), struct) for param in method.params]
        result_shape = resolve_self(classify(method.result), struct)

        if method.receiver is Receiver.NONE:
            if method.name == 'new' and result_shape is None:
                # A constructor without a declared type still yields the struct
                result_shape = Opaque(struct, spelling=struct)
            return self.func_gen.emit(
                gen, exported, method.params,
                call=lambda args: f'{struct}::{method.name}({", ".join(args)})',
                result=method.result,
                owner=struct,
                shapes=shapes,
                result_shape=result_shape,
                comment=method.comment,
            )

        target = 'obj.clone()' if method.receiver is Receiver.VALUE else 'obj'
        return self.func_gen.emit(
            gen, exported, method.params,
            call=lambda args: f'{target}.{method.name}({", ".join(args)})',
            result=method.result,
            receiver=struct,
            owner=struct,
            shapes=shapes,
            result_shape=result_shape,
            comment=method.comment,
        )
