"""
Struct binding generation module

Generates the destructor, the default constructor and field accessors for
struct types.
"""

from typing import TYPE_CHECKING

from .codegen import CodeGen, base_identifier, export_name, wrapper_name
from .func import Registration
from .ir import ParamInfo

if TYPE_CHECKING:
    from .func import FuncGenerator
    from .generator import MethodIndex
    from .ir import StructInfo, FieldInfo


class StructGenerator:
    """Generates struct bindings"""

    def __init__(self, func_gen: 'FuncGenerator', index: 'MethodIndex', prefix: str):
        self.func_gen = func_gen
        self.index = index
        self.prefix = prefix

    @property
    def handles(self):
        return self.func_gen.handles

    def export(self, struct_name: str, op: str) -> str:
        """Exported name of a struct operation"""
        return export_name(self.prefix, base_identifier(struct_name).lower(), op)

    def generate(self, struct: 'StructInfo', gen: CodeGen) -> list[Registration]:
        """Generate all bindings for a struct; a private one only gets its destructor"""
        name = base_identifier(struct.name)
        regs = [self._gen_delete(name, gen)]
        if not struct.public:
            return regs

        if not self.index.has_custom_new(name):
            regs.append(self._gen_default_new(name, gen))

        for fld in struct.public_fields():
            if not (self.index.has(name, fld.name) or self.index.has(name, f'get_{fld.name}')):
                regs.append(self._gen_getter(name, fld, gen))
            if not self.index.has(name, f'set_{fld.name}'):
                regs.append(self._gen_setter(name, fld, gen))
        return regs

    def _gen_delete(self, struct_name: str, gen: CodeGen) -> Registration:
        """Generate destructor; deleting a null handle does nothing"""
        exported = self.export(struct_name, 'delete')
        ident = wrapper_name(exported)
        with self.func_gen.wrapper(gen, ident):
            gen.line('ring_check_paracount!(p, 1);')
            gen.line('ring_check_cpointer!(p, 1);')
            self.handles.reclaim(gen, struct_name)
        gen.line()
        return Registration(exported, ident, [('self', f'{struct_name} pointer')],
                            owner=struct_name)

    def _gen_default_new(self, struct_name: str, gen: CodeGen) -> Registration:
        """Generate constructor building the type's default value"""
        exported = self.export(struct_name, 'new')
        ident = wrapper_name(exported)
        with self.func_gen.wrapper(gen, ident):
            gen.line('ring_check_paracount!(p, 0);')
            gen.line(self.handles.ret(f'{struct_name}::default()', struct_name))
        gen.line()
        return Registration(exported, ident, result=f'{struct_name} pointer', owner=struct_name)

    def _gen_getter(self, struct_name: str, fld: 'FieldInfo', gen: CodeGen) -> Registration:
        """Generate field getter"""
        return self.func_gen.emit(
            gen, self.export(struct_name, f'get_{fld.name}'), [],
            call=lambda args: f'obj.{fld.name}.clone()',
            result=fld.type,
            receiver=struct_name,
            owner=struct_name,
        )

    def _gen_setter(self, struct_name: str, fld: 'FieldInfo', gen: CodeGen) -> Registration:
        """Generate field setter"""
        return self.func_gen.emit(
            gen, self.export(struct_name, f'set_{fld.name}'), [ParamInfo(fld.name, fld.type)],
            call=lambda args: f'obj.{fld.name} = {args[0]}',
            receiver=struct_name,
            owner=struct_name,
        )
