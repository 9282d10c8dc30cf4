"""
Main generator module

Orchestrates all components to generate a complete Ring extension module.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from .codegen import CodeGen, base_identifier, module_prefix, rust_string
from .errors import BindgenError
from .func import FuncGenerator, Registration
from .handle import HandleRegistry
from .impl import ImplGenerator
from .ir import IR, StructInfo, ImplInfo, FuncInfo
from .reference import ReferenceGenerator
from .source import read_source
from .struct import StructGenerator
from .types import TypeConverter, TypeHandler


class MethodIndex:
    """(struct, method) pairs of every impl method in a module

    Built in a pass of its own before any struct is processed, since an impl
    block may come after the struct it extends. Private methods count too: a
    private `new` still replaces the default constructor.
    """

    def __init__(self):
        self._methods: set[tuple[str, str]] = set()

    @classmethod
    def build(cls, ir: IR) -> 'MethodIndex':
        index = cls()
        for impl in ir.impls():
            for method in impl.methods:
                index.add(impl.name, method.name)
        return index

    def add(self, struct_name: str, method_name: str):
        self._methods.add((base_identifier(struct_name), method_name))

    def has(self, struct_name: str, method_name: str) -> bool:
        return (base_identifier(struct_name), method_name) in self._methods

    def has_custom_new(self, struct_name: str) -> bool:
        return self.has(struct_name, 'new')

    def __len__(self) -> int:
        return len(self._methods)


@dataclass
class BindingModule:
    """Result of generating one module"""
    module: str
    prefix: str
    code: str
    registrations: list[Registration] = field(default_factory=list)
    tags: dict[str, str] = field(default_factory=dict)

    def exported_names(self) -> list[str]:
        return [reg.name for reg in self.registrations]

    def find(self, name: str) -> Optional[Registration]:
        """Last registration exported as `name` (the one the loader keeps)"""
        for reg in reversed(self.registrations):
            if reg.name == name:
                return reg
        return None


class ModuleConfig:
    """Configuration for a module"""

    def __init__(self, prefix: str):
        self.prefix = prefix
        self.ignores: set[str] = set()
        self.type_handlers: dict[str, TypeHandler] = {}


class Generator:
    """Main binding generator"""

    def __init__(self):
        self._modules: dict[str, ModuleConfig] = {}
        self._global_ignores: set[str] = set()

    def ignore(self, *names: str):
        """Add functions, structs or `Struct::method` entries to ignore globally"""
        self._global_ignores.update(names)

    def module(self, prefix: str) -> ModuleConfig:
        """Get or create module configuration"""
        key = module_prefix(prefix)
        if key not in self._modules:
            self._modules[key] = ModuleConfig(key)
        return self._modules[key]

    def type_handler(self, prefix: str, type_name: str):
        """Decorator to register a type handler"""
        def decorator(cls):
            config = self.module(prefix)
            config.type_handlers[type_name] = cls()
            return cls
        return decorator

    def load(self, input_path: str) -> IR:
        """Read declarations from a JSON IR file or a Rust source file"""
        if not os.path.exists(input_path):
            raise BindgenError(f'{input_path}: no such file')
        if input_path.endswith('.json'):
            return IR.load(input_path)
        with open(input_path, 'r', encoding='utf-8') as f:
            text = f.read()
        module = os.path.splitext(os.path.basename(input_path))[0]
        return read_source(text, module=module)

    def generate_file(self, input_path: str, output_path: str, prefix: Optional[str] = None,
                      docs_path: Optional[str] = None) -> BindingModule:
        """Generate bindings for one input file and write them out"""
        print('=== Generating Ring bindings:')
        ir = self.load(input_path)
        print(f'  {input_path} => {output_path}')

        result = self.generate(ir, prefix)
        if not result.registrations:
            print(f'  >> warning: {input_path} has nothing to bind')
        with open(output_path, 'w', newline='\n') as f:
            f.write(result.code)

        if docs_path:
            print(f'  {input_path} => {docs_path}')
            with open(docs_path, 'w', newline='\n') as f:
                f.write(ReferenceGenerator(result).generate())
        return result

    def generate(self, ir: IR, prefix: Optional[str] = None) -> BindingModule:
        """Generate Rust binding code for a module"""
        pfx = module_prefix(ir.prefix if prefix is None else prefix)
        config = self._modules.get(pfx, ModuleConfig(pfx))
        ignores = self._global_ignores | config.ignores

        # Create generators
        handles = HandleRegistry()
        type_conv = TypeConverter(pfx, handles)
        func_gen = FuncGenerator(type_conv, pfx)
        index = MethodIndex.build(ir)
        struct_gen = StructGenerator(func_gen, index, pfx)
        impl_gen = ImplGenerator(func_gen, pfx, skip=lambda name: name in ignores)

        # Register custom handlers
        for type_name, handler in config.type_handlers.items():
            type_conv.register(type_name, handler)

        # Wrappers go first so the handle registry knows every tag in use
        body = CodeGen()
        registrations: list[Registration] = []
        for decl in ir.decls:
            if isinstance(decl, StructInfo):
                # Private structs still get a destructor for pointers their impl returns
                if decl.name not in ignores:
                    registrations.extend(struct_gen.generate(decl, body))
            elif isinstance(decl, ImplInfo):
                if base_identifier(decl.name) not in ignores:
                    registrations.extend(impl_gen.generate(decl, body))
            elif isinstance(decl, FuncInfo):
                if decl.public and decl.name not in ignores:
                    registrations.append(func_gen.generate(decl, body))

        gen = CodeGen()
        gen.line(f'// machine generated from {ir.module or "<input>"}, do not edit')
        gen.line('use ring_lang_rs::*;')
        gen.line()
        if handles.tags:
            handles.declare(gen)
            gen.line()
        gen.splice(body.output())
        self._gen_libinit(registrations, gen)

        return BindingModule(
            module=ir.module,
            prefix=pfx,
            code=gen.output() + '\n',
            registrations=registrations,
            tags=handles.tags,
        )

    def _gen_libinit(self, registrations: list[Registration], gen: CodeGen):
        """Generate the registration table"""
        with gen.block('ring_libinit! {'):
            for reg in registrations:
                gen.line(f'{rust_string(reg.name)} => {reg.wrapper},')
