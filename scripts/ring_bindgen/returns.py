"""
Return synthesis module

Turns a call expression plus its declared return shape into the code that
evaluates the call and hands the result back to Ring.
"""

from typing import Optional

from .codegen import CodeGen, NameScope
from .handle import HandleRegistry
from .shape import (
    Shape, Number, Text, Boolean, Unit, Vector, Slice, OptionOf, ResultOf,
    TupleOf, Indirection, Mapping, Reference, Opaque,
)


class ReturnSynthesizer:
    """Generates Ring return code for Rust values"""

    def __init__(self, handles: HandleRegistry):
        self.handles = handles

    def synthesize(self, shape: Optional[Shape], call: str, gen: CodeGen,
                   names: Optional[NameScope] = None):
        """Evaluate `call` and return its value; no shape discards it"""
        names = names or NameScope()
        if shape is None or isinstance(shape, Unit):
            gen.line(f'{call};')
            return
        result = names.fresh('result')
        gen.line(f'let {result} = {call};')
        self.ret(shape, result, gen, names)

    def ret(self, shape: Shape, value: str, gen: CodeGen, names: NameScope):
        """Set the Ring return value from an owned Rust value"""
        if isinstance(shape, Number):
            gen.line(f'ring_ret_number!(p, {value} as f64);')

        elif isinstance(shape, Boolean):
            gen.line(f'ring_ret_number!(p, if {value} {{ 1.0 }} else {{ 0.0 }});')

        elif isinstance(shape, Text):
            gen.line(f'ring_ret_string!(p, &{value});')

        elif isinstance(shape, Unit):
            pass

        elif isinstance(shape, (Vector, Slice, TupleOf, Mapping)):
            list_var = names.fresh('list')
            gen.line(f'let {list_var} = ring_new_list!(p);')
            self._fill(shape, value, list_var, gen, names)
            gen.line(f'ring_ret_list!(p, {list_var});')

        elif isinstance(shape, OptionOf):
            val = names.fresh('val')
            with gen.block(f'match {value} {{'):
                with gen.block(f'Some({val}) => {{'):
                    self.ret(shape.inner, val, gen, names)
                # None leaves the return slot untouched
                gen.line('None => {}')

        elif isinstance(shape, ResultOf):
            val = names.fresh('val')
            err = names.fresh('e')
            with gen.block(f'match {value} {{'):
                if isinstance(shape.ok, Unit):
                    gen.line('Ok(_) => {}')
                else:
                    with gen.block(f'Ok({val}) => {{'):
                        self.ret(shape.ok, val, gen, names)
                gen.line(f'Err({err}) => ring_error!(p, &format!("{{}}", {err})),')

        elif isinstance(shape, Indirection):
            if isinstance(shape.inner, Opaque):
                gen.line(self.handles.ret_boxed(value, shape.inner.name))
            else:
                self.ret(shape.inner, f'(*{value})', gen, names)

        elif isinstance(shape, Reference):
            self.ret(shape.target, f'{value}.clone()', gen, names)

        elif isinstance(shape, Opaque):
            gen.line(self.handles.ret(value, shape.name))

        else:
            gen.line(f'ring_ret_number!(p, {value} as f64);')

    def add(self, shape: Shape, value: str, list_var: str, gen: CodeGen, names: NameScope):
        """Append an owned Rust value to a Ring list"""
        if isinstance(shape, Number):
            gen.line(f'ring_list_adddouble({list_var}, {value} as f64);')

        elif isinstance(shape, Boolean):
            gen.line(f'ring_list_adddouble({list_var}, if {value} {{ 1.0 }} else {{ 0.0 }});')

        elif isinstance(shape, Text):
            gen.line(f'ring_list_addstring_str({list_var}, &{value});')

        elif isinstance(shape, Unit):
            gen.line(f'ring_list_newitem({list_var});')

        elif isinstance(shape, (Vector, Slice, TupleOf, Mapping)):
            sub = names.fresh('sub')
            gen.line(f'let {sub} = ring_list_newlist({list_var});')
            self._fill(shape, value, sub, gen, names)

        elif isinstance(shape, OptionOf):
            val = names.fresh('val')
            with gen.block(f'match {value} {{'):
                with gen.block(f'Some({val}) => {{'):
                    self.add(shape.inner, val, list_var, gen, names)
                # Keep the position as an empty item
                gen.line(f'None => ring_list_newitem({list_var}),')

        elif isinstance(shape, ResultOf):
            val = names.fresh('val')
            with gen.block(f'match {value} {{'):
                with gen.block(f'Ok({val}) => {{'):
                    self.add(shape.ok, val, list_var, gen, names)
                gen.line(f'Err(_) => ring_list_newitem({list_var}),')

        elif isinstance(shape, Indirection):
            if isinstance(shape.inner, Opaque):
                gen.line(self.handles.add_boxed(list_var, value, shape.inner.name))
            else:
                self.add(shape.inner, f'(*{value})', list_var, gen, names)

        elif isinstance(shape, Reference):
            self.add(shape.target, f'{value}.clone()', list_var, gen, names)

        elif isinstance(shape, Opaque):
            gen.line(self.handles.add(list_var, value, shape.name))

        else:
            gen.line(f'ring_list_adddouble({list_var}, {value} as f64);')

    def _fill(self, shape: Shape, value: str, list_var: str, gen: CodeGen, names: NameScope):
        """Append the items of a sequence, tuple or map value to `list_var`"""
        if isinstance(shape, Slice):
            shape = Vector(shape.inner)
            value = f'{value}.to_vec()'

        if isinstance(shape, Vector):
            item = names.fresh('item')
            with gen.block(f'for {item} in {value} {{'):
                self.add(shape.inner, item, list_var, gen, names)

        elif isinstance(shape, TupleOf):
            parts = [names.fresh(f't{n}') for n in range(len(shape.elements))]
            gen.line(f'let ({", ".join(parts)},) = {value};' if len(parts) == 1
                     else f'let ({", ".join(parts)}) = {value};')
            for part, element in zip(parts, shape.elements):
                self.add(element, part, list_var, gen, names)

        elif isinstance(shape, Mapping):
            key = names.fresh('k')
            val = names.fresh('v')
            with gen.block(f'for ({key}, {val}) in {value} {{'):
                pair = names.fresh('pair')
                gen.line(f'let {pair} = ring_list_newlist({list_var});')
                self._add_key(shape.key, key, pair, gen, names)
                self.add(shape.value, val, pair, gen, names)

    def _add_key(self, shape: Shape, key: str, list_var: str, gen: CodeGen, names: NameScope):
        if isinstance(shape, (Number, Text, Boolean)):
            self.add(shape, key, list_var, gen, names)
        else:
            gen.line(f'ring_list_addstring_str({list_var}, &format!("{{:?}}", {key}));')
