"""
Parameter binding module

Turns one formal parameter into the code that validates, extracts and passes
the matching Ring argument.
"""

from dataclasses import dataclass, field

from .codegen import CodeGen, NameScope
from .handle import HandleRegistry
from .shape import (
    Shape, Number, Text, Boolean, Vector, Slice, OptionOf, Indirection,
    Reference, Opaque, opaque_name,
)


@dataclass
class ParamBinding:
    """Code fragments for one parameter

    check: statements validating the argument kind; these all run before
        any extraction
    get: statements binding the Rust value (each may span several lines)
    arg: expression passed to the wrapped call
    """
    check: list[str] = field(default_factory=list)
    get: list[str] = field(default_factory=list)
    arg: str = ''


class ParamBinder:
    """Binds Ring arguments to Rust parameters by shape"""

    def __init__(self, handles: HandleRegistry):
        self.handles = handles

    def bind(self, name: str, shape: Shape, idx: int) -> ParamBinding:
        """Bind parameter `name` of the given shape at argument position idx"""
        names = NameScope()

        if isinstance(shape, Number):
            return ParamBinding(
                check=[f'ring_check_number!(p, {idx});'],
                get=[f'let {name} = ring_get_number!(p, {idx}) as {shape.width};'],
                arg=name,
            )

        if isinstance(shape, Boolean):
            return ParamBinding(
                check=[f'ring_check_number!(p, {idx});'],
                get=[f'let {name} = ring_get_number!(p, {idx}) != 0.0;'],
                arg=name,
            )

        if isinstance(shape, Text):
            return ParamBinding(
                check=[f'ring_check_string!(p, {idx});'],
                get=[f'let {name} = ring_get_string!(p, {idx});'],
                arg=_text_arg(name, shape),
            )

        if isinstance(shape, Opaque):
            ptr = f'__ptr_{name}'
            gen = CodeGen()
            gen.line(self.handles.get(ptr, idx, shape.name))
            self.handles.null_guard(gen, ptr, shape.name)
            gen.line(f'let {name} = {self.handles.duplicate(ptr, shape.name)};')
            return ParamBinding(
                check=[f'ring_check_cpointer!(p, {idx});'],
                get=[gen.output()],
                arg=name,
            )

        if isinstance(shape, Reference):
            return self._bind_reference(name, shape, idx)

        if isinstance(shape, Vector):
            gen = CodeGen()
            self._collect(gen, name, shape.inner, f'ring_get_list!(p, {idx})', names)
            return ParamBinding(
                check=[f'ring_check_list!(p, {idx});'],
                get=[gen.output()],
                arg=name,
            )

        if isinstance(shape, Slice):
            vec = f'__{name}_vec'
            gen = CodeGen()
            self._collect(gen, vec, shape.inner, f'ring_get_list!(p, {idx})', names,
                          mutable=shape.mutable)
            borrow = '&mut ' if shape.mutable else '&'
            return ParamBinding(
                check=[f'ring_check_list!(p, {idx});'],
                get=[gen.output()],
                arg=f'{borrow}{vec}[..]',
            )

        if isinstance(shape, OptionOf):
            gen = CodeGen()
            self._optional(gen, name, shape.inner, idx, names)
            return ParamBinding(get=[gen.output()], arg=name)

        if isinstance(shape, Indirection):
            inner = self.bind(name, shape.inner, idx)
            return ParamBinding(check=inner.check, get=inner.get, arg=f'Box::new({inner.arg})')

        # Unknown spellings, and shapes with no Ring encoding, read as a raw number
        return ParamBinding(
            check=[f'ring_check_number!(p, {idx});'],
            get=[f'let {name} = ring_get_number!(p, {idx}) as _;'],
            arg=name,
        )

    def _bind_reference(self, name: str, shape: Reference, idx: int) -> ParamBinding:
        target = shape.target
        if isinstance(target, Opaque):
            ptr = f'__ptr_{name}'
            gen = CodeGen()
            gen.line(self.handles.get(ptr, idx, target.name))
            self.handles.null_guard(gen, ptr, target.name)
            return ParamBinding(
                check=[f'ring_check_cpointer!(p, {idx});'],
                get=[gen.output()],
                arg=self.handles.borrow(ptr, target.name, shape.mutable),
            )

        inner = self.bind(name, target, idx)
        get = list(inner.get)
        if not shape.mutable:
            return ParamBinding(check=inner.check, get=get, arg=f'&{inner.arg}')
        if inner.arg == name:
            get.append(f'let mut {name} = {name};')
        return ParamBinding(check=inner.check, get=get, arg=f'&mut {inner.arg}')

    def _collect(self, gen: CodeGen, target: str, inner: Shape, source: str,
                 names: NameScope, mutable: bool = False):
        """Build `target` from the Ring list at `source`, skipping mismatched items"""
        list_var = names.fresh(f'{target.lstrip("_")}_list')
        borrowed_text = isinstance(inner, Text) and not inner.owned
        owned_var = names.fresh(f'{target.lstrip("_")}_owned') if borrowed_text else target

        gen.line(f'let {list_var} = {source};')
        self._fill(gen, owned_var, inner, list_var, names)
        if borrowed_text:
            binding = f'let mut {target}' if mutable else f'let {target}'
            gen.line(f'{binding}: Vec<&str> = {owned_var}.iter().map(|s| s.as_str()).collect();')
        elif mutable:
            gen.line(f'let mut {target} = {target};')

    def _fill(self, gen: CodeGen, vec: str, inner: Shape, list_var: str, names: NameScope):
        """Declare `vec` and push every usable element of `list_var` into it"""
        i = names.fresh('i')
        gen.line(f'let mut {vec} = Vec::new();')
        with gen.block(f'for {i} in 1..=ring_list_getsize({list_var}) {{'):
            self._element(gen, vec, inner, list_var, i, names)

    def _element(self, gen: CodeGen, vec: str, inner: Shape, list_var: str, i: str,
                 names: NameScope):
        # Box<T> items are read as T and boxed on push
        inner, boxes = _unbox(inner)

        if isinstance(inner, OptionOf):
            # Every position is kept; a mismatched item becomes None
            value = names.fresh('item')
            self._optional_item(gen, value, inner.inner, list_var, i, names)
            gen.line(f'{vec}.push({_box(value, boxes)});')
            return

        if isinstance(inner, Vector):
            with gen.block(f'if ring_list_islist({list_var}, {i}) {{'):
                sub = names.fresh('sub')
                sub_vec = names.fresh('inner')
                gen.line(f'let {sub} = ring_list_getlist({list_var}, {i});')
                self._fill(gen, sub_vec, inner.inner, sub, names)
                gen.line(f'{vec}.push({_box(sub_vec, boxes)});')
            return

        struct = opaque_name(inner)
        if struct is not None:
            ptr = names.fresh('ptr')
            self._list_pointer(gen, ptr, list_var, i, names)
            with gen.block(f'if !{ptr}.is_null() {{'):
                gen.line(f'{vec}.push({_box(self._from_pointer(ptr, inner), boxes)});')
            return

        cond, value = _scalar_element(inner, list_var, i)
        with gen.block(f'if {cond} {{'):
            gen.line(f'{vec}.push({_box(value, boxes)});')

    def _optional_item(self, gen: CodeGen, value: str, inner: Shape, list_var: str, i: str,
                       names: NameScope):
        inner, boxes = _unbox(inner)

        struct = opaque_name(inner)
        if struct is not None:
            ptr = names.fresh('ptr')
            self._list_pointer(gen, ptr, list_var, i, names)
            with gen.block(f'let {value} = if {ptr}.is_null() {{', '};'):
                gen.line('None')
                gen.dedent()
                gen.line('} else {')
                gen.indent()
                gen.line(f'Some({_box(self._from_pointer(ptr, inner), boxes)})')
            return

        if isinstance(inner, Vector):
            with gen.block(f'let {value} = if ring_list_islist({list_var}, {i}) {{', '};'):
                sub = names.fresh('sub')
                sub_vec = names.fresh('inner')
                gen.line(f'let {sub} = ring_list_getlist({list_var}, {i});')
                self._fill(gen, sub_vec, inner.inner, sub, names)
                gen.line(f'Some({_box(sub_vec, boxes)})')
                gen.dedent()
                gen.line('} else {')
                gen.indent()
                gen.line('None')
            return

        cond, item = _scalar_element(inner, list_var, i)
        gen.line(f'let {value} = if {cond} {{ Some({_box(item, boxes)}) }} else {{ None }};')

    def _list_pointer(self, gen: CodeGen, ptr: str, list_var: str, i: str, names: NameScope):
        """Read a pointer item, or the pointer wrapped in a one-item sub-list"""
        sub = names.fresh('sub')
        with gen.block(f'let {ptr} = if ring_list_ispointer({list_var}, {i}) {{', '};'):
            gen.line(f'ring_list_getpointer({list_var}, {i})')
            gen.dedent()
            gen.line(f'}} else if ring_list_islist({list_var}, {i}) {{')
            gen.indent()
            gen.line(f'let {sub} = ring_list_getlist({list_var}, {i});')
            gen.line(f'if ring_list_ispointer({sub}, 1) {{ ring_list_getpointer({sub}, 1) }} '
                     f'else {{ std::ptr::null_mut() }}')
            gen.dedent()
            gen.line('} else {')
            gen.indent()
            gen.line('std::ptr::null_mut()')

    def _from_pointer(self, ptr: str, shape: Shape) -> str:
        if isinstance(shape, Reference):
            return self.handles.borrow(ptr, shape.target.name, shape.mutable)
        return self.handles.duplicate(ptr, shape.name)

    def _optional(self, gen: CodeGen, name: str, inner: Shape, idx: int, names: NameScope):
        """Bind an Option argument; an empty string is the universal None"""
        inner, boxes = _unbox(inner)
        s = names.fresh('s')
        with gen.block(f'let {name} = if ring_api_isstring(p, {idx}) {{', '};'):
            if isinstance(inner, Text):
                gen.line(f'let {s} = ring_get_string!(p, {idx});')
                some = f'{s}.to_string()' if inner.owned or inner.borrowed_owned else s
                gen.line(f'if {s}.is_empty() {{ None }} else {{ Some({_box(some, boxes)}) }}')
            else:
                gen.line('None')

            struct = opaque_name(inner)
            if struct is not None:
                ptr = names.fresh('ptr')
                some = _box(self._from_pointer(ptr, inner), boxes)
                self._else_if(gen, f'ring_api_iscpointer(p, {idx})')
                gen.line(self.handles.get(ptr, idx, struct))
                gen.line(f'if {ptr}.is_null() {{ None }} else {{ Some({some}) }}')
            elif isinstance(inner, Vector):
                self._else_if(gen, f'ring_api_islist(p, {idx})')
                vec = names.fresh('vec')
                self._collect(gen, vec, inner.inner, f'ring_get_list!(p, {idx})', names)
                gen.line(f'Some({_box(vec, boxes)})')
            elif isinstance(inner, Number):
                self._else_if(gen, f'ring_api_isnumber(p, {idx})')
                number = f'ring_get_number!(p, {idx}) as {inner.width}'
                gen.line(f'Some({_box(number, boxes)})')
            elif isinstance(inner, Boolean):
                self._else_if(gen, f'ring_api_isnumber(p, {idx})')
                gen.line(f'Some({_box(f"ring_get_number!(p, {idx}) != 0.0", boxes)})')
            elif not isinstance(inner, Text):
                self._else_if(gen, f'ring_api_isnumber(p, {idx})')
                gen.line(f'Some(ring_get_number!(p, {idx}) as _)')

            gen.dedent()
            gen.line('} else {')
            gen.indent()
            gen.line('None')

    @staticmethod
    def _else_if(gen: CodeGen, cond: str):
        gen.dedent()
        gen.line(f'}} else if {cond} {{')
        gen.indent()


def _text_arg(name: str, shape: Text) -> str:
    if shape.owned:
        return f'{name}.to_string()'
    if shape.spelling == '&mut String':
        return f'&mut {name}.to_string()'
    if shape.borrowed_owned:
        return f'&{name}.to_string()'
    return name


def _unbox(shape: Shape) -> tuple[Shape, int]:
    """Strip Box<...> layers, returning the boxed shape and how many were stripped"""
    boxes = 0
    while isinstance(shape, Indirection):
        shape = shape.inner
        boxes += 1
    return shape, boxes


def _box(expr: str, boxes: int) -> str:
    for _ in range(boxes):
        expr = f'Box::new({expr})'
    return expr


def _scalar_element(shape: Shape, list_var: str, i: str) -> tuple[str, str]:
    """(kind test, value expression) for a number, bool or text list item"""
    if isinstance(shape, Text):
        return (f'ring_list_isstring({list_var}, {i})',
                f'ring_list_getstring_str({list_var}, {i}).to_string()')
    if isinstance(shape, Boolean):
        return (f'ring_list_isnumber({list_var}, {i})',
                f'ring_list_getdouble({list_var}, {i}) != 0.0')
    width = shape.width if isinstance(shape, Number) else '_'
    return (f'ring_list_isnumber({list_var}, {i})',
            f'ring_list_getdouble({list_var}, {i}) as {width}')
