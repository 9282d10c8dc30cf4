"""
Opaque handle module

Every place generated code moves a struct onto the heap, hands its address
to Ring, borrows it back or frees it goes through HandleRegistry, so
allocation and reclaiming always agree on the type tag.
"""

from .codegen import CodeGen, base_identifier, rust_string


def type_const(struct_name: str) -> str:
    """Name of the tag constant for a struct

    Examples:
        Counter -> COUNTER_TYPE
        Wrapper<i32> -> WRAPPER_TYPE
    """
    return f'{base_identifier(struct_name).upper()}_TYPE'


class HandleRegistry:
    """Tag bookkeeping and pointer code snippets for opaque structs"""

    def __init__(self):
        self._tags: dict[str, str] = {}  # const name -> struct name

    def tag(self, struct_name: str) -> str:
        """Tag constant for struct, recording it for declaration"""
        const = type_const(struct_name)
        self._tags.setdefault(const, base_identifier(struct_name))
        return const

    @property
    def tags(self) -> dict[str, str]:
        return dict(self._tags)

    def declare(self, gen: CodeGen):
        """Emit one tag constant per struct seen so far"""
        for const, struct_name in self._tags.items():
            gen.line(f'const {const}: &[u8] = b"{struct_name}\\0";')

    def into_raw(self, value: str) -> str:
        """Move a value onto the heap, yielding its address"""
        return f'Box::into_raw(Box::new({value}))'

    def ret(self, value: str, struct_name: str) -> str:
        """Return a value to Ring as a tagged pointer"""
        return f'ring_ret_cpointer!(p, {self.into_raw(value)}, {self.tag(struct_name)});'

    def ret_boxed(self, boxed: str, struct_name: str) -> str:
        """Return an existing Box to Ring without re-boxing"""
        return f'ring_ret_cpointer!(p, Box::into_raw({boxed}), {self.tag(struct_name)});'

    def add(self, list_var: str, value: str, struct_name: str) -> str:
        """Append a value to a Ring list as a tagged pointer"""
        return (f'ring_list_addcpointer({list_var}, {self.into_raw(value)} as *mut std::ffi::c_void, '
                f'{self.tag(struct_name)});')

    def add_boxed(self, list_var: str, boxed: str, struct_name: str) -> str:
        """Append an existing Box to a Ring list as a tagged pointer"""
        return (f'ring_list_addcpointer({list_var}, Box::into_raw({boxed}) as *mut std::ffi::c_void, '
                f'{self.tag(struct_name)});')

    def get(self, ptr_var: str, idx: int, struct_name: str) -> str:
        """Read the tagged pointer argument at idx"""
        return f'let {ptr_var} = ring_get_cpointer!(p, {idx}, {self.tag(struct_name)});'

    def null_guard(self, gen: CodeGen, ptr_var: str, struct_name: str):
        """Abort the call when the runtime handed back no pointer"""
        with gen.block(f'if {ptr_var}.is_null() {{'):
            gen.line(invalid_pointer(struct_name))
            gen.line('return;')

    def borrow(self, ptr_var: str, struct_name: str, mutable: bool = False) -> str:
        """Reference to the pointee, valid for the duration of the call"""
        if mutable:
            return f'unsafe {{ &mut *({ptr_var} as *mut {struct_name}) }}'
        return f'unsafe {{ &*({ptr_var} as *const {struct_name}) }}'

    def duplicate(self, ptr_var: str, struct_name: str) -> str:
        """Owned clone of the pointee; the runtime keeps the original"""
        return f'unsafe {{ (*({ptr_var} as *const {struct_name})).clone() }}'

    def receiver(self, gen: CodeGen, struct_name: str, var: str = 'obj'):
        """Bind `var` to the struct behind argument 1, or abort"""
        tag = self.tag(struct_name)
        with gen.block(f'let {var} = match ring_get_pointer!(p, 1, {struct_name}, {tag}) {{', '};'):
            gen.line(f'Some({var}) => {var},')
            with gen.block('None => {'):
                gen.line(invalid_pointer(struct_name))
                gen.line('return;')

    def reclaim(self, gen: CodeGen, struct_name: str):
        """Free the allocation behind argument 1; a null pointer is a no-op"""
        gen.line(self.get('ptr', 1, struct_name))
        with gen.block('if !ptr.is_null() {'):
            gen.line(f'unsafe {{ let _ = Box::from_raw(ptr as *mut {struct_name}); }}')
            gen.line('ring_api_setnullpointer(p, 1);')


def invalid_pointer(struct_name: str) -> str:
    return f'ring_error!(p, {rust_string(f"Invalid {struct_name} pointer")});'
