"""
Code generation utilities

Provides helpers for generating Rust code and for handling Rust type spellings.
"""

import re
from typing import Optional


class CodeGen:
    """Code generation helper with indentation support"""

    def __init__(self):
        self._lines: list[str] = []
        self._indent: int = 0
        self._indent_str: str = '    '  # 4 spaces

    def line(self, text: str = ''):
        """Add a line with current indentation"""
        if text:
            self._lines.append(self._indent_str * self._indent + text)
        else:
            self._lines.append('')

    def lines(self, *texts: str):
        """Add multiple lines"""
        for text in texts:
            self.line(text)

    def splice(self, text: str):
        """Add a multi-line fragment, keeping its relative indentation"""
        if not text:
            return
        for text_line in text.split('\n'):
            self.line(text_line)

    def indent(self):
        """Increase indentation"""
        self._indent += 1

    def dedent(self):
        """Decrease indentation"""
        if self._indent > 0:
            self._indent -= 1

    def block(self, header: str, footer: str = '}'):
        """Context manager for code blocks"""
        return _BlockContext(self, header, footer)

    def output(self) -> str:
        """Get generated code as string"""
        return '\n'.join(self._lines)


class _BlockContext:
    """Context manager for indented code blocks"""

    def __init__(self, gen: CodeGen, header: str, footer: str):
        self._gen = gen
        self._header = header
        self._footer = footer

    def __enter__(self):
        self._gen.line(self._header)
        self._gen.indent()
        return self

    def __exit__(self, *args):
        self._gen.dedent()
        self._gen.line(self._footer)


class NameScope:
    """Hands out unique temporaries for one wrapper body

    Examples:
        fresh('list') -> __list, then __list1, __list2 ...
    """

    def __init__(self):
        self._used: dict[str, int] = {}

    def fresh(self, stem: str) -> str:
        count = self._used.get(stem, 0)
        self._used[stem] = count + 1
        return f'__{stem}' if count == 0 else f'__{stem}{count}'


def module_prefix(prefix: Optional[str]) -> str:
    """Normalize a module prefix to its joining form

    Examples:
        mylib -> mylib_
        mylib_ -> mylib_
        '' -> ''
    """
    if not prefix:
        return ''
    return prefix if prefix.endswith('_') else prefix + '_'


def export_name(prefix: str, *parts: str) -> str:
    """Build the name a function is registered under

    Examples:
        ('mylib_', 'add') -> mylib_add
        ('mylib_', 'counter', 'get_value') -> mylib_counter_get_value
    """
    return module_prefix(prefix) + '_'.join(parts)


def wrapper_name(exported: str) -> str:
    """Rust identifier of the wrapper registered as `exported`"""
    return f'ring_{exported}'


def rust_string(text: str) -> str:
    """Quote text as a Rust string literal"""
    escaped = text.replace('\\', '\\\\').replace('"', '\\"')
    return f'"{escaped}"'


# Rust numeric primitives, mapped to the cast used when reading a Ring number
NUMBER_TYPES = (
    'i8', 'i16', 'i32', 'i64', 'i128', 'isize',
    'u8', 'u16', 'u32', 'u64', 'u128', 'usize',
    'f32', 'f64',
)

_PUNCT_SPACE_RE = re.compile(r"\s*([<>(),\[\]&;:*=+])\s*")
_STR_RE = re.compile(r"^&?(?:'\w+\s?)?(?:mut\s)?str$")
_GENERIC_HEAD_RE = re.compile(r"^(?:[A-Za-z_]\w*::)*([A-Za-z_]\w*)<")
_PATH_RE = re.compile(r"^(?:[A-Za-z_]\w*::)+")


def normalize_type(spelling: str) -> str:
    """Normalize whitespace in a type spelling

    Re-serialized types put spaces around every token; hand-written ones
    usually do not. Both collapse to the same form.

    Examples:
        'Vec < i32 >' -> 'Vec<i32>'
        '& mut Counter' -> '&mut Counter'
        "& 'a str" -> "&'a str"
        'std :: collections :: HashMap < String , i32 >' -> 'std::collections::HashMap<String,i32>'
    """
    text = ' '.join(spelling.split())
    return _PUNCT_SPACE_RE.sub(r'\1', text).strip()


def split_top_level(text: str, sep: str = ',') -> list[str]:
    """Split on `sep` outside of any <...>, (...), [...] nesting

    The `>` of an arrow (`->`) does not close a generic. Empty trailing
    pieces (from a trailing separator) are dropped.
    """
    parts = []
    depth = 0
    start = 0
    prev = ''
    for i, c in enumerate(text):
        if c in '<([{':
            depth += 1
        elif c in ')]}':
            depth -= 1
        elif c == '>' and prev != '-':
            depth -= 1
        elif c == sep and depth == 0:
            parts.append(text[start:i].strip())
            start = i + 1
        prev = c
    last = text[start:].strip()
    if last:
        parts.append(last)
    return parts


def closing_index(text: str, open_idx: int) -> int:
    """Index of the delimiter closing the one at `open_idx`, or -1"""
    pairs = {'<': '>', '(': ')', '[': ']', '{': '}'}
    opener = text[open_idx]
    closer = pairs[opener]
    depth = 0
    prev = ''
    for i in range(open_idx, len(text)):
        c = text[i]
        if c == opener:
            depth += 1
        elif c == closer and not (c == '>' and prev == '-'):
            depth -= 1
            if depth == 0:
                return i
        prev = c
    return -1


def generic_args(ty: str, names: tuple[str, ...]) -> Optional[list[str]]:
    """Type arguments of `ty` if it is one of the generic `names`

    Leading module paths are ignored, and the spelling must end with the `>`
    that closes its first `<`.

    Examples:
        ('Vec<i32>', ('Vec',)) -> ['i32']
        ('std::collections::HashMap<String,Vec<u8>>', ('HashMap',)) -> ['String', 'Vec<u8>']
        ('Vec<i32>::Iter', ('Vec',)) -> None
    """
    match = _GENERIC_HEAD_RE.match(ty)
    if not match or match.group(1) not in names:
        return None
    open_idx = match.end() - 1
    if closing_index(ty, open_idx) != len(ty) - 1:
        return None
    return split_top_level(ty[open_idx + 1:-1])


def strip_path(ty: str) -> str:
    """Drop a leading module path

    Examples:
        crate::shapes::Point -> Point
        Point -> Point
    """
    return _PATH_RE.sub('', ty)


def base_identifier(ty: str) -> str:
    """Identifier of a (possibly generic) named type

    Examples:
        Point -> Point
        Wrapper<i32> -> Wrapper
    """
    ty = strip_path(ty)
    idx = ty.find('<')
    return ty if idx < 0 else ty[:idx]


def is_number_type(ty: str) -> bool:
    """Check if type is a Rust numeric primitive"""
    return ty in NUMBER_TYPES


def is_bool_type(ty: str) -> bool:
    """Check if type is bool"""
    return ty == 'bool'


def is_string_type(ty: str) -> bool:
    """Check if type is one of the text spellings

    Examples:
        String, &String, str, &str, &'static str -> True
        &[&str], Strings -> False
    """
    if ty in ('String', '&String', '&mut String'):
        return True
    return _STR_RE.match(ty) is not None
