"""
Rust source reader module

Reads struct, impl and fn items out of Rust source text and produces the same
IR the JSON loader does. This is a syntactic scan: item bodies are skipped,
types are kept as their spelling, and nothing is resolved.

When the items sit inside a `ring_extension! { ... }` block only that block
is read, and its `prefix: "...";` directive sets the module prefix.
"""

import re
from dataclasses import dataclass
from typing import Optional

from .codegen import base_identifier, normalize_type
from .errors import SourceError
from .ir import IR, FieldInfo, StructInfo, ParamInfo, FuncInfo, ImplInfo, Receiver


@dataclass
class Token:
    kind: str  # ident, lifetime, literal, punct, doc
    text: str
    line: int


_IDENT_RE = re.compile(r'r#[A-Za-z_]\w*|[A-Za-z_]\w*')
_NUMBER_RE = re.compile(r'\d\w*(?:\.\d\w*)?')
_RAW_STRING_RE = re.compile(r'b?r(#*)"')
_CHAR_RE = re.compile(r"b?'(?:\\(?:x[0-9a-fA-F]{2}|u\{[0-9a-fA-F]{1,6}\}|.)|[^\\'\n])'")
_LIFETIME_RE = re.compile(r"'[A-Za-z_]\w*")
_STRING_RE = re.compile(r'b?"(?:\\.|[^"\\])*"', re.DOTALL)

_OPENERS = {'(': ')', '[': ']', '{': '}'}
_CLOSERS = {')': '(', ']': '[', '}': '{'}
_FN_QUALIFIERS = ('const', 'async', 'unsafe', 'extern', 'default')


def tokenize(text: str) -> list[Token]:
    """Split Rust source into tokens, dropping comments but keeping doc comments"""
    tokens: list[Token] = []
    i = 0
    line = 1
    n = len(text)
    while i < n:
        c = text[i]
        if c == '\n':
            line += 1
            i += 1
            continue
        if c.isspace():
            i += 1
            continue

        if text.startswith('//', i):
            end = text.find('\n', i)
            end = n if end < 0 else end
            body = text[i:end]
            if body.startswith('///') and not body.startswith('////'):
                tokens.append(Token('doc', body[3:].strip(), line))
            i = end
            continue

        if text.startswith('/*', i):
            start_line = line
            depth = 0
            j = i
            while j < n:
                if text.startswith('/*', j):
                    depth += 1
                    j += 2
                elif text.startswith('*/', j):
                    depth -= 1
                    j += 2
                    if depth == 0:
                        break
                else:
                    if text[j] == '\n':
                        line += 1
                    j += 1
            else:
                raise SourceError('unterminated block comment', start_line)
            body = text[i:j]
            if body.startswith('/**') and not body.startswith('/***') and body != '/**/':
                doc = ' '.join(part.strip().lstrip('*').strip() for part in body[3:-2].split('\n'))
                tokens.append(Token('doc', doc.strip(), start_line))
            i = j
            continue

        match = _RAW_STRING_RE.match(text, i)
        if match:
            closing = '"' + match.group(1)
            end = text.find(closing, match.end())
            if end < 0:
                raise SourceError('unterminated raw string', line)
            end += len(closing)
            tokens.append(Token('literal', text[i:end], line))
            line += text.count('\n', i, end)
            i = end
            continue

        if c == '"' or (c == 'b' and text.startswith('b"', i)):
            match = _STRING_RE.match(text, i)
            if not match:
                raise SourceError('unterminated string literal', line)
            tokens.append(Token('literal', match.group(0), line))
            line += match.group(0).count('\n')
            i = match.end()
            continue

        if c == "'" or (c == 'b' and text.startswith("b'", i)):
            match = _CHAR_RE.match(text, i)
            if match:
                tokens.append(Token('literal', match.group(0), line))
                i = match.end()
                continue
            match = _LIFETIME_RE.match(text, i)
            if match:
                tokens.append(Token('lifetime', match.group(0), line))
                i = match.end()
                continue
            raise SourceError('malformed character literal', line)

        match = _IDENT_RE.match(text, i)
        if match:
            tokens.append(Token('ident', match.group(0), line))
            i = match.end()
            continue

        match = _NUMBER_RE.match(text, i)
        if match:
            tokens.append(Token('literal', match.group(0), line))
            i = match.end()
            continue

        two = text[i:i + 2]
        if two in ('->', '=>', '::'):
            tokens.append(Token('punct', two, line))
            i += 2
            continue
        tokens.append(Token('punct', c, line))
        i += 1
    return tokens


def read_source(text: str, module: str = '') -> IR:
    """Read Rust source text into IR"""
    return SourceReader(tokenize(text), module).read()


class SourceReader:
    """Recursive reader over a token list"""

    def __init__(self, tokens: list[Token], module: str = ''):
        self.tokens = list(tokens)
        self.module = module
        self.pos = 0
        self.end = len(self.tokens)
        self._closing = self._match_groups()

    def _match_groups(self) -> dict[int, int]:
        """Index of the closing token for every (, [ and {"""
        closing = {}
        stack: list[int] = []
        for idx, tok in enumerate(self.tokens):
            if tok.kind != 'punct':
                continue
            if tok.text in _OPENERS:
                stack.append(idx)
            elif tok.text in _CLOSERS:
                if not stack:
                    raise SourceError(f"unmatched '{tok.text}'", tok.line)
                open_idx = stack.pop()
                opener = self.tokens[open_idx]
                if _OPENERS[opener.text] != tok.text:
                    raise SourceError(
                        f"'{opener.text}' opened on line {opener.line} closed by '{tok.text}'",
                        tok.line)
                closing[open_idx] = idx
        if stack:
            tok = self.tokens[stack[-1]]
            raise SourceError(f"unclosed '{tok.text}'", tok.line)
        return closing

    # Token helpers

    def peek(self, offset: int = 0) -> Optional[Token]:
        idx = self.pos + offset
        if idx < self.end:
            return self.tokens[idx]
        return None

    def at(self, text: str, offset: int = 0) -> bool:
        tok = self.peek(offset)
        return tok is not None and tok.kind in ('ident', 'punct') and tok.text == text

    def next(self) -> Token:
        tok = self.peek()
        if tok is None:
            raise SourceError('unexpected end of input', self._last_line())
        self.pos += 1
        return tok

    def expect(self, text: str) -> Token:
        tok = self.peek()
        if tok is None or tok.text != text:
            found = 'end of input' if tok is None else f"'{tok.text}'"
            raise SourceError(f"expected '{text}', found {found}", self._line())
        self.pos += 1
        return tok

    def expect_ident(self, what: str) -> Token:
        tok = self.peek()
        if tok is None or tok.kind != 'ident':
            raise SourceError(f'expected {what}', self._line())
        self.pos += 1
        return tok

    def _line(self) -> int:
        tok = self.peek()
        return tok.line if tok else self._last_line()

    def _last_line(self) -> int:
        if not self.tokens:
            return 1
        return self.tokens[max(self.end, 1) - 1].line

    def skip_group(self) -> tuple[int, int]:
        """Step over a delimited group, returning its inner token range"""
        open_idx = self.pos
        close_idx = self._closing[open_idx]
        self.pos = close_idx + 1
        return open_idx + 1, close_idx

    def skip_angles(self):
        """Step over a <...> generic list"""
        line = self._line()
        depth = 0
        while self.pos < self.end:
            tok = self.peek()
            if tok.kind == 'punct' and tok.text in _OPENERS:
                self.skip_group()
                continue
            self.pos += 1
            if tok.text == '<':
                depth += 1
            elif tok.text == '>':
                depth -= 1
                if depth == 0:
                    return
        raise SourceError("unclosed '<'", line)

    def _sub(self, start: int, end: int) -> 'SourceReader':
        """Reader over an inner token range"""
        reader = SourceReader.__new__(SourceReader)
        reader.tokens = self.tokens
        reader.module = self.module
        reader.pos = start
        reader.end = end
        reader._closing = self._closing
        return reader

    # Items

    def read(self) -> IR:
        """Read every supported item into IR"""
        prefix = ''
        block = self._find_extension()
        reader = self._sub(*block) if block else self
        decls = []
        while reader.pos < reader.end:
            if reader.at('prefix') and reader.at(':', 1):
                prefix = reader._prefix_directive()
                continue
            decl = reader._item()
            if decl is not None:
                decls.append(decl)
        return IR(module=self.module, prefix=prefix, decls=decls)

    def _find_extension(self) -> Optional[tuple[int, int]]:
        for idx, tok in enumerate(self.tokens):
            if tok.kind != 'ident' or tok.text != 'ring_extension':
                continue
            if idx + 2 < len(self.tokens) and self.tokens[idx + 1].text == '!' \
                    and self.tokens[idx + 2].text in _OPENERS:
                return idx + 3, self._closing[idx + 2]
        return None

    def _prefix_directive(self) -> str:
        self.expect('prefix')
        self.expect(':')
        tok = self.next()
        if tok.kind != 'literal' or not tok.text.startswith('"'):
            raise SourceError('prefix must be a string literal', tok.line)
        self.expect(';')
        return tok.text[1:-1]

    def _item(self):
        docs = self._attributes()
        public = self._visibility()
        tok = self.peek()
        if tok is None:
            return None

        if tok.text == 'struct':
            return self._struct(public, docs)

        if tok.text == 'impl' or (tok.text == 'unsafe' and self.at('impl', 1)):
            return self._impl()

        if self._fn_ahead():
            return self._fn(public, docs)

        if tok.text in ('use', 'static', 'type', 'const') or \
                (tok.text == 'extern' and self.at('crate', 1)):
            self._skip_statement()
            return None

        if tok.text in ('enum', 'mod', 'trait', 'union') or \
                (tok.text in ('unsafe', 'auto') and self.at('trait', 1)) or tok.text == 'extern':
            name = self.peek(1)
            if tok.text in ('enum', 'trait', 'union') and name is not None:
                print(f'  >> warning: skipping {tok.text} {name.text}')
            self._skip_item()
            return None

        if tok.kind == 'ident' and self.at('!', 1):
            self._skip_macro()
            return None

        raise SourceError(f"unexpected '{tok.text}'", tok.line)

    def _attributes(self) -> list[str]:
        """Skip attributes, collecting doc comment lines"""
        docs = []
        while True:
            tok = self.peek()
            if tok is None:
                return docs
            if tok.kind == 'doc':
                docs.append(tok.text)
                self.pos += 1
            elif tok.text == '#':
                self.pos += 1
                if self.at('!'):
                    self.pos += 1
                if not self.at('['):
                    raise SourceError("expected '[' after '#'", self._line())
                self.skip_group()
            else:
                return docs

    def _visibility(self) -> bool:
        """Consume a visibility; only a bare `pub` counts as public"""
        if not self.at('pub'):
            return False
        self.pos += 1
        if self.at('('):
            self.skip_group()
            return False
        return True

    def _skip_statement(self):
        while True:
            tok = self.next()
            if tok.kind == 'punct' and tok.text in _OPENERS:
                self.pos -= 1
                self.skip_group()
            elif tok.text == ';':
                return

    def _skip_item(self):
        while True:
            tok = self.peek()
            if tok is None:
                return
            if tok.text == '{':
                self.skip_group()
                return
            if tok.kind == 'punct' and tok.text in _OPENERS:
                self.skip_group()
                continue
            self.pos += 1
            if tok.text == ';':
                return

    def _skip_macro(self):
        self.pos += 2
        if self.peek() is not None and self.peek().kind == 'ident':
            self.pos += 1
        if not (self.peek() and self.peek().text in _OPENERS):
            raise SourceError('expected macro body', self._line())
        self.skip_group()
        if self.at(';'):
            self.pos += 1

    def _skip_where(self):
        """Step over a where clause, stopping before the body"""
        if not self.at('where'):
            return
        while self.pos < self.end and not (self.at('{') or self.at(';')):
            if self.peek().text in ('(', '['):
                self.skip_group()
            else:
                self.pos += 1

    def read_type(self, stops: tuple[str, ...], what: str = 'type') -> str:
        """Collect a type spelling up to a top-level stop token"""
        parts = []
        line = self._line()
        depth = 0
        while self.pos < self.end:
            tok = self.peek()
            if depth == 0 and tok.kind in ('punct', 'ident') and tok.text in stops:
                break
            if tok.text in ('<', '(', '['):
                depth += 1
            elif tok.text in ('>', ')', ']'):
                depth -= 1
            parts.append(tok.text)
            self.pos += 1
        if not parts:
            raise SourceError(f'expected {what}', line)
        return normalize_type(' '.join(parts))

    def _struct(self, public: bool, docs: list[str]) -> StructInfo:
        self.expect('struct')
        name = self.expect_ident('struct name').text
        if self.at('<'):
            self.skip_angles()
        self._skip_where()

        fields = []
        if self.at('{'):
            start, end = self.skip_group()
            fields = self._sub(start, end)._fields()
        elif self.at('('):
            # Tuple struct; positional fields have no accessors
            self.skip_group()
            self._skip_where()
            self.expect(';')
        else:
            self.expect(';')
        return StructInfo(name=name, fields=fields, public=public, comment=' '.join(docs))

    def _fields(self) -> list[FieldInfo]:
        fields = []
        while self.pos < self.end:
            self._attributes()
            if self.pos >= self.end:
                break
            public = self._visibility()
            name = self.expect_ident('field name').text
            self.expect(':')
            ty = self.read_type((',',), f'type of field {name}')
            fields.append(FieldInfo(name=name, type=ty, public=public))
            if self.at(','):
                self.pos += 1
        return fields

    def _impl(self) -> Optional[ImplInfo]:
        if self.at('unsafe'):
            self.pos += 1
        line = self.expect('impl').line
        if self.at('<'):
            self.skip_angles()
        if self.at('!'):
            self.pos += 1
        self_ty = self.read_type(('{', 'where', 'for'), 'impl type')

        if self.at('for'):
            self.pos += 1
            target = self.read_type(('{', 'where'), 'impl target type')
            self._skip_where()
            if not self.at('{'):
                raise SourceError("expected '{'", self._line())
            self.skip_group()
            print(f'  >> warning: skipping trait impl {self_ty} for {target}')
            return None

        self._skip_where()
        if not self.at('{'):
            raise SourceError("expected '{'", self._line())
        start, end = self.skip_group()
        name = base_identifier(self_ty)
        if not name:
            raise SourceError('expected impl type', line)
        return ImplInfo(name=name, methods=self._sub(start, end)._methods())

    def _methods(self) -> list[FuncInfo]:
        methods = []
        while self.pos < self.end:
            docs = self._attributes()
            if self.pos >= self.end:
                break
            public = self._visibility()
            tok = self.peek()
            if self._fn_ahead():
                methods.append(self._fn(public, docs))
            elif tok.text in ('const', 'type'):
                self._skip_statement()
            elif tok.kind == 'ident' and self.at('!', 1):
                self._skip_macro()
            else:
                raise SourceError(f"unexpected '{tok.text}' in impl block", tok.line)
        return methods

    def _fn_ahead(self) -> bool:
        offset = 0
        while True:
            tok = self.peek(offset)
            if tok is None:
                return False
            if tok.text == 'fn' and tok.kind == 'ident':
                return True
            if tok.kind == 'ident' and tok.text in _FN_QUALIFIERS:
                offset += 1
            elif tok.kind == 'literal' and offset > 0 and self.at('extern', offset - 1):
                # extern "C" fn
                offset += 1
            else:
                return False

    def _fn(self, public: bool, docs: list[str]) -> FuncInfo:
        while not self.at('fn'):
            self.pos += 1
        self.expect('fn')
        name = self.expect_ident('function name').text
        if self.at('<'):
            self.skip_angles()
        if not self.at('('):
            raise SourceError(f"expected '(' after fn {name}", self._line())
        start, end = self.skip_group()
        receiver, params = self._sub(start, end)._params()

        result = None
        if self.at('->'):
            self.pos += 1
            result = self.read_type(('{', ';', 'where'), f'return type of {name}')
            if result == '()':
                result = None
        self._skip_where()
        if self.at('{'):
            self.skip_group()
        else:
            self.expect(';')
        return FuncInfo(name=name, params=params, result=result, public=public,
                        receiver=receiver, comment=' '.join(docs))

    def _params(self) -> tuple[Receiver, list[ParamInfo]]:
        receiver = Receiver.NONE
        params = []
        first = True
        while self.pos < self.end:
            self._attributes()
            segment = self._param_tokens()
            if not segment:
                break
            texts = [tok.text for tok in segment]
            colon = texts.index(':') if ':' in texts else -1
            pattern = texts if colon < 0 else texts[:colon]

            if first and pattern and pattern[-1] == 'self':
                receiver = self._receiver(pattern, texts[colon + 1:] if colon >= 0 else [])
            elif colon < 0:
                raise SourceError(f"parameter '{' '.join(texts)}' has no type", segment[0].line)
            else:
                names = [t for t in pattern if t not in ('mut', 'ref')]
                name = names[0] if len(names) == 1 else '_'
                params.append(ParamInfo(name=name, type=normalize_type(' '.join(texts[colon + 1:]))))
            first = False
        return receiver, params

    def _param_tokens(self) -> list[Token]:
        """Tokens of one parameter, consuming its trailing comma"""
        segment = []
        depth = 0
        while self.pos < self.end:
            tok = self.peek()
            if tok.kind == 'punct' and tok.text in _OPENERS:
                start = self.pos
                self.skip_group()
                segment.extend(self.tokens[start:self.pos])
                continue
            self.pos += 1
            if tok.text == '<':
                depth += 1
            elif tok.text == '>':
                depth -= 1
            elif tok.text == ',' and depth == 0:
                break
            segment.append(tok)
        return segment

    @staticmethod
    def _receiver(pattern: list[str], ty: list[str]) -> Receiver:
        if ty:
            spelled = normalize_type(' '.join(ty))
            if spelled.startswith('&'):
                return Receiver.MUT if re.match(r"^&(?:'\w+\s?)?mut\s", spelled) else Receiver.REF
            return Receiver.VALUE
        if pattern[0] == '&':
            return Receiver.MUT if 'mut' in pattern else Receiver.REF
        return Receiver.VALUE
