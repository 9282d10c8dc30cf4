"""
IR (Intermediate Representation) module

Reads and represents Rust declarations as JSON data, either hand-written or
produced by the source reader.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union
import json

from .errors import SourceError


class Receiver(Enum):
    """How a method takes `self`"""
    NONE = 'none'    # static / associated function
    VALUE = 'value'  # self
    REF = 'ref'      # &self
    MUT = 'mut'      # &mut self


@dataclass
class FieldInfo:
    """Struct field information"""
    name: str
    type: str
    public: bool = True


@dataclass
class StructInfo:
    """Struct type information"""
    name: str
    fields: list[FieldInfo]
    public: bool = True
    comment: str = ""

    def public_fields(self) -> list[FieldInfo]:
        return [f for f in self.fields if f.public]


@dataclass
class ParamInfo:
    """Function parameter information"""
    name: str
    type: str


@dataclass
class FuncInfo:
    """Function or method declaration information"""
    name: str
    params: list[ParamInfo]
    result: Optional[str] = None  # None when nothing is returned
    public: bool = True
    receiver: Receiver = Receiver.NONE
    comment: str = ""

    @property
    def has_receiver(self) -> bool:
        return self.receiver is not Receiver.NONE


@dataclass
class ImplInfo:
    """Inherent impl block: the methods of one struct"""
    name: str
    methods: list[FuncInfo]


Decl = Union[StructInfo, ImplInfo, FuncInfo]


@dataclass
class IR:
    """Intermediate representation of one binding module"""
    module: str
    prefix: str
    decls: list[Decl] = field(default_factory=list)
    comment: str = ""

    @classmethod
    def load(cls, json_path: str) -> 'IR':
        """Load IR from a JSON file"""
        with open(json_path, 'r') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise SourceError(f'{json_path}: {e.msg}', e.lineno) from e
        return cls._from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> 'IR':
        """Create IR from a dictionary"""
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> 'IR':
        """Internal: Parse dict into IR"""
        if not isinstance(data, dict):
            raise SourceError('IR document must be a JSON object')

        decls: list[Decl] = []
        for decl in data.get('decls', []):
            if not isinstance(decl, dict):
                raise SourceError(f'declaration must be an object, got {decl!r}')
            kind = decl.get('kind')

            if kind == 'struct':
                decls.append(cls._parse_struct(decl))

            elif kind == 'impl':
                decls.append(cls._parse_impl(decl))

            elif kind == 'func':
                decls.append(cls._parse_func(decl))

        return cls(
            module=data.get('module', ''),
            prefix=data.get('prefix', ''),
            decls=decls,
            comment=data.get('comment', ''),
        )

    @staticmethod
    def _require_name(decl: dict, what: str) -> str:
        name = decl.get('name')
        if not name:
            raise SourceError(f'{what} declaration without a name')
        return name

    @staticmethod
    def _require_keys(entry, what: str) -> dict:
        """Check a field or parameter entry carries a name and a type"""
        if not isinstance(entry, dict):
            raise SourceError(f'{what} must be an object, got {entry!r}')
        for key in ('name', 'type'):
            if not entry.get(key):
                raise SourceError(f'{what} without a {key}')
        return entry

    @classmethod
    def _parse_struct(cls, decl: dict) -> StructInfo:
        """Parse struct declaration"""
        name = cls._require_name(decl, 'struct')
        fields = []
        for f in decl.get('fields', []):
            f = cls._require_keys(f, f'field of struct {name}')
            fields.append(FieldInfo(
                name=f['name'],
                type=f['type'],
                public=f.get('public', True),
            ))
        return StructInfo(
            name=name,
            fields=fields,
            public=decl.get('public', True),
            comment=decl.get('comment', ''),
        )

    @classmethod
    def _parse_impl(cls, decl: dict) -> ImplInfo:
        """Parse impl block declaration"""
        return ImplInfo(
            name=cls._require_name(decl, 'impl'),
            methods=[cls._parse_func(m) for m in decl.get('methods', [])],
        )

    @classmethod
    def _parse_func(cls, decl: dict) -> FuncInfo:
        """Parse function or method declaration"""
        name = cls._require_name(decl, 'function')
        params = []
        for p in decl.get('params', []):
            p = cls._require_keys(p, f'parameter of {name}')
            params.append(ParamInfo(
                name=p['name'],
                type=p['type'],
            ))
        try:
            receiver = Receiver(decl.get('receiver', 'none'))
        except ValueError:
            raise SourceError(f'{name}: unknown receiver {decl.get("receiver")!r}') from None
        return FuncInfo(
            name=name,
            params=params,
            result=decl.get('result'),
            public=decl.get('public', True),
            receiver=receiver,
            comment=decl.get('comment', ''),
        )

    def to_dict(self) -> dict:
        """Serialize back to the JSON document form"""
        decls = []
        for decl in self.decls:
            if isinstance(decl, StructInfo):
                decls.append({
                    'kind': 'struct',
                    'name': decl.name,
                    'public': decl.public,
                    'comment': decl.comment,
                    'fields': [{'name': f.name, 'type': f.type, 'public': f.public}
                               for f in decl.fields],
                })
            elif isinstance(decl, ImplInfo):
                decls.append({
                    'kind': 'impl',
                    'name': decl.name,
                    'methods': [_func_dict(m) for m in decl.methods],
                })
            else:
                decls.append(dict(kind='func', **_func_dict(decl)))
        return {
            'module': self.module,
            'prefix': self.prefix,
            'decls': decls,
        }

    def structs(self) -> list[StructInfo]:
        return [d for d in self.decls if isinstance(d, StructInfo)]

    def impls(self) -> list[ImplInfo]:
        return [d for d in self.decls if isinstance(d, ImplInfo)]

    def funcs(self) -> list[FuncInfo]:
        return [d for d in self.decls if isinstance(d, FuncInfo)]

    def get_struct(self, name: str) -> Optional[StructInfo]:
        """Get struct by name"""
        for struct in self.structs():
            if struct.name == name:
                return struct
        return None

    def is_struct_type(self, type_name: str) -> bool:
        """Check if type is a struct declared in this module"""
        return self.get_struct(type_name) is not None


def _func_dict(func: FuncInfo) -> dict:
    return {
        'name': func.name,
        'params': [{'name': p.name, 'type': p.type} for p in func.params],
        'result': func.result,
        'receiver': func.receiver.value,
        'public': func.public,
        'comment': func.comment,
    }
