"""
API reference generation module

Generates a Markdown listing of every function a module registers with Ring.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .func import Registration
    from .generator import BindingModule


class ReferenceGenerator:
    """Generates the Markdown API reference for a binding module"""

    def __init__(self, module: 'BindingModule'):
        self.module = module

    def generate(self) -> str:
        """Generate complete reference document"""
        lines = []
        title = self.module.module or 'extension'
        lines.append(f'# {title} API reference')
        lines.append('')
        lines.append('Auto-generated, do not edit.')
        lines.append('')

        # Free functions first, then one section per struct in encounter order
        funcs = [reg for reg in self.module.registrations if reg.owner is None]
        owners: dict[str, list['Registration']] = {}
        for reg in self.module.registrations:
            if reg.owner is not None:
                owners.setdefault(reg.owner, []).append(reg)

        if funcs:
            lines.append('## Functions')
            lines.append('')
            for reg in funcs:
                lines.extend(self._gen_entry(reg))

        for owner, regs in owners.items():
            lines.append(f'## {owner}')
            lines.append('')
            for reg in regs:
                lines.extend(self._gen_entry(reg))

        return '\n'.join(lines)

    def _gen_entry(self, reg: 'Registration') -> list[str]:
        """Generate one function entry"""
        args = ', '.join(name for name, _ in reg.params)
        lines = [f'### `{reg.name}({args})`', '']
        if reg.comment:
            lines.append(reg.comment)
            lines.append('')
        for name, kind in reg.params:
            lines.append(f'- `{name}`: {kind}')
        lines.append(f'- returns: {reg.result}')
        lines.append('')
        return lines
