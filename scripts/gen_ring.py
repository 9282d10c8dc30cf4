#!/usr/bin/env python3
"""
gen_ring.py - Ring binding generator entry point

Generates ring_lang_rs glue for the structs, impl blocks and functions of a
Rust source file (or a JSON IR file).

Usage:
    python scripts/gen_ring.py INPUT [-o OUTPUT] [--prefix P] [--ignore NAME ...]
                               [--docs PATH] [--dump-ir PATH]
"""

import argparse
import json
import os
import sys

# Add scripts directory to path
script_dir = os.path.dirname(os.path.abspath(__file__))
if script_dir not in sys.path:
    sys.path.insert(0, script_dir)

from ring_bindgen import BindgenError, Generator


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Generate Ring bindings for Rust code')
    parser.add_argument('input',
                        help='Rust source file (.rs) or JSON IR file (.json)')
    parser.add_argument('-o', '--output', default=None,
                        help='Output Rust file (default: <input>_ring.rs next to the input)')
    parser.add_argument('--prefix', default=None,
                        help='Prefix for exported names (overrides the one in the input)')
    parser.add_argument('--ignore', nargs='+', default=[], metavar='NAME',
                        help='Functions, structs or Struct::method entries to skip')
    parser.add_argument('--docs', default=None, metavar='PATH',
                        help='Also write a Markdown API reference')
    parser.add_argument('--dump-ir', default=None, metavar='PATH',
                        help='Also write the declarations read from INPUT as JSON IR')
    return parser


def default_output(input_path: str) -> str:
    """Output path used when none is given

    Examples:
        src/lib.rs -> src/lib_ring.rs
        api.json -> api_ring.rs
    """
    base, _ = os.path.splitext(input_path)
    return f'{base}_ring.rs'


def run(args: argparse.Namespace):
    gen = Generator()
    gen.ignore(*args.ignore)
    output = args.output or default_output(args.input)

    if args.dump_ir:
        ir = gen.load(args.input)
        if args.prefix is not None:
            ir.prefix = args.prefix
        with open(args.dump_ir, 'w', newline='\n') as f:
            json.dump(ir.to_dict(), f, indent=2)
            f.write('\n')

    gen.generate_file(args.input, output, prefix=args.prefix, docs_path=args.docs)


def main(argv: list[str] | None = None):
    args = build_argument_parser().parse_args(argv)
    try:
        run(args)
    except BindgenError as err:
        print(f'Error: {err}')
        raise SystemExit(1) from err


if __name__ == '__main__':
    main()
