import pytest

from ring_bindgen.codegen import CodeGen
from ring_bindgen.params import ParamBinding
from ring_bindgen.types import ConversionContext, TypeConverter, TypeHandler, describe_shape
from ring_bindgen.shape import classify


class ColorHandler(TypeHandler):
    """Colors travel as packed 0xRRGGBB numbers"""

    def bind(self, ctx: ConversionContext) -> ParamBinding:
        return ParamBinding(
            check=[f'ring_check_number!(p, {ctx.idx});'],
            get=[f'let {ctx.var} = Color::from_packed(ring_get_number!(p, {ctx.idx}) as u32);'],
            arg=ctx.var,
        )

    def ret(self, ctx: ConversionContext) -> str:
        return f'ring_ret_number!(p, {ctx.var}.packed() as f64);'

    def describe(self) -> str:
        return 'packed color number'


@pytest.fixture
def converter() -> TypeConverter:
    conv = TypeConverter('demo_')
    conv.register('Color', ColorHandler())
    return conv


def test_custom_handler_lookup_ignores_whitespace(converter: TypeConverter) -> None:
    converter.register('Vec < Color >', ColorHandler())
    assert converter.has_handler('Vec<Color>')
    assert converter.get_handler('Color') is not None
    assert not converter.has_handler('Colour')


def test_custom_handler_binds_parameter(converter: TypeConverter) -> None:
    binding = converter.bind('Color', 'tint', 2)
    assert binding.get == ['let tint = Color::from_packed(ring_get_number!(p, 2) as u32);']


def test_custom_handler_returns_value(converter: TypeConverter) -> None:
    gen = CodeGen()
    converter.ret('Color', 'sprite.tint()', gen)
    assert gen.output() == 'let __result = sprite.tint();\nring_ret_number!(p, __result.packed() as f64);'


def test_custom_handler_describes_type(converter: TypeConverter) -> None:
    assert converter.describe('Color') == 'packed color number'


def test_default_conversion_without_handler(converter: TypeConverter) -> None:
    binding = converter.bind('i64', 'n', 1)
    assert binding.get == ['let n = ring_get_number!(p, 1) as i64;']

    gen = CodeGen()
    converter.ret(None, 'reset()', gen)
    assert gen.output() == 'reset();'


@pytest.mark.parametrize(
    'spelling, kind',
    [
        (None, 'nothing'),
        ('()', 'nothing'),
        ('f32', 'number'),
        ('bool', 'number'),
        ('&str', 'string'),
        ('Vec<i32>', 'list of number'),
        ('&[String]', 'list of string'),
        ('Option<String>', 'string or nothing'),
        ('Result<Point, String>', 'Point pointer (raises on error)'),
        ('(i32, String)', 'list [number, string]'),
        ('Box<Point>', 'Point pointer'),
        ('&mut Point', 'Point pointer'),
        ('HashMap<String, Vec<u8>>', 'list of [string, list of number] pairs'),
        ('HashMap<Point, bool>', 'list of [string, number] pairs'),
        ('*const u8', 'number'),
    ],
)
def test_describe_shape(spelling: str, kind: str) -> None:
    assert describe_shape(classify(spelling)) == kind
