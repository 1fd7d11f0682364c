"""
Sizes of things built or matched with bit syntax.

A binary expression or pattern like <<X:8, Rest/binary>> stands for some
bitstring whose length is a fixed part plus any multiple of a unit.
Here we work out that shape, segment by segment, along with the type
each segment's value must have.
"""
import math
from .calculus import GradualType, BinaryType, INTEGER, NON_NEG_INTEGER, NUMBER, BINARY, BITSTRING, STRING
from .syntax import Bin, BinElement, Integer, String

_TYPE_SPECIFIERS = ("integer", "float", "binary", "bytes", "bitstring", "bits", "utf8", "utf16", "utf32")
_DEFAULT_UNIT = {"integer": 1, "float": 1, "binary": 8, "bytes": 8, "bitstring": 1, "bits": 1}
_DEFAULT_SIZE = {"integer": 8, "float": 64}
_UTF_WIDTH = {"utf8": (8, 8), "utf16": (16, 16), "utf32": (32, 0)}

def segment_type(elem:BinElement) -> str:
	for spec in elem.specifiers:
		if spec in _TYPE_SPECIFIERS: return spec
	return "integer"

def _unit(elem:BinElement, kind:str) -> int:
	for spec in elem.specifiers:
		if isinstance(spec, tuple) and spec[0] == "unit": return spec[1]
	return _DEFAULT_UNIT.get(kind, 1)

def segment_size(elem:BinElement) -> tuple[int, int]:
	""" (base, unit) for one segment: it occupies base + K*unit bits for some natural K. """
	kind = segment_type(elem)
	if kind in _UTF_WIDTH:
		width, unit = _UTF_WIDTH[kind]
		if isinstance(elem.value, String):
			return width * len(elem.value.value), unit
		return width, unit
	if isinstance(elem.value, String) and elem.size is None:
		return 8 * len(elem.value.value), 0
	unit = _unit(elem, kind)
	if elem.size is None:
		if kind in _DEFAULT_SIZE: return _DEFAULT_SIZE[kind], 0
		return 0, unit
	if isinstance(elem.size, Integer):
		n = elem.size.value * unit
		if isinstance(elem.value, String): n *= len(elem.value.value)
		return n, 0
	return 0, unit

def compute_type(b:Bin) -> BinaryType:
	base, unit = 0, 0
	for elem in b.elements:
		b_, u_ = segment_size(elem)
		base += b_
		unit = math.gcd(unit, u_)
	return BinaryType(base, unit)

def type_of_bin_element(elem:BinElement, in_pattern:bool) -> GradualType:
	"""
	The type a segment's value must have. In a pattern, integer segments are
	unsigned unless they say otherwise; in an expression, any integer goes.
	"""
	kind = segment_type(elem)
	is_string = isinstance(elem.value, String)
	signed = "signed" in elem.specifiers or not in_pattern
	if kind == "integer" or kind in _UTF_WIDTH:
		if is_string: return STRING
		return INTEGER if signed else NON_NEG_INTEGER
	if kind == "float": return STRING if is_string else NUMBER
	if kind in ("binary", "bytes"): return BINARY
	return BITSTRING
