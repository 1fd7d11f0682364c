"""
Operator tables.

When checking `A op B` against some expected result type, the question is
what to demand of A and B. Each function here answers for one family of
operators. The expected type arrives already intersected (glb) with what
the operator can produce at all, and normalized, so integer types are
plain ranges and number() arrives as integer() | float().

The answers are deliberately conservative. A return of None means the
expected type is too precise: there's no easy way to say what arguments
would guarantee a result in it. For instance, 1 + 1 is 2, but the checker
isn't going to go looking for pairs of singletons that add up.
"""
from typing import Optional
from .calculus import (
	GradualType, IntType, UnionType, AtomType, FloatType, TypeVar,
	ANY, NIL, TOP, FLOAT, INTEGER, NUMBER, POS_INTEGER, NON_NEG_INTEGER, NEG_INTEGER,
	integer, list_of, is_list_type, list_view, from_list_view,
)
from .constraints import Constraints
from . import constraints
from .environment import new_type_var
from .intrange import negate_int_type
from .normalize import normalize
from .subtype import subtype

ARITH_OPS = frozenset(['+', '-', '*', '/'])
INT_OPS = frozenset(['div', 'rem', 'band', 'bor', 'bxor', 'bsl', 'bsr'])
LOGIC_OPS = frozenset(['and', 'or', 'xor', 'andalso', 'orelse'])
REL_OPS = frozenset(['==', '/=', '=<', '<', '>=', '>', '=:=', '=/='])
LIST_OPS = frozenset(['++', '--'])
UNARY_OPS = frozenset(['not', 'bnot', '+', '-'])

ArgTypes = Optional[tuple[GradualType, GradualType, Constraints]]

def is_power_of_two(n:int) -> bool:
	return n > 0 and n & (n-1) == 0

def arith_op_arg_types(op:str, ty:GradualType) -> ArgTypes:
	""" What to demand of both arguments for `op` to produce something in `ty`. """
	nothing_special = constraints.empty()
	if ty == ANY: return ty, ty, nothing_special
	if isinstance(ty, IntType):
		if op == '/': return None
		if ty == INTEGER: return ty, ty, nothing_special
		if ty.is_singleton(): return None
		if ty == POS_INTEGER:
			if op in ('+', '*', 'bor'): return ty, ty, nothing_special
			return None
		if ty == NON_NEG_INTEGER:
			# pos_integer() - 1 comes up in every counting-down recursion.
			if op == '-': return POS_INTEGER, integer(1), nothing_special
			if op in ('bsl', 'bsr'): return ty, INTEGER, nothing_special
			if op in ('+', '*', 'div', 'rem', 'band', 'bor', 'bxor'): return ty, ty, nothing_special
			return None
		if ty == NEG_INTEGER:
			if op == '+': return ty, ty, nothing_special
			return None
		return _range_arg_types(op, ty)
	if ty == FLOAT:
		if op in ('+', '-', '*'): return ty, ty, nothing_special
		if op == '/': return NUMBER, NUMBER, nothing_special
		return None
	if isinstance(ty, UnionType):
		found = [a for a in (arith_op_arg_types(op, m) for m in ty.members) if a is not None]
		if not found: return None
		return (
			UnionType([left for left, _, _ in found]),
			UnionType([right for _, right, _ in found]),
			constraints.combine(cs for _, _, cs in found),
		)
	if isinstance(ty, TypeVar):
		left, right = new_type_var(), new_type_var()
		cs = constraints.combine(
			constraints.upper(ty.name, NUMBER),
			constraints.upper(left.name, ty),
			constraints.upper(right.name, ty),
		)
		return left, right, constraints.add_var(left.name, constraints.add_var(right.name, cs))
	return None

def _range_arg_types(op:str, ty:IntType) -> ArgTypes:
	"""
	A few bounded ranges are worth the trouble:
		* 0..2^N-1 is closed under the bitwise operators other than shifts,
		* X rem 0..N+1 lands in 0..N for any non-negative X,
		* bsr and div by a non-negative (resp. positive) amount can only shrink things.
	"""
	if ty.lo != 0 or ty.hi is None: return None
	nothing_special = constraints.empty()
	if op == 'rem': return NON_NEG_INTEGER, IntType(0, ty.hi + 1), nothing_special
	if op == 'bsr': return ty, NON_NEG_INTEGER, nothing_special
	if op == 'div': return ty, POS_INTEGER, nothing_special
	if op in ('band', 'bor', 'bxor') and is_power_of_two(ty.hi + 1): return ty, ty, nothing_special
	return None

def list_op_arg_types(op:str, ty:GradualType) -> Optional[tuple[GradualType, GradualType]]:
	if isinstance(ty, UnionType):
		# This approximates a union of lists with a list of unions.
		pairs = [list_op_arg_types(op, m) for m in ty.members]
		if None in pairs: return None
		return UnionType([a for a, _ in pairs]), UnionType([b for _, b in pairs])
	if not is_list_type(ty): return None
	emptiness, elem, _ = list_view(ty)
	if op == '++':
		if emptiness == "empty": return NIL, NIL
		return from_list_view(emptiness, elem, NIL), ty
	assert op == '--', op
	if emptiness == "any": return list_of(elem), list_of(elem)
	if emptiness == "empty": return NIL, list_of(TOP)
	return None

def unary_op_arg_type(op:str, ty:GradualType) -> GradualType:
	"""
	Which type should the argument check against for the result to be in `ty`?
	By now `ty` is known to be within what the operator can produce.
	"""
	if op == '+' or ty == ANY: return ty
	if isinstance(ty, UnionType): return UnionType([unary_op_arg_type(op, m) for m in ty.members])
	if op == 'not' and isinstance(ty, AtomType): return negate_bool_type(ty)
	if isinstance(ty, IntType):
		if op == '-': return negate_int_type(ty)
		if op == 'bnot':
			lo = None if ty.hi is None else ~ty.hi
			hi = None if ty.lo is None else ~ty.lo
			return IntType(lo, hi)
	if op == '-' and isinstance(ty, FloatType): return ty
	# A type variable, which might be anything.
	return ANY

def negate_num_type(ty:GradualType, env) -> GradualType:
	""" The type of -X, given the normalized type of X. """
	if isinstance(ty, IntType): return negate_int_type(ty)
	if isinstance(ty, UnionType): return normalize(UnionType([negate_num_type(m, env) for m in ty.members]), env)
	return ty

def negate_bool_type(ty:GradualType) -> GradualType:
	if ty == AtomType("true"): return AtomType("false")
	if ty == AtomType("false"): return AtomType("true")
	return ty

def compat_arith_type(ty1:GradualType, ty2:GradualType, env) -> Optional[tuple[GradualType, Constraints]]:
	""" The result type of arithmetic on the two argument types: integer() if possible, then float(), then number(). """
	if ty1 == ANY and ty2 == ANY: return ANY, constraints.empty()
	if ty1 == ANY or ty2 == ANY:
		other = ty2 if ty1 == ANY else ty1
		if subtype(other, NUMBER, env) is None: return None
		return ANY, constraints.empty()
	for result in (INTEGER, FLOAT, NUMBER):
		cs1, cs2 = subtype(ty1, result, env), subtype(ty2, result, env)
		if cs1 is not None and cs2 is not None: return result, constraints.combine(cs1, cs2)
	return None
