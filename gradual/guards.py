"""
What guards tell us about variables.

A guard like `is_integer(X)` means that, within the clause, X is an
integer. A comparison against a literal like `X > 0` says something too,
if you remember that Erlang-family languages compare everything against
everything by the standard term order:

	number < atom < reference < fun < port < pid < tuple < map < nil < list < bitstring

Within a guard, comma-separated tests must all hold, so their refinements
intersect. Alternatives separated by semicolon (or `orelse`) might any of
them hold, so only what they agree on survives, at the union of the types.

Guards are not otherwise type-checked very hard. Anything that isn't
one of the recognized shapes just gets inferred like any other expression.
"""
from typing import Optional
from .calculus import (
	GradualType, IntType, FunType, RecordType, UnionType,
	ANY, FLOAT, ATOM, BINARY, BITSTRING, BOOLEAN, INTEGER, NUMBER,
	ANY_FUN, ANY_TUPLE, ANY_MAP, AtomType, builtin, integer, list_of,
)
from . import syntax
from .patterns import union_var_binds, union_var_binds_symmetrical
from . import inference

VarTypes = dict[str, GradualType]

_SIMPLE_GUARDS = {
	'is_atom': ATOM,
	'is_binary': BINARY,
	'is_bitstring': BITSTRING,
	'is_boolean': BOOLEAN,
	'is_float': FLOAT,
	'is_function': ANY_FUN,
	'is_integer': INTEGER,
	'is_list': list_of(ANY),
	'is_map': ANY_MAP,
	'is_number': NUMBER,
	'is_pid': builtin("pid"),
	'is_port': builtin("port"),
	'is_reference': builtin("reference"),
	'is_tuple': ANY_TUPLE,
}

COMPARISON_OPS = frozenset(['==', '/=', '=<', '<', '>=', '>', '=:=', '=/='])

def check_guard_call(fun:str, args) -> VarTypes:
	""" For a type-test BIF applied to a variable, what that variable must be if the test passes. """
	if not args or not isinstance(args[0], syntax.Var): return {}
	name = args[0].name
	if len(args) == 1 and fun in _SIMPLE_GUARDS: return {name: _SIMPLE_GUARDS[fun]}
	if fun == 'is_function' and len(args) == 2 and isinstance(args[1], syntax.Integer):
		return {name: FunType([ANY] * args[1].value, ANY)}
	if fun == 'is_record' and len(args) in (2, 3) and isinstance(args[1], syntax.Atom):
		return {name: RecordType(args[1].value)}
	return {}

def type_comp_op(op:str, value) -> GradualType:
	"""
	The type of X, given that `X op value` holds.
	The result may be a range like 10..pos_integer(), which normalization sorts out.
	"""
	if isinstance(value, int):
		if op == '=<': return UnionType([FLOAT, IntType(None, value)])
		if op == '<': return type_comp_op('=<', value - 1)
		if op == '>=': return UnionType([IntType(value, None)] + _ABOVE_NUMBERS)
		if op == '>': return type_comp_op('>=', value + 1)
		if op == '==': return UnionType([FLOAT, integer(value)])
		if op == '=:=': return integer(value)
		if op in ('/=', '=/='):
			below, above = type_comp_op('<', value), type_comp_op('>', value)
			return UnionType(below.members + above.members)
	elif op in ('==', '=:='):
		return AtomType(value)
	return ANY

_ABOVE_NUMBERS = [
	FLOAT, ATOM, builtin("reference"), ANY_FUN, builtin("port"), builtin("pid"),
	ANY_TUPLE, ANY_MAP, list_of(ANY), BITSTRING,
]

def mirror_comp_op(op:str) -> str:
	""" So that `Lit < X` can be read as `X > Lit`. """
	return {'<': '>', '>': '<', '>=': '=<', '=<': '>='}.get(op, op)

def _literal_value(x) -> Optional[object]:
	if isinstance(x, (syntax.Integer, syntax.Atom)): return x.value
	return None

def _guard_bif(callee) -> Optional[str]:
	if isinstance(callee, syntax.Atom): return callee.value
	if isinstance(callee, syntax.Remote) and isinstance(callee.module, syntax.Atom) and isinstance(callee.function, syntax.Atom):
		if callee.module.value == 'erlang': return callee.function.value
	return None

def check_guard_expression(env, guard) -> VarTypes:
	if isinstance(guard, syntax.Call):
		fun = _guard_bif(guard.callee)
		if fun is not None: return check_guard_call(fun, guard.args)
	if isinstance(guard, syntax.BinaryOp):
		if guard.op in COMPARISON_OPS:
			if isinstance(guard.lhs, syntax.Var) and _literal_value(guard.rhs) is not None:
				return {guard.lhs.name: type_comp_op(guard.op, guard.rhs.value)}
			if isinstance(guard.rhs, syntax.Var) and _literal_value(guard.lhs) is not None:
				return {guard.rhs.name: type_comp_op(mirror_comp_op(guard.op), guard.lhs.value)}
		if guard.op in ('orelse', 'or'):
			either = [check_guard_expression(env, guard.lhs), check_guard_expression(env, guard.rhs)]
			return union_var_binds_symmetrical(either, env)
		if guard.op in ('andalso', 'and'):
			both = [check_guard_expression(env, guard.lhs), check_guard_expression(env, guard.rhs)]
			return union_var_binds(both, env)
	_, var_binds, _ = inference.infer(env, guard)
	return var_binds

def check_guard(env, tests) -> VarTypes:
	""" One guard: a comma-separated list of tests which must all pass. """
	refined = union_var_binds([check_guard_expression(env, t) for t in tests], env)
	return {**env.venv, **refined}

def check_guards(env, guards) -> VarTypes:
	""" A whole guard sequence: semicolon-separated guards, any one of which may pass. """
	if not guards: return {}
	return union_var_binds_symmetrical([check_guard(env, g) for g in guards], env)
