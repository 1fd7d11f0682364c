"""
Normalization: the outermost layer of a type, made canonical.

Most of the checker wants to look at the shape of a type and decide what to
do. But shapes hide behind aliases like `string()`, behind references to
user-defined and remote types, and behind unions that could be spelled a
dozen equivalent ways. Normalization peels all that off the top layer only.
It does not descend into tuple elements or list elements or function
arguments. Those get normalized when somebody looks at them.

Recursive types would otherwise unfold forever. So the normalizer keeps
track of what it's in the middle of unfolding. If the same reference turns
up again inside its own expansion, that inner occurrence is simply left as
it is. This is imprecise, but it terminates.

Unions get the most work:
	* Nested unions are flattened, and none() members vanish.
	* Integer members merge into maximal disjoint ranges, which go first.
	* If atom() is present, singleton atoms are subsumed and dropped.
	* Everything else is deduplicated and sorted into a canonical order.
	* Zero members is none(), one member is itself, and too many is any().
"""
from typing import Optional
from .calculus import (
	GradualType, TypeVisitor, TypeVar, AtomType, IntType, UnionType, ListType, MapType, AssocType,
	RecordType, UserType, RemoteType, BuiltinType, RangeExpr, TypeOp, FunType, BoundedFun,
	FunIntersection, TupleType, BinaryType, Substitute, type_order, union, list_of, nonempty_list_of,
	builtin, tuple_of, integer, atom,
	ANY, TOP, NONE, NIL, FLOAT, ATOM, INTEGER, POS_INTEGER, NON_NEG_INTEGER, NEG_INTEGER, BYTE, CHAR,
	ANY_TUPLE, ANY_FUN, ANY_MAP, BINARY, BITSTRING, BOOLEAN, NUMBER,
)
from .intrange import merge_int_types, int_range_to_type
from .database import TypeLookup
from . import errors

def normalize(t:GradualType, env) -> GradualType:
	return t.visit(_Normalize(env, {}))

def _simple_aliases() -> dict[str, GradualType]:
	byte, char, binary = BYTE, CHAR, BINARY
	iolist = ListType(False, union(byte, binary, builtin("iolist")), union(binary, NIL))
	return {
		"any": ANY, "term": ANY, "none": NONE, "no_return": NONE, "nil": NIL,
		"atom": ATOM, "module": ATOM, "node": ATOM,
		"binary": binary, "bitstring": BITSTRING,
		"boolean": BOOLEAN, "bool": BOOLEAN,
		"byte": byte, "char": char, "arity": BYTE,
		"integer": INTEGER, "pos_integer": POS_INTEGER, "non_neg_integer": NON_NEG_INTEGER, "neg_integer": NEG_INTEGER,
		"float": FLOAT, "number": NUMBER,
		"list": list_of(ANY), "nonempty_list": nonempty_list_of(ANY),
		"maybe_improper_list": ListType(False, ANY, ANY),
		"nonempty_maybe_improper_list": ListType(True, ANY, ANY),
		"string": list_of(char), "nonempty_string": nonempty_list_of(char),
		"iolist": iolist, "iodata": union(builtin("iolist"), binary),
		"map": ANY_MAP, "tuple": ANY_TUPLE,
		"function": ANY_FUN, "fun": ANY_FUN,
		"mfa": tuple_of(ATOM, ATOM, BYTE),
		"identifier": union(builtin("pid"), builtin("port"), builtin("reference")),
		"timeout": union(atom("infinity"), NON_NEG_INTEGER),
		"top": TOP,
	}

_SIMPLE_ALIASES = _simple_aliases()

def _expand_builtin(b:BuiltinType) -> Optional[GradualType]:
	name, args = b.name, b.args
	if not args: return _SIMPLE_ALIASES.get(name)
	if len(args) == 1:
		if name == "list": return list_of(args[0])
		if name == "nonempty_list": return nonempty_list_of(args[0])
	if len(args) == 2:
		if name == "maybe_improper_list": return ListType(False, args[0], args[1])
		if name in ("nonempty_improper_list", "nonempty_maybe_improper_list"): return ListType(True, args[0], args[1])
	return None

_TYPE_OPS = {
	"+": lambda a, b: a + b,
	"-": lambda a, b: a - b,
	"*": lambda a, b: a * b,
	"div": lambda a, b: int(a / b) if b else None,
	"rem": lambda a, b: a - b * int(a / b) if b else None,
	"band": lambda a, b: a & b,
	"bor": lambda a, b: a | b,
	"bxor": lambda a, b: a ^ b,
	"bsl": lambda a, b: a << b,
	"bsr": lambda a, b: a >> b,
}

def _merge_union_members(types:list[GradualType]) -> list[GradualType]:
	if TOP in types: return [TOP]
	ints = [t for t in types if isinstance(t, IntType)]
	others = set(t for t in types if not isinstance(t, IntType))
	if ATOM in others:
		others = set(t for t in others if not (isinstance(t, AtomType) and t.is_literal()))
	return merge_int_types(ints) + sorted(others, key=type_order)

class _Normalize(TypeVisitor):
	def __init__(self, env, unfolded:dict):
		self.env = env
		self.unfolded = unfolded

	def _go(self, t:GradualType) -> GradualType: return t.visit(self)

	def _unfold(self, key, seen:GradualType, body:GradualType) -> GradualType:
		return body.visit(_Normalize(self.env, {**self.unfolded, key: seen}))

	def on_any(self): return ANY
	def on_top(self): return TOP
	def on_none(self): return NONE
	def on_var(self, v:TypeVar): return ANY if v.name == "_" else v
	def on_atom(self, a:AtomType): return a
	def on_int(self, i:IntType): return i
	def on_float(self): return FLOAT
	def on_nil(self): return NIL
	def on_tuple(self, t:TupleType): return t
	def on_list(self, l:ListType): return l
	def on_fun(self, f:FunType): return f
	def on_bounded_fun(self, b:BoundedFun): return b
	def on_intersection(self, i:FunIntersection): return i
	def on_binary(self, b:BinaryType): return b

	def on_union(self, u:UnionType):
		members = _merge_union_members(self._flatten(u.members))
		if not members: return NONE
		if len(members) == 1: return members[0]
		if len(members) > self.env.options.union_size_limit: return ANY
		return UnionType(members)

	def _flatten(self, members) -> list[GradualType]:
		flat = []
		for m in members:
			n = self._go(m)
			if n == NONE: continue
			if isinstance(n, UnionType): flat.extend(self._flatten(n.members))
			else: flat.append(n)
		return flat

	def on_assoc(self, a:AssocType): return AssocType(a.exact, self._go(a.key), self._go(a.value))
	def on_map(self, m:MapType): return MapType(self._go(a) for a in m.assocs)

	def on_record(self, r:RecordType):
		if r.fields is None: return r
		return RecordType(r.name, [(f, self._go(t)) for f, t in r.fields], r.module)

	def on_user(self, u:UserType):
		tenv = self.env.tenv
		module = u.module or tenv.module
		key = (module, u.name, len(u.args))
		if key in self.unfolded: return self.unfolded[key]
		if module == tenv.module:
			try: typedef = tenv.types[u.name, len(u.args)]
			except KeyError: raise errors.UndefinedType(None, u.name, len(u.args)) from None
			body = Substitute(dict(zip(typedef.params, u.args)))(typedef.body)
			return self._unfold(key, u, body)
		status, body = self._lookup(module, u, self.env.db.get_type if self.env.db else None)
		if status is TypeLookup.OK: return self._unfold(key, u, body)
		if status is TypeLookup.OPAQUE: return u
		raise errors.UndefinedType(None, u.name, len(u.args), module)

	def on_remote(self, r:RemoteType):
		if (r.module, r.name, r.args) == ("gradualizer", "top", ()): return TOP
		if r.module == self.env.tenv.module: return self.on_user(UserType(r.name, r.args))
		key = (r.module, r.name, len(r.args))
		if key in self.unfolded: return self.unfolded[key]
		status, body = self._lookup(r.module, r, self.env.db.get_exported_type if self.env.db else None)
		if status is TypeLookup.OK: return self._unfold(key, r, body)
		if status is TypeLookup.OPAQUE: return UserType(r.name, [self._go(a) for a in r.args], r.module)
		if status is TypeLookup.NOT_EXPORTED: raise errors.NotExported(None, r.name, len(r.args), r.module)
		raise errors.UndefinedType(None, r.name, len(r.args), r.module)

	@staticmethod
	def _lookup(module, ref, method):
		if method is None: return TypeLookup.NOT_FOUND, None
		return method(module, ref.name, ref.args)

	def on_builtin(self, b:BuiltinType):
		expansion = _expand_builtin(b)
		if expansion is None: return b
		return self._go(expansion)

	def _constant(self, t:GradualType, culprit:GradualType) -> int:
		n = self._go(t)
		if isinstance(n, IntType) and n.is_singleton(): return n.lo
		raise errors.BadTypeAnnotation(None, culprit)

	def on_range_expr(self, r:RangeExpr):
		return int_range_to_type((self._constant(r.lo, r), self._constant(r.hi, r)))

	def on_op(self, o:TypeOp):
		values = [self._constant(t, o) for t in o.operands]
		if len(values) == 1:
			if o.op == "-": return integer(-values[0])
			if o.op == "+": return integer(values[0])
			if o.op == "bnot": return integer(~values[0])
			raise errors.BadTypeAnnotation(None, o)
		try: result = _TYPE_OPS[o.op](*values)
		except KeyError: raise errors.BadTypeAnnotation(None, o) from None
		if result is None: raise errors.BadTypeAnnotation(None, o)
		return integer(result)
