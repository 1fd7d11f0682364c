"""
Type difference: what remains of one type after taking away another.

The checker uses this two ways. Each clause of a function or case takes
away from the argument types whatever its patterns certainly match, so
that whatever is left over at the end is a witness to non-exhaustiveness.
And a failing guard like `is_integer(X)` takes integers away from what X
might be in the following clauses.

Precision comes and goes. When the answer can't be worked out exactly,
the safe answer is the original type, unrefined. Internally there are two
ways to fail: the types might be disjoint (so there's nothing to take
away) or it might be too hard to say (imprecision). Both come out as the
original type to the outside world, but inside a union the difference
matters: a disjoint member survives whole while the others get refined.
"""
from .calculus import (
	GradualType, AtomType, IntType, UnionType, TupleType, ListType, MapType, AssocType, RecordType,
	UserType, RemoteType, BuiltinType, BinaryType, FloatType,
	ANY, TOP, NONE, NIL, ATOM, FLOAT, BITSTRING, CHAR, is_any_map,
)
from .intrange import int_type_diff
from .environment import field_types
from .normalize import normalize
from .glb import glb, has_overlapping_keys
from . import syntax, errors

class _NoRefinement(Exception): pass
class _Disjoint(Exception): pass

def type_diff(t1:GradualType, t2:GradualType, env) -> GradualType:
	try: return _refine(t1, t2, frozenset(), env)
	except (_NoRefinement, _Disjoint): return t1

def _refine(orig:GradualType, ty:GradualType, trace:frozenset, env) -> GradualType:
	if orig in trace: raise _NoRefinement
	norm = normalize(orig, env)
	result = _refine_ty(norm, normalize(ty, env), trace | {orig}, env)
	return orig if result == norm else result

def _expand_record(r:RecordType, env) -> RecordType:
	return RecordType(r.name, field_types(env.record_fields(r.name, r.module)), r.module)

def _refine_ty(ty1:GradualType, ty2:GradualType, trace, env) -> GradualType:
	if ty2 == NONE:
		# The pattern type says nothing precise, so it can't be used to refine.
		raise _NoRefinement
	if ty1 == ty2: return NONE

	if isinstance(ty1, RecordType) and isinstance(ty2, RecordType) and ty1.name == ty2.name:
		if ty2.fields is None: return NONE
		if ty1.fields is None: return _refine_ty(_expand_record(ty1, env), ty2, trace, env)
		if ty1.fields and len(ty1.fields) == len(ty2.fields):
			tys1 = [t for _, t in ty1.fields]
			refined = [_refine(a, b, trace, env) for a, (_, b) in zip(tys1, ty2.fields)]
			names = [f for f, _ in ty1.fields]
			records = [RecordType(ty1.name, zip(names, row), ty1.module) for row in pick_one_refinement_each(tys1, refined)]
			return normalize(UnionType(records), env)

	if isinstance(ty1, UnionType):
		members = []
		for m in ty1.members:
			try: members.append(_refine(m, ty2, trace, env))
			except _Disjoint: members.append(m)
		return normalize(UnionType(members), env)
	if isinstance(ty2, UnionType):
		# As from an is_number(X) guard: take away each alternative in turn.
		acc = ty1
		for m in ty2.members:
			try: acc = _refine(acc, m, trace, env)
			except _Disjoint: pass
		return acc

	if isinstance(ty1, MapType) and isinstance(ty2, MapType):
		if is_any_map(ty2): return NONE
		if has_overlapping_keys(ty1, env) or has_overlapping_keys(ty2, env): raise _NoRefinement
		fields = [f for a1 in ty1.assocs for a2 in ty2.assocs for f in _refine_map_field(a1, a2)]
		empty = MapType(())
		remaining = []
		for f in fields:
			if f != empty and f not in remaining: remaining.append(f)
		if fields and not remaining: return empty
		return MapType(remaining)

	if isinstance(ty1, TupleType) and isinstance(ty2, TupleType):
		if ty2.elements is None: return NONE
		if ty1.elements and len(ty1.elements) == len(ty2.elements):
			refined = [_refine(a, b, trace, env) for a, b in zip(ty1.elements, ty2.elements)]
			tuples = [TupleType(row) for row in pick_one_refinement_each(ty1.elements, refined)]
			return normalize(UnionType(tuples), env)

	if isinstance(ty1, AtomType) and ty1.is_literal() and ty2 == ATOM: return NONE

	if isinstance(ty1, ListType) and not ty1.nonempty and ty1.term == NIL:
		if ty2 == NIL: return ListType(True, ty1.elem, NIL)
		if ty2 == ListType(True, ty1.elem, NIL): return NIL
	if ty1 == NIL and isinstance(ty2, ListType) and not ty2.nonempty and ty2.term == NIL: return NONE
	if isinstance(ty1, ListType) and ty1.nonempty and ty1.term == NIL and ty2 == ListType(False, ANY, NIL):
		# The guard is_list/1 catches every nonempty list.
		return NONE

	if isinstance(ty1, BinaryType) and ty2 == BITSTRING: return NONE

	if isinstance(ty1, IntType) and isinstance(ty2, IntType):
		if ty1.is_singleton() and ty2.is_singleton(): raise _Disjoint
		return int_type_diff(ty1, ty2)

	meet, _ = glb(ty1, ty2, env)
	if meet == NONE: raise _Disjoint
	raise _NoRefinement

def _refine_map_field(a1:AssocType, a2:AssocType) -> list[GradualType]:
	"""
	For the same key and value on both sides, only the optionality changes:

		M1 \\ M2   | K := V    | K => V
		----------+-----------+--------
		K := V    | (nothing) | K => V
		K => V    | #{}       | (nothing)

	Otherwise the first field stays as it was.
	"""
	if (a1.key, a1.value) == (a2.key, a2.value):
		if a1.exact == a2.exact: return []
		if a2.exact: return [MapType(())]
		return [AssocType(False, a1.key, a1.value)]
	return [a1]

def pick_one_refinement_each(tys, refined) -> list[list[GradualType]]:
	"""
	One row per refinable position: that position refined, all the others as they were.
	A position whose refinement is none() was matched completely and gets no row.
	"""
	tys = list(tys)
	return [tys[:i] + [r] + tys[i+1:] for i, r in enumerate(refined) if r != NONE]

###########################################################################

def refinable(ty:GradualType, env, trace:frozenset=frozenset()) -> bool:
	"""
	Is the type closed enough that exhaustiveness checking over it makes sense?
	Recursion through a type already under consideration counts as refinable;
	the non-recursive variants decide the matter.
	"""
	if isinstance(ty, (IntType, FloatType)) or ty == NIL: return True
	if isinstance(ty, AtomType): return ty.is_literal()
	if ty == TOP: return False
	if isinstance(ty, TupleType):
		if ty.elements is None: return False
		return _refinable_parts(ty, ty.elements, env, trace)
	if isinstance(ty, UnionType): return _refinable_parts(ty, ty.members, env, trace)
	if isinstance(ty, RecordType):
		if ty.fields is not None: return _refinable_parts(ty, [t for _, t in ty.fields], env, trace)
		try: expansion = _expand_record(ty, env)
		except errors.UndefinedReference: return False
		return _refinable_parts(ty, [t for _, t in expansion.fields], env, trace)
	if isinstance(ty, MapType):
		if ty in trace: return True
		if not ty.assocs or has_overlapping_keys(ty, env): return False
		parts = [t for a in ty.assocs for t in (a.key, a.value)]
		return _refinable_parts(ty, parts, env, trace)
	if isinstance(ty, ListType) and ty.term == NIL:
		if ty.elem == CHAR: return True
		return _refinable_parts(ty, [ty.elem], env, trace)
	if isinstance(ty, (UserType, RemoteType, BuiltinType)):
		key = _identity(ty, env)
		if key in trace: return True
		try: expansion = normalize(ty, env)
		except errors.UndefinedReference: return False
		if expansion == ty: return isinstance(ty, UserType)  # opaque
		return refinable(expansion, env, trace | {key})
	return False

def _identity(ty, env):
	if isinstance(ty, UserType): return ty.module or env.tenv.module, ty.name, len(ty.args)
	if isinstance(ty, RemoteType): return ty.module, ty.name, len(ty.args)
	return ty

def _refinable_parts(ty, parts, env, trace) -> bool:
	if ty in trace: return True
	inner = trace | {ty}
	return all(refinable(p, env, inner) for p in parts)

###########################################################################

def pick_value(types:list[GradualType], env) -> list[syntax.Expression]:
	""" An example value of each type, as an expression, for diagnostics. """
	return [_pick(t, env, frozenset()) for t in types]

def _pick(t:GradualType, env, trace) -> syntax.Expression:
	if t in trace: return syntax.Var("_")
	trace = trace | {t}
	ty = normalize(t, env)
	if isinstance(ty, AtomType): return syntax.Atom("a" if ty.name is None else ty.name)
	if isinstance(ty, IntType):
		if ty.lo is not None: return syntax.Integer(ty.lo)
		if ty.hi is not None: return syntax.Integer(ty.hi)
		return syntax.Integer(0)
	if ty == FLOAT: return syntax.Float(0.0)
	if ty == NIL: return syntax.Nil()
	if isinstance(ty, ListType):
		if ty.nonempty: return syntax.Cons(_pick(ty.elem, env, trace), syntax.Nil())
		return syntax.Nil()
	if isinstance(ty, TupleType):
		return syntax.Tuple([_pick(e, env, trace) for e in ty.elements or ()])
	if isinstance(ty, UnionType): return _pick(ty.members[0], env, trace)
	if isinstance(ty, RecordType):
		fields = ty.fields if ty.fields is not None else field_types(env.record_fields(ty.name, ty.module))
		return syntax.RecordExpr(ty.name, [syntax.RecordField(f, _pick(ft, env, trace)) for f, ft in fields])
	if isinstance(ty, MapType):
		assocs = [a for a in ty.assocs if a.exact]
		return syntax.MapExpr([syntax.MapFieldAssoc(_pick(a.key, env, trace), _pick(a.value, env, trace)) for a in assocs])
	if isinstance(ty, BinaryType): return syntax.Bin([])
	return syntax.Var("_")
