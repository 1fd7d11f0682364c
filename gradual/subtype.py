"""
The subtype relation, or rather compatibility, since any() goes both ways.

subtype(t1, t2, env) answers either None (no) or else the Constraints under
which t1 may be used where t2 is wanted. A type variable never makes the
answer "no". It just adds a bound to the constraints.

Both sides are normalized before anything looks at their shape. Recursive
types would send this around in circles, so each step carries the set of
pairs already under consideration. Meeting one again counts as success.
That set travels by value: a failed alternative takes its additions with it.
"""
from typing import Optional, Iterable
from .calculus import (
	GradualType, TypeVar, AtomType, IntType, UnionType, TupleType, FunType, FunIntersection,
	MapType, AssocType, RecordType, UserType, BinaryType,
	ANY, TOP, NONE, ATOM, is_any_map, is_list_type, list_view,
)
from .constraints import Constraints
from . import constraints
from .intrange import is_int_subtype
from .environment import field_types
from .normalize import normalize

Seen = frozenset

class _Fail(Exception):
	""" The two types are not compatible. Never escapes this module. """

def subtype(t1:GradualType, t2:GradualType, env) -> Optional[Constraints]:
	try: return _Compat(env).compat(t1, t2, Seen())[1]
	except _Fail: return None

def is_subtype(t1:GradualType, t2:GradualType, env) -> bool:
	return subtype(t1, t2, env) is not None

def subtypes(ts1:Iterable[GradualType], ts2:Iterable[GradualType], env) -> Optional[Constraints]:
	""" Pairwise, for lists of the same length. """
	ts1, ts2 = list(ts1), list(ts2)
	if len(ts1) != len(ts2): return None
	css = []
	for a, b in zip(ts1, ts2):
		cs = subtype(a, b, env)
		if cs is None: return None
		css.append(cs)
	return constraints.combine(css)

def any_subtype(candidates:Iterable[GradualType], t2:GradualType, env) -> Optional[Constraints]:
	""" Constraints from the first candidate that is a subtype of t2. """
	for t1 in candidates:
		cs = subtype(t1, t2, env)
		if cs is not None: return cs
	return None

def compatible(t1:GradualType, t2:GradualType, env) -> Optional[Constraints]:
	""" Either direction will do. If both work, both sets of constraints apply. """
	cs1, cs2 = subtype(t1, t2, env), subtype(t2, t1, env)
	if cs1 is None: return cs2
	if cs2 is None: return cs1
	return constraints.combine(cs1, cs2)

class _Compat:
	def __init__(self, env):
		self.env = env

	def compat(self, t1, t2, seen:Seen) -> tuple[Seen, Constraints]:
		ty1, ty2 = normalize(t1, self.env), normalize(t2, self.env)
		if (ty1, ty2) in seen: return seen, constraints.empty()
		return self.compat_ty(ty1, ty2, seen | {(ty1, ty2)})

	def compat_tys(self, ts1, ts2, seen:Seen) -> tuple[Seen, Constraints]:
		if len(ts1) != len(ts2): raise _Fail
		css = []
		for a, b in zip(ts1, ts2):
			seen, cs = self.compat(a, b, seen)
			css.append(cs)
		return seen, constraints.combine(css)

	def any_type(self, t1, candidates, seen:Seen) -> tuple[Seen, Constraints]:
		for t2 in candidates:
			try: return self.compat_ty(t1, t2, seen)
			except _Fail: continue
		raise _Fail

	def any_candidate(self, candidates, t2, seen:Seen) -> tuple[Seen, Constraints]:
		""" Some candidate is a subtype of t2. """
		for t1 in candidates:
			try: return self.compat_ty(t1, t2, seen)
			except _Fail: continue
		raise _Fail

	def all_type(self, members, t2, seen:Seen) -> tuple[Seen, Constraints]:
		css = []
		for t1 in members:
			seen, cs = self.compat_ty(t1, t2, seen)
			css.append(cs)
		return seen, constraints.combine(css)

	def compat_ty(self, ty1, ty2, seen:Seen) -> tuple[Seen, Constraints]:
		ok = seen, constraints.empty()
		if ty1 == ANY or ty2 == ANY: return ok
		if ty2 == TOP: return ok
		if ty1 == NONE: return ok
		if ty1 == ty2: return ok
		if isinstance(ty1, TypeVar): return seen, constraints.upper(ty1.name, ty2)
		if isinstance(ty2, TypeVar): return seen, constraints.lower(ty2.name, ty1)

		if isinstance(ty1, FunIntersection):
			return self.any_type_compat(ty1.clauses, ty2, seen)
		if isinstance(ty2, FunIntersection):
			css = []
			for clause in ty2.clauses:
				seen, cs = self.compat(ty1, clause, seen)
				css.append(cs)
			return seen, constraints.combine(css)
		if isinstance(ty1, FunType) and isinstance(ty2, FunType):
			if ty2.args is None: return self.compat(ty1.result, ty2.result, seen)
			if ty1.args is None: raise _Fail
			seen, cs1 = self.compat_tys(ty2.args, ty1.args, seen)
			seen, cs2 = self.compat(ty1.result, ty2.result, seen)
			return seen, constraints.combine(cs1, cs2)

		if isinstance(ty1, UnionType) and isinstance(ty2, UnionType):
			css = []
			for m in ty1.members:
				seen, cs = self.any_type(m, ty2.members, seen)
				css.append(cs)
			return seen, constraints.combine(css)
		if isinstance(ty2, UnionType): return self.any_type(ty1, ty2.members, seen)
		if isinstance(ty1, UnionType): return self.all_type(ty1.members, ty2, seen)

		if isinstance(ty1, IntType) and isinstance(ty2, IntType):
			if is_int_subtype(ty1, ty2): return ok
			raise _Fail
		if isinstance(ty1, AtomType) and ty2 == ATOM: return ok

		if isinstance(ty1, BinaryType) and isinstance(ty2, BinaryType):
			m1, n1, m2, n2 = ty1.base, ty1.unit, ty2.base, ty2.unit
			if n2 > 0 and m1 >= m2 and n1 % n2 == 0 and (m1 - m2) % n2 == 0: return ok
			raise _Fail

		if isinstance(ty1, RecordType):
			if isinstance(ty2, TupleType) and ty2.elements is None: return ok
			if isinstance(ty2, RecordType) and ty1.name == ty2.name:
				return self.compat_records(ty1, ty2, seen)
			raise _Fail

		if is_list_type(ty1) and is_list_type(ty2):
			empty1, elem1, term1 = list_view(ty1)
			empty2, elem2, term2 = list_view(ty2)
			if empty1 != empty2 and empty2 != "any": raise _Fail
			return self.compat_tys([elem1, term1], [elem2, term2], seen)

		if isinstance(ty1, TupleType) and isinstance(ty2, TupleType):
			if ty1.elements is None or ty2.elements is None: return ok
			return self.compat_tys(ty1.elements, ty2.elements, seen)

		if isinstance(ty1, MapType) and isinstance(ty2, MapType):
			return self.compat_maps(ty1, ty2, seen)
		if isinstance(ty1, AssocType) and isinstance(ty2, AssocType):
			if ty1.exact or not ty2.exact:
				seen, cs1 = self.compat(ty1.key, ty2.key, seen)
				seen, cs2 = self.compat(ty1.value, ty2.value, seen)
				return seen, constraints.combine(cs1, cs2)
			raise _Fail

		if isinstance(ty1, UserType) and isinstance(ty2, UserType):
			if (ty1.name, ty1.module) == (ty2.name, ty2.module):
				return self.compat_tys(ty1.args, ty2.args, seen)
		raise _Fail

	def any_type_compat(self, candidates, t2, seen:Seen) -> tuple[Seen, Constraints]:
		for t1 in candidates:
			try: return self.compat(t1, t2, seen)
			except _Fail: continue
		raise _Fail

	def _record_fields(self, r:RecordType) -> list[tuple[str, GradualType]]:
		if r.fields is not None: return list(r.fields)
		return field_types(self.env.record_fields(r.name, r.module))

	def compat_records(self, ty1:RecordType, ty2:RecordType, seen:Seen) -> tuple[Seen, Constraints]:
		fields1, fields2 = self._record_fields(ty1), self._record_fields(ty2)
		if len(fields1) != len(fields2): raise _Fail
		if ty1.fields is not None or ty2.fields is not None:
			if any(f1 != f2 for (f1, _), (f2, _) in zip(fields1, fields2)): raise _Fail
		return self.compat_tys([t for _, t in fields1], [t for _, t in fields2], seen)

	def compat_maps(self, ty1:MapType, ty2:MapType, seen:Seen) -> tuple[Seen, Constraints]:
		if is_any_map(ty1) or is_any_map(ty2): return seen, constraints.empty()
		mandatory1 = [a for a in ty1.assocs if a.exact]
		css = []
		for a2 in ty2.assocs:
			if not a2.exact: continue
			seen, cs = self.any_candidate(mandatory1, a2, seen)
			css.append(cs)
		for a1 in ty1.assocs:
			seen, cs = self.any_type(a1, ty2.assocs, seen)
			css.append(cs)
		return seen, constraints.combine(css)
