"""
Greatest lower bounds: the most general type that is a subtype of both.

This is how patterns and guards narrow down what a variable might hold,
and it's also how multiple upper bounds on a type variable get combined.
It is an approximation in several places (maps, binaries, functions) where
the exact answer would need types this algebra cannot express. In those
places, the answer errs towards none().

Results are memoized per checking run in a GlbCache, keyed by the module
as well as both types, because the same pairs come up again and again.
Within a single computation, a pair seen a second time yields none()
rather than going around forever.
"""
from typing import Iterable
from .calculus import (
	GradualType, TypeVar, AtomType, IntType, UnionType, TupleType, FunType, MapType, AssocType,
	RecordType, BinaryType, BuiltinType,
	ANY, TOP, NONE, ATOM, is_any_map, is_list_type, list_view, from_list_view,
)
from .constraints import Constraints
from . import constraints
from .intrange import int_type_glb
from .normalize import normalize
from .subtype import subtype, subtypes
from .environment import new_type_var

class GlbCache:
	""" Scoped to one checking run. Entries are write-once; the computation is deterministic. """
	def __init__(self):
		self._table:dict[tuple, tuple[GradualType, Constraints]] = {}
	def __len__(self): return len(self._table)
	def get(self, key): return self._table.get(key)
	def store(self, key, value):
		self._table.setdefault(key, value)

def glb(t1:GradualType, t2:GradualType, env) -> tuple[GradualType, Constraints]:
	return _Glb(env).glb(t1, t2, frozenset())

def glb_list(types:Iterable[GradualType], env) -> tuple[GradualType, Constraints]:
	result, css = TOP, []
	for t in types:
		result, cs = glb(result, t, env)
		css.append(cs)
	return result, constraints.combine(css)

def has_overlapping_keys(m:MapType, env) -> bool:
	""" True if some two distinct associations of the map could describe the same key. """
	keys = [a.key for a in m.assocs]
	for i, k1 in enumerate(keys):
		for k2 in keys[i+1:]:
			if subtype(k1, k2, env) is not None or subtype(k2, k1, env) is not None:
				return True
	return False

class _Glb:
	def __init__(self, env):
		self.env = env
		cache = env.glb_cache
		self.cache = cache if cache is not None else GlbCache()

	def glb(self, t1, t2, seen:frozenset) -> tuple[GradualType, Constraints]:
		if (t1, t2) in seen: return NONE, constraints.empty()
		key = (self.env.tenv.module, t1, t2)
		hit = self.cache.get(key)
		if hit is not None: return hit
		ty1, ty2 = normalize(t1, self.env), normalize(t2, self.env)
		ty, cs = self.glb_ty(ty1, ty2, seen | {(t1, t2)})
		result = normalize(ty, self.env), cs
		self.cache.store(key, result)
		return result

	def glb_ty(self, ty1, ty2, seen) -> tuple[GradualType, Constraints]:
		nothing = NONE, constraints.empty()
		if ty1 == NONE or ty2 == NONE: return nothing
		if ty1 == ANY or ty2 == ANY: return ANY, constraints.empty()
		if ty1 == TOP: return ty2, constraints.empty()
		if ty2 == TOP: return ty1, constraints.empty()
		if ty1 == ty2: return ty1, constraints.empty()

		if isinstance(ty1, TypeVar) or isinstance(ty2, TypeVar):
			v = new_type_var()
			cs = constraints.combine(constraints.upper(v.name, ty1), constraints.upper(v.name, ty2))
			return v, constraints.add_var(v.name, cs)

		if isinstance(ty1, UnionType):
			return self._distribute(ty1.members, lambda m: self.glb(m, ty2, seen))
		if isinstance(ty2, UnionType):
			return self._distribute(ty2.members, lambda m: self.glb(ty1, m, seen))

		if isinstance(ty1, AtomType) and isinstance(ty2, AtomType):
			if ty2 == ATOM: return ty1, constraints.empty()
			if ty1 == ATOM: return ty2, constraints.empty()
			return nothing
		if isinstance(ty1, IntType) and isinstance(ty2, IntType):
			return int_type_glb(ty1, ty2), constraints.empty()

		if is_list_type(ty1) and is_list_type(ty2):
			empty1, elem1, term1 = list_view(ty1)
			empty2, elem2, term2 = list_view(ty2)
			elem, cs1 = self.glb(elem1, elem2, seen)
			term, cs2 = self.glb(term1, term2, seen)
			return from_list_view(_meet_emptiness(empty1, empty2), elem, term), constraints.combine(cs1, cs2)

		if isinstance(ty1, TupleType) and isinstance(ty2, TupleType):
			if ty1.elements is None: return ty2, constraints.empty()
			if ty2.elements is None: return ty1, constraints.empty()
			if len(ty1.elements) != len(ty2.elements): return nothing
			elements, css = [], []
			for a, b in zip(ty1.elements, ty2.elements):
				ty, cs = self.glb(a, b, seen)
				if ty == NONE: return nothing
				elements.append(ty)
				css.append(cs)
			return TupleType(elements), constraints.combine(css)

		if isinstance(ty1, RecordType) and isinstance(ty2, TupleType) and ty2.elements is None:
			return ty1, constraints.empty()
		if isinstance(ty2, RecordType) and isinstance(ty1, TupleType) and ty1.elements is None:
			return ty2, constraints.empty()
		if isinstance(ty1, RecordType) and isinstance(ty2, RecordType): return nothing

		if isinstance(ty1, MapType) and isinstance(ty2, MapType):
			return self.glb_maps(ty1, ty2, seen)

		if isinstance(ty1, BinaryType) and isinstance(ty2, BinaryType):
			if subtype(ty1, ty2, self.env) is not None: return ty1, constraints.empty()
			if subtype(ty2, ty1, self.env) is not None: return ty2, constraints.empty()
			return nothing

		if isinstance(ty1, FunType) and isinstance(ty2, FunType):
			return self.glb_funs(ty1, ty2, seen)

		if isinstance(ty1, BuiltinType) and isinstance(ty2, BuiltinType):
			if ty1.name == ty2.name and len(ty1.args) == len(ty2.args):
				args, css = [], []
				for a, b in zip(ty1.args, ty2.args):
					ty, cs = self.glb(a, b, seen)
					args.append(ty)
					css.append(cs)
				return BuiltinType(ty1.name, args), constraints.combine(css)
		return nothing

	@staticmethod
	def _distribute(members, step) -> tuple[GradualType, Constraints]:
		results = [step(m) for m in members]
		return UnionType([ty for ty, _ in results]), constraints.combine(cs for _, cs in results)

	def glb_maps(self, ty1:MapType, ty2:MapType, seen) -> tuple[GradualType, Constraints]:
		if is_any_map(ty1): return ty2, constraints.empty()
		if is_any_map(ty2): return ty1, constraints.empty()
		if has_overlapping_keys(ty1, self.env) or has_overlapping_keys(ty2, self.env):
			return NONE, constraints.empty()
		assocs, css = [], []
		for a1 in ty1.assocs:
			for a2 in ty2.assocs:
				assoc, cs = self.glb_assoc(a1, a2, seen)
				if assoc is not NONE:
					assocs.append(assoc)
					css.append(cs)
		if not assocs: return NONE, constraints.empty()
		return MapType(assocs), constraints.combine(css)

	def glb_assoc(self, a1:AssocType, a2:AssocType, seen):
		exact = a1.exact or a2.exact
		key, cs1 = self._glb_part(exact, a1.key, a2.key, seen)
		value, cs2 = self._glb_part(exact, a1.value, a2.value, seen)
		if key == NONE or value == NONE: return NONE, constraints.empty()
		return AssocType(exact, key, value), constraints.combine(cs1, cs2)

	def _glb_part(self, exact, t1, t2, seen) -> tuple[GradualType, Constraints]:
		""" When the result is exact, an any() on one side gives way to whatever the other side says. """
		if exact and t2 == ANY: return t1, constraints.empty()
		if exact and t1 == ANY: return t2, constraints.empty()
		if t1 == ANY and t2 == ANY: return ANY, constraints.empty()
		return self.glb(t1, t2, seen)

	def glb_funs(self, ty1:FunType, ty2:FunType, seen) -> tuple[GradualType, Constraints]:
		if ty1.args is not None and ty2.args is not None:
			result, cs = self.glb(ty1.result, ty2.result, seen)
			args1, args2 = list(ty1.args), list(ty2.args)
			cs1 = subtypes(args1, args2, self.env)
			if cs1 is not None and cs1.is_empty(): return FunType(args2, result), cs
			cs2 = subtypes(args2, args1, self.env)
			if cs2 is not None and cs2.is_empty(): return FunType(args1, result), cs
			return NONE, constraints.empty()
		if ty1.args is None and ty2.args is None:
			result, cs = self.glb(ty1.result, ty2.result, seen)
			return FunType(None, result), cs
		if ty1.args is None: return self.glb(FunType(ty2.args, ty1.result), ty2, seen)
		return self.glb(ty1, FunType(ty1.args, ty2.result), seen)

def _meet_emptiness(e1:str, e2:str) -> str:
	if e1 == e2: return e1
	if e1 == "any": return e2
	if e2 == "any": return e1
	return "none"
