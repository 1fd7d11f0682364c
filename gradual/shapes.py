"""
Looking at a type as a particular shape.

To check a cons cell against some type, first you need to know what the
elements of that type are supposed to be. Likewise for tuples, records, and
function calls. These helpers answer that sort of question. Each one:

	* returns None when the type is any(), meaning there's nothing to check against;
	* returns the alternatives when the type (a union, say) could be the shape several ways;
	* mints fresh type variables, with constraints, when the type is itself a variable;
	* raises WrongShape when the type can't be that shape at all.

Callers usually normalize first; expect_fun_type normalizes on its own,
because it's the one callers hand un-normalized specs.
"""
from typing import NamedTuple, Optional, Union
from .calculus import (
	GradualType, TypeVar, UnionType, TupleType, ListType, FunType, BoundedFun, FunIntersection,
	MapType, AssocType, RecordType, IntType, integer, union,
	ANY, TOP, NIL, ANY_ASSOC, is_any_map, is_list_type, list_view, list_of, nonempty_list_of,
)
from .constraints import Constraints
from . import constraints, errors
from .environment import new_type_var
from .normalize import normalize
from .syntax import RecordFieldDef
from .bounds import bounded_type_subst, subst_ty

class WrongShape(Exception):
	def __init__(self, ty:GradualType):
		super().__init__(ty)
		self.ty = ty

def expect_list_type(ty:GradualType, allow_nil:bool, env) -> tuple[Optional[list[GradualType]], Constraints]:
	""" Element types, or None if anything goes. """
	if ty == ANY: return None, constraints.empty()
	if isinstance(ty, ListType):
		if ty.elem == ANY: return None, constraints.empty()
		return [ty.elem], constraints.empty()
	if ty == TOP: return [TOP], constraints.empty()
	if ty == NIL:
		if allow_nil: return None, constraints.empty()
		raise WrongShape(ty)
	if isinstance(ty, UnionType):
		elems, css, saw_any = [], [], False
		for m in ty.members:
			try: found, cs = expect_list_type(normalize(m, env), allow_nil, env)
			except WrongShape: continue
			if found is None: saw_any = True
			else:
				elems.extend(found)
				css.append(cs)
		if saw_any: elems.append(ANY)
		if not elems: raise WrongShape(ty)
		return elems, constraints.combine(css)
	if isinstance(ty, TypeVar):
		elem = new_type_var()
		return [elem], constraints.add_var(elem.name, constraints.upper(ty.name, list_of(elem)))
	raise WrongShape(ty)

def expect_tuple_type(ty:GradualType, n:int) -> tuple[Optional[list[list[GradualType]]], Constraints]:
	""" Each alternative is a list of n element types. None means anything goes. """
	if ty == ANY or ty == TupleType(None): return None, constraints.empty()
	if isinstance(ty, TupleType):
		if len(ty.elements) == n: return [list(ty.elements)], constraints.empty()
		raise WrongShape(ty)
	if ty == TOP: return [[TOP] * n], constraints.empty()
	if isinstance(ty, UnionType):
		alternatives, css, saw_any = [], [], False
		for m in ty.members:
			try: found, cs = expect_tuple_type(m, n)
			except WrongShape: continue
			if found is None: saw_any = True
			else:
				alternatives.extend(found)
				css.append(cs)
		if saw_any: alternatives.insert(0, [ANY] * n)
		if not alternatives: raise WrongShape(ty)
		return alternatives, constraints.combine(css)
	if isinstance(ty, TypeVar):
		fresh = [new_type_var() for _ in range(n)]
		cs = constraints.upper(ty.name, TupleType(fresh))
		for v in fresh: cs = constraints.add_var(v.name, cs)
		return [fresh], cs
	raise WrongShape(ty)

def expect_record_type(ty:GradualType, name:str, env) -> tuple[Optional[list[list[RecordFieldDef]]], Constraints]:
	""" Each alternative is a list of field definitions, with refined types where the type refines them. """
	if ty == ANY or ty == TOP or ty == TupleType(None): return None, constraints.empty()
	if isinstance(ty, RecordType) and ty.name == name:
		declared = env.record_fields(name, ty.module)
		if ty.fields is None: return [declared], constraints.empty()
		refined = dict(ty.fields)
		fields = [RecordFieldDef(f.name, refined.get(f.name, f.type), f.default) for f in declared]
		return [fields], constraints.empty()
	if isinstance(ty, UnionType):
		alternatives, css = [], []
		for m in ty.members:
			try: found, cs = expect_record_type(m, name, env)
			except WrongShape: continue
			if found is None: return None, constraints.empty()
			alternatives.extend(found)
			css.append(cs)
		if not alternatives: raise WrongShape(ty)
		return alternatives, constraints.combine(css)
	if isinstance(ty, TypeVar):
		declared = env.record_fields(name)
		return [declared], constraints.upper(ty.name, RecordType(name))
	raise WrongShape(ty)

def allow_empty_list(ty:GradualType) -> GradualType:
	""" The type of the tail of a cons cell whose whole type is given. """
	if isinstance(ty, ListType) and ty.nonempty and ty.term == NIL: return list_of(ty.elem)
	if is_list_type(ty): return union(ty, list_view(ty)[2])
	return ty

def infer_literal_string(text:str, env) -> GradualType:
	if not text: return NIL
	chars = sorted(set(ord(c) for c in text))
	if len(chars) <= 10:
		return nonempty_list_of(normalize(UnionType(integer(c) for c in chars), env))
	return nonempty_list_of(IntType(chars[0], chars[-1]))

def update_map_type(ty:GradualType, assoc_tys:list[AssocType], node=None) -> GradualType:
	"""
	The type of a map after creating or updating the given associations.
	After evaluation, the map certainly has those keys, so they come out exact.
	"""
	if ty == ANY or is_any_map(ty):
		# The original could have any keys, so an optional any() => any() goes last.
		return MapType(_update_assocs(assoc_tys, []) + [ANY_ASSOC])
	if isinstance(ty, MapType): return MapType(_update_assocs(assoc_tys, list(ty.assocs)))
	if isinstance(ty, TypeVar): return ANY
	if isinstance(ty, UnionType): return UnionType(update_map_type(m, assoc_tys, node) for m in ty.members)
	raise errors.IllegalMapType(node, ty)

def _update_assocs(assoc_tys:list[AssocType], assocs:list[AssocType]) -> list[AssocType]:
	result = []
	for a in assoc_tys:
		result.append(AssocType(True, a.key, a.value))
		assocs = [b for b in assocs if b.key != a.key]
	return result + assocs

###########################################################################
# Function shapes

class FunAny(NamedTuple):
	""" Nothing is known about the function. """

class FunTy(NamedTuple):
	args: list[GradualType]
	result: GradualType
	cs: Constraints

class FunAnyArgs(NamedTuple):
	result: GradualType
	cs: Constraints

class FunIntersect(NamedTuple):
	alternatives: list
	cs: Constraints

class FunUnion(NamedTuple):
	alternatives: list
	cs: Constraints

FunShape = Union[FunAny, FunTy, FunAnyArgs, FunIntersect, FunUnion]

def expect_fun_type(env, ty:GradualType) -> FunShape:
	""" Raises WrongShape with the type as given, not as normalized, for the sake of the diagnostic. """
	try: return _expect_fun(env, normalize(ty, env))
	except WrongShape: raise WrongShape(ty) from None

def _expect_fun(env, ty:GradualType) -> FunShape:
	if isinstance(ty, BoundedFun):
		sub = bounded_type_subst(env, ty)
		return _substitute_shape(sub, _expect_fun(env, ty.fun))
	if isinstance(ty, FunType):
		if ty.args is None: return FunAnyArgs(ty.result, constraints.empty())
		return FunTy(list(ty.args), ty.result, constraints.empty())
	if isinstance(ty, FunIntersection):
		alternatives = [_expect_fun(env, normalize(c, env)) for c in ty.clauses]
		if len(alternatives) == 1: return alternatives[0]
		return FunIntersect(alternatives, constraints.empty())
	if isinstance(ty, UnionType):
		alternatives = []
		for m in ty.members:
			try: alternatives.append(_expect_fun(env, normalize(m, env)))
			except WrongShape: continue
		if not alternatives: raise WrongShape(ty)
		if len(alternatives) == 1: return alternatives[0]
		return FunUnion(alternatives, constraints.empty())
	if isinstance(ty, TypeVar):
		result = new_type_var()
		cs = constraints.add_var(result.name, constraints.upper(ty.name, FunType(None, result)))
		return FunAnyArgs(result, cs)
	if ty == ANY: return FunAny()
	if ty == TOP: return FunAnyArgs(TOP, constraints.empty())
	raise WrongShape(ty)

def _substitute_shape(sub:dict, shape:FunShape) -> FunShape:
	if isinstance(shape, FunTy):
		return FunTy([subst_ty(sub, a) for a in shape.args], subst_ty(sub, shape.result), shape.cs)
	if isinstance(shape, FunAnyArgs): return FunAnyArgs(subst_ty(sub, shape.result), shape.cs)
	if isinstance(shape, (FunIntersect, FunUnion)):
		return type(shape)([_substitute_shape(sub, s) for s in shape.alternatives], shape.cs)
	return shape
