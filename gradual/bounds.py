"""
Bounded function types: the ones with a `when` clause.

A spec like

	-spec f(L) -> E when L :: [E], E :: integer().

defines type variables in terms of types, and perhaps in terms of each
other. Before such a spec is much use, the variables must be solved away.
Each variable's bounds get intersected (glb) after substituting whatever
has already been solved. That only works in dependency order, which is
just a topological sort of the strongly-connected components in the graph
of which variable mentions which. A variable that depends on itself,
however indirectly, is an error.

Bounds of any(), term() and top() say nothing, so they are ignored.
Variables with no bounds at all stay as variables.
"""
from boozetools.support.foundation import strongly_connected_components_hashable
from .calculus import GradualType, TypeVar, BoundedFun, FunIntersection, Rebuild, Substitute, BuiltinType, RemoteType, ANY, TOP
from .glb import glb
from . import errors

class _CyclicBounds(Exception):
	def __init__(self, variables):
		super().__init__(variables)
		self.variables = variables

class _FreeVars(Rebuild):
	def __init__(self):
		self.found = set()
	def on_var(self, v:TypeVar):
		if v.name != "_": self.found.add(v.name)
		return v

def free_vars(ty:GradualType) -> set[str]:
	collector = _FreeVars()
	collector(ty)
	return collector.found

def subst_ty(sub:dict[str, GradualType], ty:GradualType) -> GradualType:
	return Substitute(sub)(ty)

def _says_nothing(ty:GradualType) -> bool:
	return (
		ty in (ANY, TOP)
		or ty == BuiltinType("term") or ty == BuiltinType("any")
		or ty == RemoteType("gradualizer", "top")
	)

def solve_bounds(env, bounds) -> dict[str, GradualType]:
	defs:dict[str, list[GradualType]] = {}
	for name, ty in bounds:
		if not _says_nothing(ty): defs.setdefault(name, []).append(ty)
	graph = {name: sorted(set().union(*(free_vars(t) for t in tys))) for name, tys in defs.items()}
	solution = {}
	for component in strongly_connected_components_hashable(graph):
		if len(component) > 1 or component[0] in graph[component[0]]:
			raise _CyclicBounds(component)
		name = component[0]
		ty = TOP
		for bound in defs[name]:
			ty, _ = glb(subst_ty(solution, bound), ty, env)
		solution[name] = ty
	return solution

def bounded_type_subst(env, bty:BoundedFun) -> dict[str, GradualType]:
	try: return solve_bounds(env, bty.bounds)
	except _CyclicBounds as e: raise errors.CyclicConstraint(None, bty, e.variables) from None

def unfold_bounded_type(env, ty:GradualType) -> GradualType:
	""" The plain function type, with solved variables substituted throughout. """
	if isinstance(ty, BoundedFun): return subst_ty(bounded_type_subst(env, ty), ty.fun)
	return ty

def unfold_bounded_type_list(env, types) -> list[GradualType]:
	return [unfold_bounded_type(env, t) for t in types]

def bounded_type_list_to_type(env, types) -> GradualType:
	unfolded = unfold_bounded_type_list(env, types)
	if len(unfolded) == 1: return unfolded[0]
	return FunIntersection(unfolded)
