"""
Lists of clauses, as in functions, case, if, receive, and try.

Checking a clause list threads two things from one clause to the next:

	* The argument types, refined. Whatever a guard-free clause matches
	  completely, the later clauses will never see. Once the refined
	  argument types are all none(), any further clause is unreachable.
	  If they're not all none() at the end, and the argument types were
	  closed enough to enumerate, then the clauses are not exhaustive.

	* The variable environment. A clause guarded by `is_TYPE(X)` on a
	  variable X that was already bound, if it fails to match, tells
	  the next clause that X is not a TYPE.

Exhaustiveness doesn't even try in the presence of guards. Guards can say
anything, and the checker can't tell what they leave behind.
"""
from .calculus import GradualType, TupleType, UnionType, ANY, NONE
from . import constraints, errors, syntax
from .normalize import normalize
from .refine import type_diff, refinable, pick_value
from .shapes import FunAny, FunTy, FunAnyArgs, FunIntersect, FunUnion
from .patterns import add_types_pats, add_any_types_pats, union_var_binds, add_var_binds
from . import guards, inference, checking

def check_clauses(env, args_ty, res_ty:GradualType, clause_list, binding:bool):
	"""
	Argument types of None mean any() for however many patterns the clauses have.
	With binding=True (function clauses) pattern variables are all fresh. Otherwise
	(case clauses and such) a variable already in scope gets matched against.
	"""
	if not clause_list: return {}, constraints.empty()
	if args_ty is None:
		args_ty = [ANY] * len(clause_list[0].patterns)
		enumerable = False
	else:
		args_ty = list(args_ty)
		enumerable = True
	var_binds, css, refined, venv = [], [], args_ty, env.venv
	for clause in clause_list:
		refined, vb, cs = check_clause(env.with_venv(venv), refined, res_ty, clause, binding)
		venv = refine_vars_by_mismatching_clause(clause, venv, env)
		var_binds.append(vb)
		css.append(cs)
	if enumerable: check_exhaustiveness(env, args_ty, clause_list, refined)
	return union_var_binds(var_binds, env), constraints.combine(css)

def check_exhaustiveness(env, args_ty, clause_list, refined):
	if not env.options.exhaustiveness: return
	if not all(refinable(t, env) for t in args_ty): return
	if not all(no_guards(c) for c in clause_list): return
	if any(t != NONE for t in refined):
		raise errors.NonExhaustive(clause_list[0], pick_value(refined, env))

def no_guards(clause:syntax.Clause) -> bool:
	return not clause.guards

def check_clause(env, args_ty, res_ty:GradualType, clause:syntax.Clause, binding:bool):
	"""
	Returns the argument types refined by what this clause certainly matches,
	along with the bindings and constraints.
	"""
	if args_ty and args_ty[0] == NONE: raise errors.UnreachableClause(clause)
	if len(args_ty) != len(clause.patterns): raise errors.ArityMismatch(clause, len(args_ty), len(clause.patterns))
	if env.options.verbose: env.info("Checking clause ::", res_ty)
	pat_tys, _, venv, cs1 = add_types_pats(clause.patterns, args_ty, env, env.venv, binding)
	inner = env.with_venv(venv)
	guard_binds = guards.check_guards(inner, clause.guards)
	body_env = inner.with_venv(add_var_binds(venv, guard_binds, env))
	body_binds, cs2 = checking.check_block_in(body_env, res_ty, clause.body)
	refined = refine_clause_arg_tys(args_ty, pat_tys, clause.guards, env)
	refined = refine_mismatch_using_guards(refined, clause, env.venv, env)
	return refined, union_var_binds([guard_binds, body_binds, venv], env), constraints.combine(cs1, cs2)

def refine_clause_arg_tys(tys, matched_tys, clause_guards, env) -> list[GradualType]:
	""" Subtract what a guard-free clause matched from the argument types, as a tuple. """
	if clause_guards: return tys
	diff = type_diff(TupleType(tys), TupleType(matched_tys), env)
	if isinstance(diff, TupleType) and diff.elements is not None: return list(diff.elements)
	if diff == NONE: return [NONE] * len(tys)
	# Several possibilities: don't refine.
	return tys

def _single_type_test(clause:syntax.Clause):
	""" The (function, args) of a guard like `when is_TYPE(Var)`, if that's all the guard is. """
	if len(clause.guards) != 1 or len(clause.guards[0]) != 1: return None
	test = clause.guards[0][0]
	if not isinstance(test, syntax.Call) or not isinstance(test.callee, syntax.Atom): return None
	if len(test.args) != 1 or not isinstance(test.args[0], syntax.Var): return None
	return test.callee.value, test.args

def refine_mismatch_using_guards(pat_tys, clause:syntax.Clause, venv, env) -> list[GradualType]:
	"""
	If a clause's patterns can't fail, and its guard is a type test on a
	variable freshly bound by one of them, then when the guard fails, the
	corresponding argument is not that type.
	"""
	test = _single_type_test(clause)
	if test is None: return pat_tys
	fun, args = test
	name = args[0].name
	if name in venv or not are_patterns_matching_all_input(clause.patterns, venv): return pat_tys
	guard_ty = guards.check_guard_call(fun, args).get(name)
	if guard_ty is None: return pat_tys
	return [
		type_diff(ty, guard_ty, env) if isinstance(p, syntax.Var) and p.name == name else ty
		for ty, p in zip(pat_tys, clause.patterns)
	]

def refine_vars_by_mismatching_clause(clause:syntax.Clause, venv, env):
	""" As above, but for a variable bound before the clause. """
	test = _single_type_test(clause)
	if test is None or not are_patterns_matching_all_input(clause.patterns, venv): return venv
	fun, args = test
	name = args[0].name
	guard_ty = guards.check_guard_call(fun, args).get(name)
	if name not in venv or guard_ty is None: return venv
	return {**venv, name: type_diff(venv[name], guard_ty, env)}

def are_patterns_matching_all_input(pats, venv) -> bool:
	""" True when every pattern is a wildcard or a distinct variable not yet bound. """
	seen = set(venv)
	for p in pats:
		if not isinstance(p, syntax.Var): return False
		if p.is_wildcard(): continue
		if p.name in seen: return False
		seen.add(p.name)
	return True

###########################################################################

def infer_clause(env, clause:syntax.Clause):
	venv = add_any_types_pats(clause.patterns, env.venv)
	inner = env.with_venv(venv)
	# Guards get inferred for the sake of finding errors in them; what they bind is discarded.
	for guard in clause.guards:
		for test in guard: inference.infer(inner, test)
	ty, var_binds, cs = inference.infer_block(inner, clause.body)
	return ty, union_var_binds([var_binds, venv], env), cs

def infer_clauses(env, clause_list):
	results = [infer_clause(env, c) for c in clause_list]
	return (
		normalize(UnionType([ty for ty, _, _ in results]), env),
		union_var_binds([vb for _, vb, _ in results], env),
		constraints.combine(cs for _, _, cs in results),
	)

###########################################################################

def check_clauses_fun(env, shape, clause_list):
	""" Function clauses against the shape of the function's type. """
	if isinstance(shape, FunTy):
		var_binds, cs = check_clauses(env, shape.args, shape.result, clause_list, binding=True)
		return var_binds, constraints.combine(shape.cs, cs)
	if isinstance(shape, FunAnyArgs):
		var_binds, cs = check_clauses(env, None, shape.result, clause_list, binding=True)
		return var_binds, constraints.combine(shape.cs, cs)
	if isinstance(shape, FunAny):
		return check_clauses(env, None, ANY, clause_list, binding=True)
	if isinstance(shape, FunIntersect):
		var_binds, cs = check_clauses_intersect(env, shape.alternatives, clause_list)
		return var_binds, constraints.combine(shape.cs, cs)
	assert isinstance(shape, FunUnion), shape
	var_binds, cs = check_clauses_union(env, shape.alternatives, clause_list)
	return var_binds, constraints.combine(shape.cs, cs)

def check_clauses_intersect(env, alternatives, clause_list):
	""" A function with a multi-clause spec has to live up to every clause. """
	results = [check_clauses_fun(env, shape, clause_list) for shape in alternatives]
	return union_var_binds([vb for vb, _ in results], env), constraints.combine(cs for _, cs in results)

def check_clauses_union(env, alternatives, clause_list):
	""" A fun expected to be one of several types need only be one of them. """
	for shape in alternatives:
		try: return check_clauses_fun(env, shape, clause_list)
		except errors.TypeCheckError: continue
	raise errors.TypeMismatch(clause_list[0], None, None, "check_clauses")
