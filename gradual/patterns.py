"""
Patterns: checking them against types, and binding their variables.

A pattern goes against a type and three things come out, plus constraints:

	* The pattern type: the part of the input type this pattern certainly
	  exhausts. A variable or wildcard exhausts everything. A literal exhausts
	  exactly its singleton. A tuple of exhaustive patterns exhausts a tuple.
	  Anything fancier (a float, a binary, a string) exhausts none(), which
	  is the safe answer. Clause lists subtract these to find what's left over.

	* The upper bound: what a value must look like, having matched. This is
	  how `{ok, X} = Result` learns something about Result.

	* The new variable environment.

Variables bound for the first time take the type they're matched against.
Variables already bound get narrowed (glb) by the new type, and an empty
intersection means the match can never succeed.

A variable that occurs more than once among a list of patterns is not a
wildcard, even the first time. So before anything else, those get top() in
the environment, and from then on each occurrence narrows it.
"""
from boozetools.support.foundation import Visitor
from .calculus import (
	GradualType, TypeVar, UnionType, TupleType, ListType, MapType, AssocType, RecordType,
	ANY, TOP, NONE, NIL, FLOAT, STRING, AtomType, integer, union,
)
from .constraints import Constraints
from . import constraints, errors, syntax
from .environment import field_type
from .normalize import normalize
from .subtype import subtype
from .glb import glb
from .shapes import expect_tuple_type, expect_list_type, expect_record_type, WrongShape
from .bitsyntax import compute_type, type_of_bin_element

VEnv = dict[str, GradualType]

def add_types_pats(pats, tys, env, venv:VEnv, binding:bool) -> tuple[list[GradualType], list[GradualType], VEnv, Constraints]:
	"""
	Match each pattern against the corresponding type.
	With binding=True (as for function heads) every variable is fresh; repeats must agree.
	With binding=False (as for case clauses) variables already in scope are matched against.
	"""
	venv = _prepare_repeated_vars(pats, venv, binding)
	return _add_types_pats(pats, tys, env, venv)

def _add_types_pats(pats, tys, env, venv:VEnv):
	typer = _PatternTyper(env)
	pat_tys, ubounds, css = [], [], []
	for pat, ty in zip(pats, tys):
		norm = normalize(ty, env)
		try: pat_ty, ubound, venv, cs = typer.add(pat, norm, venv)
		except errors.TypeMismatch as e:
			if e.expected == norm: e.expected = ty
			raise
		# The type as given reads better than its normal form.
		pat_tys.append(ty if pat_ty == norm else pat_ty)
		ubounds.append(ty if ubound == norm else ubound)
		css.append(cs)
	return pat_tys, ubounds, venv, constraints.combine(css)

def add_type_pat(pat, ty:GradualType, env, venv:VEnv) -> tuple[GradualType, GradualType, VEnv, Constraints]:
	""" For a single pattern against an already-normalized type. """
	return _PatternTyper(env).add(pat, ty, venv)

def _prepare_repeated_vars(pats, venv:VEnv, binding:bool) -> VEnv:
	counts = count_var_occurrences(pats)
	venv = dict(venv)
	for name, n in counts.items():
		if n > 1:
			if binding or name not in venv: venv[name] = TOP
		elif binding:
			venv.pop(name, None)
	return venv

###########################################################################

class _PatternTyper(Visitor):
	def __init__(self, env):
		self.env = env

	def add(self, pat, ty, venv):
		if isinstance(ty, UnionType) and not isinstance(pat, syntax.Var):
			return self.add_union(pat, ty, venv)
		return self.visit(pat, ty, venv)

	def add_union(self, pat, ty:UnionType, venv):
		pat_tys, ubounds, venvs, css = [], [], [], []
		for member in ty.members:
			try: pat_ty, ubound, new_venv, cs = self.add(pat, normalize(member, self.env), venv)
			except errors.TypeCheckError: continue
			pat_tys.append(pat_ty)
			ubounds.append(ubound)
			venvs.append(new_venv)
			css.append(cs)
		if not pat_tys: raise errors.TypeMismatch(pat, None, ty, "pattern")
		# Each pattern type is matched completely within its own member,
		# so the union of them is matched completely within the whole.
		return (
			normalize(UnionType(pat_tys), self.env),
			normalize(UnionType(ubounds), self.env),
			union_var_binds(venvs, self.env),
			constraints.combine(css),
		)

	def _literal(self, pat, lit_ty, ty, venv, exhausts=True):
		cs = subtype(lit_ty, ty, self.env)
		if cs is None: raise errors.TypeMismatch(pat, lit_ty, ty, "pattern")
		return (lit_ty if exhausts else NONE), lit_ty, venv, cs

	def visit_Var(self, pat:syntax.Var, ty, venv):
		if pat.is_wildcard(): return ty, ty, venv, constraints.empty()
		if pat.name in venv:
			known = venv[pat.name]
			refined, cs = glb(known, ty, self.env)
			if refined == NONE: raise errors.TypeMismatch(pat, known, ty)
			return NONE, refined, {**venv, pat.name: refined}, cs
		return ty, ty, {**venv, pat.name: ty}, constraints.empty()

	def visit_Integer(self, pat:syntax.Integer, ty, venv): return self._literal(pat, integer(pat.value), ty, venv)
	def visit_Char(self, pat:syntax.Char, ty, venv): return self._literal(pat, integer(pat.value), ty, venv)
	def visit_Atom(self, pat:syntax.Atom, ty, venv): return self._literal(pat, AtomType(pat.value), ty, venv)
	def visit_Nil(self, pat:syntax.Nil, ty, venv): return self._literal(pat, NIL, ty, venv)
	def visit_Float(self, pat:syntax.Float, ty, venv): return self._literal(pat, FLOAT, ty, venv, exhausts=False)

	def visit_String(self, pat:syntax.String, ty, venv):
		cs = subtype(STRING, ty, self.env)
		if cs is None: raise errors.TypeMismatch(pat, STRING, ty, "pattern")
		return NONE, normalize(STRING, self.env), venv, cs

	def visit_Tuple(self, pat:syntax.Tuple, ty, venv):
		try: alternatives, cs = expect_tuple_type(ty, len(pat.elements))
		except WrongShape: raise errors.TypeMismatch(pat, None, ty, "pattern") from None
		if alternatives is None:
			return NONE, ty, add_any_types_pats(pat.elements, venv), constraints.empty()
		pat_tys, ubounds, venv, cs1 = _add_types_pats(pat.elements, alternatives[0], self.env, venv)
		return TupleType(pat_tys), TupleType(ubounds), venv, constraints.combine(cs, cs1)

	def visit_Cons(self, pat:syntax.Cons, ty, venv):
		try: elems, cs1 = expect_list_type(ty, False, self.env)
		except WrongShape: raise errors.TypeMismatch(pat, None, ty, "cons_pat") from None
		if elems is None:
			venv = add_any_types_pat(pat.head, venv)
			cs2 = constraints.empty()
		else:
			_, _, venv, cs2 = self.add(pat.head, normalize(union(*elems), self.env), venv)
		tail_ty = normalize(UnionType([ty, NIL]), self.env)
		_, _, venv, cs3 = self.add(pat.tail, tail_ty, venv)
		nonempty = _nonempty(ty)
		return nonempty, nonempty, venv, constraints.combine(cs1, cs2, cs3)

	def visit_Bin(self, pat:syntax.Bin, ty, venv):
		bin_ty = compute_type(pat)
		cs = subtype(bin_ty, ty, self.env)
		if cs is None: raise errors.TypeMismatch(pat, bin_ty, ty)
		css = [cs]
		for elem in pat.elements:
			elem_ty = normalize(type_of_bin_element(elem, True), self.env)
			_, _, venv, cs = self.add(elem.value, elem_ty, venv)
			css.append(cs)
		return NONE, bin_ty, venv, constraints.combine(css)

	def visit_RecordExpr(self, pat:syntax.RecordExpr, ty, venv):
		try: alternatives, cs = expect_record_type(ty, pat.name, self.env)
		except WrongShape: raise errors.TypeMismatch(pat, None, ty, "record_pattern") from None
		if alternatives is None:
			return NONE, ty, add_any_types_pats([f.value for f in pat.fields], venv), constraints.empty()
		declared = alternatives[0]
		given = {f.name: f.value for f in pat.fields}
		default = given.pop("_", syntax.Var("_"))
		for name in given:
			if name not in [d.name for d in declared]: raise errors.UndefinedField(pat, pat.name, name)
		names = [d.name for d in declared]
		module = ty.module if isinstance(ty, RecordType) else None
		pat_tys, ubounds, venv, cs1 = _add_types_pats(
			[given.get(name, default) for name in names],
			[field_type(d) for d in declared],
			self.env, venv,
		)
		return (
			RecordType(pat.name, zip(names, pat_tys), module),
			RecordType(pat.name, zip(names, ubounds), module),
			venv,
			constraints.combine(cs, cs1),
		)

	def visit_MapExpr(self, pat:syntax.MapExpr, ty, venv):
		if ty == ANY:
			return NONE, ty, add_any_types_pat(pat, venv), constraints.empty()
		if isinstance(ty, TypeVar):
			cs = constraints.add_var(ty.name, constraints.upper(ty.name, MapType([AssocType(False, ANY, ANY)])))
			return NONE, ty, add_any_types_pat(pat, venv), cs
		if ty == TOP:
			return self.visit_MapExpr(pat, MapType([AssocType(False, TOP, TOP)]), venv)
		if not isinstance(ty, MapType): raise errors.TypeMismatch(pat, None, ty, "pattern")
		css = []
		for field in pat.assocs:
			value_ty, cs1 = self._map_key(field.key, ty, venv)
			_, _, venv, cs2 = self.add(field.value, normalize(value_ty, self.env), venv)
			css.extend([cs1, cs2])
		exacts = MapType(AssocType(True, a.key, a.value) for a in ty.assocs)
		return exacts, ty, venv, constraints.combine(css)

	def _map_key(self, key, ty:MapType, venv) -> tuple[GradualType, Constraints]:
		""" The value type for the first association whose key type accepts the key pattern. """
		for assoc in ty.assocs:
			try: _, _, _, cs = add_types_pats([key], [assoc.key], self.env, venv, False)
			except errors.TypeCheckError: continue
			return assoc.value, cs
		raise errors.TypeMismatch(key, None, ty, "badkey")

	def visit_Match(self, pat:syntax.Match, ty, venv):
		# Narrow with the non-variable side first, so a variable gets the refined type.
		if isinstance(pat.pattern, syntax.Var): first, second = pat.expr, pat.pattern
		elif isinstance(pat.expr, syntax.Var): first, second = pat.pattern, pat.expr
		else: first, second = pat.expr, pat.pattern
		pat_ty1, ty1, venv, cs1 = self.add(first, ty, venv)
		pat_ty2, ty2, venv, cs2 = self.add(second, normalize(ty1, self.env), venv)
		meet, cs3 = glb(pat_ty1, pat_ty2, self.env)
		return meet, ty2, venv, constraints.combine(cs1, cs2, cs3)

	def visit_BinaryOp(self, pat:syntax.BinaryOp, ty, venv):
		if pat.op == '++':
			_, _, venv, cs1 = self.add(pat.lhs, ty, venv)
			_, _, venv, cs2 = self.add(pat.rhs, ty, venv)
			return NONE, ty, venv, constraints.combine(cs1, cs2)
		return self._constant(pat, ty, venv)

	def visit_UnaryOp(self, pat:syntax.UnaryOp, ty, venv): return self._constant(pat, ty, venv)

	def _constant(self, pat, ty, venv):
		""" The compiler folds operator patterns down to a literal, so the checker does too. """
		literal = evaluate_constant(pat)
		try: return self.add(literal, ty, venv)
		except errors.TypeCheckError: raise errors.TypeMismatch(pat, None, ty, "operator_pattern") from None

	def visit_Expression(self, pat, ty, venv): raise errors.IllegalPattern(pat)

def _nonempty(ty:GradualType) -> GradualType:
	if isinstance(ty, ListType): return ListType(True, ty.elem, ty.term)
	return ty

###########################################################################

class _Evaluate(Visitor):
	def visit_Integer(self, x:syntax.Integer): return x.value
	def visit_Char(self, x:syntax.Char): return x.value
	def visit_Float(self, x:syntax.Float): return x.value
	def visit_UnaryOp(self, x:syntax.UnaryOp):
		arg = self.visit(x.arg)
		if x.op == '-': return -arg
		if x.op == '+': return arg
		if x.op == 'bnot' and isinstance(arg, int): return ~arg
		raise errors.IllegalPattern(x)
	def visit_BinaryOp(self, x:syntax.BinaryOp):
		a, b = self.visit(x.lhs), self.visit(x.rhs)
		try: return _apply(x.op, a, b)
		except (KeyError, ZeroDivisionError, TypeError): raise errors.IllegalPattern(x) from None
	def visit_Expression(self, x): raise errors.IllegalPattern(x)

def _div(a:int, b:int) -> int:
	""" Integer division truncating toward zero. """
	q = abs(a) // abs(b)
	return q if (a < 0) == (b < 0) else -q

def _rem(a:int, b:int) -> int:
	return a - b * _div(a, b)

def _int_only(f):
	def g(a, b):
		if not (isinstance(a, int) and isinstance(b, int)): raise TypeError(f)
		return f(a, b)
	return g

_OPERATORS = {
	'+': lambda a, b: a + b,
	'-': lambda a, b: a - b,
	'*': lambda a, b: a * b,
	'/': lambda a, b: a / b,
	'div': _int_only(_div),
	'rem': _int_only(_rem),
	'band': _int_only(lambda a, b: a & b),
	'bor': _int_only(lambda a, b: a | b),
	'bxor': _int_only(lambda a, b: a ^ b),
	'bsl': _int_only(lambda a, b: a << b if b >= 0 else a >> -b),
	'bsr': _int_only(lambda a, b: a >> b if b >= 0 else a << -b),
}

def _apply(op, a, b): return _OPERATORS[op](a, b)

def evaluate_constant(pat) -> syntax.Literal:
	""" Fold an operator pattern like `-1` or `1 bsl 8` down to the literal it means. """
	value = _Evaluate().visit(pat)
	literal = syntax.Float(value) if isinstance(value, float) else syntax.Integer(value)
	return literal.at(pat.spot)

###########################################################################

class _VarCounter(Visitor):
	def __init__(self):
		self.counts = {}
	def visit_Var(self, x:syntax.Var):
		if not x.is_wildcard(): self.counts[x.name] = self.counts.get(x.name, 0) + 1
	def visit_Literal(self, x): pass
	def visit_Match(self, x:syntax.Match):
		self.visit(x.pattern)
		self.visit(x.expr)
	def visit_Tuple(self, x:syntax.Tuple):
		for e in x.elements: self.visit(e)
	def visit_Cons(self, x:syntax.Cons):
		self.visit(x.head)
		self.visit(x.tail)
	def visit_Bin(self, x:syntax.Bin):
		for e in x.elements:
			self.visit(e.value)
			if e.size is not None: self.visit(e.size)
	def visit_UnaryOp(self, x:syntax.UnaryOp): self.visit(x.arg)
	def visit_BinaryOp(self, x:syntax.BinaryOp):
		self.visit(x.lhs)
		self.visit(x.rhs)
	def visit_RecordExpr(self, x:syntax.RecordExpr):
		for f in x.fields: self.visit(f.value)
	def visit_MapExpr(self, x:syntax.MapExpr):
		for a in x.assocs:
			self.visit(a.key)
			self.visit(a.value)
	def visit_Expression(self, x): pass

def count_var_occurrences(pats) -> dict[str, int]:
	counter = _VarCounter()
	for p in pats: counter.visit(p)
	return counter.counts

class _AnyTypes(Visitor):
	""" Bind every variable in a pattern to any(), as when matching against any(). """
	def visit_Var(self, x:syntax.Var, venv):
		if x.is_wildcard(): return venv
		return {**venv, x.name: ANY}
	def visit_Literal(self, x, venv): return venv
	def visit_Match(self, x:syntax.Match, venv): return self.visit(x.expr, self.visit(x.pattern, venv))
	def visit_Cons(self, x:syntax.Cons, venv): return self.visit(x.tail, self.visit(x.head, venv))
	def visit_Tuple(self, x:syntax.Tuple, venv): return add_any_types_pats(x.elements, venv)
	def visit_RecordExpr(self, x:syntax.RecordExpr, venv): return add_any_types_pats([f.value for f in x.fields], venv)
	def visit_MapExpr(self, x:syntax.MapExpr, venv):
		return add_any_types_pats([p for a in x.assocs for p in (a.key, a.value)], venv)
	def visit_Bin(self, x:syntax.Bin, venv): return add_any_types_pats([e.value for e in x.elements], venv)
	def visit_BinaryOp(self, x:syntax.BinaryOp, venv):
		# Only the right side of `"prefix" ++ Rest` can hold variables.
		if x.op == '++': return self.visit(x.rhs, venv)
		return venv
	def visit_UnaryOp(self, x, venv): return venv
	def visit_Expression(self, x, venv): raise errors.IllegalPattern(x)

def add_any_types_pat(pat, venv:VEnv) -> VEnv:
	return _AnyTypes().visit(pat, venv)

def add_any_types_pats(pats, venv:VEnv) -> VEnv:
	for p in pats: venv = add_any_types_pat(p, venv)
	return venv

###########################################################################
# Merging variable bindings

def _merge_with(combine, vb1:VEnv, vb2:VEnv) -> VEnv:
	result = dict(vb1)
	for name, ty in vb2.items():
		result[name] = combine(result[name], ty) if name in result else ty
	return result

def union_var_binds(var_binds:list[VEnv], env) -> VEnv:
	"""
	Bindings from subexpressions evaluated one after another (or alternatives that all
	apply): a variable bound in several must be in all those types at once.
	"""
	def meet(t1, t2): return glb(t1, t2, env)[0]
	result = {}
	for vb in var_binds: result = _merge_with(meet, result, vb)
	return result

def union_var_binds_symmetrical(var_binds:list[VEnv], env) -> VEnv:
	"""
	Bindings from alternatives of which any one might apply, as in `orelse` guards:
	only variables bound in every alternative survive, at the union of their types.
	"""
	if not var_binds: return {}
	result = var_binds[0]
	for vb in var_binds[1:]:
		result = {name: normalize(UnionType([ty, vb[name]]), env) for name, ty in result.items() if name in vb}
	return result

def add_var_binds(venv:VEnv, var_binds:VEnv, env) -> VEnv:
	return union_var_binds([venv, var_binds], env)
