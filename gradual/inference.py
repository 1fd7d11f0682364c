"""
Inference mode: what type does this expression have?

Gradual typing means that, absent the --infer option, the answer is usually
any(). Only types that come ultimately from a spec propagate. A literal 42
is any() unless inference is on, but a call to a function with a spec has
whatever return type the spec says. This keeps the checker quiet about code
written without type annotations, which is the whole point.

Every rule returns three things:
	the type,
	the variable bindings the expression makes (as a dict),
	and the constraints on type variables it generated.

Whenever some part of an expression has a known expected type (the argument
to a function with a spec, for example) then inference hands off to the
checking mode in checking.py, which hands back only bindings and constraints.
"""
from boozetools.support.foundation import Visitor
from .calculus import (
	GradualType, FunType, FunIntersection, RecordType, MapType, AssocType, UnionType, BinaryType,
	ANY, NIL, FLOAT, BOOLEAN, INTEGER, NUMBER, BITSTRING, UNDEFINED, TRUE, FALSE,
	AtomType, integer, list_of, nonempty_list_of, tuple_of,
)
from . import constraints, errors, syntax
from .environment import field_type
from .normalize import normalize
from .subtype import subtype, compatible
from .shapes import (
	WrongShape, expect_list_type, expect_fun_type, infer_literal_string, update_map_type,
	FunAny, FunTy, FunAnyArgs, FunIntersect, FunUnion,
)
from .bounds import unfold_bounded_type, bounded_type_list_to_type
from .bitsyntax import compute_type, type_of_bin_element
from .patterns import add_types_pats, add_any_types_pat, union_var_binds, add_var_binds
from .operators import (
	ARITH_OPS, INT_OPS, LOGIC_OPS, REL_OPS, LIST_OPS, compat_arith_type, negate_num_type, negate_bool_type,
)
from . import checking, clauses

def infer(env, expr) -> tuple[GradualType, dict, constraints.Constraints]:
	result = _Infer(env).visit(expr)
	if env.options.verbose:
		env.info("Propagated type of", syntax.show(expr), "::", result[0])
	return result

def _plain(ty:GradualType):
	return ty, {}, constraints.empty()

def infer_all(env, exprs):
	""" For things evaluated in an unspecified order, so that none sees the other's bindings. """
	results = [infer(env, e) for e in exprs]
	tys = [ty for ty, _, _ in results]
	var_binds = union_var_binds([vb for _, vb, _ in results], env)
	return tys, var_binds, constraints.combine(cs for _, _, cs in results)

def infer_block(env, body):
	""" Each expression in a body sees the bindings of the ones before. """
	*init, last = body
	var_binds, css = {}, []
	for expr in init:
		_, vb, cs = infer(env, expr)
		env = env.with_venv(add_var_binds(env.venv, vb, env))
		var_binds = add_var_binds(var_binds, vb, env)
		css.append(cs)
	ty, vb, cs = infer(env, last)
	return ty, add_var_binds(var_binds, vb, env), constraints.combine(css + [cs])

class _Infer(Visitor):
	def __init__(self, env):
		self.env = env

	def visit_Var(self, x:syntax.Var):
		try: return _plain(self.env.venv[x.name])
		except KeyError: raise errors.UndefinedReference(x, x.name) from None

	def visit_Match(self, x:syntax.Match):
		env = self.env
		ty, var_binds, cs1 = infer(env, x.expr)
		norm = normalize(ty, env)
		try: _, [ubound], venv, cs2 = add_types_pats([x.pattern], [norm], env, var_binds, binding=False)
		except errors.TypeMismatch as e:
			if e.expected == norm: e.expected = ty
			raise
		return (ty if ubound == norm else ubound), venv, constraints.combine(cs1, cs2)

	def visit_Tuple(self, x:syntax.Tuple):
		tys, var_binds, cs = infer_all(self.env, x.elements)
		if not self.env.options.infer and all(t == ANY for t in tys): return ANY, var_binds, cs
		return tuple_of(*tys), var_binds, cs

	def visit_Cons(self, x:syntax.Cons):
		env = self.env
		(head, tail), var_binds, cs = infer_all(env, [x.head, x.tail])
		if head == ANY and tail == ANY and not env.options.infer: return ANY, var_binds, cs
		if tail == ANY: return nonempty_list_of(head), var_binds, cs
		if tail == NIL: elems = []
		else:
			try: elems, cs2 = expect_list_type(normalize(tail, env), False, env)
			except WrongShape as e: raise errors.TypeMismatch(x.tail, e.ty, list_of(ANY), "list") from None
			cs = constraints.combine(cs, cs2)
			if elems is None: elems = [ANY]
		return nonempty_list_of(normalize(UnionType([head] + elems), env)), var_binds, cs

	def visit_Bin(self, x:syntax.Bin):
		env = self.env
		results = [checking.check(env, type_of_bin_element(e, False), e.value) for e in x.elements]
		ty = compute_type(x) if env.options.infer else ANY
		return ty, union_var_binds([vb for vb, _ in results], env), constraints.combine(cs for _, cs in results)

	def visit_TypeAnnotation(self, x:syntax.TypeAnnotation):
		env = self.env
		if x.op == "::":
			var_binds, cs = checking.check(env, x.annotation, x.expr)
			return x.annotation, var_binds, cs
		ty, var_binds, cs1 = infer(env, x.expr)
		cs2 = compatible(ty, x.annotation, env)
		if cs2 is None: raise errors.TypeMismatch(x.expr, ty, x.annotation, "cast")
		return x.annotation, var_binds, constraints.combine(cs1, cs2)

	def visit_Call(self, x:syntax.Call):
		env = self.env
		if is_record_info(x): return _plain(record_info_type(env, x))
		fun_ty, vb1, cs1 = callee_type(env, x.callee, len(x.args))
		try: shape = expect_fun_type(env, fun_ty)
		except WrongShape: raise errors.TypeMismatch(x.callee, fun_ty, FunType(None, ANY), "call") from None
		result, vb2, cs2 = infer_call(env, shape, x.args, x, fun_ty)
		return result, union_var_binds([vb1, vb2], env), constraints.combine(cs1, cs2)

	def visit_ListComp(self, x:syntax.ListComp): return infer_comprehension(self.env, x, x.qualifiers)
	def visit_BinComp(self, x:syntax.BinComp): return infer_comprehension(self.env, x, x.qualifiers)
	def visit_Block(self, x:syntax.Block): return infer_block(self.env, x.body)

	def _literal(self, ty:GradualType):
		return _plain(ty if self.env.options.infer else ANY)

	def visit_String(self, x:syntax.String):
		if not self.env.options.infer: return _plain(ANY)
		return _plain(infer_literal_string(x.value, self.env))
	def visit_Nil(self, x:syntax.Nil): return self._literal(NIL)
	def visit_Atom(self, x:syntax.Atom): return self._literal(AtomType(x.value))
	def visit_Integer(self, x:syntax.Integer): return self._literal(integer(x.value))
	def visit_Char(self, x:syntax.Char): return self._literal(integer(x.value))
	def visit_Float(self, x:syntax.Float): return self._literal(FLOAT)

	def visit_MapExpr(self, x:syntax.MapExpr):
		assoc_tys, var_binds, cs = infer_assocs(self.env, x.assocs)
		ty = MapType(assoc_tys) if self.env.options.infer else ANY
		return ty, var_binds, cs

	def visit_MapUpdate(self, x:syntax.MapUpdate):
		env = self.env
		ty, vb1, cs1 = infer(env, x.map_expr)
		assoc_tys, vb2, cs2 = infer_assocs(env, x.assocs)
		map_ty = update_map_type(normalize(ty, env), assoc_tys, x)
		return map_ty, union_var_binds([vb1, vb2], env), constraints.combine(cs1, cs2)

	def visit_RecordFieldAccess(self, x:syntax.RecordFieldAccess):
		env = self.env
		ty, vb1, cs1 = infer(env, x.expr)
		declared = record_fields(env, x.name, x)
		if isinstance(ty, RecordType) and ty.name == x.name and ty.fields is not None:
			refined = dict(ty.fields)
			if x.field not in refined: raise errors.UndefinedField(x, x.name, x.field)
			return refined[x.field], vb1, cs1
		vb2, cs2 = checking.check(env, RecordType(x.name), x.expr)
		field = find_field(declared, x.name, x.field, x)
		return field_type(field), union_var_binds([vb1, vb2], env), constraints.combine(cs1, cs2)

	def visit_RecordUpdate(self, x:syntax.RecordUpdate):
		env = self.env
		record_ty = RecordType(x.name)
		vb1, cs1 = checking.check(env, record_ty, x.expr)
		declared = record_fields(env, x.name, x)
		vb2, cs2 = check_record_fields(env, declared, x, update=True)
		return record_ty, union_var_binds([vb1, vb2], env), constraints.combine(cs1, cs2)

	def visit_RecordExpr(self, x:syntax.RecordExpr):
		env = self.env
		declared = record_fields(env, x.name, x)
		var_binds, cs = check_record_fields(env, declared, x)
		return RecordType(x.name), var_binds, cs

	def visit_RecordIndex(self, x:syntax.RecordIndex):
		env = self.env
		if not env.options.infer: return _plain(ANY)
		declared = record_fields(env, x.name, x)
		return _plain(integer(field_index(declared, x.name, x.field, x)))

	def visit_Fun(self, x:syntax.Fun): return infer_fun(self.env, x.clauses)

	def visit_NamedFun(self, x:syntax.NamedFun):
		env = self.env
		arity = len(x.clauses[0].patterns)
		self_ty = FunType([ANY] * arity, ANY) if env.options.infer else ANY
		env = env.with_venv(add_var_binds({x.name: self_ty}, env.venv, env))
		return infer_fun(env, x.clauses)

	def visit_FunRef(self, x:syntax.FunRef):
		ty = function_type(self.env, x.name, x.arity, x)
		if ty == ANY: return _plain(ANY)
		return _plain(unfold_fun_type(self.env, ty))

	def visit_RemoteFunRef(self, x:syntax.RemoteFunRef):
		env = self.env
		module, function = get_atom(env, x.module), get_atom(env, x.function)
		if module is None or function is None or not isinstance(x.arity, syntax.Integer): return _plain(ANY)
		spec = None if env.db is None else env.db.get_spec(module, function, x.arity.value)
		if spec is None: raise errors.UndefinedFunction(x, function, x.arity.value, module)
		return _plain(bounded_type_list_to_type(env, spec))

	def visit_Case(self, x:syntax.Case):
		env = self.env
		_, var_binds, cs1 = infer(env, x.expr)
		inner = env.with_venv(add_var_binds(env.venv, var_binds, env))
		ty, vb, cs2 = clauses.infer_clauses(inner, x.clauses)
		return ty, union_var_binds([var_binds, vb], env), constraints.combine(cs1, cs2)

	def visit_If(self, x:syntax.If): return clauses.infer_clauses(self.env, x.clauses)

	def visit_Receive(self, x:syntax.Receive):
		env = self.env
		ty, vb1, cs1 = clauses.infer_clauses(env, x.clauses)
		if not x.after: return ty, vb1, cs1
		after_ty, vb2, cs2 = infer_block(env, x.after)
		return normalize(UnionType([ty, after_ty]), env), union_var_binds([vb1, vb2], env), constraints.combine(cs1, cs2)

	def visit_Try(self, x:syntax.Try):
		env = self.env
		ty, var_binds, cs1 = infer_block(env, x.body)
		inner = env.with_venv(add_var_binds(var_binds, env.venv, env))
		case_ty, _, cs2 = clauses.infer_clauses(inner, x.clauses)
		catch_ty, _, cs3 = clauses.infer_clauses(inner, x.catch_clauses)
		css = [cs1, cs2, cs3]
		if x.after: css.append(infer_block(inner, x.after)[2])
		return normalize(UnionType([ty, case_ty, catch_ty]), env), var_binds, constraints.combine(css)

	def visit_Catch(self, x:syntax.Catch): return infer(self.env, x.expr)

	def visit_UnaryOp(self, x:syntax.UnaryOp):
		env = self.env
		ty, var_binds, cs1 = infer(env, x.arg)
		if x.op == 'not':
			cs2 = subtype(ty, BOOLEAN, env)
			if cs2 is None: raise errors.TypeMismatch(x, ty, BOOLEAN)
			return negate_bool_type(normalize(ty, env)), var_binds, constraints.combine(cs1, cs2)
		if x.op == 'bnot':
			cs2 = subtype(ty, INTEGER, env)
			if cs2 is None: raise errors.TypeMismatch(x.arg, ty, INTEGER)
			return INTEGER, var_binds, constraints.combine(cs1, cs2)
		if x.op in ('+', '-'):
			cs2 = subtype(ty, NUMBER, env)
			if cs2 is None: raise errors.TypeMismatch(x, ty, NUMBER, "non_number_argument")
			if x.op == '-': ty = negate_num_type(normalize(ty, env), env)
			return ty, var_binds, constraints.combine(cs1, cs2)
		raise errors.UnsupportedExpression(x)

	def visit_BinaryOp(self, x:syntax.BinaryOp):
		if x.op == '!':
			(_, ty), var_binds, cs = infer_all(self.env, [x.lhs, x.rhs])
			return ty, var_binds, cs
		if x.op in LOGIC_OPS: return infer_logic_op(self.env, x)
		if x.op in REL_OPS: return infer_rel_op(self.env, x)
		if x.op in ARITH_OPS or x.op in INT_OPS: return infer_arith_op(self.env, x)
		if x.op in LIST_OPS: return infer_list_op(self.env, x)
		raise errors.UnsupportedExpression(x)

	def visit_Expression(self, x): raise errors.UnsupportedExpression(x)

###########################################################################
# Operators

def infer_logic_op(env, x:syntax.BinaryOp):
	""" Only the short-circuit operators pass bindings from the left side to the right. """
	ty1, vb1, cs1 = infer(env, x.lhs)
	cs2 = subtype(ty1, BOOLEAN, env)
	if cs2 is None: raise errors.TypeMismatch(x.lhs, ty1, BOOLEAN)
	short_circuit = x.op in ('andalso', 'orelse')
	right_env = env.with_venv(union_var_binds([env.venv, vb1], env)) if short_circuit else env
	ty2, vb2, cs3 = infer(right_env, x.rhs)
	# The right side of a short-circuit operator is in tail position, so it may be anything.
	cs4 = subtype(ty2, ANY if short_circuit else BOOLEAN, env)
	if cs4 is None: raise errors.TypeMismatch(x.rhs, ty2, BOOLEAN)
	if x.op == 'andalso': result = UnionType([ty1, FALSE])
	elif x.op == 'orelse': result = UnionType([ty1, TRUE])
	else: result = BOOLEAN
	return normalize(result, env), union_var_binds([vb1, vb2], env), constraints.combine(cs1, cs2, cs3, cs4)

def infer_rel_op(env, x:syntax.BinaryOp):
	(ty1, ty2), var_binds, cs1 = infer_all(env, [x.lhs, x.rhs])
	cs2 = compatible(ty1, ty2, env)
	if cs2 is None: raise errors.TypeMismatch(x, ty1, ty2, "relop")
	result = ANY if ANY in (ty1, ty2) else BOOLEAN
	return result, var_binds, constraints.combine(cs1, cs2)

def infer_arith_op(env, x:syntax.BinaryOp):
	""" Integer operators share the arithmetic rule, but had better not produce a float. """
	(ty1, ty2), var_binds, cs1 = infer_all(env, [x.lhs, x.rhs])
	found = compat_arith_type(ty1, ty2, env)
	reason = "int_error" if x.op in INT_OPS else "arith_error"
	if found is None: raise errors.TypeMismatch(x, ty1, ty2, reason)
	ty, cs2 = found
	if x.op in INT_OPS and ty in (FLOAT, NUMBER): raise errors.TypeMismatch(x, ty1, ty2, reason)
	return ty, var_binds, constraints.combine(cs1, cs2)

def infer_list_op(env, x:syntax.BinaryOp):
	(ty1, ty2), var_binds, cs1 = infer_all(env, [x.lhs, x.rhs])
	cs2 = subtype(ty1, list_of(ANY), env)
	if cs2 is None: raise errors.TypeMismatch(x.lhs, ty1, list_of(ANY))
	cs3 = subtype(ty2, list_of(ANY), env)
	if cs3 is None: raise errors.TypeMismatch(x.rhs, ty2, list_of(ANY))
	return normalize(UnionType([ty1, ty2]), env), var_binds, constraints.combine(cs1, cs2, cs3)

###########################################################################
# Functions and calls

def spec_type(clauses) -> GradualType:
	""" The type a (possibly multi-clause) spec gives its function. """
	if len(clauses) == 1: return clauses[0]
	return FunIntersection(clauses)

def unfold_fun_type(env, ty:GradualType) -> GradualType:
	if isinstance(ty, FunIntersection): return bounded_type_list_to_type(env, ty.clauses)
	return unfold_bounded_type(env, ty)

def function_type(env, name:str, arity:int, node) -> GradualType:
	"""
	Local functions first, then auto-imported built-ins, then explicit imports.
	A local function without a spec is any().
	"""
	key = name, arity
	if key in env.fenv: return env.fenv[key]
	if env.db is not None:
		spec = env.db.get_spec("erlang", name, arity)
		if spec is not None: return spec_type(spec)
	if key in env.imported:
		module = env.imported[key]
		spec = None if env.db is None else env.db.get_spec(module, name, arity)
		if spec is None: raise errors.UndefinedFunction(node, name, arity, module)
		return spec_type(spec)
	raise errors.UndefinedFunction(node, name, arity)

def get_atom(env, x):
	""" The atom a module or function expression certainly denotes, if any. """
	if isinstance(x, syntax.Atom): return x.value
	if isinstance(x, syntax.Var):
		ty = env.venv.get(x.name)
		if isinstance(ty, AtomType) and ty.name is not None: return ty.name
	return None

def callee_type(env, callee, arity:int):
	if isinstance(callee, syntax.Atom):
		return function_type(env, callee.value, arity, callee), {}, constraints.empty()
	if isinstance(callee, syntax.Remote):
		if isinstance(callee.module, syntax.Atom) and isinstance(callee.function, syntax.Atom):
			module, name = callee.module.value, callee.function.value
			spec = None if env.db is None else env.db.get_spec(module, name, arity)
			if spec is None: raise errors.UndefinedFunction(callee, name, arity, module)
			return spec_type(spec), {}, constraints.empty()
		return FunType([ANY] * arity, ANY), {}, constraints.empty()
	return infer(env, callee)

def infer_call(env, shape, args, node, fun_ty):
	""" The result type of a call, given the shape of the callee's type. """
	if isinstance(shape, FunTy):
		if len(shape.args) != len(args): raise errors.ArityMismatch(node, len(shape.args), len(args))
		results = [checking.check(env, t, a) for t, a in zip(shape.args, args)]
		var_binds = union_var_binds([vb for vb, _ in results], env)
		return shape.result, var_binds, constraints.combine([shape.cs] + [cs for _, cs in results])
	if isinstance(shape, (FunAny, FunAnyArgs)):
		_, var_binds, cs = infer_all(env, args)
		if isinstance(shape, FunAny): return ANY, var_binds, cs
		return shape.result, var_binds, constraints.combine(shape.cs, cs)
	if isinstance(shape, FunIntersect):
		for alternative in shape.alternatives:
			try: ty, var_binds, cs = infer_call(env, alternative, args, node, fun_ty)
			except errors.TypeCheckError: continue
			return ty, var_binds, constraints.combine(shape.cs, cs)
		raise errors.TypeMismatch(node, fun_ty, None, "call_intersect")
	assert isinstance(shape, FunUnion), shape
	results = [infer_call(env, alternative, args, node, fun_ty) for alternative in shape.alternatives]
	return (
		normalize(UnionType([ty for ty, _, _ in results]), env),
		union_var_binds([vb for _, vb, _ in results], env),
		constraints.combine([shape.cs] + [cs for _, _, cs in results]),
	)

def infer_fun(env, fun_clauses):
	""" Bindings inside a fun stay inside the fun. """
	ty, _, _ = clauses.infer_clauses(env, fun_clauses)
	if ty == ANY and not env.options.infer: return _plain(ANY)
	return _plain(FunType([ANY] * len(fun_clauses[0].patterns), ty))

###########################################################################
# Comprehensions

def infer_comprehension(env, x:syntax.Comprehension, qualifiers):
	if not qualifiers:
		ty, _, cs = infer(env, x.expr)
		if isinstance(x, syntax.ListComp):
			if ty == ANY and not env.options.infer: return ANY, {}, cs
			return list_of(ty), {}, cs
		return comprehension_bits(normalize(ty, env), x.expr), {}, cs
	first, rest = qualifiers[0], qualifiers[1:]
	if isinstance(first, syntax.Generate):
		ty, _, cs1 = infer(env, first.expr)
		try: elems, cs2 = expect_list_type(normalize(ty, env), True, env)
		except WrongShape as e: raise errors.TypeMismatch(first.expr, e.ty, list_of(ANY)) from None
		if elems is not None and len(elems) == 1:
			_, _, venv, cs3 = add_types_pats([first.pattern], elems, env, env.venv, binding=False)
		else:
			# A union of list types is not worth the trouble here.
			venv, cs3 = add_any_types_pat(first.pattern, env.venv), constraints.empty()
		ty, var_binds, cs4 = infer_comprehension(env.with_venv(venv), x, rest)
		return ty, var_binds, constraints.combine(cs1, cs2, cs3, cs4)
	if isinstance(first, syntax.BGenerate):
		vb1, cs1 = checking.check(env, BITSTRING, first.expr)
		_, _, venv, cs2 = add_types_pats([first.pattern], [BITSTRING], env, env.venv, binding=False)
		ty, vb2, cs3 = infer_comprehension(env.with_venv(venv), x, rest)
		return ty, union_var_binds([vb1, vb2], env), constraints.combine(cs1, cs2, cs3)
	# Filters need not be boolean. That's debatable.
	_, vb1, cs1 = infer(env, first)
	ty, vb2, cs2 = infer_comprehension(env.with_venv(add_var_binds(env.venv, vb1, env)), x, rest)
	return ty, union_var_binds([vb1, vb2], env), constraints.combine(cs1, cs2)

def comprehension_bits(ty:GradualType, expr) -> GradualType:
	""" What a binary comprehension makes from segments of the given type. """
	if ty == ANY: return ANY
	if isinstance(ty, BinaryType):
		if ty.base == 0: return ty
		if ty.unit == 0: return BinaryType(0, ty.base)
		return ANY
	if isinstance(ty, UnionType): return ANY
	raise errors.TypeMismatch(expr, ty, BITSTRING)

###########################################################################
# Maps and records

def infer_assocs(env, assocs) -> tuple[list[AssocType], dict, constraints.Constraints]:
	""" Keys and values always get their types inferred, so the map type has something to say. """
	eager = env.with_infer(True)
	assoc_tys, var_binds, css = [], [], []
	for a in assocs:
		(key, value), vb, cs = infer_all(eager, [a.key, a.value])
		assoc_tys.append(AssocType(a.exact, key, value))
		var_binds.append(vb)
		css.append(cs)
	return assoc_tys, union_var_binds(var_binds, env), constraints.combine(css)

def record_fields(env, name:str, node):
	try: return env.record_fields(name)
	except errors.UndefinedRecord as e: raise e.blame(node)

def find_field(declared, record:str, name:str, node) -> syntax.RecordFieldDef:
	for field in declared:
		if field.name == name: return field
	raise errors.UndefinedField(node, record, name)

def field_index(declared, record:str, name:str, node) -> int:
	""" The record's name is the first element of the tuple, so fields count from 2. """
	for i, field in enumerate(declared, 2):
		if field.name == name: return i
	raise errors.UndefinedField(node, record, name)

def check_record_fields(env, declared, x, update=False):
	"""
	Each named field must check against its declared type. When building a new
	record, the rest either get the value given for `_`, or else their defaults.
	A field with no default starts out as the atom `undefined`.
	"""
	by_name = {f.name: f for f in declared}
	var_binds, css, wildcard = [], [], None
	for field in x.fields:
		if field.name == "_":
			wildcard = field
			continue
		if field.name not in by_name: raise errors.UndefinedField(field, x.name, field.name)
		vb, cs = checking.check(env, field_type(by_name[field.name]), field.value)
		var_binds.append(vb)
		css.append(cs)
	if not update:
		named = set(f.name for f in x.fields)
		for d in declared:
			if d.name in named: continue
			ty = field_type(d)
			if wildcard is not None: vb, cs = checking.check(env, ty, wildcard.value)
			elif d.default is not None: vb, cs = checking.check(env.with_venv({}), ty, d.default)
			else:
				vb, cs = {}, subtype(UNDEFINED, ty, env)
				if cs is None: raise errors.TypeMismatch(x, UNDEFINED, ty, "record_default")
			var_binds.append(vb)
			css.append(cs)
	return union_var_binds(var_binds, env), constraints.combine(css)

def is_record_info(x:syntax.Call) -> bool:
	return (
		isinstance(x.callee, syntax.Atom) and x.callee.value == 'record_info'
		and len(x.args) == 2 and all(isinstance(a, syntax.Atom) for a in x.args)
	)

def record_info_type(env, x:syntax.Call) -> GradualType:
	""" record_info(fields, R) is a list of field names; record_info(size, R) is the tuple size. """
	what, name = x.args[0].value, x.args[1].value
	declared = record_fields(env, name, x)
	if what == 'fields': return list_of(UnionType([AtomType(f.name) for f in declared]))
	if what == 'size': return integer(len(declared) + 1)
	raise errors.UnsupportedExpression(x)
