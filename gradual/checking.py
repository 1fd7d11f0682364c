"""
Checking mode: does this expression have (a subtype of) that type?

This is the other half of the bidirectional algorithm. Where inference works
bottom-up, checking pushes the expected type down into the expression: into
the elements of a tuple, the head and tail of a list, the bodies of case
clauses, the arguments of an operator. That gets much better error messages
and much less any() than inferring everything and comparing at the end.

Checking against any() just falls back to inference, because there is nothing
to push. Where an expected type is a union and the expression is a tuple (or
record, or list head) the checker tries each member in turn until one fits.

Every rule returns the variable bindings the expression makes and the
constraints generated along the way. Failure is a raised TypeCheckError.
A mismatch against the normal form of the expected type gets reported
with the expected type as it was originally written, which reads better.
"""
from boozetools.support.foundation import Visitor
from .calculus import (
	GradualType, FunType, FunIntersection, RecordType, MapType, UnionType, BinaryType, ListType,
	ANY, TOP, NONE, NIL, FLOAT, FALSE, TRUE, BOOLEAN, INTEGER, NUMBER, BITSTRING, ANY_FUN,
	AtomType, integer, list_of, nonempty_list_of,
)
from . import constraints, errors, syntax
from .environment import field_type
from .normalize import normalize
from .subtype import subtype, any_subtype, compatible
from .glb import glb
from .shapes import (
	WrongShape, expect_list_type, expect_tuple_type, expect_record_type, expect_fun_type,
	allow_empty_list, infer_literal_string, update_map_type,
	FunAny, FunTy, FunAnyArgs, FunIntersect, FunUnion,
)
from .bounds import unfold_bounded_type
from .bitsyntax import compute_type
from .patterns import add_types_pats, add_any_types_pat, union_var_binds, add_var_binds
from .operators import (
	ARITH_OPS, INT_OPS, LOGIC_OPS, REL_OPS, LIST_OPS,
	arith_op_arg_types, list_op_arg_types, unary_op_arg_type,
)
from . import inference, clauses

def check(env, ty:GradualType, expr) -> tuple[dict, constraints.Constraints]:
	if env.options.verbose:
		env.info("Checking that", syntax.show(expr), "::", ty)
	norm = normalize(ty, env)
	if norm == ANY:
		_, var_binds, cs = inference.infer(env, expr)
		return var_binds, cs
	try: return _Check(env).visit(expr, norm)
	except errors.TypeMismatch as e:
		if e.expected == norm: e.expected = ty
		raise

def check_block_in(env, ty:GradualType, body):
	""" Like inference.infer_block, but the last expression is checked. """
	*init, last = body
	var_binds, css = {}, []
	for expr in init:
		_, vb, cs = inference.infer(env, expr)
		env = env.with_venv(add_var_binds(env.venv, vb, env))
		var_binds = add_var_binds(var_binds, vb, env)
		css.append(cs)
	vb, cs = check(env, ty, last)
	return add_var_binds(var_binds, vb, env), constraints.combine(css + [cs])

def _expect(env, actual:GradualType, ty:GradualType, node, reason=""):
	cs = subtype(actual, ty, env)
	if cs is None: raise errors.TypeMismatch(node, actual, ty, reason)
	return cs

def _check_all(env, tys, exprs):
	results = [check(env, t, e) for t, e in zip(tys, exprs)]
	return union_var_binds([vb for vb, _ in results], env), constraints.combine(cs for _, cs in results)

def _inferred_for_blame(env, expr) -> GradualType:
	""" Just to say what something looked like, in the error message. """
	return inference.infer(env.with_infer(True), expr)[0]

class _Check(Visitor):
	def __init__(self, env):
		self.env = env

	def visit_Var(self, x:syntax.Var, ty):
		try: var_ty = self.env.venv[x.name]
		except KeyError: raise errors.UndefinedReference(x, x.name) from None
		return {}, _expect(self.env, var_ty, ty, x)

	def visit_Match(self, x:syntax.Match, ty):
		env = self.env
		var_binds, cs1 = check(env, ty, x.expr)
		_, _, venv, cs2 = add_types_pats([x.pattern], [ty], env, env.venv, binding=False)
		return union_var_binds([var_binds, venv], env), constraints.combine(cs1, cs2)

	def _literal(self, x, actual, ty): return {}, _expect(self.env, actual, ty, x)
	def visit_Integer(self, x:syntax.Integer, ty): return self._literal(x, integer(x.value), ty)
	def visit_Char(self, x:syntax.Char, ty): return self._literal(x, integer(x.value), ty)
	def visit_Atom(self, x:syntax.Atom, ty): return self._literal(x, AtomType(x.value), ty)
	def visit_Float(self, x:syntax.Float, ty): return self._literal(x, FLOAT, ty)
	def visit_Nil(self, x:syntax.Nil, ty): return self._literal(x, NIL, ty)
	def visit_String(self, x:syntax.String, ty): return self._literal(x, infer_literal_string(x.value, self.env), ty)

	def visit_Cons(self, x:syntax.Cons, ty):
		env = self.env
		try: elems, cs = expect_list_type(ty, False, env)
		except WrongShape: raise errors.TypeMismatch(x, nonempty_list_of(ANY), ty) from None
		if elems is None:
			_, vb1, cs1 = inference.infer(env, x.head)
		elif len(elems) == 1:
			vb1, cs1 = check(env, elems[0], x.head)
		else:
			vb1, cs1 = union_in(env, elems, x.head)
		vb2, cs2 = check(env, allow_empty_list(ty), x.tail)
		return union_var_binds([vb1, vb2], env), constraints.combine(cs, cs1, cs2)

	def visit_Bin(self, x:syntax.Bin, ty):
		cs1 = _expect(self.env, compute_type(x), ty, x)
		_, var_binds, cs2 = inference.infer(self.env, x)
		return var_binds, constraints.combine(cs1, cs2)

	def visit_Tuple(self, x:syntax.Tuple, ty):
		env = self.env
		try: alternatives, cs = expect_tuple_type(ty, len(x.elements))
		except WrongShape: raise errors.TypeMismatch(x, _inferred_for_blame(env, x), ty) from None
		if alternatives is None:
			_, var_binds, cs1 = inference.infer_all(env, x.elements)
			return var_binds, constraints.combine(cs, cs1)
		if len(alternatives) == 1:
			var_binds, cs1 = _check_all(env, alternatives[0], x.elements)
			return var_binds, constraints.combine(cs, cs1)
		for tys in alternatives:
			try: var_binds, cs1 = _check_all(env, tys, x.elements)
			except errors.TypeCheckError: continue
			return var_binds, constraints.combine(cs, cs1)
		raise errors.TypeMismatch(x, _inferred_for_blame(env, x), ty)

	def visit_MapExpr(self, x:syntax.MapExpr, ty):
		assoc_tys, var_binds, cs1 = inference.infer_assocs(self.env, x.assocs)
		# A freshly-built map has exactly the keys it was built with.
		map_ty = update_map_type(MapType([]), assoc_tys, x)
		return var_binds, constraints.combine(cs1, _expect(self.env, map_ty, ty, x))

	def visit_MapUpdate(self, x:syntax.MapUpdate, ty):
		env = self.env
		map_ty, vb1, cs1 = inference.infer(env, x.map_expr)
		assoc_tys, vb2, cs2 = inference.infer_assocs(env, x.assocs)
		updated = update_map_type(normalize(map_ty, env), assoc_tys, x)
		cs3 = _expect(env, updated, ty, x)
		return union_var_binds([vb1, vb2], env), constraints.combine(cs1, cs2, cs3)

	def visit_RecordExpr(self, x:syntax.RecordExpr, ty):
		env = self.env
		try: alternatives, cs = expect_record_type(ty, x.name, env)
		except WrongShape: raise errors.TypeMismatch(x, RecordType(x.name), ty) from None
		if alternatives is None:
			declared = inference.record_fields(env, x.name, x)
			return inference.check_record_fields(env, declared, x)
		if len(alternatives) == 1: var_binds, cs1 = inference.check_record_fields(env, alternatives[0], x)
		else: var_binds, cs1 = record_union_in(env, alternatives, x, ty)
		return var_binds, constraints.combine(cs, cs1)

	def visit_RecordUpdate(self, x:syntax.RecordUpdate, ty):
		env = self.env
		try: alternatives, cs = expect_record_type(ty, x.name, env)
		except WrongShape: raise errors.TypeMismatch(x, RecordType(x.name), ty) from None
		if alternatives is None:
			_, vb1, cs1 = inference.infer(env, x.expr)
			declared = inference.record_fields(env, x.name, x)
			vb2, cs2 = inference.check_record_fields(env, declared, x, update=True)
			return union_var_binds([vb1, vb2], env), constraints.combine(cs1, cs2)
		if len(alternatives) > 1:
			var_binds, cs1 = record_union_in(env, alternatives, x, ty, update=True)
			return var_binds, constraints.combine(cs, cs1)
		fields = alternatives[0]
		vb1, cs1 = inference.check_record_fields(env, fields, x, update=True)
		# The fields not mentioned come from the original, so it must already be in shape.
		refined = RecordType(x.name, [(f.name, field_type(f)) for f in fields])
		vb2, cs2 = check(env, refined, x.expr)
		return union_var_binds([vb1, vb2], env), constraints.combine(cs, cs1, cs2)

	def visit_RecordFieldAccess(self, x:syntax.RecordFieldAccess, ty):
		field_ty, var_binds, cs1 = inference.infer(self.env, x)
		return var_binds, constraints.combine(cs1, _expect(self.env, field_ty, ty, x))

	def visit_RecordIndex(self, x:syntax.RecordIndex, ty):
		declared = inference.record_fields(self.env, x.name, x)
		index = inference.field_index(declared, x.name, x.field, x)
		return self._literal(x, integer(index), ty)

	def visit_Case(self, x:syntax.Case, ty):
		env = self.env
		expr_ty, var_binds, cs1 = inference.infer(env, x.expr)
		inner = env.with_venv(add_var_binds(env.venv, var_binds, env))
		vb, cs2 = clauses.check_clauses(inner, [expr_ty], ty, x.clauses, binding=False)
		return union_var_binds([var_binds, vb], env), constraints.combine(cs1, cs2)

	def visit_If(self, x:syntax.If, ty):
		return clauses.check_clauses(self.env, [], ty, x.clauses, binding=False)

	def visit_TypeAnnotation(self, x:syntax.TypeAnnotation, ty):
		env = self.env
		cs1 = _expect(env, x.annotation, ty, x)
		if x.op == "::":
			var_binds, cs2 = check(env, x.annotation, x.expr)
			return var_binds, constraints.combine(cs1, cs2)
		inferred, var_binds, cs2 = inference.infer(env, x.expr)
		cs3 = compatible(inferred, x.annotation, env)
		if cs3 is None: raise errors.TypeMismatch(x.expr, inferred, x.annotation, "cast")
		return var_binds, constraints.combine(cs1, cs2, cs3)

	def visit_Call(self, x:syntax.Call, ty):
		env = self.env
		if inference.is_record_info(x):
			return self._literal(x, inference.record_info_type(env, x), ty)
		fun_ty, vb1, cs1 = inference.callee_type(env, x.callee, len(x.args))
		try: shape = expect_fun_type(env, fun_ty)
		except WrongShape: raise errors.TypeMismatch(x.callee, fun_ty, ANY_FUN, "call") from None
		vb2, cs2 = check_call(env, ty, x, shape, x.args, fun_ty)
		return union_var_binds([vb1, vb2], env), constraints.combine(cs1, cs2)

	def visit_ListComp(self, x:syntax.ListComp, ty): return comprehension_in(self.env, ty, x, x.qualifiers)
	def visit_BinComp(self, x:syntax.BinComp, ty): return comprehension_in(self.env, ty, x, x.qualifiers)

	def _fun_shape(self, x, ty):
		try: return expect_fun_type(self.env, ty)
		except WrongShape: raise errors.TypeMismatch(x, ANY_FUN, ty) from None

	def visit_Fun(self, x:syntax.Fun, ty):
		""" Bindings inside a fun stay inside the fun. """
		_, cs = clauses.check_clauses_fun(self.env, self._fun_shape(x, ty), x.clauses)
		return {}, cs

	def visit_NamedFun(self, x:syntax.NamedFun, ty):
		env = self.env
		inner = env.with_venv(add_var_binds({x.name: ty}, env.venv, env))
		_, cs = clauses.check_clauses_fun(inner, self._fun_shape(x, ty), x.clauses)
		return {}, cs

	def visit_FunRef(self, x:syntax.FunRef, ty):
		env = self.env
		fun_ty = inference.function_type(env, x.name, x.arity, x)
		if fun_ty == ANY:
			if not env.options.infer: return {}, constraints.empty()
			return self._literal(x, FunType([ANY] * x.arity, ANY), ty)
		return {}, _any_fun_subtype(env, x, _fun_candidates(env, fun_ty), ty)

	def visit_RemoteFunRef(self, x:syntax.RemoteFunRef, ty):
		env = self.env
		module, function = inference.get_atom(env, x.module), inference.get_atom(env, x.function)
		if module is None or function is None or not isinstance(x.arity, syntax.Integer):
			return {}, constraints.empty()
		spec = None if env.db is None else env.db.get_spec(module, function, x.arity.value)
		if spec is None: raise errors.UndefinedFunction(x, function, x.arity.value, module)
		return {}, _any_fun_subtype(env, x, [unfold_bounded_type(env, t) for t in spec], ty)

	def visit_Receive(self, x:syntax.Receive, ty):
		env = self.env
		vb1, cs1 = clauses.check_clauses(env, [ANY], ty, x.clauses, binding=False)
		if x.timeout is None and not x.after: return vb1, cs1
		vb2, cs2 = ({}, constraints.empty()) if x.timeout is None else check(env, INTEGER, x.timeout)
		vb3, cs3 = check_block_in(env, ty, x.after) if x.after else ({}, constraints.empty())
		return union_var_binds([vb1, vb2, vb3], env), constraints.combine(cs1, cs2, cs3)

	def visit_Block(self, x:syntax.Block, ty): return check_block_in(self.env, ty, x.body)

	def visit_Catch(self, x:syntax.Catch, ty): return check(self.env, ty, x.expr)

	def visit_Try(self, x:syntax.Try, ty):
		""" No bindings escape a try. Whatever the compiler would call unsafe, so would we. """
		env = self.env
		if not x.clauses:
			_, cs1 = check_block_in(env, ty, x.body)
		else:
			# Bindings in the body do not reach the `of` clauses.
			body_ty, _, cs0 = inference.infer_block(env, x.body)
			_, cs1 = clauses.check_clauses(env, [body_ty], ty, x.clauses, binding=False)
			cs1 = constraints.combine(cs0, cs1)
		_, cs2 = clauses.check_clauses(env, [ANY], ty, x.catch_clauses, binding=False)
		cs3 = inference.infer_block(env, x.after)[2] if x.after else constraints.empty()
		return {}, constraints.combine(cs1, cs2, cs3)

	def visit_UnaryOp(self, x:syntax.UnaryOp, ty):
		env = self.env
		target = {'not': BOOLEAN, 'bnot': INTEGER, '+': NUMBER, '-': NUMBER}.get(x.op)
		if target is None: raise errors.UnsupportedExpression(x)
		result_ty, cs1 = glb(target, ty, env)
		if result_ty == NONE: raise errors.TypeMismatch(x, target, ty, "unary_error")
		var_binds, cs2 = check(env, unary_op_arg_type(x.op, result_ty), x.arg)
		return var_binds, constraints.combine(cs1, cs2)

	def visit_BinaryOp(self, x:syntax.BinaryOp, ty):
		env = self.env
		if x.op == '!':
			_, vb1, cs1 = inference.infer(env, x.lhs)
			vb2, cs2 = check(env, ty, x.rhs)
			return union_var_binds([vb1, vb2], env), constraints.combine(cs1, cs2)
		if x.op in ARITH_OPS: return arith_op_in(env, ty, x, NUMBER)
		if x.op in INT_OPS: return arith_op_in(env, ty, x, INTEGER)
		if x.op in LOGIC_OPS: return logic_op_in(env, ty, x)
		if x.op in REL_OPS: return rel_op_in(env, ty, x)
		if x.op in LIST_OPS: return list_op_in(env, ty, x)
		raise errors.UnsupportedExpression(x)

	def visit_Expression(self, x, ty): raise errors.UnsupportedExpression(x)

###########################################################################
# Trying alternatives

def union_in(env, tys, expr):
	""" The first member of the union that the expression checks against. """
	for ty in tys:
		try: return check(env, ty, expr)
		except errors.TypeCheckError: continue
	raise errors.TypeMismatch(expr, None, UnionType(tys), "mismatch")

def record_union_in(env, alternatives, x, ty, update=False):
	for fields in alternatives:
		try: return inference.check_record_fields(env, fields, x, update)
		except errors.TypeCheckError: continue
	raise errors.TypeMismatch(x, _inferred_for_blame(env, x), ty)

def _fun_candidates(env, fun_ty:GradualType) -> list[GradualType]:
	if isinstance(fun_ty, FunIntersection): return [unfold_bounded_type(env, c) for c in fun_ty.clauses]
	return [unfold_bounded_type(env, fun_ty)]

def _any_fun_subtype(env, x, candidates, ty):
	cs = any_subtype(candidates, ty, env)
	if cs is None:
		actual = candidates[0] if len(candidates) == 1 else FunIntersection(candidates)
		raise errors.TypeMismatch(x, actual, ty)
	return cs

###########################################################################
# Calls

def check_call(env, ty, x, shape, args, fun_ty):
	""" The arguments get checked against the parameter types; the result type against what's expected. """
	if isinstance(shape, FunTy):
		if len(shape.args) != len(args): raise errors.ArityMismatch(x, len(shape.args), len(args))
		var_binds, cs1 = _check_all(env, shape.args, args)
		cs2 = _expect(env, shape.result, ty, x)
		return var_binds, constraints.combine(shape.cs, cs1, cs2)
	if isinstance(shape, FunAnyArgs):
		_, var_binds, cs1 = inference.infer_all(env, args)
		cs2 = _expect(env, shape.result, ty, x)
		return var_binds, constraints.combine(shape.cs, cs1, cs2)
	if isinstance(shape, FunAny):
		_, var_binds, cs = inference.infer_all(env, args)
		return var_binds, cs
	if isinstance(shape, FunIntersect):
		for alternative in shape.alternatives:
			try: var_binds, cs = check_call(env, ty, x, alternative, args, fun_ty)
			except errors.TypeCheckError: continue
			return var_binds, constraints.combine(shape.cs, cs)
		raise errors.TypeMismatch(x, fun_ty, ty, "no_type_match_intersection")
	assert isinstance(shape, FunUnion), shape
	results = [check_call(env, ty, x, alternative, args, fun_ty) for alternative in shape.alternatives]
	return union_var_binds([vb for vb, _ in results], env), constraints.combine([shape.cs] + [cs for _, cs in results])

###########################################################################
# Operators

def arith_op_in(env, ty, x:syntax.BinaryOp, kind:GradualType):
	result_ty, cs = glb(kind, ty, env)
	reason = "int_error" if kind == INTEGER else "arith_error"
	if result_ty == NONE: raise errors.TypeMismatch(x, kind, ty, reason)
	if result_ty == ANY:
		_, var_binds, cs1 = inference.infer_arith_op(env, x)
		return var_binds, constraints.combine(cs, cs1)
	arg_types = arith_op_arg_types(x.op, result_ty)
	if arg_types is None: raise errors.TypeMismatch(x, None, result_ty, "op_type_too_precise")
	left, right, cs1 = arg_types
	vb1, cs2 = check(env, left, x.lhs)
	vb2, cs3 = check(env, right, x.rhs)
	return union_var_binds([vb1, vb2], env), constraints.combine(cs, cs1, cs2, cs3)

def logic_op_in(env, ty, x:syntax.BinaryOp):
	if x.op in ('andalso', 'orelse'):
		# The right side is in tail position, so only the short-circuit value needs to fit.
		target = FALSE if x.op == 'andalso' else TRUE
		cs = subtype(target, ty, env)
		if cs is None:
			raise errors.TypeMismatch(x, UnionType([_inferred_for_blame(env, x.rhs), target]), ty)
		vb1, cs1 = check(env, BOOLEAN, x.lhs)
		right_env = env.with_venv(union_var_binds([env.venv, vb1], env))
		vb2, cs2 = check(right_env, ty, x.rhs)
		return union_var_binds([vb1, vb2], env), constraints.combine(cs, cs1, cs2)
	cs = _expect(env, BOOLEAN, ty, x)
	vb1, cs1 = check(env, BOOLEAN, x.lhs)
	vb2, cs2 = check(env, BOOLEAN, x.rhs)
	return union_var_binds([vb1, vb2], env), constraints.combine(cs, cs1, cs2)

def rel_op_in(env, ty, x:syntax.BinaryOp):
	cs = _expect(env, BOOLEAN, ty, x)
	(ty1, ty2), var_binds, cs1 = inference.infer_all(env, [x.lhs, x.rhs])
	cs2 = compatible(ty1, ty2, env)
	if cs2 is None: raise errors.TypeMismatch(x, ty1, ty2, "relop")
	return var_binds, constraints.combine(cs, cs1, cs2)

def list_op_in(env, ty, x:syntax.BinaryOp):
	# `--` always makes a proper list, but `++` makes an improper one from an improper tail.
	target = list_of(TOP) if x.op == '--' else ListType(False, TOP, TOP)
	result_ty, cs = glb(target, ty, env)
	if result_ty == NONE: raise errors.TypeMismatch(x, list_of(ANY), ty)
	if result_ty == ANY:
		_, var_binds, cs1 = inference.infer_list_op(env, x)
		return var_binds, constraints.combine(cs, cs1)
	arg_types = list_op_arg_types(x.op, result_ty)
	if arg_types is None: raise errors.TypeMismatch(x, None, result_ty, "op_type_too_precise")
	vb1, cs1 = check(env, arg_types[0], x.lhs)
	vb2, cs2 = check(env, arg_types[1], x.rhs)
	return union_var_binds([vb1, vb2], env), constraints.combine(cs, cs1, cs2)

###########################################################################
# Comprehensions

def comprehension_in(env, ty, x:syntax.Comprehension, qualifiers):
	""" Bindings in a comprehension stay in the comprehension. """
	if not qualifiers:
		if isinstance(x, syntax.ListComp):
			try: elems, cs1 = expect_list_type(ty, True, env)
			except WrongShape: raise errors.TypeMismatch(x, list_of(ANY), ty) from None
			if elems is None: cs2 = inference.infer(env, x.expr)[2]
			elif len(elems) == 1: cs2 = check(env, elems[0], x.expr)[1]
			else: cs2 = union_in(env, elems, x.expr)[1]
			return {}, constraints.combine(cs1, cs2)
		return {}, check(env, _segment_type(ty, x), x.expr)[1]
	first, rest = qualifiers[0], qualifiers[1:]
	if isinstance(first, syntax.Generate):
		gen_ty, _, cs1 = inference.infer(env, first.expr)
		try: elems, cs2 = expect_list_type(normalize(gen_ty, env), True, env)
		except WrongShape as e: raise errors.TypeMismatch(first.expr, e.ty, list_of(ANY)) from None
		if elems is not None and len(elems) == 1:
			_, _, venv, cs3 = add_types_pats([first.pattern], elems, env, env.venv, binding=False)
		else:
			venv, cs3 = add_any_types_pat(first.pattern, env.venv), constraints.empty()
		_, cs4 = comprehension_in(env.with_venv(venv), ty, x, rest)
		return {}, constraints.combine(cs1, cs2, cs3, cs4)
	if isinstance(first, syntax.BGenerate):
		_, cs1 = check(env, BITSTRING, first.expr)
		_, _, venv, cs2 = add_types_pats([first.pattern], [BITSTRING], env, env.venv, binding=False)
		var_binds, cs3 = comprehension_in(env.with_venv(venv), ty, x, rest)
		return var_binds, constraints.combine(cs1, cs2, cs3)
	vb1, cs1 = check(env, BOOLEAN, first)
	vb2, cs2 = comprehension_in(env, ty, x, rest)
	return union_var_binds([vb1, vb2], env), constraints.combine(cs1, cs2)

def _segment_type(ty:GradualType, x) -> GradualType:
	"""
	Each element of a binary comprehension is appended to the result.
	A result that is some multiple of N bits needs elements that are too.
	A result with a minimum size needs the generators to be non-empty, which
	isn't checked, so elements just have to be bitstrings.
	"""
	if isinstance(ty, BinaryType):
		if ty.base == 0: return ty
		return BITSTRING
	raise errors.TypeMismatch(x, BITSTRING, ty)
