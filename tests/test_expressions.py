"""
Expression-level rules: inference, checking, guards, and records.
Each test builds a tiny environment by hand rather than parsing anything.
"""
import unittest
from gradual.calculus import (
	IntType, UnionType, RecordType,
	ANY, FLOAT, ATOM, INTEGER, POS_INTEGER, NON_NEG_INTEGER, BOOLEAN, ANY_TUPLE,
	integer, atom, tuple_of, list_of, nonempty_list_of, fun,
)
from gradual.syntax import (
	ModuleAttr, RecordDef, RecordFieldDef, Clause,
	Var, Integer, Atom, Nil, Tuple, Cons, Match, Call, BinaryOp, Case, Fun,
	TypeAnnotation, RecordExpr, RecordField, RecordFieldAccess, RecordIndex,
)
from gradual.environment import Options
from gradual.database import TypeDatabase
from gradual.checker import create_env
from gradual.inference import infer
from gradual.checking import check
from gradual.guards import check_guards, type_comp_op, _ABOVE_NUMBERS
from gradual import errors

POINT = RecordDef("point", [RecordFieldDef("x", INTEGER), RecordFieldDef("y", INTEGER, Integer(0))])

def _env(forms=(), venv=None, **options):
	env = create_env([ModuleAttr("m"), *forms], Options(**options), TypeDatabase(), None)
	return env.with_venv(venv or {})

def _clause(pattern, body):
	return Clause([pattern], [], [body])

class InferenceTests(unittest.TestCase):

	def test_literals_are_dynamic_by_default(self):
		for expr in [Integer(42), Atom("ok"), Nil(), Tuple([Integer(1), Atom("ok")])]:
			with self.subTest(expr):
				self.assertEqual(ANY, infer(_env(), expr)[0])

	def test_literals_with_inference(self):
		env = _env(infer=True)
		self.assertEqual(integer(42), infer(env, Integer(42))[0])
		self.assertEqual(atom("ok"), infer(env, Atom("ok"))[0])
		self.assertEqual(tuple_of(integer(1), atom("ok")), infer(env, Tuple([Integer(1), Atom("ok")]))[0])
		self.assertEqual(nonempty_list_of(integer(1)), infer(env, Cons(Integer(1), Nil()))[0])

	def test_known_types_propagate(self):
		env = _env(venv={"X": INTEGER})
		self.assertEqual(tuple_of(INTEGER, ANY), infer(env, Tuple([Var("X"), Integer(1)]))[0])

	def test_match_binds(self):
		ty, var_binds, cs = infer(_env(venv={"Y": INTEGER}), Match(Var("X"), Var("Y")))
		self.assertEqual(INTEGER, ty)
		self.assertEqual({"X": INTEGER}, var_binds)
		assert cs.is_empty()

	def test_unbound_variable(self):
		with self.assertRaises(errors.UndefinedReference):
			infer(_env(), Var("Nope"))

	def test_builtin_call(self):
		env = _env(venv={"L": list_of(INTEGER)})
		self.assertEqual(NON_NEG_INTEGER, infer(env, Call(Atom("length"), [Var("L")]))[0])

	def test_undefined_function(self):
		with self.assertRaises(errors.UndefinedFunction) as cm:
			infer(_env(), Call(Atom("nope"), []))
		self.assertEqual(("nope", 0), (cm.exception.name, cm.exception.arity))

	def test_wrong_number_of_arguments(self):
		env = _env(venv={"F": fun([INTEGER], INTEGER)})
		with self.assertRaises(errors.ArityMismatch) as cm:
			infer(env, Call(Var("F"), [Integer(1), Integer(2)]))
		self.assertEqual((1, 2), (cm.exception.expected, cm.exception.given))

	def test_calling_a_non_function(self):
		env = _env(venv={"N": INTEGER})
		with self.assertRaises(errors.TypeMismatch) as cm:
			infer(env, Call(Var("N"), []))
		self.assertEqual("call", cm.exception.reason)

	def test_annotations(self):
		self.assertEqual(INTEGER, infer(_env(), TypeAnnotation(Integer(1), INTEGER))[0])
		with self.assertRaises(errors.TypeMismatch) as cm:
			infer(_env(infer=True), TypeAnnotation(Atom("ok"), INTEGER, ":::"))
		self.assertEqual("cast", cm.exception.reason)

class CheckingTests(unittest.TestCase):

	def test_mismatch_reports_both_types(self):
		with self.assertRaises(errors.TypeMismatch) as cm:
			check(_env(), INTEGER, Atom("ok"))
		self.assertEqual(atom("ok"), cm.exception.actual)
		self.assertEqual(INTEGER, cm.exception.expected)

	def test_dynamic_expectation_infers(self):
		var_binds, cs = check(_env(venv={"Y": ATOM}), ANY, Match(Var("X"), Var("Y")))
		self.assertEqual({"X": ATOM}, var_binds)

	def test_tuples_against_unions(self):
		env = _env()
		expected = UnionType([tuple_of(atom("ok"), INTEGER), tuple_of(atom("error"), ATOM)])
		check(env, expected, Tuple([Atom("error"), Atom("enoent")]))
		with self.assertRaises(errors.TypeMismatch):
			check(env, expected, Tuple([Atom("error"), Integer(5)]))

	def test_lists(self):
		env = _env()
		check(env, list_of(INTEGER), Cons(Integer(1), Cons(Integer(2), Nil())))
		with self.assertRaises(errors.TypeMismatch):
			check(env, list_of(INTEGER), Cons(Integer(1), Cons(Atom("two"), Nil())))

	def test_arithmetic(self):
		env = _env(venv={"X": INTEGER, "N": POS_INTEGER})
		check(env, INTEGER, BinaryOp("+", Var("X"), Integer(1)))
		check(env, NON_NEG_INTEGER, BinaryOp("-", Var("N"), Integer(1)))
		with self.assertRaises(errors.TypeMismatch) as cm:
			check(env, POS_INTEGER, BinaryOp("-", Var("X"), Integer(1)))
		self.assertEqual("op_type_too_precise", cm.exception.reason)
		with self.assertRaises(errors.TypeMismatch) as cm:
			check(env, ATOM, BinaryOp("+", Var("X"), Integer(1)))
		self.assertEqual("arith_error", cm.exception.reason)

	def test_boolean_operators(self):
		env = _env(venv={"B": BOOLEAN, "C": BOOLEAN})
		check(env, BOOLEAN, BinaryOp("andalso", Var("B"), Var("C")))
		check(env, BOOLEAN, BinaryOp("<", Var("B"), Var("C")))
		with self.assertRaises(errors.TypeMismatch):
			check(env, INTEGER, BinaryOp("and", Var("B"), Var("C")))

	def test_call_result(self):
		env = _env(venv={"L": list_of(INTEGER)})
		with self.assertRaises(errors.TypeMismatch) as cm:
			check(env, ATOM, Call(Atom("length"), [Var("L")]))
		self.assertEqual(NON_NEG_INTEGER, cm.exception.actual)

	def test_case_exhaustive(self):
		env = _env(venv={"X": BOOLEAN})
		case = Case(Var("X"), [_clause(Atom("true"), Atom("yes")), _clause(Atom("false"), Atom("no"))])
		check(env, ATOM, case)

	def test_case_not_exhaustive(self):
		env = _env(venv={"X": BOOLEAN})
		with self.assertRaises(errors.NonExhaustive) as cm:
			check(env, ATOM, Case(Var("X"), [_clause(Atom("true"), Atom("yes"))]))
		[example] = cm.exception.example
		self.assertEqual("false", example.value)

	def test_case_body_mismatch(self):
		env = _env(venv={"X": BOOLEAN})
		case = Case(Var("X"), [_clause(Atom("true"), Integer(1)), _clause(Atom("false"), Atom("no"))])
		with self.assertRaises(errors.TypeMismatch):
			check(env, ATOM, case)

	def test_funs(self):
		identity = Fun([_clause(Var("X"), Var("X"))])
		self.assertEqual({}, check(_env(), fun([INTEGER], INTEGER), identity)[0])
		with self.assertRaises(errors.TypeMismatch):
			check(_env(), fun([INTEGER], ATOM), identity)
		with self.assertRaises(errors.TypeMismatch):
			check(_env(), ATOM, identity)

class GuardTests(unittest.TestCase):

	def test_type_test(self):
		guard = [[Call(Atom("is_integer"), [Var("X")])]]
		self.assertEqual({"X": INTEGER}, check_guards(_env(), guard))

	def test_alternatives(self):
		guards = [[Call(Atom("is_integer"), [Var("X")])], [Call(Atom("is_atom"), [Var("X")])]]
		self.assertEqual({"X": UnionType([INTEGER, ATOM])}, check_guards(_env(), guards))
		orelse = BinaryOp("orelse", Call(Atom("is_integer"), [Var("X")]), Call(Atom("is_atom"), [Var("X")]))
		self.assertEqual({"X": UnionType([INTEGER, ATOM])}, check_guards(_env(), [[orelse]]))

	def test_no_guards(self):
		self.assertEqual({}, check_guards(_env(), []))

	def test_comparisons(self):
		self.assertEqual(UnionType([IntType(1, None)] + _ABOVE_NUMBERS), type_comp_op('>', 0))
		self.assertEqual(UnionType([FLOAT, IntType(None, 4)]), type_comp_op('<', 5))
		self.assertEqual(integer(3), type_comp_op('=:=', 3))
		self.assertEqual(atom("ok"), type_comp_op('==', "ok"))
		self.assertEqual(ANY, type_comp_op('<', "ok"))
		mirrored = check_guards(_env(), [[BinaryOp("<", Integer(0), Var("X"))]])
		self.assertEqual({"X": type_comp_op('>', 0)}, mirrored)

class RecordTests(unittest.TestCase):

	def setUp(self) -> None:
		self.env = _env([POINT])

	def test_construction(self):
		self.assertEqual(RecordType("point"), infer(self.env, RecordExpr("point", [RecordField("x", Integer(1))]))[0])
		infer(self.env, RecordExpr("point", [RecordField("_", Integer(3))]))

	def test_missing_field_without_default(self):
		with self.assertRaises(errors.TypeMismatch) as cm:
			infer(self.env, RecordExpr("point", [RecordField("y", Integer(2))]))
		self.assertEqual("record_default", cm.exception.reason)

	def test_wrong_field_type(self):
		with self.assertRaises(errors.TypeMismatch):
			infer(self.env, RecordExpr("point", [RecordField("x", Atom("one"))]))

	def test_unknown_field(self):
		with self.assertRaises(errors.UndefinedField) as cm:
			infer(self.env, RecordExpr("point", [RecordField("x", Integer(1)), RecordField("z", Integer(1))]))
		self.assertEqual(("point", "z"), (cm.exception.record, cm.exception.name))

	def test_unknown_record(self):
		with self.assertRaises(errors.UndefinedRecord):
			infer(self.env, RecordExpr("nope", []))

	def test_access(self):
		env = self.env.with_venv({"P": RecordType("point")})
		self.assertEqual(INTEGER, infer(env, RecordFieldAccess(Var("P"), "point", "y"))[0])
		self.assertEqual(integer(3), infer(env.with_infer(True), RecordIndex("point", "y"))[0])
		with self.assertRaises(errors.TypeMismatch):
			check(env, ATOM, RecordFieldAccess(Var("P"), "point", "x"))

	def test_records_are_tuples(self):
		check(self.env, ANY_TUPLE, RecordExpr("point", [RecordField("x", Integer(1))]))

if __name__ == '__main__':
	unittest.main()
