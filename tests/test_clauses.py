import unittest
from gradual.calculus import (
	UnionType, FunIntersection, ANY, FLOAT, ATOM, INTEGER, BOOLEAN, FALSE,
	integer, atom, fun, tuple_of,
)
from gradual.syntax import ModuleAttr, Clause, Var, Integer, Atom, Call, Fun, BinaryOp, Tuple
from gradual.environment import Options
from gradual.database import TypeDatabase
from gradual.checker import create_env
from gradual.checking import check
from gradual import clauses, constraints, errors
from gradual.normalize import normalize
from gradual.patterns import add_type_pat
from gradual.subtype import is_subtype

def _env(**options):
	return create_env([ModuleAttr("m")], Options(**options), TypeDatabase(), None)

def _clause(pattern, body, guards=()):
	return Clause([pattern], guards, [body])

def _is(test, name):
	return [[Call(Atom(test), [Var(name)])]]

TRUE_YES = _clause(Atom("true"), Atom("yes"))
FALSE_NO = _clause(Atom("false"), Atom("no"))

class CheckClausesTests(unittest.TestCase):

	def test_exhaustive(self):
		var_binds, cs = clauses.check_clauses(_env(), [BOOLEAN], ATOM, [TRUE_YES, FALSE_NO], binding=True)
		assert cs.is_empty()

	def test_not_exhaustive(self):
		with self.assertRaises(errors.NonExhaustive) as cm:
			clauses.check_clauses(_env(), [BOOLEAN], ATOM, [TRUE_YES], binding=True)
		self.assertEqual(["false"], [x.value for x in cm.exception.example])

	def test_exhaustiveness_can_be_turned_off(self):
		clauses.check_clauses(_env(exhaustiveness=False), [BOOLEAN], ATOM, [TRUE_YES], binding=True)

	def test_open_types_are_not_enumerated(self):
		clauses.check_clauses(_env(), [ATOM], ATOM, [TRUE_YES], binding=True)
		clauses.check_clauses(_env(), None, ATOM, [TRUE_YES], binding=True)

	def test_unreachable(self):
		catch_all = _clause(Var("_"), Atom("maybe"))
		with self.assertRaises(errors.UnreachableClause):
			clauses.check_clauses(_env(), [BOOLEAN], ATOM, [TRUE_YES, FALSE_NO, catch_all], binding=True)

	def test_nothing_to_check(self):
		self.assertEqual(({}, constraints.empty()), clauses.check_clauses(_env(), [BOOLEAN], ATOM, [], binding=True))

	def test_arity(self):
		with self.assertRaises(errors.ArityMismatch) as cm:
			clauses.check_clause(_env(), [INTEGER, INTEGER], ANY, TRUE_YES, binding=True)
		self.assertEqual((2, 1), (cm.exception.expected, cm.exception.given))

	def test_refined_argument_types(self):
		refined, var_binds, cs = clauses.check_clause(_env(), [BOOLEAN], ATOM, TRUE_YES, binding=True)
		self.assertEqual([FALSE], refined)

	def test_guard_refines_body(self):
		# Inside the clause, X is an integer, so X + 1 checks against integer().
		clause = _clause(Var("X"), BinaryOp("+", Var("X"), Integer(1)), _is("is_integer", "X"))
		clauses.check_clauses(_env(), [UnionType([INTEGER, ATOM])], INTEGER, [clause], binding=True)

class UnionPatternTests(unittest.TestCase):

	def test_pattern_type_covers_each_matching_member(self):
		env = _env()
		ty = normalize(UnionType([tuple_of(atom("ok"), INTEGER), tuple_of(atom("ok"), ATOM), atom("error")]), env)
		pat_ty, ubound, venv, _ = add_type_pat(Tuple([Atom("ok"), Var("X")]), ty, env, {})
		expect = normalize(UnionType([tuple_of(atom("ok"), INTEGER), tuple_of(atom("ok"), ATOM)]), env)
		self.assertEqual(expect, pat_ty)
		self.assertEqual(expect, ubound)
		assert is_subtype(INTEGER, venv["X"], env)
		assert is_subtype(ATOM, venv["X"], env)

class GuardRefinementTests(unittest.TestCase):

	def test_failed_type_test_refines_the_argument(self):
		clause = _clause(Var("X"), Atom("int"), _is("is_integer", "X"))
		refined = clauses.refine_mismatch_using_guards([UnionType([INTEGER, ATOM])], clause, {}, _env())
		self.assertEqual([ATOM], refined)

	def test_only_fresh_variables(self):
		clause = _clause(Var("X"), Atom("int"), _is("is_integer", "X"))
		before = [UnionType([INTEGER, ATOM])]
		self.assertEqual(before, clauses.refine_mismatch_using_guards(before, clause, {"X": ANY}, _env()))

	def test_failed_type_test_refines_a_bound_variable(self):
		clause = _clause(Var("_"), Atom("int"), _is("is_integer", "X"))
		venv = {"X": UnionType([INTEGER, ATOM])}
		self.assertEqual({"X": ATOM}, clauses.refine_vars_by_mismatching_clause(clause, venv, _env()))

	def test_patterns_matching_everything(self):
		self.assertTrue(clauses.are_patterns_matching_all_input([Var("X"), Var("_"), Var("_")], {}))
		self.assertFalse(clauses.are_patterns_matching_all_input([Var("X"), Var("X")], {}))
		self.assertFalse(clauses.are_patterns_matching_all_input([Var("Y")], {"Y": INTEGER}))
		self.assertFalse(clauses.are_patterns_matching_all_input([Atom("ok")], {}))

class InferClausesTests(unittest.TestCase):

	def test_union_of_bodies(self):
		clause_list = [_clause(Atom("a"), Integer(1)), _clause(Atom("b"), Atom("x"))]
		ty, var_binds, cs = clauses.infer_clauses(_env(infer=True), clause_list)
		self.assertEqual(UnionType([integer(1), atom("x")]), ty)

	def test_dynamic_without_inference(self):
		ty, _, _ = clauses.infer_clauses(_env(), [_clause(Atom("a"), Integer(1))])
		self.assertEqual(ANY, ty)

class FunShapeTests(unittest.TestCase):

	def test_intersection_needs_every_clause(self):
		both = FunIntersection([fun([INTEGER], INTEGER), fun([ATOM], ATOM)])
		check(_env(), both, Fun([_clause(Var("X"), Var("X"))]))
		with self.assertRaises(errors.TypeMismatch):
			check(_env(), both, Fun([_clause(Var("X"), Integer(1))]))

	def test_union_needs_any_one(self):
		either = UnionType([fun([INTEGER], INTEGER), fun([ATOM], ATOM)])
		check(_env(), either, Fun([_clause(Var("X"), Integer(1))]))

	def test_union_with_no_fit(self):
		either = UnionType([fun([INTEGER], INTEGER), fun([INTEGER], FLOAT)])
		with self.assertRaises(errors.TypeMismatch) as cm:
			check(_env(), either, Fun([_clause(Var("X"), Atom("ok"))]))
		self.assertEqual("check_clauses", cm.exception.reason)

if __name__ == '__main__':
	unittest.main()
