import unittest
from gradual.calculus import (
	IntType, UnionType, RecordType, UserType, BinaryType, TypeVar,
	ANY, TOP, NONE, NIL, ATOM, FLOAT, INTEGER, POS_INTEGER, BOOLEAN, NUMBER, BINARY, BITSTRING,
	ANY_TUPLE, ANY_FUN, ANY_MAP, FunIntersection,
	integer, atom, tuple_of, list_of, nonempty_list_of, fun, exact, optional, map_of, builtin,
)
from gradual.syntax import ModuleAttr, TypeDef, RecordDef, RecordFieldDef
from gradual.environment import Options
from gradual.database import TypeDatabase
from gradual.checker import create_env
from gradual.subtype import subtype, is_subtype, subtypes, compatible

def _env(forms=()):
	return create_env([ModuleAttr("m"), *forms], Options(), TypeDatabase(), None)

SAMPLES = [
	INTEGER, IntType(1, 10), atom("ok"), ATOM, FLOAT, NIL, list_of(INTEGER), nonempty_list_of(ATOM),
	tuple_of(INTEGER, ATOM), ANY_TUPLE, fun([INTEGER], ATOM), ANY_FUN, map_of(exact(atom("a"), INTEGER)),
	ANY_MAP, BINARY, BITSTRING, BOOLEAN, NUMBER, builtin("pid"), TOP,
]

class PropertyTests(unittest.TestCase):

	def test_reflexive(self):
		env = _env()
		for t in SAMPLES:
			with self.subTest(t):
				assert is_subtype(t, t, env)

	def test_any_goes_both_ways(self):
		env = _env()
		for t in SAMPLES:
			with self.subTest(t):
				assert is_subtype(ANY, t, env)
				assert is_subtype(t, ANY, env)

	def test_none_below_and_top_above(self):
		env = _env()
		for t in SAMPLES:
			with self.subTest(t):
				assert is_subtype(NONE, t, env)
				assert is_subtype(t, TOP, env)

	def test_union_distributes_on_the_left(self):
		env = _env()
		for a, b, c in [
			(integer(1), atom("x"), UnionType([INTEGER, ATOM])),
			(integer(1), atom("x"), INTEGER),
			(NIL, list_of(INTEGER), list_of(INTEGER)),
		]:
			with self.subTest(c=c):
				self.assertEqual(
					is_subtype(UnionType([a, b]), c, env),
					is_subtype(a, c, env) and is_subtype(b, c, env),
				)

class ScenarioTests(unittest.TestCase):

	def test_range_is_integer(self):
		cs = subtype(IntType(1, 10), INTEGER, _env())
		assert cs is not None and cs.is_empty()

	def test_basic_no(self):
		env = _env()
		for t1, t2 in [
			(INTEGER, POS_INTEGER),
			(ATOM, atom("ok")),
			(FLOAT, INTEGER),
			(NUMBER, INTEGER),
			(list_of(INTEGER), nonempty_list_of(INTEGER)),
			(tuple_of(INTEGER), tuple_of(INTEGER, INTEGER)),
			(BITSTRING, BINARY),
			(TOP, INTEGER),
		]:
			with self.subTest(t1=t1, t2=t2):
				assert subtype(t1, t2, env) is None

	def test_basic_yes(self):
		env = _env()
		for t1, t2 in [
			(POS_INTEGER, INTEGER),
			(atom("ok"), ATOM),
			(NIL, list_of(INTEGER)),
			(nonempty_list_of(POS_INTEGER), list_of(INTEGER)),
			(tuple_of(INTEGER, ATOM), ANY_TUPLE),
			(BINARY, BITSTRING),
			(BinaryType(8, 0), BINARY),
			(BOOLEAN, ATOM),
			(builtin("boolean"), UnionType([TOP, INTEGER])),
		]:
			with self.subTest(t1=t1, t2=t2):
				assert subtype(t1, t2, env) is not None

	def test_functions(self):
		env = _env()
		assert is_subtype(fun([NUMBER], POS_INTEGER), fun([INTEGER], INTEGER), env)
		assert not is_subtype(fun([POS_INTEGER], INTEGER), fun([INTEGER], INTEGER), env)
		assert is_subtype(fun([INTEGER], INTEGER), ANY_FUN, env)
		assert not is_subtype(ANY_FUN, fun([INTEGER], INTEGER), env)

	def test_intersections(self):
		env = _env()
		both = FunIntersection([fun([INTEGER], INTEGER), fun([ATOM], ATOM)])
		assert is_subtype(both, fun([ATOM], ATOM), env)
		assert not is_subtype(fun([ATOM], ATOM), both, env)

	def test_maps(self):
		env = _env()
		a_int = map_of(exact(atom("a"), INTEGER))
		assert subtype(a_int, map_of(exact(atom("a"), INTEGER), exact(atom("c"), ANY)), env) is None
		assert subtype(a_int, map_of(exact(atom("a"), INTEGER), optional(atom("b"), ATOM)), env) is not None
		assert subtype(a_int, ANY_MAP, env) is not None
		assert subtype(map_of(optional(atom("a"), INTEGER)), a_int, env) is None

	def test_mandatory_keys_narrower_values(self):
		env = _env()
		a_one = map_of(exact(atom("a"), integer(1)))
		assert subtype(a_one, map_of(exact(atom("a"), INTEGER)), env) is not None
		assert subtype(a_one, map_of(exact(atom("a"), INTEGER), optional(atom("b"), ATOM)), env) is not None
		assert subtype(map_of(exact(atom("a"), INTEGER)), a_one, env) is None
		assert subtype(map_of(exact(atom("a"), ATOM)), map_of(exact(atom("a"), INTEGER)), env) is None

	def test_records(self):
		env = _env([RecordDef("point", [RecordFieldDef("x", INTEGER), RecordFieldDef("y", INTEGER)])])
		refined = RecordType("point", [("x", POS_INTEGER), ("y", integer(0))])
		assert is_subtype(refined, RecordType("point"), env)
		assert not is_subtype(RecordType("point"), refined, env)
		assert is_subtype(RecordType("point"), ANY_TUPLE, env)
		assert not is_subtype(RecordType("point"), RecordType("other"), env)

	def test_recursive_types(self):
		tree = UnionType([atom("leaf"), tuple_of(UserType("tree"), UserType("tree"))])
		env = _env([TypeDef("tree", [], tree)])
		small = tuple_of(atom("leaf"), tuple_of(atom("leaf"), atom("leaf")))
		assert is_subtype(small, UserType("tree"), env)
		assert is_subtype(UserType("tree"), UserType("tree"), env)
		assert not is_subtype(tuple_of(atom("leaf"), INTEGER), UserType("tree"), env)

	def test_variables_make_constraints(self):
		env = _env()
		cs = subtype(TypeVar("A"), INTEGER, env)
		assert cs.upper("A") == frozenset([INTEGER])
		cs = subtype(ATOM, TypeVar("B"), env)
		assert cs.lower("B") == frozenset([ATOM])

	def test_pairwise_and_either_way(self):
		env = _env()
		assert subtypes([POS_INTEGER, atom("x")], [INTEGER, ATOM], env) is not None
		assert subtypes([POS_INTEGER], [INTEGER, ATOM], env) is None
		assert compatible(INTEGER, POS_INTEGER, env) is not None
		assert compatible(INTEGER, ATOM, env) is None

if __name__ == '__main__':
	unittest.main()
