import unittest
from gradual.calculus import (
	IntType, UnionType, UserType, RecordType,
	ANY, TOP, NONE, NIL, ATOM, TRUE, FALSE, FLOAT, INTEGER, POS_INTEGER, BOOLEAN, NUMBER, ANY_TUPLE,
	integer, atom, tuple_of, list_of, nonempty_list_of, builtin,
)
from gradual import syntax
from gradual.syntax import ModuleAttr, TypeDef, RecordDef, RecordFieldDef
from gradual.environment import Options
from gradual.database import TypeDatabase
from gradual.checker import create_env
from gradual.refine import type_diff, refinable, pick_value, pick_one_refinement_each
from gradual.glb import glb
from gradual.subtype import is_subtype

COLOR = TypeDef("color", [], UnionType([atom("red"), atom("green")]))
ABC = UnionType([atom("a"), atom("b"), atom("c")])

def _env(forms=()):
	return create_env([ModuleAttr("m"), *forms], Options(), TypeDatabase(), None)

class TypeDiffTests(unittest.TestCase):

	def setUp(self) -> None:
		self.env = _env([COLOR])

	def test_refinements(self):
		for t1, t2, expect in [
			(BOOLEAN, TRUE, FALSE),
			(INTEGER, POS_INTEGER, IntType(None, 0)),
			(list_of(INTEGER), NIL, nonempty_list_of(INTEGER)),
			(NUMBER, INTEGER, FLOAT),
			(atom("ok"), ATOM, NONE),
			(tuple_of(BOOLEAN), tuple_of(TRUE), tuple_of(FALSE)),
			(UserType("color"), atom("red"), atom("green")),
			(INTEGER, INTEGER, NONE),
			(ABC, atom("a"), UnionType([atom("b"), atom("c")])),
		]:
			with self.subTest(t1=t1, t2=t2):
				self.assertEqual(expect, type_diff(t1, t2, self.env))

	def test_no_refinement(self):
		for t1, t2 in [
			(ATOM, atom("ok")),
			(INTEGER, ATOM),
			(integer(1), integer(2)),
			(ANY, INTEGER),
			(INTEGER, NONE),
			(ABC, UnionType([atom("a"), atom("c")])),
		]:
			with self.subTest(t1=t1, t2=t2):
				self.assertEqual(t1, type_diff(t1, t2, self.env))

	def test_diff_leaves_no_overlap(self):
		for t1, t2 in [
			(BOOLEAN, TRUE),
			(INTEGER, POS_INTEGER),
			(list_of(INTEGER), NIL),
			(NUMBER, INTEGER),
			(ABC, atom("a")),
		]:
			with self.subTest(t1=t1, t2=t2):
				diff = type_diff(t1, t2, self.env)
				assert is_subtype(diff, t1, self.env)
				self.assertEqual(NONE, glb(diff, t2, self.env)[0])

	def test_one_refinement_each(self):
		rows = pick_one_refinement_each([BOOLEAN, INTEGER], [FALSE, NONE])
		self.assertEqual([[FALSE, INTEGER]], rows)

class RefinableTests(unittest.TestCase):

	def test_refinable(self):
		env = _env([COLOR])
		for ty in [BOOLEAN, INTEGER, tuple_of(BOOLEAN, integer(1)), NIL, list_of(BOOLEAN), UserType("color"), builtin("boolean")]:
			with self.subTest(ty):
				assert refinable(ty, env)

	def test_not_refinable(self):
		env = _env()
		for ty in [ATOM, TOP, ANY_TUPLE, ANY, tuple_of(ATOM), UserType("nowhere")]:
			with self.subTest(ty):
				assert not refinable(ty, env)

	def test_records(self):
		env = _env([
			RecordDef("flag", [RecordFieldDef("on", BOOLEAN)]),
			RecordDef("blob", [RecordFieldDef("data")]),
		])
		assert refinable(RecordType("flag"), env)
		assert refinable(UnionType([RecordType("flag"), atom("ok")]), env)
		assert not refinable(RecordType("blob"), env)
		assert not refinable(RecordType("missing"), env)

class PickValueTests(unittest.TestCase):

	def test_examples(self):
		env = _env([COLOR])
		false, three = pick_value([FALSE, IntType(3, 5)], env)
		assert isinstance(false, syntax.Atom) and false.value == "false"
		assert isinstance(three, syntax.Integer) and three.value == 3
		green, = pick_value([type_diff(UserType("color"), atom("red"), env)], env)
		self.assertEqual("green", green.value)

	def test_structures(self):
		env = _env()
		pair, empty, negative = pick_value([tuple_of(TRUE, NIL), NIL, IntType(None, -1)], env)
		assert isinstance(pair, syntax.Tuple)
		self.assertEqual("true", pair.elements[0].value)
		assert isinstance(empty, syntax.Nil)
		self.assertEqual(-1, negative.value)

if __name__ == '__main__':
	unittest.main()
