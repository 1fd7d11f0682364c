import unittest
from gradual.calculus import (
	IntType, UnionType, TypeVar,
	ANY, TOP, NONE, NIL, ATOM, TRUE, INTEGER, POS_INTEGER, BOOLEAN, NUMBER, ANY_TUPLE, ANY_MAP, BINARY, BITSTRING,
	atom, tuple_of, list_of, nonempty_list_of, map_of, exact,
)
from gradual.syntax import ModuleAttr
from gradual.environment import Options
from gradual.database import TypeDatabase
from gradual.checker import create_env
from gradual.glb import glb, glb_list, has_overlapping_keys
from gradual.subtype import is_subtype

def _env():
	return create_env([ModuleAttr("m")], Options(), TypeDatabase(), None)

class GlbTests(unittest.TestCase):

	def setUp(self) -> None:
		self.env = _env()

	def meet(self, t1, t2):
		ty, cs = glb(t1, t2, self.env)
		return ty

	def test_ranges(self):
		ty, cs = glb(IntType(1, 5), IntType(3, 10), self.env)
		self.assertEqual(IntType(3, 5), ty)
		assert cs.is_empty()
		self.assertEqual(NONE, self.meet(IntType(1, 2), IntType(3, 4)))

	def test_atoms(self):
		self.assertEqual(atom("ok"), self.meet(atom("ok"), ATOM))
		self.assertEqual(atom("ok"), self.meet(ATOM, atom("ok")))
		self.assertEqual(NONE, self.meet(atom("ok"), atom("error")))
		self.assertEqual(TRUE, self.meet(BOOLEAN, atom("true")))

	def test_tuples(self):
		self.assertEqual(
			tuple_of(POS_INTEGER, atom("ok")),
			self.meet(tuple_of(INTEGER, ATOM), tuple_of(POS_INTEGER, atom("ok"))),
		)
		self.assertEqual(NONE, self.meet(tuple_of(INTEGER), tuple_of(INTEGER, INTEGER)))
		self.assertEqual(NONE, self.meet(tuple_of(INTEGER, ATOM), tuple_of(INTEGER, INTEGER)))
		self.assertEqual(tuple_of(INTEGER), self.meet(ANY_TUPLE, tuple_of(INTEGER)))

	def test_lists(self):
		self.assertEqual(nonempty_list_of(POS_INTEGER), self.meet(list_of(INTEGER), nonempty_list_of(POS_INTEGER)))
		self.assertEqual(NONE, self.meet(NIL, nonempty_list_of(INTEGER)))
		self.assertEqual(NIL, self.meet(NIL, list_of(INTEGER)))

	def test_any_and_top(self):
		self.assertEqual(ANY, self.meet(ANY, INTEGER))
		self.assertEqual(ANY, self.meet(ATOM, ANY))
		self.assertEqual(INTEGER, self.meet(TOP, INTEGER))
		self.assertEqual(NONE, self.meet(NONE, ANY))

	def test_disjoint(self):
		for t1, t2 in [
			(INTEGER, ATOM),
			(NIL, INTEGER),
			(tuple_of(INTEGER), list_of(INTEGER)),
			(BINARY, ATOM),
		]:
			with self.subTest(t1=t1, t2=t2):
				self.assertEqual(NONE, self.meet(t1, t2))

	def test_unions_distribute(self):
		self.assertEqual(POS_INTEGER, self.meet(NUMBER, POS_INTEGER))
		self.assertEqual(
			UnionType([IntType(1, 3), atom("x")]),
			self.meet(UnionType([INTEGER, atom("x"), atom("y")]), UnionType([IntType(1, 3), atom("x")])),
		)

	def test_lower_bound(self):
		samples = [
			INTEGER, IntType(0, 9), POS_INTEGER, ATOM, atom("ok"), BOOLEAN, NUMBER, NIL,
			list_of(INTEGER), nonempty_list_of(ANY), tuple_of(INTEGER, ATOM), ANY_TUPLE, BINARY, BITSTRING,
		]
		for t1 in samples:
			for t2 in samples:
				with self.subTest(t1=t1, t2=t2):
					ty = self.meet(t1, t2)
					assert is_subtype(ty, t1, self.env)
					assert is_subtype(ty, t2, self.env)

	def test_type_variables(self):
		ty, cs = glb(TypeVar("A"), INTEGER, self.env)
		assert isinstance(ty, TypeVar)
		self.assertEqual(frozenset([TypeVar("A"), INTEGER]), cs.upper(ty.name))
		assert ty.name in cs.exist_vars

	def test_list_of_types(self):
		ty, cs = glb_list([NUMBER, POS_INTEGER, IntType(None, 3)], self.env)
		self.assertEqual(IntType(1, 3), ty)
		self.assertEqual(TOP, glb_list([], self.env)[0])

	def test_maps(self):
		a_int = map_of(exact(atom("a"), INTEGER))
		self.assertEqual(a_int, self.meet(a_int, ANY_MAP))
		assert not has_overlapping_keys(a_int, self.env)
		assert has_overlapping_keys(map_of(exact(atom("a"), INTEGER), exact(ATOM, ANY)), self.env)

	def test_cache(self):
		before = len(self.env.glb_cache)
		self.meet(INTEGER, POS_INTEGER)
		assert len(self.env.glb_cache) > before
		self.assertEqual(POS_INTEGER, self.meet(INTEGER, POS_INTEGER))

if __name__ == '__main__':
	unittest.main()
