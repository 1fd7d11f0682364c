import unittest
from gradual.calculus import IntType, UnionType, NONE, INTEGER, POS_INTEGER, NON_NEG_INTEGER, NEG_INTEGER, integer
from gradual.intrange import (
	is_int_subtype, int_type_glb, int_type_diff, int_range_diff, merge_int_types, negate_int_type, int_range_to_type,
)

class IntRangeTests(unittest.TestCase):

	def test_subtype(self):
		for t1, t2, expect in [
			(IntType(1, 10), INTEGER, True),
			(IntType(1, 10), POS_INTEGER, True),
			(IntType(0, 10), POS_INTEGER, False),
			(INTEGER, POS_INTEGER, False),
			(POS_INTEGER, NON_NEG_INTEGER, True),
			(NEG_INTEGER, IntType(None, 0), True),
			(integer(3), IntType(3, 5), True),
		]:
			with self.subTest(t1=t1, t2=t2):
				self.assertEqual(expect, is_int_subtype(t1, t2))

	def test_glb(self):
		self.assertEqual(IntType(3, 5), int_type_glb(IntType(1, 5), IntType(3, 10)))
		self.assertEqual(IntType(1, 5), int_type_glb(IntType(None, 5), POS_INTEGER))
		self.assertEqual(NONE, int_type_glb(IntType(1, 2), IntType(5, 6)))
		self.assertEqual(NONE, int_type_glb(NEG_INTEGER, NON_NEG_INTEGER))

	def test_diff(self):
		self.assertEqual(UnionType([IntType(0, 2), IntType(6, 10)]), int_type_diff(IntType(0, 10), IntType(3, 5)))
		self.assertEqual(NEG_INTEGER, int_type_diff(INTEGER, NON_NEG_INTEGER))
		self.assertEqual(IntType(None, 0), int_type_diff(INTEGER, POS_INTEGER))
		self.assertEqual(NONE, int_type_diff(IntType(2, 3), IntType(0, 10)))
		self.assertEqual([(1, 10)], int_range_diff((1, 10), (20, 30)))

	def test_merge(self):
		merged = merge_int_types([IntType(4, 6), IntType(1, 3), IntType(10, None), integer(12)])
		self.assertEqual([IntType(1, 6), IntType(10, None)], merged)
		self.assertEqual([INTEGER], merge_int_types([NEG_INTEGER, NON_NEG_INTEGER]))

	def test_negate(self):
		self.assertEqual(NEG_INTEGER, negate_int_type(POS_INTEGER))
		self.assertEqual(IntType(-5, 2), negate_int_type(IntType(-2, 5)))

	def test_empty_range(self):
		self.assertEqual(NONE, int_range_to_type((3, 1)))

if __name__ == '__main__':
	unittest.main()
