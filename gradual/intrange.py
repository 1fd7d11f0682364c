"""
Integer range arithmetic.

Every integer type is an IntType(lo, hi) with None for an open end,
so most of what happens here is interval arithmetic with a little care
about the open ends. Operations that can produce more than one interval
(difference, mostly) hand back a list of disjoint ranges in increasing
order, or a union type built from such a list.
"""
from typing import Optional, Iterable
from .calculus import GradualType, IntType, NONE, union

Bound = Optional[int]
Range = tuple[Bound, Bound]

def int_type_to_range(t:IntType) -> Range:
	return t.lo, t.hi

def int_range_to_type(r:Range) -> GradualType:
	lo, hi = r
	if lo is not None and hi is not None and lo > hi: return NONE
	return IntType(lo, hi)

def int_ranges_to_type(ranges:Iterable[Range]) -> GradualType:
	return union(*(IntType(lo, hi) for lo, hi in ranges))

def _le(a:Bound, b:Bound, open_a:int, open_b:int) -> bool:
	"""
	Compare two bounds where None stands for an infinity.
	The open_x arguments say which infinity: -1 for lower bounds, +1 for upper.
	"""
	if a is None and b is None: return open_a <= open_b
	if a is None: return open_a < 0
	if b is None: return open_b > 0
	return a <= b

def _max_lo(a:Bound, b:Bound) -> Bound:
	if a is None: return b
	if b is None: return a
	return max(a, b)

def _min_hi(a:Bound, b:Bound) -> Bound:
	if a is None: return b
	if b is None: return a
	return min(a, b)

def _nonempty(lo:Bound, hi:Bound) -> bool:
	return lo is None or hi is None or lo <= hi

def is_int_subtype(t1:IntType, t2:IntType) -> bool:
	return _le(t2.lo, t1.lo, -1, -1) and _le(t1.hi, t2.hi, 1, 1)

def int_type_glb(t1:IntType, t2:IntType) -> GradualType:
	lo, hi = _max_lo(t1.lo, t2.lo), _min_hi(t1.hi, t2.hi)
	return IntType(lo, hi) if _nonempty(lo, hi) else NONE

def int_range_diff(r1:Range, r2:Range) -> list[Range]:
	""" Return the parts of r1 which are not in r2, as a list of ranges. """
	lo1, hi1 = r1
	lo2, hi2 = r2
	if not _nonempty(_max_lo(lo1, lo2), _min_hi(hi1, hi2)):
		return [r1]
	pieces = []
	if lo2 is not None and _le(lo1, lo2 - 1, -1, 1):
		pieces.append((lo1, lo2 - 1))
	if hi2 is not None and _le(hi2 + 1, hi1, -1, 1):
		pieces.append((hi2 + 1, hi1))
	return pieces

def int_type_diff(t1:IntType, t2:IntType) -> GradualType:
	return int_ranges_to_type(int_range_diff(int_type_to_range(t1), int_type_to_range(t2)))

def _sort_key(r:Range):
	lo = r[0]
	return (0, 0) if lo is None else (1, lo)

def merge_int_ranges(ranges:Iterable[Range]) -> list[Range]:
	""" Merge overlapping and adjacent ranges into maximal disjoint ones, in increasing order. """
	result = []
	for lo, hi in sorted(ranges, key=_sort_key):
		if result:
			prev_lo, prev_hi = result[-1]
			if prev_hi is None or (lo is not None and lo <= prev_hi + 1) or lo is None:
				if prev_hi is None or hi is None: new_hi = None
				else: new_hi = max(prev_hi, hi)
				result[-1] = (prev_lo, new_hi)
				continue
		result.append((lo, hi))
	return result

def merge_int_types(types:Iterable[IntType]) -> list[IntType]:
	return [IntType(lo, hi) for lo, hi in merge_int_ranges(int_type_to_range(t) for t in types)]

def negate_int_type(t:IntType) -> IntType:
	lo = None if t.hi is None else -t.hi
	hi = None if t.lo is None else -t.lo
	return IntType(lo, hi)

