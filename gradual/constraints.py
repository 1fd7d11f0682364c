"""
The constraint accumulator.

Subtyping against a type variable never fails on the spot.
It only writes down a bound: an upper bound when the variable is
on the left, a lower bound when it is on the right. These bounds
pile up as the checker goes along, and something downstream may
eventually try to solve them by intersecting upper bounds.

Constraints are values: combining two of them makes a third and
leaves the originals alone. That matters because the checker tries
alternatives (union members, intersection clauses) and throws the
losers away, constraints and all.
"""
from typing import NamedTuple
from .calculus import GradualType

def _merge(a:dict, b:dict) -> dict:
	if not a: return b
	if not b: return a
	result = dict(a)
	for var, bounds in b.items():
		result[var] = result[var] | bounds if var in result else bounds
	return result

class Constraints(NamedTuple):
	lower_bounds: dict[str, frozenset[GradualType]]
	upper_bounds: dict[str, frozenset[GradualType]]
	exist_vars: frozenset[str]

	def is_empty(self) -> bool:
		return not (self.lower_bounds or self.upper_bounds or self.exist_vars)

	def upper(self, var:str) -> frozenset[GradualType]: return self.upper_bounds.get(var, frozenset())
	def lower(self, var:str) -> frozenset[GradualType]: return self.lower_bounds.get(var, frozenset())

	def __repr__(self):
		if self.is_empty(): return "<no constraints>"
		bits = []
		for var, bounds in sorted(self.upper_bounds.items()):
			bits.extend("%s <: %r"%(var, b) for b in bounds)
		for var, bounds in sorted(self.lower_bounds.items()):
			bits.extend("%r <: %s"%(b, var) for b in bounds)
		if self.exist_vars:
			bits.append("exists "+", ".join(sorted(self.exist_vars)))
		return "<%s>"%"; ".join(bits)

_EMPTY = Constraints({}, {}, frozenset())

def empty() -> Constraints:
	return _EMPTY

def upper(var:str, ty:GradualType) -> Constraints:
	""" The variable is a subtype of the type. """
	return Constraints({}, {var: frozenset([ty])}, frozenset())

def lower(var:str, ty:GradualType) -> Constraints:
	""" The type is a subtype of the variable. """
	return Constraints({var: frozenset([ty])}, {}, frozenset())

def add_var(var:str, cs:Constraints) -> Constraints:
	""" Note that the variable is existentially quantified: the checker minted it. """
	return cs._replace(exist_vars=cs.exist_vars | {var})

def combine(*parts) -> Constraints:
	"""
	Either combine(c1, c2, ...) or combine(some_iterable_of_constraints).
	The operation is associative and commutative, with empty() as the unit.
	"""
	if len(parts) == 1 and not isinstance(parts[0], Constraints):
		parts = tuple(parts[0])
	result = _EMPTY
	for cs in parts:
		assert isinstance(cs, Constraints), cs
		if cs.is_empty(): continue
		if result.is_empty():
			result = cs
			continue
		result = Constraints(
			_merge(result.lower_bounds, cs.lower_bounds),
			_merge(result.upper_bounds, cs.upper_bounds),
			result.exist_vars | cs.exist_vars,
		)
	return result

