"""
The Algebra of Gradual Types
============================

These bits represent the data over which the type-checker operates.

Every type is an immutable value-object. Two types are equal exactly when
they are built the same way from the same parts, and there is no position
information anywhere in here. Consequently, a "normalized" type never carries
a stray annotation, and comparing two types is plain structural equality.

Conveniently, type-numbering is just an equivalence classification scheme.
I can reuse the one from booze-tools. The number makes hashing cheap and
gives every structurally-equal type a single exemplar.

Some of these classes exist only on the input side: aliases like `string()`,
references to user-defined or remote types, and arithmetic in range bounds.
Normalization (in a separate module) unfolds those, but only one layer at a
time, so they do turn up nested inside other types throughout the checker.

Lists get one class for the whole family. Rather than spelling out
`list`, `nonempty_list`, `maybe_improper_list` and friends, a ListType
records whether it is known to be nonempty, the element type, and the type
of the terminating tail. Proper lists have NIL for a tail. The empty list
itself is NIL, which is a different class.
"""
from typing import Optional, Sequence, Iterable
from boozetools.support.foundation import EquivalenceClassifier

_type_numbering_subsystem = EquivalenceClassifier()

class GradualType:
	"""Value objects so they can play well with the classifier"""
	rank = 99  # Position in the canonical ordering of union members.

	def visit(self, visitor:"TypeVisitor"): raise NotImplementedError(type(self))

	def __init__(self, *key):
		self._key = key
		self._hash = hash((type(self).__name__,)+key)
		self.number = _type_numbering_subsystem.classify(self)
	def __hash__(self): return self._hash
	def __eq__(self, other): return type(self) is type(other) and self._key == other._key
	def exemplar(self) -> "GradualType": return _type_numbering_subsystem.exemplars[self.number]
	def __repr__(self) -> str:
		it = self.visit(Render())
		assert isinstance(it, str), (it, type(self))
		return it

class _Any(GradualType):
	"""
	The dynamic type: gradual typing's "I don't know".
	It is compatible in both directions with absolutely everything.
	"""
	rank = 0
	def visit(self, visitor:"TypeVisitor"): return visitor.on_any()

class _Top(GradualType):
	""" The static top of the subtyping hierarchy. Unlike any(), nothing is a supertype of it. """
	rank = 1
	def visit(self, visitor:"TypeVisitor"): return visitor.on_top()

class _None(GradualType):
	""" The empty type. It has no values, so it is a subtype of everything. """
	rank = 2
	def visit(self, visitor:"TypeVisitor"): return visitor.on_none()

class TypeVar(GradualType):
	rank = 3
	def __init__(self, name:str):
		assert isinstance(name, str), name
		self.name = name
		super().__init__(name)
	def visit(self, visitor:"TypeVisitor"): return visitor.on_var(self)

class AtomType(GradualType):
	""" A singleton atom, or else atom() itself when the name is None. """
	rank = 10
	def __init__(self, name:Optional[str]):
		self.name = name
		super().__init__(name)
	def visit(self, visitor:"TypeVisitor"): return visitor.on_atom(self)
	def is_literal(self): return self.name is not None

class IntType(GradualType):
	"""
	Every integer type is a contiguous range. None at either end means unbounded.
	Singletons, ranges, and the named integer types are all just special cases.
	"""
	rank = 5
	def __init__(self, lo:Optional[int], hi:Optional[int]):
		assert lo is None or hi is None or lo <= hi, (lo, hi)
		self.lo, self.hi = lo, hi
		super().__init__(lo, hi)
	def visit(self, visitor:"TypeVisitor"): return visitor.on_int(self)
	def is_singleton(self): return self.lo is not None and self.lo == self.hi
	def contains(self, n:int) -> bool:
		return (self.lo is None or self.lo <= n) and (self.hi is None or n <= self.hi)

class FloatType(GradualType):
	rank = 11
	def visit(self, visitor:"TypeVisitor"): return visitor.on_float()

class UnionType(GradualType):
	rank = 4
	def __init__(self, members:Iterable[GradualType]):
		self.members = tuple(members)
		assert all(isinstance(m, GradualType) for m in self.members), self.members
		super().__init__(*self.members)
	def visit(self, visitor:"TypeVisitor"): return visitor.on_union(self)

class TupleType(GradualType):
	""" Elements None means tuple() of any arity. """
	rank = 20
	def __init__(self, elements:Optional[Iterable[GradualType]]):
		self.elements = None if elements is None else tuple(elements)
		super().__init__(self.elements)
	def visit(self, visitor:"TypeVisitor"): return visitor.on_tuple(self)

class _Nil(GradualType):
	rank = 12
	def visit(self, visitor:"TypeVisitor"): return visitor.on_nil()

class ListType(GradualType):
	rank = 21
	def __init__(self, nonempty:bool, elem:GradualType, term:GradualType):
		self.nonempty, self.elem, self.term = bool(nonempty), elem, term
		super().__init__(self.nonempty, elem, term)
	def visit(self, visitor:"TypeVisitor"): return visitor.on_list(self)

class FunType(GradualType):
	""" Args None means fun((...) -> Result): any number of arguments of any type. """
	rank = 30
	def __init__(self, args:Optional[Iterable[GradualType]], result:GradualType):
		self.args = None if args is None else tuple(args)
		self.result = result
		super().__init__(self.args, result)
	def visit(self, visitor:"TypeVisitor"): return visitor.on_fun(self)
	def arity(self) -> int: return -1 if self.args is None else len(self.args)

class BoundedFun(GradualType):
	"""
	A function type with a `when` clause. Each bound is a pair (variable-name, type)
	meaning the variable is a subtype of the type. These get solved away before use.
	"""
	rank = 31
	def __init__(self, fun:FunType, bounds:Iterable[tuple[str, GradualType]]):
		assert isinstance(fun, FunType)
		self.fun = fun
		self.bounds = tuple((name, ty) for name, ty in bounds)
		super().__init__(fun, self.bounds)
	def visit(self, visitor:"TypeVisitor"): return visitor.on_bounded_fun(self)

class FunIntersection(GradualType):
	""" The type of a function with a multi-clause spec. """
	rank = 32
	def __init__(self, clauses:Iterable[GradualType]):
		self.clauses = tuple(clauses)
		super().__init__(*self.clauses)
	def visit(self, visitor:"TypeVisitor"): return visitor.on_intersection(self)

class AssocType(GradualType):
	""" One association within a map type: either `K := V` (exact) or `K => V` (optional). """
	rank = 40
	def __init__(self, exact:bool, key:GradualType, value:GradualType):
		self.exact, self.key, self.value = bool(exact), key, value
		super().__init__(self.exact, key, value)
	def visit(self, visitor:"TypeVisitor"): return visitor.on_assoc(self)

class MapType(GradualType):
	rank = 22
	def __init__(self, assocs:Iterable[AssocType]):
		self.assocs = tuple(assocs)
		assert all(isinstance(a, AssocType) for a in self.assocs), self.assocs
		super().__init__(*self.assocs)
	def visit(self, visitor:"TypeVisitor"): return visitor.on_map(self)

class RecordType(GradualType):
	"""
	Fields None means the record as declared.
	Otherwise, fields is a tuple of (name, type) pairs, refining every field.
	Module is set when the record belongs to some other module than the one being checked.
	"""
	rank = 23
	def __init__(self, name:str, fields:Optional[Iterable[tuple[str, GradualType]]]=None, module:Optional[str]=None):
		self.name = name
		self.fields = None if fields is None else tuple((f, t) for f, t in fields)
		self.module = module
		super().__init__(name, self.fields, module)
	def visit(self, visitor:"TypeVisitor"): return visitor.on_record(self)

class UserType(GradualType):
	"""
	Reference to a type defined in the module at hand. When normalization
	leaves one of these folded up because it is opaque, module says where it came from.
	"""
	rank = 50
	def __init__(self, name:str, args:Sequence[GradualType]=(), module:Optional[str]=None):
		self.name, self.args, self.module = name, tuple(args), module
		super().__init__(name, self.args, module)
	def visit(self, visitor:"TypeVisitor"): return visitor.on_user(self)

class RemoteType(GradualType):
	rank = 51
	def __init__(self, module:str, name:str, args:Sequence[GradualType]=()):
		self.module, self.name, self.args = module, name, tuple(args)
		super().__init__(module, name, self.args)
	def visit(self, visitor:"TypeVisitor"): return visitor.on_remote(self)

class BinaryType(GradualType):
	"""
	<<_:Base, _:_*Unit>> means a bitstring of size Base + K*Unit for any natural K.
	So binary() is BinaryType(0, 8) and bitstring() is BinaryType(0, 1).
	"""
	rank = 24
	def __init__(self, base:int, unit:int):
		assert base >= 0 and unit >= 0, (base, unit)
		self.base, self.unit = base, unit
		super().__init__(base, unit)
	def visit(self, visitor:"TypeVisitor"): return visitor.on_binary(self)

class BuiltinType(GradualType):
	"""
	A named type that normalization knows about: either a built-in alias like
	`string()` or `timeout()`, or one of the primitive kinds like `pid()` which
	stands for itself and compares only by name.
	"""
	rank = 45
	def __init__(self, name:str, args:Sequence[GradualType]=()):
		self.name, self.args = name, tuple(args)
		super().__init__(name, self.args)
	def visit(self, visitor:"TypeVisitor"): return visitor.on_builtin(self)

class RangeExpr(GradualType):
	""" A range whose ends still need computing, as in `0..(1 bsl 8 - 1)`. """
	rank = 46
	def __init__(self, lo:GradualType, hi:GradualType):
		self.lo, self.hi = lo, hi
		super().__init__(lo, hi)
	def visit(self, visitor:"TypeVisitor"): return visitor.on_range_expr(self)

class TypeOp(GradualType):
	""" Arithmetic within type syntax. Operands are integer singletons or more TypeOps. """
	rank = 47
	def __init__(self, op:str, operands:Sequence[GradualType]):
		assert 1 <= len(operands) <= 2, operands
		self.op, self.operands = op, tuple(operands)
		super().__init__(op, self.operands)
	def visit(self, visitor:"TypeVisitor"): return visitor.on_op(self)


ANY = _Any()
TOP = _Top()
NONE = _None()
NIL = _Nil()
FLOAT = FloatType()
ATOM = AtomType(None)
TRUE = AtomType("true")
FALSE = AtomType("false")
UNDEFINED = AtomType("undefined")
INTEGER = IntType(None, None)
POS_INTEGER = IntType(1, None)
NON_NEG_INTEGER = IntType(0, None)
NEG_INTEGER = IntType(None, -1)
BYTE = IntType(0, 255)
CHAR = IntType(0, 0x10ffff)
ANY_TUPLE = TupleType(None)
ANY_FUN = FunType(None, ANY)
ANY_ASSOC = AssocType(False, ANY, ANY)
ANY_MAP = MapType([ANY_ASSOC])
BINARY = BinaryType(0, 8)
BITSTRING = BinaryType(0, 1)
BOOLEAN = UnionType([FALSE, TRUE])
NUMBER = UnionType([INTEGER, FLOAT])

def integer(n:int) -> IntType: return IntType(n, n)
def atom(name:str) -> AtomType: return AtomType(name)
def tuple_of(*elements:GradualType) -> TupleType: return TupleType(elements)
def list_of(elem:GradualType=ANY) -> ListType: return ListType(False, elem, NIL)
def nonempty_list_of(elem:GradualType=ANY) -> ListType: return ListType(True, elem, NIL)
def fun(args:Optional[Sequence[GradualType]], result:GradualType) -> FunType: return FunType(args, result)
def union(*members:GradualType) -> GradualType:
	""" No normalization happens here. Only the trivial cases collapse. """
	if not members: return NONE
	if len(members) == 1: return members[0]
	return UnionType(members)
def exact(key:GradualType, value:GradualType) -> AssocType: return AssocType(True, key, value)
def optional(key:GradualType, value:GradualType) -> AssocType: return AssocType(False, key, value)
def map_of(*assocs:AssocType) -> MapType: return MapType(assocs)
def builtin(name:str, *args:GradualType) -> BuiltinType: return BuiltinType(name, args)

STRING = builtin("string")

def type_order(t:GradualType):
	""" Canonical sort key for members of a normalized union. """
	return t.rank, repr(t)

def is_int_type(t:GradualType) -> bool: return isinstance(t, IntType)

def is_any_map(t:GradualType) -> bool:
	return isinstance(t, MapType) and t.assocs == (ANY_ASSOC,)

def is_list_type(t:GradualType) -> bool:
	return t == NIL or isinstance(t, ListType)

def list_view(t:GradualType) -> tuple[str, GradualType, GradualType]:
	"""
	Every list type as a triple (emptiness, element, terminator).
	Emptiness is "empty" for the nil type, "nonempty", or else "any".
	"""
	if t == NIL: return "empty", ANY, NIL
	assert isinstance(t, ListType), t
	return ("nonempty" if t.nonempty else "any"), t.elem, t.term

def from_list_view(emptiness:str, elem:GradualType, term:GradualType) -> GradualType:
	""" Emptiness may also be "none" here, for when a meet comes out empty. """
	if term == NONE or emptiness == "none": return NONE
	if emptiness == "empty": return NIL
	return ListType(emptiness == "nonempty", elem, term)

###################
#

class TypeVisitor:
	def on_any(self): raise NotImplementedError(type(self))
	def on_top(self): raise NotImplementedError(type(self))
	def on_none(self): raise NotImplementedError(type(self))
	def on_var(self, v:TypeVar): raise NotImplementedError(type(self))
	def on_atom(self, a:AtomType): raise NotImplementedError(type(self))
	def on_int(self, i:IntType): raise NotImplementedError(type(self))
	def on_float(self): raise NotImplementedError(type(self))
	def on_union(self, u:UnionType): raise NotImplementedError(type(self))
	def on_tuple(self, t:TupleType): raise NotImplementedError(type(self))
	def on_nil(self): raise NotImplementedError(type(self))
	def on_list(self, l:ListType): raise NotImplementedError(type(self))
	def on_fun(self, f:FunType): raise NotImplementedError(type(self))
	def on_bounded_fun(self, b:BoundedFun): raise NotImplementedError(type(self))
	def on_intersection(self, i:FunIntersection): raise NotImplementedError(type(self))
	def on_assoc(self, a:AssocType): raise NotImplementedError(type(self))
	def on_map(self, m:MapType): raise NotImplementedError(type(self))
	def on_record(self, r:RecordType): raise NotImplementedError(type(self))
	def on_user(self, u:UserType): raise NotImplementedError(type(self))
	def on_remote(self, r:RemoteType): raise NotImplementedError(type(self))
	def on_binary(self, b:BinaryType): raise NotImplementedError(type(self))
	def on_builtin(self, b:BuiltinType): raise NotImplementedError(type(self))
	def on_range_expr(self, r:RangeExpr): raise NotImplementedError(type(self))
	def on_op(self, o:TypeOp): raise NotImplementedError(type(self))


class Rebuild(TypeVisitor):
	"""
	Reconstruct a type from the bottom up, visiting every component.
	Subclasses override the cases they care about; the rest come back as they were.
	"""
	def __call__(self, t:GradualType) -> GradualType: return t.visit(self)
	def _all(self, ts): return tuple(t.visit(self) for t in ts)
	def on_any(self): return ANY
	def on_top(self): return TOP
	def on_none(self): return NONE
	def on_var(self, v:TypeVar): return v
	def on_atom(self, a:AtomType): return a
	def on_int(self, i:IntType): return i
	def on_float(self): return FLOAT
	def on_union(self, u:UnionType): return UnionType(self._all(u.members))
	def on_tuple(self, t:TupleType):
		return t if t.elements is None else TupleType(self._all(t.elements))
	def on_nil(self): return NIL
	def on_list(self, l:ListType): return ListType(l.nonempty, l.elem.visit(self), l.term.visit(self))
	def on_fun(self, f:FunType):
		args = None if f.args is None else self._all(f.args)
		return FunType(args, f.result.visit(self))
	def on_bounded_fun(self, b:BoundedFun):
		return BoundedFun(b.fun.visit(self), [(name, ty.visit(self)) for name, ty in b.bounds])
	def on_intersection(self, i:FunIntersection): return FunIntersection(self._all(i.clauses))
	def on_assoc(self, a:AssocType): return AssocType(a.exact, a.key.visit(self), a.value.visit(self))
	def on_map(self, m:MapType): return MapType(self._all(m.assocs))
	def on_record(self, r:RecordType):
		if r.fields is None: return r
		return RecordType(r.name, [(f, t.visit(self)) for f, t in r.fields], r.module)
	def on_user(self, u:UserType): return UserType(u.name, self._all(u.args), u.module)
	def on_remote(self, r:RemoteType): return RemoteType(r.module, r.name, self._all(r.args))
	def on_binary(self, b:BinaryType): return b
	def on_builtin(self, b:BuiltinType): return BuiltinType(b.name, self._all(b.args))
	def on_range_expr(self, r:RangeExpr): return RangeExpr(r.lo.visit(self), r.hi.visit(self))
	def on_op(self, o:TypeOp): return TypeOp(o.op, self._all(o.operands))

class Substitute(Rebuild):
	""" Replace type variables by name. Variables not in the mapping stay put. """
	def __init__(self, mapping:dict[str, GradualType]):
		self.mapping = mapping
	def on_var(self, v:TypeVar): return self.mapping.get(v.name, v)


class Render(TypeVisitor):
	""" Return a string representation of the term, as near to Erlang type syntax as makes sense. """
	def _args(self, args:Iterable[GradualType]):
		return ", ".join(a.visit(self) for a in args)
	def on_any(self): return "any()"
	def on_top(self): return "top()"
	def on_none(self): return "none()"
	def on_var(self, v:TypeVar): return v.name
	def on_atom(self, a:AtomType):
		return "atom()" if a.name is None else _quote_atom(a.name)
	def on_int(self, i:IntType):
		if i.is_singleton(): return str(i.lo)
		if (i.lo, i.hi) in _INT_NAMES: return _INT_NAMES[i.lo, i.hi]
		lo = "neg_integer()" if i.lo is None else str(i.lo)
		hi = "pos_integer()" if i.hi is None else str(i.hi)
		return "%s..%s"%(lo, hi)
	def on_float(self): return "float()"
	def on_union(self, u:UnionType): return " | ".join(m.visit(self) for m in u.members)
	def on_tuple(self, t:TupleType):
		return "tuple()" if t.elements is None else "{%s}"%self._args(t.elements)
	def on_nil(self): return "[]"
	def on_list(self, l:ListType):
		if l.term == NIL:
			return "%s(%s)"%("nonempty_list" if l.nonempty else "list", l.elem.visit(self))
		head = "nonempty_improper_list" if l.nonempty else "maybe_improper_list"
		return "%s(%s, %s)"%(head, l.elem.visit(self), l.term.visit(self))
	def on_fun(self, f:FunType):
		args = "..." if f.args is None else self._args(f.args)
		return "fun((%s) -> %s)"%(args, f.result.visit(self))
	def on_bounded_fun(self, b:BoundedFun):
		bounds = ", ".join("%s :: %s"%(name, ty.visit(self)) for name, ty in b.bounds)
		return "%s when %s"%(b.fun.visit(self), bounds)
	def on_intersection(self, i:FunIntersection): return "; ".join(c.visit(self) for c in i.clauses)
	def on_assoc(self, a:AssocType):
		return "%s %s %s"%(a.key.visit(self), ":=" if a.exact else "=>", a.value.visit(self))
	def on_map(self, m:MapType):
		if m.assocs == (ANY_ASSOC,): return "map()"
		return "#{%s}"%self._args(m.assocs)
	def on_record(self, r:RecordType):
		prefix = "" if r.module is None else r.module+":"
		if r.fields is None: return "#%s%s{}"%(prefix, r.name)
		fields = ", ".join("%s :: %s"%(f, t.visit(self)) for f, t in r.fields)
		return "#%s%s{%s}"%(prefix, r.name, fields)
	def on_user(self, u:UserType):
		prefix = "" if u.module is None else u.module+":"
		return "%s%s(%s)"%(prefix, u.name, self._args(u.args))
	def on_remote(self, r:RemoteType): return "%s:%s(%s)"%(r.module, r.name, self._args(r.args))
	def on_binary(self, b:BinaryType):
		if b == BINARY: return "binary()"
		if b == BITSTRING: return "bitstring()"
		if b.unit == 0: return "<<_:%d>>"%b.base
		if b.base == 0: return "<<_:_*%d>>"%b.unit
		return "<<_:%d, _:_*%d>>"%(b.base, b.unit)
	def on_builtin(self, b:BuiltinType): return "%s(%s)"%(b.name, self._args(b.args))
	def on_range_expr(self, r:RangeExpr): return "%s..%s"%(r.lo.visit(self), r.hi.visit(self))
	def on_op(self, o:TypeOp):
		if len(o.operands) == 1: return "%s %s"%(o.op, o.operands[0].visit(self))
		return "(%s %s %s)"%(o.operands[0].visit(self), o.op, o.operands[1].visit(self))

_INT_NAMES = {
	(None, None): "integer()",
	(1, None): "pos_integer()",
	(0, None): "non_neg_integer()",
	(None, -1): "neg_integer()",
}

def _quote_atom(name:str) -> str:
	if name and name[0].islower() and all(c.isalnum() or c in "_@" for c in name):
		return name
	return "'%s'"%name.replace("\\", "\\\\").replace("'", "\\'")
