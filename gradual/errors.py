"""
Everything the checker can find wrong with a program.

The checker proper raises these and catches them only where it is trying
alternatives: union members, intersection clauses, that sort of thing.
Whatever survives to the top of a function gets written down in the
report (see diagnostics.py) and the checker moves on to the next function.

Each error blames a node. Sometimes the trouble is discovered somewhere
that has no node handy, such as deep inside normalizing a type. Then the
node is None until some caller with more context fills it in.
"""
from typing import Optional, Sequence
from .ontology import Phrase
from .calculus import GradualType

class TypeCheckError(Exception):
	node: Optional[Phrase]

	def __init__(self, node:Optional[Phrase], *args):
		super().__init__(node, *args)
		self.node = node

	def spot(self) -> int:
		return 0 if self.node is None else self.node.spot

	def blame(self, node:Phrase):
		""" Supply a culprit if nobody has yet. Returns self for convenience in raise-statements. """
		if self.node is None: self.node = node
		return self

class TypeMismatch(TypeCheckError):
	"""
	The classic: some expression or pattern has type `actual`, which won't do where `expected` is wanted.
	The reason says which rule made the complaint, when that's more specific than plain checking.
	"""
	def __init__(self, node, actual:Optional[GradualType], expected:Optional[GradualType], reason:str=""):
		super().__init__(node, actual, expected, reason)
		self.actual, self.expected, self.reason = actual, expected, reason

class ArityMismatch(TypeCheckError):
	def __init__(self, node, expected:int, given:int):
		super().__init__(node, expected, given)
		self.expected, self.given = expected, given

class UndefinedReference(TypeCheckError):
	""" Something is named which the checker cannot find. """
	def __init__(self, node, name:str, module:Optional[str]=None):
		super().__init__(node, name, module)
		self.name, self.module = name, module

class UndefinedFunction(UndefinedReference):
	def __init__(self, node, name:str, arity:int, module:Optional[str]=None):
		super().__init__(node, name, module)
		self.arity = arity

class UndefinedType(UndefinedReference):
	def __init__(self, node, name:str, arity:int, module:Optional[str]=None):
		super().__init__(node, name, module)
		self.arity = arity

class NotExported(UndefinedType):
	""" The remote type exists, but its module does not export it. """

class UndefinedRecord(UndefinedReference): pass

class UndefinedField(UndefinedReference):
	def __init__(self, node, record:str, name:str):
		super().__init__(node, name)
		self.record = record

class NonExhaustive(TypeCheckError):
	""" The example is a list of expressions, one per argument, which no clause would match. """
	def __init__(self, node, example:Sequence[Phrase]):
		super().__init__(node, list(example))
		self.example = list(example)

class UnreachableClause(TypeCheckError): pass

class IllegalPattern(TypeCheckError): pass

class IllegalMapType(TypeCheckError):
	def __init__(self, node, ty:GradualType):
		super().__init__(node, ty)
		self.ty = ty

class BadTypeAnnotation(TypeCheckError):
	def __init__(self, node, annotation):
		super().__init__(node, annotation)
		self.annotation = annotation

class CyclicConstraint(TypeCheckError):
	""" The `when` clause of a spec defines some type variables in terms of each other. """
	def __init__(self, node, ty:GradualType, variables:Sequence[str]):
		super().__init__(node, ty, tuple(variables))
		self.ty, self.variables = ty, tuple(variables)

class UnsupportedExpression(TypeCheckError): pass
