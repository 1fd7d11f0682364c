"""
The set of abstract-syntax nodes in simple form.

Whatever parses source text calls these constructors bottom-up. The shapes
follow the usual abstract format for Erlang-family code: patterns and guards
are made of the same nodes as expressions, clauses carry guard sequences,
and a module is just a list of forms.

Class-level type annotations make peace with pycharm wherever later passes add fields.
"""
from typing import Optional, Sequence, Union
from boozetools.support.foundation import Visitor
from .ontology import Expression, Form, Phrase
from .calculus import GradualType

class Var(Expression):
	def __init__(self, name:str):
		self.name = name
	def is_wildcard(self): return self.name == "_"
	def __repr__(self): return "<var %s>"%self.name

class Literal(Expression):
	value: object

class Integer(Literal):
	def __init__(self, value:int): self.value = value

class Char(Literal):
	def __init__(self, value:Union[int, str]):
		self.value = value if isinstance(value, int) else ord(value)

class Float(Literal):
	def __init__(self, value:float): self.value = value

class Atom(Literal):
	def __init__(self, value:str): self.value = value
	def __repr__(self): return "<atom %s>"%self.value

class String(Literal):
	def __init__(self, value:str): self.value = value

class Nil(Literal):
	value = ()

class Match(Expression):
	def __init__(self, pattern:Expression, expr:Expression):
		self.pattern, self.expr = pattern, expr

class Tuple(Expression):
	def __init__(self, elements:Sequence[Expression]):
		self.elements = list(elements)

class Cons(Expression):
	def __init__(self, head:Expression, tail:Expression):
		self.head, self.tail = head, tail

def list_expr(items:Sequence[Expression], tail:Optional[Expression]=None) -> Expression:
	""" Build [A, B, C | Tail] out of cons cells, the way a parser would. """
	result = Nil() if tail is None else tail
	for item in reversed(items):
		result = Cons(item, result)
	return result

class BinElement(Phrase):
	"""
	One segment in <<Value:Size/Specifiers>>.
	Specifiers are strings like "integer", "binary", "signed", or ("unit", N) pairs.
	"""
	def __init__(self, value:Expression, size:Optional[Expression]=None, specifiers:Sequence=()):
		self.value, self.size, self.specifiers = value, size, tuple(specifiers)

class Bin(Expression):
	def __init__(self, elements:Sequence[BinElement]):
		self.elements = list(elements)

class UnaryOp(Expression):
	def __init__(self, op:str, arg:Expression):
		self.op, self.arg = op, arg

class BinaryOp(Expression):
	def __init__(self, op:str, left:Expression, right:Expression):
		self.op, self.lhs, self.rhs = op, left, right

class Remote(Expression):
	""" The M:F in a remote call. Either part may be any expression. """
	def __init__(self, module:Expression, function:Expression):
		self.module, self.function = module, function

class Call(Expression):
	""" The callee is an Atom for local calls, a Remote for remote calls, or else any expression. """
	def __init__(self, callee:Expression, args:Sequence[Expression]):
		self.callee, self.args = callee, list(args)

class TypeAnnotation(Expression):
	"""
	The pseudo-calls '::'(Expr, Type) and ':::'(Expr, Type).
	The first asserts that Expr checks against Type; the second casts Expr to any compatible type.
	"""
	def __init__(self, expr:Expression, annotation:GradualType, op:str="::"):
		assert op in ("::", ":::"), op
		self.expr, self.annotation, self.op = expr, annotation, op

class Clause(Phrase):
	"""
	Guards is a guard sequence: a list of alternatives (separated by `;`),
	each of which is a list of tests (separated by `,`) that must all hold.
	"""
	def __init__(self, patterns:Sequence[Expression], guards:Sequence[Sequence[Expression]], body:Sequence[Expression]):
		self.patterns = list(patterns)
		self.guards = [list(g) for g in guards]
		self.body = list(body)
		assert self.body, "Clauses need bodies"

class Fun(Expression):
	def __init__(self, clauses:Sequence[Clause]):
		self.clauses = list(clauses)

class NamedFun(Expression):
	def __init__(self, name:str, clauses:Sequence[Clause]):
		self.name, self.clauses = name, list(clauses)

class FunRef(Expression):
	""" fun name/arity """
	def __init__(self, name:str, arity:int):
		self.name, self.arity = name, arity

class RemoteFunRef(Expression):
	""" fun M:F/A where each part may be a literal or a variable. """
	def __init__(self, module:Expression, function:Expression, arity:Expression):
		self.module, self.function, self.arity = module, function, arity

class Case(Expression):
	def __init__(self, expr:Expression, clauses:Sequence[Clause]):
		self.expr, self.clauses = expr, list(clauses)

class If(Expression):
	def __init__(self, clauses:Sequence[Clause]):
		self.clauses = list(clauses)

class Receive(Expression):
	def __init__(self, clauses:Sequence[Clause], timeout:Optional[Expression]=None, after:Sequence[Expression]=()):
		self.clauses, self.timeout, self.after = list(clauses), timeout, list(after)

class Try(Expression):
	"""
	try Body of Clauses catch CatchClauses after After end.
	Catch clauses have a single pattern, conventionally {Class, Reason, Stack}.
	"""
	def __init__(self, body:Sequence[Expression], clauses:Sequence[Clause]=(), catch_clauses:Sequence[Clause]=(), after:Sequence[Expression]=()):
		self.body, self.clauses = list(body), list(clauses)
		self.catch_clauses, self.after = list(catch_clauses), list(after)

class Catch(Expression):
	def __init__(self, expr:Expression):
		self.expr = expr

class Block(Expression):
	def __init__(self, body:Sequence[Expression]):
		self.body = list(body)

class Generate(Phrase):
	def __init__(self, pattern:Expression, expr:Expression):
		self.pattern, self.expr = pattern, expr

class BGenerate(Phrase):
	def __init__(self, pattern:Expression, expr:Expression):
		self.pattern, self.expr = pattern, expr

class Comprehension(Expression):
	""" Qualifiers are Generate, BGenerate, or filter expressions. """
	def __init__(self, expr:Expression, qualifiers:Sequence[Phrase]):
		self.expr, self.qualifiers = expr, list(qualifiers)

class ListComp(Comprehension): pass
class BinComp(Comprehension): pass

class MapField(Phrase):
	exact: bool
	def __init__(self, key:Expression, value:Expression):
		self.key, self.value = key, value

class MapFieldAssoc(MapField):
	""" K => V """
	exact = False

class MapFieldExact(MapField):
	""" K := V """
	exact = True

class MapExpr(Expression):
	def __init__(self, assocs:Sequence[MapField]):
		self.assocs = list(assocs)

class MapUpdate(Expression):
	def __init__(self, map_expr:Expression, assocs:Sequence[MapField]):
		self.map_expr, self.assocs = map_expr, list(assocs)

class RecordField(Phrase):
	""" Field name "_" means all the fields not otherwise mentioned. """
	def __init__(self, name:str, value:Expression):
		self.name, self.value = name, value

class RecordExpr(Expression):
	def __init__(self, name:str, fields:Sequence[RecordField]):
		self.name, self.fields = name, list(fields)

class RecordUpdate(Expression):
	def __init__(self, expr:Expression, name:str, fields:Sequence[RecordField]):
		self.expr, self.name, self.fields = expr, name, list(fields)

class RecordFieldAccess(Expression):
	""" Expr#name.field """
	def __init__(self, expr:Expression, name:str, field:str):
		self.expr, self.name, self.field = expr, name, field

class RecordIndex(Expression):
	""" #name.field """
	def __init__(self, name:str, field:str):
		self.name, self.field = name, field

###########################################################################
# Forms

class Function(Form):
	def __init__(self, name:str, arity:int, clauses:Sequence[Clause]):
		self.name, self.arity, self.clauses = name, arity, list(clauses)
		assert all(len(c.patterns) == arity for c in self.clauses), name

class Spec(Form):
	"""
	Each clause is a FunType or a BoundedFun.
	If module is given, it names a function in that module rather than this one.
	"""
	def __init__(self, name:str, arity:int, clauses:Sequence[GradualType], module:Optional[str]=None):
		self.name, self.arity, self.clauses, self.module = name, arity, list(clauses), module

class TypeDef(Form):
	def __init__(self, name:str, params:Sequence[str], body:GradualType, opaque:bool=False):
		self.name, self.params, self.body, self.opaque = name, tuple(params), body, opaque
	def arity(self): return len(self.params)

class RecordFieldDef(Phrase):
	def __init__(self, name:str, type_:Optional[GradualType]=None, default:Optional[Expression]=None):
		self.name, self.type, self.default = name, type_, default

class RecordDef(Form):
	def __init__(self, name:str, fields:Sequence[RecordFieldDef]):
		self.name, self.fields = name, list(fields)

class ModuleAttr(Form):
	def __init__(self, name:str): self.name = name

class Export(Form):
	def __init__(self, functions:Sequence[tuple[str, int]]): self.functions = list(functions)

class ExportAll(Form): pass

class ExportType(Form):
	def __init__(self, types:Sequence[tuple[str, int]]): self.types = list(types)

class Import(Form):
	def __init__(self, module:str, functions:Sequence[tuple[str, int]]):
		self.module, self.functions = module, list(functions)

###########################################################################

class Show(Visitor):
	""" Terse source-like text for an expression, for the benefit of diagnostics. """
	def _all(self, items, sep=", "): return sep.join(self.visit(x) for x in items)
	def visit_Var(self, x:Var): return x.name
	def visit_Integer(self, x:Integer): return str(x.value)
	def visit_Char(self, x:Char): return "$" + chr(x.value)
	def visit_Float(self, x:Float): return repr(x.value)
	def visit_Atom(self, x:Atom): return x.value
	def visit_String(self, x:String): return '"%s"'%x.value
	def visit_Nil(self, x:Nil): return "[]"
	def visit_Match(self, x:Match): return "%s = %s"%(self.visit(x.pattern), self.visit(x.expr))
	def visit_Tuple(self, x:Tuple): return "{%s}"%self._all(x.elements)
	def visit_Cons(self, x:Cons):
		items = []
		while isinstance(x, Cons):
			items.append(x.head)
			x = x.tail
		if isinstance(x, Nil): return "[%s]"%self._all(items)
		return "[%s | %s]"%(self._all(items), self.visit(x))
	def visit_Bin(self, x:Bin): return "<<%s>>"%self._all(x.elements)
	def visit_BinElement(self, x:BinElement):
		text = self.visit(x.value)
		if x.size is not None: text += ":"+self.visit(x.size)
		return text
	def visit_UnaryOp(self, x:UnaryOp): return "%s %s"%(x.op, self.visit(x.arg))
	def visit_BinaryOp(self, x:BinaryOp): return "%s %s %s"%(self.visit(x.lhs), x.op, self.visit(x.rhs))
	def visit_Remote(self, x:Remote): return "%s:%s"%(self.visit(x.module), self.visit(x.function))
	def visit_Call(self, x:Call): return "%s(%s)"%(self.visit(x.callee), self._all(x.args))
	def visit_TypeAnnotation(self, x:TypeAnnotation): return "'%s'(%s, %r)"%(x.op, self.visit(x.expr), x.annotation)
	def visit_Fun(self, x:Fun): return "fun/%d"%len(x.clauses[0].patterns)
	def visit_NamedFun(self, x:NamedFun): return "fun %s/%d"%(x.name, len(x.clauses[0].patterns))
	def visit_FunRef(self, x:FunRef): return "fun %s/%d"%(x.name, x.arity)
	def visit_RemoteFunRef(self, x:RemoteFunRef):
		return "fun %s:%s/%s"%(self.visit(x.module), self.visit(x.function), self.visit(x.arity))
	def visit_Case(self, x:Case): return "case %s of ... end"%self.visit(x.expr)
	def visit_If(self, x:If): return "if ... end"
	def visit_Receive(self, x:Receive): return "receive ... end"
	def visit_Try(self, x:Try): return "try ... end"
	def visit_Catch(self, x:Catch): return "catch %s"%self.visit(x.expr)
	def visit_Block(self, x:Block): return "begin %s end"%self._all(x.body)
	def visit_ListComp(self, x:ListComp): return "[%s || ...]"%self.visit(x.expr)
	def visit_BinComp(self, x:BinComp): return "<< %s || ... >>"%self.visit(x.expr)
	def visit_MapField(self, x:MapField):
		return "%s %s %s"%(self.visit(x.key), ":=" if x.exact else "=>", self.visit(x.value))
	def visit_MapExpr(self, x:MapExpr): return "#{%s}"%self._all(x.assocs)
	def visit_MapUpdate(self, x:MapUpdate): return "%s#{%s}"%(self.visit(x.map_expr), self._all(x.assocs))
	def visit_RecordField(self, x:RecordField): return "%s = %s"%(x.name, self.visit(x.value))
	def visit_RecordExpr(self, x:RecordExpr): return "#%s{%s}"%(x.name, self._all(x.fields))
	def visit_RecordUpdate(self, x:RecordUpdate): return "%s#%s{%s}"%(self.visit(x.expr), x.name, self._all(x.fields))
	def visit_RecordFieldAccess(self, x:RecordFieldAccess): return "%s#%s.%s"%(self.visit(x.expr), x.name, x.field)
	def visit_RecordIndex(self, x:RecordIndex): return "#%s.%s"%(x.name, x.field)
	def visit_Phrase(self, x:Phrase): return "<%s>"%type(x).__name__

def show(x:Phrase) -> str:
	return Show().visit(x)
