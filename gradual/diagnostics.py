"""
Turning checker errors into something a person can read.

The checker raises exceptions (see errors.py) and the per-function boundary
in checker.py catches them. Each one becomes a Diagnostic, which knows which
function it came from and can describe itself as a booze-tools Issue. The
Report collects diagnostics, prints progress when asked to be verbose,
and complains to the console on request.

Positions are character offsets. With the module's SourceText supplied,
diagnostics come out with the offending line illustrated. Without it, you
get the offset and the description, which is plenty for tests.
"""
import sys, random
from typing import NamedTuple, Optional
from boozetools.support.foundation import Visitor
from boozetools.support.failureprone import Issue, Evidence, Severity, SourceText
from . import errors
from .syntax import show

class TooManyIssues(Exception):
	pass

def _outburst():
	particle = ["Oh, ", "Well, ", "Aw, ", "", ""]

	minced_oaths = [
		'Ack', 'ARGH', 'Blargh', 'Confound it', 'Crud', 'Curses',
		'Dag Nabbit', 'Drat', 'Fiddlesticks', 'Good Grief', "Great Scott",
		'Heavens', 'Jeepers', 'Mercy', 'Nuts', 'Rats', 'Woe is me',
	]

	resignations = [
		'These types do not line up.',
		'The specs and the code disagree.',
		'Somebody is not telling me the whole truth.',
		'I cannot vouch for this module.',
	]

	return "%s%s! %s"%tuple(map(random.choice, (particle, minced_oaths, resignations)))

_REASONS = {
	"cast": "The value cannot have the type it is asserted to have.",
	"call": "Only a function can be called.",
	"call_intersect": "None of the clauses of the function's spec accept these arguments.",
	"no_type_match_intersection": "No clause of the function's spec yields the expected result for these arguments.",
	"check_clauses": "This fun does not fit any of the function types it might be expected to have.",
	"mismatch": "This does not fit any alternative of the expected type.",
	"unary_error": "The operator cannot produce the expected type.",
	"int_error": "This operator only works on integers.",
	"arith_error": "This arithmetic cannot produce the expected type.",
	"non_number_argument": "Arithmetic needs numbers.",
	"op_type_too_precise": "The expected type is more precise than the operator can promise.",
	"relop": "These operands cannot both have a type that satisfies the comparison.",
	"list": "A list needs a list for its tail.",
	"record_default": "This record field has no default, so it needs to accept 'undefined'.",
	"pattern": "This pattern can never match a value of the expected type.",
	"cons_pat": "A list pattern cannot match a value of the expected type.",
	"record_pattern": "A record pattern cannot match a value of the expected type.",
	"operator_pattern": "An arithmetic pattern cannot match a value of the expected type.",
	"badkey": "A map pattern's key cannot match any key of the expected map type.",
}

class _Describe(Visitor):
	""" From an error to a plain-language sentence (or three). """
	def visit_TypeMismatch(self, e:errors.TypeMismatch):
		parts = []
		if e.expected is not None and e.actual is not None:
			parts.append("Expected type %s, but found %s."%(e.expected, e.actual))
		elif e.expected is not None:
			parts.append("This cannot have type %s."%(e.expected,))
		elif e.actual is not None:
			parts.append("Something of type %s is not acceptable here."%(e.actual,))
		if e.reason in _REASONS: parts.append(_REASONS[e.reason])
		return " ".join(parts) or "The types do not match."

	def visit_ArityMismatch(self, e:errors.ArityMismatch):
		plural = '' if e.expected == 1 else 's'
		return "This takes %d argument%s, but got %d instead."%(e.expected, plural, e.given)

	def visit_UndefinedFunction(self, e:errors.UndefinedFunction):
		return "I don't see any function %s/%d."%(_qualified(e), e.arity)

	def visit_NotExported(self, e:errors.NotExported):
		return "The type %s/%d is not exported."%(_qualified(e), e.arity)

	def visit_UndefinedType(self, e:errors.UndefinedType):
		return "I don't see any type %s/%d."%(_qualified(e), e.arity)

	def visit_UndefinedRecord(self, e:errors.UndefinedRecord):
		return "I don't see any record #%s."%_qualified(e)

	def visit_UndefinedField(self, e:errors.UndefinedField):
		return "Record #%s has no field called '%s'."%(e.record, e.name)

	def visit_UndefinedReference(self, e:errors.UndefinedReference):
		return "I don't see what '%s' refers to."%_qualified(e)

	def visit_NonExhaustive(self, e:errors.NonExhaustive):
		example = ", ".join(map(show, e.example))
		return "These clauses do not cover every case. For example: %s"%example

	def visit_UnreachableClause(self, e):
		return "Earlier clauses already cover everything this clause could match."

	def visit_IllegalPattern(self, e):
		return "This is not a legal pattern."

	def visit_IllegalMapType(self, e:errors.IllegalMapType):
		return "A value of type %s cannot be updated like a map."%(e.ty,)

	def visit_BadTypeAnnotation(self, e:errors.BadTypeAnnotation):
		return "This is not a sensible type annotation: %s"%(e.annotation,)

	def visit_CyclicConstraint(self, e:errors.CyclicConstraint):
		return "The type variables %s are defined in terms of each other."%", ".join(e.variables)

	def visit_UnsupportedExpression(self, e):
		return "The checker has no typing rule for this kind of expression."

	def visit_TypeCheckError(self, e):
		return "Type-checking found a problem here."

def _qualified(e:errors.UndefinedReference) -> str:
	return e.name if e.module is None else "%s:%s"%(e.module, e.name)

def describe(error:errors.TypeCheckError) -> str:
	return _Describe().visit(error)

class Diagnostic(NamedTuple):
	""" One failing function: its "name/arity" and what went wrong. """
	function: str
	error: errors.TypeCheckError

	def kind(self) -> str: return type(self.error).__name__
	def spot(self) -> int: return self.error.spot()
	def description(self) -> str: return describe(self.error)

	def issue(self) -> Issue:
		node = self.error.node
		left, right = (0, 0) if node is None else node.span()
		evidence = {"": [Evidence(slice(left, right), self.kind())]}
		return Issue("checking "+self.function, Severity.ERROR, self.description(), evidence)

	def as_text(self, source:Optional[SourceText]=None) -> str:
		if source is None:
			return "In %s, at offset %d: %s"%(self.function, self.spot(), self.description())
		return self.issue().as_text(lambda key: source)

class Report:
	"""
	Collects diagnostics. With max_issues set, raises TooManyIssues upon reaching
	that many, which the checker takes as a signal to stop. None means no limit.
	"""
	_issues : list[Diagnostic]

	def __init__(self, *, verbose:int, max_issues:Optional[int]=None, source:Optional[SourceText]=None):
		self._verbose = verbose or 0   # Because None is incomparable.
		self._issues = []
		self._max_issues = max_issues
		self._source = source

	def ok(self): return not self._issues
	def sick(self): return bool(self._issues)
	def issues(self) -> list[Diagnostic]: return list(self._issues)

	def issue(self, it:Diagnostic):
		self._issues.append(it)
		if len(self._issues) == self._max_issues:
			raise TooManyIssues(self)

	def reset(self):
		self._issues.clear()

	def info(self, *args):
		if self._verbose:
			print(*args, file=sys.stderr)

	def complain_to_console(self):
		""" Emit all the issues to the console. """
		if self._issues:
			print("*"*60, file=sys.stderr)
			print(_outburst(), file=sys.stderr)
		for i in self._issues:
			print("  -"*20, file=sys.stderr)
			print(i.as_text(self._source), file=sys.stderr)
		sys.stderr.flush()

	def assert_no_issues(self, message):
		""" Does what it says on the tin """
		if self._issues:
			self.complain_to_console()
			raise AssertionError(_outburst()+" "+message)
