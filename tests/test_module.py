"""
Whole modules, the way a caller would check them: a list of forms in,
a list of diagnostics out.
"""
import unittest, io
from unittest import mock
from gradual.calculus import UnionType, UserType, RecordType, ATOM, INTEGER, BOOLEAN, atom, fun, exact, map_of
from gradual.syntax import (
	ModuleAttr, Spec, Function, TypeDef, Import, Clause,
	Var, Integer, Atom, Tuple, Call, Remote, MapExpr, MapFieldAssoc, RecordDef, RecordFieldDef,
)
from gradual.environment import Options
from gradual.database import TypeDatabase
from gradual.diagnostics import Report
from gradual.checker import check_module
from gradual import errors

def _clause(patterns, body):
	return Clause(patterns, [], [body])

def _module(*forms):
	return [ModuleAttr("m"), *forms]

BOOL_SPEC = Spec("f", 1, [fun([BOOLEAN], ATOM)])
TRUE_YES = _clause([Atom("true")], Atom("yes"))
FALSE_NO = _clause([Atom("false")], Atom("no"))

def _returns(name, ty, body):
	""" A zero-argument function with a spec. """
	return [Spec(name, 0, [fun([], ty)]), Function(name, 0, [_clause([], body)])]

class ModuleTests(unittest.TestCase):

	def test_exhaustive(self):
		self.assertEqual([], check_module(_module(BOOL_SPEC, Function("f", 1, [TRUE_YES, FALSE_NO]))))

	def test_not_exhaustive(self):
		found = check_module(_module(BOOL_SPEC, Function("f", 1, [TRUE_YES])))
		self.assertEqual(1, len(found))
		diagnostic = found[0]
		self.assertEqual("f/1", diagnostic.function)
		self.assertEqual("NonExhaustive", diagnostic.kind())
		self.assertEqual(["false"], [x.value for x in diagnostic.error.example])

	def test_user_type_example(self):
		color = TypeDef("color", [], UnionType([atom("red"), atom("green")]))
		spec = Spec("paint", 1, [fun([UserType("color")], ATOM)])
		found = check_module(_module(color, spec, Function("paint", 1, [_clause([Atom("red")], Atom("ok"))])))
		[diagnostic] = found
		self.assertEqual(["green"], [x.value for x in diagnostic.error.example])

	def test_record_argument_not_exhaustive(self):
		flag = RecordDef("flag", [RecordFieldDef("on", BOOLEAN)])
		spec = Spec("f", 1, [fun([UnionType([RecordType("flag"), atom("ok")])], ATOM)])
		[diagnostic] = check_module(_module(flag, spec, Function("f", 1, [_clause([Atom("ok")], Atom("yes"))])))
		self.assertEqual("NonExhaustive", diagnostic.kind())
		[example] = diagnostic.error.example
		self.assertEqual("flag", example.name)

	def test_map_literal_against_wider_spec(self):
		body = MapExpr([MapFieldAssoc(Atom("a"), Integer(1))])
		self.assertEqual([], check_module(_module(*_returns("f", map_of(exact(atom("a"), INTEGER)), body))))
		self.assertEqual([], check_module(_module(*_returns("f", map_of(exact(atom("a"), INTEGER)), body)), Options(infer=True)))

	def test_no_spec_no_complaint(self):
		body = Tuple([Var("X"), Call(Atom("g"), [Var("X")])])
		forms = _module(
			Function("f", 1, [_clause([Var("X")], body)]),
			Function("g", 1, [_clause([Var("_")], Atom("whatever"))]),
		)
		self.assertEqual([], check_module(forms))

	def test_wrong_result(self):
		[diagnostic] = check_module(_module(*_returns("f", INTEGER, Atom("ok"))))
		self.assertEqual("f/0", diagnostic.function)
		assert isinstance(diagnostic.error, errors.TypeMismatch)
		self.assertEqual(atom("ok"), diagnostic.error.actual)

	def test_each_function_separately(self):
		forms = _module(
			*_returns("a", INTEGER, Atom("ok")),
			*_returns("b", INTEGER, Integer(1)),
			*_returns("c", ATOM, Integer(1)),
		)
		self.assertEqual(["a/0", "c/0"], [d.function for d in check_module(forms)])
		self.assertEqual(["a/0"], [d.function for d in check_module(forms, Options(stop_on_first_error=True))])

	def test_crash_on_error(self):
		with self.assertRaises(errors.TypeMismatch):
			check_module(_module(*_returns("f", INTEGER, Atom("ok"))), Options(crash_on_error=True))

	def test_too_many_issues(self):
		forms = _module(*_returns("a", INTEGER, Atom("ok")), *_returns("b", INTEGER, Atom("ok")))
		report = Report(verbose=False, max_issues=1)
		found = check_module(forms, report=report)
		self.assertEqual(1, len(found))
		self.assertEqual(1, len(report.issues()))
		assert report.sick()

	def test_multi_clause_spec(self):
		spec = Spec("f", 1, [fun([INTEGER], INTEGER), fun([ATOM], ATOM)])
		self.assertEqual([], check_module(_module(spec, Function("f", 1, [_clause([Var("X")], Var("X"))]))))
		[diagnostic] = check_module(_module(spec, Function("f", 1, [_clause([Var("X")], Integer(1))])))
		self.assertEqual("f/1", diagnostic.function)

	def test_local_call(self):
		forms = _module(
			Spec("g", 1, [fun([INTEGER], INTEGER)]),
			Function("g", 1, [_clause([Var("X")], Var("X"))]),
			Function("f", 0, [_clause([], Call(Atom("g"), [Atom("x")]))]),
		)
		[diagnostic] = check_module(forms)
		self.assertEqual("f/0", diagnostic.function)
		self.assertEqual(INTEGER, diagnostic.error.expected)

	def test_remote_calls(self):
		db = TypeDatabase()
		db.add_spec("other", "double", 1, [fun([INTEGER], INTEGER)])
		double = Remote(Atom("other"), Atom("double"))
		self.assertEqual([], check_module(_module(*_returns("f", INTEGER, Call(double, [Integer(2)]))), database=db))
		[bad_arg] = check_module(_module(*_returns("f", INTEGER, Call(double, [Atom("two")]))), database=db)
		assert isinstance(bad_arg.error, errors.TypeMismatch)
		[bad_result] = check_module(_module(*_returns("f", ATOM, Call(double, [Integer(2)]))), database=db)
		self.assertEqual(INTEGER, bad_result.error.actual)
		triple = Remote(Atom("other"), Atom("triple"))
		[missing] = check_module(_module(*_returns("f", INTEGER, Call(triple, [Integer(2)]))), database=db)
		assert isinstance(missing.error, errors.UndefinedFunction)
		self.assertEqual("other", missing.error.module)

	def test_imports(self):
		db = TypeDatabase()
		db.add_spec("other", "double", 1, [fun([INTEGER], INTEGER)])
		forms = _module(Import("other", [("double", 1)]), *_returns("f", ATOM, Call(Atom("double"), [Integer(2)])))
		[diagnostic] = check_module(forms, database=db)
		self.assertEqual(INTEGER, diagnostic.error.actual)

	def test_undefined_function(self):
		[diagnostic] = check_module(_module(*_returns("f", INTEGER, Call(Atom("nope"), []))))
		self.assertEqual("UndefinedFunction", diagnostic.kind())

	def test_database_learns_the_module(self):
		db = TypeDatabase()
		check_module(_module(BOOL_SPEC, Function("f", 1, [TRUE_YES, FALSE_NO])), database=db)
		assert db.knows_module("m")
		self.assertEqual([fun([BOOLEAN], ATOM)], db.get_spec("m", "f", 1))

	def test_verbose(self):
		with mock.patch('sys.stderr', new_callable=io.StringIO) as err:
			check_module(_module(BOOL_SPEC, Function("f", 1, [TRUE_YES, FALSE_NO])), Options(verbose=True))
		assert "Checking function f/1" in err.getvalue()

	def test_quiet(self):
		with mock.patch('sys.stderr', new_callable=io.StringIO) as err:
			check_module(_module(BOOL_SPEC, Function("f", 1, [TRUE_YES, FALSE_NO])))
		self.assertEqual("", err.getvalue())

if __name__ == '__main__':
	unittest.main()
