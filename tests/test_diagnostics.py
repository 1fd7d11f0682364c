import unittest, io
from unittest import mock
from boozetools.support.failureprone import Severity, SourceText
from gradual.calculus import INTEGER, atom
from gradual.syntax import Atom, Integer, Var
from gradual import errors
from gradual.diagnostics import describe, Diagnostic, Report, TooManyIssues

class DescribeTests(unittest.TestCase):

	def test_descriptions(self):
		for error, expect in [
			(errors.TypeMismatch(None, atom("ok"), INTEGER), "Expected type integer(), but found ok."),
			(errors.TypeMismatch(None, None, INTEGER), "This cannot have type integer()."),
			(errors.TypeMismatch(None, INTEGER, None), "Something of type integer() is not acceptable here."),
			(errors.ArityMismatch(None, 1, 2), "This takes 1 argument, but got 2 instead."),
			(errors.ArityMismatch(None, 2, 1), "This takes 2 arguments, but got 1 instead."),
			(errors.UndefinedFunction(None, "nope", 0), "I don't see any function nope/0."),
			(errors.UndefinedFunction(None, "nope", 3, "other"), "I don't see any function other:nope/3."),
			(errors.UndefinedField(None, "point", "z"), "Record #point has no field called 'z'."),
			(errors.NonExhaustive(None, [Atom("false"), Integer(3)]), "These clauses do not cover every case. For example: false, 3"),
		]:
			with self.subTest(expect):
				self.assertEqual(expect, describe(error))

	def test_reasons_add_a_sentence(self):
		text = describe(errors.TypeMismatch(None, INTEGER, atom("x"), "op_type_too_precise"))
		assert text.startswith("Expected type x, but found integer().")
		assert "more precise" in text

	def test_subclasses_fall_back(self):
		assert "not exported" in describe(errors.NotExported(None, "t", 0, "other"))
		self.assertEqual("I don't see what 'X' refers to.", describe(errors.UndefinedReference(None, "X")))

class DiagnosticTests(unittest.TestCase):

	def setUp(self) -> None:
		self.diagnostic = Diagnostic("f/0", errors.TypeMismatch(Atom("ok").at(7), atom("ok"), INTEGER))

	def test_fields(self):
		self.assertEqual("TypeMismatch", self.diagnostic.kind())
		self.assertEqual(7, self.diagnostic.spot())
		issue = self.diagnostic.issue()
		self.assertEqual("checking f/0", issue.phase)
		self.assertEqual(Severity.ERROR, issue.severity)
		[evidence] = issue.evidence[""]
		self.assertEqual(7, evidence.slice.start)

	def test_plain_text(self):
		self.assertEqual("In f/0, at offset 7: Expected type integer(), but found ok.", self.diagnostic.as_text())

	def test_illustrated(self):
		text = self.diagnostic.as_text(SourceText("f() -> ok.\n"))
		assert text.startswith("Error while checking f/0: Expected type integer()"), text
		assert "f() -> ok." in text
		assert "^ TypeMismatch" in text

class ReportTests(unittest.TestCase):

	def _diagnostic(self, name):
		return Diagnostic(name, errors.UndefinedReference(Var(name), name))

	def test_collects(self):
		report = Report(verbose=False)
		assert report.ok()
		report.issue(self._diagnostic("A"))
		report.issue(self._diagnostic("B"))
		assert report.sick()
		self.assertEqual(["A", "B"], [d.function for d in report.issues()])
		report.reset()
		assert report.ok()

	def test_max_issues(self):
		report = Report(verbose=False, max_issues=2)
		report.issue(self._diagnostic("A"))
		with self.assertRaises(TooManyIssues):
			report.issue(self._diagnostic("B"))
		self.assertEqual(2, len(report.issues()))

	def test_info_only_when_verbose(self):
		with mock.patch('sys.stderr', new_callable=io.StringIO) as err:
			Report(verbose=False).info("quiet")
			Report(verbose=True).info("loud")
		self.assertEqual("loud\n", err.getvalue())

	def test_assert_no_issues(self):
		Report(verbose=False).assert_no_issues("fine")
		report = Report(verbose=False)
		report.issue(self._diagnostic("A"))
		with mock.patch('sys.stderr', new_callable=io.StringIO) as err:
			with self.assertRaises(AssertionError):
				report.assert_no_issues("not fine")
		assert "In A, at offset 0" in err.getvalue()

if __name__ == '__main__':
	unittest.main()
