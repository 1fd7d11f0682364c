"""
The front door: check a whole module, one function at a time.

Nothing here knows any typing rules. It gathers the module's declarations
into an environment, then hands each function's clauses to the clause
checker along with whatever type the function's spec gives it. Errors
stop at the function boundary: one failing function makes one diagnostic,
and the next function gets its turn regardless.
"""
from typing import Optional
from .calculus import ANY, ANY_FUN
from . import syntax, errors, clauses, inference
from .environment import Options, TypeEnv, Env
from .database import TypeDatabase
from .glb import GlbCache
from .shapes import expect_fun_type, WrongShape
from .diagnostics import Report, Diagnostic, TooManyIssues

def module_name(forms) -> str:
	for form in forms:
		if isinstance(form, syntax.ModuleAttr): return form.name
	return ""

def create_env(forms, options:Options, database:TypeDatabase, report:Optional[Report]) -> Env:
	module = module_name(forms)
	specs = {
		(form.name, form.arity): form
		for form in forms
		if isinstance(form, syntax.Spec) and form.module in (None, module)
	}
	fenv = {}
	for form in forms:
		if isinstance(form, syntax.Function):
			spec = specs.get((form.name, form.arity))
			fenv[form.name, form.arity] = ANY if spec is None else inference.spec_type(spec.clauses)
	imported = {}
	for form in forms:
		if isinstance(form, syntax.Import):
			for key in form.functions: imported[key] = form.module
	return Env(
		fenv=fenv,
		imported=imported,
		venv={},
		tenv=TypeEnv.from_forms(module, forms),
		options=options,
		db=database,
		glb_cache=GlbCache(),
		report=report,
	)

def type_check_function(env:Env, function:syntax.Function):
	env.info("Checking function %s/%d" % (function.name, function.arity))
	fun_ty = env.fenv[function.name, function.arity]
	try: shape = expect_fun_type(env, fun_ty)
	except WrongShape as ws: raise errors.TypeMismatch(function, ws.ty, ANY_FUN) from None
	return clauses.check_clauses_fun(env, shape, function.clauses)

def check_module(forms, options:Options=None, database:TypeDatabase=None, report:Report=None) -> list[Diagnostic]:
	"""
	Returns the diagnostics found in this run; the report (if supplied) accumulates them as well.
	The database learns about this module's own specs and types if it didn't already know them,
	so remote calls into the module being checked resolve.
	"""
	options = options or Options()
	database = database or TypeDatabase()
	report = report or Report(verbose=options.verbose)
	forms = list(forms)
	module = module_name(forms)
	if module and not database.knows_module(module): database.add_module(module, forms)
	env = create_env(forms, options, database, report)
	found = []
	for function in forms:
		if not isinstance(function, syntax.Function): continue
		try: type_check_function(env, function)
		except errors.TypeCheckError as e:
			if options.crash_on_error: raise
			diagnostic = Diagnostic("%s/%d" % (function.name, function.arity), e.blame(function))
			found.append(diagnostic)
			try: report.issue(diagnostic)
			except TooManyIssues:
				env.info("Too many issues. Giving up on the rest of the module.")
				break
			if options.stop_on_first_error: break
	return found
