"""
The context in which checking happens.

There are three layers, from most to least static:

	Options: what the caller asked for. Fixed for the whole run.
	TypeEnv: the type and record definitions of the module at hand.
	Env: everything else, including the variable environment.

An Env is a NamedTuple so that "the same context, except ..." is a cheap
`_replace` call. The variable environment (venv) is a plain dict, but nobody
ever updates one in place. Anywhere the checker needs a changed venv, it makes
a new dict. Alternatives that get tried and discarded thus never leave any
trace on their siblings.
"""
from typing import NamedTuple, Optional, Any
import itertools
from .calculus import GradualType, TypeVar, ANY
from .syntax import TypeDef, RecordDef, RecordFieldDef
from . import errors

class Options(NamedTuple):
	infer: bool = False
	verbose: bool = False
	stop_on_first_error: bool = False
	exhaustiveness: bool = True
	union_size_limit: int = 30
	crash_on_error: bool = False

class TypeEnv:
	"""
	Definitions local to one module. Types are indexed by (name, arity)
	because Erlang-family languages overload type names on arity just as
	they do function names.
	"""
	def __init__(self, module:str, types:dict[tuple[str, int], TypeDef]=None, records:dict[str, list[RecordFieldDef]]=None):
		self.module = module
		self.types = types or {}
		self.records = records or {}

	@staticmethod
	def from_forms(module:str, forms) -> "TypeEnv":
		types, records = {}, {}
		for form in forms:
			if isinstance(form, TypeDef): types[form.name, form.arity()] = form
			elif isinstance(form, RecordDef): records[form.name] = form.fields
		return TypeEnv(module, types, records)

_var_numbers = itertools.count()

def new_type_var() -> TypeVar:
	""" Fresh, globally unique type variables. Any program that can tell them apart by number deserves what it gets. """
	return TypeVar("_TyVar%d" % next(_var_numbers))

class Env(NamedTuple):
	fenv: dict[tuple[str, int], GradualType]
	imported: dict[tuple[str, int], str]
	venv: dict[str, GradualType]
	tenv: TypeEnv
	options: Options
	db: Any           # database.TypeDatabase, but that module depends on this one.
	glb_cache: Any    # glb.GlbCache
	report: Any       # diagnostics.Report

	def with_venv(self, venv:dict) -> "Env": return self._replace(venv=venv)

	def with_infer(self, infer:bool) -> "Env":
		if infer == self.options.infer: return self
		return self._replace(options=self.options._replace(infer=infer))

	def bind(self, name:str, ty:GradualType) -> "Env":
		return self._replace(venv={**self.venv, name: ty})

	def info(self, *args):
		if self.report is not None: self.report.info(*args)

	def record_fields(self, name:str, module:Optional[str]=None) -> list[RecordFieldDef]:
		"""
		The declared fields of a record, whether it belongs to the module at hand or
		(when the module is given and different) some other module the database knows.
		"""
		if module is None or module == self.tenv.module:
			try: return self.tenv.records[name]
			except KeyError: raise errors.UndefinedRecord(None, name) from None
		fields = None if self.db is None else self.db.get_record_type(module, name)
		if fields is None: raise errors.UndefinedRecord(None, name, module)
		return fields

def field_type(field:RecordFieldDef) -> GradualType:
	""" An untyped record field can hold anything. """
	return ANY if field.type is None else field.type

def field_types(fields:list[RecordFieldDef]) -> list[tuple[str, GradualType]]:
	return [(f.name, field_type(f)) for f in fields]
