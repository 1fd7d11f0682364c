"""
What the checker knows about modules other than the one it is checking.

Checking one module means looking up the specs of functions it calls in
other modules, the types it names with module-qualified syntax, and now and
then a record belonging to some other module (by way of a remote type whose
definition mentions one). This database answers those questions from forms
registered ahead of time.

Out of the box it knows the specs of the usual auto-imported built-in
functions, so that code which calls `length/1` or `element/2` can check.
"""
from typing import Optional, Iterable
import enum
from .calculus import (
	GradualType, Rebuild, Substitute, UserType, RecordType, fun, builtin, list_of,
	ANY, ATOM, NONE, FLOAT, INTEGER, POS_INTEGER, NON_NEG_INTEGER, ANY_TUPLE, ANY_FUN, ANY_MAP,
	BINARY, BITSTRING, BOOLEAN, NUMBER, STRING, ListType, union,
)
from .syntax import Spec, TypeDef, RecordDef, RecordFieldDef, ExportType

class TypeLookup(enum.Enum):
	OK = "ok"
	OPAQUE = "opaque"
	NOT_EXPORTED = "not_exported"
	NOT_FOUND = "not_found"

class _AnnotateModule(Rebuild):
	"""
	A type body taken from another module may mention that module's types and records by
	bare name. Pin them to their home so they get resolved in the right place later.
	"""
	def __init__(self, module:str):
		self.module = module
	def on_user(self, u:UserType):
		return UserType(u.name, self._all(u.args), u.module or self.module)
	def on_record(self, r:RecordType):
		fields = None if r.fields is None else [(f, t.visit(self)) for f, t in r.fields]
		return RecordType(r.name, fields, r.module or self.module)

class _Module:
	def __init__(self, name:str):
		self.name = name
		self.specs:dict[tuple[str, int], list[GradualType]] = {}
		self.types:dict[tuple[str, int], TypeDef] = {}
		self.exported_types:set[tuple[str, int]] = set()
		self.records:dict[str, list[RecordFieldDef]] = {}

class TypeDatabase:
	def __init__(self, *, builtins:bool=True):
		self._modules:dict[str, _Module] = {}
		if builtins:
			for (name, arity), spec in BUILTIN_SPECS.items():
				self.add_spec("erlang", name, arity, [spec])

	def _module(self, name:str) -> _Module:
		if name not in self._modules: self._modules[name] = _Module(name)
		return self._modules[name]

	def knows_module(self, name:str) -> bool: return name in self._modules

	def add_module(self, name:str, forms:Iterable):
		module = self._module(name)
		for form in forms:
			if isinstance(form, Spec) and form.module in (None, name):
				module.specs[form.name, form.arity] = list(form.clauses)
			elif isinstance(form, TypeDef):
				module.types[form.name, form.arity()] = form
			elif isinstance(form, ExportType):
				module.exported_types.update(form.types)
			elif isinstance(form, RecordDef):
				module.records[form.name] = form.fields

	def add_spec(self, module:str, name:str, arity:int, clauses:list[GradualType]):
		self._module(module).specs[name, arity] = list(clauses)

	def get_spec(self, module:str, name:str, arity:int) -> Optional[list[GradualType]]:
		try: return self._modules[module].specs[name, arity]
		except KeyError: return None

	def get_exported_type(self, module:str, name:str, args) -> tuple[TypeLookup, Optional[GradualType]]:
		return self._lookup_type(module, name, args, True)

	def get_type(self, module:str, name:str, args) -> tuple[TypeLookup, Optional[GradualType]]:
		""" Same as get_exported_type, but for types named by something the other module handed out. """
		return self._lookup_type(module, name, args, False)

	def _lookup_type(self, module:str, name:str, args, must_export:bool):
		try:
			m = self._modules[module]
			typedef = m.types[name, len(args)]
		except KeyError:
			return TypeLookup.NOT_FOUND, None
		if must_export and (name, len(args)) not in m.exported_types:
			return TypeLookup.NOT_EXPORTED, None
		if typedef.opaque:
			return TypeLookup.OPAQUE, None
		body = Substitute(dict(zip(typedef.params, args)))(typedef.body)
		return TypeLookup.OK, _AnnotateModule(module)(body)

	def get_record_type(self, module:str, name:str) -> Optional[list[RecordFieldDef]]:
		try: return self._modules[module].records[name]
		except KeyError: return None


def _predicate(): return fun([ANY], BOOLEAN)

_NONEMPTY = ListType(True, ANY, ANY)
_NON_NEG = NON_NEG_INTEGER
_PID = builtin("pid")

BUILTIN_SPECS:dict[tuple[str, int], GradualType] = {
	("abs", 1): fun([NUMBER], NUMBER),
	("apply", 2): fun([ANY_FUN, list_of()], ANY),
	("apply", 3): fun([ATOM, ATOM, list_of()], ANY),
	("atom_to_binary", 2): fun([ATOM, ATOM], BINARY),
	("atom_to_list", 1): fun([ATOM], STRING),
	("binary_to_atom", 2): fun([BINARY, ATOM], ATOM),
	("binary_to_integer", 1): fun([BINARY], INTEGER),
	("binary_to_list", 1): fun([BINARY], list_of(builtin("byte"))),
	("bit_size", 1): fun([BITSTRING], _NON_NEG),
	("byte_size", 1): fun([BITSTRING], _NON_NEG),
	("element", 2): fun([POS_INTEGER, ANY_TUPLE], ANY),
	("erase", 1): fun([ANY], ANY),
	("error", 1): fun([ANY], NONE),
	("error", 2): fun([ANY, ANY], NONE),
	("exit", 1): fun([ANY], NONE),
	("float", 1): fun([NUMBER], FLOAT),
	("float_to_list", 1): fun([FLOAT], STRING),
	("get", 1): fun([ANY], ANY),
	("hd", 1): fun([_NONEMPTY], ANY),
	("integer_to_binary", 1): fun([INTEGER], BINARY),
	("integer_to_list", 1): fun([INTEGER], STRING),
	("iolist_to_binary", 1): fun([builtin("iodata")], BINARY),
	("is_atom", 1): _predicate(),
	("is_binary", 1): _predicate(),
	("is_bitstring", 1): _predicate(),
	("is_boolean", 1): _predicate(),
	("is_float", 1): _predicate(),
	("is_function", 1): _predicate(),
	("is_function", 2): fun([ANY, builtin("arity")], BOOLEAN),
	("is_integer", 1): _predicate(),
	("is_list", 1): _predicate(),
	("is_map", 1): _predicate(),
	("is_map_key", 2): fun([ANY, ANY_MAP], BOOLEAN),
	("is_number", 1): _predicate(),
	("is_pid", 1): _predicate(),
	("is_port", 1): _predicate(),
	("is_record", 2): fun([ANY, ATOM], BOOLEAN),
	("is_record", 3): fun([ANY, ATOM, POS_INTEGER], BOOLEAN),
	("is_reference", 1): _predicate(),
	("is_tuple", 1): _predicate(),
	("length", 1): fun([list_of()], _NON_NEG),
	("list_to_atom", 1): fun([STRING], ATOM),
	("list_to_binary", 1): fun([builtin("iolist")], BINARY),
	("list_to_integer", 1): fun([STRING], INTEGER),
	("list_to_tuple", 1): fun([list_of()], ANY_TUPLE),
	("make_ref", 0): fun([], builtin("reference")),
	("map_size", 1): fun([ANY_MAP], _NON_NEG),
	("max", 2): fun([ANY, ANY], ANY),
	("min", 2): fun([ANY, ANY], ANY),
	("node", 0): fun([], ATOM),
	("put", 2): fun([ANY, ANY], ANY),
	("round", 1): fun([NUMBER], INTEGER),
	("self", 0): fun([], _PID),
	("setelement", 3): fun([POS_INTEGER, ANY_TUPLE, ANY], ANY_TUPLE),
	("size", 1): fun([union(ANY_TUPLE, BINARY)], _NON_NEG),
	("spawn", 1): fun([ANY_FUN], _PID),
	("spawn", 3): fun([ATOM, ATOM, list_of()], _PID),
	("throw", 1): fun([ANY], NONE),
	("tl", 1): fun([_NONEMPTY], ANY),
	("trunc", 1): fun([NUMBER], INTEGER),
	("tuple_size", 1): fun([ANY_TUPLE], _NON_NEG),
	("tuple_to_list", 1): fun([ANY_TUPLE], list_of()),
}
