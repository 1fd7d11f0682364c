"""
These most-fundamental classes in the syntax class hierarchy
are separate from the rest to avoid various circular-import
scenarios. Types never refer to syntax, and diagnostics refer
to phrases only through their spots, so this module depends
on nothing.
"""

class Phrase:
	"""
	Anything that came from source text and might be blamed for a problem.
	The spot is a character offset into the module's text, or zero
	for things the checker invented on its own.
	"""
	spot: int = 0
	def left(self) -> int: return self.spot
	def right(self) -> int: return self.spot
	def span(self) -> tuple[int, int]: return self.left(), self.right()
	def at(self, spot:int):
		""" For the benefit of whatever builds trees with positions. """
		self.spot = spot or 0
		return self

class Expression(Phrase):
	""" Patterns and guards are also expressions, just as in the abstract format. """

class Form(Phrase):
	""" Top-level declarations: functions, specs, types, records, and so forth. """
