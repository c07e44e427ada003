"""
Defines the runtime data types for the Eve language.

This module provides the scope chain (Environment and Closure) and every
value variant the evaluator produces.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Dict, List, Optional

from eve.eve_ast import Parameters, BlockStatement


# =================================================================
# Scopes
# =================================================================

class Environment:
    """A single scope mapping names to runtime values.

    The global scope of a run is a plain Environment; every function call
    gets a Closure whose outer scope is the function's defining scope.
    """
    def __init__(self):
        self.store: Dict[str, 'Value'] = {}

    def __contains__(self, name: str) -> bool:
        return self.find_owner(name) is not None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {sorted(self.store)}>"

    def find_owner(self, name: str) -> Optional['Environment']:
        """Finds the scope in the lookup chain that binds `name`."""
        if name in self.store:
            return self
        return None

    def get(self, name: str) -> Optional['Value']:
        """Returns the bound value, or None when no scope binds `name`."""
        owner = self.find_owner(name)
        if owner is None:
            return None
        return owner.store[name]

    def set(self, name: str, value: 'Value') -> 'Value':
        """Defines or overwrites `name` in this scope."""
        self.store[name] = value
        return value

    def assign(self, name: str, value: 'Value') -> Optional['Value']:
        """Rebinds `name` in the scope that owns it. Returns None if nothing owns it."""
        owner = self.find_owner(name)
        if owner is None:
            return None
        owner.store[name] = value
        return value


class Closure(Environment):
    """An Environment that falls back to an outer scope on lookup and assignment."""
    def __init__(self, outer: Environment):
        super().__init__()
        self.outer = outer

    def find_owner(self, name: str) -> Optional[Environment]:
        if name in self.store:
            return self
        return self.outer.find_owner(name)


# =================================================================
# Runtime values
# =================================================================

class Value:
    """Base class for every runtime value. `type` names the variant."""
    type: ClassVar[str] = 'Value'


@dataclass(frozen=True)
class Null(Value):
    type: ClassVar[str] = 'Null'


@dataclass(frozen=True)
class Boolean(Value):
    type: ClassVar[str] = 'Boolean'
    value: bool


@dataclass(frozen=True)
class Number(Value):
    type: ClassVar[str] = 'Number'
    value: float

    def __post_init__(self):
        object.__setattr__(self, 'value', float(self.value))


@dataclass(frozen=True)
class String(Value):
    type: ClassVar[str] = 'String'
    value: str


@dataclass
class Array(Value):
    type: ClassVar[str] = 'Array'
    elements: List[Value] = field(default_factory=list)


@dataclass
class Hash(Value):
    """Maps the rendered text of a key to its value."""
    type: ClassVar[str] = 'Hash'
    pairs: Dict[str, Value] = field(default_factory=dict)


@dataclass(eq=False)
class Function(Value):
    """A closure: parameters, body and the scope the literal was evaluated in."""
    type: ClassVar[str] = 'Function'
    params: Parameters
    body: BlockStatement
    env: Environment


@dataclass(eq=False)
class Builtin(Value):
    """A native callable: a global such as `print`, or a method bound to its receiver."""
    type: ClassVar[str] = 'Builtin'
    name: str
    fn: Callable[[List[Value]], Value]

    def __call__(self, args: List[Value]) -> Value:
        return self.fn(args)


@dataclass(frozen=True)
class Return(Value):
    """Carries a `return` value up to the enclosing call. Never stored."""
    type: ClassVar[str] = 'Return'
    value: Value


@dataclass(frozen=True)
class Error(Value):
    """A recoverable runtime failure. Never stored."""
    type: ClassVar[str] = 'Error'
    message: str


NULL = Null()
TRUE = Boolean(True)
FALSE = Boolean(False)


def native_bool(value: bool) -> Boolean:
    return TRUE if value else FALSE


def is_truthy(value: Value) -> bool:
    """Only `false` and `null` are falsy."""
    match value:
        case Null():
            return False
        case Boolean(value=b):
            return b
        case _:
            return True


def is_error(value: Any) -> bool:
    return isinstance(value, Error)


def is_callable(value: Any) -> bool:
    return isinstance(value, (Function, Builtin))
