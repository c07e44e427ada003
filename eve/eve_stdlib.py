"""
Built-in globals and receiver-typed methods for Eve.

Methods are plain `_name(self, receiver, args)` members tagged with
`@eve_method(...)`; `StdLib` discovers them once and files them under
(receiver type, name).
"""
import functools
import inspect
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from eve.eve_datatypes import (
    Value, Boolean, Number, String, Array, Hash, Builtin, Error, NULL,
    is_error, is_truthy, is_callable,
)
from eve.eve_printer import inspect as render

if TYPE_CHECKING:
    from eve.eve_interpreter import Evaluator


def eve_method(*receivers: str, accessor: bool = False):
    """Marks a StdLib member as a built-in method of the given receiver types.

    Accessors run as soon as they are read (`xs.length`); other methods are
    returned bound to their receiver and run when called (`xs.map(f)`).
    """
    def decorator(func):
        func._eve_receivers = receivers
        func._eve_accessor = accessor
        return func
    return decorator


class _SortAborted(Exception):
    def __init__(self, error: Error):
        super().__init__(error.message)
        self.error = error


def _items(receiver: Value) -> List[Value]:
    match receiver:
        case String(value=s):
            return [String(ch) for ch in s]
        case Array(elements=elements):
            return list(elements)
    raise TypeError(f"not a sequence: {receiver.type}")


class StdLib:
    """The fixed global table and the built-in method registry."""

    def __init__(self, evaluator: 'Evaluator'):
        self.evaluator = evaluator
        self.globals: Dict[str, Builtin] = {
            'print': Builtin('print', self._print),
        }
        self.methods: Dict[Tuple[str, str], object] = {}
        for name, member in inspect.getmembers(self):
            receivers = getattr(member, '_eve_receivers', None)
            if not receivers:
                continue
            method_name = name.lstrip('_')
            for receiver_type in receivers:
                self.methods[(receiver_type, method_name)] = member

    def lookup_global(self, name: str) -> Optional[Builtin]:
        return self.globals.get(name)

    def get_property(self, receiver: Value, name: str) -> Optional[Value]:
        """Resolves `receiver.name` against the method table; None when absent."""
        method = self.methods.get((receiver.type, name))
        if method is None:
            return None
        if method._eve_accessor:
            return method(receiver, [])
        return Builtin(name, functools.partial(method, receiver))

    # =================================================================
    # Globals
    # =================================================================

    def _print(self, args: List[Value]) -> Value:
        message = " ".join(render(arg) for arg in args)
        self.evaluator.side_effects.append({'topics': ['stdout'], 'message': message})
        return NULL

    # =================================================================
    # Helpers
    # =================================================================

    def _callback(self, method: str, args: List[Value]):
        if not args:
            return Error(f"{method} expects a function argument")
        fn = args[0]
        if not is_callable(fn):
            return Error(f"not a function: {fn.type}")
        return fn

    def _call(self, fn, *args: Value) -> Value:
        return self.evaluator.apply_function(fn, list(args))

    # =================================================================
    # Accessors
    # =================================================================

    @eve_method('String', 'Array', 'Hash', accessor=True)
    def _length(self, receiver, args):
        match receiver:
            case String(value=s):
                return Number(len(s))
            case Array(elements=elements):
                return Number(len(elements))
            case Hash(pairs=pairs):
                return Number(len(pairs))

    _count = _length

    @eve_method('String', 'Array', accessor=True)
    def _first(self, receiver, args):
        items = _items(receiver)
        return items[0] if items else NULL

    @eve_method('String', 'Array', accessor=True)
    def _last(self, receiver, args):
        items = _items(receiver)
        return items[-1] if items else NULL

    @eve_method('String', 'Array', accessor=True)
    def _rest(self, receiver, args):
        if isinstance(receiver, String):
            return String(receiver.value[1:])
        return Array(receiver.elements[1:])

    @eve_method('String', 'Array', accessor=True)
    def _reverse(self, receiver, args):
        if isinstance(receiver, String):
            return String(receiver.value[::-1])
        return Array(receiver.elements[::-1])

    @eve_method('Array', accessor=True)
    def _sum(self, receiver, args):
        total = Number(0)
        for element in receiver.elements:
            total = self.evaluator.eval_infix('+', total, element)
            if is_error(total):
                return total
        return total

    @eve_method('Array', accessor=True)
    def _avg(self, receiver, args):
        if not receiver.elements:
            return NULL
        total = self._sum(receiver, args)
        if is_error(total):
            return total
        return self.evaluator.eval_infix('/', total, Number(len(receiver.elements)))

    # =================================================================
    # Methods taking a function
    # =================================================================

    @eve_method('String', 'Array', 'Hash')
    def _map(self, receiver, args):
        fn = self._callback('map', args)
        if is_error(fn):
            return fn
        results = []
        for call_args in self._call_args(receiver):
            result = self._call(fn, *call_args)
            if is_error(result):
                return result
            results.append(result)
        return Array(results)

    @eve_method('String', 'Array', 'Hash')
    def _filter(self, receiver, args):
        fn = self._callback('filter', args)
        if is_error(fn):
            return fn
        kept = []
        for call_args in self._call_args(receiver):
            result = self._call(fn, *call_args)
            if is_error(result):
                return result
            if is_truthy(result):
                kept.append(call_args)
        if isinstance(receiver, Hash):
            return Hash({key.value: value for key, value in kept})
        return Array([item for (item,) in kept])

    @eve_method('String', 'Array', 'Hash')
    def _each(self, receiver, args):
        fn = self._callback('each', args)
        if is_error(fn):
            return fn
        for call_args in self._call_args(receiver):
            result = self._call(fn, *call_args)
            if is_error(result):
                return result
        return receiver

    @eve_method('Array')
    def _sort(self, receiver, args):
        if args:
            fn = self._callback('sort', args)
            if is_error(fn):
                return fn
            compare = functools.partial(self._compare_with, fn)
        else:
            compare = self._compare_natural
        try:
            return Array(sorted(receiver.elements, key=functools.cmp_to_key(compare)))
        except _SortAborted as e:
            return e.error

    def _call_args(self, receiver):
        if isinstance(receiver, Hash):
            return [(String(key), value) for key, value in receiver.pairs.items()]
        return [(item,) for item in _items(receiver)]

    def _compare_natural(self, a, b) -> int:
        for op, order in (('<', -1), ('>', 1)):
            result = self.evaluator.eval_infix(op, a, b)
            if is_error(result):
                raise _SortAborted(result)
            if is_truthy(result):
                return order
        return 0

    def _compare_with(self, fn, a, b) -> int:
        result = self._call(fn, a, b)
        match result:
            case Error():
                raise _SortAborted(result)
            case Number(value=v):
                return -1 if v < 0 else (1 if v > 0 else 0)
            case Boolean(value=b):
                return -1 if b else 1
        raise _SortAborted(Error(f"sort comparator must return a Number or Boolean, got {result.type}"))
