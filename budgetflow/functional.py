from abc import ABC, abstractmethod
from typing import Callable, Generic, Iterable, TypeVar

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')


class _Boxed:
    """Value holder shared by Some, Right and Left: equality and repr by payload."""

    def __init__(self, value):
        self._value = value

    def __eq__(self, other) -> bool:
        return type(other) is type(self) and self._value == other._value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"


class Maybe(Generic[T], ABC):
    """Optional result of a lookup that is allowed to fail, e.g. a category by name."""

    @abstractmethod
    def bind(self, f: Callable[[T], 'Maybe[U]']) -> 'Maybe[U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return self.bind(lambda v: Some(f(v)))

    def is_some(self) -> bool:
        return isinstance(self, Some)

    def is_none(self) -> bool:
        return not self.is_some()


class Some(_Boxed, Maybe[T]):

    def bind(self, f):
        return f(self._value)

    def get_or_else(self, default):
        return self._value


class Nothing(Maybe[T]):

    def bind(self, f):
        return self

    def get_or_else(self, default):
        return default

    def __eq__(self, other) -> bool:
        return isinstance(other, Nothing)

    def __repr__(self) -> str:
        return "Nothing()"


_MISSING = object()


def first(items: Iterable[T], pred: Callable[[T], bool]) -> Maybe[T]:
    found = next((item for item in items if pred(item)), _MISSING)
    return Nothing() if found is _MISSING else Some(found)


class Either(Generic[E, T], ABC):
    """Validation outcome. Left carries a user-facing message, Right the accepted value."""

    @abstractmethod
    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def get_error(self) -> E:
        pass

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return self.bind(lambda v: Right(f(v)))

    def is_right(self) -> bool:
        return isinstance(self, Right)

    def is_left(self) -> bool:
        return not self.is_right()


class Right(_Boxed, Either[E, T]):

    def bind(self, f):
        return f(self._value)

    def get_or_else(self, default):
        return self._value

    def get_error(self):
        raise ValueError("Right carries no error")


class Left(_Boxed, Either[E, T]):

    def bind(self, f):
        return self

    def get_or_else(self, default):
        return default

    def get_error(self):
        return self._value


def pipe(x, *funcs):
    """pipe(x, f, g, h) == h(g(f(x)))"""
    for f in funcs:
        x = f(x)
    return x
