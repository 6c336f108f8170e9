import time
from dataclasses import dataclass
from typing import Any, Callable, List

from .environment import Environment


class LoxCallable:
    """Anything that can appear as the callee of a call expression."""
    def arity(self) -> int:
        raise NotImplementedError

    def call(self, interpreter: Any, arguments: List[Any]) -> Any:
        raise NotImplementedError


@dataclass
class BuiltinFunction(LoxCallable):
    name: str
    param_count: int
    fn: Callable[[List[Any]], Any]

    def arity(self) -> int:
        return self.param_count

    def call(self, interpreter: Any, arguments: List[Any]) -> Any:
        return self.fn(arguments)

    def __str__(self) -> str:
        return '<native fn>'

    def __repr__(self) -> str:
        return f"<builtin {self.name}>"


def _clock(args: List[Any]) -> float:
    return time.time()


NATIVES = [
    BuiltinFunction('clock', 0, _clock),
]


def define_natives(env: Environment) -> None:
    for native in NATIVES:
        env.define(native.name, native, True)
