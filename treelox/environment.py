from typing import Any, Dict, Optional

from .errors import LoxRuntimeError
from .tokens import Token


class Environment:
    """A single scope mapping names to values, linked to its enclosing scope.

    Each name also carries an assigned flag so that a variable declared
    without an initializer cannot be read before something is stored in it.
    """
    def __init__(self, enclosing: Optional['Environment'] = None):
        self.enclosing = enclosing
        self.values: Dict[str, Any] = {}
        self.assigned: Dict[str, bool] = {}

    def define(self, name: str, value: Any, is_assigned: bool = True) -> None:
        # Re-declaring a name in the same scope replaces the old slot.
        self.values[name] = value
        self.assigned[name] = is_assigned

    def get(self, name: Token) -> Any:
        key = name.lexeme
        if key in self.values:
            if self.assigned[key]:
                return self.values[key]
            raise LoxRuntimeError(name, f"Variable '{key}' evaluated before assignment.")
        if self.enclosing is not None:
            return self.enclosing.get(name)
        raise LoxRuntimeError(name, f"Undefined variable '{key}'.")

    def assign(self, name: Token, value: Any) -> None:
        key = name.lexeme
        if key in self.values:
            self.values[key] = value
            self.assigned[key] = True
            return
        if self.enclosing is not None:
            self.enclosing.assign(name, value)
            return
        raise LoxRuntimeError(name, f"Undefined variable '{key}'.")
