from collections.abc import Mapping
from typing import Callable, Dict, Iterator, TypeVar

F = TypeVar("F", bound=Callable)


class Registry(Mapping):
    """Read-only mapping from method names to callables, filled with the ``register`` decorator.

    Parameters
    ----------
    name : str
        Name of registry, used in error messages.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._methods: Dict[str, Callable] = {}

    def __getitem__(self, method: str) -> Callable:
        try:
            return self._methods[method]
        except KeyError:
            raise KeyError(
                f"method ({method}) not found in registry ({self.name}), expected one of: {list(self)}"
            ) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._methods)

    def __len__(self) -> int:
        return len(self._methods)

    def register(self, method: str) -> Callable[[F], F]:
        """Decorator adding a callable under a method name.

        Parameters
        ----------
        method : str
            Name the callable is looked up by, must not be taken.

        Returns
        -------
        Callable
            Decorator returning the callable unchanged.
        """

        def decorator(f: F) -> F:
            if method in self._methods:
                raise KeyError(f"method ({method}) already registered in registry ({self.name})")
            self._methods[method] = f
            return f

        return decorator


ThresholdMethods = Registry("ThresholdMethods")
