from __future__ import annotations

from typing import Any, Type, TypeVar

from xtructure import FieldDescriptor, Xtructurable, xtructure_dataclass

T = TypeVar("T")

FieldDescriptor = FieldDescriptor


class PuzzleState(Xtructurable):
    """
    Marker base-class for board states.

    Board states are plain tensors of cell attributes; they are never
    bitpacked, so ``packed`` and ``unpacked`` are identity views.
    """
    pass


def _identity(self) -> Any:
    return self


def state_dataclass(cls: Type[T] | None = None, **kwargs: Any):
    """
    Decorator turning a class of ``FieldDescriptor`` annotations into a
    JAX-compatible xtructure dataclass.

    Bitpacking is disabled by default. Classes that define only one of
    ``packed`` / ``unpacked`` are rejected.
    """

    def wrap(target_cls: Type[T]) -> Type[T]:
        call_kwargs = dict(kwargs)
        call_kwargs.setdefault("bitpack", "off")

        try:
            dc_cls = xtructure_dataclass(target_cls, **call_kwargs)
        except TypeError:
            # Older xtructure releases do not know about `bitpack=`.
            call_kwargs.pop("bitpack", None)
            dc_cls = xtructure_dataclass(target_cls, **call_kwargs)

        has_packed = hasattr(dc_cls, "packed")
        has_unpacked = hasattr(dc_cls, "unpacked")
        if has_packed ^ has_unpacked:
            raise ValueError(
                "State class must implement both packing and unpacking (or neither)."
            )
        if not has_packed:
            setattr(dc_cls, "packed", property(_identity))
            setattr(dc_cls, "unpacked", property(_identity))

        return dc_cls

    if cls is None:
        return wrap
    return wrap(cls)
