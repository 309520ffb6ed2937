from __future__ import annotations

from typing import Any, Callable, ClassVar, Dict, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict

from ..errors import UnknownInterfaceError

InterfaceT = TypeVar("InterfaceT", bound="Interface")


class Interface(BaseModel):
  """
  A named, independently serializable fragment of an event.

  Subclasses declare their fields as pydantic fields and set `wire_alias`,
  the key the fragment is stored under in the serialized event.
  """

  model_config = ConfigDict(extra="forbid")

  wire_alias: ClassVar[str] = ""

  @classmethod
  def build(
    cls: Type[InterfaceT],
    value: Union[InterfaceT, Mapping[str, Any], None] = None,
    configure: Optional[Callable[[InterfaceT], None]] = None,
  ) -> InterfaceT:
    """
    Create an instance from a raw value, a configure callback, or both.

    `value` may already be an instance of this type or a mapping of field
    values. `configure` runs on the new instance after the value is applied.
    """
    if isinstance(value, cls):
      instance = value
    elif value is None:
      instance = cls()
    elif isinstance(value, Mapping):
      instance = cls(**value)
    else:
      raise TypeError(
        f"{cls.__name__} expects a mapping or {cls.__name__} instance, got {type(value).__name__}"
      )

    if configure is not None:
      configure(instance)
    return instance

  def to_hash(self) -> Dict[str, Any]:
    return self.model_dump(exclude_none=True)


class InterfaceRegistry:
  """
  Maps short interface names to the types implementing them.

  Populated once at import time; later registrations for the same name
  replace earlier ones.
  """

  def __init__(self) -> None:
    self._types: Dict[str, Type[Interface]] = {}

  def register(self, name: str, interface_type: Type[Interface]) -> None:
    if not isinstance(interface_type, type) or not issubclass(interface_type, Interface):
      raise TypeError("interface_type must be an Interface subclass")
    self._types[name] = interface_type

  def lookup(self, name: str) -> Type[Interface]:
    try:
      return self._types[name]
    except KeyError:
      raise UnknownInterfaceError(name) from None

  def names(self) -> List[str]:
    return sorted(self._types)

  def __contains__(self, name: object) -> bool:
    return name in self._types


default_registry = InterfaceRegistry()
