from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tessera_di.domain.enums import Lifetime, RegistrationKind
from tessera_di.domain.interfaces import IInjection, ILifetime


class TypeArgument(BaseModel):
    """A single constructor dependency.

    Attributes:
        name: The constructor parameter name.
        type: Resolution key the value is resolved from.
        keyword_only: Whether the value must be passed by keyword.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="The constructor parameter name.")
    type: str = Field(..., description="Resolution key of the parameter's type.")
    keyword_only: bool = Field(default=False, description="Whether the parameter is keyword-only.")


class TypeInfo(BaseModel):
    """Resolution key and ordered constructor dependencies of a type.

    Attributes:
        name: The resolution key of the type.
        constructor: The callable that creates instances.
        args: Constructor dependencies in declaration order.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., description="Resolution key of the described type.")
    constructor: Callable[..., Any] = Field(..., description="The constructor-like callable.")
    args: Tuple[TypeArgument, ...] = Field(default=(), description="Constructor dependencies in order.")


class RegistrationOptions(BaseModel):
    """Options accepted by every register call.

    Attributes:
        key: Override resolution key.
        lifetime: Cache policy, either a policy object or a Lifetime shorthand.
        injections: Post-construction injections, applied in order.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, extra="forbid")

    key: Optional[str] = Field(default=None, description="Override resolution key.")
    lifetime: Optional[Union[Lifetime, ILifetime]] = Field(default=None, description="Cache policy.")
    injections: List[IInjection] = Field(default_factory=list, description="Post-construction injections.")

    @classmethod
    def normalize(
        cls,
        options: Union[str, "RegistrationOptions", Mapping[str, Any], None] = None,
        **overrides: Any,
    ) -> "RegistrationOptions":
        """Turn any accepted options form into a RegistrationOptions.

        Args:
            options: None, a bare key string, a mapping, or an options object.
            **overrides: ``key``, ``lifetime`` or ``injections`` values merged on top.

        Returns:
            The normalized options.

        Example:
            >>> RegistrationOptions.normalize("db").key
            'db'
            >>> RegistrationOptions.normalize({"key": "db"}, lifetime=Lifetime.SINGLETON).lifetime
            <Lifetime.SINGLETON: 'singleton'>
        """
        if options is None:
            base = cls()
        elif isinstance(options, cls):
            base = options
        elif isinstance(options, str):
            base = cls(key=options)
        elif isinstance(options, Mapping):
            base = cls.model_validate(dict(options))
        else:
            raise TypeError(f"Unsupported registration options: {options!r}")

        updates = {name: value for name, value in overrides.items() if value is not None}
        if not updates:
            return base
        return cls.model_validate({**dict(base), **updates})


class Registration(BaseModel):
    """Value object representing a registration under a resolution key.

    Exactly one payload is set, selected by ``kind``.

    Attributes:
        key: The resolution key.
        kind: Which payload produces the instance.
        lifetime: Cache policy for resolved instances.
        injections: Injections run after every construction.
        type_info: Payload of TYPE registrations.
        instance: Payload of INSTANCE registrations.
        factory: Payload of FACTORY registrations.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    key: str = Field(..., description="The resolution key.")
    kind: RegistrationKind = Field(..., description="The registration kind.")
    lifetime: ILifetime = Field(..., description="The lifetime policy of the registration.")
    injections: List[IInjection] = Field(default_factory=list, description="Post-construction injections.")
    type_info: Optional[TypeInfo] = Field(default=None, description="Type description for TYPE registrations.")
    instance: Any = Field(default=None, description="Pre-built value for INSTANCE registrations.")
    factory: Optional[Callable[..., Any]] = Field(default=None, description="Factory for FACTORY registrations.")

    @model_validator(mode="after")
    def _check_payload(self) -> "Registration":
        if self.kind == RegistrationKind.TYPE:
            valid = self.type_info is not None and self.factory is None
        elif self.kind == RegistrationKind.FACTORY:
            valid = self.factory is not None and self.type_info is None
        else:
            valid = self.type_info is None and self.factory is None
        if not valid:
            raise ValueError(f"Registration '{self.key}' payload does not match kind '{self.kind}'")
        return self


class HandlerConfig(BaseModel):
    """A committed interception rule.

    Attributes:
        matcher: Predicate ``(instance, method_name) -> bool``.
        handlers: Call handlers, run in declared order.
        is_async: Whether the handlers wrap coroutine methods.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    matcher: Callable[[Any, str], bool]
    handlers: List[Callable[..., Any]] = Field(default_factory=list)
    is_async: bool = False


class InvocationContext(BaseModel):
    """State of one intercepted method call, shared by its handlers.

    Handlers may rewrite ``args``/``kwargs`` before proceeding and
    ``return_value`` afterwards.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    instance: Any
    method_name: str
    args: Tuple[Any, ...] = ()
    kwargs: Dict[str, Any] = Field(default_factory=dict)
    return_value: Any = None


class ResolutionResult(BaseModel):
    """Outcome of a suspend-capable resolution.

    An instance may accompany an error when construction succeeded but an
    injection failed; such instances are never cached.

    Attributes:
        key: The resolution key that was requested.
        instance: The resolved instance, if one was produced.
        error: The failure, passed through unchanged.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    key: str
    instance: Any = None
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        """Whether the resolution finished without a failure."""
        return self.error is None

    def unwrap(self) -> Any:
        """Return the instance, or raise the recorded failure unchanged."""
        if self.error is not None:
            raise self.error
        return self.instance
