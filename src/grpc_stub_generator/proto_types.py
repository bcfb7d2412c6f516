"""Names and types that are common to generated service modules."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from grpc_stub_generator.registry import FileContext, MessageType

PROTO_SUFFIX = ".proto"
MESSAGE_MODULE_SUFFIX = "_pb2"
SERVICE_MODULE_SUFFIX = "_grpc"

CLIENT_SUFFIX = "Client"
SERVICE_SUFFIX = "Service"
SERVICE_BASE_SUFFIX = "Base"

PREAMBLE_SUFFIX = "_pre"
METHOD_DESCRIPTOR_PREFIX = "_method_"
SERVICE_NAME_PROPERTY = "service_name"
ADD_METHOD = "add_method"

SERIALIZE_FUNCTION = "SerializeToString"
DESERIALIZE_FUNCTION = "FromString"

# Generated modules import these under private aliases. Proto identifiers start with a letter,
# so no imported message class or unit alias can rebind them.
RUNTIME_ALIAS = "_runtime"
ABC_ALIAS = "_abc"
COLLECTIONS_ABC_ALIAS = "_collections_abc"

ABSTRACT_BASE = f"{ABC_ALIAS}.ABC"
ABSTRACT_METHOD = f"{ABC_ALIAS}.abstractmethod"

# Names that generated code reads without qualification.
RESERVED_NAMES = frozenset({"property", "self", "super"})


class RuntimeName:
    """Symbols of the RPC runtime, qualified by the alias its module is imported under."""

    CLIENT_CALL = f"{RUNTIME_ALIAS}.ClientCall"
    CLIENT_CHANNEL = f"{RUNTIME_ALIAS}.ClientChannel"
    CLIENT_METHOD = f"{RUNTIME_ALIAS}.ClientMethod"
    RESPONSE_FUTURE = f"{RUNTIME_ALIAS}.ResponseFuture"
    RESPONSE_STREAM = f"{RUNTIME_ALIAS}.ResponseStream"
    SERVICE = f"{RUNTIME_ALIAS}.Service"
    SERVICE_CALL = f"{RUNTIME_ALIAS}.ServiceCall"
    SERVICE_METHOD = f"{RUNTIME_ALIAS}.ServiceMethod"


class StreamType:
    """Typing generics used to render streamed and deferred values."""

    STREAM = f"{COLLECTIONS_ABC_ALIAS}.AsyncIterator"
    FUTURE = f"{COLLECTIONS_ABC_ALIAS}.Awaitable"


DependencyMapType = dict[str, "MessageType"]
UndefinedDependencyMapType = dict[str, str]
ImportSetType = set["FileContext"]
