"""Value objects that are passed around during service generation."""

from __future__ import annotations

from dataclasses import dataclass

from grpc_stub_generator import helper, proto_types
from grpc_stub_generator.proto_types import RuntimeName, StreamType


@dataclass(frozen=True)
class ServiceNaming:
    """Names derived once per service.

    Attributes:
        full_service_name: The package-qualified service name (e.g. "demo.EchoService")
        client_class_name: Name of the client stub class (e.g. "EchoServiceClient")
        service_class_name: Name of the abstract server base class (e.g. "EchoServiceBase")
    """

    full_service_name: str
    client_class_name: str
    service_class_name: str

    @classmethod
    def create(cls, name: str, package: str) -> ServiceNaming:
        """Factory method that applies the suffix rules to a service name.

        Args:
            name: The service name as declared
            package: The package of the declaring unit, possibly empty

        Returns:
            A fully initialized ServiceNaming
        """
        return cls(
            full_service_name=helper.full_service_name(package, name),
            client_class_name=helper.client_class_name(name),
            service_class_name=helper.service_class_name(name),
        )


@dataclass(frozen=True)
class MethodShape:
    """The rendered types of one RPC method, derived from its two streaming flags.

    Runtime and `collections.abc` names are rendered through their module aliases, e.g.
    `_runtime.ResponseFuture`; the table leaves the aliases out.

    | client_streaming | server_streaming | argument            | client return          | server return          |
    |------------------|------------------|---------------------|------------------------|------------------------|
    | False            | False            | Req                 | ResponseFuture[Resp]   | Awaitable[Resp]        |
    | True             | False            | AsyncIterator[Req]  | ResponseFuture[Resp]   | Awaitable[Resp]        |
    | False            | True             | Req                 | ResponseStream[Resp]   | AsyncIterator[Resp]    |
    | True             | True             | AsyncIterator[Req]  | ResponseStream[Resp]   | AsyncIterator[Resp]    |

    Attributes:
        request_type: Class name of the request message, as referenced from the generated module
        response_type: Class name of the response message, as referenced from the generated module
        client_streaming: Whether the caller sends a sequence of requests
        server_streaming: Whether the callee sends a sequence of responses
        argument_type: Type of the request argument of client methods and handlers
        client_return_type: Return type of client methods
        server_return_type: Return type of server handlers
    """

    request_type: str
    response_type: str
    client_streaming: bool
    server_streaming: bool
    argument_type: str
    client_return_type: str
    server_return_type: str

    @classmethod
    def create(
        cls,
        request_type: str,
        response_type: str,
        client_streaming: bool,
        server_streaming: bool,
    ) -> MethodShape:
        if client_streaming:
            argument_type = helper.new_group(StreamType.STREAM, [request_type])
        else:
            argument_type = request_type

        if server_streaming:
            client_return_type = helper.new_group(RuntimeName.RESPONSE_STREAM, [response_type])
            server_return_type = helper.new_group(StreamType.STREAM, [response_type])
        else:
            client_return_type = helper.new_group(RuntimeName.RESPONSE_FUTURE, [response_type])
            server_return_type = helper.new_group(StreamType.FUTURE, [response_type])

        return cls(
            request_type=request_type,
            response_type=response_type,
            client_streaming=client_streaming,
            server_streaming=server_streaming,
            argument_type=argument_type,
            client_return_type=client_return_type,
            server_return_type=server_return_type,
        )

    @property
    def pending_request_type(self) -> str:
        """Type of the single request as an adapter receives it."""
        return helper.new_group(StreamType.FUTURE, [self.request_type])

    @property
    def request_serializer(self) -> str:
        return f"{self.request_type}.{proto_types.SERIALIZE_FUNCTION}"

    @property
    def request_deserializer(self) -> str:
        return f"{self.request_type}.{proto_types.DESERIALIZE_FUNCTION}"

    @property
    def response_serializer(self) -> str:
        return f"{self.response_type}.{proto_types.SERIALIZE_FUNCTION}"

    @property
    def response_deserializer(self) -> str:
        return f"{self.response_type}.{proto_types.DESERIALIZE_FUNCTION}"
