"""Helper functionality that is used in other modules of this package."""

from __future__ import annotations

import keyword
from collections.abc import Sequence

from grpc_stub_generator import proto_types


def sanitize_name(name: str) -> str:
    """Sanitize a name to avoid Python keywords.

    If the name is a Python keyword, append an underscore.
    E.g. 'import' becomes 'import_', 'class' becomes 'class_'.

    Args:
        name (str): The original name.

    Returns:
        str: The sanitized name.
    """
    if keyword.iskeyword(name):
        return f"{name}_"
    return name


def lower_first(name: str) -> str:
    """Lower-case the first character of a name and keep the remainder.

    Examples:
        >>> lower_first("SayHello")
        'sayHello'
        >>> lower_first("sayHello")
        'sayHello'

    Args:
        name (str): The original name.

    Returns:
        str: The name with a lower-case first character.
    """
    return name[:1].lower() + name[1:]


def handler_name(rpc_name: str) -> str:
    """The Python method name for an RPC, e.g. `SayHello` becomes `sayHello`.

    Besides lower-casing the first character, a result that is a Python keyword gets a
    trailing underscore (`Import` becomes `import_`), since it could not be defined otherwise.
    """
    return sanitize_name(lower_first(rpc_name))


def full_service_name(package: str, name: str) -> str:
    """Join a package and a service name by means of a dot.

    Services without a package keep their bare name.

    Args:
        package (str): The declaring package, possibly empty.
        name (str): The service name.

    Returns:
        str: The fully-qualified service name.
    """
    if package:
        return f"{package}.{name}"
    return name


def client_class_name(name: str) -> str:
    """The client class name for a service, avoiding `ClientClient`."""
    if name.endswith(proto_types.CLIENT_SUFFIX):
        return name
    return name + proto_types.CLIENT_SUFFIX


def service_class_name(name: str) -> str:
    """The server base class name for a service, avoiding `ServiceServiceBase`."""
    if name.endswith(proto_types.SERVICE_SUFFIX):
        return name + proto_types.SERVICE_BASE_SUFFIX
    return name + proto_types.SERVICE_SUFFIX + proto_types.SERVICE_BASE_SUFFIX


def strip_leading_dot(fqname: str) -> str:
    """Protobuf descriptors reference types as `.package.Type`; drop the leading dot."""
    if fqname.startswith("."):
        return fqname[1:]
    return fqname


def replace_proto_suffix(original: str, suffix: str = proto_types.MESSAGE_MODULE_SUFFIX) -> str:
    """If found, replaces the .proto suffix in a string and converts hyphens to underscores.

    This matches the behavior of protoc, which converts hyphens to underscores in module names
    to create valid Python identifiers.

    For example, `some-module.proto` becomes `some_module_pb2`.

    Args:
        original (str): The string to replace the suffix in.
        suffix (str): The suffix that replaces `.proto`.

    Returns:
        str: The string with the replaced suffix and hyphens converted to underscores.
    """
    result = original
    if result.endswith(proto_types.PROTO_SUFFIX):
        result = result[: -len(proto_types.PROTO_SUFFIX)] + suffix

    return result.replace("-", "_")


def module_name_for(file_name: str, suffix: str = proto_types.MESSAGE_MODULE_SUFFIX) -> str:
    """The dotted Python module path for a proto file, e.g. `demo/echo.proto` becomes `demo.echo_pb2`."""
    return replace_proto_suffix(file_name, suffix).replace("/", ".")


def import_alias_for(module_name: str) -> str:
    """The alias under which a module is imported, e.g. `demo.echo_pb2` becomes `demo_dot_echo__pb2`."""
    return module_name.replace("_", "__").replace(".", "_dot_")


def join_parameters(parameters: Sequence[str] | None) -> str:
    """Joins parameters by means of ', '.

    Args:
        parameters (Sequence[str] | None): The parameters to join.

    Returns:
        str: The joined parameters.
    """
    if parameters:
        return ", ".join(str(p) for p in parameters if p)

    else:
        return ""


def new_group(name: str, members: list[str]) -> str:
    """Create a string for a group name and its members.

    For example, when the group name is 'AsyncIterator', and the member is 'HelloReply',
    the output will be 'AsyncIterator[HelloReply]'.

    Args:
        name (str): The name of the group.
        members (list[str]): The members of the group

    Returns:
        str: The resulting group string.
    """
    return f"{name}[{join_parameters(members)}]"


def new_function(
    name: str,
    parameters: Sequence[str] | None = None,
    return_type: str | None = None,
    is_async: bool = False,
    stub: bool = False,
) -> str:
    """Create a string for a function heading.

    Args:
        name (str): The function name.
        parameters (Sequence[str] | None, optional): The function parameters, if any. Defaults to None.
        return_type (str | None, optional): The function's return type. Defaults to None.
        is_async (bool, optional): Whether to declare a coroutine function. Defaults to False.
        stub (bool, optional): Whether the function has an ellipsis body on the same line. Defaults to False.

    Returns:
        str: The function string.
    """
    if return_type is None:
        return_type = "None"

    arguments = join_parameters(parameters)
    prefix = "async def" if is_async else "def"
    body = " ..." if stub else ""
    return f"{prefix} {name}({arguments}) -> {return_type}:{body}"


def new_decorator(name: str, parameters: Sequence[str] | None = None) -> str:
    """Create a new decorator.

    Args:
        name (str): The name of the decorator.
        parameters (Sequence[str] | None, optional): The parameters (args, kwargs) of the decorator,
            if any. Defaults to None.

    Returns:
        str: The decorator string.
    """
    if parameters:
        return f"@{name}({join_parameters(parameters)})"

    else:
        return f"@{name}"


def new_class_declaration(name: str, parameters: Sequence[str] | None = None) -> str:
    """Creates a string for declaring a class.

    For example, for a name of 'SomeClass' and a list of parameters that is 'Service, abc.ABC', the output
    will be 'class SomeClass(Service, abc.ABC):'.

    If no parameters are provided, the output is just 'class SomeClass:'.

    Args:
        name (str): The class name.
        parameters (Sequence[str] | None, optional):
            A list of parameters that are part of the class declaration. Defaults to None.

    Returns:
        str: The class declaration.
    """
    if parameters:
        return f"class {name}({join_parameters(parameters)}):"
    else:
        return f"class {name}:"


def quote(value: str) -> str:
    """Render a string literal with double quotes."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'
