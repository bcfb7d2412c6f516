"""Unit tests for the naming helpers."""

import pytest

from grpc_stub_generator import helper


class TestServiceNames:
    """Suffix rules for generated class names."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Greeter", "GreeterClient"),
            ("EchoService", "EchoServiceClient"),
            ("GreeterClient", "GreeterClient"),
            ("Client", "Client"),
            ("ClientX", "ClientXClient"),
        ],
    )
    def test_client_class_name(self, name, expected):
        assert helper.client_class_name(name) == expected

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Greeter", "GreeterServiceBase"),
            ("EchoService", "EchoServiceBase"),
            ("Service", "ServiceBase"),
            ("ServiceX", "ServiceXServiceBase"),
            ("GreeterClient", "GreeterClientServiceBase"),
        ],
    )
    def test_service_class_name(self, name, expected):
        assert helper.service_class_name(name) == expected

    def test_full_service_name_with_package(self):
        assert helper.full_service_name("demo", "EchoService") == "demo.EchoService"

    def test_full_service_name_nested_package(self):
        assert helper.full_service_name("a.b.c", "Svc") == "a.b.c.Svc"

    def test_full_service_name_without_package(self):
        assert helper.full_service_name("", "Greeter") == "Greeter"


class TestHandlerNames:
    """Tests for the RPC name to handler name transform."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("SayHello", "sayHello"),
            ("sayHello", "sayHello"),
            ("A", "a"),
            ("URLFetch", "uRLFetch"),
            ("", ""),
        ],
    )
    def test_lower_first(self, name, expected):
        assert helper.lower_first(name) == expected

    @pytest.mark.parametrize("name", ["SayHello", "Chat", "x", "GetURL", "_Private"])
    def test_lower_first_is_idempotent(self, name):
        once = helper.lower_first(name)
        assert helper.lower_first(once) == once

    def test_handler_name_sanitizes_keywords(self):
        assert helper.handler_name("Import") == "import_"
        assert helper.handler_name("Pass") == "pass_"

    def test_handler_name_keeps_regular_names(self):
        assert helper.handler_name("SayHello") == "sayHello"

    def test_sanitize_name(self):
        assert helper.sanitize_name("class") == "class_"
        assert helper.sanitize_name("klass") == "klass"


class TestModuleNames:
    """Tests for module paths and aliases derived from proto file names."""

    def test_replace_proto_suffix(self):
        assert helper.replace_proto_suffix("some-module.proto") == "some_module_pb2"

    def test_replace_proto_suffix_custom_suffix(self):
        assert helper.replace_proto_suffix("demo/echo.proto", "_grpc") == "demo/echo_grpc"

    def test_replace_proto_suffix_without_proto_extension(self):
        assert helper.replace_proto_suffix("demo/echo") == "demo/echo"

    def test_module_name_for(self):
        assert helper.module_name_for("demo/echo.proto") == "demo.echo_pb2"

    def test_import_alias_for(self):
        assert helper.import_alias_for("demo.echo_pb2") == "demo_dot_echo__pb2"
        assert helper.import_alias_for("dms_pb2") == "dms__pb2"

    def test_strip_leading_dot(self):
        assert helper.strip_leading_dot(".demo.EchoRequest") == "demo.EchoRequest"
        assert helper.strip_leading_dot("demo.EchoRequest") == "demo.EchoRequest"


class TestCodeStrings:
    """Tests for the small code string builders."""

    def test_new_group(self):
        assert helper.new_group("AsyncIterator", ["HelloReply"]) == "AsyncIterator[HelloReply]"

    def test_new_function(self):
        assert helper.new_function("f", ["self", "x: int"], "str") == "def f(self, x: int) -> str:"

    def test_new_function_defaults_to_none_return(self):
        assert helper.new_function("__init__", ["self"]) == "def __init__(self) -> None:"

    def test_new_function_async_stub(self):
        assert helper.new_function("f", ["self"], "int", is_async=True, stub=True) == "async def f(self) -> int: ..."

    def test_new_decorator(self):
        assert helper.new_decorator("property") == "@property"
        assert helper.new_decorator("cache", ["1"]) == "@cache(1)"

    def test_new_class_declaration(self):
        assert helper.new_class_declaration("A") == "class A:"
        assert helper.new_class_declaration("A", ["Service", "abc.ABC"]) == "class A(Service, abc.ABC):"

    def test_quote(self):
        assert helper.quote("/demo.EchoService/SayHello") == '"/demo.EchoService/SayHello"'
        assert helper.quote('a"b') == '"a\\"b"'
