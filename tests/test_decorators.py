from types import SimpleNamespace

import pytest
from pydantic import BaseModel

from api_compliance.client import APIClient
from api_compliance.config import validation_mode
from api_compliance.decorators import (
    DELETE,
    GET,
    PENDING_ATTR,
    POST,
    DecoratorContext,
    OperationBinding,
    RootUri,
    normalize_invocation,
)
from api_compliance.errors import MissingPathParameterError, PathFormatError, SignatureViolationError
from api_compliance.registry import get_methods_metadata, get_root_uri
from api_compliance.uri import APIOption, with_params


class GetUsersByIdRequest(BaseModel):
    verbose: bool = False


class GetUsersByIdResponse(BaseModel):
    id: str = ""
    name: str = ""


def _user_client():
    @RootUri("/api/v1")
    class UserClient(APIClient):
        @GET("/users/{id}", summary="Fetch one user")
        def getUsersById(self, request: GetUsersByIdRequest, *options: APIOption) -> GetUsersByIdResponse:
            return self.execute_request("GET", "/users/{id}", request, GetUsersByIdResponse, *options)

    return UserClient


class Target:
    def getUsers(self, request: dict, *options: APIOption):
        pass

    def getUsersById(self, id: str, *options: APIOption):
        pass


class TestPlainDecorator:
    def test_registers_metadata(self):
        UserClient = _user_client()
        metadata = get_methods_metadata(UserClient)
        assert len(metadata) == 1
        assert metadata[0].name == "getUsersById"
        assert metadata[0].method == "GET"
        assert metadata[0].path == "/users/{id}"
        assert metadata[0].summary == "Fetch one user"
        assert get_root_uri(UserClient()) == "/api/v1"
        assert isinstance(vars(UserClient)["getUsersById"], OperationBinding)

    def test_method_name_is_not_checked_at_decoration(self):
        class UserClient(APIClient):
            @GET("/users/{id}")
            def getUser(self, request: "GetUserRequest", *options: APIOption):
                pass

        metadata = get_methods_metadata(UserClient)[0]
        assert (metadata.name, metadata.method, metadata.path) == ("getUser", "GET", "/users/{id}")

    def test_binding_keeps_function_identity(self):
        UserClient = _user_client()
        assert UserClient.getUsersById.__name__ == "getUsersById"
        assert "getUsersById" in repr(UserClient.getUsersById)

    def test_rejects_path_param_in_signature(self):
        with pytest.raises(SignatureViolationError) as exc_info:
            class BadClient(APIClient):
                @GET("/users/{id}")
                def getUser(self, id: str, *options: APIOption) -> GetUsersByIdResponse:
                    pass

        message = str(exc_info.value)
        assert "'id'" in message
        assert "with_params" in message
        assert "def getUser(self, request: GetUserRequest, *options: APIOption) -> GetUserResponse: ..." in message
        assert exc_info.value.method_name == "getUser"

    def test_rejects_two_request_params(self):
        with pytest.raises(SignatureViolationError) as exc_info:
            class BadClient(APIClient):
                @POST("/users")
                def createUsers(self, request: dict, extra: dict, *options: APIOption):
                    pass

        assert "Only one request parameter is allowed, found 2" in str(exc_info.value)

    def test_rejects_two_variadics(self):
        with pytest.raises(SignatureViolationError):
            class BadClient(APIClient):
                @GET("/users")
                def getUsers(self, *options, **kwargs):
                    pass

    def test_multiline_signature(self):
        class MultiLineClient(APIClient):
            @GET("/users")
            def getUsers(
                self,
                request: dict[str, int] = {"a": 1, "b": 2},  # trailing, comment
                *options: APIOption,
            ):
                pass

        assert [m.name for m in get_methods_metadata(MultiLineClient)] == ["getUsers"]

    def test_invalid_path_raises_before_decorating(self):
        with pytest.raises(PathFormatError) as exc_info:
            GET("users/")
        message = str(exc_info.value)
        assert "Path must start with '/'" in message
        assert "Use instead: '/users'" in message
        assert exc_info.value.suggestion == "/users"

    def test_path_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            DELETE("/users//{id}")

    def test_validation_off_accepts_anything(self):
        with validation_mode(False):
            class LaxClient(APIClient):
                @GET("users/")
                def whatever(self, id, other):
                    return (id, other)

        metadata = get_methods_metadata(LaxClient)
        assert metadata[0].path == "users/"
        assert LaxClient().whatever(1, 2) == (1, 2)

    def test_per_decorator_mode(self):
        decorator = GET("users", mode=False)
        assert callable(decorator)
        with validation_mode(False):
            with pytest.raises(PathFormatError):
                GET("users", mode="strict")


class TestCallTime:
    def test_call_resolves_uri_and_validates_response(self):
        sent = []

        def send(prepared):
            sent.append(prepared)
            return {"id": "42", "name": "alice"}

        client = _user_client()(send=send)
        response = client.getUsersById(GetUsersByIdRequest(), with_params({"id": 42}))

        assert isinstance(response, GetUsersByIdResponse)
        assert response.name == "alice"
        assert sent[0].method == "GET"
        assert sent[0].uri == "/api/v1/users/42"
        assert sent[0].body == {"verbose": False}

    def test_call_without_arguments(self):
        client = _user_client()(send=lambda prepared: {})
        with pytest.raises(SignatureViolationError) as exc_info:
            client.getUsersById()
        assert "Parameter count mismatch: expected at least 1 arguments, got 0" in str(exc_info.value)

    def test_unbound_placeholder_fails_when_building_uri(self):
        client = _user_client()(send=lambda prepared: {})
        with pytest.raises(MissingPathParameterError) as exc_info:
            client.getUsersById(GetUsersByIdRequest())
        assert exc_info.value.missing == ["id"]


class TestLegacyProtocol:
    def test_mapping_descriptor(self):
        result = GET("/users")(Target, "getUsers", {"value": Target.getUsers})
        assert result is None
        assert [m.name for m in get_methods_metadata(Target)] == ["getUsers"]

    def test_attribute_descriptor_on_instance(self):
        GET("/users")(Target(), "getUsers", SimpleNamespace(value=Target.getUsers))
        assert get_methods_metadata(Target)[0].path == "/users"

    def test_function_looked_up_by_name(self):
        GET("/users")(Target, "getUsers")
        assert len(get_methods_metadata(Target)) == 1

    def test_lambda_descriptor(self):
        POST("/users")(Target, "createUsers", {"value": lambda self, request, *options: None})
        assert get_methods_metadata(Target)[0].method == "POST"

    def test_bad_signature(self):
        with pytest.raises(SignatureViolationError) as exc_info:
            GET("/users/{id}")(Target, "getUsersById", {"value": Target.getUsersById})
        assert "with_params" in str(exc_info.value)
        assert get_methods_metadata(Target) == []

    def test_redecorating_replaces_the_record(self):
        GET("/users")(Target, "getUsers")
        GET("/users/all", summary="All users")(Target, "getUsers")
        metadata = get_methods_metadata(Target)
        assert len(metadata) == 1
        assert metadata[0].path == "/users/all"
        assert metadata[0].summary == "All users"

    def test_missing_name(self):
        with pytest.raises(TypeError, match="could not determine"):
            GET("/users")(Target, None, {"value": Target.getUsers})


class TestModernProtocol:
    def test_context_with_owner(self):
        result = GET("/users")(Target.getUsers, DecoratorContext(kind="method", name="getUsers", owner=Target))
        assert result is None
        assert get_methods_metadata(Target)[0].name == "getUsers"

    def test_mapping_context_on_class(self):
        GET("/users")(Target, {"kind": "field", "name": "getUsers"})
        assert get_methods_metadata(Target)[0].name == "getUsers"

    def test_bad_signature(self):
        with pytest.raises(SignatureViolationError):
            GET("/users/{id}")(Target.getUsersById, DecoratorContext(kind="method", name="getUsersById", owner=Target))

    def test_registration_deferred_until_class_exists(self):
        def pending(self, request, *options):
            pass

        GET("/users")(pending, DecoratorContext(kind="method", name="getUsers"))
        assert getattr(pending, PENDING_ATTR).path == "/users"

        class Late(APIClient):
            getUsers = pending

        assert [m.name for m in get_methods_metadata(Late)] == ["getUsers"]

    def test_root_uri_context(self):
        class Plain:
            pass

        assert RootUri("/api")(Plain, DecoratorContext(kind="class", name="Plain")) is None
        assert get_root_uri(Plain) == "/api"

        class Other:
            pass

        RootUri("/other")(None, DecoratorContext(kind="class", name="Other", owner=Other))
        assert get_root_uri(Other) == "/other"


class TestNormalizeInvocation:
    def test_kinds(self):
        assert normalize_invocation((Target, "getUsers", {"value": Target.getUsers})).kind == "legacy"
        assert normalize_invocation((Target.getUsers, DecoratorContext("method", "getUsers"))).kind == "modern"
        assert normalize_invocation((Target.getUsers,)).kind == "plain"

    def test_legacy_record(self):
        record = normalize_invocation((Target(), "getUsers"))
        assert record.owner is Target
        assert record.function is Target.getUsers
        assert record.method_name == "getUsers"

    def test_plain_record(self):
        record = normalize_invocation((Target.getUsers,))
        assert record.method_name == "getUsers"
        assert record.owner is None


class TestRootUri:
    @pytest.mark.parametrize("uri", ["api/users", "", "   ", "/api/"])
    def test_invalid_root(self, uri):
        with pytest.raises(PathFormatError) as exc_info:
            RootUri(uri)
        assert "root URI" in str(exc_info.value)

    def test_root_path_is_valid(self):
        @RootUri("/")
        class RootClient(APIClient):
            pass

        assert get_root_uri(RootClient) == "/"

    def test_inheritance(self):
        @RootUri("/api")
        class Base(APIClient):
            @GET("/users")
            def getUsers(self, request, *options):
                pass

        class Child(Base):
            @GET("/users/{id}")
            def getUsersById(self, request, *options):
                pass

        @RootUri("/v2")
        class Override(Base):
            pass

        assert get_root_uri(Child()) == "/api"
        assert get_root_uri(Override) == "/v2"
        assert [m.name for m in get_methods_metadata(Child)] == ["getUsers", "getUsersById"]
        assert [m.name for m in get_methods_metadata(Base)] == ["getUsers"]

    def test_rejects_non_class(self):
        with pytest.raises(TypeError):
            RootUri("/api")(lambda: None)
